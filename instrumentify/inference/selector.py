"""
Chooses the separation model from the user's quality choice or, for "auto",
from a coarse reading of the machine's hardware.
"""

import logging
import os
import platform
import re
import shutil
import subprocess
from dataclasses import dataclass
from typing import Optional

from instrumentify.exceptions import InvalidQualityError

log = logging.getLogger(__name__)

# GPU families considered strong enough for the larger model
_CAPABLE_GPU_REGEX = re.compile(r"(RTX|RX|Apple|Arc|Vega|GTX 16|M1|M2)", re.IGNORECASE)
_CAPABLE_CPU_CORES = 8
_DEFAULT_CPU_CORES = 4


@dataclass(frozen=True)
class HardwareSignals:
    gpu_descriptor: str
    cpu_cores: int


def choose_tier(gpu_descriptor: str, cpu_cores: int) -> str:
    """Returns "medium" when either signal suggests a capable machine, else "tiny"."""
    has_strong_gpu = bool(_CAPABLE_GPU_REGEX.search(gpu_descriptor or ""))
    return "medium" if has_strong_gpu or cpu_cores >= _CAPABLE_CPU_CORES else "tiny"


def _query_nvidia_gpu_name() -> Optional[str]:
    if not shutil.which("nvidia-smi"):
        return None
    try:
        r = subprocess.run(
            ["nvidia-smi", "--query-gpu=name", "--format=csv,noheader"],
            capture_output=True,
            text=True,
            timeout=5,
            check=True,
        )
    except (OSError, subprocess.SubprocessError) as e:
        log.debug(f"nvidia-smi query failed: {e}")
        return None
    names = [line.strip() for line in r.stdout.splitlines() if line.strip()]
    return names[0] if names else None


def detect_gpu_descriptor() -> str:
    """Best-effort GPU name: NVIDIA via nvidia-smi, Apple silicon by platform, else "CPU"."""
    if name := _query_nvidia_gpu_name():
        return name
    if platform.system() == "Darwin" and platform.machine() == "arm64":
        return f"Apple {platform.processor() or platform.machine()}"
    return "CPU"


def detect_hardware_signals(gpu_override: str = "") -> HardwareSignals:
    return HardwareSignals(
        gpu_descriptor=gpu_override or detect_gpu_descriptor(),
        cpu_cores=os.cpu_count() or _DEFAULT_CPU_CORES,
    )


class ModelSelector:
    """Maps a quality choice (auto, tiny, medium) to a model URL."""

    def __init__(
        self,
        model_url_tiny: str,
        model_url_medium: str,
        signals: Optional[HardwareSignals] = None,
        gpu_override: str = "",
    ):
        self._urls = {"tiny": model_url_tiny, "medium": model_url_medium}
        self._signals = signals
        self._gpu_override = gpu_override

    @property
    def signals(self) -> HardwareSignals:
        """Hardware signals, detected once on first use."""
        if self._signals is None:
            self._signals = detect_hardware_signals(self._gpu_override)
            log.debug(
                f"Hardware: GPU='{self._signals.gpu_descriptor}', "
                f"cores={self._signals.cpu_cores}"
            )
        return self._signals

    def resolve_tier(self, choice: str = "auto") -> str:
        choice = (choice or "auto").lower()
        if choice in self._urls:
            return choice
        if choice != "auto":
            raise InvalidQualityError(
                f"Unknown quality '{choice}'. Use auto, tiny or medium."
            )
        signals = self.signals
        return choose_tier(signals.gpu_descriptor, signals.cpu_cores)

    def select_model(self, choice: str = "auto") -> str:
        return self._urls[self.resolve_tier(choice)]
