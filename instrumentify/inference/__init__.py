"""
Separation Layer.

This package picks which separation model to use and runs it through
onnxruntime. The model itself is an opaque collaborator: it receives a mono
float buffer and returns one.
"""

from .invoker import InferenceInvoker
from .selector import HardwareSignals, ModelSelector, choose_tier, detect_hardware_signals

__all__ = [
    "HardwareSignals",
    "InferenceInvoker",
    "ModelSelector",
    "choose_tier",
    "detect_hardware_signals",
]
