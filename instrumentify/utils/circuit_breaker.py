"""
Circuit breaker guarding calls to a remote service.
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Optional

from instrumentify.exceptions import InstrumentifyError

log = logging.getLogger(__name__)


class CircuitState(Enum):
    """States of the circuit breaker."""

    CLOSED = "closed"  # calls pass through
    OPEN = "open"  # calls rejected
    HALF_OPEN = "half_open"  # probing


class CircuitBreakerError(InstrumentifyError):
    """Raised when a call is rejected because the circuit is open."""


class CircuitBreaker:
    """
    Rejects calls to a service after repeated failures, then lets a few trial
    calls through once ``recovery_timeout`` seconds have passed.

    Used as an async context manager around each call::

        async with breaker:
            await session.get(...)
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        recovery_timeout: float = 60,
        success_threshold: int = 2,
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.success_threshold = success_threshold

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        self._opened_at: Optional[float] = None
        self._lock = asyncio.Lock()

    @property
    def state(self) -> CircuitState:
        return self._state

    def _maybe_half_open(self) -> None:
        if self._state is not CircuitState.OPEN or self._opened_at is None:
            return
        elapsed = time.monotonic() - self._opened_at
        if elapsed >= self.recovery_timeout:
            log.info(
                f"[yellow]{self.name}: probing after {elapsed:.0f}s cool-down[/yellow]"
            )
            self._state = CircuitState.HALF_OPEN
            self._success_count = 0

    async def _record_success(self) -> None:
        async with self._lock:
            self._failure_count = 0
            if self._state is CircuitState.HALF_OPEN:
                self._success_count += 1
                if self._success_count >= self.success_threshold:
                    log.info(f"[green]✓ {self.name}: service recovered.[/green]")
                    self._state = CircuitState.CLOSED
                    self._success_count = 0

    async def _record_failure(self) -> None:
        async with self._lock:
            self._failure_count += 1
            if self._state is CircuitState.HALF_OPEN:
                log.warning(f"[yellow]{self.name}: trial call failed, reopening.[/yellow]")
                self._open()
            elif (
                self._state is CircuitState.CLOSED
                and self._failure_count >= self.failure_threshold
            ):
                log.error(
                    f"[red]✗ {self.name}: {self._failure_count} consecutive failures, "
                    f"blocking calls for {self.recovery_timeout:.0f}s.[/red]"
                )
                self._open()

    def _open(self) -> None:
        self._state = CircuitState.OPEN
        self._opened_at = time.monotonic()
        self._failure_count = 0
        self._success_count = 0

    async def __aenter__(self) -> "CircuitBreaker":
        async with self._lock:
            self._maybe_half_open()
            if self._state is CircuitState.OPEN:
                raise CircuitBreakerError(
                    f"{self.name} is unavailable after repeated failures; "
                    f"retry in {self.recovery_timeout:.0f} seconds."
                )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type:
            await self._record_failure()
        else:
            await self._record_success()
