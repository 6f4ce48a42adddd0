"""Per-cycle driver for the CHIP-8 core."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from chip8vm.cpu.cpu import Chip8CPU
from chip8vm.cpu.errors import Chip8Error
from chip8vm.system.platform import PlatformIntegration, StepObserver

logger = logging.getLogger(__name__)

ErrorHandler = Callable[[Chip8Error], None]


@dataclass(frozen=True)
class RunResult:
    """Outcome of one :meth:`Scheduler.start` call."""

    cycles: int
    error: Optional[Chip8Error] = None
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None


class Scheduler:
    """Runs fetch-decode-execute cycles until stopped.

    Each cycle: observer hook, one instruction, render when the draw flag is
    set, key poll, timer decrement (with a beep when the sound timer runs
    out). Stop requests are honoured at the top of the next cycle.
    """

    STATUS_RUNNING = 0
    STATUS_STOPPED = 1

    def __init__(
        self,
        cpu: Chip8CPU,
        platform: Optional[PlatformIntegration] = None,
        observer: Optional[StepObserver] = None,
    ) -> None:
        self.cpu = cpu
        self.platform = platform
        self.observer = observer
        self.cycle_count = 0
        self.stop_reason = ""
        self._status = self.STATUS_STOPPED

    @property
    def status(self) -> int:
        return self._status

    @property
    def running(self) -> bool:
        return self._status == self.STATUS_RUNNING

    # ------------------------------------------------------------------
    # Control lifecycle
    # ------------------------------------------------------------------
    def start(self, error_handler: Optional[ErrorHandler] = None) -> RunResult:
        """Loop until :meth:`stop` is called or an instruction faults.

        At most one :class:`Chip8Error` is reported: it is returned in the
        result and, when given, passed to ``error_handler``.
        """

        state = self.cpu.state
        state.stop_flag = False
        self.stop_reason = ""
        self._status = self.STATUS_RUNNING
        start_cycles = self.cycle_count
        error: Optional[Chip8Error] = None
        logger.debug("run started at pc=%03X", state.pc)

        try:
            while not state.stop_flag:
                try:
                    self.run_cycle()
                except Chip8Error as exc:
                    error = exc
                    logger.error("run halted at pc=%03X: %s", state.pc, exc)
                    self.stop(str(exc))
                    if error_handler is not None:
                        error_handler(exc)
                    break
        finally:
            # Stopped even when a non-VM exception escapes.
            self.stop("aborted")
            self._status = self.STATUS_STOPPED

        executed = self.cycle_count - start_cycles
        logger.debug("run stopped after %d cycles (%s)", executed, self.stop_reason or "stop requested")
        return RunResult(cycles=executed, error=error, reason=self.stop_reason)

    def stop(self, reason: str = "") -> None:
        """Request a halt; safe to call repeatedly and from observers."""

        state = self.cpu.state
        if state.stop_flag:
            return
        state.stop_flag = True
        self.stop_reason = reason

    # ------------------------------------------------------------------
    # Cycle
    # ------------------------------------------------------------------
    def run_cycle(self) -> None:
        """Execute one full cycle including the platform callbacks."""

        cpu = self.cpu
        state = cpu.state
        if self.observer is not None:
            self.observer.on_before_cycle(state.view(), self)

        cpu.execute_cycle()
        self.cycle_count += 1

        platform = self.platform
        if state.draw_flag:
            if platform is not None:
                platform.render_frame(memoryview(state.framebuffer).toreadonly())
            state.draw_flag = False

        if platform is not None:
            cpu.set_keys(platform.poll_keys())

        if cpu.tick_timers() and platform is not None:
            platform.beep()


__all__ = ["RunResult", "Scheduler"]
