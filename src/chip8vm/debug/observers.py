"""Step observers for tracing, breakpoints and run limits."""

from __future__ import annotations

import logging
from collections import deque
from typing import TYPE_CHECKING, Deque, Iterable, List, Optional

from chip8vm.cpu.state import MachineView

if TYPE_CHECKING:  # pragma: no cover - typing only
    from chip8vm.system.scheduler import Scheduler

logger = logging.getLogger(__name__)

ADDRESS_MASK = 0xFFF


class StallDetector:
    """Stop once the program counter is the same on two consecutive cycles.

    Test programs signal completion with a jump-to-self loop; this turns
    that loop into a clean stop.
    """

    def __init__(self) -> None:
        self.previous_pc: Optional[int] = None
        self.cycles = 0
        self.stalled_at: Optional[int] = None

    def on_before_cycle(self, view: MachineView, scheduler: "Scheduler") -> None:
        self.cycles += 1
        pc = view.pc
        if pc == self.previous_pc:
            self.stalled_at = pc
            scheduler.stop(f"stalled at {pc:03X}")
        self.previous_pc = pc


class BreakpointObserver:
    """Stop when the program counter reaches one of the given addresses.

    The instruction at the breakpoint still runs, since stops take effect at
    the next cycle boundary.
    """

    def __init__(self, addresses: Iterable[int]) -> None:
        self.addresses = {address & ADDRESS_MASK for address in addresses}
        self.hit: Optional[int] = None

    def on_before_cycle(self, view: MachineView, scheduler: "Scheduler") -> None:
        if view.pc in self.addresses:
            self.hit = view.pc
            scheduler.stop(f"breakpoint at {view.pc:03X}")


class CycleLimit:
    def __init__(self, limit: int) -> None:
        if limit <= 0:
            raise ValueError("cycle limit must be positive")
        self.limit = limit
        self.count = 0
        self.reached = False

    def on_before_cycle(self, view: MachineView, scheduler: "Scheduler") -> None:
        self.count += 1
        if self.count >= self.limit:
            self.reached = True
            scheduler.stop("cycle limit reached")


class TraceObserver:
    """Log one line per cycle and keep a short PC history."""

    HISTORY_LENGTH = 32

    def __init__(self, *, level: int = logging.DEBUG, history: int = HISTORY_LENGTH) -> None:
        self.level = level
        self.history: Deque[int] = deque(maxlen=history)

    def on_before_cycle(self, view: MachineView, scheduler: "Scheduler") -> None:
        pc = view.pc
        self.history.append(pc)
        if not logger.isEnabledFor(self.level):
            return
        registers = " ".join(f"{value:02X}" for value in view.v)
        logger.log(
            self.level,
            "PC=%03X OP=%04X I=%03X SP=%X DT=%02X ST=%02X V=[%s]",
            pc,
            view.peek16(pc) if pc + 1 < len(view.memory) else 0,
            view.i,
            view.sp,
            view.delay_timer,
            view.sound_timer,
            registers,
        )


class ObserverChain:
    """Fan one hook call out to several observers in order."""

    def __init__(self, observers: Iterable[object] = ()) -> None:
        self.observers: List[object] = list(observers)

    def add(self, observer: object) -> None:
        self.observers.append(observer)

    def on_before_cycle(self, view: MachineView, scheduler: "Scheduler") -> None:
        for observer in self.observers:
            observer.on_before_cycle(view, scheduler)


__all__ = [
    "BreakpointObserver",
    "CycleLimit",
    "ObserverChain",
    "StallDetector",
    "TraceObserver",
]
