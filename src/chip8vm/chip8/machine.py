"""CHIP-8 system wiring."""

from __future__ import annotations

import random
from typing import Optional

from chip8vm.cpu.cpu import Chip8CPU
from chip8vm.cpu.state import MachineState, MachineView
from chip8vm.emulator.file import ProgramInfo, load_rom
from chip8vm.emulator.file.program import RomSource
from chip8vm.memory import Memory
from chip8vm.system.platform import PlatformIntegration, StepObserver
from chip8vm.system.scheduler import ErrorHandler, RunResult, Scheduler


class Chip8Machine:
    """Concrete CHIP-8 computer: state, CPU and scheduler bound to a platform.

    A machine runs one program. There is no reset; build a new machine for
    a fresh run.
    """

    ENV_TRACE = "CHIP8VM_TRACE"

    def __init__(
        self,
        platform: Optional[PlatformIntegration] = None,
        *,
        observer: Optional[StepObserver] = None,
        seed: Optional[int] = None,
    ) -> None:
        self._state = MachineState()
        self.cpu = Chip8CPU(self._state, rng=random.Random(seed))
        self.platform = platform
        self.scheduler = Scheduler(self.cpu, platform, observer)
        self.program_info: Optional[ProgramInfo] = None

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def view(self) -> MachineView:
        return self._state.view()

    @property
    def memory(self) -> Memory:
        return self._state.memory

    @property
    def cycle_count(self) -> int:
        return self.scheduler.cycle_count

    # ------------------------------------------------------------------
    # Program loading
    # ------------------------------------------------------------------
    def load_program(self, source: RomSource, *, name: str = "") -> ProgramInfo:
        info = load_rom(self._state.memory, source, name=name)
        self.program_info = info
        return info

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------
    def run(self, error_handler: Optional[ErrorHandler] = None) -> RunResult:
        return self.scheduler.start(error_handler)

    def stop(self, reason: str = "") -> None:
        self.scheduler.stop(reason)

    def step(self) -> None:
        """Run a single cycle outside :meth:`run`; errors propagate."""

        self.scheduler.run_cycle()
