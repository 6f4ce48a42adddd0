"""CHIP-8 interpreter core."""

from __future__ import annotations

import random
from typing import Optional

from chip8vm.cpu.decoder import Instruction, decode, fetch
from chip8vm.cpu.instructions import RandomSource
from chip8vm.cpu.state import MachineState, MachineView


class Chip8CPU:
    """Fetch-decode-execute engine operating on a :class:`MachineState`."""

    def __init__(self, state: Optional[MachineState] = None, *, rng: Optional[RandomSource] = None) -> None:
        self.state = state if state is not None else MachineState()
        self.rng: RandomSource = rng if rng is not None else random.Random()
        self.last_instruction: Optional[Instruction] = None

    @property
    def view(self) -> MachineView:
        return self.state.view()

    def execute_cycle(self) -> Instruction:
        """Run exactly one instruction.

        Decoding happens before any state is touched, so an
        :class:`~chip8vm.cpu.errors.InvalidOpcode` leaves the machine as it
        was before the fetch.
        """

        state = self.state
        opcode = fetch(state.memory, state.pc)
        instruction = decode(opcode)
        instruction.handler(state, instruction, self.rng)
        state.opcode = opcode
        self.last_instruction = instruction
        return instruction

    def tick_timers(self) -> bool:
        """Decrement both timers once; return True when the sound timer expires."""

        state = self.state
        if state.delay_timer > 0:
            state.delay_timer -= 1
        expired = False
        if state.sound_timer > 0:
            expired = state.sound_timer == 1
            state.sound_timer -= 1
        return expired

    def set_keys(self, keys) -> None:
        """Copy a 16-entry key snapshot into the keypad."""

        values = [bool(value) for value in keys]
        if len(values) != len(self.state.keypad):
            raise ValueError("key state must have 16 entries")
        self.state.keypad[:] = values
