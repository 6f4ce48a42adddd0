"""Headless execution helpers for CHIP-8 programs."""

from __future__ import annotations

from typing import Iterable, Tuple

from chip8vm.chip8.machine import Chip8Machine
from chip8vm.debug.observers import CycleLimit, ObserverChain, StallDetector
from chip8vm.system.platform import HeadlessPlatform
from chip8vm.system.scheduler import RunResult


def program_bytes(*words: int) -> bytes:
    """Pack 16-bit instruction words big-endian."""

    return b"".join((word & 0xFFFF).to_bytes(2, "big") for word in words)


def run_program(
    program: bytes,
    *,
    keys: Iterable[int] = (),
    max_cycles: int = 10_000,
    seed: int = 0,
) -> Tuple[Chip8Machine, HeadlessPlatform, RunResult]:
    """Run ``program`` until its PC stalls or ``max_cycles`` is reached."""

    platform = HeadlessPlatform()
    for key in keys:
        platform.press(key)
    observer = ObserverChain([StallDetector(), CycleLimit(max_cycles)])
    machine = Chip8Machine(platform, observer=observer, seed=seed)
    machine.load_program(program, name="TEST")
    result = machine.run()
    return machine, platform, result
