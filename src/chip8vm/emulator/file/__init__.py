"""File loading helpers for the CHIP-8 machine."""

from chip8vm.emulator.file.program import (
    ProgramInfo,
    ProgramLoadError,
    RomTooLarge,
    load_rom,
    read_rom,
)

__all__ = [
    "ProgramInfo",
    "ProgramLoadError",
    "RomTooLarge",
    "load_rom",
    "read_rom",
]
