"""ROM image loading for the CHIP-8 machine."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from chip8vm.cpu.state import MAX_ROM_SIZE, PROGRAM_START
from chip8vm.memory import Memory

RomSource = Union[bytes, bytearray, memoryview, str, Path]


class ProgramLoadError(RuntimeError):
    """Raised when a program image cannot be placed in memory."""


class RomTooLarge(ProgramLoadError):
    def __init__(self, max_size: int, actual_size: int) -> None:
        super().__init__(f"ROM is {actual_size} bytes, limit is {max_size}")
        self.max_size = max_size
        self.actual_size = actual_size


@dataclass
class ProgramInfo:
    name: str
    size: int
    start: int = PROGRAM_START
    path: Optional[Path] = None

    @property
    def end(self) -> int:
        """Last address occupied by the image (``start - 1`` when empty)."""

        return self.start + self.size - 1


def read_rom(source: RomSource) -> tuple[bytes, Optional[Path]]:
    """Return the raw image bytes and, for files, their path.

    I/O errors from reading a file propagate unchanged.
    """

    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source), None
    file_path = Path(source)
    return file_path.read_bytes(), file_path


def load_rom(memory: Memory, source: RomSource, *, name: str = "") -> ProgramInfo:
    """Copy a flat program image to 0x200.

    The size is checked before memory is touched, so an oversized image
    raises :class:`RomTooLarge` and leaves memory unchanged.
    """

    data, file_path = read_rom(source)
    if len(data) > MAX_ROM_SIZE:
        raise RomTooLarge(MAX_ROM_SIZE, len(data))
    memory.write_block(PROGRAM_START, data)
    if not name:
        name = file_path.stem.upper() if file_path is not None else "ROM"
    return ProgramInfo(name=name, size=len(data), path=file_path)
