"""Run-time faults raised by the CHIP-8 core."""

from __future__ import annotations


class Chip8Error(RuntimeError):
    """Base class for errors that end a run."""


class InvalidOpcode(Chip8Error):
    """Raised when an instruction word matches no known pattern."""

    def __init__(self, opcode: int) -> None:
        super().__init__(f"invalid opcode {opcode:#06x}")
        self.opcode = opcode


class StackOverflow(Chip8Error):
    def __init__(self, pc: int) -> None:
        super().__init__(f"call stack overflow at {pc:#05x}")
        self.pc = pc


class StackUnderflow(Chip8Error):
    def __init__(self, pc: int) -> None:
        super().__init__(f"return with empty call stack at {pc:#05x}")
        self.pc = pc


class SpriteOutOfBounds(Chip8Error):
    """Raised when a sprite row would land past the end of the framebuffer.

    Sprite coordinates are not wrapped; pixels past the right edge spill into
    the next row and only indices beyond the last cell are rejected.
    """

    def __init__(self, index: int) -> None:
        super().__init__(f"sprite pixel index {index} outside framebuffer")
        self.index = index


__all__ = [
    "Chip8Error",
    "InvalidOpcode",
    "StackOverflow",
    "StackUnderflow",
    "SpriteOutOfBounds",
]
