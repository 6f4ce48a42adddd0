"""CHIP-8 machine state and its read-only projection."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple

from chip8vm.memory import Memory

MEMORY_SIZE = 0x1000
PROGRAM_START = 0x200
MAX_ROM_SIZE = MEMORY_SIZE - PROGRAM_START
SCREEN_WIDTH = 64
SCREEN_HEIGHT = 32
FRAMEBUFFER_SIZE = SCREEN_WIDTH * SCREEN_HEIGHT
STACK_SIZE = 16
REGISTER_COUNT = 16
KEY_COUNT = 16
FONT_GLYPH_SIZE = 5

FONTSET = bytes(
    [
        0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
        0x20, 0x60, 0x20, 0x20, 0x70,  # 1
        0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
        0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
        0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
        0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
        0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
        0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
        0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
        0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
        0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
        0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
        0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
        0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
        0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
        0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
    ]
)


def _new_memory() -> Memory:
    memory = Memory(MEMORY_SIZE)
    memory.write_block(0x000, FONTSET)
    return memory


@dataclass
class MachineState:
    """Mutable CHIP-8 machine record.

    Only the CPU, the instruction handlers and the scheduler write to it.
    Everything else reads through :class:`MachineView`.
    """

    memory: Memory = field(default_factory=_new_memory)
    v: bytearray = field(default_factory=lambda: bytearray(REGISTER_COUNT))
    i: int = 0
    pc: int = PROGRAM_START
    stack: List[int] = field(default_factory=lambda: [0] * STACK_SIZE)
    sp: int = 0
    delay_timer: int = 0
    sound_timer: int = 0
    framebuffer: bytearray = field(default_factory=lambda: bytearray(FRAMEBUFFER_SIZE))
    keypad: List[bool] = field(default_factory=lambda: [False] * KEY_COUNT)
    opcode: int = 0
    draw_flag: bool = False
    stop_flag: bool = False

    def view(self) -> "MachineView":
        return MachineView(self)


class MachineView:
    """Read-only window onto a :class:`MachineState`.

    Buffers are exposed as read-only ``memoryview`` objects and small
    collections as tuples, so holders of a view cannot mutate the machine.
    """

    __slots__ = ("_state",)

    def __init__(self, state: MachineState) -> None:
        self._state = state

    @property
    def pc(self) -> int:
        return self._state.pc

    @property
    def i(self) -> int:
        return self._state.i

    @property
    def sp(self) -> int:
        return self._state.sp

    @property
    def opcode(self) -> int:
        return self._state.opcode

    @property
    def v(self) -> Tuple[int, ...]:
        return tuple(self._state.v)

    @property
    def stack(self) -> Tuple[int, ...]:
        return tuple(self._state.stack[: self._state.sp])

    @property
    def delay_timer(self) -> int:
        return self._state.delay_timer

    @property
    def sound_timer(self) -> int:
        return self._state.sound_timer

    @property
    def keypad(self) -> Tuple[bool, ...]:
        return tuple(self._state.keypad)

    @property
    def draw_flag(self) -> bool:
        return self._state.draw_flag

    @property
    def memory(self) -> memoryview:
        return self._state.memory.view()

    @property
    def framebuffer(self) -> memoryview:
        return memoryview(self._state.framebuffer).toreadonly()

    def peek16(self, address: int) -> int:
        """Return the instruction word at ``address`` without side effects."""

        return self._state.memory.load16(address)

    def pixel(self, x: int, y: int) -> int:
        return self._state.framebuffer[x + y * SCREEN_WIDTH]
