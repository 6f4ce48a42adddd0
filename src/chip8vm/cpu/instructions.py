"""CHIP-8 instruction semantics.

Every handler receives the machine state, the decoded instruction and the
random source, and applies the complete effect of one instruction including
the program counter update. Handlers that can fault check their
preconditions before touching the state.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Protocol

from chip8vm.cpu.errors import SpriteOutOfBounds, StackOverflow, StackUnderflow
from chip8vm.cpu.state import (
    FONT_GLYPH_SIZE,
    FRAMEBUFFER_SIZE,
    KEY_COUNT,
    SCREEN_WIDTH,
    STACK_SIZE,
    MachineState,
)

if TYPE_CHECKING:  # pragma: no cover - typing only
    from chip8vm.cpu.decoder import Instruction

VF = 0xF
BYTE_MASK = 0xFF
WORD_MASK = 0xFFFF
ADDRESS_LIMIT = 0xFFF
SPRITE_WIDTH = 8


class RandomSource(Protocol):
    def randint(self, a: int, b: int) -> int:
        ...


def _next(state: MachineState) -> None:
    state.pc = (state.pc + 2) & WORD_MASK


def _skip_if(state: MachineState, condition: bool) -> None:
    state.pc = (state.pc + (4 if condition else 2)) & WORD_MASK


def _check_block(state: MachineState, length: int) -> None:
    """Raise ``IndexError`` unless ``memory[I:I+length]`` lies inside memory."""

    if state.i + length > len(state.memory):
        raise IndexError(f"{length} bytes at I={state.i:#05x} run past the end of memory")


# ----------------------------------------------------------------------
# 0x0 / 0x1 / 0x2: screen and flow control
# ----------------------------------------------------------------------
def cls(state: MachineState, ins: "Instruction", rng: RandomSource) -> None:
    """00E0 - clear the display."""

    state.framebuffer[:] = bytes(FRAMEBUFFER_SIZE)
    state.draw_flag = True
    _next(state)


def ret(state: MachineState, ins: "Instruction", rng: RandomSource) -> None:
    """00EE - return from a subroutine to the instruction after the call."""

    if state.sp == 0:
        raise StackUnderflow(state.pc)
    state.sp -= 1
    state.pc = (state.stack[state.sp] + 2) & WORD_MASK


def jp(state: MachineState, ins: "Instruction", rng: RandomSource) -> None:
    """1nnn - jump to nnn."""

    state.pc = ins.nnn


def call(state: MachineState, ins: "Instruction", rng: RandomSource) -> None:
    """2nnn - push the current PC and jump to nnn."""

    if state.sp >= STACK_SIZE:
        raise StackOverflow(state.pc)
    state.stack[state.sp] = state.pc
    state.sp += 1
    state.pc = ins.nnn


# ----------------------------------------------------------------------
# 0x3 - 0x7, 0x9: skips and immediates
# ----------------------------------------------------------------------
def se_byte(state: MachineState, ins: "Instruction", rng: RandomSource) -> None:
    _skip_if(state, state.v[ins.x] == ins.kk)


def sne_byte(state: MachineState, ins: "Instruction", rng: RandomSource) -> None:
    _skip_if(state, state.v[ins.x] != ins.kk)


def se_reg(state: MachineState, ins: "Instruction", rng: RandomSource) -> None:
    _skip_if(state, state.v[ins.x] == state.v[ins.y])


def sne_reg(state: MachineState, ins: "Instruction", rng: RandomSource) -> None:
    _skip_if(state, state.v[ins.x] != state.v[ins.y])


def ld_byte(state: MachineState, ins: "Instruction", rng: RandomSource) -> None:
    state.v[ins.x] = ins.kk
    _next(state)


def add_byte(state: MachineState, ins: "Instruction", rng: RandomSource) -> None:
    # No carry flag for the immediate form.
    state.v[ins.x] = (state.v[ins.x] + ins.kk) & BYTE_MASK
    _next(state)


# ----------------------------------------------------------------------
# 0x8: register arithmetic
# ----------------------------------------------------------------------
def ld_reg(state: MachineState, ins: "Instruction", rng: RandomSource) -> None:
    state.v[ins.x] = state.v[ins.y]
    _next(state)


def or_reg(state: MachineState, ins: "Instruction", rng: RandomSource) -> None:
    state.v[ins.x] |= state.v[ins.y]
    _next(state)


def and_reg(state: MachineState, ins: "Instruction", rng: RandomSource) -> None:
    state.v[ins.x] &= state.v[ins.y]
    _next(state)


def xor_reg(state: MachineState, ins: "Instruction", rng: RandomSource) -> None:
    state.v[ins.x] ^= state.v[ins.y]
    _next(state)


# The flag is written first and the result is computed from the registers
# afterwards, so an operand that is VF itself sees the new flag.
def add_reg(state: MachineState, ins: "Instruction", rng: RandomSource) -> None:
    """8xy4 - VF = carry of Vx + Vy, then Vx += Vy."""

    v = state.v
    v[VF] = 1 if v[ins.y] > BYTE_MASK - v[ins.x] else 0
    v[ins.x] = (v[ins.x] + v[ins.y]) & BYTE_MASK
    _next(state)


def sub_reg(state: MachineState, ins: "Instruction", rng: RandomSource) -> None:
    """8xy5 - VF = NOT borrow, then Vx -= Vy."""

    v = state.v
    v[VF] = 1 if v[ins.x] > v[ins.y] else 0
    v[ins.x] = (v[ins.x] - v[ins.y]) & BYTE_MASK
    _next(state)


def shr(state: MachineState, ins: "Instruction", rng: RandomSource) -> None:
    v = state.v
    v[VF] = v[ins.x] & 0x01
    v[ins.x] >>= 1
    _next(state)


def subn(state: MachineState, ins: "Instruction", rng: RandomSource) -> None:
    """8xy7 - VF = 1 when Vx <= Vy, then Vx = Vy - Vx."""

    v = state.v
    v[VF] = 1 if v[ins.x] <= v[ins.y] else 0
    v[ins.x] = (v[ins.y] - v[ins.x]) & BYTE_MASK
    _next(state)


def shl(state: MachineState, ins: "Instruction", rng: RandomSource) -> None:
    v = state.v
    v[VF] = v[ins.x] >> 7
    v[ins.x] = (v[ins.x] << 1) & BYTE_MASK
    _next(state)


# ----------------------------------------------------------------------
# 0xA - 0xD: index register, computed jump, random, sprites
# ----------------------------------------------------------------------
def ld_i(state: MachineState, ins: "Instruction", rng: RandomSource) -> None:
    state.i = ins.nnn
    _next(state)


def jp_v0(state: MachineState, ins: "Instruction", rng: RandomSource) -> None:
    state.pc = (state.v[0] + ins.nnn) & WORD_MASK


def rnd(state: MachineState, ins: "Instruction", rng: RandomSource) -> None:
    state.v[ins.x] = rng.randint(0, BYTE_MASK) & ins.kk
    _next(state)


def drw(state: MachineState, ins: "Instruction", rng: RandomSource) -> None:
    """Dxyn - XOR an n-row sprite from memory[I] onto the screen at (Vx, Vy).

    Coordinates are neither wrapped nor clipped: the pixel index is
    ``x + col + (y + row) * 64``, so a sprite crossing the right edge
    continues on the next row. VF is set when any lit pixel is erased.
    """

    xpos = state.v[ins.x]
    ypos = state.v[ins.y]
    _check_block(state, ins.n)
    rows = state.memory.read_block(state.i, ins.n)

    targets: List[int] = []
    for row, bits in enumerate(rows):
        for col in range(SPRITE_WIDTH):
            if bits & (0x80 >> col):
                index = xpos + col + (ypos + row) * SCREEN_WIDTH
                if index >= FRAMEBUFFER_SIZE:
                    raise SpriteOutOfBounds(index)
                targets.append(index)

    collision = 0
    framebuffer = state.framebuffer
    for index in targets:
        if framebuffer[index]:
            collision = 1
        framebuffer[index] ^= 1
    state.v[VF] = collision
    state.draw_flag = True
    _next(state)


# ----------------------------------------------------------------------
# 0xE: keypad
# ----------------------------------------------------------------------
def skp(state: MachineState, ins: "Instruction", rng: RandomSource) -> None:
    _skip_if(state, state.keypad[state.v[ins.x]])


def sknp(state: MachineState, ins: "Instruction", rng: RandomSource) -> None:
    _skip_if(state, not state.keypad[state.v[ins.x]])


# ----------------------------------------------------------------------
# 0xF: timers, keypad wait, index arithmetic, memory transfer
# ----------------------------------------------------------------------
def ld_vx_dt(state: MachineState, ins: "Instruction", rng: RandomSource) -> None:
    state.v[ins.x] = state.delay_timer
    _next(state)


def ld_vx_k(state: MachineState, ins: "Instruction", rng: RandomSource) -> None:
    """Fx0A - wait for a key.

    With no key down the PC is left untouched, so the scheduler runs this
    instruction again on the next cycle. With several keys down the highest
    index is stored.
    """

    pressed = [key for key in range(KEY_COUNT) if state.keypad[key]]
    if not pressed:
        return
    state.v[ins.x] = pressed[-1]
    _next(state)


def ld_dt_vx(state: MachineState, ins: "Instruction", rng: RandomSource) -> None:
    state.delay_timer = state.v[ins.x]
    _next(state)


def ld_st_vx(state: MachineState, ins: "Instruction", rng: RandomSource) -> None:
    state.sound_timer = state.v[ins.x]
    _next(state)


def add_i(state: MachineState, ins: "Instruction", rng: RandomSource) -> None:
    """Fx1E - I += Vx, VF = 1 when the sum leaves the 12-bit address range."""

    total = state.i + state.v[ins.x]
    state.v[VF] = 1 if total > ADDRESS_LIMIT else 0
    state.i = total & WORD_MASK
    _next(state)


def ld_f(state: MachineState, ins: "Instruction", rng: RandomSource) -> None:
    state.i = state.v[ins.x] * FONT_GLYPH_SIZE
    _next(state)


def ld_b(state: MachineState, ins: "Instruction", rng: RandomSource) -> None:
    _check_block(state, 3)
    value = state.v[ins.x]
    state.memory.write_block(state.i, (value // 100, (value // 10) % 10, value % 10))
    _next(state)


def ld_mem_vx(state: MachineState, ins: "Instruction", rng: RandomSource) -> None:
    """Fx55 - store V0..Vx at memory[I..], then I += x + 1."""

    count = ins.x + 1
    _check_block(state, count)
    state.memory.write_block(state.i, state.v[:count])
    state.i = (state.i + count) & WORD_MASK
    _next(state)


def ld_vx_mem(state: MachineState, ins: "Instruction", rng: RandomSource) -> None:
    """Fx65 - load V0..Vx from memory[I..], then I += x + 1."""

    count = ins.x + 1
    _check_block(state, count)
    state.v[:count] = state.memory.read_block(state.i, count)
    state.i = (state.i + count) & WORD_MASK
    _next(state)
