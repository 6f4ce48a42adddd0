"""Instruction fetch and nibble-based dispatch."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional

from chip8vm.cpu import instructions as ops
from chip8vm.cpu.errors import InvalidOpcode
from chip8vm.memory import Addressable

Handler = Callable[..., None]


@dataclass(frozen=True)
class Instruction:
    """Decoded instruction word with its operand fields."""

    opcode: int
    handler: Handler
    mnemonic: str

    @property
    def x(self) -> int:
        return (self.opcode & 0x0F00) >> 8

    @property
    def y(self) -> int:
        return (self.opcode & 0x00F0) >> 4

    @property
    def n(self) -> int:
        return self.opcode & 0x000F

    @property
    def kk(self) -> int:
        return self.opcode & 0x00FF

    @property
    def nnn(self) -> int:
        return self.opcode & 0x0FFF


# Group 0x0 is keyed by the low nibble, groups 0xE/0xF by the low byte.
_SYSTEM_TABLE: Dict[int, tuple[Handler, str]] = {
    0x0: (ops.cls, "CLS"),
    0xE: (ops.ret, "RET"),
}

_ARITHMETIC_TABLE: Dict[int, tuple[Handler, str]] = {
    0x0: (ops.ld_reg, "LD Vx, Vy"),
    0x1: (ops.or_reg, "OR Vx, Vy"),
    0x2: (ops.and_reg, "AND Vx, Vy"),
    0x3: (ops.xor_reg, "XOR Vx, Vy"),
    0x4: (ops.add_reg, "ADD Vx, Vy"),
    0x5: (ops.sub_reg, "SUB Vx, Vy"),
    0x6: (ops.shr, "SHR Vx"),
    0x7: (ops.subn, "SUBN Vx, Vy"),
    0xE: (ops.shl, "SHL Vx"),
}

_KEY_TABLE: Dict[int, tuple[Handler, str]] = {
    0x9E: (ops.skp, "SKP Vx"),
    0xA1: (ops.sknp, "SKNP Vx"),
}

_MISC_TABLE: Dict[int, tuple[Handler, str]] = {
    0x07: (ops.ld_vx_dt, "LD Vx, DT"),
    0x0A: (ops.ld_vx_k, "LD Vx, K"),
    0x15: (ops.ld_dt_vx, "LD DT, Vx"),
    0x18: (ops.ld_st_vx, "LD ST, Vx"),
    0x1E: (ops.add_i, "ADD I, Vx"),
    0x29: (ops.ld_f, "LD F, Vx"),
    0x33: (ops.ld_b, "LD B, Vx"),
    0x55: (ops.ld_mem_vx, "LD [I], Vx"),
    0x65: (ops.ld_vx_mem, "LD Vx, [I]"),
}

_DIRECT_TABLE: Dict[int, tuple[Handler, str]] = {
    0x1: (ops.jp, "JP nnn"),
    0x2: (ops.call, "CALL nnn"),
    0x3: (ops.se_byte, "SE Vx, kk"),
    0x4: (ops.sne_byte, "SNE Vx, kk"),
    0x6: (ops.ld_byte, "LD Vx, kk"),
    0x7: (ops.add_byte, "ADD Vx, kk"),
    0xA: (ops.ld_i, "LD I, nnn"),
    0xB: (ops.jp_v0, "JP V0, nnn"),
    0xC: (ops.rnd, "RND Vx, kk"),
    0xD: (ops.drw, "DRW Vx, Vy, n"),
}

# Register compare groups only define a zero low nibble.
_REGISTER_COMPARE_TABLE: Dict[int, tuple[Handler, str]] = {
    0x5: (ops.se_reg, "SE Vx, Vy"),
    0x9: (ops.sne_reg, "SNE Vx, Vy"),
}


def fetch(memory: Addressable, pc: int) -> int:
    """Read the big-endian instruction word at ``pc``."""

    return (memory.load8(pc) << 8) | memory.load8(pc + 1)


def _lookup(opcode: int) -> Optional[tuple[Handler, str]]:
    group = opcode >> 12
    if group == 0x0:
        return _SYSTEM_TABLE.get(opcode & 0x000F)
    if group == 0x8:
        return _ARITHMETIC_TABLE.get(opcode & 0x000F)
    if group == 0xE:
        return _KEY_TABLE.get(opcode & 0x00FF)
    if group == 0xF:
        return _MISC_TABLE.get(opcode & 0x00FF)
    if group in _REGISTER_COMPARE_TABLE:
        if opcode & 0x000F:
            return None
        return _REGISTER_COMPARE_TABLE[group]
    return _DIRECT_TABLE.get(group)


def decode(opcode: int) -> Instruction:
    """Map an instruction word to exactly one handler.

    Raises :class:`InvalidOpcode` for words that match no pattern.
    """

    entry = _lookup(opcode & 0xFFFF)
    if entry is None:
        raise InvalidOpcode(opcode)
    handler, mnemonic = entry
    return Instruction(opcode=opcode, handler=handler, mnemonic=mnemonic)


__all__ = ["Instruction", "decode", "fetch"]
