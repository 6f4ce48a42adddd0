"""Opcode fetch and dispatch tests."""

from __future__ import annotations

import pytest

from chip8vm.cpu import instructions as ops
from chip8vm.cpu.decoder import decode, fetch
from chip8vm.cpu.errors import InvalidOpcode
from chip8vm.memory import Memory


def test_fetch_combines_two_bytes_big_endian() -> None:
    memory = Memory(0x1000)
    memory.write_block(0x200, b"\xA2\x2A")
    assert fetch(memory, 0x200) == 0xA22A


def test_operand_fields() -> None:
    ins = decode(0xD4A7)
    assert ins.x == 0x4
    assert ins.y == 0xA
    assert ins.n == 0x7
    assert ins.kk == 0xA7
    assert ins.nnn == 0x4A7


@pytest.mark.parametrize(
    ("opcode", "handler"),
    [
        (0x00E0, ops.cls),
        (0x00EE, ops.ret),
        (0x1ABC, ops.jp),
        (0x2ABC, ops.call),
        (0x3122, ops.se_byte),
        (0x4122, ops.sne_byte),
        (0x5120, ops.se_reg),
        (0x6122, ops.ld_byte),
        (0x7122, ops.add_byte),
        (0x8120, ops.ld_reg),
        (0x8121, ops.or_reg),
        (0x8122, ops.and_reg),
        (0x8123, ops.xor_reg),
        (0x8124, ops.add_reg),
        (0x8125, ops.sub_reg),
        (0x8126, ops.shr),
        (0x8127, ops.subn),
        (0x812E, ops.shl),
        (0x9120, ops.sne_reg),
        (0xA123, ops.ld_i),
        (0xB123, ops.jp_v0),
        (0xC1FF, ops.rnd),
        (0xD125, ops.drw),
        (0xE19E, ops.skp),
        (0xE1A1, ops.sknp),
        (0xF107, ops.ld_vx_dt),
        (0xF10A, ops.ld_vx_k),
        (0xF115, ops.ld_dt_vx),
        (0xF118, ops.ld_st_vx),
        (0xF11E, ops.add_i),
        (0xF129, ops.ld_f),
        (0xF133, ops.ld_b),
        (0xF155, ops.ld_mem_vx),
        (0xF165, ops.ld_vx_mem),
    ],
)
def test_each_opcode_routes_to_one_handler(opcode: int, handler) -> None:
    assert decode(opcode).handler is handler


def test_group_zero_dispatches_on_low_nibble() -> None:
    assert decode(0x0000).handler is ops.cls
    assert decode(0x01EE).handler is ops.ret


@pytest.mark.parametrize(
    "opcode",
    [0x5001, 0x912F, 0x8008, 0x800F, 0x00E1, 0xE09F, 0xF000, 0xF0FF],
)
def test_unknown_words_raise_invalid_opcode(opcode: int) -> None:
    with pytest.raises(InvalidOpcode) as excinfo:
        decode(opcode)
    assert excinfo.value.opcode == opcode
