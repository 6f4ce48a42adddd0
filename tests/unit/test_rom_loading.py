"""Program image loading."""

from __future__ import annotations

import pytest

from chip8vm.chip8.machine import Chip8Machine
from chip8vm.cpu.state import FONTSET, MAX_ROM_SIZE, MachineState
from chip8vm.emulator.file import ProgramLoadError, RomTooLarge, load_rom


def test_load_copies_bytes_to_program_area() -> None:
    state = MachineState()
    before = state.memory.read_block(0, 0x1000)
    image = bytes(range(256)) * 8

    info = load_rom(state.memory, image)

    after = state.memory.read_block(0, 0x1000)
    assert after[0x200:0x200 + len(image)] == image
    assert after[:0x200] == before[:0x200]
    assert after[0x200 + len(image):] == before[0x200 + len(image):]
    assert after[: len(FONTSET)] == FONTSET
    assert info.size == len(image)
    assert info.start == 0x200
    assert info.end == 0x200 + len(image) - 1
    assert info.name == "ROM"


def test_maximum_size_image_fills_memory() -> None:
    state = MachineState()
    image = b"\x1F" * MAX_ROM_SIZE
    load_rom(state.memory, image)
    assert state.memory.read_block(0x200, MAX_ROM_SIZE) == image


def test_oversized_image_is_rejected_without_writing() -> None:
    state = MachineState()
    state.memory.store8(0x200, 0xAB)
    before = state.memory.read_block(0, 0x1000)

    with pytest.raises(RomTooLarge) as excinfo:
        load_rom(state.memory, b"\x1F" * 5000)

    assert excinfo.value.max_size == 3584
    assert excinfo.value.actual_size == 5000
    assert isinstance(excinfo.value, ProgramLoadError)
    assert state.memory.read_block(0, 0x1000) == before


def test_load_from_file_uses_stem_as_name(tmp_path) -> None:
    rom_path = tmp_path / "pong.ch8"
    rom_path.write_bytes(b"\x00\xE0\x12\x02")

    machine = Chip8Machine()
    info = machine.load_program(rom_path)

    assert info.name == "PONG"
    assert info.path == rom_path
    assert machine.memory.read_block(0x200, 4) == b"\x00\xE0\x12\x02"
    assert machine.program_info is info


def test_missing_file_propagates_os_error(tmp_path) -> None:
    machine = Chip8Machine()
    with pytest.raises(FileNotFoundError):
        machine.load_program(tmp_path / "missing.ch8")
