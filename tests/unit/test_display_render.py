"""Tests for Chip8Display rendering."""

import pytest

from chip8vm.chip8.display import Chip8Display
from chip8vm.system.platform import render_text


def test_render_pixels_maps_cells_to_colors() -> None:
    display = Chip8Display()
    display.set_colors(0x101010, 0x00FF00)
    cells = bytearray(64 * 32)
    cells[0] = 1
    cells[65] = 1
    display.update(cells)

    pixels = display.render_pixels()

    assert len(pixels) == 32 and len(pixels[0]) == 64
    assert pixels[0][0] == 0x00FF00
    assert pixels[1][1] == 0x00FF00
    assert pixels[0][1] == 0x101010
    assert display.frame_count == 1


def test_update_rejects_wrong_size() -> None:
    display = Chip8Display()
    with pytest.raises(ValueError):
        display.update(bytes(10))


def test_render_text_rows() -> None:
    cells = bytearray(64 * 32)
    cells[63] = 1
    cells[64] = 1
    text = render_text(cells)
    lines = text.splitlines()
    assert len(lines) == 32
    assert lines[0] == "." * 63 + "#"
    assert lines[1] == "#" + "." * 63
    assert Chip8Display(cells=cells).render_text(on="X", off=" ").splitlines()[1].startswith("X ")


def test_dimensions_are_fixed_class_constants() -> None:
    assert (Chip8Display.WIDTH, Chip8Display.HEIGHT) == (64, 32)
    with pytest.raises(TypeError):
        Chip8Display(WIDTH=10)
