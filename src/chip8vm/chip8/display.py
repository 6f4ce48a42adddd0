"""CHIP-8 display model."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Iterable, List

from chip8vm.cpu.state import FRAMEBUFFER_SIZE, SCREEN_HEIGHT, SCREEN_WIDTH
from chip8vm.system.platform import render_text


@dataclass
class Chip8Display:
    """Holds the last presented frame and turns it into pixels."""

    WIDTH: ClassVar[int] = SCREEN_WIDTH
    HEIGHT: ClassVar[int] = SCREEN_HEIGHT

    color_off: int = 0x000000
    color_on: int = 0xFFFFFF
    cells: bytearray = field(default_factory=lambda: bytearray(FRAMEBUFFER_SIZE))
    frame_count: int = 0

    def update(self, framebuffer: Iterable[int]) -> None:
        values = bytes(framebuffer)
        if len(values) != FRAMEBUFFER_SIZE:
            raise ValueError("framebuffer must be 2048 cells")
        self.cells[:] = values
        self.frame_count += 1

    def set_colors(self, off: int, on: int) -> None:
        self.color_off = off & 0xFFFFFF
        self.color_on = on & 0xFFFFFF

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def render_pixels(self) -> List[List[int]]:
        pixels: List[List[int]] = []
        for y in range(self.HEIGHT):
            row = self.cells[y * self.WIDTH:(y + 1) * self.WIDTH]
            pixels.append([self.color_on if cell else self.color_off for cell in row])
        return pixels

    def render_text(self, *, on: str = "#", off: str = ".") -> str:
        return render_text(self.cells, on=on, off=off)

    def render_pygame_surface(self, scaling: int = 1):
        """Render the current frame into a pygame Surface.

        Parameters
        ----------
        scaling:
            Integer scale factor applied to both axes.

        Returns
        -------
        pygame.Surface
            RGB surface representing the current screen.

        Raises
        ------
        RuntimeError
            If pygame is not available.
        """

        if scaling <= 0:
            raise ValueError("scaling factor must be positive")

        try:
            import pygame  # type: ignore
        except Exception as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("pygame is required for render_pygame_surface") from exc

        surface = pygame.Surface((self.WIDTH * scaling, self.HEIGHT * scaling))
        surface.fill(self.color_off)
        for index, cell in enumerate(self.cells):
            if not cell:
                continue
            x = index % self.WIDTH
            y = index // self.WIDTH
            surface.fill(self.color_on, (x * scaling, y * scaling, scaling, scaling))
        return surface
