"""Contracts between the CHIP-8 core and its host."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, List, Protocol, Sequence

from chip8vm.cpu.state import KEY_COUNT, SCREEN_HEIGHT, SCREEN_WIDTH, MachineView

if TYPE_CHECKING:  # pragma: no cover - typing only
    from chip8vm.system.scheduler import Scheduler

logger = logging.getLogger(__name__)


class PlatformIntegration(Protocol):
    """Host services consumed by the scheduler once per cycle."""

    def render_frame(self, framebuffer: memoryview) -> None:
        """Present a 64x32 row-major grid of 0/1 cells."""
        ...

    def poll_keys(self) -> Sequence[bool]:
        """Return the current down state of the 16 hex keys."""
        ...

    def beep(self) -> None:
        ...


class StepObserver(Protocol):
    """Hook invoked before every cycle; may call ``scheduler.stop()``."""

    def on_before_cycle(self, view: MachineView, scheduler: "Scheduler") -> None:
        ...


def render_text(framebuffer: Iterable[int], *, on: str = "#", off: str = ".") -> str:
    """Format a framebuffer as 32 lines of 64 characters."""

    cells = list(framebuffer)
    if len(cells) != SCREEN_WIDTH * SCREEN_HEIGHT:
        raise ValueError("framebuffer must have 2048 cells")
    lines = []
    for y in range(SCREEN_HEIGHT):
        row = cells[y * SCREEN_WIDTH:(y + 1) * SCREEN_WIDTH]
        lines.append("".join(on if cell else off for cell in row))
    return "\n".join(lines)


@dataclass
class HeadlessPlatform:
    """Platform that records frames and beeps instead of presenting them."""

    keys: List[bool] = field(default_factory=lambda: [False] * KEY_COUNT)
    frames: List[bytes] = field(default_factory=list)
    beeps: int = 0
    keep_frames: bool = True

    @property
    def last_frame(self) -> bytes | None:
        return self.frames[-1] if self.frames else None

    def press(self, key: int) -> None:
        if not (0 <= key < KEY_COUNT):
            raise ValueError("key out of range")
        self.keys[key] = True

    def release(self, key: int) -> None:
        if not (0 <= key < KEY_COUNT):
            raise ValueError("key out of range")
        self.keys[key] = False

    def render_frame(self, framebuffer: memoryview) -> None:
        frame = bytes(framebuffer)
        if self.keep_frames or not self.frames:
            self.frames.append(frame)
        else:
            self.frames[-1] = frame

    def poll_keys(self) -> Sequence[bool]:
        return list(self.keys)

    def beep(self) -> None:
        self.beeps += 1
        logger.debug("beep #%d", self.beeps)


__all__ = [
    "PlatformIntegration",
    "StepObserver",
    "HeadlessPlatform",
    "render_text",
]
