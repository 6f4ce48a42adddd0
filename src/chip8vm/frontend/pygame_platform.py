"""pygame implementation of the CHIP-8 platform contract."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Mapping, Optional, Sequence

from chip8vm.chip8.display import Chip8Display
from chip8vm.chip8.keyboard import Chip8Keypad
from chip8vm.chip8.sound import Chip8Beeper
from chip8vm.cpu.state import KEY_COUNT

if TYPE_CHECKING:  # pragma: no cover - typing only
    from chip8vm.system.scheduler import Scheduler

BASE_CAPTION = "CHIP-8"

# Host keys (pygame key names) for the hex keypad:
#   1 2 3 4      1 2 3 C
#   q w e r  ->  4 5 6 D
#   a s d f      7 8 9 E
#   z x c v      A 0 B F
DEFAULT_KEYMAP: Dict[str, int] = {
    "1": 0x1,
    "2": 0x2,
    "3": 0x3,
    "4": 0xC,
    "q": 0x4,
    "w": 0x5,
    "e": 0x6,
    "r": 0xD,
    "a": 0x7,
    "s": 0x8,
    "d": 0x9,
    "f": 0xE,
    "z": 0xA,
    "x": 0x0,
    "c": 0xB,
    "v": 0xF,
}

# pygame's event queue is drained once every EVENT_INTERVAL polls.
EVENT_INTERVAL = 16


def load_keymap(path: str | Path) -> Dict[str, int]:
    """Read a JSON object mapping pygame key names to hex key indices."""

    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("keymap must be a JSON object")
    keymap: Dict[str, int] = {}
    for name, value in data.items():
        key = int(value, 16) if isinstance(value, str) else int(value)
        if not (0 <= key < KEY_COUNT):
            raise ValueError(f"key index out of range for '{name}': {value}")
        keymap[str(name)] = key
    return keymap


def write_keymap_template(path: str | Path) -> None:
    template = {name: f"{key:X}" for name, key in DEFAULT_KEYMAP.items()}
    Path(path).write_text(json.dumps(template, indent=2), encoding="utf-8")


class PygamePlatform:
    """Window, keyboard and beeper backed by pygame."""

    def __init__(
        self,
        *,
        scale: int = 10,
        keymap: Optional[Mapping[str, int]] = None,
        enable_audio: bool = True,
        caption: str = BASE_CAPTION,
        event_interval: int = EVENT_INTERVAL,
    ) -> None:
        if scale <= 0:
            raise ValueError("scale must be positive")
        self.scale = scale
        self.caption = caption
        self.keymap: Dict[str, int] = dict(keymap if keymap is not None else DEFAULT_KEYMAP)
        self.display = Chip8Display()
        self.keypad = Chip8Keypad()
        self.beeper = Chip8Beeper(enable_audio=enable_audio)
        self.event_interval = max(1, event_interval)
        self.quit_requested = False
        self._scheduler: Optional["Scheduler"] = None
        self._screen = None
        self._key_codes: Dict[int, int] = {}
        self._polls = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def attach(self, scheduler: "Scheduler") -> None:
        """Let window-close and ESC stop the given scheduler."""

        self._scheduler = scheduler

    def open(self) -> None:
        try:
            import pygame  # type: ignore
        except Exception as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("pygame is required for the windowed frontend") from exc

        pygame.init()
        self._screen = pygame.display.set_mode(
            (self.display.WIDTH * self.scale, self.display.HEIGHT * self.scale)
        )
        pygame.display.set_caption(self.caption)
        self._key_codes = {pygame.key.key_code(name): key for name, key in self.keymap.items()}

    def close(self) -> None:
        import pygame  # type: ignore

        self.beeper.close()
        pygame.quit()
        self._screen = None

    # ------------------------------------------------------------------
    # Platform contract
    # ------------------------------------------------------------------
    def render_frame(self, framebuffer: memoryview) -> None:
        import pygame  # type: ignore

        self.display.update(framebuffer)
        if self._screen is None:
            return
        surface = self.display.render_pygame_surface(self.scale)
        self._screen.blit(surface, (0, 0))
        pygame.display.flip()

    def poll_keys(self) -> Sequence[bool]:
        self._polls += 1
        if self._polls % self.event_interval == 0:
            import pygame  # type: ignore

            for event in pygame.event.get():
                self.handle_event(event)
        return self.keypad.get_keys()

    def beep(self) -> None:
        self.beeper.beep()

    # ------------------------------------------------------------------
    # Event handling
    # ------------------------------------------------------------------
    def handle_event(self, event) -> None:
        import pygame  # type: ignore

        if event.type == pygame.QUIT:
            self.request_quit()
            return
        if event.type == pygame.KEYDOWN:
            if event.key == pygame.K_ESCAPE:
                self.request_quit()
                return
            mapped = self._key_codes.get(event.key)
            if mapped is not None:
                self.keypad.press(mapped)
            return
        if event.type == pygame.KEYUP:
            mapped = self._key_codes.get(event.key)
            if mapped is not None:
                self.keypad.release(mapped)

    def request_quit(self) -> None:
        self.quit_requested = True
        if self._scheduler is not None:
            self._scheduler.stop("window closed")
