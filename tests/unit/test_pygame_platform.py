"""pygame platform tests with a stand-in pygame module."""

from __future__ import annotations

import json
from pathlib import Path
import sys
from types import SimpleNamespace

import pytest

from chip8vm.frontend.pygame_platform import (
    DEFAULT_KEYMAP,
    PygamePlatform,
    load_keymap,
    write_keymap_template,
)

QUIT, KEYDOWN, KEYUP = 256, 768, 769
K_ESCAPE = 27


class DummyPygame:
    QUIT = QUIT
    KEYDOWN = KEYDOWN
    KEYUP = KEYUP
    K_ESCAPE = K_ESCAPE

    def __init__(self) -> None:
        self.pending = []
        self.flips = 0
        self.quit_called = False
        self.caption = None
        self.display = SimpleNamespace(
            set_mode=lambda size: SimpleNamespace(size=size, blit=lambda surface, pos: None),
            set_caption=self._set_caption,
            flip=self._flip,
        )
        self.key = SimpleNamespace(key_code=lambda name: ord(name))
        self.event = SimpleNamespace(get=self._drain)

    def init(self) -> None:
        pass

    def quit(self) -> None:
        self.quit_called = True

    def _set_caption(self, caption: str) -> None:
        self.caption = caption

    def _flip(self) -> None:
        self.flips += 1

    def _drain(self):
        events, self.pending = self.pending, []
        return events


class RecordingScheduler:
    def __init__(self) -> None:
        self.reasons = []

    def stop(self, reason: str = "") -> None:
        self.reasons.append(reason)


def key_event(kind: int, key: int) -> SimpleNamespace:
    return SimpleNamespace(type=kind, key=key)


@pytest.fixture
def dummy_pygame(monkeypatch) -> DummyPygame:
    dummy = DummyPygame()
    monkeypatch.setitem(sys.modules, "pygame", dummy)
    return dummy


def test_keymap_template_round_trip(tmp_path: Path) -> None:
    target = tmp_path / "keys.json"
    write_keymap_template(target)
    data = json.loads(target.read_text(encoding="utf-8"))
    assert data["4"] == "C"
    assert load_keymap(target) == DEFAULT_KEYMAP


def test_load_keymap_accepts_ints_and_rejects_out_of_range(tmp_path: Path) -> None:
    good = tmp_path / "good.json"
    good.write_text(json.dumps({"up": 2, "left": "4"}), encoding="utf-8")
    assert load_keymap(good) == {"up": 2, "left": 4}

    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"space": 16}), encoding="utf-8")
    with pytest.raises(ValueError):
        load_keymap(bad)

    not_object = tmp_path / "list.json"
    not_object.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_keymap(not_object)


def test_key_events_update_keypad(dummy_pygame: DummyPygame) -> None:
    platform = PygamePlatform(enable_audio=False, caption="CHIP-8 | TEST")
    platform.open()
    assert dummy_pygame.caption == "CHIP-8 | TEST"

    platform.handle_event(key_event(KEYDOWN, ord("w")))
    assert platform.keypad.is_pressed(0x5)
    platform.handle_event(key_event(KEYDOWN, ord("v")))
    platform.handle_event(key_event(KEYUP, ord("w")))
    keys = platform.poll_keys()
    assert keys[0x5] is False
    assert keys[0xF] is True

    # Unmapped keys are ignored.
    platform.handle_event(key_event(KEYDOWN, ord("p")))
    assert sum(platform.keypad.get_keys()) == 1


def test_quit_and_escape_stop_scheduler(dummy_pygame: DummyPygame) -> None:
    platform = PygamePlatform(enable_audio=False)
    scheduler = RecordingScheduler()
    platform.attach(scheduler)
    platform.open()

    platform.handle_event(key_event(KEYDOWN, K_ESCAPE))
    platform.handle_event(SimpleNamespace(type=QUIT))

    assert platform.quit_requested is True
    assert scheduler.reasons == ["window closed", "window closed"]


def test_poll_keys_drains_events_on_interval(dummy_pygame: DummyPygame) -> None:
    platform = PygamePlatform(enable_audio=False, event_interval=2)
    platform.open()
    dummy_pygame.pending = [key_event(KEYDOWN, ord("1"))]

    assert platform.poll_keys()[0x1] is False
    assert platform.poll_keys()[0x1] is True
    assert dummy_pygame.pending == []


def test_render_frame_without_window_updates_display(dummy_pygame: DummyPygame) -> None:
    platform = PygamePlatform(enable_audio=False)
    frame = bytearray(64 * 32)
    frame[10] = 1

    platform.render_frame(memoryview(frame))

    assert platform.display.cells[10] == 1
    assert platform.display.frame_count == 1
    assert dummy_pygame.flips == 0


def test_close_quits_pygame(dummy_pygame: DummyPygame) -> None:
    platform = PygamePlatform(enable_audio=False)
    platform.open()
    platform.close()
    assert dummy_pygame.quit_called is True


def test_scale_must_be_positive() -> None:
    with pytest.raises(ValueError):
        PygamePlatform(scale=0)
