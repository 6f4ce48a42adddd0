"""Scheduler cycle ordering, stop handling and error channel."""

from __future__ import annotations

from typing import List

import pytest

from chip8vm.cpu.cpu import Chip8CPU
from chip8vm.cpu.errors import Chip8Error, InvalidOpcode
from chip8vm.debug.observers import CycleLimit
from chip8vm.system.platform import HeadlessPlatform
from chip8vm.system.scheduler import Scheduler


def make_scheduler(*words: int, platform=None, observer=None) -> Scheduler:
    cpu = Chip8CPU()
    data = b"".join(word.to_bytes(2, "big") for word in words)
    cpu.state.memory.write_block(0x200, data)
    return Scheduler(cpu, platform, observer)


class RecordingObserver:
    def __init__(self, stop_after: int) -> None:
        self.stop_after = stop_after
        self.pcs: List[int] = []

    def on_before_cycle(self, view, scheduler) -> None:
        self.pcs.append(view.pc)
        if len(self.pcs) >= self.stop_after:
            scheduler.stop("enough")


def test_invalid_opcode_halts_and_reports_once() -> None:
    errors: List[Chip8Error] = []
    platform = HeadlessPlatform()
    scheduler = make_scheduler(0x6005, 0x5001, 0x6107, platform=platform)

    result = scheduler.start(errors.append)

    assert isinstance(result.error, InvalidOpcode)
    assert result.error.opcode == 0x5001
    assert errors == [result.error]
    assert result.cycles == 1
    assert result.ok is False
    state = scheduler.cpu.state
    assert state.pc == 0x202
    assert state.v[0] == 5
    assert state.v[1] == 0
    assert scheduler.running is False


def test_observer_stop_takes_effect_at_next_cycle_boundary() -> None:
    observer = RecordingObserver(stop_after=3)
    scheduler = make_scheduler(0x7001, 0x1200, observer=observer)

    result = scheduler.start()

    # The cycle during which stop was requested still executes.
    assert result.cycles == 3
    assert result.reason == "enough"
    assert observer.pcs == [0x200, 0x202, 0x200]
    assert scheduler.cpu.state.v[0] == 2


def test_render_called_only_when_draw_flag_set() -> None:
    platform = HeadlessPlatform()
    scheduler = make_scheduler(0x00E0, 0x1202, platform=platform, observer=CycleLimit(4))

    scheduler.start()

    assert len(platform.frames) == 1
    assert platform.last_frame == bytes(64 * 32)
    assert scheduler.cpu.state.draw_flag is False


def test_delay_timer_decrements_once_per_cycle() -> None:
    scheduler = make_scheduler(0x6003, 0xF015, 0x1204, observer=CycleLimit(3))
    scheduler.start()
    assert scheduler.cpu.state.delay_timer == 1


def test_sound_timer_beeps_when_running_out() -> None:
    platform = HeadlessPlatform()
    scheduler = make_scheduler(0x6002, 0xF018, 0x1204, platform=platform, observer=CycleLimit(6))

    scheduler.start()

    assert platform.beeps == 1
    assert scheduler.cpu.state.sound_timer == 0


def test_key_poll_feeds_wait_for_key() -> None:
    platform = HeadlessPlatform()
    platform.press(0x5)
    scheduler = make_scheduler(0xF00A, 0x1202, platform=platform, observer=CycleLimit(1))

    scheduler.start()
    # The keypad is refreshed after the first execution, so the wait spins once.
    assert scheduler.cpu.state.pc == 0x200
    assert scheduler.cpu.state.keypad[0x5] is True

    scheduler.observer = CycleLimit(1)
    scheduler.start()
    assert scheduler.cpu.state.v[0] == 0x5
    assert scheduler.cpu.state.pc == 0x202


def test_stop_is_idempotent_and_keeps_first_reason() -> None:
    scheduler = make_scheduler(0x1200)
    scheduler.stop("first")
    scheduler.stop("second")
    assert scheduler.stop_reason == "first"
    assert scheduler.cpu.state.stop_flag is True


def test_runs_without_platform() -> None:
    scheduler = make_scheduler(0x00E0, 0x1202, observer=CycleLimit(2))
    result = scheduler.start()
    assert result.ok
    assert result.cycles == 2
    assert scheduler.cycle_count == 2


def test_non_vm_error_propagates_and_leaves_scheduler_stopped() -> None:
    # I = FFF, then BCD needs three bytes starting there.
    scheduler = make_scheduler(0xAFFF, 0xF033)

    with pytest.raises(IndexError):
        scheduler.start()

    assert scheduler.running is False
    assert scheduler.status == Scheduler.STATUS_STOPPED
    assert scheduler.cpu.state.stop_flag is True
    assert scheduler.cycle_count == 1
    assert scheduler.cpu.state.memory.load8(0xFFF) == 0
    assert scheduler.cpu.state.pc == 0x202
