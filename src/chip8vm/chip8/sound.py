"""CHIP-8 beeper with optional square-wave playback."""

from __future__ import annotations

from array import array
from dataclasses import dataclass, field
import time
from typing import List, Optional


@dataclass
class Chip8Beeper:
    """Plays a short tone whenever the sound timer runs out.

    Every beep is recorded in ``history`` whether or not audio is enabled.
    """

    history: List[float] = field(default_factory=list)
    sample_rate: int = 44100
    frequency: float = 440.0
    duration: float = 0.1
    volume: float = 0.3
    enable_audio: bool = False

    def __post_init__(self) -> None:
        self._audio_initialized: bool = False
        self._channel = None
        self._sound = None

    def beep(self, timestamp: Optional[float] = None) -> None:
        self.history.append(time.monotonic() if timestamp is None else timestamp)
        if not self.enable_audio:
            return
        if not self._ensure_mixer():
            return
        if self._sound is None:
            import pygame  # type: ignore

            self._sound = pygame.mixer.Sound(buffer=self._build_samples())
        self._channel.set_volume(self.volume)
        self._channel.play(self._sound)

    def close(self) -> None:
        if self._channel is not None:
            self._channel.stop()

    # ------------------------------------------------------------------
    # Audio control helpers
    # ------------------------------------------------------------------
    def _ensure_mixer(self) -> bool:
        if not self.enable_audio:
            return False
        if self._audio_initialized:
            return True
        try:
            import pygame  # type: ignore

            if not pygame.mixer.get_init():
                pygame.mixer.init(frequency=self.sample_rate, size=-16, channels=1)
            self._channel = pygame.mixer.Channel(0)
            self._audio_initialized = True
        except Exception:
            self.enable_audio = False
            self._channel = None
            self._audio_initialized = False
        return self._audio_initialized

    def _build_samples(self) -> array:
        amplitude = int(self.volume * 32767)
        period = max(2, int(round(self.sample_rate / self.frequency)))
        total = max(period, int(self.sample_rate * self.duration))
        samples = array("h", [0] * total)
        half = period // 2
        for index in range(total):
            samples[index] = amplitude if (index % period) < half else -amplitude
        return samples
