"""CHIP-8 hex keypad state."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List

from chip8vm.cpu.state import KEY_COUNT


@dataclass
class Chip8Keypad:
    """Sixteen-key pad laid out as::

        1 2 3 C
        4 5 6 D
        7 8 9 E
        A 0 B F
    """

    _keys: List[bool] = field(default_factory=lambda: [False] * KEY_COUNT)

    def set_keys(self, keys: Iterable[bool]) -> None:
        values = [bool(value) for value in keys]
        if len(values) != KEY_COUNT:
            raise ValueError("keypad must have 16 keys")
        self._keys = values

    def get_keys(self) -> List[bool]:
        return list(self._keys)

    def press(self, key: int) -> None:
        if not (0 <= key < KEY_COUNT):
            raise ValueError("key out of range")
        self._keys[key] = True

    def release(self, key: int) -> None:
        if not (0 <= key < KEY_COUNT):
            raise ValueError("key out of range")
        self._keys[key] = False

    def is_pressed(self, key: int) -> bool:
        return self._keys[key]

    def clear(self) -> None:
        self._keys = [False] * KEY_COUNT
