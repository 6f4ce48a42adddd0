"""Memory primitives for the CHIP-8 address space."""

from __future__ import annotations

from typing import Iterable, Protocol


class Addressable(Protocol):
    """Protocol describing byte addressable storage."""

    def load8(self, address: int) -> int:
        ...

    def store8(self, address: int, value: int) -> None:
        ...

    def load16(self, address: int) -> int:
        ...


class Memory(Addressable):
    """Flat byte array supporting 8/16-bit big-endian accesses.

    Addresses are not wrapped: reading or writing outside ``[0, length)``
    raises ``IndexError`` exactly like indexing the backing ``bytearray``.
    """

    def __init__(self, length: int) -> None:
        if length <= 0:
            raise ValueError("invalid memory size")
        self.length = length
        self.data = bytearray(length)

    def __len__(self) -> int:
        return self.length

    def load8(self, address: int) -> int:
        return self.data[address]

    def store8(self, address: int, value: int) -> None:
        self.data[address] = value & 0xFF

    def load16(self, address: int) -> int:
        return (self.data[address] << 8) | self.data[address + 1]

    def read_block(self, address: int, length: int) -> bytes:
        return bytes(self.data[address:address + length])

    def write_block(self, address: int, values: Iterable[int]) -> None:
        """Copy ``values`` starting at ``address``.

        The whole range is validated before the first byte is written.
        """

        payload = bytes(values)
        if address < 0 or address + len(payload) > self.length:
            raise ValueError(
                f"block of {len(payload)} bytes at {address:#05x} exceeds memory size {self.length:#x}"
            )
        self.data[address:address + len(payload)] = payload

    def view(self) -> memoryview:
        return memoryview(self.data).toreadonly()


__all__ = [
    "Addressable",
    "Memory",
]
