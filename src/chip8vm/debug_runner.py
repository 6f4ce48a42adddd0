"""Headless runner for CHIP-8 debugging workflows."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

from chip8vm.chip8.machine import Chip8Machine
from chip8vm.cpu.state import MEMORY_SIZE
from chip8vm.debug.observers import (
    BreakpointObserver,
    CycleLimit,
    ObserverChain,
    StallDetector,
    TraceObserver,
)
from chip8vm.emulator.file import ProgramLoadError
from chip8vm.system.platform import HeadlessPlatform, render_text

DEFAULT_MAX_CYCLES = 1_000_000
ROW_SIZE = 16


@dataclass(frozen=True, order=True)
class DumpRange:
    """Inclusive address span inside the 4 KiB address space."""

    start: int
    end: int

    def as_slice(self) -> slice:
        return slice(self.start, self.end + 1)


def _parse_address(text: str) -> int:
    """Parse a hex address such as ``200`` or ``0x200`` into 0x000-0xFFF."""

    address = int(text.strip(), 16)
    if not 0 <= address < MEMORY_SIZE:
        raise ValueError(f"address outside 000-{MEMORY_SIZE - 1:03X}")
    return address


def _parse_range(text: str) -> DumpRange:
    first, sep, last = text.partition(":")
    if not sep:
        raise ValueError("expected START:END")
    dump_range = DumpRange(_parse_address(first), _parse_address(last))
    if dump_range.end < dump_range.start:
        raise ValueError("END is below START")
    return dump_range


def _parse_keys(text: str) -> List[int]:
    return [int(char, 16) for char in text.strip()]


def _coalesce(ranges: Sequence[DumpRange]) -> List[DumpRange]:
    """Sort ranges and join the ones that touch; no ranges means all memory."""

    if not ranges:
        return [DumpRange(0, MEMORY_SIZE - 1)]
    joined: List[DumpRange] = []
    for dump_range in sorted(ranges):
        if joined and dump_range.start <= joined[-1].end + 1:
            previous = joined.pop()
            dump_range = DumpRange(previous.start, max(previous.end, dump_range.end))
        joined.append(dump_range)
    return joined


def _format_hex_dump(memory: memoryview, ranges: Sequence[DumpRange]) -> str:
    """Render whole 16-byte rows covering each range, one block per range."""

    header = "ADR " + " ".join(f"{column:02X}" for column in range(ROW_SIZE))
    blocks = []
    for dump_range in ranges:
        first_row = dump_range.start - dump_range.start % ROW_SIZE
        rows = [header]
        for base in range(first_row, dump_range.end + 1, ROW_SIZE):
            rows.append(f"{base:03X} " + memory[base:base + ROW_SIZE].hex(" ").upper())
        blocks.append("\n".join(rows))
    return "\n\n".join(blocks)


def _write_dump(memory: memoryview, ranges: Sequence[DumpRange], *, target: Path | None, fmt: str) -> None:
    ranges = _coalesce(ranges)
    if fmt == "bin":
        payload = b"".join(memory[dump_range.as_slice()] for dump_range in ranges)
        if target is None:
            sys.stdout.buffer.write(payload)
        else:
            target.write_bytes(payload)
        return

    text = _format_hex_dump(memory, ranges)
    if target is None:
        print(text)
    else:
        target.write_text(text + "\n")


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chip8vm-debug-runner",
        description="Headless CHIP-8 runner for program diagnostics.",
    )
    parser.add_argument("--program", type=str, required=True, help="CHIP-8 program image")
    parser.add_argument(
        "--cycles",
        type=int,
        default=DEFAULT_MAX_CYCLES,
        help="Maximum cycles to execute (0 or negative disables the limit)",
    )
    parser.add_argument(
        "--break-pc",
        action="append",
        default=[],
        help="Break when PC reaches the given hex address (repeatable)",
    )
    parser.add_argument(
        "--stop-on-stall",
        action="store_true",
        help="Stop when the program counter repeats on consecutive cycles",
    )
    parser.add_argument(
        "--dump",
        type=str,
        default=None,
        help="File path for memory dump (defaults to stdout)",
    )
    parser.add_argument(
        "--dump-range",
        action="append",
        default=[],
        help="Memory range to dump in START:END hex form (inclusive). Repeat to add multiple ranges.",
    )
    parser.add_argument(
        "--dump-format",
        choices=("hex", "bin"),
        default="hex",
        help="Dump format (hex table or raw binary)",
    )
    parser.add_argument("--no-dump", action="store_true", help="Skip the memory dump")
    parser.add_argument("--screen", action="store_true", help="Print the final framebuffer as text")
    parser.add_argument("--keys", type=str, default="", help="Hex keys held down for the whole run (e.g. 5A)")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the RND instruction")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging (per-cycle trace)")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_argument_parser()
    args = parser.parse_args(argv)

    breakpoints: List[int] = []
    for text in args.break_pc:
        try:
            breakpoints.append(_parse_address(text))
        except ValueError as exc:
            parser.error(f"invalid breakpoint address '{text}': {exc}")

    dump_ranges: List[DumpRange] = []
    for text in args.dump_range:
        try:
            dump_ranges.append(_parse_range(text))
        except ValueError as exc:
            parser.error(f"invalid dump range '{text}': {exc}")

    try:
        held_keys = _parse_keys(args.keys)
    except ValueError as exc:
        parser.error(f"invalid key list '{args.keys}': {exc}")

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING, stream=sys.stderr)

    chain = ObserverChain()
    if args.verbose:
        chain.add(TraceObserver())
    breakpoint_observer = BreakpointObserver(breakpoints) if breakpoints else None
    if breakpoint_observer is not None:
        chain.add(breakpoint_observer)
    stall_detector = StallDetector() if args.stop_on_stall else None
    if stall_detector is not None:
        chain.add(stall_detector)
    cycle_limit = CycleLimit(args.cycles) if args.cycles > 0 else None
    if cycle_limit is not None:
        chain.add(cycle_limit)

    platform = HeadlessPlatform(keep_frames=False)
    for key in held_keys:
        platform.press(key)
    machine = Chip8Machine(platform, observer=chain, seed=args.seed)

    try:
        machine.load_program(args.program)
    except (OSError, ProgramLoadError) as exc:
        print(f"Failed to load program: {exc}", file=sys.stderr)
        return 1

    result = machine.run()

    if not args.no_dump:
        dump_target = Path(args.dump) if args.dump is not None else None
        _write_dump(machine.view.memory, dump_ranges, target=dump_target, fmt=args.dump_format)

    if args.screen:
        print(render_text(machine.view.framebuffer))

    if result.error is not None:
        print(f"Execution stopped: {result.error}", file=sys.stderr)
        return 4
    if breakpoint_observer is not None and breakpoint_observer.hit is not None:
        return 0
    if stall_detector is not None and stall_detector.stalled_at is not None:
        return 0
    if cycle_limit is not None and cycle_limit.reached:
        print("Execution stopped: cycle limit reached", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
