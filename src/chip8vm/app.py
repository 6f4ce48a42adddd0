"""CHIP-8 windowed runner."""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
import sys
from typing import Iterable, Optional

from chip8vm.chip8.machine import Chip8Machine
from chip8vm.debug.observers import ObserverChain, StallDetector, TraceObserver
from chip8vm.emulator.file import ProgramLoadError
from chip8vm.frontend.pygame_platform import (
    BASE_CAPTION,
    PygamePlatform,
    load_keymap,
    write_keymap_template,
)


def _build_observer(*, trace: bool, stop_on_stall: bool) -> Optional[ObserverChain]:
    chain = ObserverChain()
    if trace:
        chain.add(TraceObserver())
    if stop_on_stall:
        chain.add(StallDetector())
    return chain if chain.observers else None


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chip8vm", description="CHIP-8 virtual machine")
    parser.add_argument("rom", nargs="?", help="Path to a CHIP-8 program image")
    parser.add_argument(
        "--write-keymap-template",
        metavar="PATH",
        help="Write a JSON keymap template to the given path and exit",
    )
    parser.add_argument("--scale", type=int, default=10, help="Integer scaling factor for display (default: 10)")
    parser.add_argument("--keymap", help="Path to JSON file mapping pygame key names to hex keys")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the RND instruction")
    parser.add_argument("--no-audio", dest="audio", action="store_false", help="Disable the beeper")
    parser.add_argument(
        "--stop-on-stall",
        action="store_true",
        help="Stop when the program counter stops moving (jump-to-self)",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging (per-cycle trace)")
    return parser


def main(argv: Iterable[str] | None = None) -> int:
    parser = _build_argument_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.write_keymap_template:
        write_keymap_template(Path(args.write_keymap_template))
        return 0

    if not args.rom:
        parser.error("a ROM path is required")
    if args.scale <= 0:
        parser.error("scale must be positive")

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    keymap = None
    if args.keymap:
        try:
            keymap = load_keymap(args.keymap)
        except (OSError, ValueError) as exc:
            print(f"Failed to load keymap: {exc}", file=sys.stderr)
            return 1

    observer = _build_observer(
        trace=args.verbose or os.getenv(Chip8Machine.ENV_TRACE) is not None,
        stop_on_stall=args.stop_on_stall,
    )
    platform = PygamePlatform(
        scale=args.scale,
        keymap=keymap,
        enable_audio=args.audio,
        caption=f"{BASE_CAPTION} | {Path(args.rom).name}",
    )
    machine = Chip8Machine(platform, observer=observer, seed=args.seed)

    try:
        machine.load_program(args.rom)
    except (OSError, ProgramLoadError) as exc:
        print(f"Failed to load program: {exc}", file=sys.stderr)
        return 1

    platform.attach(machine.scheduler)
    try:
        platform.open()
    except RuntimeError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    try:
        result = machine.run()
    finally:
        platform.close()

    if result.error is not None:
        print(f"Execution stopped: {result.error}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
