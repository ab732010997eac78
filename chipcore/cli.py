"""Command line entry point: run a ROM headlessly and print the final machine state."""

import argparse
import sys
from typing import Optional, Sequence

import numpy as np

from chipcore.state import Quirks
from chipcore.runner import Runner, RunnerConfig
from chipcore.instructions.display import framebuffer_to_pixels


def positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run a CHIP-8 ROM without a display"
    )
    parser.add_argument("rom", type=str, help="Path to the ROM file")
    parser.add_argument(
        "--frames",
        type=int,
        default=600,
        help="Number of 60 Hz frames to run (default: 600)",
    )
    parser.add_argument(
        "--frequency",
        type=positive_int,
        default=700,
        help="Instructions per second (default: 700)",
    )
    parser.add_argument(
        "--fps",
        type=positive_int,
        default=60,
        help="Timer ticks per second (default: 60)",
    )
    parser.add_argument("--seed", type=int, default=0, help="Random seed (default: 0)")
    parser.add_argument(
        "--halt_key",
        type=lambda value: int(value, 16),
        default=None,
        help="Hex key to press whenever the program waits for input",
    )
    parser.add_argument("--shift_vx", action="store_true", help="Shift VX in place (8XY6/8XYE)")
    parser.add_argument("--jump_vx", action="store_true", help="BXNN jumps relative to VX")
    parser.add_argument("--increment_index", action="store_true", help="FX55/FX65 advance I")
    parser.add_argument("--stop_on_noop", action="store_true", help="Stop at the first unknown instruction")
    parser.add_argument("--show_display", action="store_true", help="Print the final display as text")
    parser.add_argument("--no_progress", action="store_true", help="Hide the progress bar")
    parser.add_argument(
        "--log_level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Console log level (default: INFO)",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> RunnerConfig:
    return RunnerConfig(
        rom_path=args.rom,
        frames=args.frames,
        instruction_frequency=args.frequency,
        fps=args.fps,
        seed=args.seed,
        quirks=Quirks(
            shift_vx=args.shift_vx,
            jump_vx=args.jump_vx,
            increment_index=args.increment_index,
        ),
        halt_key=args.halt_key,
        stop_on_noop=args.stop_on_noop,
        log_level=args.log_level,
        progress=not args.no_progress,
    )


def display_to_text(memory, on: str = "#", off: str = ".") -> str:
    """Render the framebuffer as one text line per screen row."""
    pixels = np.asarray(framebuffer_to_pixels(memory)).T
    return "\n".join("".join(on if pixel else off for pixel in row) for row in pixels)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    runner = Runner(config_from_args(args))
    result = runner.run()

    if args.show_display:
        print(display_to_text(result.state.memory))

    if result.error is not None and result.error.fatal:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
