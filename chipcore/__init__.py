"""CHIP-8 interpreter core package."""

from chipcore.state import EmulatorState, Quirks, create_state, reset
from chipcore.emulator import (
    execute, execute_cycles, fetch, load_program, load_rom, run, step, tick_timers
)
from chipcore.decode import DecodedInstruction, Op, decode, decode_bytes
from chipcore.keypad import press_key, release_key, is_waiting
from chipcore.errors import (
    Status, Chip8Error, LoadOverflowError, NoOpInstruction, InputHalt,
    StackOverflowError, InvalidAddressError, MemWriteError, error_from_status
)
from chipcore.instructions.display import framebuffer_to_pixels
from chipcore.constants import *

__all__ = [
    "EmulatorState",
    "Quirks",
    "create_state",
    "reset",
    "fetch",
    "execute",
    "step",
    "run",
    "execute_cycles",
    "tick_timers",
    "load_program",
    "load_rom",
    "DecodedInstruction",
    "Op",
    "decode",
    "decode_bytes",
    "press_key",
    "release_key",
    "is_waiting",
    "framebuffer_to_pixels",
    "Status",
    "Chip8Error",
    "LoadOverflowError",
    "NoOpInstruction",
    "InputHalt",
    "StackOverflowError",
    "InvalidAddressError",
    "MemWriteError",
    "error_from_status",
    "PROGRAM_START",
    "FONT_START",
    "DISPLAY_START",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
]
