"""Headless host loop for running a ROM without a display.

The runner plays the part of the external driver: it paces execution in
frames, ticks the timers once per frame and feeds keys to the input gate
when a program waits for one. Nothing is rendered; the final state is
returned for inspection.
"""

from dataclasses import dataclass, field, asdict
from typing import Optional

import jax
from tqdm import tqdm

from chipcore.state import EmulatorState, Quirks, create_state
from chipcore.emulator import execute_cycles, load_rom, load_program, tick_timers
from chipcore.keypad import press_key, release_key
from chipcore.errors import Chip8Error, InputHalt, NoOpInstruction
from chipcore.logging import RunLogger


@dataclass
class RunnerConfig:
    """Configuration of a headless run.

    Attributes:
        rom_path: Path to the CHIP-8 ROM file to load
        frames: Number of 60 Hz frames to emulate
        instruction_frequency: CHIP-8 CPU frequency in Hz (typically 700)
        fps: Frame rate; timers tick once per frame
        seed: Seed of the random key used by CXNN
        quirks: Interpreter variant flags
        halt_key: Key pressed for one frame whenever the program waits for input.
            None leaves the program halted until the run ends.
        stop_on_noop: Stop the run at the first unknown instruction
        log_level: Console log level
        progress: Show a progress bar
    """
    rom_path: str
    frames: int = 600
    instruction_frequency: int = 700
    fps: int = 60
    seed: int = 0
    quirks: Quirks = field(default_factory=Quirks)
    halt_key: Optional[int] = None
    stop_on_noop: bool = False
    log_level: str = "INFO"
    progress: bool = True

    @property
    def cycles_per_frame(self) -> int:
        """Number of instructions executed between two timer ticks."""
        return max(1, self.instruction_frequency // self.fps)


@dataclass
class RunResult:
    state: EmulatorState
    frames: int
    cycles: int
    halted_frames: int
    error: Optional[Chip8Error] = None


class Runner:
    """Drives an ``EmulatorState`` frame by frame."""

    def __init__(self, config: RunnerConfig, logger: Optional[RunLogger] = None):
        self.config = config
        self.logger = logger or RunLogger(log_level=config.log_level)

    def initial_state(self, program: Optional[bytes] = None) -> EmulatorState:
        """Create a state with the configured ROM, or ``program`` when given, loaded."""
        state = create_state(jax.random.PRNGKey(self.config.seed), self.config.quirks)
        if program is not None:
            return load_program(state, program)
        return load_rom(state, self.config.rom_path)

    def run_frame(self, state: EmulatorState) -> tuple[EmulatorState, int, Optional[Chip8Error]]:
        """Execute one frame worth of cycles and tick the timers."""
        state, executed, error = execute_cycles(state, self.config.cycles_per_frame)
        return tick_timers(state), executed, error

    def run(self, program: Optional[bytes] = None) -> RunResult:
        """Run the configured number of frames.

        Stops early on a fatal condition, or on an unknown instruction when
        ``stop_on_noop`` is set.
        """
        config = self.config
        self.logger.log_run_start({
            **{k: v for k, v in asdict(config).items() if k != "quirks"},
            **asdict(config.quirks),
            "cycles_per_frame": config.cycles_per_frame,
        })

        state = self.initial_state(program)
        total_cycles = 0
        halted_frames = 0
        error = None
        held_key = None
        frame = -1

        frames = tqdm(range(config.frames), desc="Running", unit="frame", disable=not config.progress)
        for frame in frames:
            state, executed, error = self.run_frame(state)
            total_cycles += executed
            self.logger.log_condition(frame, int(state.pc), error)

            if held_key is not None:
                state = release_key(state, held_key)
                held_key = None

            if isinstance(error, InputHalt):
                halted_frames += 1
                if config.halt_key is not None:
                    state = press_key(state, config.halt_key)
                    held_key = config.halt_key
            elif error is not None and error.fatal:
                break
            elif isinstance(error, NoOpInstruction) and config.stop_on_noop:
                break

        frames.close()
        result = RunResult(
            state=state,
            frames=frame + 1,
            cycles=total_cycles,
            halted_frames=halted_frames,
            error=error,
        )
        self.logger.log_run_end({
            "frames": result.frames,
            "cycles": result.cycles,
            "halted_frames": result.halted_frames,
            "pc": f"0x{int(state.pc):03X}",
            "I": f"0x{int(state.I):03X}",
            "V": " ".join(f"{int(v):02X}" for v in state.V),
        })
        return result
