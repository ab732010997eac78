"""Console logging utilities for chipcore hosts.

The interpreter core never logs; these loggers are used by the headless
runner and the command line to report run configuration, progress and
the conditions returned by ``execute_cycles``.
"""

import time
import sys
from typing import Any, Dict, Optional

from chipcore.errors import Chip8Error, NoOpInstruction, InputHalt


class ConsoleLogger:
    """Flexible console logger with level filtering and colors."""

    def __init__(
        self,
        name: str = "chipcore",
        log_level: str = "INFO",
        use_colors: bool = True,
        show_timestamps: bool = True,
        stream=None,
    ):
        self.name = name
        self.log_level = log_level.upper()
        self.stream = stream or sys.stdout
        self.use_colors = (
            use_colors and hasattr(self.stream, "isatty") and self.stream.isatty()
        )
        self.show_timestamps = show_timestamps
        self.start_time = time.time()

        self.colors = (
            {
                "DEBUG": "\033[36m",
                "INFO": "\033[32m",
                "WARNING": "\033[33m",
                "ERROR": "\033[31m",
                "CRITICAL": "\033[35m",
                "RESET": "\033[0m"
            }
            if self.use_colors
            else {
                k: ""
                for k in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL", "RESET"]
            }
        )

        self.level_order = {
            "DEBUG": 0,
            "INFO": 1,
            "WARNING": 2,
            "ERROR": 3,
            "CRITICAL": 4,
        }

    def _should_log(self, level: str) -> bool:
        """Check if message should be logged based on current log level."""
        return self.level_order.get(level.upper(), 1) >= self.level_order.get(
            self.log_level, 1
        )

    def _format_message(self, level: str, message: str) -> str:
        """Format log message with timestamp, level, and colors."""
        timestamp = (
            f"[{time.time() - self.start_time:8.2f}s]" if self.show_timestamps else ""
        )
        level_str = f"[{level:>8s}]"
        name_str = f"[{self.name}]"

        if self.use_colors:
            color = self.colors.get(level.upper(), "")
            reset = self.colors["RESET"]
            level_str = f"{color}{level_str}{reset}"

        return f"{timestamp}{level_str}{name_str} {message}"

    def log(self, level: str, message: str):
        """Log a message at the specified level."""
        if self._should_log(level):
            formatted = self._format_message(level, message)
            print(formatted, file=self.stream, flush=True)

    def debug(self, message: str):
        self.log("DEBUG", message)

    def info(self, message: str):
        self.log("INFO", message)

    def warning(self, message: str):
        self.log("WARNING", message)

    def error(self, message: str):
        self.log("ERROR", message)

    def critical(self, message: str):
        self.log("CRITICAL", message)


class RunLogger(ConsoleLogger):
    """Logger for interpreter runs: configuration, conditions and a final summary."""

    def __init__(self, name: str = "chipcore", **kwargs):
        super().__init__(name, **kwargs)
        self.condition_counts: Dict[str, int] = {}

    def log_run_start(self, config: Dict[str, Any]):
        """Log run configuration."""
        self.info("=" * 60)
        self.info("Starting run with configuration:")
        for key, value in config.items():
            self.info(f"  {key}: {value}")
        self.info("=" * 60)

    def log_condition(self, frame: int, pc: int, error: Optional[Chip8Error]):
        """Log a condition returned by a batch. Unknown instructions and input halts are not errors."""
        if error is None:
            return
        name = type(error).__name__
        self.condition_counts[name] = self.condition_counts.get(name, 0) + 1

        message = f"frame {frame:5d} pc=0x{pc:03X}: {error}"
        if error.fatal:
            self.error(message)
        elif isinstance(error, InputHalt):
            self.debug(message)
        elif isinstance(error, NoOpInstruction) and self.condition_counts[name] == 1:
            self.warning(message)
        else:
            self.debug(message)

    def log_run_end(self, summary: Dict[str, Any]):
        """Log run completion with the final machine summary."""
        elapsed = time.time() - self.start_time
        self.info("=" * 60)
        self.info(f"Run completed in {elapsed:.2f}s")
        for key, value in summary.items():
            self.info(f"  {key}: {value}")
        for name, count in sorted(self.condition_counts.items()):
            self.info(f"  {name}: {count}")
        self.info("=" * 60)
