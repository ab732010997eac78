"""Execution status codes and the host-facing error hierarchy.

Inside jitted code a condition is only a ``Status`` value stored on the
state. ``error_from_status`` turns it into one of the exception classes
below once control is back in plain Python.
"""

from enum import IntEnum
from typing import Optional


class Status(IntEnum):
    """Outcome of the last step or batch. Values above INPUT_HALT are fatal."""
    OK = 0
    NO_OP = 1
    INPUT_HALT = 2
    STACK_OVERFLOW = 3
    INVALID_ADDRESS = 4
    MEM_WRITE = 5


FIRST_FATAL_STATUS = Status.STACK_OVERFLOW


class Chip8Error(Exception):
    """Base class for every condition reported by the interpreter."""
    fatal = False
    status: Optional[Status] = None


class LoadOverflowError(Chip8Error):
    """Program image does not fit in the program region."""

    def __init__(self, size: int, capacity: int):
        super().__init__(
            f"error loading ROM: size exceeds CHIP-8 memory limit ({size} > {capacity} bytes)"
        )
        self.size = size
        self.capacity = capacity


class NoOpInstruction(Chip8Error):
    """Unknown instruction; the cycle was consumed and execution continued."""
    status = Status.NO_OP

    def __init__(self, raw: int):
        super().__init__(f"unknown instruction 0x{raw:04X} treated as no-op")
        self.raw = raw

    @property
    def high(self) -> int:
        return (self.raw >> 8) & 0xFF

    @property
    def low(self) -> int:
        return self.raw & 0xFF


class InputHalt(Chip8Error):
    """Execution is suspended until a key is pressed."""
    status = Status.INPUT_HALT

    def __init__(self, register: int):
        super().__init__(f"halted waiting for a key press into V{register:X}")
        self.register = register


class StackOverflowError(Chip8Error):
    fatal = True
    status = Status.STACK_OVERFLOW

    def __init__(self, raw: int):
        super().__init__(f"stack overflow executing 0x{raw:04X}")
        self.raw = raw


class InvalidAddressError(Chip8Error):
    fatal = True
    status = Status.INVALID_ADDRESS

    def __init__(self, raw: int):
        super().__init__(f"invalid memory address reached by 0x{raw:04X}")
        self.raw = raw


class MemWriteError(Chip8Error):
    fatal = True
    status = Status.MEM_WRITE

    def __init__(self, raw: int):
        super().__init__(f"cannot write into reserved memory address (0x{raw:04X})")
        self.raw = raw


def error_from_status(status: int, fault: int = 0) -> Optional[Chip8Error]:
    """Build the error object for a status code, or None when execution was clean.

    Args:
        status: ``Status`` value read from the state
        fault: Raw instruction word recorded with the status

    Returns:
        A ``Chip8Error`` instance (not raised) or None
    """
    status = Status(status)
    if status == Status.OK:
        return None
    if status == Status.NO_OP:
        return NoOpInstruction(fault)
    if status == Status.INPUT_HALT:
        return InputHalt((fault >> 8) & 0xF)
    if status == Status.STACK_OVERFLOW:
        return StackOverflowError(fault)
    if status == Status.INVALID_ADDRESS:
        return InvalidAddressError(fault)
    return MemWriteError(fault)
