"""CHIP-8 system instructions (0x0xxx) and the unknown-instruction fallback."""

import jax
import jax.lax
from chipcore.state import EmulatorState, with_status
from chipcore.decode import DecodedInstruction
from chipcore.constants import DISPLAY_START, DISPLAY_SIZE
from chipcore.errors import Status
from chipcore.stack import pop, is_empty


def no_op(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """Unknown instruction: report it and change nothing else."""
    return with_status(state, Status.NO_OP)


def execute_clear_screen(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00E0 - Clear display."""
    return state.replace(memory=state.memory.at[DISPLAY_START:DISPLAY_START + DISPLAY_SIZE].set(0))


def execute_return(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00EE - Return from subroutine. Returning with an empty stack does nothing."""
    def _return(state):
        stack, address = pop(state.stack)
        return state.replace(stack=stack, pc=address)

    return jax.lax.cond(is_empty(state.stack), lambda s: s, _return, state)
