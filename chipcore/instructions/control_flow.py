"""CHIP-8 control flow instructions."""

import jax
import jax.lax
import jax.numpy as jnp
from chipcore.state import EmulatorState, with_status
from chipcore.decode import DecodedInstruction
from chipcore.constants import LAST_INSTRUCTION_ADDRESS
from chipcore.errors import Status
from chipcore.stack import push, is_full


def jump_to(state: EmulatorState, address: jnp.ndarray) -> EmulatorState:
    """Set pc to ``address``, or report INVALID_ADDRESS if no instruction fits there."""
    address = jnp.astype(address, jnp.int32)
    return jax.lax.cond(
        address <= LAST_INSTRUCTION_ADDRESS,
        lambda s: s.replace(pc=jnp.astype(address, jnp.uint16)),
        lambda s: with_status(s, Status.INVALID_ADDRESS),
        state
    )


def execute_jump(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """1NNN - Jump to address NNN."""
    return jump_to(state, instruction.nnn)


def execute_call(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """2NNN - Call subroutine at NNN."""
    def _call(state):
        return execute_jump(state.replace(stack=push(state.stack, state.pc)), instruction)

    overflow = is_full(state.stack)
    invalid_target = jnp.asarray(instruction.nnn) > LAST_INSTRUCTION_ADDRESS
    failure = jnp.where(overflow, Status.STACK_OVERFLOW, Status.INVALID_ADDRESS)

    return jax.lax.cond(
        overflow | invalid_target,
        lambda s: with_status(s, failure),
        _call,
        state
    )


def make_skip_instruction(condition_fn):
    """Factory for skip instructions."""
    def skip_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        condition = condition_fn(state, instruction)
        return jax.lax.cond(
            condition,
            lambda s: s.replace(pc=s.pc + 2),
            lambda s: s,
            state
        )
    return skip_instruction


execute_skip_if_equal_immediate = make_skip_instruction(
    lambda state, inst: state.V[inst.x] == inst.nn
)

execute_skip_if_not_equal_immediate = make_skip_instruction(
    lambda state, inst: state.V[inst.x] != inst.nn
)

execute_skip_if_equal_register = make_skip_instruction(
    lambda state, inst: state.V[inst.x] == state.V[inst.y]
)

execute_skip_if_not_equal_register = make_skip_instruction(
    lambda state, inst: state.V[inst.x] != state.V[inst.y]
)

execute_skip_if_key = make_skip_instruction(
    lambda state, inst: state.keypad[state.V[inst.x] & 0xF]
)

execute_skip_if_not_key = make_skip_instruction(
    lambda state, inst: ~state.keypad[state.V[inst.x] & 0xF]
)


def execute_jump_with_offset(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """BNNN - Jump to address NNN + V0.

    With ``Quirks.jump_vx`` the instruction reads as BXNN and the offset
    register is VX.
    """
    register = instruction.x if state.quirks.jump_vx else 0
    offset = jnp.astype(state.V[register], jnp.int32)
    return jump_to(state, instruction.nnn + offset)
