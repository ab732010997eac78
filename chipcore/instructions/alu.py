"""CHIP-8 ALU operations (8xxx).

Each ``alu_*`` function maps ``(vx, vy)`` to ``(result, flag)``. A flag of
None leaves VF untouched. The result is written before the flag, so
when X is F the flag wins.
"""

import jax.numpy as jnp
from chipcore.state import EmulatorState
from chipcore.decode import DecodedInstruction
from chipcore.constants import FLAG_REGISTER


def alu_set(vx, vy):
    """8XY0 - Set: VX = VY."""
    return vy, None


def alu_or(vx, vy):
    """8XY1 - Binary OR: VX |= VY."""
    return vx | vy, None


def alu_and(vx, vy):
    """8XY2 - Binary AND: VX &= VY."""
    return vx & vy, None


def alu_xor(vx, vy):
    """8XY3 - Logical XOR: VX ^= VY."""
    return vx ^ vy, None


def alu_add(vx, vy):
    """8XY4 - Add: VX += VY, set carry flag."""
    result = jnp.astype(vx, jnp.int32) + vy
    return result & 0xFF, result > 0xFF


def alu_sub_xy(vx, vy):
    """8XY5 - Subtract: VX -= VY, VF = NOT borrow."""
    return (jnp.astype(vx, jnp.int32) - vy) & 0xFF, vx >= vy


def alu_sub_yx(vx, vy):
    """8XY7 - Subtract: VX = VY - VX, VF = NOT borrow."""
    return (jnp.astype(vy, jnp.int32) - vx) & 0xFF, vy >= vx


def alu_shift_right(source):
    """8XY6 - Shift right, VF = bit shifted out."""
    return source >> 1, source & 1


def alu_shift_left(source):
    """8XYE - Shift left, VF = bit shifted out."""
    return (jnp.astype(source, jnp.int32) << 1) & 0xFF, source >> 7


def make_alu_instruction(operation):
    """Factory for register-register instructions built on an ``alu_*`` function."""
    def alu_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        result, flag = operation(state.V[instruction.x], state.V[instruction.y])
        new_V = state.V.at[instruction.x].set(jnp.astype(result, jnp.uint8))
        if flag is not None:
            new_V = new_V.at[FLAG_REGISTER].set(jnp.astype(flag, jnp.uint8))
        return state.replace(V=new_V)
    return alu_instruction


def make_shift_instruction(operation):
    """Factory for the shifts; the source register depends on ``Quirks.shift_vx``."""
    def shift_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        source = state.V[instruction.x] if state.quirks.shift_vx else state.V[instruction.y]
        return make_alu_instruction(lambda vx, vy: operation(source))(state, instruction)
    return shift_instruction


execute_load_register = make_alu_instruction(alu_set)
execute_or = make_alu_instruction(alu_or)
execute_and = make_alu_instruction(alu_and)
execute_xor = make_alu_instruction(alu_xor)
execute_add_register = make_alu_instruction(alu_add)
execute_sub = make_alu_instruction(alu_sub_xy)
execute_subn = make_alu_instruction(alu_sub_yx)
execute_shift_right = make_shift_instruction(alu_shift_right)
execute_shift_left = make_shift_instruction(alu_shift_left)
