"""CHIP-8 miscellaneous instructions (Fxxx)."""

import jax
import jax.lax
import jax.numpy as jnp
from chipcore.state import EmulatorState, with_status
from chipcore.decode import DecodedInstruction
from chipcore.constants import FONT_START, FONT_GLYPH_SIZE, PROGRAM_START, MEMORY_SIZE, NUM_REGISTERS
from chipcore.errors import Status
from chipcore.keypad import resolve_wait

register_indices = jnp.arange(NUM_REGISTERS, dtype=jnp.int32)


def execute_get_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX07 - Set VX to delay timer value."""
    return state.replace(V=state.V.at[instruction.x].set(state.delay_timer))


def execute_set_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX15 - Set delay timer to VX."""
    return state.replace(delay_timer=state.V[instruction.x])


def execute_set_sound_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX18 - Set sound timer to VX."""
    return state.replace(sound_timer=state.V[instruction.x])


def execute_add_to_index(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX1E - Add VX to I register. VF is not affected."""
    return state.replace(I=state.I + jnp.astype(state.V[instruction.x], jnp.uint16))


def execute_wait_for_key(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX0A - Wait for key press.

    Enters the awaiting-key state and resolves it immediately, so a key
    already held down completes the instruction in the same cycle.
    """
    state = state.replace(waiting=jnp.ones((), dtype=jnp.bool_), wait_register=jnp.astype(instruction.x, jnp.uint8))
    return resolve_wait(state)


def execute_font_character(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX29 - Set I to location of sprite for digit VX."""
    digit = jnp.astype(state.V[instruction.x] & 0xF, jnp.uint16)
    return state.replace(I=FONT_START + digit * FONT_GLYPH_SIZE)


def writable_range(state: EmulatorState, length) -> jnp.ndarray:
    """Whether ``memory[I:I+length]`` lies entirely in the program region."""
    start = jnp.astype(state.I, jnp.int32)
    return (start >= PROGRAM_START) & (start + length <= MEMORY_SIZE)


def make_checked_instruction(length_fn, body):
    """Factory for instructions that touch ``memory[I:]`` and must stay above the reserved zones."""
    def checked_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        return jax.lax.cond(
            writable_range(state, length_fn(instruction)),
            lambda s: body(s, instruction),
            lambda s: with_status(s, Status.MEM_WRITE),
            state
        )
    return checked_instruction


def bcd_conversion(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX33 - Store BCD representation of VX at I, I+1, I+2."""
    value = state.V[instruction.x]

    # Vectorized BCD conversion
    digits = jnp.array([
        value // 100,
        (value // 10) % 10,
        value % 10
    ], dtype=jnp.uint8)

    indices = jnp.arange(3) + jnp.astype(state.I, jnp.int32)
    return state.replace(memory=state.memory.at[indices].set(digits))


def _register_addresses(state: EmulatorState, instruction: DecodedInstruction) -> tuple[jnp.ndarray, jnp.ndarray]:
    register_mask = register_indices <= instruction.x
    addresses = jnp.where(register_mask, jnp.astype(state.I, jnp.int32) + register_indices, MEMORY_SIZE)
    return register_mask, addresses


def _advance_index(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    if state.quirks.increment_index:
        return state.replace(I=state.I + jnp.astype(instruction.x + 1, jnp.uint16))
    return state


def store_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX55 - Store V0 through VX in memory starting at I."""
    _, addresses = _register_addresses(state, instruction)
    new_memory = state.memory.at[addresses].set(state.V, mode="drop")
    return _advance_index(state.replace(memory=new_memory), instruction)


def load_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX65 - Load V0 through VX from memory starting at I."""
    register_mask, addresses = _register_addresses(state, instruction)
    memory_values = state.memory.at[addresses].get(mode="fill", fill_value=0)
    new_V = jnp.where(register_mask, memory_values, state.V)
    return _advance_index(state.replace(V=new_V), instruction)


execute_bcd_conversion = make_checked_instruction(lambda instruction: 3, bcd_conversion)
execute_store_registers = make_checked_instruction(lambda instruction: instruction.x + 1, store_registers)
execute_load_registers = make_checked_instruction(lambda instruction: instruction.x + 1, load_registers)
