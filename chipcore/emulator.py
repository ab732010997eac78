"""Main CHIP-8 emulator execution engine."""

from typing import Optional

import jax
import jax.lax
import jax.numpy as jnp
import numpy as np

from chipcore.state import EmulatorState, canonicalize, reset, with_status, is_fatal
from chipcore.decode import Op, decode
from chipcore.constants import PROGRAM_START, MAX_PROGRAM_SIZE, LAST_INSTRUCTION_ADDRESS
from chipcore.errors import Status, Chip8Error, LoadOverflowError, error_from_status
from chipcore.keypad import resolve_wait
from chipcore.instructions.system import no_op, execute_clear_screen, execute_return
from chipcore.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_jump_with_offset,
    execute_skip_if_key, execute_skip_if_not_key
)
from chipcore.instructions.alu import (
    execute_load_register, execute_or, execute_and, execute_xor, execute_add_register,
    execute_sub, execute_shift_right, execute_subn, execute_shift_left
)
from chipcore.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from chipcore.instructions.display import execute_display
from chipcore.instructions.misc import (
    execute_get_delay_timer, execute_wait_for_key, execute_set_delay_timer,
    execute_set_sound_timer, execute_add_to_index, execute_font_character,
    execute_bcd_conversion, execute_store_registers, execute_load_registers
)

HANDLERS = {
    Op.UNKNOWN: no_op,
    Op.CLS: execute_clear_screen,
    Op.RET: execute_return,
    Op.JP: execute_jump,
    Op.CALL: execute_call,
    Op.SE_IMM: execute_skip_if_equal_immediate,
    Op.SNE_IMM: execute_skip_if_not_equal_immediate,
    Op.SE_REG: execute_skip_if_equal_register,
    Op.LD_IMM: execute_set,
    Op.ADD_IMM: execute_add,
    Op.LD_REG: execute_load_register,
    Op.OR: execute_or,
    Op.AND: execute_and,
    Op.XOR: execute_xor,
    Op.ADD_REG: execute_add_register,
    Op.SUB: execute_sub,
    Op.SHR: execute_shift_right,
    Op.SUBN: execute_subn,
    Op.SHL: execute_shift_left,
    Op.SNE_REG: execute_skip_if_not_equal_register,
    Op.LD_I: execute_set_index,
    Op.JP_V0: execute_jump_with_offset,
    Op.RND: execute_random,
    Op.DRW: execute_display,
    Op.SKP: execute_skip_if_key,
    Op.SKNP: execute_skip_if_not_key,
    Op.LD_VX_DT: execute_get_delay_timer,
    Op.LD_VX_K: execute_wait_for_key,
    Op.LD_DT: execute_set_delay_timer,
    Op.LD_ST: execute_set_sound_timer,
    Op.ADD_I: execute_add_to_index,
    Op.LD_F: execute_font_character,
    Op.LD_B: execute_bcd_conversion,
    Op.LD_MEM_V: execute_store_registers,
    Op.LD_V_MEM: execute_load_registers,
}

# Dispatch table indexed by Op value
INSTRUCTION_TABLE = [HANDLERS[op] for op in Op]


def execute(state: EmulatorState, instruction: int) -> EmulatorState:
    """Execute single CHIP-8 instruction.

    The resulting ``status`` describes this instruction only; when it is not
    OK the instruction word is recorded in ``fault``.
    """
    decoded_instruction = decode(instruction)
    state = canonicalize(state).replace(status=jnp.zeros((), dtype=jnp.uint8))

    state = jax.lax.switch(decoded_instruction.op, INSTRUCTION_TABLE, state, decoded_instruction)

    raw = jnp.astype(decoded_instruction.raw, jnp.uint16)
    return state.replace(fault=jnp.where(state.status == Status.OK, state.fault, raw))


def _pack_u16(high: jnp.uint8, low: jnp.uint8) -> jnp.uint16:
    """Pack two bytes into uint16."""
    return (high.astype(jnp.uint16) << 8) | low.astype(jnp.uint16)


def fetch(state: EmulatorState) -> tuple[EmulatorState, jnp.uint16]:
    """Fetch next instruction from memory and advance pc past it."""
    instruction = _pack_u16(state.memory[state.pc], state.memory[state.pc + 1])
    return state.replace(pc=state.pc + 2), instruction


def _fetch_and_execute(state: EmulatorState) -> EmulatorState:
    def _cycle(state):
        state, instruction = fetch(state)
        return execute(state, instruction)

    next_state = jax.lax.cond(
        state.pc <= LAST_INSTRUCTION_ADDRESS,
        _cycle,
        lambda s: with_status(s, Status.INVALID_ADDRESS).replace(fault=s.pc),
        state
    )
    # A failed instruction leaves pc pointing at itself
    return next_state.replace(pc=jnp.where(is_fatal(next_state.status), state.pc, next_state.pc))


def step(state: EmulatorState) -> EmulatorState:
    """Run one fetch-decode-execute cycle, or poll the input gate while it is waiting.

    Fatal conditions leave the state untouched apart from ``status`` and
    ``fault``. While waiting for a key and none is pressed, ``status`` is
    INPUT_HALT and nothing else changes.
    """
    state = canonicalize(state).replace(status=jnp.zeros((), dtype=jnp.uint8))
    return jax.lax.cond(state.waiting, resolve_wait, _fetch_and_execute, state)


@jax.jit
def run(state: EmulatorState, cycles: int) -> tuple[EmulatorState, jnp.ndarray]:
    """Run up to ``cycles`` cycles.

    The batch stops early on INPUT_HALT or a fatal status; unknown
    instructions are counted and execution continues. On return ``status``
    holds the condition that stopped the batch, else NO_OP if any unknown
    instruction was met (the last one is in ``fault``), else OK.

    Returns:
        Tuple of (final state, number of cycles executed)
    """
    state = canonicalize(state).replace(status=jnp.zeros((), dtype=jnp.uint8))
    cycles = jnp.asarray(cycles, dtype=jnp.int32)

    def cond_fn(carry):
        state, executed, _, _ = carry
        return (executed < cycles) & (state.status <= Status.NO_OP)

    def body_fn(carry):
        state, executed, noop_fault, seen_noop = carry
        state = step(state)
        consumed = state.status <= Status.NO_OP
        is_noop = state.status == Status.NO_OP
        return (
            state,
            executed + jnp.astype(consumed, jnp.int32),
            jnp.where(is_noop, state.fault, noop_fault),
            seen_noop | is_noop,
        )

    init = (state, jnp.zeros((), dtype=jnp.int32), jnp.zeros((), dtype=jnp.uint16), jnp.zeros((), dtype=jnp.bool_))
    state, executed, noop_fault, seen_noop = jax.lax.while_loop(cond_fn, body_fn, init)

    completed = state.status <= Status.NO_OP
    status = jnp.where(completed, jnp.where(seen_noop, Status.NO_OP, Status.OK), state.status)
    fault = jnp.where(completed & seen_noop, noop_fault, state.fault)
    return state.replace(status=jnp.astype(status, jnp.uint8), fault=fault), executed


def execute_cycles(state: EmulatorState, cycles: int) -> tuple[EmulatorState, int, Optional[Chip8Error]]:
    """Run up to ``cycles`` cycles and report the outcome as Python values.

    Returns:
        Tuple of (final state, cycles executed, error or None). The error is
        returned, not raised; ``error.fatal`` tells whether the batch aborted.
    """
    state, executed = run(state, cycles)
    return state, int(executed), error_from_status(int(state.status), int(state.fault))


def tick_timers(state: EmulatorState) -> EmulatorState:
    """Decrement the delay and sound timers if nonzero. Hosts call this at 60 Hz."""
    return state.replace(
        delay_timer=jnp.where(state.delay_timer > 0, state.delay_timer - 1, 0).astype(jnp.uint8),
        sound_timer=jnp.where(state.sound_timer > 0, state.sound_timer - 1, 0).astype(jnp.uint8),
    )


def load_program(state: EmulatorState, program: bytes) -> EmulatorState:
    """Reset the machine and copy a raw program image to 0x200.

    Raises:
        LoadOverflowError: If the image is larger than the program region
    """
    if len(program) > MAX_PROGRAM_SIZE:
        raise LoadOverflowError(len(program), MAX_PROGRAM_SIZE)

    state = reset(state)
    rom_array = jnp.asarray(np.frombuffer(bytes(program), dtype=np.uint8))
    new_memory = state.memory.at[PROGRAM_START:PROGRAM_START + len(program)].set(rom_array)
    return state.replace(memory=new_memory)


def load_rom(state: EmulatorState, filename: str) -> EmulatorState:
    """Load ROM data into CHIP-8 memory starting at 0x200."""
    with open(filename, 'rb') as f:
        rom_data = f.read()
    return load_program(state, rom_data)
