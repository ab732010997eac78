"""CHIP-8 emulator state structures."""

import jax
import jax.numpy as jnp
from flax.struct import dataclass, PyTreeNode, field

from chipcore.constants import (
    MEMORY_SIZE, PROGRAM_START, FONT_START, FONT_DATA, STACK_SIZE, NUM_REGISTERS, NUM_KEYS
)
from chipcore.errors import Status, FIRST_FATAL_STATUS


@dataclass(frozen=True)
class Quirks:
    """Interpreter variants that differ between CHIP-8 implementations.

    Attributes:
        shift_vx: 8XY6/8XYE shift VX in place instead of shifting VY into VX
        jump_vx: BXNN jumps to XNN + VX instead of NNN + V0
        increment_index: FX55/FX65 leave I pointing past the last register
    """
    shift_vx: bool = False
    jump_vx: bool = False
    increment_index: bool = False


@dataclass(frozen=True)
class StackState:
    """Stack state for subroutine calls."""
    data: jnp.ndarray = field(default_factory=lambda: jnp.zeros(STACK_SIZE, dtype=jnp.uint16))
    pointer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.int32))


class EmulatorState(PyTreeNode):
    """Main CHIP-8 emulator state.

    The display is not a separate buffer: it lives in ``memory[0x000:0x100]``,
    see ``chipcore.instructions.display.framebuffer_to_pixels``.
    """
    rng: jax.random.PRNGKey
    memory: jnp.ndarray = field(default_factory=lambda: jnp.zeros(MEMORY_SIZE, dtype=jnp.uint8))
    pc: jnp.ndarray = field(default_factory=lambda: jnp.astype(PROGRAM_START, jnp.uint16))
    stack: StackState = StackState()
    delay_timer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    sound_timer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    keypad: jnp.ndarray = field(default_factory=lambda: jnp.zeros(NUM_KEYS, dtype=jnp.bool_))
    V: jnp.ndarray = field(default_factory=lambda: jnp.zeros(NUM_REGISTERS, dtype=jnp.uint8))
    I: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint16))
    waiting: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.bool_))
    wait_register: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    status: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    fault: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint16))
    quirks: Quirks = field(pytree_node=False, default=Quirks())

    def read_memory(self, address: int, length: int) -> bytes:
        """Copy ``length`` bytes starting at ``address`` out of memory."""
        return bytes(jax.device_get(self.memory[address:address + length]).tolist())

    def write_memory(self, address: int, data: bytes) -> "EmulatorState":
        """Return a state with ``data`` written at ``address``, bypassing all checks."""
        values = jnp.array(list(data), dtype=jnp.uint8)
        return self.replace(memory=self.memory.at[address:address + len(data)].set(values))

    def set_register(self, index: int, value: int) -> "EmulatorState":
        return self.replace(V=self.V.at[index].set(value & 0xFF))

    def set_index(self, value: int) -> "EmulatorState":
        return self.replace(I=jnp.astype(value & 0xFFFF, jnp.uint16))

    def set_pc(self, value: int) -> "EmulatorState":
        return self.replace(pc=jnp.astype(value & 0xFFFF, jnp.uint16))


def canonicalize(state: EmulatorState) -> EmulatorState:
    """Cast every field to its machine width.

    Hosts may replace fields with plain Python values; control flow
    primitives need every branch to agree on dtypes.
    """
    return state.replace(
        memory=jnp.asarray(state.memory, dtype=jnp.uint8),
        pc=jnp.asarray(state.pc, dtype=jnp.uint16),
        stack=StackState(
            data=jnp.asarray(state.stack.data, dtype=jnp.uint16),
            pointer=jnp.asarray(state.stack.pointer, dtype=jnp.int32),
        ),
        delay_timer=jnp.asarray(state.delay_timer, dtype=jnp.uint8),
        sound_timer=jnp.asarray(state.sound_timer, dtype=jnp.uint8),
        keypad=jnp.asarray(state.keypad, dtype=jnp.bool_),
        V=jnp.asarray(state.V, dtype=jnp.uint8),
        I=jnp.asarray(state.I, dtype=jnp.uint16),
        waiting=jnp.asarray(state.waiting, dtype=jnp.bool_),
        wait_register=jnp.asarray(state.wait_register, dtype=jnp.uint8),
        status=jnp.asarray(state.status, dtype=jnp.uint8),
        fault=jnp.asarray(state.fault, dtype=jnp.uint16),
    )


def with_status(state: EmulatorState, status: Status, when=True) -> EmulatorState:
    """Record ``status`` on the state when ``when`` holds."""
    code = jnp.where(when, jnp.asarray(status, dtype=jnp.uint8), state.status)
    return state.replace(status=jnp.astype(code, jnp.uint8))


def is_fatal(status: jnp.ndarray) -> jnp.ndarray:
    return status >= FIRST_FATAL_STATUS


def reset(state: EmulatorState) -> EmulatorState:
    """Return the state to its power-on baseline.

    Memory is cleared and the font is written at ``FONT_START``; registers,
    stack, timers and the input gate are cleared and ``pc`` points at
    ``PROGRAM_START``. The random key, keypad and quirks are kept.
    """
    fresh = EmulatorState(state.rng, keypad=state.keypad, quirks=state.quirks)
    return fresh.replace(memory=fresh.memory.at[FONT_START:FONT_START + len(FONT_DATA)].set(FONT_DATA))


def create_state(rng: jax.random.PRNGKey = jax.random.PRNGKey(0), quirks: Quirks = Quirks()) -> EmulatorState:
    """Create initial emulator state with font data loaded."""
    return reset(EmulatorState(rng, quirks=quirks))
