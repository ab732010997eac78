"""CHIP-8 display operations.

The framebuffer is ``memory[0x000:0x100]``: 32 rows of 8 bytes, one bit
per pixel, most significant bit leftmost.
"""

import jax.numpy as jnp
from chipcore.state import EmulatorState
from chipcore.decode import DecodedInstruction
from chipcore.constants import (
    SCREEN_WIDTH, SCREEN_HEIGHT, ROW_BYTES, DISPLAY_START, DISPLAY_SIZE,
    MEMORY_SIZE, ADDRESS_MASK, MAX_SPRITE_HEIGHT, FLAG_REGISTER
)

# Pre-computed sprite row offsets
row_offsets = jnp.arange(MAX_SPRITE_HEIGHT, dtype=jnp.int32)


def draw_sprite(state: EmulatorState, x: jnp.ndarray, y: jnp.ndarray, height: jnp.ndarray) -> EmulatorState:
    """XOR ``height`` sprite rows read from ``memory[I:]`` into the framebuffer at (x, y).

    Origins past the right or bottom edge draw nothing and leave VF alone.
    Rows below the last screen row are clipped, as are the bits of a
    misaligned sprite that would spill past the last byte of a row. VF is
    set to 1 when any lit pixel is turned off.
    """
    x = jnp.astype(x, jnp.int32)
    y = jnp.astype(y, jnp.int32)
    on_screen = (x < SCREEN_WIDTH) & (y < SCREEN_HEIGHT)

    rows = y + row_offsets
    visible = on_screen & (row_offsets < height) & (rows < SCREEN_HEIGHT)

    column = x // 8
    bit_offset = x % 8
    sprite = jnp.astype(state.memory[(jnp.astype(state.I, jnp.int32) + row_offsets) & ADDRESS_MASK], jnp.int32)

    left_bits = sprite >> bit_offset
    right_bits = (sprite << (8 - bit_offset)) & 0xFF
    spills = visible & (bit_offset > 0) & (column < ROW_BYTES - 1)

    # Rows that are not drawn point past the end of memory and are dropped on write
    left_address = jnp.where(visible, DISPLAY_START + rows * ROW_BYTES + column, MEMORY_SIZE)
    right_address = jnp.where(spills, left_address + 1, MEMORY_SIZE)

    addresses = jnp.concatenate([left_address, right_address])
    patterns = jnp.concatenate([left_bits, right_bits])

    before = jnp.astype(state.memory.at[addresses].get(mode="fill", fill_value=0), jnp.int32)
    collision = jnp.any((before & patterns) != 0)
    memory = state.memory.at[addresses].set(jnp.astype(before ^ patterns, jnp.uint8), mode="drop")

    new_V = jnp.where(on_screen, state.V.at[FLAG_REGISTER].set(jnp.astype(collision, jnp.uint8)), state.V)
    return state.replace(memory=memory, V=new_V)


def execute_display(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """DXYN - Draw sprite at (VX, VY) with height N."""
    return draw_sprite(state, state.V[instruction.x], state.V[instruction.y], instruction.n)


def framebuffer_to_pixels(memory: jnp.ndarray) -> jnp.ndarray:
    """Unpack the framebuffer into a boolean (64, 32) array indexed [x, y]."""
    rows = memory[DISPLAY_START:DISPLAY_START + DISPLAY_SIZE].reshape(SCREEN_HEIGHT, ROW_BYTES)
    return jnp.unpackbits(rows, axis=1).T.astype(jnp.bool_)
