"""Test configuration and fixtures for CHIP-8 interpreter tests."""

import pytest
import jax.numpy as jnp
from chipcore import create_state, load_program, execute_cycles, framebuffer_to_pixels, Quirks


@pytest.fixture
def fresh_state():
    """Provide a fresh emulator state for each test."""
    return create_state()


@pytest.fixture
def modern_state():
    """Provide a fresh state with the modern shift and jump quirks."""
    return create_state(quirks=Quirks(shift_vx=True, jump_vx=True))


@pytest.fixture
def legacy_state():
    """Provide a fresh state where FX55/FX65 advance I."""
    return create_state(quirks=Quirks(increment_index=True))


def setup_sprite_in_memory(state, address, sprite_bytes):
    """Helper to put sprite data in memory."""
    return state.replace(
        memory=state.memory.at[address:address+len(sprite_bytes)].set(
            jnp.array(sprite_bytes, dtype=jnp.uint8)
        )
    )


def pixel(state, x, y):
    """Read one display pixel as 0 or 1."""
    return int(framebuffer_to_pixels(state.memory)[x, y])


def run_program(program, video_image=(), max_cycles=1000):
    """Load ``program``, seed the display and run until pc reaches a zero word.

    Returns:
        Tuple of (state, error) where error is the first fatal condition or None
    """
    state = load_program(create_state(), bytes(program))
    state = setup_sprite_in_memory(state, 0x000, list(video_image))

    for _ in range(max_cycles):
        state, executed, error = execute_cycles(state, 1)
        if error is not None and error.fatal:
            return state, error

        pc = int(state.pc)
        if pc >= 4095:
            break
        if int(state.memory[pc]) == 0 and int(state.memory[pc + 1]) == 0:
            break

    return state, None
