"""Keypad signalling and the awaiting-key input gate.

The gate has two states, held in ``EmulatorState.waiting``:

* Running: instructions are fetched and executed normally.
* AwaitingKey(``wait_register``): entered by FX0A when no key is held.
  Every step reports ``Status.INPUT_HALT`` and consumes no cycle until a
  key is seen pressed; the lowest pressed key then goes into the
  register and the gate returns to Running.

Key notifications only update ``keypad``; the gate looks at it on the
next step.
"""

import jax.lax
import jax.numpy as jnp
from chipcore.state import EmulatorState, with_status
from chipcore.constants import NUM_KEYS
from chipcore.errors import Status


def press_key(state: EmulatorState, key: int) -> EmulatorState:
    """Mark ``key`` as held down. Ids outside 0-15 are ignored."""
    if not 0 <= key < NUM_KEYS:
        return state
    return state.replace(keypad=state.keypad.at[key].set(True))


def release_key(state: EmulatorState, key: int) -> EmulatorState:
    """Mark ``key`` as released. Ids outside 0-15 are ignored."""
    if not 0 <= key < NUM_KEYS:
        return state
    return state.replace(keypad=state.keypad.at[key].set(False))


def is_waiting(state: EmulatorState) -> bool:
    """Whether the gate is in the AwaitingKey state."""
    return bool(state.waiting)


def resolve_wait(state: EmulatorState) -> EmulatorState:
    """Complete a pending FX0A if any key is pressed, otherwise report INPUT_HALT."""
    def _resume(state):
        key = jnp.astype(jnp.argmax(state.keypad), jnp.uint8)
        return state.replace(
            V=state.V.at[state.wait_register].set(key),
            waiting=jnp.zeros((), dtype=jnp.bool_),
        )

    def _halt(state):
        pending = 0xF00A | (jnp.astype(state.wait_register, jnp.uint16) << 8)
        return with_status(state, Status.INPUT_HALT).replace(fault=jnp.astype(pending, jnp.uint16))

    return jax.lax.cond(jnp.any(state.keypad), _resume, _halt, state)
