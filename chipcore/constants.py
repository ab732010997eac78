"""CHIP-8 memory layout and machine constants."""

import jax.numpy as jnp

# Memory layout
MEMORY_SIZE = 4096
DISPLAY_START = 0x000
DISPLAY_SIZE = 0x100
FONT_START = 0x100
PROGRAM_START = 0x200
MAX_PROGRAM_SIZE = MEMORY_SIZE - PROGRAM_START
LAST_INSTRUCTION_ADDRESS = MEMORY_SIZE - 2
ADDRESS_MASK = 0xFFF

# Display
SCREEN_WIDTH = 64
SCREEN_HEIGHT = 32
ROW_BYTES = SCREEN_WIDTH // 8
MAX_SPRITE_HEIGHT = 15

# Registers, stack and input
NUM_REGISTERS = 16
FLAG_REGISTER = 0xF
STACK_SIZE = 16
NUM_KEYS = 16

FONT_GLYPH_SIZE = 5
FONT_DATA = jnp.array([
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
], dtype=jnp.uint8)

# Keypad labels
KEY_0, KEY_1, KEY_2, KEY_3 = 0x0, 0x1, 0x2, 0x3
KEY_4, KEY_5, KEY_6, KEY_7 = 0x4, 0x5, 0x6, 0x7
KEY_8, KEY_9, KEY_A, KEY_B = 0x8, 0x9, 0xA, 0xB
KEY_C, KEY_D, KEY_E, KEY_F = 0xC, 0xD, 0xE, 0xF
