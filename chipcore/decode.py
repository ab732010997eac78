"""CHIP-8 instruction decoding.

Every 16-bit word decodes to exactly one member of ``Op``. Words that match
no pattern decode to ``Op.UNKNOWN``, so handlers never see malformed input.
"""

from enum import IntEnum

import jax.numpy as jnp
from chex import dataclass


class Op(IntEnum):
    """Base CHIP-8 instruction set. The value is the dispatch table index."""
    UNKNOWN = 0
    CLS = 1          # 00E0
    RET = 2          # 00EE
    JP = 3           # 1NNN
    CALL = 4         # 2NNN
    SE_IMM = 5       # 3XNN
    SNE_IMM = 6      # 4XNN
    SE_REG = 7       # 5XY0
    LD_IMM = 8       # 6XNN
    ADD_IMM = 9      # 7XNN
    LD_REG = 10      # 8XY0
    OR = 11          # 8XY1
    AND = 12         # 8XY2
    XOR = 13         # 8XY3
    ADD_REG = 14     # 8XY4
    SUB = 15         # 8XY5
    SHR = 16         # 8XY6
    SUBN = 17        # 8XY7
    SHL = 18         # 8XYE
    SNE_REG = 19     # 9XY0
    LD_I = 20        # ANNN
    JP_V0 = 21       # BNNN
    RND = 22         # CXNN
    DRW = 23         # DXYN
    SKP = 24         # EX9E
    SKNP = 25        # EXA1
    LD_VX_DT = 26    # FX07
    LD_VX_K = 27     # FX0A
    LD_DT = 28       # FX15
    LD_ST = 29       # FX18
    ADD_I = 30       # FX1E
    LD_F = 31        # FX29
    LD_B = 32        # FX33
    LD_MEM_V = 33    # FX55
    LD_V_MEM = 34    # FX65


# (mask, value, op): a word matches when word & mask == value
INSTRUCTION_PATTERNS = (
    (0xFFFF, 0x00E0, Op.CLS),
    (0xFFFF, 0x00EE, Op.RET),
    (0xF000, 0x1000, Op.JP),
    (0xF000, 0x2000, Op.CALL),
    (0xF000, 0x3000, Op.SE_IMM),
    (0xF000, 0x4000, Op.SNE_IMM),
    (0xF00F, 0x5000, Op.SE_REG),
    (0xF000, 0x6000, Op.LD_IMM),
    (0xF000, 0x7000, Op.ADD_IMM),
    (0xF00F, 0x8000, Op.LD_REG),
    (0xF00F, 0x8001, Op.OR),
    (0xF00F, 0x8002, Op.AND),
    (0xF00F, 0x8003, Op.XOR),
    (0xF00F, 0x8004, Op.ADD_REG),
    (0xF00F, 0x8005, Op.SUB),
    (0xF00F, 0x8006, Op.SHR),
    (0xF00F, 0x8007, Op.SUBN),
    (0xF00F, 0x800E, Op.SHL),
    (0xF00F, 0x9000, Op.SNE_REG),
    (0xF000, 0xA000, Op.LD_I),
    (0xF000, 0xB000, Op.JP_V0),
    (0xF000, 0xC000, Op.RND),
    (0xF000, 0xD000, Op.DRW),
    (0xF0FF, 0xE09E, Op.SKP),
    (0xF0FF, 0xE0A1, Op.SKNP),
    (0xF0FF, 0xF007, Op.LD_VX_DT),
    (0xF0FF, 0xF00A, Op.LD_VX_K),
    (0xF0FF, 0xF015, Op.LD_DT),
    (0xF0FF, 0xF018, Op.LD_ST),
    (0xF0FF, 0xF01E, Op.ADD_I),
    (0xF0FF, 0xF029, Op.LD_F),
    (0xF0FF, 0xF033, Op.LD_B),
    (0xF0FF, 0xF055, Op.LD_MEM_V),
    (0xF0FF, 0xF065, Op.LD_V_MEM),
)

_MASKS = jnp.array([mask for mask, _, _ in INSTRUCTION_PATTERNS], dtype=jnp.uint16)
_VALUES = jnp.array([value for _, value, _ in INSTRUCTION_PATTERNS], dtype=jnp.uint16)
_OPS = jnp.array([op for _, _, op in INSTRUCTION_PATTERNS], dtype=jnp.int32)


@dataclass(frozen=True)
class DecodedInstruction:
    """Decoded CHIP-8 instruction with extracted operands."""
    raw: int
    op: int      # Op member
    opcode: int  # First nibble
    x: int       # Second nibble (VX register)
    y: int       # Third nibble (VY register)
    n: int       # Fourth nibble (4-bit immediate)
    nn: int      # Last byte (8-bit immediate)
    nnn: int     # Last 12 bits (12-bit address)


def classify(instruction: int) -> jnp.ndarray:
    """Map a 16-bit word to its ``Op`` index."""
    matches = (jnp.asarray(instruction, dtype=jnp.uint16) & _MASKS) == _VALUES
    return jnp.where(jnp.any(matches), _OPS[jnp.argmax(matches)], jnp.int32(Op.UNKNOWN))


def decode(instruction: int) -> DecodedInstruction:
    """Decode 16-bit instruction into components."""
    return DecodedInstruction(
        raw=instruction,
        op=classify(instruction),
        opcode=(instruction & 0xF000) >> 12,
        x=(instruction & 0x0F00) >> 8,
        y=(instruction & 0x00F0) >> 4,
        n=instruction & 0x000F,
        nn=instruction & 0x00FF,
        nnn=instruction & 0x0FFF
    )


def decode_bytes(high: int, low: int) -> DecodedInstruction:
    """Decode an instruction given as its two bytes in memory order."""
    return decode((jnp.astype(high, jnp.uint16) << 8) | jnp.astype(low, jnp.uint16))
