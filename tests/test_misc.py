"""Tests for miscellaneous instructions (Fxxx)."""

import pytest
from chipcore import (
    execute, execute_cycles, load_program, create_state, Status, MemWriteError,
    FONT_START, PROGRAM_START
)
from conftest import run_program


class TestTimers:
    """Test timer instructions."""

    def test_misc_timer_instructions(self, fresh_state):
        """FX15, FX07 and FX18 move values between VX and the timers."""
        state = execute(fresh_state, 0x6042)  # V0 = 0x42

        state = execute(state, 0xF015)  # DT = V0
        assert state.delay_timer == 0x42

        state = execute(state, 0xF107)  # V1 = DT
        assert state.V[1] == 0x42

        state = execute(state, 0xF118)  # ST = V1
        assert state.sound_timer == 0x42

    def test_timer_program(self):
        state, error = run_program([
            0x60, 0xAA,  # V0 = 0xAA
            0xF0, 0x15,  # DT = V0
            0xF1, 0x07,  # V1 = DT
            0xF1, 0x18,  # ST = V1
        ])

        assert error is None
        assert state.delay_timer == 0xAA
        assert state.V[1] == 0xAA
        assert state.sound_timer == 0xAA


class TestBCD:
    """Test binary-coded decimal conversion."""

    def test_misc_bcd_conversion(self, fresh_state):
        """FX33 - Store BCD of VX at I, I+1, I+2."""
        state = fresh_state.replace(V=fresh_state.V.at[0].set(123), I=0x300)

        state = execute(state, 0xF033)

        assert [int(b) for b in state.memory[0x300:0x303]] == [1, 2, 3]
        assert state.I == 0x300

    @pytest.mark.parametrize("value,digits", [
        (8, [0, 0, 8]),
        (54, [0, 5, 4]),
        (153, [1, 5, 3]),
        (0, [0, 0, 0]),
        (255, [2, 5, 5]),
    ])
    def test_bcd_program(self, value, digits):
        """FX33 overwrites three bytes inside the program."""
        state, error = run_program([
            0x12, 0x05,  # JP 0x205
            0xFF, 0xFF, 0xFF,  # BCD digits
            0x60, value,  # V0 = value
            0xA2, 0x02,  # LD I, 0x202
            0xF0, 0x33,  # LD B, V0
        ])

        assert error is None
        assert [int(b) for b in state.memory[0x202:0x205]] == digits

    def test_bcd_at_end_of_memory(self, fresh_state):
        """The last three bytes of memory are writable, one more is not."""
        state = execute(fresh_state.replace(I=0xFFD), 0xF033)
        assert state.status == Status.OK

        state = execute(fresh_state.replace(I=0xFFE), 0xF033)
        assert state.status == Status.MEM_WRITE


class TestFont:
    """Test font character location."""

    def test_misc_font_character(self, fresh_state):
        """FX29 - Set I to the glyph of VX."""
        state = execute(fresh_state, 0x600A)  # V0 = 0xA
        state = execute(state, 0xF029)

        assert state.I == FONT_START + 0xA * 5

    @pytest.mark.parametrize("digit", range(16))
    def test_font_all_characters(self, digit):
        state, error = run_program([0x60, digit, 0xF0, 0x29])

        assert error is None
        assert state.I == FONT_START + digit * 5

    def test_font_uses_low_nibble(self, fresh_state):
        state = fresh_state.replace(V=fresh_state.V.at[2].set(0x3C))
        state = execute(state, 0xF229)
        assert state.I == FONT_START + 0xC * 5


class TestMemoryOperations:
    """Test store/load register operations."""

    def test_store_load_keeps_index(self, fresh_state):
        """FX55/FX65 leave I unchanged by default."""
        state = fresh_state

        # Set up test data
        state = execute(state, 0x6001)  # V0 = 1
        state = execute(state, 0x6102)  # V1 = 2
        state = execute(state, 0x6203)  # V2 = 3
        state = execute(state, 0xA300)  # I = 0x300

        # Store registers
        state = execute(state, 0xF255)  # Store V0-V2
        assert [int(b) for b in state.memory[0x300:0x304]] == [1, 2, 3, 0]
        assert state.I == 0x300

        # Clear registers
        state = execute(state, 0x6000)  # V0 = 0
        state = execute(state, 0x6100)  # V1 = 0
        state = execute(state, 0x6200)  # V2 = 0

        # Load back
        state = execute(state, 0xF265)  # Load V0-V2
        assert [int(v) for v in state.V[:3]] == [1, 2, 3]
        assert state.I == 0x300

    def test_store_load_increment_index(self, legacy_state):
        """With the increment quirk I ends past the last register."""
        state = legacy_state

        state = execute(state, 0x6001)  # V0 = 1
        state = execute(state, 0x6102)  # V1 = 2
        state = execute(state, 0xA400)  # I = 0x400

        state = execute(state, 0xF155)  # Store V0-V1
        assert state.I == 0x400 + 2

        state = execute(state, 0xA400)  # I = 0x400
        state = execute(state, 0x6000)  # V0 = 0
        state = execute(state, 0x6100)  # V1 = 0

        state = execute(state, 0xF165)  # Load V0-V1
        assert state.V[0] == 1
        assert state.V[1] == 2
        assert state.I == 0x400 + 2

    def test_load_leaves_other_registers(self, fresh_state):
        """FX65 only writes V0 through VX."""
        state = fresh_state.replace(V=fresh_state.V.at[5].set(0x55), I=0x300)
        state = state.replace(memory=state.memory.at[0x300:0x310].set(0x11))

        state = execute(state, 0xF365)

        assert [int(v) for v in state.V[:6]] == [0x11, 0x11, 0x11, 0x11, 0, 0x55]

    def test_bulk_store_load_program(self):
        """Store ten registers, shuffle them, then read half of them back."""
        program = []
        for register in range(10):
            program += [0x60 + register, register]  # VX = X
        program += [
            0x12, 0x20,  # JP 0x220
            0xFF, 0xFF, 0xFF, 0xFF, 0xFF,  # scratch space
            0xFF, 0xFF, 0xFF, 0xFF, 0xFF,
            0xA2, 0x16,  # LD I, 0x216
            0xF9, 0x55,  # LD [I], V0-V9
            0x85, 0x00,  # V5 = V0
            0x86, 0x10,  # V6 = V1
            0x87, 0x20,  # V7 = V2
            0x88, 0x30,  # V8 = V3
            0x89, 0x40,  # V9 = V4
            0x6A, 0x05,  # VA = 5
            0xFA, 0x1E,  # I += VA (0x21B)
            0xF4, 0x65,  # LD V0-V4, [I]
        ]

        state, error = run_program(program)

        assert error is None
        assert [int(v) for v in state.V[:10]] == [5, 6, 7, 8, 9, 0, 1, 2, 3, 4]
        assert state.I == 0x21B


class TestMemoryProtection:
    """Writes below the program region or past memory fail."""

    @pytest.mark.parametrize("address,ok", [
        (0x000, False),
        (0x0A0, False),
        (FONT_START, False),
        (FONT_START + 0x28, False),
        (PROGRAM_START, True),
        (PROGRAM_START - 1, False),
        (4095, True),
        (4096, False),
    ])
    def test_store_boundary(self, address, ok):
        """F055 at every interesting address."""
        state = load_program(create_state(), bytes([0xF0, 0x55]))
        state = state.set_index(address)

        state, executed, error = execute_cycles(state, 1)

        if ok:
            assert error is None
            assert executed == 1
        else:
            assert isinstance(error, MemWriteError)
            assert error.raw == 0xF055
            assert executed == 0
            assert state.pc == PROGRAM_START

    def test_failed_store_changes_nothing(self, fresh_state):
        """A rejected FX55 writes no byte."""
        state = fresh_state.replace(V=fresh_state.V.at[0].set(0x99), I=0x1FF)
        before = state.memory

        state = execute(state, 0xF155)

        assert state.status == Status.MEM_WRITE
        assert (state.memory == before).all()

    def test_store_crossing_end_of_memory(self, fresh_state):
        """Sixteen registers do not fit at 0xFF8."""
        state = execute(fresh_state.replace(I=0xFF8), 0xFF55)
        assert state.status == Status.MEM_WRITE

    def test_load_from_reserved_region(self, fresh_state):
        """FX65 is checked like FX55."""
        state = execute(fresh_state.replace(I=FONT_START), 0xF065)
        assert state.status == Status.MEM_WRITE
        assert state.V[0] == 0


class TestWaitForKey:
    """Test FX0A."""

    def test_wait_for_key_blocking(self, fresh_state):
        """FX0A with no key enters the waiting state."""
        state = execute(fresh_state, 0xF30A)

        assert state.waiting
        assert state.wait_register == 3
        assert state.status == Status.INPUT_HALT
        assert state.pc == fresh_state.pc

    def test_wait_for_key_with_key_held(self, fresh_state):
        """FX0A completes at once when a key is already down."""
        state = fresh_state.replace(keypad=fresh_state.keypad.at[7].set(True))

        state = execute(state, 0xF00A)

        assert state.V[0] == 7
        assert not state.waiting
        assert state.status == Status.OK

    def test_lowest_key_wins(self, fresh_state):
        state = fresh_state.replace(keypad=fresh_state.keypad.at[9].set(True).at[4].set(True))
        state = execute(state, 0xF20A)
        assert state.V[2] == 4


class TestAddToIndex:
    """Test FX1E."""

    def test_add_to_index(self, fresh_state):
        """FX1E - Add VX to I register."""
        state = execute(fresh_state, 0x6010)  # V0 = 0x10
        state = execute(state, 0xA300)  # I = 0x300
        state = execute(state, 0xF01E)  # I += V0

        assert state.I == 0x310
        assert state.V[15] == 0

    def test_add_to_index_leaves_flag(self, fresh_state):
        """FX1E - Passing 0xFFF does not touch VF."""
        state = fresh_state.replace(V=fresh_state.V.at[15].set(0x5A))
        state = execute(state, 0x60FF)  # V0 = 0xFF
        state = execute(state, 0xAF80)  # I = 0xF80
        state = execute(state, 0xF01E)  # I += V0

        assert state.I == 0x107F
        assert state.V[15] == 0x5A

    def test_add_to_index_wraps_16_bits(self, fresh_state):
        state = fresh_state.replace(V=fresh_state.V.at[0].set(0x02), I=0xFFFF)
        state = execute(state, 0xF01E)
        assert state.I == 0x0001
