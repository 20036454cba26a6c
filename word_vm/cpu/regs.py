"""
Word VM — Register File

Register model:
  R0..R7  — 16-bit general-purpose registers
  PC      — 16-bit program counter (start address 0 after reset)

Every write is masked to 16 bits, so PC can never leave the 64K-word
address space; incrementing past 0xFFFF wraps to 0x0000.
"""

from typing import List

from .decoder import WORD_MASK, to_signed

NUM_GPRS = 8
REGISTER_NAMES = [f'R{i}' for i in range(NUM_GPRS)] + ['PC']


class Registers:
    """Eight general-purpose registers plus the program counter."""

    __slots__ = ('_gpr', '_pc')

    def __init__(self):
        self._gpr: List[int] = [0] * NUM_GPRS
        self._pc: int = 0

    # --- General-purpose registers ---

    def read(self, index: int) -> int:
        if not 0 <= index < NUM_GPRS:
            raise IndexError(f"No register R{index}")
        return self._gpr[index]

    def write(self, index: int, value: int):
        if not 0 <= index < NUM_GPRS:
            raise IndexError(f"No register R{index}")
        self._gpr[index] = value & WORD_MASK

    def __getitem__(self, index: int) -> int:
        return self.read(index)

    def __setitem__(self, index: int, value: int):
        self.write(index, value)

    # --- Program counter ---

    @property
    def PC(self) -> int:
        return self._pc

    @PC.setter
    def PC(self, value: int):
        self._pc = value & WORD_MASK

    def advance(self) -> int:
        """Return the current PC and move it to the next word (wrapping)."""
        pc = self._pc
        self._pc = (pc + 1) & WORD_MASK
        return pc

    # --- Observation ---

    def snapshot(self) -> tuple:
        """Raw unsigned contents: (R0, ..., R7, PC)."""
        return tuple(self._gpr) + (self._pc,)

    def signed(self) -> List[int]:
        """All nine registers (R0..R7, PC) as signed 16-bit values."""
        return [to_signed(v) for v in self.snapshot()]

    def display(self) -> str:
        """One-line register dump for debugging."""
        gprs = ' '.join(f'R{i}={v:04X}' for i, v in enumerate(self._gpr))
        return f"PC={self._pc:04X} {gprs}"

    def reset(self):
        """Zero every register, PC included."""
        for i in range(NUM_GPRS):
            self._gpr[i] = 0
        self._pc = 0


def format_registers(values: List[int]) -> str:
    """Per-register report printed after a run ("Register N: value")."""
    return '\n'.join(f"Register {i}: {v}" for i, v in enumerate(values))
