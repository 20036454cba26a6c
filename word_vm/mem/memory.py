"""
Word VM — 64K-Word Flat Memory

The address space is exactly 65536 words ($0000–$FFFF), the same size
as the range of the 16-bit PC, so every address is valid: addresses
are masked rather than bounds-checked. There are no regions, no I/O
mapping and no write protection — programs and data share one array.
"""

from array import array
from typing import Dict, Iterable, List

from ..cpu.decoder import WORD_MASK

MEMORY_WORDS = 0x10000


class Memory:
    """64K word-addressable memory, zero-initialised."""

    def __init__(self):
        self._mem = array('H', bytes(MEMORY_WORDS * 2))

    def __len__(self) -> int:
        return MEMORY_WORDS

    # --- Core read/write ---

    def read(self, addr: int) -> int:
        return self._mem[addr & WORD_MASK]

    def write(self, addr: int, value: int):
        self._mem[addr & WORD_MASK] = value & WORD_MASK

    # --- Bulk load ---

    def load_words(self, words: Iterable[int], base_addr: int = 0) -> int:
        """Copy words into memory starting at base_addr (wrapping).

        Returns the number of words written.
        """
        count = 0
        for i, word in enumerate(words):
            self._mem[(base_addr + i) & WORD_MASK] = word & WORD_MASK
            count += 1
        return count

    def clear(self):
        """Zero the whole address space."""
        self._mem = array('H', bytes(MEMORY_WORDS * 2))

    # --- Snapshots ---

    def snapshot(self, start: int = 0x0000, end: int = 0xFFFF) -> List[int]:
        """Copy of words start..end inclusive."""
        return self._mem[start:end + 1].tolist()

    def diff_snapshots(self, snap_a: List[int], snap_b: List[int],
                       base_addr: int = 0x0000) -> Dict[int, tuple]:
        """Compare two snapshots, return {addr: (old, new)} for changes."""
        changes = {}
        for i in range(min(len(snap_a), len(snap_b))):
            if snap_a[i] != snap_b[i]:
                changes[base_addr + i] = (snap_a[i], snap_b[i])
        return changes

    # --- Hex dump ---

    def hexdump(self, start: int, length: int = 64) -> str:
        """Word-wise hex dump, eight words per line."""
        lines = []
        for offset in range(0, length, 8):
            addr = (start + offset) & WORD_MASK
            words = ' '.join(f'{self._mem[(addr + i) & WORD_MASK]:04X}'
                             for i in range(min(8, length - offset)))
            lines.append(f'{addr:04X}  {words}')
        return '\n'.join(lines)
