"""
Word VM — ALU Operations

Full-width word arithmetic. Results are truncated to 16 bits; carry,
borrow and signed overflow are not reported anywhere (there is no
condition-code register), wrapping is the defined result.
"""

from .decoder import WORD_MASK


def add16(a: int, b: int) -> int:
    """(a + b) mod 2^16"""
    return (a + b) & WORD_MASK


def sub16(a: int, b: int) -> int:
    """(a - b) mod 2^16 — 0 - 1 gives 0xFFFF."""
    return (a - b) & WORD_MASK


def and16(a: int, b: int) -> int:
    return (a & b) & WORD_MASK


def xor16(a: int, b: int) -> int:
    return (a ^ b) & WORD_MASK
