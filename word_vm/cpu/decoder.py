"""
Word VM — Instruction Decoder + Sign Extension

Every instruction is one 16-bit word, decoded positionally:

  15  12 11  9 8   6 5   3 2   0
  ┌─────┬─────┬─────┬─────┬─────┐
  │ op  │ dst │ sr1 │  -  │ sr2 │
  └─────┴─────┴─────┴─────┴─────┘
                    └── imm5 ───┘   (bits 0-4, opcodes that take an immediate)

The immediate overlaps source register 2; which one an instruction uses
is decided by its opcode. All extractors are total over 0x0000–0xFFFF.
"""

from enum import IntEnum
from typing import NamedTuple

WORD_MASK = 0xFFFF
WORD_BITS = 16

OPCODE_SHIFT = 12
DESTINATION_SHIFT = 9
SOURCE1_SHIFT = 6
IMMEDIATE_BITS = 5

# Canonical terminator: opcode 5, every other field zero
HALT_WORD = 0x5000


class Opcode(IntEnum):
    ADD = 0
    DEC = 1
    AND = 2
    XOR = 3
    LOAD = 4
    HALT = 5


# Opcode -> mnemonic, as printed in traces and accepted by the assembler
MNEMONICS = {
    Opcode.ADD:  'add',
    Opcode.DEC:  'dec',
    Opcode.AND:  'and',
    Opcode.XOR:  'xor',
    Opcode.LOAD: 'load',
    Opcode.HALT: 'halt',
}

# Opcodes that read bits 0-4 as a signed immediate instead of sr2
IMMEDIATE_OPCODES = frozenset({Opcode.DEC, Opcode.LOAD})


class WordVMError(Exception):
    """Base class for all word VM errors."""
    pass


class IllegalOpcode(WordVMError):
    """Raised when an undefined opcode (6-15) is looked up."""
    def __init__(self, opcode: int):
        self.opcode = opcode
        super().__init__(f"Unknown opcode: {opcode}")


# ══════════════════════════════════════════════
# Sign extension
# ══════════════════════════════════════════════

def sign_extend(value: int, bits: int) -> int:
    """Sign-extend a *bits*-wide two's-complement field to a full word.

    If bit (bits-1) is set, every bit from *bits* through 15 is filled
    with ones; otherwise the value is returned unchanged.
    """
    value &= (1 << bits) - 1
    if (value >> (bits - 1)) & 1:
        value |= WORD_MASK & ~((1 << bits) - 1)
    return value


def legacy_sign_extend(value: int, bits: int) -> int:
    """Historical partial extension: only ORs 0xFF above the field.

    For a 5-bit field this sets bits 5-12 and leaves 13-15 clear, so
    sext(0b11111) == 0x1FFF instead of 0xFFFF. Kept for compatibility
    runs against images produced with the old tool chain.
    """
    value &= (1 << bits) - 1
    if (value >> (bits - 1)) & 1:
        value |= (0xFF << bits) & WORD_MASK
    return value


def to_signed(word: int) -> int:
    """Interpret a 16-bit word as a signed integer."""
    word &= WORD_MASK
    return word - 0x10000 if word & 0x8000 else word


# ══════════════════════════════════════════════
# Field extraction
# ══════════════════════════════════════════════

def opcode(instruction: int) -> int:
    return (instruction >> OPCODE_SHIFT) & 0xF


def destination(instruction: int) -> int:
    return (instruction >> DESTINATION_SHIFT) & 0x7


def source_reg1(instruction: int) -> int:
    return (instruction >> SOURCE1_SHIFT) & 0x7


def source_reg2(instruction: int) -> int:
    return instruction & 0x7


def raw_immediate(instruction: int) -> int:
    """Low 5 bits, not yet sign-extended."""
    return instruction & 0x1F


def immediate(instruction: int, extend=sign_extend) -> int:
    """5-bit immediate, sign-extended to a full word."""
    return extend(raw_immediate(instruction), IMMEDIATE_BITS)


class DecodedInstruction(NamedTuple):
    word: int
    opcode: int
    destination: int
    source1: int
    source2: int
    immediate: int


def decode(instruction: int) -> DecodedInstruction:
    """Split a word into all of its fields at once (for tracing/disassembly)."""
    instruction &= WORD_MASK
    return DecodedInstruction(
        word=instruction,
        opcode=opcode(instruction),
        destination=destination(instruction),
        source1=source_reg1(instruction),
        source2=source_reg2(instruction),
        immediate=immediate(instruction),
    )


def lookup(code: int) -> Opcode:
    """Map a 4-bit opcode value to its Opcode member.

    Raises IllegalOpcode for the undefined values 6-15.
    """
    try:
        return Opcode(code)
    except ValueError:
        raise IllegalOpcode(code) from None
