"""
Word VM Assembler / Disassembler

One instruction per line, `;` starts a comment:

    load r0, #5          ; r0 = 5
    add  r2, r0, r0      ; r2 = r0 + r0
    dec  r1, r2, #1      ; r1 = r2 - 1
    and  r3, r1, r2
    xor  r4, r3, r0
    halt
    .word $9000          ; raw word (e.g. an undefined opcode)

Numbers: $FF / 0xFF (hex), %1010 (binary), decimal, optionally negative.
Immediates are 5 bits: -16..15 signed, or 0..31 given as raw field bits.

There are no labels: with no branch instructions nothing can refer to
an address, so a single pass is enough.
"""

from __future__ import annotations
from typing import List
import re

from .cpu.decoder import (
    Opcode, MNEMONICS, WORD_MASK, WordVMError,
    OPCODE_SHIFT, DESTINATION_SHIFT, SOURCE1_SHIFT,
    decode, to_signed,
)

__all__ = ['AssemblerError', 'assemble', 'encode', 'disassemble',
           'words_to_bytes']


class AssemblerError(WordVMError):
    """Raised on assembly errors."""
    def __init__(self, message: str, line_num: int = 0, line_text: str = ""):
        self.line_num = line_num
        self.line_text = line_text
        super().__init__(f"Line {line_num}: {message}" if line_num else message)


OPCODES_BY_NAME = {name: op for op, name in MNEMONICS.items()}

# Operand shapes: R = register, I = immediate
OPERAND_FORMS = {
    Opcode.ADD:  'RRR',
    Opcode.DEC:  'RRI',
    Opcode.AND:  'RRR',
    Opcode.XOR:  'RRR',
    Opcode.LOAD: 'RI',
    Opcode.HALT: '',
}

# Bits each opcode ignores; a word with any of them set has no
# mnemonic spelling and disassembles to .word
_UNUSED_BITS = {
    Opcode.ADD:  0x0038,
    Opcode.DEC:  0x0020,
    Opcode.AND:  0x0038,
    Opcode.XOR:  0x0038,
    Opcode.LOAD: 0x01E0,
    Opcode.HALT: 0x0FFF,
}

_REGISTER_RE = re.compile(r'^[rR]([0-7])$')


# ──────────────────────────────────────────────
# Operand parsing
# ──────────────────────────────────────────────

def _parse_value(text: str, line_num: int) -> int:
    """Parse $FF, 0xFF, %1010, 123 or -3."""
    text = text.strip()
    if text.startswith('#'):
        text = text[1:].strip()

    negative = text.startswith('-')
    if negative:
        text = text[1:].strip()

    try:
        if text.startswith('$'):
            value = int(text[1:], 16)
        elif text.startswith('0x') or text.startswith('0X'):
            value = int(text, 16)
        elif text.startswith('%'):
            value = int(text[1:], 2)
        else:
            value = int(text, 10)
    except ValueError:
        raise AssemblerError(f"Bad number: '{text}'", line_num) from None

    return -value if negative else value


def _parse_register(text: str, line_num: int) -> int:
    m = _REGISTER_RE.match(text.strip())
    if not m:
        raise AssemblerError(f"Expected register r0-r7, got '{text.strip()}'",
                             line_num)
    return int(m.group(1))


def _parse_immediate(text: str, line_num: int) -> int:
    if not text.strip().startswith('#'):
        raise AssemblerError(f"Immediate must start with '#': '{text.strip()}'",
                             line_num)
    value = _parse_value(text, line_num)
    if not -16 <= value <= 31:
        raise AssemblerError(f"Immediate {value} out of 5-bit range", line_num)
    return value & 0x1F


# ──────────────────────────────────────────────
# Encoding
# ──────────────────────────────────────────────

def encode(op: Opcode, dst: int = 0, src1: int = 0, src2_or_imm: int = 0) -> int:
    """Pack fields into an instruction word."""
    return ((op << OPCODE_SHIFT)
            | ((dst & 0x7) << DESTINATION_SHIFT)
            | ((src1 & 0x7) << SOURCE1_SHIFT)
            | (src2_or_imm & 0x1F)) & WORD_MASK


def _assemble_line(mnemonic: str, operand_text: str, line_num: int) -> int:
    if mnemonic == '.word':
        value = _parse_value(operand_text, line_num)
        if not -0x8000 <= value <= WORD_MASK:
            raise AssemblerError(f".word value {value} out of range", line_num)
        return value & WORD_MASK

    op = OPCODES_BY_NAME.get(mnemonic)
    if op is None:
        raise AssemblerError(f"Unknown mnemonic: {mnemonic}", line_num)

    form = OPERAND_FORMS[op]
    parts = [p for p in (s.strip() for s in operand_text.split(',')) if p]
    if len(parts) != len(form):
        raise AssemblerError(
            f"{mnemonic} takes {len(form)} operand(s), got {len(parts)}", line_num)

    fields = []
    for kind, part in zip(form, parts):
        if kind == 'R':
            fields.append(_parse_register(part, line_num))
        else:
            fields.append(_parse_immediate(part, line_num))

    if op == Opcode.LOAD:
        return encode(op, fields[0], 0, fields[1])
    return encode(op, *fields)


def assemble(source: str) -> List[int]:
    """Assemble source text into a list of instruction words."""
    words = []
    for line_num, line in enumerate(source.split('\n'), 1):
        text = line.split(';', 1)[0].strip()
        if not text:
            continue
        mnemonic, *rest = text.split(None, 1)
        operand_text = rest[0] if rest else ''
        try:
            words.append(_assemble_line(mnemonic.lower(), operand_text, line_num))
        except AssemblerError as e:
            e.line_text = line
            raise
    return words


# ──────────────────────────────────────────────
# Disassembly
# ──────────────────────────────────────────────

def disassemble(word: int) -> str:
    """Render one word as assembler text (undefined words as .word)."""
    d = decode(word)
    try:
        op = Opcode(d.opcode)
    except ValueError:
        return f".word ${d.word:04X}"
    if d.word & _UNUSED_BITS[op]:
        return f".word ${d.word:04X}"

    name = MNEMONICS[op]
    if op == Opcode.HALT:
        return name
    if op == Opcode.LOAD:
        return f"{name} r{d.destination}, #{to_signed(d.immediate)}"
    if op == Opcode.DEC:
        return f"{name} r{d.destination}, r{d.source1}, #{to_signed(d.immediate)}"
    return f"{name} r{d.destination}, r{d.source1}, r{d.source2}"


def disassemble_listing(words: List[int], base_addr: int = 0) -> str:
    """Address + hex + mnemonic listing, one line per word."""
    return '\n'.join(f"${(base_addr + i) & WORD_MASK:04X}  {w:04X}  {disassemble(w)}"
                     for i, w in enumerate(words))


def words_to_bytes(words: List[int], byteorder: str = 'little') -> bytes:
    """Serialise words as an image file body."""
    return b''.join((w & WORD_MASK).to_bytes(2, byteorder) for w in words)
