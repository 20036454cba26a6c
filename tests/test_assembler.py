"""
Assembler tests — encodings are checked against the hand-encoded
words used in test_emulator_core.py.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pathlib import Path

import pytest
from word_vm import run_source
from word_vm.assembler import (AssemblerError, assemble, disassemble,
                               disassemble_listing, encode, words_to_bytes)
from word_vm.cpu.decoder import HALT_WORD, Opcode

PROGRAMS = Path(__file__).resolve().parent.parent / 'programs'


class TestEncoding:

    def test_instructions(self):
        cases = [
            ("add r3, r1, r2",   0x0642),
            ("add r2, r0, r0",   0x0400),
            ("dec r1, r0, #1",   0x1201),
            ("dec r2, r1, #-3",  0x145D),
            ("and r3, r1, r2",   0x2642),
            ("xor r3, r1, r2",   0x3642),
            ("load r1, #3",      0x4203),
            ("load r0, #-1",     0x401F),
            ("load r5, #$10",    0x4A10),
            ("halt",             HALT_WORD),
            (".word $9E3F",      0x9E3F),
            (".word 0x9000",     0x9000),
            (".word -1",         0xFFFF),
        ]
        for text, expected in cases:
            result = assemble(text)
            assert result == [expected], f"{text}: expected {expected:04X}, got {result}"

    def test_case_whitespace_comments(self):
        source = """
            ; header comment
            LOAD\tR1, #%11     ; binary immediate

            Halt
        """
        assert assemble(source) == [0x4203, HALT_WORD]

    def test_encode(self):
        assert encode(Opcode.LOAD, 1, 0, 3) == 0x4203
        assert encode(Opcode.HALT) == HALT_WORD
        assert encode(Opcode.DEC, 1, 0, -1) == 0x121F

    def test_words_to_bytes(self):
        assert words_to_bytes([0x4203]) == b'\x03\x42'
        assert words_to_bytes([0x4203], 'big') == b'\x42\x03'


class TestErrors:

    @pytest.mark.parametrize("text", [
        "jmp r1",               # no such mnemonic
        "add r1, r2",           # too few operands
        "halt r0",              # too many operands
        "add r8, r0, r0",       # no R8
        "load r1, 3",           # immediate needs '#'
        "load r1, #32",         # 5-bit range
        "dec r1, r0, #-17",
        "load r1, #abc",
        ".word 0x10000",
    ])
    def test_rejected(self, text):
        with pytest.raises(AssemblerError):
            assemble(text)

    def test_line_number(self):
        with pytest.raises(AssemblerError) as exc:
            assemble("load r1, #1\n\nbogus r1")
        assert exc.value.line_num == 3
        assert exc.value.line_text == "bogus r1"
        assert str(exc.value).startswith("Line 3:")


class TestDisassembly:

    def test_mnemonics(self):
        assert disassemble(0x0642) == "add r3, r1, r2"
        assert disassemble(0x145D) == "dec r2, r1, #-3"
        assert disassemble(0x4203) == "load r1, #3"
        assert disassemble(HALT_WORD) == "halt"

    def test_undefined_and_nonstandard_words(self):
        assert disassemble(0x9E3F) == ".word $9E3F"
        assert disassemble(0x5001) == ".word $5001"
        assert disassemble(0x43E3) == ".word $43E3"

    def test_reassembles(self):
        for word in (0x0642, 0x145D, 0x2642, 0x3642, 0x401F, HALT_WORD,
                     0x9E3F, 0x43E3):
            assert assemble(disassemble(word)) == [word]

    def test_listing(self):
        assert disassemble_listing([0x4005, 0x0400]) == (
            "$0000  4005  load r0, #5\n"
            "$0001  0400  add r2, r0, r0")


class TestSamplePrograms:
    """The programs/ directory mirrors the original sc_*.bin test images."""

    def _run(self, name):
        return run_source((PROGRAMS / name).read_text())

    def test_sc_add(self):
        assert self._run('sc_add.s').regs.signed()[2] == 10

    def test_sc_and(self):
        assert self._run('sc_and.s').regs.signed()[2] == 8

    def test_sc_dec(self):
        regs = self._run('sc_dec.s').regs.signed()
        assert regs[1] == -1
        assert regs[2] == 2

    def test_sc_xor(self):
        assert self._run('sc_xor.s').regs.signed()[2] == 6

    def test_complex(self):
        regs = self._run('complex.s').regs.signed()
        assert regs[:7] == [7, -2, 5, 2, 6, -9, -18]
