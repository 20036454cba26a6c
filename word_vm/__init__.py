"""
Word VM — 16-bit Word Machine Simulator
========================================
Loads a headerless image of 16-bit words into a 64K-word memory and
executes it against eight general-purpose registers and a program
counter until a halt instruction is reached.

Architecture:
    ┌──────────┐    ┌──────────┐    ┌──────────┐    ┌────────────┐
    │  Image   │───>│  Loader  │───>│  Memory  │───>│  WordVM    │
    │  (.bin)  │    │ (+halt)  │    │ (64K wd) │    │ fetch/exec │
    └──────────┘    └──────────┘    └──────────┘    └────────────┘

    - cpu/decoder.py: field extraction, sign extension, opcode table
    - cpu/regs.py:    R0-R7 + PC
    - cpu/alu.py:     wrap-around word arithmetic
    - mem/memory.py:  flat 64K-word array
    - emu.py:         handlers, dispatcher, execution loop, trace
    - loader.py:      image reading, halt appending
    - assembler.py:   text <-> words for the six mnemonics
    - runner.py:      batch runs over several image files

Instruction set (opcode in bits 12-15):
    0 add  rd, rs1, rs2     1 dec  rd, rs1, #imm5    2 and rd, rs1, rs2
    3 xor  rd, rs1, rs2     4 load rd, #imm5         5 halt
Opcodes 6-15 are undefined and execute as no-ops.
"""

__version__ = "0.1.0"

from .cpu.decoder import (
    Opcode, HALT_WORD, WordVMError, IllegalOpcode,
    sign_extend, legacy_sign_extend, to_signed, decode,
)
from .cpu.regs import Registers, format_registers
from .mem.memory import Memory
from .loader import LoadError, read_image, load_image, words_from_bytes
from .emu import WordVM, MachineConfig, StopReason
from .assembler import AssemblerError, assemble, disassemble, words_to_bytes
from .runner import RunResult, run_files


def run_source(source: str, *, config: MachineConfig = None) -> WordVM:
    """Assemble source text, load it into a fresh machine and run it.

    Returns the halted machine for inspection.
    """
    vm = WordVM(config)
    vm.load(assemble(source))
    vm.run()
    return vm
