"""
Word VM — Main Emulator Class

Integrates:
  - Register file (cpu/regs.py)
  - Flat 64K-word memory (mem/memory.py)
  - Instruction decoder + sign extension (cpu/decoder.py)
  - Word arithmetic (cpu/alu.py)

Execution model, one cycle per step():
  1. Fetch the word at PC
  2. PC += 1 (wrapping at $FFFF)
  3. Decode the opcode
  4. Dispatch to the handler; undefined opcodes are logged and skipped
  5. Stop once the halt handler has cleared the running flag

There is no instruction that writes PC, so a program runs strictly
linearly from the start address until it fetches a halt.

Termination reasons:
  - HALT:       opcode 5 executed
  - EXHAUSTED:  a full sweep of the address space without a halt
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Union

from .cpu import alu
from .cpu.decoder import (
    Opcode, IllegalOpcode, MNEMONICS, WordVMError,
    opcode, destination, source_reg1, source_reg2, immediate, lookup,
    sign_extend, legacy_sign_extend,
)
from .cpu.regs import Registers
from .loader import load_image, read_image
from .mem.memory import Memory, MEMORY_WORDS

log = logging.getLogger('word_vm.emu')


class StopReason(Enum):
    HALT = 'HALT'
    EXHAUSTED = 'EXHAUSTED'


@dataclass
class MachineConfig:
    """Per-machine options (CLI flags override the defaults)."""
    start_address: int = 0x0000
    byteorder: str = 'little'
    legacy_sext: bool = False
    trace: bool = False


class WordVM:
    """16-bit word machine: 8 registers, PC, 64K words of memory.

    Usage:
        vm = WordVM()
        vm.load_file('program.bin')
        reason = vm.run()
        print(vm.regs.signed())
    """

    def __init__(self, config: Optional[MachineConfig] = None):
        self.config = config or MachineConfig()

        self.regs = Registers()
        self.mem = Memory()
        self.running = True
        self.cycles = 0

        self._sext = legacy_sign_extend if self.config.legacy_sext else sign_extend

        self._trace = self.config.trace
        self._trace_output: List[str] = []

        self._dispatch = self._build_dispatch()

    # ══════════════════════════════════════════════
    # Loading
    # ══════════════════════════════════════════════

    def load(self, words: Sequence[int]) -> int:
        """Load an in-memory image at address 0 (halt appended if missing)."""
        return load_image(self.mem, words)

    def load_file(self, path: Union[str, Path]) -> int:
        """Read and load an image file. Raises LoadError on failure."""
        return self.load(read_image(path, self.config.byteorder))

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def step(self) -> Optional[StopReason]:
        """Execute one instruction. Returns StopReason.HALT once halted."""
        pc = self.regs.advance()
        instruction = self.mem.read(pc)
        self.cycles += 1

        self._emit(f"${pc:04X}: Instruction: {instruction:04X}")
        self.execute(instruction)

        if not self.running:
            return StopReason.HALT
        return None

    def run(self) -> StopReason:
        """Run from the start address until halt.

        A run that sweeps all 64K words without fetching a halt stops
        with EXHAUSTED; a loaded image always ends in a halt word.
        """
        self.regs.PC = self.config.start_address
        self.running = True
        self.cycles = 0

        for _ in range(MEMORY_WORDS):
            reason = self.step()
            if reason is not None:
                log.debug("Halted after %d cycles at PC=$%04X",
                          self.cycles, self.regs.PC)
                return reason

        log.warning("No halt within %d cycles, stopping", MEMORY_WORDS)
        return StopReason.EXHAUSTED

    def run_file(self, path: Union[str, Path]) -> StopReason:
        """reset() + load_file() + run()."""
        self.reset()
        self.load_file(path)
        return self.run()

    # ══════════════════════════════════════════════
    # Dispatch
    # ══════════════════════════════════════════════

    def execute(self, instruction: int) -> Optional[int]:
        """Dispatch one instruction word to its handler.

        Returns the handler's result, or None for an undefined opcode,
        which changes no state and does not stop the machine.
        """
        code = opcode(instruction)
        try:
            op = lookup(code)
        except IllegalOpcode as e:
            log.warning("%s (word $%04X), skipping", e, instruction)
            self._emit(f"  Unknown opcode: {code}")
            return None

        self._emit(f"  Opcode: {code} -- {MNEMONICS[op]}")
        result = self._dispatch[op](instruction)
        self._emit(f"  Result: {result}")
        return result

    def _build_dispatch(self) -> Dict[Opcode, Callable[[int], int]]:
        """Build opcode → handler dispatch table (one entry per Opcode)."""
        table = {
            Opcode.ADD:  self._op_add,
            Opcode.DEC:  self._op_dec,
            Opcode.AND:  self._op_and,
            Opcode.XOR:  self._op_xor,
            Opcode.LOAD: self._op_load,
            Opcode.HALT: self._op_halt,
        }
        missing = set(Opcode) - set(table)
        if missing:
            raise WordVMError(f"No handler for {sorted(missing)}")
        return table

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════
    # Handler signature: handler(instruction) -> result word

    def _source_pair(self, instruction: int):
        """Read both source registers, tracing them as the C tool did."""
        sr1 = source_reg1(instruction)
        sr2 = source_reg2(instruction)
        a = self.regs[sr1]
        b = self.regs[sr2]
        self._emit(f"  First operand: r{sr1} -- {a}")
        self._emit(f"  Second operand: r{sr2} -- {b}")
        return a, b

    def _op_add(self, instruction: int) -> int:
        a, b = self._source_pair(instruction)
        result = alu.add16(a, b)
        self.regs[destination(instruction)] = result
        return result

    def _op_dec(self, instruction: int) -> int:
        sr1 = source_reg1(instruction)
        a = self.regs[sr1]
        imm = immediate(instruction, self._sext)
        self._emit(f"  First operand: r{sr1} -- {a}")
        self._emit(f"  Immediate: {imm}")
        result = alu.sub16(a, imm)
        self.regs[destination(instruction)] = result
        return result

    def _op_and(self, instruction: int) -> int:
        a, b = self._source_pair(instruction)
        result = alu.and16(a, b)
        self.regs[destination(instruction)] = result
        return result

    def _op_xor(self, instruction: int) -> int:
        a, b = self._source_pair(instruction)
        result = alu.xor16(a, b)
        self.regs[destination(instruction)] = result
        return result

    def _op_load(self, instruction: int) -> int:
        result = immediate(instruction, self._sext)
        self.regs[destination(instruction)] = result
        return result

    def _op_halt(self, instruction: int) -> int:
        self.running = False
        self._emit("  Halted")
        return opcode(instruction)

    # ══════════════════════════════════════════════
    # Trace / Debug
    # ══════════════════════════════════════════════

    def _emit(self, line: str):
        if self._trace:
            self._trace_output.append(line)
        log.debug(line)

    def enable_trace(self, enable: bool = True):
        """Record per-cycle trace lines (readable via get_trace())."""
        self._trace = enable

    def get_trace(self) -> str:
        return '\n'.join(self._trace_output)

    def clear_trace(self):
        self._trace_output.clear()

    def reset(self):
        """Zero memory and registers and restore the running flag."""
        self.mem.clear()
        self.regs.reset()
        self.running = True
        self.cycles = 0
        self._trace_output.clear()
