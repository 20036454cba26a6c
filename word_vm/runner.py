"""
Batch driver: run a list of image files on one machine.

The machine is reset before every image, so no run can observe memory,
registers or the running flag left behind by the previous one. A file
that fails to load is recorded and skipped; the batch carries on.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .cpu.regs import format_registers
from .emu import MachineConfig, StopReason, WordVM
from .loader import LoadError

log = logging.getLogger('word_vm.runner')


@dataclass
class RunResult:
    path: Path
    reason: Optional[StopReason] = None
    error: Optional[str] = None
    registers: List[int] = field(default_factory=list)
    cycles: int = 0
    trace: str = ''
    dump: str = ''

    @property
    def ok(self) -> bool:
        return self.error is None

    def report(self) -> str:
        if not self.ok:
            return f"Binary file: {self.path}\nLoad failed: {self.error}"
        return (f"Binary file: {self.path}\n"
                f"Stopped: {self.reason.value} after {self.cycles} cycles\n"
                + format_registers(self.registers))


def run_files(paths: Iterable[Union[str, Path]],
              config: Optional[MachineConfig] = None,
              vm: Optional[WordVM] = None,
              dump_words: int = 0) -> List[RunResult]:
    """Run each image in turn and collect one RunResult per path.

    dump_words > 0 captures a hex dump of that many words from $0000
    after each run, before the machine is reset for the next image.
    """
    vm = vm or WordVM(config)
    results = []

    for path in paths:
        path = Path(path)
        vm.reset()
        try:
            vm.load_file(path)
        except LoadError as e:
            log.error("Error opening binary file: %s", e)
            results.append(RunResult(path=path, error=str(e)))
            continue

        log.info("Running %s", path)
        reason = vm.run()
        results.append(RunResult(
            path=path,
            reason=reason,
            registers=vm.regs.signed(),
            cycles=vm.cycles,
            trace=vm.get_trace(),
            dump=vm.mem.hexdump(0, dump_words) if dump_words else '',
        ))

    vm.reset()
    return results
