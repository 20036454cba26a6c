#!/usr/bin/env python3
"""
wvm — Word VM command-line interface

Usage:
    python wvm.py run IMAGE [IMAGE ...] [--byteorder little|big]
                                        [--legacy-sext] [--trace] [--dump N]
    python wvm.py asm SOURCE -o IMAGE [--byteorder little|big]
    python wvm.py disasm IMAGE [--byteorder little|big]

Common options: -v/--verbose (debug log, includes the execution trace),
-q/--quiet (errors only), --log-file PATH, --version.

Examples:
    python wvm.py asm programs/sc_add.s -o sc_add.bin
    python wvm.py run sc_add.bin sc_dec.bin --trace
    python wvm.py disasm sc_add.bin
"""

import argparse
import logging
import sys
from pathlib import Path

from word_vm import __version__
from word_vm.assembler import (AssemblerError, assemble, disassemble_listing,
                               words_to_bytes)
from word_vm.emu import MachineConfig
from word_vm.loader import BYTE_ORDERS, LoadError, read_image
from word_vm.runner import run_files

log = logging.getLogger('wvm')


def parse_int_arg(value: str) -> int:
    """Parse an integer argument that may be hex (0x...), $ prefix, or decimal."""
    value = value.strip()
    if value.startswith("0x") or value.startswith("0X"):
        return int(value, 16)
    if value.startswith("$"):
        return int(value[1:], 16)
    return int(value)


def setup_logging(args):
    """Configure logging from -v / -q / --log-file."""
    if args.quiet:
        level = logging.ERROR
    elif args.verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    handlers = []

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
    handlers.append(console)

    if args.log_file:
        log_path = Path(args.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
        handlers.append(file_handler)

    logging.basicConfig(
        level=logging.DEBUG if args.log_file else level,
        handlers=handlers,
        force=True
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wvm",
        description="16-bit word machine simulator",
    )
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Debug logging (includes per-cycle trace)")
    parser.add_argument("--quiet", "-q", action="store_true",
                        help="Only log errors")
    parser.add_argument("--log-file", help="Also write the full debug log here")
    parser.add_argument("--version", action="version",
                        version=f"wvm {__version__}")

    sub = parser.add_subparsers(dest="command", required=True)

    run_p = sub.add_parser("run", help="Run one or more binary images")
    run_p.add_argument("images", nargs="+", help="Image files, run in order")
    run_p.add_argument("--byteorder", choices=BYTE_ORDERS, default="little",
                       help="Word byte order in the images (default: little)")
    run_p.add_argument("--legacy-sext", action="store_true",
                       help="Use the historical partial sign extension")
    run_p.add_argument("--trace", action="store_true",
                       help="Print the per-cycle trace after each run")
    run_p.add_argument("--start", type=parse_int_arg, default=None,
                       help="Start address (hex, e.g. 0x0000)")
    run_p.add_argument("--dump", type=int, default=0, metavar="N",
                       help="Hex dump the first N memory words after each run")

    asm_p = sub.add_parser("asm", help="Assemble a source file into an image")
    asm_p.add_argument("source", help="Assembly source file")
    asm_p.add_argument("-o", "--output", required=True, help="Output image file")
    asm_p.add_argument("--byteorder", choices=BYTE_ORDERS, default="little")

    dis_p = sub.add_parser("disasm", help="Disassemble an image file")
    dis_p.add_argument("image", help="Image file")
    dis_p.add_argument("--byteorder", choices=BYTE_ORDERS, default="little")

    return parser


def cmd_run(args) -> int:
    config = MachineConfig(
        byteorder=args.byteorder,
        legacy_sext=args.legacy_sext,
        trace=args.trace,
    )
    if args.start is not None:
        config.start_address = args.start & 0xFFFF

    status = 0
    for result in run_files(args.images, config, dump_words=args.dump):
        print("***************")
        if result.trace:
            print(result.trace)
            print("----------------")
        print(result.report())
        if result.dump:
            print(result.dump)
        if not result.ok:
            status = 1
    return status


def cmd_asm(args) -> int:
    try:
        source = Path(args.source).read_text(encoding="utf-8")
    except OSError as e:
        log.error("Error reading %s: %s", args.source, e)
        return 1

    try:
        words = assemble(source)
    except AssemblerError as e:
        log.error("%s: %s", args.source, e)
        return 1

    try:
        Path(args.output).write_bytes(words_to_bytes(words, args.byteorder))
    except OSError as e:
        log.error("Error writing %s: %s", args.output, e)
        return 1
    log.info("Wrote %d words to %s", len(words), args.output)
    return 0


def cmd_disasm(args) -> int:
    try:
        words = read_image(args.image, args.byteorder)
    except LoadError as e:
        log.error("%s", e)
        return 1
    print(disassemble_listing(words))
    return 0


COMMANDS = {
    "run": cmd_run,
    "asm": cmd_asm,
    "disasm": cmd_disasm,
}


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args)
    return COMMANDS[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
