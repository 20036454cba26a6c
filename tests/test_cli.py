"""
Command-line interface tests (wvm asm / run / disasm).
"""
import logging
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from wvm import main, parse_int_arg


@pytest.fixture(autouse=True)
def _restore_logging():
    """main() reconfigures the root logger; put it back after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def add_source(tmp_path):
    src = tmp_path / 'sc_add.s'
    src.write_text("load r0, #5\nadd r2, r0, r0\n")
    return src


def test_parse_int_arg():
    assert parse_int_arg("0x10") == 16
    assert parse_int_arg("$FF") == 255
    assert parse_int_arg("42") == 42


def test_asm_then_run(tmp_path, add_source, capsys):
    image = tmp_path / 'sc_add.bin'
    assert main(['asm', str(add_source), '-o', str(image)]) == 0
    assert image.read_bytes() == b'\x05\x40\x00\x04'

    assert main(['-q', 'run', str(image)]) == 0
    out = capsys.readouterr().out
    assert "***************" in out
    assert f"Binary file: {image}" in out
    assert "Register 2: 10" in out
    assert "Register 8: 3" in out


def test_run_trace_and_dump(tmp_path, add_source, capsys):
    image = tmp_path / 'sc_add.bin'
    main(['asm', str(add_source), '-o', str(image)])
    capsys.readouterr()

    assert main(['-q', 'run', '--trace', '--dump', '3', str(image)]) == 0
    out = capsys.readouterr().out
    assert "Opcode: 0 -- add" in out
    assert "Second operand: r0 -- 5" in out
    assert "0000  4005 0400 5000" in out


def test_run_big_endian(tmp_path, capsys):
    image = tmp_path / 'be.bin'
    image.write_bytes(b'\x42\x03')
    assert main(['-q', 'run', '--byteorder', 'big', str(image)]) == 0
    assert "Register 1: 3" in capsys.readouterr().out


def test_run_legacy_sext(tmp_path, capsys):
    image = tmp_path / 'neg.bin'
    image.write_bytes(b'\x1f\x40')  # load r0, #-1
    assert main(['-q', 'run', '--legacy-sext', str(image)]) == 0
    assert "Register 0: 8191" in capsys.readouterr().out


def test_run_missing_file_continues(tmp_path, capsys):
    good = tmp_path / 'good.bin'
    good.write_bytes(b'\x03\x42')
    assert main(['-q', 'run', str(tmp_path / 'missing.bin'), str(good)]) == 1
    out = capsys.readouterr().out
    assert "Load failed" in out
    assert "Register 1: 3" in out


def test_asm_error(tmp_path):
    src = tmp_path / 'bad.s'
    src.write_text("frobnicate r1\n")
    assert main(['-q', 'asm', str(src), '-o', str(tmp_path / 'out.bin')]) == 1
    assert not (tmp_path / 'out.bin').exists()


def test_asm_missing_source(tmp_path):
    assert main(['-q', 'asm', str(tmp_path / 'nope.s'),
                 '-o', str(tmp_path / 'out.bin')]) == 1


def test_asm_unwritable_output(tmp_path, add_source):
    out = tmp_path / 'nodir' / 'x.bin'
    assert main(['-q', 'asm', str(add_source), '-o', str(out)]) == 1
    assert not out.exists()


def test_run_bad_start_is_usage_error(tmp_path):
    image = tmp_path / 'p.bin'
    image.write_bytes(b'\x03\x42')
    with pytest.raises(SystemExit) as exc:
        main(['-q', 'run', '--start', 'zz', str(image)])
    assert exc.value.code == 2


def test_run_start_zero(tmp_path, capsys):
    image = tmp_path / 'p.bin'
    image.write_bytes(b'\x03\x42')
    assert main(['-q', 'run', '--start', '$0', str(image)]) == 0
    assert "Register 1: 3" in capsys.readouterr().out


def test_disasm(tmp_path, capsys):
    image = tmp_path / 'p.bin'
    image.write_bytes(b'\x05\x40\x00\x04\x00\x90')
    assert main(['disasm', str(image)]) == 0
    assert capsys.readouterr().out.splitlines() == [
        "$0000  4005  load r0, #5",
        "$0001  0400  add r2, r0, r0",
        "$0002  9000  .word $9000",
    ]


def test_disasm_missing(tmp_path):
    assert main(['-q', 'disasm', str(tmp_path / 'nope.bin')]) == 1


def test_log_file(tmp_path, add_source):
    log_path = tmp_path / 'logs' / 'wvm.log'
    image = tmp_path / 'sc_add.bin'
    main(['-q', '--log-file', str(log_path), 'asm', str(add_source), '-o', str(image)])
    main(['-q', '--log-file', str(log_path), 'run', str(image)])
    for handler in logging.getLogger().handlers:
        handler.flush()
    text = log_path.read_text()
    assert "Wrote 2 words" in text
    assert "Opcode: 4 -- load" in text


def test_version(capsys):
    with pytest.raises(SystemExit) as exc:
        main(['--version'])
    assert exc.value.code == 0
    assert "wvm" in capsys.readouterr().out
