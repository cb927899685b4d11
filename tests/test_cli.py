"""
End-to-end tests for the regrun command line.

Runs main() in-process against programs written to tmp_path and checks
the printed dump and the exit code.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import io

import pytest
from regrun import main


def _write(tmp_path, text: str) -> str:
    path = tmp_path / "prog.asm"
    path.write_text(text, encoding="utf-8")
    return str(path)


def _reg_line(out: str, reg: int) -> list:
    """Row for `reg` in the last dump printed (the Finished one)."""
    for line in reversed(out.splitlines()):
        if line.startswith(f"R{reg}:"):
            return line.split()
    raise AssertionError(f"R{reg} not in output")


class TestRun:
    def test_finished_dump(self, tmp_path, capsys):
        src = _write(tmp_path, "loop:\n  inc r1\n  dec r0\n  jnz loop\n")
        assert main([src, "r0=3"]) == 0
        out = capsys.readouterr().out
        assert out.splitlines()[0] == "Finished:"
        assert "Zero: true" in out
        assert _reg_line(out, 1) == ["R1:", "3", "3", "0x0000000000000003"]

    def test_overrides_before_execution(self, tmp_path, capsys):
        src = _write(tmp_path, "// nothing\n\n")
        assert main([src, "r3=5", "R4=-1"]) == 0
        out = capsys.readouterr().out
        assert _reg_line(out, 3) == ["R3:", "5", "5", "0x0000000000000005"]
        assert _reg_line(out, 4) == ["R4:", "18446744073709551615", "-1", "0xFFFFFFFFFFFFFFFF"]
        assert "Zero: false" in out

    def test_listing_does_not_execute(self, tmp_path, capsys):
        src = _write(tmp_path, "top:\nj top\n")
        assert main([src, "--listing"]) == 0
        out = capsys.readouterr().out
        assert "2  j top" in out
        assert "Finished:" not in out

    def test_debug_breakpoint_reads_stdin(self, tmp_path, capsys, monkeypatch):
        monkeypatch.setattr(sys, "stdin", io.StringIO("\n"))
        src = _write(tmp_path, "inc r0\ndebug\ninc r0\n")
        assert main([src]) == 0
        out = capsys.readouterr().out
        assert "Debug: line 2" in out
        debug_dump, finished_dump = out.split("Finished:")
        assert _reg_line(debug_dump, 0)[1] == "1"
        assert _reg_line(finished_dump, 0)[1] == "2"

    def test_only_newline_breaks_lines(self, tmp_path, capsys):
        path = tmp_path / "prog.asm"
        path.write_bytes("inc r0 ; a\rb\x0cc\u2028d\r\nloop:\r\ninc r1\n".encode("utf-8"))
        assert main([str(path), "--listing"]) == 0
        out = capsys.readouterr().out
        assert ["loop", "->", "line", "2"] in [l.split() for l in out.splitlines()]
        assert "3  inc r1" in out

    def test_log_file(self, tmp_path, capsys):
        src = _write(tmp_path, "inc r0\n")
        log_path = tmp_path / "logs" / "run.log"
        assert main([src, "--trace", "--log-file", str(log_path)]) == 0
        text = log_path.read_text(encoding="utf-8")
        assert "Parsed 1 lines" in text
        assert "inc r0" in text


class TestErrors:
    def _fails(self, argv, capsys, expected: str):
        assert main(argv) == 1
        captured = capsys.readouterr()
        assert captured.err.startswith("Error:")
        assert expected in captured.err
        assert "Finished:" not in captured.out

    def test_missing_file(self, tmp_path, capsys):
        self._fails([str(tmp_path / "nope.asm")], capsys, "File not found")

    def test_parse_error(self, tmp_path, capsys):
        src = _write(tmp_path, "inc r0\nfrobnicate r1\n")
        self._fails([src], capsys, "Line 2: garbage instruction")

    def test_register_out_of_range(self, tmp_path, capsys):
        src = _write(tmp_path, "inc r8\n")
        self._fails([src], capsys, "r8 does not exist")

    def test_unknown_label(self, tmp_path, capsys):
        src = _write(tmp_path, "j missing\n")
        self._fails([src], capsys, "unknown label `missing` on line 1")

    def test_bad_override(self, tmp_path, capsys):
        src = _write(tmp_path, "inc r0\n")
        self._fails([src, "r0:5"], capsys, "Unable to parse arg: `r0:5`")

    def test_override_checked_before_source(self, tmp_path, capsys):
        self._fails([str(tmp_path / "nope.asm"), "r9=1"], capsys, "r9 does not exist")

    def test_debug_with_closed_stdin(self, tmp_path, capsys, monkeypatch):
        monkeypatch.setattr(sys, "stdin", io.StringIO(""))
        src = _write(tmp_path, "debug\n")
        self._fails([src], capsys, "Did you close stdin?")

    def test_no_source_argument(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code == 1
        err = capsys.readouterr().err
        assert err.startswith("Error:")
        assert "source" in err

    def test_unknown_option(self, tmp_path, capsys):
        src = _write(tmp_path, "inc r0\n")
        with pytest.raises(SystemExit) as exc:
            main([src, "--bogus"])
        assert exc.value.code == 1
        assert capsys.readouterr().err.startswith("Error:")

    def test_version_still_exits_zero(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["--version"])
        assert exc.value.code == 0
