"""
Single-pass parser/assembler for the eight-register machine.

Turns source lines into one instruction per line and fills in the label table
along the way.

How a line is read:
  1. Lowercase it (mnemonics, registers and labels are case-insensitive).
  2. Strip the comment: cut at '//', then at ';', then at '#'.
  3. Split on whitespace. The first token is the mnemonic; the rest is glued
     back together and split on commas to get the operands, so
     "add r0, r1,r2" and "add r0 ,r1 , r2" read the same.
  4. A line whose first token is not a mnemonic must be a label declaration
     ("name:"). It records the current instruction index under that name and
     assembles to a Noop, so instruction indices always equal line indices.

Labels are recorded but not checked here: a jump to a name that is never
declared only fails when the jump executes.

Errors stop the parse at the first bad line (ParseError, with the 1-based
line number).
"""

from __future__ import annotations
import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Sequence, Tuple

from .instructions import (
    NUM_REGISTERS, WORD_MASK,
    Instruction, Noop, Debug, Zero, Mov,
    Add, Sub, And, Or, Xor,
    Inc, Dec, Not, Shl, Shr,
    Jz, Jnz, J,
)

__all__ = ['ParseError', 'Program', 'strip_comment', 'parse_line',
           'parse_lines', 'parse_source', 'split_lines', 'MNEMONICS']

log = logging.getLogger(__name__)


class ParseError(Exception):
    """Raised on the first malformed source line."""
    def __init__(self, message: str, line_num: int = 0, line_text: str = ""):
        self.line_num = line_num
        self.line_text = line_text
        super().__init__(f"Line {line_num}: {message}" if line_num else message)


# ──────────────────────────────────────────────
# Parsed program
# ──────────────────────────────────────────────

@dataclass
class Program:
    """Instruction sequence plus the label table built while parsing it."""
    instructions: List[Instruction] = field(default_factory=list)
    labels: Dict[str, int] = field(default_factory=dict)
    lines: List[str] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.instructions)

    def source_line(self, index: int) -> str:
        """Original text of the line at 0-based `index` (empty if unknown)."""
        if 0 <= index < len(self.lines):
            return self.lines[index]
        return ""


# ──────────────────────────────────────────────
# Operand shapes
# ──────────────────────────────────────────────

REG = 'reg'
IMM = 'imm'
LABEL = 'label'

# mnemonic -> (instruction class, operand kinds in order)
MNEMONICS: Dict[str, Tuple[Callable[..., Instruction], Tuple[str, ...]]] = {
    'zero':  (Zero,  (REG,)),
    'debug': (Debug, ()),
    'mov':   (Mov,   (REG, REG)),
    'add':   (Add,   (REG, REG, REG)),
    'sub':   (Sub,   (REG, REG, REG)),
    'and':   (And,   (REG, REG, REG)),
    'or':    (Or,    (REG, REG, REG)),
    'xor':   (Xor,   (REG, REG, REG)),
    'inc':   (Inc,   (REG,)),
    'dec':   (Dec,   (REG,)),
    'not':   (Not,   (REG,)),
    'shl':   (Shl,   (REG, IMM)),
    'shr':   (Shr,   (REG, IMM)),
    'jz':    (Jz,    (LABEL,)),
    'jnz':   (Jnz,   (LABEL,)),
    'j':     (J,     (LABEL,)),
}

COMMENT_MARKERS = ('//', ';', '#')

_REG_RE = re.compile(r'r([0-9]+)')
_IMM_RE = re.compile(r'[0-9]+')


class _Operands:
    """Strict reader over the comma-separated operands of one line."""

    def __init__(self, operands: Sequence[str], line_num: int, line_text: str):
        self._items = list(operands)
        self._pos = 0
        self._line_num = line_num
        self._line_text = line_text

    def _error(self, message: str) -> ParseError:
        return ParseError(message, self._line_num, self._line_text)

    def _next(self, kind: str) -> str:
        if self._pos >= len(self._items):
            raise self._error(f"missing {kind} operand")
        text = self._items[self._pos].strip()
        self._pos += 1
        return text

    def read(self, kind: str):
        if kind == REG:
            return self.reg()
        if kind == IMM:
            return self.imm()
        return self.label()

    def reg(self) -> int:
        text = self._next("register")
        m = _REG_RE.fullmatch(text)
        if not m:
            raise self._error(f"expected a register, got `{text}`")
        num = int(m.group(1))
        if num >= NUM_REGISTERS:
            raise self._error(f"r{num} does not exist")
        return num

    def imm(self) -> int:
        text = self._next("immediate")
        if not _IMM_RE.fullmatch(text):
            raise self._error(f"expected an unsigned integer, got `{text}`")
        value = int(text)
        if value > WORD_MASK:
            raise self._error(f"immediate `{text}` does not fit in 64 bits")
        return value

    def label(self) -> str:
        text = self._next("label")
        if not text:
            raise self._error("expected a label")
        return text

    def finish(self):
        if self._pos < len(self._items):
            extra = ",".join(self._items[self._pos:])
            raise self._error(f"garbage following instruction: `{extra}`")


# ──────────────────────────────────────────────
# Line parser
# ──────────────────────────────────────────────

def strip_comment(text: str) -> str:
    """Cut `text` at '//', then ';', then '#', whichever are still present."""
    for marker in COMMENT_MARKERS:
        pos = text.find(marker)
        if pos >= 0:
            text = text[:pos]
    return text


def parse_line(line: str, index: int, labels: Dict[str, int]) -> Instruction:
    """Parse the source line at 0-based `index`.

    A label declaration is recorded in `labels` (last declaration wins) and
    yields Noop.
    """
    line_num = index + 1
    code = strip_comment(line.lower())
    tokens = code.split()
    if not tokens:
        return Noop()

    mnemonic = tokens[0]
    operand_text = "".join(tokens[1:])
    operands = operand_text.split(",") if operand_text else []

    if mnemonic in MNEMONICS:
        cls, shape = MNEMONICS[mnemonic]
        reader = _Operands(operands, line_num, line)
        args = [reader.read(kind) for kind in shape]
        reader.finish()
        return cls(*args)

    name, colon, rest = mnemonic.partition(':')
    if colon and name and (rest or len(tokens) > 1):
        raise ParseError(f"garbage instruction `{code.strip()}` "
                         f"(a label line holds only `{name}:`)", line_num, line)
    if not colon or not name:
        raise ParseError(f"garbage instruction `{code.strip()}`", line_num, line)
    if name in labels:
        log.debug("Label '%s' redeclared on line %d (was index %d)",
                  name, line_num, labels[name])
    labels[name] = index
    return Noop()


def parse_lines(lines: Iterable[str]) -> Program:
    """Parse source lines into a Program, one instruction per line."""
    program = Program()
    for index, line in enumerate(lines):
        program.lines.append(line)
        program.instructions.append(parse_line(line, index, program.labels))
    log.info("Parsed %d lines, %d labels", len(program), len(program.labels))
    return program


def split_lines(source: str) -> List[str]:
    """Split on '\\n' only, dropping one trailing '\\r' per line.

    A final newline does not start an extra empty line. Form feeds, U+2028
    and the like stay inside their line.
    """
    lines = source.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def parse_source(source: str) -> Program:
    """Parse a whole source text."""
    return parse_lines(split_lines(source))
