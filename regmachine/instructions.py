"""
Instruction set for the eight-register machine.

Each source line becomes exactly one instruction. The variant set is closed:
the parser only ever produces the classes listed in INSTRUCTION_TYPES, and the
machine keeps one handler per class in its dispatch table.

Register operands are plain indices (0-7). Labels are stored by name and are
only resolved to an instruction index when a jump executes.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Union

__all__ = [
    'NUM_REGISTERS', 'WORD_BITS', 'WORD_MASK', 'SIGN_BIT', 'Register', 'Label',
    'Instruction', 'INSTRUCTION_TYPES',
    'Noop', 'Debug', 'Zero', 'Mov', 'Add', 'Sub', 'And', 'Or', 'Xor',
    'Inc', 'Dec', 'Not', 'Shl', 'Shr', 'Jz', 'Jnz', 'J',
]


# ──────────────────────────────────────────────
# Machine word
# ──────────────────────────────────────────────

NUM_REGISTERS = 8
WORD_BITS = 64
WORD_MASK = (1 << WORD_BITS) - 1
SIGN_BIT = 1 << (WORD_BITS - 1)

Register = int
Label = str


# ──────────────────────────────────────────────
# Variants
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Noop:
    """Blank line, comment-only line or label declaration."""

    def __str__(self) -> str:
        return "noop"


@dataclass(frozen=True)
class Debug:
    """Breakpoint: dump state and wait for the operator."""

    def __str__(self) -> str:
        return "debug"


@dataclass(frozen=True)
class Zero:
    reg: Register

    def __str__(self) -> str:
        return f"zero r{self.reg}"


@dataclass(frozen=True)
class Mov:
    to: Register
    src: Register

    def __str__(self) -> str:
        return f"mov r{self.to}, r{self.src}"


@dataclass(frozen=True)
class _ThreeReg:
    """Shared shape of add/sub/and/or/xor: to <- op1 (op) op2."""
    to: Register
    op1: Register
    op2: Register

    def __str__(self) -> str:
        return f"{type(self).__name__.lower()} r{self.to}, r{self.op1}, r{self.op2}"


@dataclass(frozen=True)
class Add(_ThreeReg):
    pass


@dataclass(frozen=True)
class Sub(_ThreeReg):
    pass


@dataclass(frozen=True)
class And(_ThreeReg):
    pass


@dataclass(frozen=True)
class Or(_ThreeReg):
    pass


@dataclass(frozen=True)
class Xor(_ThreeReg):
    pass


@dataclass(frozen=True)
class _OneReg:
    reg: Register

    def __str__(self) -> str:
        return f"{type(self).__name__.lower()} r{self.reg}"


@dataclass(frozen=True)
class Inc(_OneReg):
    pass


@dataclass(frozen=True)
class Dec(_OneReg):
    pass


@dataclass(frozen=True)
class Not(_OneReg):
    pass


@dataclass(frozen=True)
class _Shift:
    reg: Register
    amount: int

    def __str__(self) -> str:
        return f"{type(self).__name__.lower()} r{self.reg}, {self.amount}"


@dataclass(frozen=True)
class Shl(_Shift):
    pass


@dataclass(frozen=True)
class Shr(_Shift):
    pass


@dataclass(frozen=True)
class _Jump:
    label: Label

    def __str__(self) -> str:
        return f"{type(self).__name__.lower()} {self.label}"


@dataclass(frozen=True)
class Jz(_Jump):
    """Jump if the zero flag is set."""


@dataclass(frozen=True)
class Jnz(_Jump):
    """Jump if the zero flag is clear."""


@dataclass(frozen=True)
class J(_Jump):
    """Unconditional jump."""


Instruction = Union[
    Noop, Debug, Zero, Mov,
    Add, Sub, And, Or, Xor,
    Inc, Dec, Not,
    Shl, Shr,
    Jz, Jnz, J,
]

INSTRUCTION_TYPES = (
    Noop, Debug, Zero, Mov,
    Add, Sub, And, Or, Xor,
    Inc, Dec, Not,
    Shl, Shr,
    Jz, Jnz, J,
)
