"""
Execution engine for the eight-register machine.

State:
  R0-R7  64-bit unsigned registers, arithmetic wraps modulo 2**64
  Z      zero flag, recomputed by add/sub/inc/dec/and/or/xor/not only

Execution model:
  1. Fetch the instruction at PC
  2. Look up its handler in the dispatch table (one per instruction class)
  3. The handler updates registers/flag and returns the next PC
  4. Stop when PC == number of instructions (there is no halt instruction)

Jump labels are resolved when the jump executes, so forward references work
and an undeclared label only fails if the jump is actually taken.

Shifts by 64 or more bits produce 0.
"""

from __future__ import annotations
import logging
from typing import Callable, Dict, List, Optional

from rich.console import Console

from . import display
from .instructions import (
    NUM_REGISTERS, WORD_BITS, WORD_MASK, SIGN_BIT,
    Noop, Debug, Zero, Mov,
    Add, Sub, And, Or, Xor,
    Inc, Dec, Not, Shl, Shr,
    Jz, Jnz, J,
)
from .parser import Program

__all__ = ['MachineState', 'Machine', 'ExecutionError', 'DebugInputError']

log = logging.getLogger(__name__)


class ExecutionError(Exception):
    """Raised when an executing instruction cannot complete (unknown label)."""
    def __init__(self, message: str, line_num: int = 0):
        self.line_num = line_num
        super().__init__(message)


class DebugInputError(Exception):
    """Raised when a debug breakpoint cannot read operator input."""


# ──────────────────────────────────────────────
# Register file + zero flag
# ──────────────────────────────────────────────

class MachineState:
    """Register file and zero flag.

    Registers are indexed by number; every write is masked to 64 bits.
    """

    __slots__ = ('registers', 'zero')

    def __init__(self, registers: Optional[List[int]] = None, zero: bool = False):
        self.registers: List[int] = [0] * NUM_REGISTERS
        if registers is not None:
            if len(registers) != NUM_REGISTERS:
                raise ValueError(f"expected {NUM_REGISTERS} registers, got {len(registers)}")
            for reg, value in enumerate(registers):
                self[reg] = value
        self.zero: bool = zero

    @classmethod
    def from_overrides(cls, overrides: Dict[int, int]) -> MachineState:
        """Fresh state with the given register values applied."""
        state = cls()
        for reg, value in overrides.items():
            state[reg] = value
        return state

    def __getitem__(self, reg: int) -> int:
        return self.registers[reg]

    def __setitem__(self, reg: int, value: int):
        self.registers[reg] = value & WORD_MASK

    def write_with_zero(self, reg: int, value: int):
        """Write a register and set Z iff the stored value is zero."""
        self[reg] = value
        self.zero = self.registers[reg] == 0

    def signed(self, reg: int) -> int:
        """Two's-complement reading of a register."""
        value = self.registers[reg]
        return value - (1 << WORD_BITS) if value & SIGN_BIT else value

    def __eq__(self, other) -> bool:
        if not isinstance(other, MachineState):
            return NotImplemented
        return self.registers == other.registers and self.zero == other.zero

    def __repr__(self) -> str:
        regs = " ".join(f"R{i}={v:X}" for i, v in enumerate(self.registers))
        return f"MachineState({regs} Z={int(self.zero)})"


# ──────────────────────────────────────────────
# The machine
# ──────────────────────────────────────────────

class Machine:
    """Fetch-execute loop over a parsed Program.

    Usage:
        machine = Machine(parse_source(text))
        state = machine.run()
    """

    def __init__(self, program: Program, state: Optional[MachineState] = None, *,
                 console: Optional[Console] = None,
                 debug_input: Callable[[], str] = input,
                 trace: bool = False):
        self.program = program
        self.state = state if state is not None else MachineState()
        self.pc = 0
        self.steps = 0
        self.console = console if console is not None else display.make_console()
        self._debug_input = debug_input
        self._trace = trace
        self._dispatch = self._build_dispatch()

    @property
    def finished(self) -> bool:
        return self.pc == len(self.program)

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def step(self) -> int:
        """Execute the instruction at PC and return the new PC."""
        index = self.pc
        instr = self.program.instructions[index]
        next_pc = self._dispatch[type(instr)](instr, index)

        if self._trace:
            log.debug("%4d: %-24s -> %d  Z=%d", index + 1,
                      self.program.source_line(index).strip(), next_pc,
                      int(self.state.zero))

        self.pc = next_pc
        self.steps += 1
        return next_pc

    def run(self) -> MachineState:
        """Run from the current PC until it falls off the end of the program."""
        log.info("Running %d instructions", len(self.program))
        while not self.finished:
            self.step()
        log.info("Finished after %d steps", self.steps)
        return self.state

    def resolve(self, label: str, index: int) -> int:
        """Instruction index of `label`, for the jump at 0-based `index`."""
        try:
            return self.program.labels[label]
        except KeyError:
            raise ExecutionError(f"unknown label `{label}` on line {index + 1}",
                                 index + 1) from None

    # ══════════════════════════════════════════════
    # Dispatch
    # ══════════════════════════════════════════════

    def _build_dispatch(self) -> dict:
        return {
            Noop:  self._op_noop,
            Debug: self._op_debug,
            Zero:  self._op_zero,
            Mov:   self._op_mov,

            # ── Arithmetic / logic (set Z) ──
            Add:   self._op_add,
            Sub:   self._op_sub,
            Inc:   self._op_inc,
            Dec:   self._op_dec,
            And:   self._op_and,
            Or:    self._op_or,
            Xor:   self._op_xor,
            Not:   self._op_not,

            # ── Shifts (Z untouched) ──
            Shl:   self._op_shl,
            Shr:   self._op_shr,

            # ── Jumps ──
            Jz:    self._op_jz,
            Jnz:   self._op_jnz,
            J:     self._op_j,
        }

    def _op_noop(self, instr, index):
        return index + 1

    def _op_debug(self, instr, index):
        display.print_debug(self.console, index, self.state)
        try:
            self._debug_input()
        except (EOFError, OSError) as e:
            raise DebugInputError("IO error. Did you close stdin?") from e
        return index + 1

    def _op_zero(self, instr, index):
        self.state[instr.reg] = 0
        return index + 1

    def _op_mov(self, instr, index):
        self.state[instr.to] = self.state[instr.src]
        return index + 1

    def _op_add(self, instr, index):
        s = self.state
        s.write_with_zero(instr.to, s[instr.op1] + s[instr.op2])
        return index + 1

    def _op_sub(self, instr, index):
        s = self.state
        s.write_with_zero(instr.to, s[instr.op1] - s[instr.op2])
        return index + 1

    def _op_inc(self, instr, index):
        self.state.write_with_zero(instr.reg, self.state[instr.reg] + 1)
        return index + 1

    def _op_dec(self, instr, index):
        self.state.write_with_zero(instr.reg, self.state[instr.reg] - 1)
        return index + 1

    def _op_and(self, instr, index):
        s = self.state
        s.write_with_zero(instr.to, s[instr.op1] & s[instr.op2])
        return index + 1

    def _op_or(self, instr, index):
        s = self.state
        s.write_with_zero(instr.to, s[instr.op1] | s[instr.op2])
        return index + 1

    def _op_xor(self, instr, index):
        s = self.state
        s.write_with_zero(instr.to, s[instr.op1] ^ s[instr.op2])
        return index + 1

    def _op_not(self, instr, index):
        self.state.write_with_zero(instr.reg, ~self.state[instr.reg])
        return index + 1

    def _op_shl(self, instr, index):
        if instr.amount >= WORD_BITS:
            self.state[instr.reg] = 0
        else:
            self.state[instr.reg] = self.state[instr.reg] << instr.amount
        return index + 1

    def _op_shr(self, instr, index):
        if instr.amount >= WORD_BITS:
            self.state[instr.reg] = 0
        else:
            self.state[instr.reg] = self.state[instr.reg] >> instr.amount
        return index + 1

    def _op_jz(self, instr, index):
        if self.state.zero:
            return self.resolve(instr.label, index)
        return index + 1

    def _op_jnz(self, instr, index):
        if not self.state.zero:
            return self.resolve(instr.label, index)
        return index + 1

    def _op_j(self, instr, index):
        return self.resolve(instr.label, index)
