"""
regmachine: eight-register assembly interpreter
=================================================
Parses a tiny assembly language and runs it on eight 64-bit registers with a
zero flag. Execution ends when the program counter runs past the last line.

Architecture:
    ┌──────────┐    ┌──────────┐    ┌─────────────────┐    ┌───────────┐
    │  Source  │───>│  Parser  │───>│     Machine     │───>│  Display  │
    │  (text)  │    │ (instrs, │    │ (fetch/execute, │    │  (dump)   │
    │          │    │  labels) │    │  R0-R7, Z flag) │    │           │
    └──────────┘    └──────────┘    └─────────────────┘    └───────────┘

    - instructions.py: Closed set of instruction dataclasses
    - parser.py:       One pass, one instruction per line, fills the label table
    - machine.py:      Register file + dispatch-table interpreter
    - overrides.py:    r<N>=<value> initial register arguments
    - display.py:      Register dump / listing rendering (rich)
    - log.py:          Logging setup for the CLI

Instruction set:
    zero rA            debug
    mov rA, rB         add/sub/and/or/xor rA, rB, rC
    inc/dec/not rA     shl/shr rA, <amount>
    jz/jnz/j <label>   <label>:
Comments start with //, ; or #.
"""

__version__ = "0.1.0"

from typing import Dict, Optional

from .instructions import *
from .parser import Program, ParseError, parse_line, parse_lines, parse_source, strip_comment
from .machine import Machine, MachineState, ExecutionError, DebugInputError
from .overrides import OverrideError, parse_override, parse_overrides


def run_source(source: str, overrides: Optional[Dict[int, int]] = None, **machine_kwargs) -> MachineState:
    """Parse and run source text; returns the final state.

    Args:
        source: Program text.
        overrides: Initial register values {register: value}.
        **machine_kwargs: Passed to Machine (console, debug_input, trace).
    """
    program = parse_source(source)
    state = MachineState.from_overrides(overrides or {})
    return Machine(program, state, **machine_kwargs).run()
