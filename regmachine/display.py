"""
Console rendering for machine state, listings and errors.

State dump layout (one row per register):

    Zero: false
                     unsigned                signed                 hex
    R0:                      5                     5  0x0000000000000005
    R1:   18446744073709551615                    -1  0xFFFFFFFFFFFFFFFF
"""

from __future__ import annotations
from typing import TYPE_CHECKING, List

from rich.console import Console
from rich.text import Text

if TYPE_CHECKING:
    from .machine import MachineState
    from .parser import Program

STATE_HEADER = "                 unsigned                signed                 hex"


def make_console(no_color: bool = False, stderr: bool = False) -> Console:
    """Console for machine output. Colour follows rich's terminal detection."""
    return Console(no_color=no_color, stderr=stderr, highlight=False, soft_wrap=True)


def format_state(state: MachineState) -> List[str]:
    """Zero flag plus unsigned / signed / hex columns for R0-R7."""
    lines = [f"Zero: {str(state.zero).lower()}", STATE_HEADER]
    for reg, value in enumerate(state.registers):
        lines.append(f"R{reg}:  {value:20}  {state.signed(reg):20}  0x{value:016X}")
    return lines


def format_program(program: Program) -> List[str]:
    """Numbered instruction listing followed by the label table."""
    lines = []
    width = len(str(len(program))) or 1
    for index, instr in enumerate(program.instructions):
        lines.append(f"{index + 1:>{width}}  {instr}")
    lines.append("")
    lines.append(f"Labels ({len(program.labels)}):")
    for name, target in sorted(program.labels.items(), key=lambda kv: kv[1]):
        lines.append(f"  {name:<16} -> line {target + 1}")
    return lines


def print_state(console: Console, state: MachineState):
    for line in format_state(state):
        console.print(line, markup=False)


def print_debug(console: Console, index: int, state: MachineState):
    """Breakpoint banner for the instruction at 0-based `index`, then the state."""
    console.print(f"[yellow]Debug:[/yellow] [blue]line {index + 1}[/blue]")
    print_state(console, state)


def print_finished(console: Console, state: MachineState):
    console.print("[green]Finished:[/green]")
    print_state(console, state)


def print_program(console: Console, program: Program):
    for line in format_program(program):
        console.print(line, markup=False)


def print_error(console: Console, message: str):
    """One-line diagnostic; `console` is normally the stderr console."""
    console.print(Text.assemble(("Error:", "red"), " ", message))
