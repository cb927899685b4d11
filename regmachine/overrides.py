"""
Initial register values from the command line.

Each argument has the form r<N>=<value> (the 'r' may be upper case). The value
is a decimal unsigned or signed 64-bit integer; negative values are stored as
their two's-complement bit pattern, so r3=-1 sets R3 to 0xFFFFFFFFFFFFFFFF.
"""

from __future__ import annotations
import re
from typing import Dict, Iterable, Tuple

from .instructions import NUM_REGISTERS, WORD_BITS, WORD_MASK

__all__ = ['OverrideError', 'parse_override', 'parse_overrides']

_INT_RE = re.compile(r'[+-]?[0-9]+')
_INDEX_RE = re.compile(r'[0-9]+')

_SIGNED_MIN = -(1 << (WORD_BITS - 1))


class OverrideError(Exception):
    """Raised for a malformed or out-of-range register override."""


def _parse_value(text: str) -> int:
    """u64 or i64 decimal text -> unsigned 64-bit value; ValueError otherwise."""
    if not _INT_RE.fullmatch(text):
        raise ValueError(text)
    value = int(text)
    if _SIGNED_MIN <= value <= WORD_MASK:
        return value & WORD_MASK
    raise ValueError(text)


def parse_override(arg: str) -> Tuple[int, int]:
    """Parse one r<N>=<value> argument into (register, unsigned value)."""
    before, eq, after = arg.partition('=')
    if not eq or before[:1] not in ('r', 'R') or not _INDEX_RE.fullmatch(before[1:]):
        raise OverrideError(f"Unable to parse arg: `{arg}`")
    try:
        value = _parse_value(after)
    except ValueError:
        raise OverrideError(f"Unable to parse arg: `{arg}`") from None
    reg = int(before[1:])
    if reg >= NUM_REGISTERS:
        raise OverrideError(f"r{reg} does not exist")
    return reg, value


def parse_overrides(args: Iterable[str]) -> Dict[int, int]:
    """Parse every override; a later value for the same register wins."""
    overrides: Dict[int, int] = {}
    for arg in args:
        reg, value = parse_override(arg)
        overrides[reg] = value
    return overrides
