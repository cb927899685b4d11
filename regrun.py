#!/usr/bin/env python3
"""
regrun: run an eight-register assembly program

Usage:
    python regrun.py <program.asm> [r<N>=<value> ...] [--listing] [--trace]
                     [--verbose] [--log-file PATH] [--no-color]

Register overrides set initial values before the program starts; negative
values are stored as their 64-bit two's-complement pattern.

Examples:
    python regrun.py fib.asm r0=10
    python regrun.py loop.asm r1=-1 --trace
    python regrun.py loop.asm --listing      # parse only, print instructions
"""

import argparse
import logging
import os
import sys

# Allow running from project root without installing
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from regmachine import __version__
from regmachine import display
from regmachine.log import setup_logging
from regmachine.machine import Machine, MachineState, ExecutionError, DebugInputError
from regmachine.overrides import OverrideError, parse_overrides
from regmachine.parser import ParseError, parse_source

log = logging.getLogger("regmachine.cli")


class _ArgumentParser(argparse.ArgumentParser):
    """Usage errors print a single "Error: ..." line and exit 1."""

    def error(self, message):
        display.print_error(display.make_console(stderr=True), message)
        self.exit(1)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="regrun",
        description="Eight-register assembly interpreter",
        epilog="Mnemonics: zero debug mov add sub and or xor inc dec not shl shr jz jnz j",
    )
    parser.add_argument("source", help="Assembly source file (UTF-8)")
    parser.add_argument("overrides", nargs="*", metavar="rN=VALUE",
                        help="Initial register value, e.g. r0=10 or r3=-1")
    parser.add_argument("--listing", action="store_true",
                        help="Print the parsed instructions and labels, then exit")
    parser.add_argument("--trace", action="store_true",
                        help="Log every executed instruction (implies debug logging)")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Log parse/run progress to stderr")
    parser.add_argument("--log-file", default=None,
                        help="Also write a debug log to this file")
    parser.add_argument("--no-color", action="store_true",
                        help="Disable coloured output")
    parser.add_argument("--version", action="version",
                        version=f"regrun {__version__}")
    return parser


def _read_source(path: str) -> str:
    # newline="" keeps lone \r characters; parse_source splits on \n only
    with open(path, "r", encoding="utf-8", newline="") as f:
        return f.read()


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    if args.trace:
        console_level = logging.DEBUG
    elif args.verbose:
        console_level = logging.INFO
    else:
        console_level = logging.WARNING
    setup_logging(console_level=console_level, log_file=args.log_file,
                  no_color=args.no_color)

    out = display.make_console(no_color=args.no_color)
    err = display.make_console(no_color=args.no_color, stderr=True)

    try:
        overrides = parse_overrides(args.overrides)
        if overrides:
            log.info("Register overrides: %s",
                     ", ".join(f"r{r}={v}" for r, v in sorted(overrides.items())))

        try:
            source = _read_source(args.source)
        except FileNotFoundError:
            raise OSError(f"File not found: {args.source}") from None
        except (OSError, UnicodeDecodeError) as e:
            raise OSError(f"Unable to read {args.source}: {e}") from None
        log.info("Input: %s", args.source)

        program = parse_source(source)

        if args.listing:
            display.print_program(out, program)
            return 0

        machine = Machine(program, MachineState.from_overrides(overrides),
                          console=out, trace=args.trace)
        state = machine.run()
        display.print_finished(out, state)

    except (OverrideError, OSError, ParseError, ExecutionError, DebugInputError) as e:
        display.print_error(err, str(e))
        return 1
    except KeyboardInterrupt:
        display.print_error(err, "interrupted")
        return 130
    except Exception as e:
        display.print_error(err, f"Internal error: {e}")
        if args.verbose or args.trace:
            log.exception("Internal error")
        return 2

    return 0


if __name__ == "__main__":
    sys.exit(main())
