#!/usr/bin/env python3
"""REGVM Command Line Interface.

Run the bundled sample programs on the REGVM register machine.

Usage:
    python main.py
    python main.py --program fibonacci --n 20 --trace
"""

import argparse
import logging as lg
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from regvm import RegisterVM, VMError
from regvm.programs import SAMPLE_PROGRAMS


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="REGVM: Register-based virtual machine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Factorial of 5 (prints "Factorial of 5: 120")
    python main.py

    # Fibonacci(20) with full trace output
    python main.py --program fibonacci --n 20 --trace

    # Stop a program after 50 cycles
    python main.py --program sum --n 1000 --max-cycles 50
        """
    )

    parser.add_argument(
        "--program", "-p",
        choices=sorted(SAMPLE_PROGRAMS),
        default="factorial",
        help="Sample program to run. Default: factorial"
    )
    parser.add_argument(
        "--n",
        type=int,
        help="Program input (factorial/sum/fibonacci argument, multiplier for multiply)"
    )
    parser.add_argument(
        "--max-cycles",
        type=int,
        help="Maximum execution cycles (default: no limit)"
    )
    parser.add_argument(
        "--trace", "-t",
        action="store_true",
        help="Print full execution trace"
    )
    parser.add_argument(
        "--dump", "-d",
        action="store_true",
        help="Print PC, comparison flag and registers after the run"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Print the result value only"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log every executed instruction"
    )

    args = parser.parse_args(argv)

    if args.max_cycles is not None and args.max_cycles <= 0:
        parser.error("--max-cycles must be positive")

    lg.basicConfig(level=lg.DEBUG if args.verbose else lg.WARNING)

    sample = SAMPLE_PROGRAMS[args.program]
    n = sample.default if args.n is None else args.n
    try:
        program = sample.build(n)
    except ValueError as e:
        parser.error(str(e))

    vm = RegisterVM(record_trace=args.trace)
    vm.load_program(program)

    try:
        if args.max_cycles is None:
            result = vm.run()
        else:
            while vm.step():
                if vm.get_cycle_count() >= args.max_cycles:
                    break
            result = vm.get_register(0)
    except VMError as e:
        if args.trace:
            vm.print_trace()
        print(f"Execution error: {e} (PC={e.pc})", file=sys.stderr)
        return 1

    if args.trace:
        vm.print_trace()

    if not vm.is_halted():
        print(f"Stopped after {vm.get_cycle_count()} cycles (max cycles reached)", file=sys.stderr)
        return 1

    if args.quiet:
        print(result)
    else:
        print(f"{sample.label.format(n=n)}: {result}")

    if args.dump:
        print(vm.debug_format(), end="")

    return 0


if __name__ == "__main__":
    sys.exit(main())
