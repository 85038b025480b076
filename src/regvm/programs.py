"""Sample programs for REGVM.

Every program leaves its answer in R0, which is what RegisterVM.run()
returns. Branch targets are absolute instruction indices.
"""

from typing import Callable, Dict, List, NamedTuple

from .instructions import Instruction, add, cmp, halt, je, jg, jmp, mov, mul, sub
from .operands import Reg


def _check_count(name: str, n: int) -> None:
    # Negative counts would loop until the register wraps around
    if n < 0:
        raise ValueError(f"{name} must be non-negative, got {n}")


def factorial_program(n: int = 5) -> List[Instruction]:
    """n! via a countdown loop. factorial_program(5) runs to 120."""
    _check_count("n", n)
    return [
        mov(0, n),          # R0 = n (input)
        mov(1, 1),          # R1 = 1 (result)
        cmp(0, 0),          # compare R0 with 0
        je(7),              # done when R0 == 0
        mul(1, Reg(0)),     # R1 *= R0
        sub(0, 1),          # R0 -= 1
        jmp(2),             # back to the comparison
        mov(0, Reg(1)),     # move result to R0
        halt(),
    ]


def sum_program(n: int = 10) -> List[Instruction]:
    """Sum of 1..n."""
    _check_count("n", n)
    return [
        mov(0, 0),          # sum = 0
        mov(1, 1),          # counter = 1
        cmp(1, n),
        jg(7),              # stop once counter > n
        add(0, Reg(1)),     # sum += counter
        add(1, 1),          # counter++
        jmp(2),
        halt(),
    ]


def fibonacci_program(n: int = 10) -> List[Instruction]:
    """n-th Fibonacci number, F(0) = 0, F(1) = 1."""
    _check_count("n", n)
    return [
        mov(0, 0),          # prev = F(0)
        mov(1, 1),          # curr = F(1)
        mov(2, n),          # iterations left
        cmp(2, 0),
        je(10),
        mov(3, Reg(1)),     # temp = curr
        add(1, Reg(0)),     # curr = prev + curr
        mov(0, Reg(3)),     # prev = temp
        sub(2, 1),
        jmp(3),
        halt(),
    ]


def multiply_program(a: int = 7, b: int = 6) -> List[Instruction]:
    """a * b by repeated addition, b times."""
    _check_count("b", b)
    return [
        mov(0, 0),          # result = 0
        mov(1, a),          # multiplicand
        mov(2, b),          # multiplier (countdown)
        cmp(2, 0),
        je(8),
        add(0, Reg(1)),     # result += multiplicand
        sub(2, 1),          # multiplier--
        jmp(3),
        halt(),
    ]


class SampleProgram(NamedTuple):
    """A runnable sample: builder, default argument, and output label."""
    build: Callable[[int], List[Instruction]]
    default: int
    label: str


SAMPLE_PROGRAMS: Dict[str, SampleProgram] = {
    "factorial": SampleProgram(factorial_program, 5, "Factorial of {n}"),
    "sum": SampleProgram(sum_program, 10, "Sum of 1 to {n}"),
    "fibonacci": SampleProgram(fibonacci_program, 10, "Fibonacci({n})"),
    "multiply": SampleProgram(lambda n: multiply_program(7, n), 6, "7 x {n}"),
}
