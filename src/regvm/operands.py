"""Instruction operands and the operand resolver.

An operand is either a register reference (Reg) or a literal signed
64-bit integer (Imm).
"""

from dataclasses import dataclass
from typing import Union

from .errors import InvalidRegister


NUM_REGISTERS = 10

# 64-bit signed integer bounds
INT64_MIN = -(2**63)
INT64_MAX = (2**63) - 1


@dataclass(frozen=True)
class Reg:
    """Register operand.

    The index is range-checked when the operand is resolved, not here,
    so a program may contain R10 and only fail if it is executed.
    """
    index: int

    def __post_init__(self):
        if not isinstance(self.index, int) or isinstance(self.index, bool):
            raise TypeError(f"Register index must be an int, got {self.index!r}")

    def __str__(self) -> str:
        return f"R{self.index}"


@dataclass(frozen=True)
class Imm:
    """Immediate operand holding a signed 64-bit literal."""
    value: int

    def __post_init__(self):
        if not isinstance(self.value, int) or isinstance(self.value, bool):
            raise TypeError(f"Immediate must be an int, got {self.value!r}")
        if self.value < INT64_MIN or self.value > INT64_MAX:
            raise ValueError(f"Immediate out of 64-bit range: {self.value}")

    def __str__(self) -> str:
        return str(self.value)


Operand = Union[Reg, Imm]


def is_valid_register(index: int) -> bool:
    """Check that index names one of R0-R9."""
    return 0 <= index < NUM_REGISTERS


def resolve_operand(registers, operand: Operand) -> int:
    """Return the integer value an operand denotes.

    Args:
        registers: Current register file (sequence of 10 ints)
        operand: Reg or Imm

    Returns:
        Register contents for Reg, the literal for Imm

    Raises:
        InvalidRegister: If a Reg index is outside R0-R9
    """
    if isinstance(operand, Imm):
        return operand.value
    if not is_valid_register(operand.index):
        raise InvalidRegister(operand.index)
    return registers[operand.index]
