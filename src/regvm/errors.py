"""Error kinds raised while executing a program.

Every error is fatal to the current run. The VM keeps whatever register,
PC and flag values it had when the error was raised so callers can inspect
them.
"""

from typing import Optional


class VMError(Exception):
    """Base class for all execution errors.

    Attributes:
        pc: Address of the instruction that failed (None if unknown)
    """

    def __init__(self, message: str, pc: Optional[int] = None):
        super().__init__(message)
        self.pc = pc


class InvalidRegister(VMError):
    """Register index outside R0-R9, in a destination or an operand."""

    def __init__(self, index: int, pc: Optional[int] = None):
        super().__init__(f"Invalid register: {index}", pc)
        self.index = index


class DivisionByZero(VMError):
    """DIV whose resolved divisor is 0."""

    def __init__(self, pc: Optional[int] = None):
        super().__init__("Division by zero", pc)


class InvalidProgramCounter(VMError):
    """Taken branch whose target lies outside the instruction store."""

    def __init__(self, target: int, pc: Optional[int] = None):
        super().__init__(f"Invalid branch target: {target}", pc)
        self.target = target
