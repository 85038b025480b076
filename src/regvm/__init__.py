"""REGVM: a minimal register-based virtual machine.

Programs are lists of Instruction values executed over ten signed 64-bit
registers (R0-R9). A run ends on HALT or when PC falls off the end of the
program, and its result is the final value of R0.

Architecture:
    MEMORY -> FETCH -> ADVANCE PC -> REGISTRY -> EXECUTE -> STATE
               |                       |           |
           [PC-based]             [Opcode key]  [Immutable
                                   handlers      VMState]

Modules:
    operands: Reg/Imm operands and the operand resolver
    instructions: Opcode enum, Instruction values and builders
    state: VMState dataclass
    registry: Opcode handlers (OP_MOV, OP_ADD, ...)
    vm: RegisterVM fetch/run driver
    programs: Sample programs (factorial, sum, fibonacci, multiply)
    errors: InvalidRegister, DivisionByZero, InvalidProgramCounter
"""

__version__ = "0.1.0"

from .errors import VMError, InvalidRegister, DivisionByZero, InvalidProgramCounter
from .operands import Reg, Imm, NUM_REGISTERS, INT64_MIN, INT64_MAX
from .instructions import (
    Opcode, Instruction,
    mov, add, sub, mul, div, cmp, jmp, je, jne, jg, jl, halt,
)
from .state import VMState
from .registry import InstructionRegistry
from .vm import RegisterVM, ExecutionTraceEntry

__all__ = [
    "VMError", "InvalidRegister", "DivisionByZero", "InvalidProgramCounter",
    "Reg", "Imm", "NUM_REGISTERS", "INT64_MIN", "INT64_MAX",
    "Opcode", "Instruction",
    "mov", "add", "sub", "mul", "div", "cmp", "jmp", "je", "jne", "jg", "jl", "halt",
    "VMState", "InstructionRegistry", "RegisterVM", "ExecutionTraceEntry",
]
