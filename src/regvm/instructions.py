"""Instruction model for REGVM.

Instructions are frozen values tagged with an Opcode. Three shapes exist:

    register + operand:  MOV, ADD, SUB, MUL, DIV, CMP
    address only:        JMP, JE, JNE, JG, JL
    no fields:           HALT

Programs are built directly from these values (there is no text format);
the builder functions at the bottom of this module keep that terse:

    program = [mov(0, Imm(5)), cmp(0, 0), je(4), sub(0, 1), halt()]

Plain ints passed as a source operand are taken as immediates.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from .operands import Imm, Operand, Reg


class Opcode(Enum):
    """Closed set of opcodes. Values double as registry keys."""
    MOV = "OP_MOV"
    ADD = "OP_ADD"
    SUB = "OP_SUB"
    MUL = "OP_MUL"
    DIV = "OP_DIV"
    CMP = "OP_CMP"
    JMP = "OP_JMP"
    JE = "OP_JE"
    JNE = "OP_JNE"
    JG = "OP_JG"
    JL = "OP_JL"
    HALT = "OP_HALT"


REGISTER_OPCODES = frozenset({
    Opcode.MOV, Opcode.ADD, Opcode.SUB, Opcode.MUL, Opcode.DIV, Opcode.CMP,
})

BRANCH_OPCODES = frozenset({
    Opcode.JMP, Opcode.JE, Opcode.JNE, Opcode.JG, Opcode.JL,
})


def _check_int(name: str, value) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int, got {value!r}")


@dataclass(frozen=True)
class Instruction:
    """A single decoded instruction.

    Attributes:
        opcode: Operation tag
        reg: Destination (or compared) register index for register opcodes
        src: Source operand for register opcodes
        addr: Absolute instruction index for branch opcodes

    Only shape is checked here. Register and address ranges depend on the
    machine and the loaded program, so they are checked at execution.
    """
    opcode: Opcode
    reg: Optional[int] = None
    src: Optional[Operand] = None
    addr: Optional[int] = None

    def __post_init__(self):
        if not isinstance(self.opcode, Opcode):
            raise TypeError(f"Unknown opcode: {self.opcode!r}")

        if self.opcode in REGISTER_OPCODES:
            if self.reg is None or self.src is None:
                raise ValueError(f"{self.opcode.name} needs a register and a source operand")
            _check_int("Register index", self.reg)
            if not isinstance(self.src, (Reg, Imm)):
                raise TypeError(f"Source must be Reg or Imm, got {self.src!r}")
            if self.addr is not None:
                raise ValueError(f"{self.opcode.name} takes no address")
        elif self.opcode in BRANCH_OPCODES:
            if self.addr is None:
                raise ValueError(f"{self.opcode.name} needs a target address")
            _check_int("Target address", self.addr)
            if self.reg is not None or self.src is not None:
                raise ValueError(f"{self.opcode.name} takes only an address")
        elif self.reg is not None or self.src is not None or self.addr is not None:
            raise ValueError("HALT takes no operands")

    @property
    def key(self) -> str:
        """Registry key for this instruction (e.g. "OP_ADD")."""
        return self.opcode.value

    def __str__(self) -> str:
        name = self.opcode.name
        if self.opcode in REGISTER_OPCODES:
            return f"{name} R{self.reg}, {self.src}"
        if self.opcode in BRANCH_OPCODES:
            return f"{name} {self.addr}"
        return name


# =============================================================================
# Builders
# =============================================================================

def _source(src: Union[Operand, int]) -> Operand:
    if isinstance(src, (Reg, Imm)):
        return src
    return Imm(src)


def mov(dest: int, src: Union[Operand, int]) -> Instruction:
    return Instruction(Opcode.MOV, reg=dest, src=_source(src))


def add(dest: int, src: Union[Operand, int]) -> Instruction:
    return Instruction(Opcode.ADD, reg=dest, src=_source(src))


def sub(dest: int, src: Union[Operand, int]) -> Instruction:
    return Instruction(Opcode.SUB, reg=dest, src=_source(src))


def mul(dest: int, src: Union[Operand, int]) -> Instruction:
    return Instruction(Opcode.MUL, reg=dest, src=_source(src))


def div(dest: int, src: Union[Operand, int]) -> Instruction:
    return Instruction(Opcode.DIV, reg=dest, src=_source(src))


def cmp(reg: int, src: Union[Operand, int]) -> Instruction:
    return Instruction(Opcode.CMP, reg=reg, src=_source(src))


def jmp(addr: int) -> Instruction:
    return Instruction(Opcode.JMP, addr=addr)


def je(addr: int) -> Instruction:
    return Instruction(Opcode.JE, addr=addr)


def jne(addr: int) -> Instruction:
    return Instruction(Opcode.JNE, addr=addr)


def jg(addr: int) -> Instruction:
    return Instruction(Opcode.JG, addr=addr)


def jl(addr: int) -> Instruction:
    return Instruction(Opcode.JL, addr=addr)


def halt() -> Instruction:
    return Instruction(Opcode.HALT)
