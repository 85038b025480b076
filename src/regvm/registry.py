"""InstructionRegistry: opcode handlers for REGVM.

Each opcode maps to one handler, a function of (VMState, Instruction)
returning the next VMState. The registry is frozen once built and refuses
to build unless every Opcode has a handler, so adding an opcode without
its handler fails at import time instead of at run time.

Registry Keys:
    OP_MOV: dest <- val(src)
    OP_ADD: dest <- dest + val(src), wrapping at 64 bits
    OP_SUB: dest <- dest - val(src), wrapping at 64 bits
    OP_MUL: dest <- dest * val(src), wrapping at 64 bits
    OP_DIV: dest <- dest / val(src), truncating toward zero
    OP_CMP: flag <- sign(reg - val(src))
    OP_JMP: PC <- addr
    OP_JE:  PC <- addr if flag == 0
    OP_JNE: PC <- addr if flag != 0
    OP_JG:  PC <- addr if flag > 0
    OP_JL:  PC <- addr if flag < 0
    OP_HALT: Stop execution

Handlers run after the driver has advanced PC past the instruction, so
branch handlers simply overwrite PC and everything else leaves it alone.
"""

import operator
from typing import Callable, Dict, Optional

from .errors import DivisionByZero, InvalidProgramCounter, InvalidRegister
from .instructions import Instruction, Opcode
from .operands import is_valid_register, resolve_operand
from .state import VMState


Handler = Callable[[VMState, Instruction], VMState]


def truncating_div(dividend: int, divisor: int) -> int:
    """Integer division rounding toward zero (Python's // floors)."""
    quotient = abs(dividend) // abs(divisor)
    return quotient if (dividend < 0) == (divisor < 0) else -quotient


class InstructionRegistry:
    """Frozen registry of opcode handlers.

    Attributes:
        _handlers: Dictionary mapping registry keys to handler functions
        _frozen: Whether the registry is locked against modifications
    """

    def __init__(self):
        """Initialize registry with all opcode handlers."""
        self._handlers: Dict[str, Handler] = {}
        self._frozen = False
        self._register_all_handlers()
        self._check_complete()
        self.freeze()

    def _register_all_handlers(self) -> None:
        # Data movement
        self.register(Opcode.MOV.value, self._op_mov)

        # Arithmetic
        self.register(Opcode.ADD.value, self._arithmetic(operator.add))
        self.register(Opcode.SUB.value, self._arithmetic(operator.sub))
        self.register(Opcode.MUL.value, self._arithmetic(operator.mul))
        self.register(Opcode.DIV.value, self._op_div)

        # Comparison
        self.register(Opcode.CMP.value, self._op_cmp)

        # Control flow
        self.register(Opcode.JMP.value, self._branch(lambda flag: True))
        self.register(Opcode.JE.value, self._branch(lambda flag: flag == 0))
        self.register(Opcode.JNE.value, self._branch(lambda flag: flag != 0))
        self.register(Opcode.JG.value, self._branch(lambda flag: flag > 0))
        self.register(Opcode.JL.value, self._branch(lambda flag: flag < 0))

        # Special
        self.register(Opcode.HALT.value, self._op_halt)

    def _check_complete(self) -> None:
        missing = {op.value for op in Opcode} - set(self._handlers)
        if missing:
            raise RuntimeError(f"Opcodes without handlers: {sorted(missing)}")

    def register(self, key: str, handler: Handler) -> None:
        """Register an opcode handler.

        Args:
            key: Registry key (e.g., "OP_ADD")
            handler: Function that takes (state, instruction) and returns new state

        Raises:
            RuntimeError: If registry is frozen
            ValueError: If key already registered
        """
        if self._frozen:
            raise RuntimeError("Cannot register handlers: registry is frozen")
        if key in self._handlers:
            raise ValueError(f"Handler already registered: {key}")
        self._handlers[key] = handler

    def freeze(self) -> None:
        """Freeze the registry to prevent further modifications."""
        self._frozen = True

    def is_frozen(self) -> bool:
        return self._frozen

    def get_valid_keys(self) -> set:
        """Get set of all valid registry keys."""
        return set(self._handlers.keys())

    def execute(self, state: VMState, instruction: Instruction) -> VMState:
        """Execute one instruction against a state.

        Args:
            state: Current VM state, PC already advanced past the instruction
            instruction: Instruction to execute

        Returns:
            New VM state after execution

        Raises:
            VMError: If the instruction fails
        """
        return self._handlers[instruction.key](state, instruction)

    # =========================================================================
    # Data Movement
    # =========================================================================

    @staticmethod
    def _check_dest(instruction: Instruction) -> None:
        if not is_valid_register(instruction.reg):
            raise InvalidRegister(instruction.reg)

    def _op_mov(self, state: VMState, instruction: Instruction) -> VMState:
        """MOV Rd, src - Copy the source value into Rd."""
        self._check_dest(instruction)
        value = resolve_operand(state.registers, instruction.src)
        return state.set_register(instruction.reg, value)

    # =========================================================================
    # Arithmetic
    # =========================================================================

    def _arithmetic(self, op: Callable[[int, int], int]) -> Handler:
        """Build a handler for Rd <- Rd op src.

        Results wrap to 64 bits in VMState.set_register; overflow is not
        an error.
        """
        def handler(state: VMState, instruction: Instruction) -> VMState:
            self._check_dest(instruction)
            value = resolve_operand(state.registers, instruction.src)
            result = op(state.registers[instruction.reg], value)
            return state.set_register(instruction.reg, result)
        return handler

    def _op_div(self, state: VMState, instruction: Instruction) -> VMState:
        """DIV Rd, src - Signed division truncating toward zero.

        INT64_MIN / -1 wraps back to INT64_MIN.
        """
        self._check_dest(instruction)
        divisor = resolve_operand(state.registers, instruction.src)
        if divisor == 0:
            raise DivisionByZero()

        result = truncating_div(state.registers[instruction.reg], divisor)
        return state.set_register(instruction.reg, result)

    # =========================================================================
    # Comparison
    # =========================================================================

    def _op_cmp(self, state: VMState, instruction: Instruction) -> VMState:
        """CMP Rs, src - Set the flag to the sign of (Rs - src)."""
        self._check_dest(instruction)
        value = resolve_operand(state.registers, instruction.src)
        return state.set_cmp_flag(state.registers[instruction.reg], value)

    # =========================================================================
    # Control Flow
    # =========================================================================

    def _branch(self, taken: Callable[[int], bool]) -> Handler:
        """Build a jump handler that branches when taken(flag) holds.

        The target is only range-checked when the branch is taken.
        """
        def handler(state: VMState, instruction: Instruction) -> VMState:
            if not taken(state.cmp_flag):
                return state
            addr = instruction.addr
            if addr < 0 or addr >= len(state.memory):
                raise InvalidProgramCounter(addr)
            return state.set_pc(addr)
        return handler

    # =========================================================================
    # Special
    # =========================================================================

    def _op_halt(self, state: VMState, instruction: Instruction) -> VMState:
        """HALT - Stop execution."""
        return state.set_halted(True)


# Singleton registry instance
_registry: Optional[InstructionRegistry] = None


def get_registry() -> InstructionRegistry:
    """Get the singleton instruction registry."""
    global _registry
    if _registry is None:
        _registry = InstructionRegistry()
    return _registry
