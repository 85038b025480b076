"""VMState: state representation for REGVM.

State Components:
    - Registers: R0-R9 (10 general-purpose 64-bit signed integers)
    - PC: Program counter (index of the next instruction to fetch)
    - Comparison flag: -1, 0 or +1, set by CMP and read by conditional jumps
    - Memory: Instruction store (tuple of Instruction values)
    - Halted: Execution termination flag
    - Cycle count: Total executed cycles

State transitions return new state objects, so the driver can keep the
state from before a cycle for tracing.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, Tuple

from .errors import InvalidRegister
from .instructions import Instruction
from .operands import INT64_MAX, INT64_MIN, NUM_REGISTERS, is_valid_register


def wrap_int64(value: int) -> int:
    """Reduce an integer to the signed 64-bit range, two's-complement style."""
    return ((value - INT64_MIN) % (1 << 64)) + INT64_MIN


@dataclass(frozen=True)
class VMState:
    """Immutable VM state representation.

    Attributes:
        registers: Tuple of 10 signed 64-bit register values, R0 first
        pc: Program counter
        cmp_flag: Sign of the last comparison (-1 less, 0 equal, +1 greater)
        memory: Instruction store
        halted: Whether the VM has stopped
        cycle_count: Number of execution cycles completed
    """
    registers: Tuple[int, ...] = field(default_factory=lambda: (0,) * NUM_REGISTERS)
    pc: int = 0
    cmp_flag: int = 0
    memory: Tuple[Instruction, ...] = ()
    halted: bool = False
    cycle_count: int = 0

    def snapshot(self) -> dict:
        """Create a snapshot of current state for tracing.

        Returns:
            Dictionary with all state components except memory
        """
        return {
            "registers": list(self.registers),
            "pc": self.pc,
            "cmp_flag": self.cmp_flag,
            "halted": self.halted,
            "cycle_count": self.cycle_count,
            # memory never changes during a run
        }

    def validate(self) -> bool:
        """Validate state integrity.

        Checks:
            - Exactly 10 registers, all within 64-bit signed bounds
            - PC is between 0 and len(memory) inclusive
            - Comparison flag is -1, 0 or 1

        Returns:
            True if state is valid, False otherwise
        """
        if len(self.registers) != NUM_REGISTERS:
            return False

        for value in self.registers:
            if not isinstance(value, int):
                return False
            if value < INT64_MIN or value > INT64_MAX:
                return False

        if self.pc < 0 or self.pc > len(self.memory):
            return False

        if self.cmp_flag not in (-1, 0, 1):
            return False

        if self.cycle_count < 0:
            return False

        return True

    def get_register(self, index: int) -> int:
        """Get value of a register.

        Raises:
            InvalidRegister: If index is outside R0-R9
        """
        if not is_valid_register(index):
            raise InvalidRegister(index)
        return self.registers[index]

    def set_register(self, index: int, value: int) -> "VMState":
        """Create new state with updated register value.

        The value wraps to the signed 64-bit range.

        Raises:
            InvalidRegister: If index is outside R0-R9
        """
        if not is_valid_register(index):
            raise InvalidRegister(index)

        registers = list(self.registers)
        registers[index] = wrap_int64(value)
        return replace(self, registers=tuple(registers))

    def set_cmp_flag(self, left: int, right: int) -> "VMState":
        """Create new state with the flag set to the sign of (left - right).

        Computed as a three-way comparison, never as a subtraction.
        """
        return replace(self, cmp_flag=(left > right) - (left < right))

    def increment_pc(self) -> "VMState":
        return replace(self, pc=self.pc + 1)

    def set_pc(self, new_pc: int) -> "VMState":
        return replace(self, pc=new_pc)

    def set_halted(self, halted: bool = True) -> "VMState":
        return replace(self, halted=halted)

    def increment_cycle(self) -> "VMState":
        return replace(self, cycle_count=self.cycle_count + 1)

    def load(self, program: Tuple[Instruction, ...]) -> "VMState":
        """Create new state with a replaced instruction store.

        PC goes back to 0 and the halted flag is cleared. Registers, the
        comparison flag and the cycle count carry over.
        """
        return replace(self, memory=tuple(program), pc=0, halted=False)

    def dump_registers(self) -> Dict[str, int]:
        """Get a copy of all register values keyed by name (R0-R9)."""
        return {f"R{i}": value for i, value in enumerate(self.registers)}

    def debug_format(self) -> str:
        """Multi-line dump of PC, comparison flag and all registers."""
        lines = [
            f"Program Counter: {self.pc}",
            f"Comparison Flag: {self.cmp_flag}",
            "Registers:",
        ]
        lines.extend(f"R{i}: {value}" for i, value in enumerate(self.registers))
        return "\n".join(lines) + "\n"

    def __str__(self) -> str:
        """Human-readable state representation."""
        regs = " ".join(f"R{i}={v}" for i, v in enumerate(self.registers))
        return f"[Cycle {self.cycle_count}] PC={self.pc} {regs} CF={self.cmp_flag} {'HALTED' if self.halted else ''}"


def create_initial_state() -> VMState:
    """Create a fresh VM state: zeroed registers, PC 0, flag 0, no program."""
    return VMState(
        registers=(0,) * NUM_REGISTERS,
        pc=0,
        cmp_flag=0,
        memory=(),
        halted=False,
        cycle_count=0
    )
