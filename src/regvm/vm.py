"""RegisterVM: fetch/run driver for REGVM.

Execution pipeline per cycle:
    MEMORY -> FETCH (PC) -> ADVANCE PC -> REGISTRY -> EXECUTE -> STATE

PC is advanced before the instruction executes, so fall-through needs no
special case and branch handlers just overwrite PC. The result of a run is
the final value of R0.
"""

import logging as lg
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from .errors import VMError
from .instructions import Instruction
from .registry import InstructionRegistry, get_registry
from .state import VMState, create_initial_state


@dataclass
class ExecutionTraceEntry:
    """Single entry in the execution trace.

    Attributes:
        cycle: Cycle number (1-based, as counted after the fetch)
        pc: Address the instruction was fetched from
        instruction: Executed instruction
        pre_state: State before execution
        post_state: State after execution (or at the failure)
        error: Error message if execution failed
    """
    cycle: int
    pc: int
    instruction: Instruction
    pre_state: dict
    post_state: dict
    error: Optional[str] = None


class RegisterVM:
    """Register-based virtual machine with 10 signed 64-bit registers.

    Attributes:
        registry: InstructionRegistry holding the opcode handlers
        state: Current VM state
        trace: Execution trace entries (only filled when record_trace is set)
        record_trace: Whether to record a trace entry per cycle
    """

    def __init__(self, record_trace: bool = False):
        self.registry: InstructionRegistry = get_registry()
        self.state: VMState = create_initial_state()
        self.trace: List[ExecutionTraceEntry] = []
        self.record_trace = record_trace

    def load_program(self, program: Iterable[Instruction]) -> None:
        """Replace the instruction store and reset PC to 0.

        Registers, the comparison flag and the cycle count are kept; build a
        new RegisterVM for a clean run.

        Args:
            program: Instructions, in address order

        Raises:
            TypeError: If an element is not an Instruction
        """
        instructions = tuple(program)
        for addr, instruction in enumerate(instructions):
            if not isinstance(instruction, Instruction):
                raise TypeError(f"Not an instruction at address {addr}: {instruction!r}")

        self.state = self.state.load(instructions)
        self.trace = []
        lg.debug(f"Loaded program of {len(instructions)} instructions")

    def step(self) -> bool:
        """Execute a single fetch/execute cycle.

        Returns:
            True if execution may continue, False once the VM is halted

        Raises:
            VMError: If the instruction fails. The VM is left halted with
                registers, PC and flag as they were at the failure.
        """
        if self.state.halted:
            return False

        # FETCH: end of program is a normal stop
        pc = self.state.pc
        if pc >= len(self.state.memory):
            lg.debug(f"PC={pc} past end of program")
            self.state = self.state.set_halted(True)
            return False

        instruction = self.state.memory[pc]
        pre_state = self.state.snapshot() if self.record_trace else {}
        self.state = self.state.increment_pc().increment_cycle()
        lg.debug(f"PC={pc} {instruction}")

        # EXECUTE
        try:
            self.state = self.registry.execute(self.state, instruction)
        except VMError as e:
            if e.pc is None:
                e.pc = pc
            lg.info(f"Execution error at PC={pc} ({instruction}): {e}")
            self.state = self.state.set_halted(True)
            self._record(pc, instruction, pre_state, str(e))
            raise

        self._record(pc, instruction, pre_state)
        if self.state.halted:
            lg.debug(f"Halted at PC={pc}")
        return not self.state.halted

    def run(self) -> int:
        """Run until HALT, end of program or error.

        There is no cycle limit: a program that loops forever runs forever.
        Drive step() directly to impose one.

        Returns:
            Final value of R0

        Raises:
            VMError: If an instruction fails
        """
        while self.step():
            pass
        return self.state.registers[0]

    def _record(self, pc: int, instruction: Instruction, pre_state: dict,
                error: Optional[str] = None) -> None:
        if not self.record_trace:
            return
        self.trace.append(ExecutionTraceEntry(
            cycle=self.state.cycle_count,
            pc=pc,
            instruction=instruction,
            pre_state=pre_state,
            post_state=self.state.snapshot(),
            error=error
        ))

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def registers(self) -> Tuple[int, ...]:
        return self.state.registers

    @property
    def pc(self) -> int:
        return self.state.pc

    @property
    def cmp_flag(self) -> int:
        return self.state.cmp_flag

    @property
    def program(self) -> Tuple[Instruction, ...]:
        return self.state.memory

    def get_register(self, index: int) -> int:
        """Get value of register R<index>.

        Raises:
            InvalidRegister: If index is outside R0-R9
        """
        return self.state.get_register(index)

    def dump_registers(self) -> Dict[str, int]:
        return self.state.dump_registers()

    def get_cycle_count(self) -> int:
        return self.state.cycle_count

    def is_halted(self) -> bool:
        return self.state.halted

    def debug_format(self) -> str:
        """Human-readable dump of PC, flag and R0-R9, one register per line."""
        return self.state.debug_format()

    def __format__(self, format_spec: str) -> str:
        return format(self.debug_format(), format_spec)

    def __repr__(self) -> str:
        return f"RegisterVM(pc={self.pc}, cmp_flag={self.cmp_flag}, registers={list(self.registers)})"

    def print_trace(self) -> None:
        """Print execution trace in human-readable format."""
        print("=" * 70)
        print("REGVM EXECUTION TRACE")
        print("=" * 70)

        for entry in self.trace:
            status = "OK" if not entry.error else f"ERROR: {entry.error}"
            print(f"\n[Cycle {entry.cycle}] {status}")
            print(f"  PC: {entry.pc}")
            print(f"  Instruction: {entry.instruction}")

            # Show register changes
            pre_regs = entry.pre_state.get("registers", [])
            post_regs = entry.post_state.get("registers", [])
            changes = []
            for i, (before, after) in enumerate(zip(pre_regs, post_regs)):
                if before != after:
                    changes.append(f"R{i}: {before} → {after}")
            if changes:
                print(f"  Changes: {', '.join(changes)}")

            pre_flag = entry.pre_state.get("cmp_flag", 0)
            post_flag = entry.post_state.get("cmp_flag", 0)
            if pre_flag != post_flag:
                print(f"  Flag: {pre_flag} → {post_flag}")

            # Show PC change when it is not a plain fall-through
            post_pc = entry.post_state.get("pc", 0)
            if post_pc != entry.pc + 1:
                print(f"  PC: {entry.pc} → {post_pc}")

        print("\n" + "=" * 70)
        print("FINAL STATE")
        print("=" * 70)
        print(f"  Registers: {self.dump_registers()}")
        print(f"  Flag: {self.cmp_flag}")
        print(f"  PC: {self.pc}")
        print(f"  Cycles: {self.get_cycle_count()}")
        print(f"  Halted: {self.is_halted()}")

    def get_summary(self) -> Dict:
        """Get execution summary.

        Returns:
            Dictionary with execution statistics and final state
        """
        return {
            "cycles": self.get_cycle_count(),
            "halted": self.is_halted(),
            "result": self.state.registers[0],
            "registers": self.dump_registers(),
            "cmp_flag": self.cmp_flag,
            "pc": self.pc,
            "trace_length": len(self.trace),
            "errors": [e.error for e in self.trace if e.error],
        }
