"""Tests for the RegisterVM fetch/run driver."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import logging

import pytest
from regvm import (
    DivisionByZero, Imm, InvalidProgramCounter, InvalidRegister, Reg, RegisterVM,
    INT64_MAX, INT64_MIN,
    add, cmp, div, halt, je, jmp, jne, mov, sub,
)
from regvm.programs import factorial_program


@pytest.fixture
def vm():
    return RegisterVM()


class TestConstruction:
    """Test a fresh VM."""

    def test_fresh_vm(self, vm):
        assert vm.registers == (0,) * 10
        assert vm.pc == 0
        assert vm.cmp_flag == 0
        assert vm.program == ()
        assert vm.is_halted() is False
        assert vm.get_cycle_count() == 0


class TestSeedScenarios:
    """End-to-end scenarios."""

    def test_factorial_of_5(self, vm):
        vm.load_program(factorial_program(5))
        assert len(vm.program) == 9
        assert vm.run() == 120
        assert vm.is_halted() is True

    def test_empty_program(self, vm):
        vm.load_program([])
        assert vm.run() == 0
        assert vm.pc == 0

    def test_run_without_loading(self, vm):
        assert vm.run() == 0

    def test_halt_only(self, vm):
        vm.load_program([halt()])
        assert vm.run() == 0
        assert vm.pc == 1

    def test_immediate_move_and_halt(self, vm):
        vm.load_program([mov(0, Imm(42)), halt()])
        assert vm.run() == 42

    def test_division_by_zero(self, vm):
        """State at the failure is kept for inspection."""
        vm.load_program([mov(0, Imm(10)), mov(1, Imm(0)), div(0, Reg(1))])
        with pytest.raises(DivisionByZero) as excinfo:
            vm.run()
        assert excinfo.value.pc == 2
        assert vm.get_register(0) == 10
        assert vm.get_register(1) == 0
        assert vm.pc == 3
        assert vm.is_halted() is True

    def test_bad_register(self, vm):
        vm.load_program([mov(10, Imm(1))])
        with pytest.raises(InvalidRegister):
            vm.run()

    def test_conditional_skip(self, vm):
        """JNE not taken on equal, so its out-of-range target is never checked."""
        vm.load_program([mov(0, Imm(1)), cmp(0, Imm(1)), jne(99), mov(0, Imm(7)), halt()])
        assert vm.run() == 7


class TestDriver:
    """Test fetch/advance/execute ordering."""

    def test_falls_off_end(self, vm):
        vm.load_program([mov(0, 3), add(0, 4)])
        assert vm.run() == 7
        assert vm.pc == 2

    def test_halt_stops_fetching(self, vm):
        vm.load_program([mov(0, 1), halt(), mov(0, 2)])
        assert vm.run() == 1
        assert vm.pc == 2

    def test_jmp_to_last_instruction(self, vm):
        vm.load_program([jmp(2), mov(0, 5), mov(0, 9)])
        assert vm.run() == 9

    def test_jmp_to_store_length_fails(self, vm):
        vm.load_program([jmp(2), halt()])
        with pytest.raises(InvalidProgramCounter) as excinfo:
            vm.run()
        assert excinfo.value.target == 2
        assert excinfo.value.pc == 0

    def test_je_out_of_range_when_not_equal(self, vm):
        vm.load_program([mov(0, 1), cmp(0, 2), je(50), mov(0, 8)])
        assert vm.run() == 8

    def test_step_by_step_pc(self, vm):
        """Non-branch opcodes advance PC by one; taken branches set it."""
        vm.load_program([mov(0, 1), cmp(0, 1), je(4), mov(0, 2), halt()])
        pcs = []
        while vm.step():
            pcs.append(vm.pc)
        assert pcs == [1, 2, 4]
        assert vm.pc == 5
        assert vm.get_cycle_count() == 4

    def test_step_after_halt(self, vm):
        vm.load_program([halt()])
        assert vm.step() is False
        assert vm.step() is False
        assert vm.get_cycle_count() == 1

    def test_infinite_loop_can_be_preempted_with_step(self, vm):
        vm.load_program([add(0, 1), jmp(0)])
        for _ in range(100):
            assert vm.step() is True
        assert vm.get_register(0) == 50
        assert vm.is_halted() is False

    def test_halted_vm_runs_nothing(self, vm):
        vm.load_program([mov(0, 1), halt(), mov(0, 2)])
        assert vm.run() == 1
        assert vm.run() == 1
        assert vm.pc == 2

    def test_error_halts_vm(self, vm):
        vm.load_program([div(0, 0), mov(0, 5)])
        with pytest.raises(DivisionByZero):
            vm.run()
        assert vm.run() == 0
        assert vm.pc == 1

    def test_overflow_is_not_an_error(self, vm):
        vm.load_program([mov(0, INT64_MAX), add(0, 1), halt()])
        assert vm.run() == INT64_MIN

    def test_cmp_min_against_large_positive(self, vm):
        vm.load_program([mov(0, INT64_MIN), cmp(0, INT64_MAX), halt()])
        vm.run()
        assert vm.cmp_flag < 0


class TestLoadProgram:
    """Test program loading."""

    def test_load_resets_pc_only(self, vm):
        """Registers and flag carry over into the next program."""
        vm.load_program([mov(3, 11), cmp(3, 20), halt()])
        vm.run()
        vm.load_program([halt()])
        assert vm.pc == 0
        assert vm.get_register(3) == 11
        assert vm.cmp_flag == -1
        assert vm.is_halted() is False

    def test_load_twice_is_idempotent(self, vm):
        program = [mov(0, 1), halt()]
        vm.load_program(program)
        first = (vm.program, vm.pc)
        vm.load_program(program)
        assert (vm.program, vm.pc) == first

    def test_load_copies_program(self, vm):
        program = [mov(0, 1), halt()]
        vm.load_program(program)
        program.append(mov(0, 2))
        assert len(vm.program) == 2

    def test_load_rejects_non_instructions(self, vm):
        with pytest.raises(TypeError, match="address 1"):
            vm.load_program([halt(), "HALT"])

    def test_rerun_after_reload(self, vm):
        vm.load_program([add(0, 5)])
        assert vm.run() == 5
        vm.load_program([add(0, 5)])
        assert vm.run() == 10


class TestTrace:
    """Test execution trace recording."""

    def test_trace_off_by_default(self, vm):
        vm.load_program([mov(0, 1), halt()])
        vm.run()
        assert vm.trace == []

    def test_trace_records_all_cycles(self):
        vm = RegisterVM(record_trace=True)
        vm.load_program([mov(0, 1), mov(1, 2), halt()])
        vm.run()

        assert [entry.instruction for entry in vm.trace] == [mov(0, 1), mov(1, 2), halt()]
        assert [entry.pc for entry in vm.trace] == [0, 1, 2]
        assert [entry.cycle for entry in vm.trace] == [1, 2, 3]

    def test_trace_captures_state_changes(self):
        vm = RegisterVM(record_trace=True)
        vm.load_program([mov(0, 42), halt()])
        vm.run()

        assert vm.trace[0].pre_state["registers"][0] == 0
        assert vm.trace[0].post_state["registers"][0] == 42
        assert vm.trace[0].post_state["pc"] == 1

    def test_trace_records_error(self):
        vm = RegisterVM(record_trace=True)
        vm.load_program([sub(0, 1), div(0, 0)])
        with pytest.raises(DivisionByZero):
            vm.run()

        assert vm.trace[-1].error == "Division by zero"
        assert vm.get_summary()["errors"] == ["Division by zero"]

    def test_load_clears_trace(self):
        vm = RegisterVM(record_trace=True)
        vm.load_program([halt()])
        vm.run()
        vm.load_program([halt()])
        assert vm.trace == []

    def test_print_trace(self, capsys):
        vm = RegisterVM(record_trace=True)
        vm.load_program([mov(0, 42), jmp(3), halt(), halt()])
        vm.run()
        vm.print_trace()

        out = capsys.readouterr().out
        assert "MOV R0, 42" in out
        assert "R0: 0 → 42" in out
        assert "PC: 1 → 3" in out


class TestReporting:
    """Test debug format, summary and logging."""

    def test_debug_format(self, vm):
        vm.load_program(factorial_program(5))
        vm.run()
        text = format(vm)
        assert text == vm.debug_format()
        assert "Program Counter: 9" in text
        assert "R0: 120" in text
        assert "R9: 0" in text

    def test_summary(self, vm):
        vm.load_program([mov(0, 3), halt()])
        vm.run()
        summary = vm.get_summary()
        assert summary["result"] == 3
        assert summary["cycles"] == 2
        assert summary["halted"] is True
        assert summary["registers"]["R0"] == 3

    def test_repr(self, vm):
        assert repr(vm).startswith("RegisterVM(pc=0")

    def test_logs_each_instruction(self, vm, caplog):
        vm.load_program([mov(0, 1), halt()])
        with caplog.at_level(logging.DEBUG):
            vm.run()
        assert "PC=0 MOV R0, 1" in caplog.text
        assert "PC=1 HALT" in caplog.text

    def test_logs_errors(self, vm, caplog):
        vm.load_program([div(0, 0)])
        with caplog.at_level(logging.INFO):
            with pytest.raises(DivisionByZero):
                vm.run()
        assert "Execution error at PC=0" in caplog.text
