"""REGVM Interactive Demo.

A Gradio web interface for running and visualizing REGVM execution.

Usage:
    cd /path/to/regvm
    python demo/gradio_app.py

Features:
    - Pick one of the sample programs and its input
    - See the program listing with instruction addresses
    - See step-by-step execution trace
    - Visualize register state changes
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import gradio as gr
from regvm import RegisterVM, VMError
from regvm.programs import SAMPLE_PROGRAMS


MAX_TRACE_ENTRIES = 100


# =============================================================================
# Execution Functions
# =============================================================================

def format_listing(program_name: str, n: int) -> str:
    """Render the selected sample program, one instruction per address."""
    sample = SAMPLE_PROGRAMS[program_name]
    try:
        program = sample.build(int(n))
    except ValueError as e:
        return f"Error: {e}"
    return "\n".join(f"{addr:>3}: {instruction}" for addr, instruction in enumerate(program))


def run_program(program_name: str, n: int, max_cycles: int) -> tuple:
    """Execute a sample program and return results.

    Args:
        program_name: Key in SAMPLE_PROGRAMS
        n: Program input
        max_cycles: Maximum execution cycles

    Returns:
        Tuple of (summary_text, trace_text, registers_text)
    """
    sample = SAMPLE_PROGRAMS[program_name]
    n = int(n)
    try:
        program = sample.build(n)
    except ValueError as e:
        return f"Error: {e}", "", ""

    vm = RegisterVM(record_trace=True)
    vm.load_program(program)

    error_msg = None
    try:
        while vm.step():
            if vm.get_cycle_count() >= max_cycles:
                error_msg = f"Max cycles ({int(max_cycles)}) exceeded"
                break
    except VMError as e:
        error_msg = f"{type(e).__name__}: {e} (PC={e.pc})"

    # Format summary
    summary = vm.get_summary()
    summary_lines = [
        "EXECUTION SUMMARY",
        "=" * 40,
        f"{sample.label.format(n=n)}: {summary['result']}",
        f"Cycles: {summary['cycles']}",
        f"Halted: {'Yes' if summary['halted'] else 'No'}",
    ]
    if error_msg:
        summary_lines.append(f"\nRuntime: {error_msg}")
    summary_text = "\n".join(summary_lines)

    # Format trace
    trace_lines = [
        "EXECUTION TRACE",
        "=" * 60,
    ]
    for entry in vm.trace[:MAX_TRACE_ENTRIES]:
        trace_lines.append(f"\n--- Cycle {entry.cycle} (PC={entry.pc}) ---")
        trace_lines.append(f"Instruction: {entry.instruction}")

        changes = []
        pre_regs = entry.pre_state["registers"]
        post_regs = entry.post_state["registers"]
        for i, (before, after) in enumerate(zip(pre_regs, post_regs)):
            if before != after:
                changes.append(f"R{i}: {before} -> {after}")
        if entry.pre_state["cmp_flag"] != entry.post_state["cmp_flag"]:
            changes.append(f"Flag: {entry.pre_state['cmp_flag']} -> {entry.post_state['cmp_flag']}")
        if changes:
            trace_lines.append(f"Changes:     {', '.join(changes)}")
        if entry.error:
            trace_lines.append(f"Error:       {entry.error}")

    if len(vm.trace) > MAX_TRACE_ENTRIES:
        trace_lines.append(f"\n... ({len(vm.trace) - MAX_TRACE_ENTRIES} more entries)")

    trace_text = "\n".join(trace_lines)

    return summary_text, trace_text, vm.debug_format()


# =============================================================================
# Gradio Interface
# =============================================================================

def create_demo():
    """Create and return the Gradio demo interface."""

    with gr.Blocks(title="REGVM Demo", theme=gr.themes.Soft()) as demo:
        gr.Markdown("""
        # REGVM: Register-Based Virtual Machine

        Ten signed 64-bit registers, a comparison flag and a program counter.
        Each cycle fetches the instruction at PC, advances PC, and executes it.
        The program's result is the final value of R0.
        """)

        with gr.Row():
            with gr.Column(scale=2):
                gr.Markdown("### Program")

                program_dropdown = gr.Dropdown(
                    choices=list(SAMPLE_PROGRAMS.keys()),
                    value="factorial",
                    label="Sample Program"
                )

                n_input = gr.Number(
                    value=SAMPLE_PROGRAMS["factorial"].default,
                    precision=0,
                    label="Input (n)"
                )

                listing_output = gr.Textbox(
                    value=format_listing("factorial", SAMPLE_PROGRAMS["factorial"].default),
                    label="Listing",
                    lines=12,
                    interactive=False
                )

                gr.Markdown("### Settings")

                max_cycles = gr.Slider(
                    minimum=10,
                    maximum=100000,
                    value=10000,
                    step=10,
                    label="Max Cycles"
                )

                run_button = gr.Button("Run Program", variant="primary")

            with gr.Column(scale=3):
                with gr.Row():
                    summary_output = gr.Textbox(
                        label="Summary",
                        lines=10,
                        interactive=False
                    )
                    registers_output = gr.Textbox(
                        label="Final State",
                        lines=14,
                        interactive=False
                    )

                trace_output = gr.Textbox(
                    label="Execution Trace",
                    lines=20,
                    interactive=False
                )

        with gr.Accordion("ISA Reference", open=False):
            gr.Markdown("""
            | Instruction | Description |
            |-------------|-------------|
            | `MOV Rd, src` | Rd = src |
            | `ADD Rd, src` | Rd = Rd + src (wraps at 64 bits) |
            | `SUB Rd, src` | Rd = Rd - src (wraps at 64 bits) |
            | `MUL Rd, src` | Rd = Rd * src (wraps at 64 bits) |
            | `DIV Rd, src` | Rd = Rd / src, truncated; fails if src is 0 |
            | `CMP Rs, src` | Flag = sign(Rs - src) |
            | `JMP addr` | Jump to instruction index |
            | `JE / JNE / JG / JL addr` | Jump if flag = 0 / != 0 / > 0 / < 0 |
            | `HALT` | Stop execution |

            **Registers**: R0-R9 (10 general purpose, 64-bit signed)
            **Operands**: `src` is a register or an immediate
            """)

        # Event handlers
        def on_program_change(program_name):
            default = SAMPLE_PROGRAMS[program_name].default
            return default, format_listing(program_name, default)

        program_dropdown.change(
            fn=on_program_change,
            inputs=[program_dropdown],
            outputs=[n_input, listing_output]
        )

        n_input.change(
            fn=format_listing,
            inputs=[program_dropdown, n_input],
            outputs=[listing_output]
        )

        run_button.click(
            fn=run_program,
            inputs=[program_dropdown, n_input, max_cycles],
            outputs=[summary_output, trace_output, registers_output]
        )

    return demo


# =============================================================================
# Main
# =============================================================================

if __name__ == "__main__":
    demo = create_demo()
    demo.launch(
        share=False,
        server_name="0.0.0.0",
        server_port=7861,
        show_error=True
    )
