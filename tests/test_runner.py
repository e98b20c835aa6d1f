"""Tests for the frame driver and headless harness."""

import logging

import pytest
from c8emu import run_frame, run_program, RunOptions, Machine
from c8emu.errors import ConfigurationError, StackUnderflow, UnknownOpcode


def rom(*words: int) -> bytes:
    return b"".join(word.to_bytes(2, "big") for word in words)


class TestRunFrame:
    """Frame driver behavior."""

    def test_runs_cycle_budget(self):
        """Exactly cycles_per_frame instructions run per frame."""
        machine = Machine.from_rom(rom(*[0x7001] * 40), cycles_per_frame=10)
        run_frame(machine)
        assert machine.cpu.v[0] == 10
        assert machine.cpu.pc == 0x200 + 20

    def test_timers_floor_at_zero(self):
        machine = Machine.from_rom(rom(0x1200))
        machine.cpu.delay_timer = 2
        machine.cpu.sound_timer = 2
        readings = []
        for _ in range(3):
            run_frame(machine)
            readings.append(machine.cpu.delay_timer)
        assert readings == [1, 0, 0]
        assert machine.cpu.sound_timer == 0

    def test_flags_cleared_each_frame(self):
        machine = Machine.from_rom(rom(0x00E0, 0x1202), cycles_per_frame=2)
        run_frame(machine)
        assert machine.draw_flag is True
        run_frame(machine)
        assert machine.draw_flag is False

    def test_tone_flag_per_frame(self):
        # 0x200: V0 := 3; 0x202: ST := V0; 0x204: loop
        machine = Machine.from_rom(rom(0x6003, 0xF018, 0x1204), cycles_per_frame=3)
        run_frame(machine)
        assert machine.tone_flag is True
        assert machine.cpu.sound_timer == 2
        run_frame(machine)
        assert machine.tone_flag is False

    def test_fault_propagates(self):
        machine = Machine.from_rom(rom(0x6001, 0x00EE))
        with pytest.raises(StackUnderflow) as exc:
            run_frame(machine, frame=4)
        assert exc.value.frame == 4
        assert exc.value.cycle == 1
        assert exc.value.pc == 0x202

    def test_continue_on_fault_forces_progress(self, caplog):
        """Faulting instructions are skipped and the budget is still spent."""
        machine = Machine.from_rom(rom(0x8018, 0x6042, 0x1204), cycles_per_frame=4)
        machine.cpu.delay_timer = 5
        with caplog.at_level(logging.WARNING, logger="c8emu.runner"):
            faults = run_frame(machine, continue_on_fault=True)
        assert faults == 1
        assert machine.cpu.v[0] == 0x42
        assert machine.cpu.pc == 0x204
        assert machine.cpu.delay_timer == 4
        assert "UnknownOpcode" in caplog.text

    def test_fault_logged_once(self, caplog):
        """A skipped fault produces a single warning."""
        machine = Machine.from_rom(rom(0x8018, 0x1202), cycles_per_frame=2)
        with caplog.at_level(logging.WARNING):
            run_frame(machine, continue_on_fault=True)
        warnings = [r for r in caplog.records if r.levelno >= logging.WARNING]
        assert len(warnings) == 1
        assert "0x0200" in warnings[0].getMessage()

    def test_unknown_opcode_spins_without_forced_progress(self):
        machine = Machine.from_rom(rom(0x0123))
        with pytest.raises(UnknownOpcode):
            run_frame(machine)
        assert machine.cpu.pc == 0x200

    @pytest.mark.parametrize("cycles", [0, 256])
    def test_invalid_cycles_per_frame(self, cycles):
        with pytest.raises(ConfigurationError):
            Machine(cycles_per_frame=cycles)


class TestRunProgram:
    """Harness results."""

    def test_ok_result(self):
        result = run_program(rom(0x6005, 0x1202), RunOptions(frames=2))
        assert result.status == "ok"
        assert result.frames_executed == 2
        assert result.final_state["v"][0] == 5
        assert result.final_state["pc"] == 0x202
        assert len(result.trace) == 2
        assert result.trace[0]["frame"] == 0
        assert "registers" not in result.trace[0]

    def test_trace_registers_and_framebuffer(self):
        opts = RunOptions(trace_include_registers=True, trace_include_framebuffer=True)
        result = run_program(rom(0x6105, 0xD005, 0x1204), opts)
        row = result.trace[0]
        assert row["registers"][1] == 5
        assert row["i"] == 0
        assert row["draw_flag"] is True
        assert row["framebuffer"][0].startswith("####")

    def test_framebuffer_rendered(self):
        result = run_program(rom(0xD005, 0x1202))
        assert result.framebuffer[0].startswith("####....")
        assert result.framebuffer[1].startswith("#..#....")
        assert len(result.framebuffer) == 32

    def test_runtime_fault(self):
        result = run_program(rom(0x00EE), RunOptions(frames=3))
        assert result.status == "error"
        assert result.error.type == "StackUnderflow"
        assert result.error.pc == 0x200
        assert result.error.opcode == 0x00EE
        assert result.error.frame == 0
        assert result.frames_executed == 0

    def test_continue_on_fault(self):
        opts = RunOptions(frames=1, cycles_per_frame=2, continue_on_fault=True)
        result = run_program(rom(0x00EE, 0x6007), opts)
        assert result.status == "ok"
        assert result.final_state["v"][0] == 7
        assert result.trace[0]["faults"] == 1

    def test_rom_too_large(self):
        result = run_program(b"\x00" * 0xE01)
        assert result.status == "error"
        assert result.error.type == "RomTooLarge"

    def test_bad_cycles_per_frame(self):
        result = run_program(rom(0x1200), RunOptions(cycles_per_frame=0))
        assert result.status == "error"
        assert result.error.type == "ConfigurationError"

    def test_key_schedule(self):
        """Keys can be scripted per frame."""
        opts = RunOptions(frames=3, keys=lambda frame: 1 << 6 if frame == 2 else 0)
        result = run_program(rom(0xF20A, 0x1202), opts)
        assert [row["pc"] for row in result.trace] == [0x200, 0x200, 0x202]
        assert result.final_state["v"][2] == 6

    def test_seeded_random_is_reproducible(self):
        opts = RunOptions(seed=99)
        first = run_program(rom(0xC0FF, 0xC1FF, 0x1204), opts)
        second = run_program(rom(0xC0FF, 0xC1FF, 0x1204), opts)
        assert first.final_state["v"] == second.final_state["v"]

    def test_result_format(self):
        d = run_program(rom(0x1200)).to_dict()
        assert d["status"] == "ok"
        for key in ("frames_executed", "final_state", "framebuffer", "trace"):
            assert key in d
        assert "error" not in d

    def test_error_result_format(self):
        d = run_program(rom(0x00EE)).to_dict()
        assert d["status"] == "error"
        for key in ("type", "message", "pc", "opcode", "frame", "cycle"):
            assert key in d["error"]
