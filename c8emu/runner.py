"""Frame driver and headless harness for the CHIP-8 interpreter."""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Union

from .errors import C8Error, Fault, FaultInfo
from .instructions import step
from .machine import DEFAULT_CYCLES_PER_FRAME, Machine


logger = logging.getLogger(__name__)

# Fixed mask, or frame index -> mask
KeySchedule = Union[int, Callable[[int], int]]


def run_frame(
    machine: Machine,
    continue_on_fault: bool = False,
    frame: Optional[int] = None,
) -> int:
    """Run one frame: cycles_per_frame steps, then one timer tick.

    Args:
        machine: State to mutate
        continue_on_fault: Log faults and force PC += 2 instead of raising
        frame: Frame number attached to raised faults

    Returns:
        Number of faults swallowed during the frame
    """
    machine.draw_flag = False
    machine.tone_flag = False
    faults = 0

    for cycle in range(machine.cycles_per_frame):
        try:
            step(machine)
        except Fault as e:
            e.frame = frame
            e.cycle = cycle
            if not continue_on_fault:
                raise
            faults += 1
            logger.warning(
                "%s at 0x%04X: %s (forcing PC += 2)",
                e.__class__.__name__, e.pc, e.message,
            )
            machine.cpu.pc = (machine.cpu.pc + 2) & 0xFFFF

    machine.cpu.tick_timers()
    return faults


@dataclass
class RunOptions:
    """Options for headless execution."""
    frames: int = 1
    cycles_per_frame: int = DEFAULT_CYCLES_PER_FRAME
    keys: KeySchedule = 0
    seed: Optional[int] = None
    continue_on_fault: bool = False
    trace: bool = True
    trace_include_registers: bool = False
    trace_include_framebuffer: bool = False


@dataclass
class TraceRow:
    """Machine snapshot taken after one frame."""
    frame: int
    pc: int
    draw_flag: bool
    tone_flag: bool
    delay_timer: int
    sound_timer: int
    faults: int = 0
    registers: Optional[list[int]] = None
    i: Optional[int] = None
    framebuffer: Optional[list[str]] = None

    def to_dict(self, include_registers: bool, include_framebuffer: bool) -> dict:
        result = {
            "frame": self.frame,
            "pc": self.pc,
            "draw_flag": self.draw_flag,
            "tone_flag": self.tone_flag,
            "delay_timer": self.delay_timer,
            "sound_timer": self.sound_timer,
            "faults": self.faults,
        }
        if include_registers:
            result["registers"] = self.registers
            result["i"] = self.i
        if include_framebuffer:
            result["framebuffer"] = self.framebuffer
        return result


@dataclass
class RunResult:
    """Result of headless execution."""
    status: str  # "ok" | "error"
    frames_executed: int
    final_state: dict
    framebuffer: list[str]
    trace: list[dict] = field(default_factory=list)
    error: Optional[FaultInfo] = None

    def to_dict(self) -> dict:
        result = {
            "status": self.status,
            "frames_executed": self.frames_executed,
            "final_state": self.final_state,
            "framebuffer": self.framebuffer,
            "trace": self.trace,
        }
        if self.error:
            result["error"] = self.error.to_dict()
        return result


def _keys_for_frame(keys: KeySchedule, frame: int) -> int:
    if callable(keys):
        return keys(frame)
    return keys


def run_program(rom: bytes, options: Optional[RunOptions] = None) -> RunResult:
    """Run a ROM image for a fixed number of frames.

    Args:
        rom: Raw program bytes, loaded at 0x200
        options: Execution options

    Returns:
        RunResult with status, final state, display and trace
    """
    if options is None:
        options = RunOptions()

    trace_rows: list[dict] = []
    error_info: Optional[FaultInfo] = None
    frames_executed = 0

    try:
        machine = Machine(cycles_per_frame=options.cycles_per_frame, seed=options.seed)
        machine.load_rom(rom)
    except C8Error as e:
        return RunResult(
            status="error",
            frames_executed=0,
            final_state={},
            framebuffer=[],
            error=e.to_fault_info(),
        )

    try:
        for frame in range(options.frames):
            machine.set_keys(_keys_for_frame(options.keys, frame))
            faults = run_frame(
                machine,
                continue_on_fault=options.continue_on_fault,
                frame=frame,
            )
            frames_executed += 1

            if options.trace:
                row = TraceRow(
                    frame=frame,
                    pc=machine.cpu.pc,
                    draw_flag=machine.draw_flag,
                    tone_flag=machine.tone_flag,
                    delay_timer=machine.cpu.delay_timer,
                    sound_timer=machine.cpu.sound_timer,
                    faults=faults,
                    registers=list(machine.cpu.v) if options.trace_include_registers else None,
                    i=machine.cpu.i if options.trace_include_registers else None,
                    framebuffer=machine.framebuffer.rows() if options.trace_include_framebuffer else None,
                )
                trace_rows.append(row.to_dict(
                    include_registers=options.trace_include_registers,
                    include_framebuffer=options.trace_include_framebuffer,
                ))

    except Fault as e:
        logger.error("%s at 0x%04X: %s", e.__class__.__name__, e.pc, e.message)
        error_info = e.to_fault_info()

    return RunResult(
        status="ok" if error_info is None else "error",
        frames_executed=frames_executed,
        final_state=machine.get_state(),
        framebuffer=machine.framebuffer.rows(),
        trace=trace_rows,
        error=error_info,
    )
