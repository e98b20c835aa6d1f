"""CHIP-8 Interpreter Core Package."""

__version__ = "0.2.0"

from .machine import Machine
from .instructions import step
from .runner import run_frame, run_program, RunOptions, RunResult
from .errors import C8Error, Fault, StartupError

__all__ = [
    "Machine",
    "step",
    "run_frame",
    "run_program",
    "RunOptions",
    "RunResult",
    "C8Error",
    "Fault",
    "StartupError",
]
