"""CPU state model for the CHIP-8 interpreter."""

from .errors import StackOverflow, StackUnderflow
from .memory import PROGRAM_START


STACK_SIZE = 12
REGISTER_COUNT = 16
FLAG = 0xF


class CPU:
    """Register file, index register, program counter, call stack and timers."""

    def __init__(self, start_address: int = PROGRAM_START):
        self.v: list[int] = [0] * REGISTER_COUNT
        self.i: int = 0
        self.pc: int = start_address
        self.stack: list[int] = [0] * STACK_SIZE
        self.sp: int = 0
        self.delay_timer: int = 0
        self.sound_timer: int = 0

    def set_v(self, x: int, value: int) -> None:
        """Set Vx with 8-bit wraparound."""
        self.v[x] = value & 0xFF

    def set_i(self, value: int) -> None:
        """Set I with 16-bit wraparound."""
        self.i = value & 0xFFFF

    def set_flag(self, value: int) -> None:
        self.v[FLAG] = value & 0x1

    def push(self, addr: int) -> None:
        """Push a return address.

        The last slot is never used: a push with SP at capacity-1 overflows.
        """
        if self.sp + 1 >= STACK_SIZE:
            raise StackOverflow(f"Stack overflow (SP={self.sp})")
        self.stack[self.sp] = addr
        self.sp += 1

    def pop(self) -> int:
        """Pop a return address."""
        if self.sp <= 0:
            raise StackUnderflow("Return with empty stack")
        self.sp -= 1
        return self.stack[self.sp]

    def tick_timers(self) -> None:
        """Count both timers down by one, stopping at zero."""
        if self.delay_timer > 0:
            self.delay_timer -= 1
        if self.sound_timer > 0:
            self.sound_timer -= 1

    def get_state(self) -> dict:
        """Get current register state as dictionary."""
        return {
            "v": list(self.v),
            "i": self.i,
            "pc": self.pc,
            "sp": self.sp,
            "stack": self.stack[:self.sp],
            "delay_timer": self.delay_timer,
            "sound_timer": self.sound_timer,
        }

    def reset(self, start_address: int = PROGRAM_START) -> None:
        """Reset CPU to initial state."""
        self.v = [0] * REGISTER_COUNT
        self.i = 0
        self.pc = start_address
        self.stack = [0] * STACK_SIZE
        self.sp = 0
        self.delay_timer = 0
        self.sound_timer = 0
