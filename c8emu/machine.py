"""Machine state aggregate for the CHIP-8 interpreter."""

import random
import time
from functools import partial
from typing import Callable, Optional

from .cpu import CPU
from .display import Framebuffer
from .errors import ConfigurationError, ProgramCounterOutOfBounds
from .memory import Memory, PROGRAM_START


DEFAULT_CYCLES_PER_FRAME = 16

# Supplies one pseudo-random byte per call
ByteSource = Callable[[], int]


def validate_cycles_per_frame(value: int) -> int:
    if not 1 <= value <= 255:
        raise ConfigurationError(
            f"Cycles per frame must be between 1 and 255, got {value}"
        )
    return value


class Machine:
    """Everything one interpreter instance owns.

    The random source is injectable: pass ``rng`` (a callable returning a
    byte) or ``seed`` for reproducible RND results. Without either, a
    generator is seeded from the clock.
    """

    def __init__(
        self,
        cycles_per_frame: int = DEFAULT_CYCLES_PER_FRAME,
        rng: Optional[ByteSource] = None,
        seed: Optional[int] = None,
    ):
        self.cycles_per_frame = validate_cycles_per_frame(cycles_per_frame)
        self.memory = Memory()
        self.framebuffer = Framebuffer()
        self.cpu = CPU(start_address=PROGRAM_START)
        self.keys: int = 0
        self.draw_flag: bool = False
        self.tone_flag: bool = False

        if rng is None:
            generator = random.Random(time.time_ns() if seed is None else seed)
            rng = partial(generator.randrange, 256)
        self._rng = rng

    @classmethod
    def from_rom(cls, rom: bytes, **kwargs) -> "Machine":
        machine = cls(**kwargs)
        machine.load_rom(rom)
        return machine

    def load_rom(self, rom: bytes) -> None:
        """Copy a program image into memory at the program start address."""
        self.memory.load_rom(rom, PROGRAM_START)

    def random_byte(self) -> int:
        return self._rng() & 0xFF

    def set_keys(self, mask: int) -> None:
        """Replace the held-key mask (bit k set means key k is down)."""
        self.keys = mask & 0xFFFF

    def key_pressed(self, key: int) -> bool:
        return bool(self.keys & (1 << key))

    def fetch(self) -> int:
        """Read the instruction word at PC without advancing it."""
        pc = self.cpu.pc
        if not self.memory.contains(pc, 2):
            raise ProgramCounterOutOfBounds(
                f"Program counter 0x{pc:04X} exceeds memory", pc=pc
            )
        return self.memory.read_word(pc)

    def get_state(self) -> dict:
        state = self.cpu.get_state()
        state["keys"] = self.keys
        state["draw_flag"] = self.draw_flag
        state["tone_flag"] = self.tone_flag
        state["cycles_per_frame"] = self.cycles_per_frame
        return state
