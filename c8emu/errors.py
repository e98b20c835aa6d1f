"""Custom exceptions for the CHIP-8 interpreter."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class FaultInfo:
    """Structured error information for API responses."""
    type: str
    message: str
    pc: int
    opcode: Optional[int] = None
    frame: Optional[int] = None
    cycle: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "message": self.message,
            "pc": self.pc,
            "opcode": self.opcode,
            "frame": self.frame,
            "cycle": self.cycle,
        }


class C8Error(Exception):
    """Base exception for all interpreter errors."""

    def __init__(
        self,
        message: str,
        pc: int = 0,
        opcode: Optional[int] = None,
        frame: Optional[int] = None,
        cycle: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.pc = pc
        self.opcode = opcode
        self.frame = frame
        self.cycle = cycle

    def to_fault_info(self) -> FaultInfo:
        return FaultInfo(
            type=self.__class__.__name__,
            message=self.message,
            pc=self.pc,
            opcode=self.opcode,
            frame=self.frame,
            cycle=self.cycle,
        )


class Fault(C8Error):
    """Error detected while executing a single instruction."""
    pass


class ProgramCounterOutOfBounds(Fault):
    """PC does not reference two valid memory bytes."""
    pass


class StackOverflow(Fault):
    """CALL with a full call stack."""
    pass


class StackUnderflow(Fault):
    """RET with an empty call stack."""
    pass


class InvalidEncoding(Fault):
    """Register-vs-register skip with a non-zero low nibble."""
    pass


class InvalidKeyCode(Fault):
    """Key test against a register holding a value >= 16."""
    pass


class InvalidFontCharacter(Fault):
    """Font lookup for a register holding a value >= 16."""
    pass


class MemoryRangeExceeded(Fault):
    """Indexed memory access past the end of memory."""
    pass


class SpriteReadOutOfBounds(MemoryRangeExceeded):
    """Sprite row read past the end of memory."""
    pass


class UnknownOpcode(Fault):
    """Instruction word matching no canonical instruction."""
    pass


class StartupError(C8Error):
    """Error raised before any instruction runs."""
    pass


class RomLoadError(StartupError):
    """ROM file could not be opened or read."""
    pass


class RomTooLarge(StartupError):
    """ROM image does not fit above the program start address."""
    pass


class ConfigurationError(StartupError):
    """Invalid machine configuration."""
    pass
