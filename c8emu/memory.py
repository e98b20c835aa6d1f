"""Memory model for the CHIP-8 interpreter."""

from .errors import MemoryRangeExceeded, RomTooLarge


MEMORY_SIZE = 0x1000
PROGRAM_START = 0x200
FONT_START = 0x000
FONT_GLYPH_SIZE = 5

# Hex digit glyphs 0-F, 4x5 pixels each, one byte per row
FONTSET = bytes([
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
])


class Memory:
    """Flat byte-addressed RAM with the font set preloaded in low memory."""

    def __init__(self, size: int = MEMORY_SIZE):
        self.size = size
        self._data = bytearray(size)
        self._data[FONT_START:FONT_START + len(FONTSET)] = FONTSET

    def __len__(self) -> int:
        return self.size

    def contains(self, addr: int, length: int = 1) -> bool:
        """True if addr..addr+length-1 are all valid addresses."""
        return addr >= 0 and addr + length <= self.size

    def _check_bounds(self, addr: int, length: int = 1) -> None:
        if not self.contains(addr, length):
            raise MemoryRangeExceeded(
                f"Memory range out of bounds: 0x{addr:04X}+{length}"
            )

    def read(self, addr: int) -> int:
        """Read one byte."""
        self._check_bounds(addr)
        return self._data[addr]

    def write(self, addr: int, value: int) -> None:
        """Write one byte, truncated to 8 bits."""
        self._check_bounds(addr)
        self._data[addr] = value & 0xFF

    def read_word(self, addr: int) -> int:
        """Read a big-endian 16-bit word."""
        self._check_bounds(addr, 2)
        return self._data[addr] << 8 | self._data[addr + 1]

    def read_block(self, addr: int, length: int) -> bytes:
        self._check_bounds(addr, length)
        return bytes(self._data[addr:addr + length])

    def write_block(self, addr: int, data: bytes) -> None:
        self._check_bounds(addr, len(data))
        self._data[addr:addr + len(data)] = data

    def load_rom(self, rom: bytes, start: int = PROGRAM_START) -> None:
        """Copy a program image verbatim into memory at start."""
        capacity = self.size - start
        if len(rom) > capacity:
            raise RomTooLarge(
                f"ROM is {len(rom)} bytes, at most {capacity} fit at 0x{start:03X}"
            )
        self._data[start:start + len(rom)] = rom

    def snapshot(self) -> bytes:
        """Return a copy of the entire memory."""
        return bytes(self._data)
