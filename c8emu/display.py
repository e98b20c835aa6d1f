"""Monochrome framebuffer for the CHIP-8 interpreter."""


WIDTH = 64
HEIGHT = 32


class Framebuffer:
    """64x32 1-bpp display, 8 pixels per byte, MSB is the leftmost pixel."""

    def __init__(self, width: int = WIDTH, height: int = HEIGHT):
        self.width = width
        self.height = height
        self.bytes_per_row = width // 8
        self._data = bytearray(self.bytes_per_row * height)

    def clear(self) -> None:
        self._data[:] = bytes(len(self._data))

    def _locate(self, x: int, y: int) -> tuple[int, int]:
        index = y * self.bytes_per_row + x // 8
        mask = 0x80 >> (x % 8)
        return index, mask

    def get_pixel(self, x: int, y: int) -> bool:
        index, mask = self._locate(x % self.width, y % self.height)
        return bool(self._data[index] & mask)

    def xor_pixel(self, x: int, y: int) -> bool:
        """Flip one pixel, wrapping coordinates. Returns True if it was lit."""
        index, mask = self._locate(x % self.width, y % self.height)
        was_set = bool(self._data[index] & mask)
        self._data[index] ^= mask
        return was_set

    def draw_row(self, x: int, y: int, sprite: int) -> bool:
        """XOR an 8-pixel sprite row at (x, y). Returns True on collision."""
        collision = False
        for col in range(8):
            if sprite & (0x80 >> col):
                if self.xor_pixel(x + col, y):
                    collision = True
        return collision

    def __getitem__(self, index: int) -> int:
        return self._data[index]

    def __setitem__(self, index: int, value: int) -> None:
        self._data[index] = value & 0xFF

    def __len__(self) -> int:
        return len(self._data)

    def rows(self, on: str = "#", off: str = ".") -> list[str]:
        """Render as one string per display row."""
        return [
            "".join(on if self.get_pixel(x, y) else off for x in range(self.width))
            for y in range(self.height)
        ]

    def snapshot(self) -> bytes:
        """Return a copy of the packed pixel data."""
        return bytes(self._data)
