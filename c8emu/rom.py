"""ROM file loading for the CHIP-8 interpreter."""

from pathlib import Path
from typing import Union

from .errors import RomLoadError, RomTooLarge
from .memory import MEMORY_SIZE, PROGRAM_START


MAX_ROM_SIZE = MEMORY_SIZE - PROGRAM_START


def load_rom_file(path: Union[str, Path]) -> bytes:
    """Read a raw ROM image, checking that it fits above 0x200."""
    path = Path(path)
    try:
        rom = path.read_bytes()
    except OSError as e:
        raise RomLoadError(f"Failed to open ROM {path}: {e.strerror or e}") from e

    if len(rom) > MAX_ROM_SIZE:
        raise RomTooLarge(
            f"ROM file too big: {len(rom)} bytes, limit is {MAX_ROM_SIZE}"
        )
    return rom
