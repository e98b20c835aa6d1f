"""Host keyboard to hex keypad mapping."""

from typing import Iterable


# Host key -> keypad key, laid out as
#   1 2 3 C      1 2 3 4
#   4 5 6 D  <-  q w e r
#   7 8 9 E      a s d f
#   A 0 B F      z x c v
KEYMAP: dict[str, int] = {
    "1": 0x1, "2": 0x2, "3": 0x3, "4": 0xC,
    "q": 0x4, "w": 0x5, "e": 0x6, "r": 0xD,
    "a": 0x7, "s": 0x8, "d": 0x9, "f": 0xE,
    "z": 0xA, "x": 0x0, "c": 0xB, "v": 0xF,
}


def keys_to_mask(names: Iterable[str]) -> int:
    """Build the held-key mask from host key names. Unmapped names are ignored."""
    mask = 0
    for name in names:
        key = KEYMAP.get(name.strip().lower())
        if key is not None:
            mask |= 1 << key
    return mask
