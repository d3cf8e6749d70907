"""The nine pads and their fixed input mapping.

Grid (top row first), keys and MIDI notes:

    pad7 (q, 42)  pad8 (w, 43)  pad9 (e, 44)
    pad4 (a, 39)  pad5 (s, 40)  pad6 (d, 41)
    pad1 (z, 36)  pad2 (x, 37)  pad3 (c, 38)
"""

from enum import Enum
from typing import Optional

# MIDI note that maps to pad1
BASE_NOTE = 36


class PadId(str, Enum):
    PAD1 = "pad1"
    PAD2 = "pad2"
    PAD3 = "pad3"
    PAD4 = "pad4"
    PAD5 = "pad5"
    PAD6 = "pad6"
    PAD7 = "pad7"
    PAD8 = "pad8"
    PAD9 = "pad9"

    def __str__(self) -> str:
        return self.value

    @property
    def number(self) -> int:
        """1-based pad number."""
        return int(self.value[3:])

    @property
    def key(self) -> str:
        return PAD_KEYS[self]

    @property
    def note(self) -> int:
        return BASE_NOTE + self.number - 1

    @property
    def grid_position(self) -> tuple[int, int]:
        """(row, column) with row 0 at the top."""
        index = GRID_ORDER.index(self)
        return divmod(index, 3)

    @classmethod
    def from_number(cls, number: int) -> "PadId":
        return cls(f"pad{number}")


GRID_ORDER: tuple[PadId, ...] = (
    PadId.PAD7, PadId.PAD8, PadId.PAD9,
    PadId.PAD4, PadId.PAD5, PadId.PAD6,
    PadId.PAD1, PadId.PAD2, PadId.PAD3,
)

PAD_KEYS: dict[PadId, str] = {
    PadId.PAD1: "z", PadId.PAD2: "x", PadId.PAD3: "c",
    PadId.PAD4: "a", PadId.PAD5: "s", PadId.PAD6: "d",
    PadId.PAD7: "q", PadId.PAD8: "w", PadId.PAD9: "e",
}

_KEY_TO_PAD = {key: pad for pad, key in PAD_KEYS.items()}


def pad_for_key(key: Optional[str]) -> Optional[PadId]:
    """Resolve a typed character to a pad (case-insensitive)."""
    if not key:
        return None
    return _KEY_TO_PAD.get(key.lower())


def pad_for_note(note: int) -> Optional[PadId]:
    """Resolve a MIDI note number; notes outside 36..44 map to nothing."""
    offset = note - BASE_NOTE
    if 0 <= offset < len(PadId):
        return PadId.from_number(offset + 1)
    return None
