from dataclasses import dataclass
from enum import IntEnum
from typing import Optional


class NoteType(IntEnum):
    """The kinds of objects a chart places on a lane."""

    NORMAL = 0
    INVISIBLE = 1
    MINE = 2
    LONG = 3


@dataclass
class Note:
    """
    Represents a single note of a chart.

    Only `lane` is rewritten by pattern modifiers. Long notes are stored as two
    entries, a start carrying `end_time_us` and an end with `end_time_us == 0`,
    linked to each other through `pair_index` (an index into the chart's note
    list).
    """

    lane: int
    time_us: int
    note_type: NoteType = NoteType.NORMAL
    end_time_us: int = 0
    wav_id: int = 0
    pair_index: Optional[int] = None

    @property
    def is_long_end(self) -> bool:
        return (
            self.note_type == NoteType.LONG
            and self.pair_index is not None
            and self.end_time_us == 0
        )

    @property
    def is_long_start(self) -> bool:
        return self.note_type == NoteType.LONG and not self.is_long_end

    @property
    def is_playable(self) -> bool:
        """True for notes the player has to hit (not mines, not invisible)."""
        return self.note_type in (NoteType.NORMAL, NoteType.LONG)

    @property
    def is_visible(self) -> bool:
        return self.note_type != NoteType.INVISIBLE
