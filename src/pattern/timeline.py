"""
This module groups a chart's notes into per-instant snapshots.

The randomizers work on one instant (all notes sharing a timestamp) at a time.
A TimelineView records, for one instant, which note sits on which lane before
any modifier has touched the chart, so that the lanes of the notes themselves
can be rewritten freely while the views are iterated.
"""

import warnings
from dataclasses import dataclass, field
from typing import Dict, List

from src.bms.note import Note, NoteType


@dataclass(frozen=True)
class TimelineView:
    """
    Read-only snapshot of one instant of the chart.

    Attributes:
        time_us (int): Timestamp shared by every note of the instant.
        notes (Dict[int, int]): Lane to note index, for visible notes
                                (normal, mine, long note start or end).
        hidden_notes (Dict[int, int]): Lane to note index, for invisible
                                       notes.
        note_types (Dict[int, NoteType]): Lane to the type of the note on it.
    """

    time_us: int
    notes: Dict[int, int] = field(default_factory=dict)
    hidden_notes: Dict[int, int] = field(default_factory=dict)
    note_types: Dict[int, NoteType] = field(default_factory=dict)

    @property
    def time_ms(self) -> int:
        """Whole milliseconds, truncated; the repeat thresholds compare these."""
        return self.time_us // 1000

    def has_note(self, lane: int) -> bool:
        """True if a visible note (mines included) sits on the lane."""
        return lane in self.notes

    def has_playable_note(self, lane: int) -> bool:
        """True if a note the player has to hit sits on the lane."""
        return self.note_types.get(lane) in (NoteType.NORMAL, NoteType.LONG)


def build_timelines(notes: List[Note]) -> List[TimelineView]:
    """
    Groups notes by exact timestamp into views in ascending time order.

    The notes do not have to be sorted. When two visible notes share a lane
    and a timestamp only the first one (in note order) is kept in the view.
    """
    grouped: Dict[int, List[int]] = {}
    for idx, note in enumerate(notes):
        grouped.setdefault(note.time_us, []).append(idx)

    views: List[TimelineView] = []
    for time_us in sorted(grouped):
        visible: Dict[int, int] = {}
        hidden: Dict[int, int] = {}
        types: Dict[int, NoteType] = {}
        for idx in grouped[time_us]:
            note = notes[idx]
            target = visible if note.is_visible else hidden
            if note.lane in target:
                warnings.warn(
                    f"Duplicate note on lane {note.lane} at {time_us}us; "
                    f"note #{idx} is ignored by the randomizer."
                )
                continue
            target[note.lane] = idx
            # A visible note's type wins over an invisible one on the same lane.
            if note.is_visible:
                types[note.lane] = note.note_type
            else:
                types.setdefault(note.lane, note.note_type)
        views.append(TimelineView(time_us, visible, hidden, types))
    return views
