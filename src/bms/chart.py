from typing import List, Optional, Tuple

from src.bms.note import Note
from src.bms.play_mode import PlayMode


class Chart:
    """
    A decoded chart as seen by the pattern modifiers: a play mode and a flat,
    index-addressed list of notes.
    """

    DEFAULT_BPM = 120.0

    def __init__(
        self,
        mode: PlayMode,
        notes: Optional[List[Note]] = None,
        title: str = "Unknown Title",
        bpm: float = DEFAULT_BPM,
    ):
        self.mode = mode
        self.notes: List[Note] = notes if notes is not None else []
        self.title = title
        self.bpm = bpm

    @property
    def length_us(self) -> int:
        """Time of the last note (or long note end), in microseconds."""
        if not self.notes:
            return 0
        return max(max(n.time_us, n.end_time_us) for n in self.notes)

    def long_note_pairs(self) -> List[Tuple[int, int]]:
        """Returns `(start_index, end_index)` for every linked long note."""
        return [
            (i, note.pair_index)
            for i, note in enumerate(self.notes)
            if note.is_long_start and note.pair_index is not None
        ]

    def __repr__(self) -> str:
        header = f"<Chart title='{self.title}' mode='{self.mode.hint}'>"
        details = (
            f"  - BPM: {self.bpm:g}\n"
            f"  - Length: {self.length_us / 1_000_000:.3f}s\n"
            f"  - Note Count: {len(self.notes)}"
        )

        notes_summary = "\n  - Notes:"
        if not self.notes:
            notes_summary += " None"
        else:
            for note in self.notes[:10]:
                notes_summary += f"\n    - {note}"
            if len(self.notes) > 10:
                notes_summary += f"\n    - ...and {len(self.notes) - 10} more entries."

        return f"{header}\n{details}{notes_summary}"
