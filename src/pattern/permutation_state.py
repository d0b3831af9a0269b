"""
This module defines PermutationState, the long note tracker carried from one
instant to the next while a note-level randomizer rewrites a chart.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from src.bms.note import Note
from src.pattern.timeline import TimelineView


@dataclass
class PermutationState:
    """
    Holds the lanes locked by long notes that are currently being held.

    The lane lists are ordered: lanes released by a long note end are appended
    at the back. The randomizers draw lane positions from these lists, so the
    order is part of the replay-reproducible behavior.

    Attributes:
        modify_lanes (Tuple[int, ...]): Lanes the modifier may rearrange.
        ln_active (Dict[int, int]): Source lane to destination lane of every
                                    long note whose end has not been reached.
        changeable_lane (List[int]): Source lanes free to be remapped.
        assignable_lane (List[int]): Destination lanes free to receive notes.
    """

    modify_lanes: Tuple[int, ...]
    ln_active: Dict[int, int] = field(default_factory=dict)
    changeable_lane: List[int] = field(init=False)
    assignable_lane: List[int] = field(init=False)
    # End times of long notes stored without an end note; these are released by time.
    _open_ends: Dict[int, int] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self):
        self.modify_lanes = tuple(self.modify_lanes)
        self.changeable_lane = list(self.modify_lanes)
        self.assignable_lane = list(self.modify_lanes)

    def release_expired(self, time_us: int) -> None:
        """Releases unpaired long notes whose end time lies before `time_us`."""
        for source in [s for s, end in self._open_ends.items() if end < time_us]:
            self._release(source)

    def merge_active(self, lane_map: Dict[int, int]) -> Dict[int, int]:
        """Adds the held long notes to an instant's map; they keep their destination."""
        lane_map.update(self.ln_active)
        return lane_map

    def permutate(
        self, view: TimelineView, notes: List[Note], lane_map: Dict[int, int]
    ) -> None:
        """
        Applies one instant's lane map to the chart and updates the tracker.

        A long note start locks its source and destination lanes until its end
        is reached; the end releases both. Every destination is also applied
        to the paired end of a long note start and to an invisible note on the
        same source lane.
        """
        for source in sorted(lane_map):
            dest = lane_map[source]
            idx = view.notes.get(source)
            if idx is not None:
                note = notes[idx]
                if note.is_long_end:
                    if source in self.ln_active:
                        self._release(source)
                elif note.is_long_start and source not in self.ln_active:
                    self.ln_active[source] = dest
                    self.changeable_lane.remove(source)
                    self.assignable_lane.remove(dest)
                    if note.pair_index is None:
                        self._open_ends[source] = note.end_time_us

                note.lane = dest
                if note.is_long_start and note.pair_index is not None:
                    notes[note.pair_index].lane = dest

            hidden_idx = view.hidden_notes.get(source)
            if hidden_idx is not None:
                notes[hidden_idx].lane = dest

    def _release(self, source: int) -> None:
        dest = self.ln_active.pop(source)
        self._open_ends.pop(source, None)
        self.changeable_lane.append(source)
        self.assignable_lane.append(dest)
