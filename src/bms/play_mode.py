"""
This module defines the lane layouts of the supported play modes and the
helper that selects which lanes of a layout a modifier may touch.
"""

from enum import Enum
from typing import List, Optional, Tuple


class PlayMode(Enum):
    """
    Lane layout of a chart.

    Each member's value is `(hint, key_count, player_count, scratch_keys)`.
    Lanes are numbered per player side: the keys first, then the side's
    scratch lane.
    """

    BEAT_5K = ("beat-5k", 6, 1, (5,))
    BEAT_7K = ("beat-7k", 8, 1, (7,))
    BEAT_10K = ("beat-10k", 12, 2, (5, 11))
    BEAT_14K = ("beat-14k", 16, 2, (7, 15))
    POPN_5K = ("popn-5k", 5, 1, ())
    POPN_9K = ("popn-9k", 9, 1, ())

    def __init__(
        self, hint: str, key_count: int, player_count: int, scratch_keys: Tuple[int, ...]
    ):
        self.hint = hint
        self.key_count = key_count
        self.player_count = player_count
        self.scratch_keys = scratch_keys

    def is_scratch(self, lane: int) -> bool:
        return lane in self.scratch_keys

    @classmethod
    def from_name(cls, name: str) -> Optional["PlayMode"]:
        """Looks up a mode by its hint ("beat-7k") or member name ("BEAT_7K")."""
        key = name.strip()
        for mode in cls:
            if key.lower() == mode.hint or key.upper() == mode.name:
                return mode
        return None


def get_keys(mode: PlayMode, player: int, contains_scratch: bool) -> List[int]:
    """
    Returns the lanes of one player side that a modifier may rearrange.

    Args:
        mode: The chart's play mode.
        player: The player side (0 for 1P, 1 for 2P).
        contains_scratch: Whether the side's scratch lane is included.

    Returns:
        The lane indices in ascending order, or an empty list when the mode
        has no such player.
    """
    if player < 0 or player >= mode.player_count:
        return []
    lanes_per_player = mode.key_count // mode.player_count
    start = lanes_per_player * player
    return [
        lane
        for lane in range(start, start + lanes_per_player)
        if contains_scratch or not mode.is_scratch(lane)
    ]
