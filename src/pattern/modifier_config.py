"""
This module defines the construction parameters shared by all pattern
modifiers.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ModifierConfig:
    """
    Holds the player-selected parameters of one pattern modifier.

    Attributes:
        player (int): The player side to modify (0 for 1P, 1 for 2P).
                      Defaults to 0.
        contains_scratch (bool): Whether the scratch lane takes part in the
                                 shuffle. Defaults to False.
        seed (int): Seed of the generator. A negative seed asks the modifier
                    to draw a fresh one; a replay passes the recorded seed
                    to reproduce the same chart. Defaults to -1.
        hran_threshold_ms (Optional[int]): Overrides the BPM-derived repeat
                                           threshold of H-RANDOM, ALL-SCR,
                                           CONVERGE and S-RANDOM-PLAYABLE.
                                           Defaults to None.
        enable_logging (bool): Whether to write the modifier's log to file.
                               Defaults to False.
        log_level (int): The logging level to use when logging is enabled.
                         Defaults to logging.INFO.
    """

    player: int = 0
    contains_scratch: bool = False
    seed: int = -1
    hran_threshold_ms: Optional[int] = None
    enable_logging: bool = False
    log_level: int = 20

    def __post_init__(self):
        """Validate parameters after initialization."""
        if self.player not in (0, 1):
            raise ValueError("Player must be 0 (1P) or 1 (2P).")
        if self.hran_threshold_ms is not None and self.hran_threshold_ms < 0:
            raise ValueError("H-RANDOM threshold must not be negative.")
        if self.seed >= 1 << 63:
            raise ValueError("Seed must fit in a signed 64-bit integer.")
