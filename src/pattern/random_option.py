"""
This module lists the random options a player can pick and builds the
modifier that implements each of them.
"""

from dataclasses import replace
from enum import Enum
from typing import Optional, Tuple

from src.bms.play_mode import PlayMode
from src.pattern.lane_mapping import LaneShuffleType
from src.pattern.modifier import LaneShuffleModifier, NoteShuffleModifier, PatternModifier
from src.pattern.modifier_config import ModifierConfig
from src.pattern.randomizer import SRAN_THRESHOLD_MS, RandomizerType


class RandomOption(Enum):
    """The random options offered on the option screen."""

    IDENTITY = "identity"
    MIRROR = "mirror"
    RANDOM = "random"
    ROTATE = "rotate"
    S_RANDOM = "s-random"
    SPIRAL = "spiral"
    H_RANDOM = "h-random"
    ALL_SCR = "all-scr"
    MIRROR_EX = "mirror-ex"
    RANDOM_EX = "random-ex"
    ROTATE_EX = "rotate-ex"
    S_RANDOM_EX = "s-random-ex"
    CROSS = "cross"
    CONVERGE = "converge"
    S_RANDOM_NO_THRESHOLD = "s-random-no-threshold"
    RANDOM_PLAYABLE = "random-playable"
    S_RANDOM_PLAYABLE = "s-random-playable"
    FLIP = "flip"
    BATTLE = "battle"

    @property
    def is_scratch_lane_modify(self) -> bool:
        """Whether the option also moves notes to or from scratch lanes."""
        return self in _SCRATCH_LANE_MODIFY

    @classmethod
    def from_id(cls, option_id: int, mode: PlayMode) -> "RandomOption":
        """Looks up an option by its position in the mode's option list."""
        options = OPTION_PMS if mode in (PlayMode.POPN_5K, PlayMode.POPN_9K) else OPTION_GENERAL
        if 0 <= option_id < len(options):
            return options[option_id]
        return cls.IDENTITY


_SCRATCH_LANE_MODIFY = frozenset(
    {
        RandomOption.ALL_SCR,
        RandomOption.MIRROR_EX,
        RandomOption.RANDOM_EX,
        RandomOption.ROTATE_EX,
        RandomOption.S_RANDOM_EX,
        RandomOption.CONVERGE,
        RandomOption.RANDOM_PLAYABLE,
        RandomOption.S_RANDOM_PLAYABLE,
        RandomOption.FLIP,
        RandomOption.BATTLE,
    }
)

OPTION_GENERAL: Tuple[RandomOption, ...] = (
    RandomOption.IDENTITY,
    RandomOption.MIRROR,
    RandomOption.RANDOM,
    RandomOption.ROTATE,
    RandomOption.S_RANDOM,
    RandomOption.SPIRAL,
    RandomOption.H_RANDOM,
    RandomOption.ALL_SCR,
    RandomOption.RANDOM_EX,
    RandomOption.S_RANDOM_EX,
)

OPTION_PMS: Tuple[RandomOption, ...] = (
    RandomOption.IDENTITY,
    RandomOption.MIRROR,
    RandomOption.RANDOM,
    RandomOption.ROTATE,
    RandomOption.S_RANDOM_NO_THRESHOLD,
    RandomOption.SPIRAL,
    RandomOption.H_RANDOM,
    RandomOption.CONVERGE,
    RandomOption.RANDOM_PLAYABLE,
    RandomOption.S_RANDOM_PLAYABLE,
)

OPTION_DOUBLE: Tuple[RandomOption, ...] = (RandomOption.IDENTITY, RandomOption.FLIP)

OPTION_SINGLE: Tuple[RandomOption, ...] = (RandomOption.IDENTITY, RandomOption.BATTLE)

_LANE_SHUFFLES = {
    RandomOption.MIRROR: LaneShuffleType.MIRROR,
    RandomOption.MIRROR_EX: LaneShuffleType.MIRROR,
    RandomOption.RANDOM: LaneShuffleType.RANDOM,
    RandomOption.RANDOM_EX: LaneShuffleType.RANDOM,
    RandomOption.ROTATE: LaneShuffleType.ROTATE,
    RandomOption.ROTATE_EX: LaneShuffleType.ROTATE,
    RandomOption.CROSS: LaneShuffleType.CROSS,
    RandomOption.FLIP: LaneShuffleType.FLIP,
    RandomOption.BATTLE: LaneShuffleType.BATTLE,
    RandomOption.RANDOM_PLAYABLE: LaneShuffleType.PLAYABLE_RANDOM,
}


def create_modifier(option: RandomOption, config: ModifierConfig) -> Optional[PatternModifier]:
    """
    Creates the modifier implementing a random option.

    The *_EX options force `contains_scratch` on; the other options keep the
    configured value. Returns None for IDENTITY, which leaves the chart as is.
    """
    if option in (
        RandomOption.MIRROR_EX,
        RandomOption.RANDOM_EX,
        RandomOption.ROTATE_EX,
        RandomOption.S_RANDOM_EX,
    ):
        config = replace(config, contains_scratch=True)

    lane_kind = _LANE_SHUFFLES.get(option)
    if lane_kind is not None:
        return LaneShuffleModifier(lane_kind, config)

    note_modifiers = {
        RandomOption.S_RANDOM: lambda: NoteShuffleModifier(
            RandomizerType.S_RANDOM, config, threshold_ms=SRAN_THRESHOLD_MS
        ),
        RandomOption.S_RANDOM_EX: lambda: NoteShuffleModifier(
            RandomizerType.S_RANDOM, config, threshold_ms=SRAN_THRESHOLD_MS
        ),
        RandomOption.H_RANDOM: lambda: NoteShuffleModifier(
            RandomizerType.S_RANDOM, config, bpm_threshold=True
        ),
        RandomOption.S_RANDOM_NO_THRESHOLD: lambda: NoteShuffleModifier(
            RandomizerType.S_RANDOM, config, threshold_ms=0
        ),
        RandomOption.SPIRAL: lambda: NoteShuffleModifier(RandomizerType.SPIRAL, config),
        RandomOption.ALL_SCR: lambda: NoteShuffleModifier(RandomizerType.ALL_SCR, config),
        RandomOption.CONVERGE: lambda: NoteShuffleModifier(RandomizerType.CONVERGE, config),
        RandomOption.S_RANDOM_PLAYABLE: lambda: NoteShuffleModifier(
            RandomizerType.NO_MURIOSHI, config
        ),
    }
    factory = note_modifiers.get(option)
    return factory() if factory else None
