from .java_random import JavaRandom
from .timeline import TimelineView, build_timelines
from .permutation_state import PermutationState
from .lane_mapping import LaneShuffleType, apply_lane_mapping, battle
from .murioshi import build_playable_random, search_no_murioshi_permutations
from .randomizer import Randomizer, RandomizerType, hran_threshold_ms
from .modifier_config import ModifierConfig
from .modifier import AssistLevel, LaneShuffleModifier, NoteShuffleModifier, PatternModifier
from .random_option import RandomOption, create_modifier

__all__ = [
    "JavaRandom",
    "TimelineView",
    "build_timelines",
    "PermutationState",
    "LaneShuffleType",
    "apply_lane_mapping",
    "battle",
    "build_playable_random",
    "search_no_murioshi_permutations",
    "Randomizer",
    "RandomizerType",
    "hran_threshold_ms",
    "ModifierConfig",
    "AssistLevel",
    "LaneShuffleModifier",
    "NoteShuffleModifier",
    "PatternModifier",
    "RandomOption",
    "create_modifier",
]
