"""
This module contains the builders for chart-wide lane mappings and the
functions that apply them.

A lane mapping is a list where `mapping[old_lane] == new_lane`. Restricted to
the modifiable lanes it is a permutation; every other lane maps to itself.
"""

from enum import Enum
from typing import List, Sequence

from src.bms.chart import Chart
from src.bms.note import Note
from src.pattern.java_random import JavaRandom


class LaneShuffleType(Enum):
    """The chart-wide lane shuffles."""

    MIRROR = "mirror"
    ROTATE = "rotate"
    RANDOM = "random"
    CROSS = "cross"
    FLIP = "flip"
    BATTLE = "battle"
    PLAYABLE_RANDOM = "playable-random"


def identity_mapping(key_count: int) -> List[int]:
    return list(range(key_count))


def build_mirror(keys: Sequence[int], key_count: int) -> List[int]:
    """Reverses the order of the modifiable lanes."""
    mapping = identity_mapping(key_count)
    for i, key in enumerate(keys):
        mapping[key] = keys[len(keys) - 1 - i]
    return mapping


def build_rotate(keys: Sequence[int], key_count: int, random: JavaRandom) -> List[int]:
    """
    Rotates the modifiable lanes by a random offset in a random direction.

    Two values are drawn: the direction (`next_int(2) == 1` means increasing),
    then the start offset. A single lane is left in place without drawing.
    """
    mapping = identity_mapping(key_count)
    if len(keys) < 2:
        return mapping

    inc = random.next_int(2) == 1
    start = random.next_int(len(keys) - 1) + (1 if inc else 0)
    rlane = start
    for key in keys:
        mapping[key] = keys[rlane]
        rlane = (rlane + 1) % len(keys) if inc else (rlane + len(keys) - 1) % len(keys)
    return mapping


def build_random(keys: Sequence[int], key_count: int, random: JavaRandom) -> List[int]:
    """Draws every lane's destination from a shrinking pool, in lane order."""
    mapping = identity_mapping(key_count)
    pool = list(keys)
    for key in keys:
        mapping[key] = pool.pop(random.next_int(len(pool)))
    return mapping


def build_cross(keys: Sequence[int], key_count: int) -> List[int]:
    """Swaps neighbouring lane pairs from both outer edges inward."""
    mapping = identity_mapping(key_count)
    n = len(keys)
    i = 0
    while i < n // 2 - 1:
        mapping[keys[i]] = keys[i + 1]
        mapping[keys[i + 1]] = keys[i]
        mapping[keys[n - i - 1]] = keys[n - i - 2]
        mapping[keys[n - i - 2]] = keys[n - i - 1]
        i += 2
    return mapping


def build_flip(key_count: int, player_count: int) -> List[int]:
    """Swaps the 1P and 2P sides; identity for single play."""
    if player_count != 2:
        return identity_mapping(key_count)
    half = key_count // 2
    return [(i + half) % key_count for i in range(key_count)]


def apply_lane_mapping(notes: List[Note], mapping: Sequence[int]) -> None:
    """Rewrites every note's lane; lanes outside the mapping are left alone."""
    for note in notes:
        if 0 <= note.lane < len(mapping):
            note.lane = mapping[note.lane]


def is_permutation_of(mapping: Sequence[int], keys: Sequence[int]) -> bool:
    """True if the mapping sends `keys` onto itself one-to-one and fixes the rest."""
    key_set = set(keys)
    if sorted(mapping[k] for k in keys) != sorted(key_set):
        return False
    return all(mapping[lane] == lane for lane in range(len(mapping)) if lane not in key_set)


def battle(chart: Chart) -> None:
    """
    Replaces the 2P side of a double play chart with a copy of the 1P side.

    The 1P notes keep their relative order and are followed by their clones,
    so a clone's index (and its pair index) is its source note's plus the 1P
    note count. Long note end clones take the key sound of their start.
    Single play charts are left untouched.
    """
    mode = chart.mode
    if mode.player_count != 2:
        return
    half = mode.key_count // 2

    kept = [i for i, n in enumerate(chart.notes) if n.lane < half]
    new_index = {old: new for new, old in enumerate(kept)}
    p1_notes: List[Note] = []
    for old in kept:
        note = chart.notes[old]
        note.pair_index = new_index.get(note.pair_index) if note.pair_index is not None else None
        p1_notes.append(note)

    offset = len(p1_notes)
    clones: List[Note] = []
    for note in p1_notes:
        wav_id = note.wav_id
        if note.is_long_end:
            wav_id = p1_notes[note.pair_index].wav_id
        clones.append(
            Note(
                lane=note.lane + half,
                time_us=note.time_us,
                note_type=note.note_type,
                end_time_us=note.end_time_us,
                wav_id=wav_id,
                pair_index=note.pair_index + offset if note.pair_index is not None else None,
            )
        )

    chart.notes[:] = p1_notes + clones
