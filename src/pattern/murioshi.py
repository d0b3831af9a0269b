"""
This module implements PLAYABLE-RANDOM for nine-button layouts: a chart-wide
lane permutation chosen so that no chord of the chart lands on a "murioshi"
button combination (one that cannot be reached with two hands).

All 9! permutations are checked, so the search itself is compiled with numba.
"""

import warnings
from typing import List, Optional, Sequence, Set

import numpy as np
from numba import njit

from src.bms.chart import Chart
from src.bms.note import NoteType
from src.pattern.java_random import JavaRandom
from src.pattern.lane_mapping import build_mirror, build_random, identity_mapping
from src.pattern.timeline import build_timelines

BUTTON_COUNT = 9

# Three-button chords, numbered 1 to 9 from the left.
MURIOSHI_CHORDS = (
    (1, 4, 7),
    (1, 4, 8),
    (1, 4, 9),
    (1, 5, 8),
    (1, 5, 9),
    (1, 6, 9),
    (2, 5, 8),
    (2, 5, 9),
    (2, 6, 9),
    (3, 6, 9),
)

MURIOSHI_MASKS = np.array(
    [sum(1 << (b - 1) for b in chord) for chord in MURIOSHI_CHORDS], dtype=np.int64
)

# Chords of this many lanes cannot avoid every murioshi combination.
IMPOSSIBLE_CHORD_SIZE = 7
MIN_PATTERN_SIZE = 3


@njit
def _has_murioshi_nb(
    patterns: np.ndarray, lane_numbers: np.ndarray, chord_masks: np.ndarray
) -> bool:
    """True if a pattern, moved lane j -> button lane_numbers[j], covers a murioshi chord."""
    for p in range(patterns.shape[0]):
        pattern = patterns[p]
        remapped = 0
        for j in range(lane_numbers.shape[0]):
            if (pattern >> j) & 1:
                remapped |= 1 << lane_numbers[j]
        for c in range(chord_masks.shape[0]):
            if (remapped & chord_masks[c]) == chord_masks[c]:
                return True
    return False


@njit
def _search_permutations_nb(patterns: np.ndarray, chord_masks: np.ndarray) -> np.ndarray:
    """
    Enumerates permutations with Heap's algorithm and keeps the murioshi-free ones.

    The starting (identity) arrangement is not a candidate; only the states
    reached after a swap are checked.
    """
    n = BUTTON_COUNT
    total = 1
    for k in range(2, n + 1):
        total *= k
    results = np.empty((total, n), dtype=np.int64)
    count = 0

    lane_numbers = np.arange(n)
    indexes = np.zeros(n, dtype=np.int64)
    i = 0
    while i < n:
        if indexes[i] < i:
            swap_idx = 0 if i % 2 == 0 else indexes[i]
            tmp = lane_numbers[swap_idx]
            lane_numbers[swap_idx] = lane_numbers[i]
            lane_numbers[i] = tmp

            if not _has_murioshi_nb(patterns, lane_numbers, chord_masks):
                results[count, :] = lane_numbers
                count += 1

            indexes[i] += 1
            i = 0
        else:
            indexes[i] = 0
            i += 1
    return results[:count]


def search_no_murioshi_permutations(patterns: Set[int]) -> np.ndarray:
    """
    Returns every candidate permutation that keeps all patterns murioshi-free.

    Args:
        patterns: Chords of the chart as 9-bit lane masks.

    Returns:
        An `(n, 9)` array of permutations, in generation order, without the
        identity and without the exact reverse `[8, 7, ..., 0]`.
    """
    pattern_array = np.array(sorted(patterns), dtype=np.int64)
    candidates = _search_permutations_nb(pattern_array, MURIOSHI_MASKS)
    reverse = np.arange(BUTTON_COUNT - 1, -1, -1)
    return candidates[~np.all(candidates == reverse, axis=1)]


def collect_chord_patterns(chart: Chart, keys: Sequence[int]) -> Optional[Set[int]]:
    """
    Collects the lane masks of every chord of three or more held lanes.

    A lane counts at an instant when it has a normal note or lies inside a
    long note. Returns None when some instant holds seven or more lanes, in
    which case no permutation can be murioshi-free.
    """
    position = {lane: j for j, lane in enumerate(keys)}
    ln_end_time = {}
    patterns: Set[int] = set()

    for view in build_timelines(chart.notes):
        for lane in [l for l, end in ln_end_time.items() if end <= view.time_us]:
            del ln_end_time[lane]
        for lane, idx in view.notes.items():
            note = chart.notes[idx]
            if lane in position and note.is_long_start:
                ln_end_time[lane] = note.end_time_us

        active = [
            lane
            for lane in keys
            if lane in ln_end_time or view.note_types.get(lane) == NoteType.NORMAL
        ]
        if len(active) >= IMPOSSIBLE_CHORD_SIZE:
            return None
        if len(active) >= MIN_PATTERN_SIZE:
            patterns.add(sum(1 << position[lane] for lane in active))
    return patterns


def build_playable_random(
    chart: Chart, keys: Sequence[int], key_count: int, random: JavaRandom
) -> List[int]:
    """
    Builds a murioshi-free lane mapping for a nine-button layout.

    The chosen permutation is read as a table: lane `chosen[i]` takes lane
    `i`. When the chart has an impossible chord or no permutation survives
    the search, a coin flip chooses the identity (0) or the mirror mapping.
    """
    if len(keys) != BUTTON_COUNT:
        warnings.warn(
            f"PLAYABLE-RANDOM needs {BUTTON_COUNT} lanes, got {len(keys)}; using RANDOM."
        )
        return build_random(keys, key_count, random)

    patterns = collect_chord_patterns(chart, keys)
    if patterns is not None:
        candidates = search_no_murioshi_permutations(patterns)
        if len(candidates) > 0:
            chosen = candidates[random.next_int(len(candidates))]
            mapping = identity_mapping(key_count)
            for i, lane_number in enumerate(chosen):
                mapping[keys[int(lane_number)]] = keys[i]
            return mapping

    if random.next_int(2) == 0:
        return identity_mapping(key_count)
    return build_mirror(keys, key_count)
