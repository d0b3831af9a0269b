import os
import unittest
import warnings

import numpy as np

from src.bms.chart import Chart
from src.bms.chart_factory import ChartFactory
from src.bms.note import Note, NoteType
from src.bms.play_mode import PlayMode, get_keys
from src.pattern.java_random import JavaRandom
from src.pattern.lane_mapping import build_mirror, build_random, identity_mapping, is_permutation_of
from src.pattern.murioshi import (
    MURIOSHI_CHORDS,
    build_playable_random,
    collect_chord_patterns,
    search_no_murioshi_permutations,
)


def _chord_hits_murioshi(candidates: np.ndarray, lanes) -> np.ndarray:
    """Row mask of candidates sending the 3-lane chord onto a murioshi chord."""
    buttons = np.sort(candidates[:, list(lanes)] + 1, axis=1)
    hits = np.zeros(len(candidates), dtype=bool)
    for chord in MURIOSHI_CHORDS:
        hits |= np.all(buttons == np.array(chord), axis=1)
    return hits


class TestMurioshiSearch(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.all_candidates = search_no_murioshi_permutations(set())

    def test_empty_pattern_set(self):
        self.assertEqual(self.all_candidates.shape, (362878, 9))

    def test_excludes_identity_and_reverse(self):
        identity = np.arange(9)
        reverse = np.arange(8, -1, -1)
        self.assertFalse(np.any(np.all(self.all_candidates == identity, axis=1)))
        self.assertFalse(np.any(np.all(self.all_candidates == reverse, axis=1)))

    def test_candidates_are_distinct_permutations(self):
        self.assertTrue(np.all(np.sort(self.all_candidates, axis=1) == np.arange(9)))
        self.assertEqual(len(np.unique(self.all_candidates, axis=0)), 362878)

    def test_first_candidates_follow_heap_order(self):
        self.assertEqual(self.all_candidates[0].tolist(), [1, 0, 2, 3, 4, 5, 6, 7, 8])
        self.assertEqual(self.all_candidates[1].tolist(), [2, 0, 1, 3, 4, 5, 6, 7, 8])

    def test_pattern_constraint(self):
        # Lanes 0, 4 and 8 are buttons 1, 5 and 9: a murioshi chord as is.
        candidates = search_no_murioshi_permutations({(1 << 0) | (1 << 4) | (1 << 8)})

        self.assertGreater(len(candidates), 0)
        self.assertLess(len(candidates), 362878)
        self.assertFalse(np.any(_chord_hits_murioshi(candidates, (0, 4, 8))))

        expected = np.count_nonzero(~_chord_hits_murioshi(self.all_candidates, (0, 4, 8)))
        self.assertEqual(len(candidates), expected)

    def test_multiple_patterns(self):
        patterns = {0b000000111, 0b100010001, 0b001010100}
        candidates = search_no_murioshi_permutations(patterns)
        for lanes in ((0, 1, 2), (0, 4, 8), (2, 4, 6)):
            self.assertFalse(np.any(_chord_hits_murioshi(candidates, lanes)))


class TestPlayableRandom(unittest.TestCase):
    JSON_PATH = os.path.join(os.path.dirname(__file__), "test_data", "charts.json")

    def setUp(self):
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            self.factory = ChartFactory(charts_json_path=self.JSON_PATH)
        self.keys = get_keys(PlayMode.POPN_9K, 0, False)

    def test_collect_chord_patterns(self):
        chart = self.factory.create_chart("chords_9k")
        patterns = collect_chord_patterns(chart, self.keys)
        self.assertEqual(patterns, {(1 << 0) | (1 << 4) | (1 << 8), (1 << 1) | (1 << 2) | (1 << 3)})

    def test_long_notes_count_as_held(self):
        notes = [
            Note(lane=0, time_us=0, note_type=NoteType.LONG, end_time_us=1000),
            Note(lane=1, time_us=500),
            Note(lane=2, time_us=500),
        ]
        chart = Chart(PlayMode.POPN_9K, notes)
        self.assertEqual(collect_chord_patterns(chart, self.keys), {0b111})

    def test_impossible_chord(self):
        notes = [Note(lane=lane, time_us=0) for lane in range(7)]
        chart = Chart(PlayMode.POPN_9K, notes)
        self.assertIsNone(collect_chord_patterns(chart, self.keys))

        # Seed 0 draws next_int(2) == 1: mirror.
        mapping = build_playable_random(chart, self.keys, 9, JavaRandom(0))
        self.assertEqual(mapping, [8, 7, 6, 5, 4, 3, 2, 1, 0])

        for seed in range(1, 10):
            if JavaRandom(seed).next_int(2) == 0:
                expected = identity_mapping(9)
            else:
                expected = build_mirror(self.keys, 9)
            self.assertEqual(build_playable_random(chart, self.keys, 9, JavaRandom(seed)), expected)

    def test_mapping_is_chosen_permutation_table(self):
        chart = self.factory.create_chart("chords_9k")
        candidates = search_no_murioshi_permutations(collect_chord_patterns(chart, self.keys))
        for seed in (0, 1, 42):
            chosen = candidates[JavaRandom(seed).next_int(len(candidates))]
            mapping = build_playable_random(chart, self.keys, 9, JavaRandom(seed))

            self.assertTrue(is_permutation_of(mapping, self.keys))
            for i, lane_number in enumerate(chosen):
                self.assertEqual(mapping[int(lane_number)], i)

    def test_deterministic(self):
        chart = self.factory.create_chart("chords_9k")
        first = build_playable_random(chart, self.keys, 9, JavaRandom(42))
        second = build_playable_random(chart, self.keys, 9, JavaRandom(42))
        self.assertEqual(first, second)

    def test_wrong_lane_count_falls_back_to_random(self):
        chart = Chart(PlayMode.BEAT_7K, [Note(lane=0, time_us=0)])
        keys = get_keys(PlayMode.BEAT_7K, 0, False)
        with self.assertWarns(UserWarning):
            mapping = build_playable_random(chart, keys, 8, JavaRandom(3))
        self.assertEqual(mapping, build_random(keys, 8, JavaRandom(3)))


if __name__ == "__main__":
    unittest.main()
