import os
import unittest
import warnings

from src.bms.chart import Chart
from src.bms.chart_factory import ChartFactory
from src.bms.note import Note
from src.bms.play_mode import PlayMode, get_keys
from src.pattern.java_random import JavaRandom
from src.pattern.lane_mapping import (
    apply_lane_mapping,
    battle,
    build_cross,
    build_flip,
    build_mirror,
    build_random,
    build_rotate,
    identity_mapping,
    is_permutation_of,
)


class TestLaneMapping(unittest.TestCase):

    def test_mirror_beat_7k(self):
        keys = get_keys(PlayMode.BEAT_7K, 0, False)
        self.assertEqual(build_mirror(keys, 8), [6, 5, 4, 3, 2, 1, 0, 7])

    def test_mirror_popn_9k(self):
        keys = get_keys(PlayMode.POPN_9K, 0, False)
        self.assertEqual(build_mirror(keys, 9), [8, 7, 6, 5, 4, 3, 2, 1, 0])

    def test_mirror_with_scratch(self):
        keys = get_keys(PlayMode.BEAT_7K, 0, True)
        self.assertEqual(build_mirror(keys, 8), [7, 6, 5, 4, 3, 2, 1, 0])

    def test_mirror_twice_is_identity(self):
        for mode in PlayMode:
            keys = get_keys(mode, 0, False)
            mapping = build_mirror(keys, mode.key_count)
            twice = [mapping[mapping[lane]] for lane in range(mode.key_count)]
            self.assertEqual(twice, identity_mapping(mode.key_count))

    def test_mirror_2p_side(self):
        keys = get_keys(PlayMode.BEAT_14K, 1, False)
        mapping = build_mirror(keys, 16)
        self.assertEqual(mapping[:8], list(range(8)))
        self.assertEqual(mapping[8:], [14, 13, 12, 11, 10, 9, 8, 15])

    def test_cross_beat_7k(self):
        keys = get_keys(PlayMode.BEAT_7K, 0, False)
        self.assertEqual(build_cross(keys, 8), [1, 0, 2, 3, 4, 6, 5, 7])

    def test_cross_popn_9k(self):
        keys = get_keys(PlayMode.POPN_9K, 0, False)
        self.assertEqual(build_cross(keys, 9), [1, 0, 3, 2, 4, 6, 5, 8, 7])

    def test_flip_double_play(self):
        self.assertEqual(build_flip(16, 2), [(i + 8) % 16 for i in range(16)])
        self.assertEqual(build_flip(12, 2), [(i + 6) % 12 for i in range(12)])

    def test_flip_single_play_is_identity(self):
        self.assertEqual(build_flip(8, 1), identity_mapping(8))

    def test_rotate_seed_zero(self):
        keys = get_keys(PlayMode.BEAT_7K, 0, False)
        self.assertEqual(build_rotate(keys, 8, JavaRandom(0)), [5, 6, 0, 1, 2, 3, 4, 7])

    def test_rotate_single_key_draws_nothing(self):
        random = JavaRandom(0)
        self.assertEqual(build_rotate([3], 8, random), identity_mapping(8))
        self.assertEqual(random.next_int(7), 5)

    def test_rotate_is_a_rotation(self):
        keys = get_keys(PlayMode.POPN_9K, 0, False)
        for seed in range(20):
            mapping = build_rotate(keys, 9, JavaRandom(seed))
            steps = {(mapping[keys[i + 1]] - mapping[keys[i]]) % 9 for i in range(8)}
            self.assertEqual(len(steps), 1)
            self.assertIn(steps.pop(), (1, 8))

    def test_random_draw_order(self):
        keys = [0, 1, 2]
        random = JavaRandom(0)
        first = random.next_int(3)
        pool = [0, 1, 2]
        expected_first = pool.pop(first)
        mapping = build_random(keys, 3, JavaRandom(0))
        self.assertEqual(mapping[0], expected_first)

    def test_builders_are_bijections(self):
        for mode in PlayMode:
            for player in range(mode.player_count):
                for scratch in (False, True):
                    keys = get_keys(mode, player, scratch)
                    for seed in range(5):
                        with self.subTest(mode=mode, player=player, scratch=scratch, seed=seed):
                            kc = mode.key_count
                            for mapping in (
                                build_mirror(keys, kc),
                                build_cross(keys, kc),
                                build_rotate(keys, kc, JavaRandom(seed)),
                                build_random(keys, kc, JavaRandom(seed)),
                            ):
                                self.assertTrue(is_permutation_of(mapping, keys))

    def test_scratch_is_fixed_without_contains_scratch(self):
        keys = get_keys(PlayMode.BEAT_7K, 0, False)
        for seed in range(10):
            self.assertEqual(build_random(keys, 8, JavaRandom(seed))[7], 7)
            self.assertEqual(build_rotate(keys, 8, JavaRandom(seed))[7], 7)

    def test_apply_lane_mapping_ignores_out_of_range_lanes(self):
        notes = [Note(lane=0, time_us=0), Note(lane=7, time_us=0), Note(lane=12, time_us=0)]
        apply_lane_mapping(notes, [6, 5, 4, 3, 2, 1, 0, 7])
        self.assertEqual([n.lane for n in notes], [6, 7, 12])

    def test_is_permutation_of(self):
        self.assertTrue(is_permutation_of([1, 0, 2], [0, 1]))
        self.assertFalse(is_permutation_of([1, 1, 2], [0, 1]))
        self.assertFalse(is_permutation_of([2, 1, 0], [0, 1]))


class TestBattle(unittest.TestCase):
    JSON_PATH = os.path.join(os.path.dirname(__file__), "test_data", "charts.json")

    def setUp(self):
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            self.factory = ChartFactory(charts_json_path=self.JSON_PATH)

    def test_battle_single_play_is_noop(self):
        chart = self.factory.create_chart("basic_7k")
        before = [(n.lane, n.time_us) for n in chart.notes]
        battle(chart)
        self.assertEqual([(n.lane, n.time_us) for n in chart.notes], before)

    def test_battle_double_play(self):
        chart = self.factory.create_chart("double_14k")
        battle(chart)

        self.assertEqual(len(chart.notes), 8)
        self.assertEqual([n.lane for n in chart.notes], [0, 7, 3, 3, 8, 15, 11, 11])
        self.assertTrue(all(n.lane < 8 for n in chart.notes[:4]))

        self.assertEqual(chart.long_note_pairs(), [(2, 3), (6, 7)])
        self.assertEqual(chart.notes[3].pair_index, 2)
        self.assertEqual(chart.notes[7].pair_index, 6)

    def test_battle_end_clone_takes_start_wav(self):
        chart = self.factory.create_chart("double_14k")
        battle(chart)

        self.assertEqual(chart.notes[3].wav_id, 5)
        self.assertEqual(chart.notes[6].wav_id, 4)
        self.assertEqual(chart.notes[7].wav_id, 4)

    def test_battle_clones_are_separate_objects(self):
        chart = Chart(PlayMode.BEAT_10K, [Note(lane=1, time_us=0), Note(lane=9, time_us=0)])
        battle(chart)
        self.assertEqual([n.lane for n in chart.notes], [1, 7])
        chart.notes[1].lane = 8
        self.assertEqual(chart.notes[0].lane, 1)


if __name__ == "__main__":
    unittest.main()
