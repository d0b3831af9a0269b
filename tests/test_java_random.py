import unittest

from src.pattern.java_random import JavaRandom


class TestJavaRandom(unittest.TestCase):

    def test_next_int_seed_zero(self):
        self.assertEqual(JavaRandom(0).next_int(7), 5)

    def test_next_int_power_of_two_then_general_bound(self):
        random = JavaRandom(0)
        self.assertEqual(random.next_int(2), 1)
        self.assertEqual(random.next_int(6), 4)

    def test_next_int32_sequence(self):
        random = JavaRandom(0)
        self.assertEqual(random.next_int32(), -1155484576)
        self.assertEqual(random.next_int32(), -723955400)

        self.assertEqual(JavaRandom(42).next_int32(), -1170105035)

    def test_next_int_seed_42(self):
        self.assertEqual(JavaRandom(42).next_int(10), 0)

    def test_next_long(self):
        self.assertEqual(JavaRandom(0).next_long(), -4962768465676381896)

    def test_next_boolean(self):
        self.assertTrue(JavaRandom(0).next_boolean())

    def test_next_double_range(self):
        random = JavaRandom(123)
        for _ in range(100):
            value = random.next_double()
            self.assertGreaterEqual(value, 0.0)
            self.assertLess(value, 1.0)

    def test_next_int_stays_in_bound(self):
        random = JavaRandom(987654321)
        for bound in (1, 2, 3, 7, 9, 16, 100, 362878):
            for _ in range(50):
                value = random.next_int(bound)
                self.assertGreaterEqual(value, 0)
                self.assertLess(value, bound)

    def test_same_seed_same_sequence(self):
        a = JavaRandom(2024)
        b = JavaRandom(2024)
        self.assertEqual([a.next_int(9) for _ in range(20)], [b.next_int(9) for _ in range(20)])

    def test_set_seed_restarts_sequence(self):
        random = JavaRandom(0)
        random.next_int32()
        random.set_seed(0)
        self.assertEqual(random.next_int32(), -1155484576)

    def test_invalid_bound(self):
        with self.assertRaises(ValueError):
            JavaRandom(0).next_int(0)
        with self.assertRaises(ValueError):
            JavaRandom(0).next_int(-3)

    def test_fresh_seed_is_non_negative(self):
        for _ in range(10):
            self.assertGreaterEqual(JavaRandom.fresh_seed(), 0)


if __name__ == "__main__":
    unittest.main()
