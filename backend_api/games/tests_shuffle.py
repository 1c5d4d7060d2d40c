import random
from collections import Counter

from django.test import SimpleTestCase

from games.engine.shuffle import count_letters, scramble_word, shuffle_sequence


class ShuffleSequenceTests(SimpleTestCase):
    def test_output_is_permutation_of_input(self):
        items = [1, 2, 2, 3, 5, 8, 13]
        for seed in range(50):
            result = shuffle_sequence(items, random.Random(seed))
            self.assertEqual(Counter(result), Counter(items))
            self.assertEqual(len(result), len(items))

    def test_input_not_mutated(self):
        items = ["a", "b", "c", "d"]
        shuffle_sequence(items, random.Random(1))
        self.assertEqual(items, ["a", "b", "c", "d"])

    def test_seeded_rng_is_reproducible(self):
        items = list(range(20))
        self.assertEqual(
            shuffle_sequence(items, random.Random(42)),
            shuffle_sequence(items, random.Random(42)),
        )

    def test_empty_and_single(self):
        self.assertEqual(shuffle_sequence([]), [])
        self.assertEqual(shuffle_sequence(["x"]), ["x"])


class ScrambleWordTests(SimpleTestCase):
    def test_preserves_non_space_letters(self):
        for seed in range(50):
            result = scramble_word("ICE CREAM", random.Random(seed))
            self.assertEqual(Counter(result), Counter("ICECREAM"))
            self.assertNotIn(" ", result)

    def test_differs_from_original_when_possible(self):
        for seed in range(200):
            self.assertNotEqual(scramble_word("AB", random.Random(seed)), "AB")
            self.assertNotEqual(scramble_word("CAT", random.Random(seed)), "CAT")
            self.assertNotEqual(scramble_word("ICE CREAM", random.Random(seed)), "ICECREAM")

    def test_single_arrangement_returned_unchanged(self):
        self.assertEqual(scramble_word("AAA"), "AAA")
        self.assertEqual(scramble_word("A A"), "AA")
        self.assertEqual(scramble_word("X"), "X")
        self.assertEqual(scramble_word(""), "")

    def test_count_letters_ignores_spaces(self):
        self.assertEqual(count_letters("ICE CREAM"), 8)
        self.assertEqual(count_letters("  "), 0)
