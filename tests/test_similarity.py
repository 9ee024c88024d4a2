from __future__ import annotations

import unittest

from helpers import B, G, R, make_level, tube

from water_sort import similarity


def _level(*containers):
    return make_level(list(containers))


class TestSimilarity(unittest.TestCase):
    def test_normalize_colors_is_palette_independent(self) -> None:
        red_blue = [tube(0, R, R, B), tube(1, B, B, R), tube(2)]
        green_red = [tube(0, G, G, R), tube(1, R, R, G), tube(2)]
        self.assertEqual(similarity.normalize_colors(red_blue), ["AAB", "BBA", "EMPTY"])
        self.assertEqual(
            similarity.normalize_colors(red_blue), similarity.normalize_colors(green_red)
        )

    def test_signature(self) -> None:
        level = _level(tube(0, R, B), tube(1))
        self.assertEqual(
            similarity.generate_normalized_signature(level),
            "containers:2|pattern:AB,EMPTY",
        )

    def test_count_color_segments(self) -> None:
        self.assertEqual(similarity.count_color_segments("AABBA"), 3)
        self.assertEqual(similarity.count_color_segments("A"), 1)
        self.assertEqual(similarity.count_color_segments(similarity.EMPTY_PATTERN), 0)

    def test_recolored_level_is_similar(self) -> None:
        first = _level(tube(0, R, R, B, B), tube(1, B, B, R, R), tube(2))
        second = _level(tube(0, G, G, R, R), tube(1, R, R, G, G), tube(2))
        self.assertAlmostEqual(similarity.compare_structural_patterns(first, second), 1.0)
        self.assertTrue(similarity.are_levels_similar(first, second))
        self.assertTrue(similarity.is_level_similar_to_any(first, [second]))
        self.assertFalse(similarity.validate_level_uniqueness(first, [second]))

    def test_different_shapes_are_not_similar(self) -> None:
        first = _level(tube(0, R, R, B, B), tube(1, B, B, R, R), tube(2))
        second = _level(tube(0, R, R, B, B), tube(1, B, B, R, R), tube(2), tube(3))
        self.assertFalse(similarity.are_levels_similar(first, second))
        self.assertFalse(similarity.is_level_similar_to_any(first, []))

    def test_uniqueness_threshold(self) -> None:
        first = _level(tube(0, R, B, R, B), tube(1, B, R, B, R), tube(2))
        second = _level(tube(0, R, R, B, B), tube(1), tube(2, B, B, R, R))
        score = similarity.compare_structural_patterns(first, second)
        self.assertLess(score, 1.0)
        self.assertTrue(
            similarity.validate_level_uniqueness(first, [second], threshold=score + 0.01)
        )
        self.assertFalse(
            similarity.validate_level_uniqueness(first, [second], threshold=score)
        )

    def test_find_most_similar_level(self) -> None:
        target = _level(tube(0, R, R, B, B), tube(1, B, B, R, R), tube(2))
        close = _level(tube(0, G, G, R, R), tube(1, R, R, G, G), tube(2))
        far = _level(tube(0, R, B, R, B), tube(1), tube(2, B, R, B, R))
        best, score = similarity.find_most_similar_level(target, [far, close])
        self.assertIs(best, close)
        self.assertAlmostEqual(score, 1.0)
        self.assertEqual(similarity.find_most_similar_level(target, []), (None, 0.0))

    def test_analyze_level_set(self) -> None:
        single = similarity.analyze_level_set_similarity([_level(tube(0, R, B), tube(1))])
        self.assertEqual(single["comparisons"], 0)
        self.assertEqual(single["uniqueness_ratio"], 1.0)

        a = _level(tube(0, R, R, B, B), tube(1, B, B, R, R), tube(2))
        b = _level(tube(0, G, G, R, R), tube(1, R, R, G, G), tube(2))
        report = similarity.analyze_level_set_similarity([a, b])
        self.assertEqual(report["comparisons"], 1)
        self.assertEqual(report["similar_pairs"], 1)
        self.assertAlmostEqual(report["uniqueness_ratio"], 0.0)

    def test_detailed_signature(self) -> None:
        detail = similarity.generate_detailed_signature(_level(tube(0, R, B), tube(1)))
        self.assertEqual(detail["normalized_pattern"], ["AB", "EMPTY"])
        self.assertEqual(detail["distribution"]["empty"], 0.5)


if __name__ == "__main__":
    unittest.main()
