from __future__ import annotations

import unittest

from water_sort import parameters


class TestLevelParameters(unittest.TestCase):
    def test_progressive_difficulty(self) -> None:
        self.assertEqual(parameters.calculate_progressive_difficulty(0, 1), 1)
        self.assertEqual(parameters.calculate_progressive_difficulty(5, 1), 2)
        self.assertEqual(parameters.calculate_progressive_difficulty(200, 3), 10)
        self.assertEqual(parameters.calculate_difficulty_for_level(1), 1)
        self.assertEqual(parameters.calculate_difficulty_for_level(6), 2)

    def test_container_and_color_counts(self) -> None:
        self.assertEqual(parameters.calculate_container_count(1), 4)
        self.assertEqual(parameters.calculate_container_count(6), 6)
        self.assertEqual(parameters.calculate_container_count(10), 8)
        self.assertEqual(parameters.calculate_color_count(1, 4), 2)
        self.assertEqual(parameters.calculate_color_count(10, 8), 6)
        self.assertEqual(parameters.calculate_color_count(10, 4), 3)

    def test_capacity_ramp(self) -> None:
        self.assertEqual(parameters.calculate_container_capacity(1), 4)
        self.assertEqual(parameters.calculate_container_capacity(15), 4)
        self.assertEqual(parameters.calculate_container_capacity(16), 5)
        self.assertEqual(parameters.calculate_container_capacity(36), 7)
        self.assertEqual(parameters.calculate_container_capacity(500), 8)

    def test_empty_slots(self) -> None:
        self.assertEqual(parameters.calculate_empty_slots(2, 4), 8)
        self.assertEqual(parameters.calculate_empty_slots(5, 4), 6)
        self.assertEqual(parameters.calculate_empty_slots(9, 4), 4)

    def test_capacity_limits(self) -> None:
        self.assertEqual(parameters.calculate_max_colors(container_count=5), 4)
        self.assertEqual(
            parameters.calculate_max_colors(container_count=1, min_empty_slots=1), 0
        )
        with self.assertRaises(ValueError):
            parameters.calculate_max_colors(container_count=0)
        self.assertTrue(
            parameters.is_valid_configuration(container_count=5, color_count=4)
        )
        self.assertFalse(
            parameters.is_valid_configuration(container_count=4, color_count=4)
        )
        self.assertEqual(parameters.calculate_min_containers(color_count=4), 5)
        self.assertEqual(
            parameters.calculate_min_containers(color_count=2, min_empty_slots=5), 4
        )


if __name__ == "__main__":
    unittest.main()
