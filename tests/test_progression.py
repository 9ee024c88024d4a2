from __future__ import annotations

import unittest
from dataclasses import replace

from helpers import crossed_level

from water_sort.progression import LevelProgress, LevelProgressionManager


def _levels(*ids: int):
    base = crossed_level()
    return [replace(base, id=level_id) for level_id in ids]


class TestLevelProgress(unittest.TestCase):
    def test_initial_progress(self) -> None:
        progress = LevelProgress.initial()
        self.assertTrue(progress.is_level_unlocked(1))
        self.assertFalse(progress.is_level_completed(1))
        self.assertEqual(progress.current_level, 1)
        self.assertEqual(progress.highest_unlocked_level, 1)
        self.assertIsNone(progress.get_best_score(1))
        self.assertEqual(progress.get_completion_percentage(0), 0.0)

    def test_dict_round_trip(self) -> None:
        progress = LevelProgress(
            unlocked_levels=frozenset({1, 2}),
            completed_levels=frozenset({1}),
            best_scores={1: 7},
            completion_times={1: 1500},
            current_level=2,
        )
        payload = progress.to_dict()
        self.assertEqual(payload["best_scores"], {"1": 7})
        self.assertEqual(LevelProgress.from_dict(payload), progress)


class TestLevelProgressionManager(unittest.TestCase):
    def test_complete_level_unlocks_next_and_keeps_best(self) -> None:
        manager = LevelProgressionManager(available_levels={level.id: level for level in _levels(1, 2, 3)})
        self.assertEqual(manager.get_next_level().id, 1)

        progress = manager.complete_level(1, 12, 4000)
        self.assertTrue(progress.is_level_unlocked(2))
        self.assertFalse(progress.is_level_unlocked(3))
        self.assertEqual(progress.current_level, 2)
        self.assertEqual(manager.get_next_level().id, 2)

        manager.complete_level(1, 9, 5000)
        manager.complete_level(1, 15, 3000)
        self.assertEqual(manager.progress.get_best_score(1), 9)
        self.assertEqual(manager.progress.get_completion_time(1), 3000)
        self.assertEqual([level.id for level in manager.get_completed_levels()], [1])
        self.assertEqual([level.id for level in manager.get_unlocked_levels()], [1, 2])

    def test_last_level_keeps_current(self) -> None:
        manager = LevelProgressionManager(available_levels={1: _levels(1)[0]})
        progress = manager.complete_level(1, 3, 100)
        self.assertEqual(progress.current_level, 1)
        self.assertIsNone(manager.get_next_level())

    def test_tutorial_and_milestone_unlocks(self) -> None:
        manager = LevelProgressionManager()
        manager.add_levels(_levels(*range(1, 11), 101, 201, 202))
        for level_id in range(1, 6):
            manager.complete_level(level_id, 5, 1000)
        self.assertTrue(manager.progress.is_level_unlocked(201))
        self.assertTrue(manager.progress.is_level_unlocked(202))
        self.assertFalse(manager.progress.is_level_unlocked(101))

        for level_id in range(6, 11):
            manager.complete_level(level_id, 5, 1000)
        self.assertTrue(manager.progress.is_level_unlocked(101))
        self.assertEqual(manager.get_next_level().id, 101)

    def test_invalid_operations(self) -> None:
        manager = LevelProgressionManager(available_levels={level.id: level for level in _levels(1, 2)})
        with self.assertRaises(ValueError):
            manager.complete_level(2, 1, 1)
        with self.assertRaises(ValueError):
            manager.set_current_level(2)
        with self.assertRaises(ValueError):
            manager.unlock_level(9)

        manager.unlock_level(2)
        self.assertEqual(manager.set_current_level(2).current_level, 2)
        self.assertEqual(manager.reset_progress(), LevelProgress.initial())

    def test_progress_statistics(self) -> None:
        manager = LevelProgressionManager(available_levels={level.id: level for level in _levels(1, 2, 3, 4)})
        manager.complete_level(1, 10, 2000)
        manager.complete_level(2, 20, 3000)
        stats = manager.get_progress_statistics()
        self.assertEqual(stats["total_levels_available"], 4)
        self.assertEqual(stats["total_levels_unlocked"], 3)
        self.assertEqual(stats["total_levels_completed"], 2)
        self.assertAlmostEqual(stats["completion_percentage"], 0.5)
        self.assertEqual(stats["highest_unlocked_level"], 3)
        self.assertEqual(stats["current_level"], 3)
        self.assertAlmostEqual(stats["average_moves_per_level"], 15.0)
        self.assertEqual(stats["total_play_time_ms"], 5000)


if __name__ == "__main__":
    unittest.main()
