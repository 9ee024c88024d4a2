from __future__ import annotations

import unittest

from helpers import B, R, crossed_level, stuck_level, tube

from water_sort.engine import WaterSortGameEngine
from water_sort.solver import (
    HintMove,
    HintSolver,
    find_shortest_solution,
    find_solution,
    is_solvable,
)


class TestSolver(unittest.TestCase):
    def test_find_solution_replays_to_win(self) -> None:
        level = crossed_level()
        solution = find_solution(level.initial_containers)
        self.assertIsNotNone(solution)

        engine = WaterSortGameEngine()
        state = engine.initialize_level(level.id, level.initial_containers)
        for from_id, to_id in solution:
            state = engine.execute_pour(state, from_id, to_id)
        self.assertTrue(engine.check_win_condition(state))

    def test_solution_uses_container_ids(self) -> None:
        containers = [tube(10, R, B, capacity=2), tube(20, B, R, capacity=2), tube(30, capacity=2)]
        solution = find_solution(containers)
        self.assertIsNotNone(solution)
        for from_id, to_id in solution:
            self.assertIn(from_id, {10, 20, 30})
            self.assertIn(to_id, {10, 20, 30})

    def test_solved_input(self) -> None:
        containers = [tube(0, R, R), tube(1, B, B), tube(2)]
        self.assertEqual(find_solution(containers), [])
        self.assertEqual(find_shortest_solution(containers), [])
        self.assertFalse(is_solvable(containers))

    def test_unsolvable_input(self) -> None:
        level = stuck_level()
        self.assertIsNone(find_solution(level.initial_containers))
        self.assertIsNone(find_shortest_solution(level.initial_containers))
        self.assertFalse(is_solvable(level.initial_containers))

    def test_crossed_level_needs_an_empty_container(self) -> None:
        self.assertTrue(is_solvable(crossed_level().initial_containers))
        self.assertFalse(is_solvable(crossed_level(spare=0).initial_containers))

    def test_shortest_solution_length(self) -> None:
        solution = find_shortest_solution(crossed_level().initial_containers)
        self.assertEqual(len(solution), 3)

    def test_budget_must_be_positive(self) -> None:
        with self.assertRaises(ValueError):
            find_solution(crossed_level().initial_containers, max_states=0)
        with self.assertRaises(ValueError):
            find_shortest_solution(crossed_level().initial_containers, max_states=0)


class TestHintSolver(unittest.TestCase):
    def test_first_move_of_shortest_solution(self) -> None:
        level = crossed_level()
        engine = WaterSortGameEngine()
        state = engine.initialize_level(level.id, level.initial_containers)
        hint = HintSolver(engine).find_best_move(state)
        self.assertIsInstance(hint, HintMove)
        self.assertIn((hint.from_container_id, hint.to_container_id), {(0, 2), (1, 2)})

    def test_no_hint_when_solved_or_stuck(self) -> None:
        engine = WaterSortGameEngine()
        solved = engine.initialize_level(1, [tube(0, R, R), tube(1)])
        self.assertIsNone(HintSolver(engine).find_best_move(solved))
        level = stuck_level()
        stuck = engine.initialize_level(level.id, level.initial_containers)
        self.assertIsNone(HintSolver().find_best_move(stuck))


if __name__ == "__main__":
    unittest.main()
