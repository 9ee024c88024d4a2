from __future__ import annotations

import unittest

from helpers import B, G, R, make_level, tube

from water_sort.colors import LiquidColor
from water_sort.models import (
    Container,
    GameState,
    InvalidLevelError,
    InvalidPourError,
    Level,
    LiquidLayer,
    Move,
    is_solved_containers,
)


class TestLiquidColor(unittest.TestCase):
    def test_parse_accepts_names_and_members(self) -> None:
        self.assertIs(LiquidColor.parse("Red"), LiquidColor.RED)
        self.assertIs(LiquidColor.parse(LiquidColor.LIME), LiquidColor.LIME)
        with self.assertRaises(ValueError):
            LiquidColor.parse("mauve")

    def test_rgb_matches_hex(self) -> None:
        self.assertEqual(LiquidColor.BROWN.hex_value, "#8b4513")
        self.assertEqual(LiquidColor.BROWN.rgb, (0x8B, 0x45, 0x13))
        self.assertEqual(LiquidColor.CYAN.display_name, "Cyan")


class TestLiquidLayer(unittest.TestCase):
    def test_volume_must_be_positive(self) -> None:
        with self.assertRaises(InvalidLevelError):
            LiquidLayer(color=R, volume=0)

    def test_split_returns_remaining_then_split_off(self) -> None:
        remaining, split_off = LiquidLayer(color=R, volume=3).split(1)
        self.assertEqual(remaining.volume, 2)
        self.assertEqual(split_off.volume, 1)
        with self.assertRaises(ValueError):
            LiquidLayer(color=R, volume=3).split(3)

    def test_combine_requires_same_color(self) -> None:
        merged = LiquidLayer(color=B, volume=1).combine_with(LiquidLayer(color=B, volume=2))
        self.assertEqual(merged, LiquidLayer(color=B, volume=3))
        with self.assertRaises(ValueError):
            LiquidLayer(color=B, volume=1).combine_with(LiquidLayer(color=R, volume=1))


class TestContainer(unittest.TestCase):
    def test_rejects_overfill(self) -> None:
        with self.assertRaises(InvalidLevelError):
            Container(id=0, capacity=2, layers=(LiquidLayer(color=R, volume=3),))

    def test_from_units_merges_runs(self) -> None:
        container = tube(0, B, R, R)
        self.assertEqual(len(container.layers), 2)
        self.assertEqual(container.current_volume, 3)
        self.assertEqual(container.remaining_capacity, 1)
        self.assertEqual(container.top_color, R)
        self.assertEqual(container.unique_colors, [B, R])
        self.assertFalse(container.is_sorted)

    def test_top_continuous_layer_spans_split_layers(self) -> None:
        container = Container(
            id=0,
            capacity=4,
            layers=(
                LiquidLayer(color=B, volume=1),
                LiquidLayer(color=R, volume=1),
                LiquidLayer(color=R, volume=1),
            ),
        )
        self.assertEqual(container.top_continuous_layer(), LiquidLayer(color=R, volume=2))
        self.assertEqual(container.color_segment_count, 2)
        self.assertEqual(container.merged_layers().layers, tube(0, B, R, R).layers)

    def test_empty_and_completed_flags(self) -> None:
        self.assertTrue(tube(0).is_empty)
        self.assertTrue(tube(0).is_sorted)
        self.assertFalse(tube(0).is_completed)
        self.assertTrue(tube(0, G, G, G, G).is_completed)
        self.assertIsNone(tube(0).top_continuous_layer())

    def test_with_liquid_added_merges_matching_top(self) -> None:
        container = tube(0, B, R).with_liquid_added(LiquidLayer(color=R, volume=2))
        self.assertEqual(container.to_units(), (B, R, R, R))
        self.assertEqual(len(container.layers), 2)
        with self.assertRaises(InvalidPourError):
            tube(0, B).with_liquid_added(LiquidLayer(color=R, volume=1))
        with self.assertRaises(InvalidPourError):
            tube(0, R, R, R).with_liquid_added(LiquidLayer(color=R, volume=2))

    def test_without_volume_and_top_layer(self) -> None:
        container = tube(0, B, R, R, R)
        self.assertEqual(container.without_volume(R, 1).to_units(), (B, R, R))
        self.assertEqual(container.without_top_layer().to_units(), (B,))
        with self.assertRaises(InvalidPourError):
            container.without_volume(B, 1)


class TestSolvedCheck(unittest.TestCase):
    def test_full_single_color_containers_are_solved(self) -> None:
        self.assertTrue(is_solved_containers([tube(0, R, R, R, R), tube(1, B, B, B, B), tube(2)]))

    def test_color_split_across_partial_containers_is_not_solved(self) -> None:
        self.assertFalse(is_solved_containers([tube(0, R, R), tube(1, R, R)]))

    def test_mixed_container_is_not_solved(self) -> None:
        self.assertFalse(is_solved_containers([tube(0, R, R, R, B), tube(1, B, B, B, R)]))

    def test_partial_single_container_per_color_is_solved(self) -> None:
        self.assertTrue(is_solved_containers([tube(0, R, R), tube(1, B), tube(2)]))


class TestLevel(unittest.TestCase):
    def test_derived_counts(self) -> None:
        level = make_level([tube(0, R, B), tube(1, B, R, R, B), tube(2, R), tube(3)])
        self.assertEqual(level.empty_container_count, 1)
        self.assertEqual(level.filled_container_count, 3)
        self.assertEqual(level.total_empty_slots, 2 + 0 + 3 + 4)
        self.assertEqual(level.sorted_container_count, 1)
        self.assertEqual(level.color_volumes(), {R: 4, B: 3})
        self.assertTrue(level.is_structurally_valid)

    def test_structural_validity_checks_ids_and_colors(self) -> None:
        level = make_level([tube(0, R, B), tube(0, B, R)])
        self.assertFalse(level.is_structurally_valid)
        level = Level(
            id=1,
            difficulty=1,
            container_count=2,
            color_count=3,
            initial_containers=(tube(0, R, B), tube(1, B, R)),
        )
        self.assertFalse(level.is_structurally_valid)

    def test_tags_and_serialization(self) -> None:
        level = Level(
            id=3,
            difficulty=9,
            container_count=2,
            color_count=2,
            initial_containers=(tube(0, R, B), tube(1)),
            tags=["tutorial", "challenge"],
        )
        self.assertTrue(level.is_tutorial)
        self.assertTrue(level.is_challenge)
        restored = Level.from_dict(level.to_dict())
        self.assertEqual(restored, level)

    def test_from_dict_requires_container_list(self) -> None:
        with self.assertRaises(InvalidLevelError):
            Level.from_dict({"id": 1, "difficulty": 1, "color_count": 1})

    def test_with_containers_updates_count(self) -> None:
        level = make_level([tube(0, R, B), tube(1, B, R), tube(2)])
        trimmed = level.with_containers(level.initial_containers[:2])
        self.assertEqual(trimmed.container_count, 2)


class TestGameState(unittest.TestCase):
    def _state_after_one_move(self) -> GameState:
        state = GameState.initial(1, [tube(0, B, R), tube(1)])
        move = Move(0, 1, LiquidLayer(color=R, volume=1))
        return state.add_move(move, [tube(0, B), tube(1, R)])

    def test_add_move_tracks_history(self) -> None:
        state = self._state_after_one_move()
        self.assertEqual(state.move_count, 1)
        self.assertTrue(state.can_undo)
        self.assertFalse(state.can_redo)
        self.assertEqual(state.undoable_moves_count, 1)

    def test_undo_and_redo_replay_from_initial(self) -> None:
        state = self._state_after_one_move()
        undone = state.undo_move()
        assert undone is not None
        self.assertEqual(undone.containers, state.initial_containers)
        self.assertTrue(undone.can_redo)
        self.assertEqual(undone.redoable_moves_count, 1)
        redone = undone.redo_move()
        assert redone is not None
        self.assertEqual(redone.containers, state.containers)
        self.assertIsNone(redone.redo_move())

    def test_new_move_truncates_redo_tail(self) -> None:
        undone = self._state_after_one_move().undo_move()
        assert undone is not None
        move = Move(0, 1, LiquidLayer(color=R, volume=1))
        state = undone.add_move(move, [tube(0, B), tube(1, R)])
        self.assertEqual(len(state.move_history), 1)
        self.assertEqual(state.move_count, 2)
        self.assertEqual(state.effective_move_count, 1)

    def test_reset_and_round_trip(self) -> None:
        state = self._state_after_one_move()
        self.assertEqual(state.reset().containers, state.initial_containers)
        self.assertEqual(GameState.from_dict(state.to_dict()), state)


if __name__ == "__main__":
    unittest.main()
