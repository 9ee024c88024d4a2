from __future__ import annotations

import json
import os
import tempfile
import unittest

from water_sort.config import (
    LevelGenerationConfig,
    load_config,
    load_generation_config,
    merge_dicts,
)


class TestConfig(unittest.TestCase):
    def test_load_config_expands_env_vars(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "config.json")
            os.environ["WS_TEST_OUT_DIR"] = "/tmp/levels"
            with open(path, "w", encoding="utf-8") as f:
                json.dump({"out_dir": "$WS_TEST_OUT_DIR"}, f)
            loaded = load_config(path)
            self.assertEqual(loaded["out_dir"], "/tmp/levels")

    def test_load_config_requires_object(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "config.json")
            with open(path, "w", encoding="utf-8") as f:
                json.dump([1, 2], f)
            with self.assertRaises(ValueError):
                load_config(path)

    def test_merge_dicts_nested(self) -> None:
        base = {"a": 1, "nested": {"x": 1, "y": 2}}
        override = {"nested": {"y": 3, "z": 4}}
        merged = merge_dicts(base, override)
        self.assertEqual(merged, {"a": 1, "nested": {"x": 1, "y": 3, "z": 4}})


class TestLevelGenerationConfig(unittest.TestCase):
    def test_defaults(self) -> None:
        config = LevelGenerationConfig()
        self.assertEqual(config.container_capacity, 4)
        self.assertEqual(config.min_empty_slots, 1)
        self.assertEqual(config.max_generation_attempts, 100)
        self.assertIsNone(config.seed)
        self.assertTrue(config.enable_actual_solvability_test)

    def test_validation(self) -> None:
        with self.assertRaises(ValueError):
            LevelGenerationConfig(container_capacity=0)
        with self.assertRaises(ValueError):
            LevelGenerationConfig(max_generation_attempts=0)
        with self.assertRaises(TypeError):
            LevelGenerationConfig(container_capacity="4")
        with self.assertRaises(TypeError):
            LevelGenerationConfig(seed=True)

    def test_from_dict_strictness(self) -> None:
        data = {"seed": 42, "colour_blind": True}
        with self.assertRaises(ValueError):
            LevelGenerationConfig.from_dict(data)
        config = LevelGenerationConfig.from_dict(data, strict=False)
        self.assertEqual(config.seed, 42)
        self.assertEqual(LevelGenerationConfig.from_dict(config.to_dict()), config)

    def test_load_generation_config_section_and_overrides(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "config.json")
            with open(path, "w", encoding="utf-8") as f:
                json.dump(
                    {"generator": {"seed": 1, "max_solvability_states": 500}}, f
                )
            config = load_generation_config(path, overrides={"seed": 42})
            self.assertEqual(config.seed, 42)
            self.assertEqual(config.max_solvability_states, 500)


if __name__ == "__main__":
    unittest.main()
