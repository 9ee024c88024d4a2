from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping


def load_config(path: str) -> dict[str, Any]:
    data = json.loads(Path(path).read_text())
    if not isinstance(data, dict):
        raise ValueError(f"config file {path} must contain a JSON object")
    return _expand_env_vars(data)


def _expand_env_vars(value: Any) -> Any:
    if isinstance(value, str):
        return os.path.expandvars(value)
    if isinstance(value, list):
        return [_expand_env_vars(item) for item in value]
    if isinstance(value, dict):
        return {str(k): _expand_env_vars(v) for k, v in value.items()}
    return value


def merge_dicts(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = {**base}
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_dicts(result[key], value)
        else:
            result[key] = value
    return result


_INT_FIELDS = {
    "container_capacity",
    "min_empty_slots",
    "max_empty_containers",
    "min_layers_per_container",
    "max_layers_per_container",
    "max_generation_attempts",
    "max_solvability_attempts",
    "max_solvability_states",
}


@dataclass(frozen=True, slots=True)
class LevelGenerationConfig:
    container_capacity: int = 4
    min_empty_slots: int = 1
    max_empty_containers: int = 3
    min_layers_per_container: int = 1
    max_layers_per_container: int = 4
    seed: int | None = None
    max_generation_attempts: int = 100
    max_solvability_attempts: int = 1000
    max_solvability_states: int = 10000
    enable_actual_solvability_test: bool = True

    def __post_init__(self) -> None:
        for name in _INT_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError(f"{name} must be int, got {type(value).__name__}")
        if self.container_capacity < 1:
            raise ValueError("container_capacity must be >= 1")
        if self.min_empty_slots < 0:
            raise ValueError("min_empty_slots must be >= 0")
        if self.max_generation_attempts < 1:
            raise ValueError("max_generation_attempts must be >= 1")
        if self.max_solvability_states < 1:
            raise ValueError("max_solvability_states must be >= 1")
        if self.seed is not None and (
            isinstance(self.seed, bool) or not isinstance(self.seed, int)
        ):
            raise TypeError("seed must be int or None")

    @classmethod
    def from_dict(
        cls, data: Mapping[str, Any], *, strict: bool = True
    ) -> LevelGenerationConfig:
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown and strict:
            raise ValueError(f"unknown generation config keys: {', '.join(unknown)}")
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def load_generation_config(
    path: str, *, overrides: dict[str, Any] | None = None
) -> LevelGenerationConfig:
    """Read a JSON config; generator settings may sit under a ``generator`` key."""
    raw = load_config(path)
    section = raw.get("generator", raw)
    if not isinstance(section, dict):
        raise ValueError("generator config must be an object")
    if overrides:
        section = merge_dicts(section, overrides)
    return LevelGenerationConfig.from_dict(section)
