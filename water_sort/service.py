from __future__ import annotations

import logging
from typing import Any, Protocol

from . import parameters, similarity
from .colors import PALETTE
from .generator import WaterSortLevelGenerator, validate_generation_inputs
from .models import Container, GenerationError, Level, LiquidLayer

logger = logging.getLogger(__name__)

MAX_UNIQUE_GENERATION_ATTEMPTS = 50
MIN_SESSION_HISTORY_SIZE = 10
MAX_SESSION_HISTORY_SIZE = 100
OUTCOMES = (
    "unique",
    "trimmed_history",
    "modified_parameters",
    "plain_fallback",
    "minimal_fallback",
)


class LevelSource(Protocol):
    def generate_level(
        self,
        level_id: int,
        difficulty: int,
        container_count: int,
        color_count: int,
        container_capacity: int | None = None,
    ) -> Level: ...


class LevelGenerationService:
    """Generates levels that stay distinct from the recent levels of a session.

    Accepted levels go into a bounded history (oldest dropped first). When no
    candidate is unique after ``max_attempts`` tries, the service trims the
    history, then tries neighbouring container/colour counts, then clears the
    history and accepts any level; if even that fails it builds a minimal
    rotated-colour level tagged ``fallback``.
    """

    def __init__(
        self,
        generator: LevelSource | None = None,
        *,
        min_history_size: int = MIN_SESSION_HISTORY_SIZE,
        max_history_size: int = MAX_SESSION_HISTORY_SIZE,
        max_attempts: int = MAX_UNIQUE_GENERATION_ATTEMPTS,
    ) -> None:
        if min_history_size < 1 or max_history_size < min_history_size:
            raise ValueError(
                "history sizes must satisfy 1 <= min_history_size <= max_history_size"
            )
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.generator: LevelSource = generator or WaterSortLevelGenerator()
        self.min_history_size = min_history_size
        self.max_history_size = max_history_size
        self.max_attempts = max_attempts
        self._session_levels: list[Level] = []
        self._outcomes: dict[str, int] = dict.fromkeys(OUTCOMES, 0)
        self._candidate_count = 0

    @property
    def session_history(self) -> tuple[Level, ...]:
        return tuple(self._session_levels)

    @property
    def session_level_count(self) -> int:
        return len(self._session_levels)

    @property
    def is_session_history_full(self) -> bool:
        return len(self._session_levels) >= self.max_history_size

    def generate_next_level(
        self,
        level_id: int,
        difficulty: int,
        container_count: int,
        color_count: int,
        container_capacity: int | None = None,
    ) -> Level:
        capacity = (
            parameters.calculate_container_capacity(level_id)
            if container_capacity is None
            else container_capacity
        )
        validate_generation_inputs(
            container_count=container_count,
            color_count=color_count,
            container_capacity=capacity,
            min_empty_slots=parameters.DEFAULT_MIN_EMPTY_SLOTS,
        )

        level = None
        for _ in range(self.max_attempts):
            candidate = self._try_generate(
                level_id, difficulty, container_count, color_count, capacity
            )
            if candidate is not None and self._is_unique_in_session(candidate):
                level = candidate
                self._outcomes["unique"] += 1
                break

        if level is None:
            logger.debug(
                "level %s: no unique candidate in %d attempts", level_id, self.max_attempts
            )
            level = self._handle_uniqueness_failure(
                level_id, difficulty, container_count, color_count, capacity
            )

        self._add_to_session_history(level)
        return level

    def generate_level_series(
        self,
        start_id: int,
        count: int,
        *,
        start_difficulty: int = 1,
        start_container_count: int = 4,
        start_color_count: int = 2,
    ) -> list[Level]:
        if count < 1:
            raise ValueError("count must be >= 1")
        levels: list[Level] = []
        for index in range(count):
            difficulty = parameters.calculate_progressive_difficulty(
                index, start_difficulty
            )
            container_count = max(
                parameters.calculate_container_count(difficulty), start_container_count
            )
            color_count = min(
                max(
                    parameters.calculate_color_count(difficulty, container_count),
                    start_color_count,
                ),
                container_count - 1,
            )
            levels.append(
                self.generate_next_level(
                    start_id + index, difficulty, container_count, color_count
                )
            )
        return levels

    def clear_session_history(self) -> None:
        self._session_levels.clear()

    def reset(self) -> None:
        self.clear_session_history()
        self._outcomes = dict.fromkeys(OUTCOMES, 0)
        self._candidate_count = 0

    def get_session_statistics(self) -> dict[str, Any]:
        levels = self._session_levels
        if not levels:
            return {
                "total_levels": 0,
                "avg_difficulty": 0.0,
                "avg_containers": 0.0,
                "avg_colors": 0.0,
                "difficulty_range": [0, 0],
                "container_range": [0, 0],
                "color_range": [0, 0],
                "uniqueness_analysis": {},
            }
        difficulties = [level.difficulty for level in levels]
        containers = [level.container_count for level in levels]
        colors = [level.color_count for level in levels]
        return {
            "total_levels": len(levels),
            "avg_difficulty": sum(difficulties) / len(levels),
            "avg_containers": sum(containers) / len(levels),
            "avg_colors": sum(colors) / len(levels),
            "difficulty_range": [min(difficulties), max(difficulties)],
            "container_range": [min(containers), max(containers)],
            "color_range": [min(colors), max(colors)],
            "uniqueness_analysis": similarity.analyze_level_set_similarity(levels),
        }

    def get_generation_metrics(self) -> dict[str, Any]:
        return {
            "session_levels": len(self._session_levels),
            "max_session_size": self.max_history_size,
            "min_session_size": self.min_history_size,
            "max_attempts": self.max_attempts,
            "candidates_generated": self._candidate_count,
            "outcomes": dict(self._outcomes),
        }

    def _try_generate(
        self,
        level_id: int,
        difficulty: int,
        container_count: int,
        color_count: int,
        capacity: int,
    ) -> Level | None:
        self._candidate_count += 1
        try:
            return self.generator.generate_level(
                level_id, difficulty, container_count, color_count, capacity
            )
        except GenerationError as exc:
            logger.debug("level %s: candidate failed: %s", level_id, exc)
            return None

    def _is_unique_in_session(self, candidate: Level) -> bool:
        return not similarity.is_level_similar_to_any(candidate, self._session_levels)

    def _add_to_session_history(self, level: Level) -> None:
        self._session_levels.append(level)
        overflow = len(self._session_levels) - self.max_history_size
        if overflow > 0:
            del self._session_levels[:overflow]

    def _handle_uniqueness_failure(
        self,
        level_id: int,
        difficulty: int,
        container_count: int,
        color_count: int,
        capacity: int,
    ) -> Level:
        if len(self._session_levels) > self.min_history_size:
            del self._session_levels[: -self.min_history_size]
            candidate = self._try_generate(
                level_id, difficulty, container_count, color_count, capacity
            )
            if candidate is not None and self._is_unique_in_session(candidate):
                self._outcomes["trimmed_history"] += 1
                return candidate

        for variant_containers, variant_colors in self._parameter_variations(
            container_count, color_count, capacity
        ):
            candidate = self._try_generate(
                level_id, difficulty, variant_containers, variant_colors, capacity
            )
            if candidate is not None and self._is_unique_in_session(candidate):
                self._outcomes["modified_parameters"] += 1
                return candidate

        self.clear_session_history()
        candidate = self._try_generate(
            level_id, difficulty, container_count, color_count, capacity
        )
        if candidate is not None:
            self._outcomes["plain_fallback"] += 1
            return candidate

        logger.debug("level %s: using minimal fallback level", level_id)
        self._outcomes["minimal_fallback"] += 1
        return minimal_level(level_id, difficulty, container_count, color_count, capacity)

    def _parameter_variations(
        self, container_count: int, color_count: int, capacity: int
    ) -> list[tuple[int, int]]:
        variations = []
        if container_count < 8:
            variations.append((container_count + 1, color_count))
        if container_count > 4:
            variations.append((container_count - 1, max(2, color_count - 1)))
        if color_count < container_count - 1:
            variations.append((container_count, color_count + 1))
        if color_count > 2:
            variations.append((container_count, color_count - 1))
        return [
            (containers, colors)
            for containers, colors in variations
            if colors <= len(PALETTE)
            and parameters.is_valid_configuration(
                container_count=containers,
                color_count=colors,
                container_capacity=capacity,
            )
        ]


def minimal_level(
    level_id: int,
    difficulty: int,
    container_count: int,
    color_count: int,
    container_capacity: int,
) -> Level:
    """Build a small unsorted level that the solver can always finish.

    Tube ``i`` holds ``capacity - 1`` units of colour ``i`` under one unit of
    colour ``i + 1`` (wrapping), and the remaining tubes are empty. With one
    colour or capacity 1 the tubes are filled sorted.
    """
    colors = PALETTE[:color_count]
    rotate = color_count > 1 and container_capacity > 1
    containers = []
    for pos in range(container_count):
        layers: tuple[LiquidLayer, ...] = ()
        if pos < color_count and rotate:
            layers = (
                LiquidLayer(color=colors[pos], volume=container_capacity - 1),
                LiquidLayer(color=colors[(pos + 1) % color_count], volume=1),
            )
        elif pos < color_count:
            layers = (LiquidLayer(color=colors[pos], volume=container_capacity),)
        containers.append(Container(id=pos, capacity=container_capacity, layers=layers))
    return Level(
        id=level_id,
        difficulty=difficulty,
        container_count=container_count,
        color_count=color_count,
        initial_containers=tuple(containers),
        tags=("fallback",),
    )
