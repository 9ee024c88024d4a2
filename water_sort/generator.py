from __future__ import annotations

import logging
import random
from collections import deque
from collections.abc import Sequence

from . import parameters, similarity
from .colors import PALETTE, LiquidColor
from .config import LevelGenerationConfig
from .models import Container, GenerationError, Level, LiquidLayer
from .solver import is_solvable
from .validator import (
    has_completed_containers,
    merge_adjacent_layers,
    optimize_empty_containers,
    validate_generated_level,
)

logger = logging.getLogger(__name__)


def generate_tags(level_id: int, difficulty: int) -> tuple[str, ...]:
    tags: list[str] = []
    if level_id <= 5:
        tags.append("tutorial")
    if difficulty >= 8:
        tags.append("challenge")
    if difficulty <= 3:
        tags.append("easy")
    elif difficulty <= 6:
        tags.append("medium")
    else:
        tags.append("hard")
    return tuple(tags)


def validate_generation_inputs(
    *,
    container_count: int,
    color_count: int,
    container_capacity: int,
    min_empty_slots: int,
) -> None:
    for name, value in (
        ("container_count", container_count),
        ("color_count", color_count),
        ("container_capacity", container_capacity),
    ):
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"{name} must be int, got {type(value).__name__}")
    if color_count < 1:
        raise ValueError("color_count must be >= 1")
    if color_count > len(PALETTE):
        raise ValueError(
            f"color_count ({color_count}) cannot exceed available colors ({len(PALETTE)})"
        )
    if container_capacity < 1:
        raise ValueError("container_capacity must be >= 1")
    if container_count < color_count:
        raise ValueError(
            f"container_count ({container_count}) must be at least color_count ({color_count})"
        )
    free_slots = (container_count - color_count) * container_capacity
    if free_slots < min_empty_slots:
        needed = parameters.calculate_min_containers(
            color_count=color_count,
            container_capacity=container_capacity,
            min_empty_slots=min_empty_slots,
        )
        raise ValueError(
            f"container_count ({container_count}) is insufficient for {color_count} colors "
            f"with minimum {min_empty_slots} empty slots; need at least {needed} containers"
        )


class WaterSortLevelGenerator:
    """Builds levels by scattering split colour layers across containers,
    then keeps only layouts the solver can finish."""

    def __init__(self, config: LevelGenerationConfig | None = None) -> None:
        self.config = config or LevelGenerationConfig()
        self._rng = random.Random(self.config.seed)

    def generate_level(
        self,
        level_id: int,
        difficulty: int,
        container_count: int,
        color_count: int,
        container_capacity: int | None = None,
    ) -> Level:
        capacity = (
            self.config.container_capacity
            if container_capacity is None
            else container_capacity
        )
        validate_generation_inputs(
            container_count=container_count,
            color_count=color_count,
            container_capacity=capacity,
            min_empty_slots=self.config.min_empty_slots,
        )

        for attempt in range(1, self.config.max_generation_attempts + 1):
            colors = self._select_colors(color_count)
            try:
                containers = self._generate_containers(
                    container_count, colors, difficulty, capacity
                )
            except GenerationError as exc:
                logger.debug("level %s attempt %d: %s", level_id, attempt, exc)
                continue

            level = Level(
                id=level_id,
                difficulty=difficulty,
                container_count=container_count,
                color_count=color_count,
                initial_containers=tuple(containers),
                tags=generate_tags(level_id, difficulty),
            )
            if not self._validate_generated_level(level):
                logger.debug("level %s attempt %d: rejected layout", level_id, attempt)
                continue

            level = merge_adjacent_layers(level)
            level = optimize_empty_containers(
                level, max_states=self.config.max_solvability_states
            )
            if not self.validate_level(level):
                logger.debug("level %s attempt %d: not solvable", level_id, attempt)
                continue

            logger.debug("level %s generated after %d attempts", level_id, attempt)
            return level

        raise GenerationError(
            f"Failed to generate valid level after {self.config.max_generation_attempts} "
            f"attempts (level_id={level_id}, difficulty={difficulty}, "
            f"container_count={container_count}, color_count={color_count}, "
            f"container_capacity={capacity})"
        )

    def generate_unique_level(
        self,
        level_id: int,
        difficulty: int,
        container_count: int,
        color_count: int,
        container_capacity: int | None = None,
        existing_levels: Sequence[Level] = (),
    ) -> Level:
        for _ in range(similarity.MAX_GENERATION_ATTEMPTS):
            candidate = self.generate_level(
                level_id, difficulty, container_count, color_count, container_capacity
            )
            if not self.is_level_similar(candidate, existing_levels):
                return candidate
        logger.debug("level %s: no unique candidate, using a plain one", level_id)
        return self.generate_level(
            level_id, difficulty, container_count, color_count, container_capacity
        )

    def validate_level(self, level: Level) -> bool:
        if not level.is_structurally_valid:
            return False
        if not self._check_solvability_heuristic(level):
            return False
        if self.config.enable_actual_solvability_test:
            return is_solvable(
                level.initial_containers,
                max_states=self.config.max_solvability_states,
            )
        return True

    def optimize_level(self, level: Level) -> Level:
        return optimize_empty_containers(
            level, max_states=self.config.max_solvability_states
        )

    def is_level_similar(self, level: Level, existing_levels: Sequence[Level]) -> bool:
        return similarity.is_level_similar_to_any(level, existing_levels)

    def generate_level_signature(self, level: Level) -> str:
        return similarity.generate_normalized_signature(level)

    def generate_level_series(
        self, start_id: int, count: int, *, start_difficulty: int = 1
    ) -> list[Level]:
        if count < 1:
            raise ValueError("count must be >= 1")
        levels: list[Level] = []
        for index in range(count):
            level_id = start_id + index
            difficulty = parameters.calculate_progressive_difficulty(
                index, start_difficulty
            )
            container_count = parameters.calculate_container_count(difficulty)
            levels.append(
                self.generate_level(
                    level_id,
                    difficulty,
                    container_count,
                    parameters.calculate_color_count(difficulty, container_count),
                    parameters.calculate_container_capacity(level_id),
                )
            )
        return levels

    def has_completed_containers(self, level: Level) -> bool:
        return has_completed_containers(level)

    def _select_colors(self, color_count: int) -> list[LiquidColor]:
        return self._rng.sample(PALETTE, color_count)

    def _layers_for_color(
        self, color: LiquidColor, difficulty: int, capacity: int
    ) -> list[LiquidLayer]:
        if difficulty <= 2:
            layer_count = self._rng.randint(1, 2)
        elif difficulty <= 5:
            layer_count = self._rng.randint(2, 3)
        else:
            layer_count = self._rng.randint(2, 4)
        layer_count = min(layer_count, capacity)

        layers: list[LiquidLayer] = []
        remaining = capacity
        for index in range(layer_count - 1):
            largest = remaining - (layer_count - index - 1)
            volume = self._rng.randint(1, largest)
            layers.append(LiquidLayer(color=color, volume=volume))
            remaining -= volume
        layers.append(LiquidLayer(color=color, volume=remaining))
        return layers

    def _target_empty_slots(
        self, difficulty: int, available: int, capacity: int
    ) -> int:
        if difficulty <= 3:
            return min(available, capacity * 2)
        if difficulty <= 6:
            return min(available, round(capacity * 1.5))
        return max(self.config.min_empty_slots, min(available, capacity))

    def _generate_containers(
        self,
        container_count: int,
        colors: Sequence[LiquidColor],
        difficulty: int,
        capacity: int,
    ) -> list[Container]:
        pending: deque[LiquidLayer] = deque()
        shuffled: list[LiquidLayer] = []
        for color in colors:
            shuffled.extend(self._layers_for_color(color, difficulty, capacity))
        self._rng.shuffle(shuffled)
        pending.extend(shuffled)

        total_capacity = container_count * capacity
        available = total_capacity - len(colors) * capacity
        if available < self.config.min_empty_slots:
            raise GenerationError("not enough capacity for minimum empty slots")
        max_fill = total_capacity - self._target_empty_slots(
            difficulty, available, capacity
        )

        tubes: list[list[LiquidLayer]] = [[] for _ in range(container_count)]
        fill = 0

        def free(tube: list[LiquidLayer]) -> int:
            return capacity - sum(layer.volume for layer in tube)

        while pending and fill < max_fill:
            layer = pending.popleft()
            placed = False
            if fill + layer.volume <= max_fill:
                for tube in tubes:
                    if free(tube) >= layer.volume:
                        tube.append(layer)
                        fill += layer.volume
                        placed = True
                        break
            if not placed:
                room = max_fill - fill
                for tube in tubes:
                    space = min(free(tube), room)
                    if 0 < space < layer.volume:
                        kept, rest = layer.split(layer.volume - space)
                        tube.append(kept)
                        fill += kept.volume
                        pending.append(rest)
                        placed = True
                        break
            if not placed:
                break

        if pending:
            raise GenerationError(
                "could not place all liquid layers while maintaining empty slots"
            )

        containers = [
            Container(id=0, capacity=capacity, layers=tuple(tube)) for tube in tubes
        ]
        self._rng.shuffle(containers)
        return [container.with_id(pos) for pos, container in enumerate(containers)]

    def _validate_generated_level(self, level: Level) -> bool:
        if not validate_generated_level(level):
            return False
        if level.total_empty_slots < self.config.min_empty_slots:
            return False
        return self._check_solvability_heuristic(level)

    def _check_solvability_heuristic(self, level: Level) -> bool:
        volumes = level.color_volumes()
        if len(volumes) != level.color_count:
            return False
        if not level.initial_containers:
            return False
        expected = level.initial_containers[0].capacity
        if any(volume != expected for volume in volumes.values()):
            return False
        if level.total_empty_slots == 0:
            return False
        # Allow at most one tube that is already a single colour.
        return level.sorted_container_count <= 1
