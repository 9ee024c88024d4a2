from __future__ import annotations

import logging

from .models import Container, Level, is_solved_containers
from .solver import DEFAULT_MAX_STATES, is_solvable

logger = logging.getLogger(__name__)


def is_already_solved(level: Level) -> bool:
    return is_solved_containers(level.initial_containers)


def is_container_completed(container: Container) -> bool:
    return container.is_completed


def has_completed_containers(level: Level) -> bool:
    return any(container.is_completed for container in level.initial_containers)


def validate_generated_level(level: Level) -> bool:
    """A fresh level must not be solved, must not contain a finished tube,
    and must be structurally consistent."""
    if is_already_solved(level):
        return False
    if has_completed_containers(level):
        return False
    return level.is_structurally_valid


def merge_adjacent_layers(level: Level) -> Level:
    return level.with_containers(
        [container.merged_layers() for container in level.initial_containers]
    )


def is_level_solvable(level: Level, *, max_states: int = DEFAULT_MAX_STATES) -> bool:
    if not level.is_structurally_valid:
        return False
    return is_solvable(level.initial_containers, max_states=max_states)


def optimize_empty_containers(
    level: Level, *, max_states: int = DEFAULT_MAX_STATES
) -> Level:
    """Drop empty containers the level can be solved without.

    Filled containers keep their relative order and come first; surviving
    empty containers follow. Ids are renumbered from 0.
    """
    if level.container_count <= 3:
        return level
    empty = [c for c in level.initial_containers if c.is_empty]
    if not empty:
        return level
    filled = [c for c in level.initial_containers if not c.is_empty]

    optimized = level
    for to_remove in range(1, len(empty) + 1):
        kept = filled + empty[: len(empty) - to_remove]
        candidate = level.with_containers(
            [container.with_id(pos) for pos, container in enumerate(kept)]
        )
        if not is_level_solvable(candidate, max_states=max_states):
            # Fewer empty containers cannot make it solvable again.
            break
        optimized = candidate

    if optimized is not level:
        logger.debug(
            "level %s: removed %d empty containers",
            level.id,
            level.container_count - optimized.container_count,
        )
    return optimized
