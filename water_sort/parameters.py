from __future__ import annotations

DEFAULT_CONTAINER_CAPACITY = 4
DEFAULT_MIN_EMPTY_SLOTS = 1
MAX_DIFFICULTY = 10


def calculate_progressive_difficulty(level_index: int, start_difficulty: int) -> int:
    """Difficulty rises by one every five levels of a series, capped at 10."""
    return min(MAX_DIFFICULTY, start_difficulty + level_index // 5)


def calculate_difficulty_for_level(level_id: int) -> int:
    return (level_id - 1) // 5 + 1


def calculate_container_count(difficulty: int) -> int:
    if difficulty <= 2:
        return 4
    if difficulty <= 4:
        return 5
    if difficulty <= 6:
        return 6
    if difficulty <= 8:
        return 7
    return 8


def calculate_color_count(difficulty: int, container_count: int) -> int:
    max_colors = container_count - 1
    if difficulty <= 2:
        wanted = 2
    elif difficulty <= 4:
        wanted = 3
    elif difficulty <= 6:
        wanted = 4
    elif difficulty <= 8:
        wanted = 5
    else:
        wanted = 6
    return min(wanted, max_colors)


def calculate_container_capacity(level_id: int) -> int:
    # Capacity steps are offset from the colour/container steps.
    if level_id <= 15:
        return 4
    if level_id <= 25:
        return 5
    if level_id <= 35:
        return 6
    if level_id <= 45:
        return 7
    return 8


def calculate_empty_slots(difficulty: int, container_capacity: int) -> int:
    if difficulty <= 3:
        return container_capacity * 2
    if difficulty <= 6:
        return round(container_capacity * 1.5)
    return container_capacity


def calculate_max_colors(
    *,
    container_count: int,
    container_capacity: int = DEFAULT_CONTAINER_CAPACITY,
    min_empty_slots: int = DEFAULT_MIN_EMPTY_SLOTS,
) -> int:
    if container_count <= 0:
        raise ValueError("container_count must be positive")
    if container_capacity <= 0:
        raise ValueError("container_capacity must be positive")
    if min_empty_slots < 0:
        raise ValueError("min_empty_slots cannot be negative")
    max_liquid = container_count * container_capacity - min_empty_slots
    if max_liquid < container_capacity:
        return 0
    return max_liquid // container_capacity


def is_valid_configuration(
    *,
    container_count: int,
    color_count: int,
    container_capacity: int = DEFAULT_CONTAINER_CAPACITY,
    min_empty_slots: int = DEFAULT_MIN_EMPTY_SLOTS,
) -> bool:
    if container_count <= 0 or color_count < 0:
        return False
    empty_slots = (container_count - color_count) * container_capacity
    return empty_slots >= min_empty_slots


def calculate_min_containers(
    *,
    color_count: int,
    container_capacity: int = DEFAULT_CONTAINER_CAPACITY,
    min_empty_slots: int = DEFAULT_MIN_EMPTY_SLOTS,
) -> int:
    if color_count < 0:
        raise ValueError("color_count cannot be negative")
    needed = color_count * container_capacity + min_empty_slots
    return -(-needed // container_capacity)
