from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from .colors import LiquidColor
from .models import Container, Level

SIMILARITY_THRESHOLD = 0.8
MAX_GENERATION_ATTEMPTS = 50

EMPTY_PATTERN = "EMPTY"


def normalize_colors(containers: Sequence[Container]) -> list[str]:
    """Map colours to ``A``, ``B``, ... in order of first appearance, one
    letter per unit, so patterns compare independently of the palette."""
    labels: dict[LiquidColor, str] = {}
    patterns: list[str] = []
    for container in containers:
        if container.is_empty:
            patterns.append(EMPTY_PATTERN)
            continue
        parts: list[str] = []
        for layer in container.layers:
            if layer.color not in labels:
                labels[layer.color] = chr(ord("A") + len(labels))
            parts.append(labels[layer.color] * layer.volume)
        patterns.append("".join(parts))
    return patterns


def generate_normalized_signature(level: Level) -> str:
    containers = level.initial_containers
    return f"containers:{len(containers)}|pattern:{','.join(normalize_colors(containers))}"


def count_color_segments(pattern: str) -> int:
    if not pattern or pattern == EMPTY_PATTERN:
        return 0
    segments = 1
    for prev, char in zip(pattern, pattern[1:]):
        if char != prev:
            segments += 1
    return segments


def _arrangement_similarity(pattern1: list[str], pattern2: list[str]) -> float:
    if len(pattern1) != len(pattern2) or not pattern1:
        return 0.0
    matches = sum(1 for a, b in zip(pattern1, pattern2) if a == b)
    return matches / len(pattern1)


def _layer_distribution(level: Level) -> dict[str, float]:
    total = level.container_count or 1
    empty = single = mixed = 0
    for container in level.initial_containers:
        if container.is_empty:
            empty += 1
        elif container.is_sorted:
            single += 1
        else:
            mixed += 1
    return {"empty": empty / total, "single": single / total, "mixed": mixed / total}


def _compare_distributions(dist1: dict[str, float], dist2: dict[str, float]) -> float:
    keys = set(dist1) | set(dist2)
    difference = sum(abs(dist1.get(k, 0.0) - dist2.get(k, 0.0)) for k in keys)
    return max(0.0, 1.0 - difference / 2.0)


def _complexity_metrics(pattern: list[str]) -> dict[str, float]:
    total = len(pattern)
    if not total:
        return {"empty_ratio": 0.0, "single_ratio": 0.0, "multi_ratio": 0.0, "avg_segments": 0.0}
    empty = single = multi = 0
    segments_total = 0
    for item in pattern:
        if item == EMPTY_PATTERN:
            empty += 1
            continue
        segments = count_color_segments(item)
        segments_total += segments
        if segments == 1:
            single += 1
        else:
            multi += 1
    return {
        "empty_ratio": empty / total,
        "single_ratio": single / total,
        "multi_ratio": multi / total,
        "avg_segments": segments_total / total,
    }


def _compare_metrics(metrics1: dict[str, float], metrics2: dict[str, float]) -> float:
    keys = set(metrics1) | set(metrics2)
    if not keys:
        return 1.0
    difference = sum(abs(metrics1.get(k, 0.0) - metrics2.get(k, 0.0)) for k in keys)
    return max(0.0, 1.0 - difference / len(keys))


def compare_structural_patterns(level1: Level, level2: Level) -> float:
    """Weighted similarity in [0, 1]: arrangement 40%, distribution 30%,
    mixing complexity 30%."""
    pattern1 = normalize_colors(level1.initial_containers)
    pattern2 = normalize_colors(level2.initial_containers)
    similarity = _arrangement_similarity(pattern1, pattern2) * 0.4
    similarity += (
        _compare_distributions(_layer_distribution(level1), _layer_distribution(level2))
        * 0.3
    )
    similarity += (
        _compare_metrics(_complexity_metrics(pattern1), _complexity_metrics(pattern2))
        * 0.3
    )
    return similarity


def are_levels_similar(level1: Level, level2: Level) -> bool:
    if (
        level1.container_count != level2.container_count
        or level1.color_count != level2.color_count
    ):
        return False
    return compare_structural_patterns(level1, level2) >= SIMILARITY_THRESHOLD


def is_level_similar_to_any(level: Level, existing: Sequence[Level]) -> bool:
    return any(are_levels_similar(level, other) for other in existing)


def validate_level_uniqueness(
    candidate: Level,
    existing: Sequence[Level],
    *,
    threshold: float | None = None,
) -> bool:
    limit = SIMILARITY_THRESHOLD if threshold is None else threshold
    return all(compare_structural_patterns(candidate, other) < limit for other in existing)


def find_most_similar_level(
    target: Level, candidates: Sequence[Level]
) -> tuple[Level | None, float]:
    best: Level | None = None
    best_score = 0.0
    for candidate in candidates:
        score = compare_structural_patterns(target, candidate)
        if score > best_score:
            best, best_score = candidate, score
    return (best, best_score)


def generate_detailed_signature(level: Level) -> dict[str, Any]:
    pattern = normalize_colors(level.initial_containers)
    return {
        "container_count": level.container_count,
        "color_count": level.color_count,
        "normalized_pattern": pattern,
        "distribution": _layer_distribution(level),
        "complexity": _complexity_metrics(pattern),
        "signature": generate_normalized_signature(level),
    }


def analyze_level_set_similarity(levels: Sequence[Level]) -> dict[str, Any]:
    if len(levels) < 2:
        return {
            "total_levels": len(levels),
            "comparisons": 0,
            "avg_similarity": 0.0,
            "max_similarity": 0.0,
            "min_similarity": 0.0,
            "similar_pairs": 0,
            "uniqueness_ratio": 1.0,
        }
    scores: list[float] = []
    similar_pairs = 0
    for i, first in enumerate(levels):
        for second in levels[i + 1 :]:
            score = compare_structural_patterns(first, second)
            scores.append(score)
            if score >= SIMILARITY_THRESHOLD:
                similar_pairs += 1
    return {
        "total_levels": len(levels),
        "comparisons": len(scores),
        "avg_similarity": sum(scores) / len(scores),
        "max_similarity": max(scores),
        "min_similarity": min(scores),
        "similar_pairs": similar_pairs,
        "uniqueness_ratio": 1.0 - similar_pairs / len(scores),
    }
