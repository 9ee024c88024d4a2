from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from .models import Level

TUTORIAL_FINAL_LEVEL = 5
CHALLENGE_LEVEL_IDS = range(201, 206)
# completed-level count -> bonus level id
BONUS_MILESTONES: dict[int, int] = {10: 101, 25: 102, 50: 103}


@dataclass(frozen=True, slots=True)
class LevelProgress:
    """Immutable snapshot of a player's run through the level list.

    ``best_scores`` holds the fewest moves per level and ``completion_times``
    the fastest completion in milliseconds.
    """

    unlocked_levels: frozenset[int] = frozenset()
    completed_levels: frozenset[int] = frozenset()
    best_scores: Mapping[int, int] = field(default_factory=dict)
    completion_times: Mapping[int, int] = field(default_factory=dict)
    current_level: int | None = None

    @classmethod
    def initial(cls) -> LevelProgress:
        return cls(unlocked_levels=frozenset({1}), current_level=1)

    def is_level_unlocked(self, level_id: int) -> bool:
        return level_id in self.unlocked_levels

    def is_level_completed(self, level_id: int) -> bool:
        return level_id in self.completed_levels

    def get_best_score(self, level_id: int) -> int | None:
        return self.best_scores.get(level_id)

    def get_completion_time(self, level_id: int) -> int | None:
        return self.completion_times.get(level_id)

    @property
    def highest_unlocked_level(self) -> int:
        return max(self.unlocked_levels, default=0)

    @property
    def total_completed_levels(self) -> int:
        return len(self.completed_levels)

    def get_completion_percentage(self, total_available_levels: int) -> float:
        """Completed share of ``total_available_levels`` as a fraction in [0, 1]."""
        if total_available_levels == 0:
            return 0.0
        return len(self.completed_levels) / total_available_levels

    def to_dict(self) -> dict[str, Any]:
        return {
            "unlocked_levels": sorted(self.unlocked_levels),
            "completed_levels": sorted(self.completed_levels),
            "best_scores": {str(k): v for k, v in sorted(self.best_scores.items())},
            "completion_times": {
                str(k): v for k, v in sorted(self.completion_times.items())
            },
            "current_level": self.current_level,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LevelProgress:
        return cls(
            unlocked_levels=frozenset(int(i) for i in data.get("unlocked_levels") or ()),
            completed_levels=frozenset(int(i) for i in data.get("completed_levels") or ()),
            best_scores={int(k): int(v) for k, v in (data.get("best_scores") or {}).items()},
            completion_times={
                int(k): int(v) for k, v in (data.get("completion_times") or {}).items()
            },
            current_level=data.get("current_level"),
        )


class LevelProgressionManager:
    """In-memory unlocking and completion rules over a set of available levels."""

    def __init__(
        self,
        initial_progress: LevelProgress | None = None,
        available_levels: Mapping[int, Level] | None = None,
    ) -> None:
        self._progress = initial_progress or LevelProgress.initial()
        self._available_levels: dict[int, Level] = dict(available_levels or {})

    @property
    def progress(self) -> LevelProgress:
        return self._progress

    @property
    def available_levels(self) -> dict[int, Level]:
        return dict(self._available_levels)

    def add_level(self, level: Level) -> None:
        self._available_levels[level.id] = level

    def add_levels(self, levels: Iterable[Level]) -> None:
        for level in levels:
            self.add_level(level)

    def get_level(self, level_id: int) -> Level | None:
        return self._available_levels.get(level_id)

    def get_unlocked_levels(self) -> list[Level]:
        return self._known_levels(self._progress.unlocked_levels)

    def get_completed_levels(self) -> list[Level]:
        return self._known_levels(self._progress.completed_levels)

    def get_next_level(self) -> Level | None:
        """First unlocked level, by id, that has not been completed."""
        for level in self.get_unlocked_levels():
            if not self._progress.is_level_completed(level.id):
                return level
        return None

    def complete_level(
        self, level_id: int, move_count: int, time_in_milliseconds: int
    ) -> LevelProgress:
        progress = self._progress
        if not progress.is_level_unlocked(level_id):
            raise ValueError(f"Cannot complete level {level_id}: level is not unlocked")

        completed = progress.completed_levels | {level_id}
        best_scores = dict(progress.best_scores)
        best = best_scores.get(level_id)
        if best is None or move_count < best:
            best_scores[level_id] = move_count
        times = dict(progress.completion_times)
        fastest = times.get(level_id)
        if fastest is None or time_in_milliseconds < fastest:
            times[level_id] = time_in_milliseconds

        unlocked = progress.unlocked_levels | self._levels_to_unlock(level_id, completed)
        next_level = _first_unplayed(unlocked, completed)
        self._progress = replace(
            progress,
            unlocked_levels=unlocked,
            completed_levels=completed,
            best_scores=best_scores,
            completion_times=times,
            # Finishing the last level leaves the current level unchanged.
            current_level=next_level if next_level is not None else progress.current_level,
        )
        return self._progress

    def unlock_level(self, level_id: int) -> LevelProgress:
        if level_id not in self._available_levels:
            raise ValueError(f"Cannot unlock level {level_id}: level does not exist")
        self._progress = replace(
            self._progress, unlocked_levels=self._progress.unlocked_levels | {level_id}
        )
        return self._progress

    def set_current_level(self, level_id: int) -> LevelProgress:
        if not self._progress.is_level_unlocked(level_id):
            raise ValueError(
                f"Cannot set current level to {level_id}: level is not unlocked"
            )
        self._progress = replace(self._progress, current_level=level_id)
        return self._progress

    def reset_progress(self) -> LevelProgress:
        self._progress = LevelProgress.initial()
        return self._progress

    def update_progress(self, progress: LevelProgress) -> None:
        self._progress = progress

    def get_progress_statistics(self) -> dict[str, Any]:
        progress = self._progress
        completed = len(progress.completed_levels)
        return {
            "total_levels_available": len(self._available_levels),
            "total_levels_unlocked": len(progress.unlocked_levels),
            "total_levels_completed": completed,
            "completion_percentage": progress.get_completion_percentage(
                len(self._available_levels)
            ),
            "highest_unlocked_level": progress.highest_unlocked_level,
            "current_level": progress.current_level,
            "average_moves_per_level": (
                sum(progress.best_scores.values()) / completed if completed else 0.0
            ),
            "total_play_time_ms": sum(progress.completion_times.values()),
        }

    def _known_levels(self, ids: Iterable[int]) -> list[Level]:
        return sorted(
            (self._available_levels[i] for i in ids if i in self._available_levels),
            key=lambda level: level.id,
        )

    def _levels_to_unlock(self, level_id: int, completed: frozenset[int]) -> set[int]:
        unlock: set[int] = set()
        if level_id + 1 in self._available_levels:
            unlock.add(level_id + 1)
        bonus = BONUS_MILESTONES.get(len(completed))
        if bonus is not None and bonus in self._available_levels:
            unlock.add(bonus)
        if level_id == TUTORIAL_FINAL_LEVEL:
            unlock.update(i for i in CHALLENGE_LEVEL_IDS if i in self._available_levels)
        return unlock


def _first_unplayed(unlocked: Iterable[int], completed: frozenset[int]) -> int | None:
    return min((i for i in unlocked if i not in completed), default=None)
