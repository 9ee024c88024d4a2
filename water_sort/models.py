from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from typing import Any

from .colors import LiquidColor


class WaterSortError(Exception):
    """Base exception for water-sort puzzle errors."""


class InvalidLevelError(WaterSortError, ValueError):
    """Raised when a level or container definition is invalid."""


class InvalidActionError(WaterSortError, ValueError):
    """Raised when an action cannot be parsed."""


class InvalidPourError(WaterSortError):
    """Raised when a pour violates the puzzle rules."""


class GenerationError(WaterSortError, RuntimeError):
    """Raised when a generator cannot produce a level that satisfies constraints."""


@dataclass(frozen=True, slots=True)
class LiquidLayer:
    color: LiquidColor
    volume: int

    def __post_init__(self) -> None:
        if isinstance(self.volume, bool) or not isinstance(self.volume, int):
            raise TypeError(f"volume must be int, got {type(self.volume).__name__}")
        if self.volume < 1:
            raise InvalidLevelError(f"layer volume must be >= 1, got {self.volume}")

    def can_combine_with(self, other: LiquidLayer) -> bool:
        return self.color == other.color

    def combine_with(self, other: LiquidLayer) -> LiquidLayer:
        if not self.can_combine_with(other):
            raise ValueError("cannot combine layers of different colors")
        return LiquidLayer(color=self.color, volume=self.volume + other.volume)

    def split(self, split_volume: int) -> tuple[LiquidLayer, LiquidLayer]:
        """Return ``(remaining, split_off)``."""
        if split_volume <= 0 or split_volume >= self.volume:
            raise ValueError(
                f"split volume must be within (0, {self.volume}), got {split_volume}"
            )
        return (
            LiquidLayer(color=self.color, volume=self.volume - split_volume),
            LiquidLayer(color=self.color, volume=split_volume),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"color": self.color.value, "volume": self.volume}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LiquidLayer:
        return cls(color=LiquidColor.parse(data.get("color")), volume=data.get("volume"))


def _merge_runs(layers: Iterable[LiquidLayer]) -> tuple[LiquidLayer, ...]:
    merged: list[LiquidLayer] = []
    for layer in layers:
        if merged and merged[-1].color == layer.color:
            merged[-1] = merged[-1].combine_with(layer)
        else:
            merged.append(layer)
    return tuple(merged)


@dataclass(frozen=True, slots=True)
class Container:
    """A tube holding liquid layers listed bottom -> top."""

    id: int
    capacity: int
    layers: tuple[LiquidLayer, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.layers, tuple):
            object.__setattr__(self, "layers", tuple(self.layers))
        if isinstance(self.capacity, bool) or not isinstance(self.capacity, int):
            raise TypeError(f"capacity must be int, got {type(self.capacity).__name__}")
        if self.capacity < 1:
            raise InvalidLevelError(f"container capacity must be >= 1, got {self.capacity}")
        if self.current_volume > self.capacity:
            raise InvalidLevelError(
                f"container {self.id} holds {self.current_volume} units "
                f"but capacity is {self.capacity}"
            )

    @classmethod
    def from_units(
        cls, id: int, capacity: int, units: Sequence[LiquidColor]
    ) -> Container:
        layers = _merge_runs(LiquidLayer(color=color, volume=1) for color in units)
        return cls(id=id, capacity=capacity, layers=layers)

    @property
    def current_volume(self) -> int:
        return sum(layer.volume for layer in self.layers)

    @property
    def remaining_capacity(self) -> int:
        return self.capacity - self.current_volume

    @property
    def is_empty(self) -> bool:
        return not self.layers

    @property
    def is_full(self) -> bool:
        return self.current_volume >= self.capacity

    @property
    def is_sorted(self) -> bool:
        if not self.layers:
            return True
        first = self.layers[0].color
        return all(layer.color == first for layer in self.layers)

    @property
    def is_completed(self) -> bool:
        return not self.is_empty and self.is_full and self.is_sorted

    @property
    def top_layer(self) -> LiquidLayer | None:
        return self.layers[-1] if self.layers else None

    @property
    def top_color(self) -> LiquidColor | None:
        return self.layers[-1].color if self.layers else None

    @property
    def unique_colors(self) -> list[LiquidColor]:
        seen: list[LiquidColor] = []
        for layer in self.layers:
            if layer.color not in seen:
                seen.append(layer.color)
        return seen

    @property
    def color_segment_count(self) -> int:
        return len(_merge_runs(self.layers))

    def can_accept_pour(self, color: LiquidColor, volume: int) -> bool:
        if volume > self.remaining_capacity:
            return False
        if self.is_empty:
            return True
        return self.top_color == color

    def top_continuous_layer(self) -> LiquidLayer | None:
        if not self.layers:
            return None
        top = self.layers[-1].color
        volume = 0
        for layer in reversed(self.layers):
            if layer.color != top:
                break
            volume += layer.volume
        return LiquidLayer(color=top, volume=volume)

    def with_liquid_added(self, layer: LiquidLayer) -> Container:
        if not self.can_accept_pour(layer.color, layer.volume):
            raise InvalidPourError(
                f"container {self.id} cannot accept {layer.volume} "
                f"{layer.color.display_name}"
            )
        if self.layers and self.layers[-1].color == layer.color:
            layers = self.layers[:-1] + (self.layers[-1].combine_with(layer),)
        else:
            layers = self.layers + (layer,)
        return replace(self, layers=layers)

    def without_top_layer(self) -> Container:
        """Drop the whole top run of a single colour."""
        top = self.top_continuous_layer()
        if top is None:
            return self
        return self.without_volume(top.color, top.volume)

    def without_volume(self, color: LiquidColor, volume: int) -> Container:
        if self.top_color != color:
            raise InvalidPourError(
                f"container {self.id} does not have {color.display_name} on top"
            )
        layers = list(self.layers)
        remaining = volume
        while remaining > 0 and layers and layers[-1].color == color:
            top = layers[-1]
            if top.volume <= remaining:
                layers.pop()
                remaining -= top.volume
            else:
                kept, _removed = top.split(remaining)
                layers[-1] = kept
                remaining = 0
        if remaining:
            raise InvalidPourError(
                f"container {self.id} holds less than {volume} {color.display_name} on top"
            )
        return replace(self, layers=tuple(layers))

    def merged_layers(self) -> Container:
        return replace(self, layers=_merge_runs(self.layers))

    def with_id(self, id: int) -> Container:
        return replace(self, id=id)

    def to_units(self) -> tuple[LiquidColor, ...]:
        units: list[LiquidColor] = []
        for layer in self.layers:
            units.extend([layer.color] * layer.volume)
        return tuple(units)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "capacity": self.capacity,
            "layers": [layer.to_dict() for layer in self.layers],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Container:
        layers = data.get("layers") or []
        if not isinstance(layers, list):
            raise InvalidLevelError("container layers must be a list")
        return cls(
            id=data.get("id"),
            capacity=data.get("capacity"),
            layers=tuple(LiquidLayer.from_dict(item) for item in layers),
        )


def is_solved_containers(containers: Sequence[Container]) -> bool:
    """Every non-empty container is single-coloured and each colour is packed
    into as few containers as its volume allows, all but one of them full."""

    groups: dict[LiquidColor, list[Container]] = {}
    for container in containers:
        if container.is_empty:
            continue
        if not container.is_sorted:
            return False
        groups.setdefault(container.layers[0].color, []).append(container)

    for group in groups.values():
        total = sum(container.current_volume for container in group)
        capacity = group[0].capacity
        needed = -(-total // capacity)
        if len(group) > needed:
            return False
        ordered = sorted(group, key=lambda c: c.current_volume, reverse=True)
        for container in ordered[:-1]:
            if container.current_volume != container.capacity:
                return False
    return True


def _tag_tuple(tags: Iterable[str]) -> tuple[str, ...]:
    return tuple(str(tag) for tag in tags)


@dataclass(frozen=True, slots=True)
class Level:
    id: int
    difficulty: int
    container_count: int
    color_count: int
    initial_containers: tuple[Container, ...]
    minimum_moves: int | None = None
    max_moves: int | None = None
    is_validated: bool = False
    hint: str | None = None
    tags: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not isinstance(self.initial_containers, tuple):
            object.__setattr__(self, "initial_containers", tuple(self.initial_containers))
        if not isinstance(self.tags, tuple):
            object.__setattr__(self, "tags", _tag_tuple(self.tags))

    @property
    def is_tutorial(self) -> bool:
        return "tutorial" in self.tags

    @property
    def is_challenge(self) -> bool:
        return "challenge" in self.tags

    @property
    def empty_container_count(self) -> int:
        return sum(1 for container in self.initial_containers if container.is_empty)

    @property
    def filled_container_count(self) -> int:
        return sum(1 for container in self.initial_containers if not container.is_empty)

    @property
    def total_empty_slots(self) -> int:
        return sum(container.remaining_capacity for container in self.initial_containers)

    @property
    def sorted_container_count(self) -> int:
        return sum(
            1
            for container in self.initial_containers
            if not container.is_empty and container.is_sorted
        )

    @property
    def complexity_score(self) -> float:
        score = self.difficulty * 10.0
        score += self.color_count * 5
        score += (self.container_count - self.empty_container_count) * 3
        filled = self.filled_container_count
        if filled:
            segments = sum(
                container.color_segment_count
                for container in self.initial_containers
                if not container.is_empty
            )
            score += (segments / filled) * 4
        return score

    @property
    def is_structurally_valid(self) -> bool:
        if len(self.initial_containers) != self.container_count:
            return False
        ids = {container.id for container in self.initial_containers}
        if len(ids) != self.container_count:
            return False
        colors_used = {
            layer.color
            for container in self.initial_containers
            for layer in container.layers
        }
        return len(colors_used) == self.color_count

    def color_volumes(self) -> dict[LiquidColor, int]:
        volumes: dict[LiquidColor, int] = {}
        for container in self.initial_containers:
            for layer in container.layers:
                volumes[layer.color] = volumes.get(layer.color, 0) + layer.volume
        return volumes

    def with_containers(self, containers: Sequence[Container]) -> Level:
        return replace(
            self,
            initial_containers=tuple(containers),
            container_count=len(containers),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "difficulty": self.difficulty,
            "container_count": self.container_count,
            "color_count": self.color_count,
            "initial_containers": [c.to_dict() for c in self.initial_containers],
            "minimum_moves": self.minimum_moves,
            "max_moves": self.max_moves,
            "is_validated": self.is_validated,
            "hint": self.hint,
            "tags": list(self.tags),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Level:
        containers = data.get("initial_containers")
        if not isinstance(containers, list):
            raise InvalidLevelError("level initial_containers must be a list")
        return cls(
            id=data.get("id"),
            difficulty=data.get("difficulty"),
            container_count=data.get("container_count", len(containers)),
            color_count=data.get("color_count"),
            initial_containers=tuple(Container.from_dict(c) for c in containers),
            minimum_moves=data.get("minimum_moves"),
            max_moves=data.get("max_moves"),
            is_validated=bool(data.get("is_validated", False)),
            hint=data.get("hint"),
            tags=_tag_tuple(data.get("tags") or ()),
        )


@dataclass(frozen=True, slots=True)
class Move:
    from_container_id: int
    to_container_id: int
    liquid_moved: LiquidLayer

    def to_dict(self) -> dict[str, Any]:
        return {
            "from_container_id": self.from_container_id,
            "to_container_id": self.to_container_id,
            "liquid_moved": self.liquid_moved.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Move:
        return cls(
            from_container_id=data.get("from_container_id"),
            to_container_id=data.get("to_container_id"),
            liquid_moved=LiquidLayer.from_dict(data.get("liquid_moved") or {}),
        )


def _apply_move(containers: list[Container], move: Move) -> None:
    index = {container.id: pos for pos, container in enumerate(containers)}
    source = index[move.from_container_id]
    target = index[move.to_container_id]
    layer = move.liquid_moved
    containers[source] = containers[source].without_volume(layer.color, layer.volume)
    containers[target] = containers[target].with_liquid_added(layer)


@dataclass(frozen=True, slots=True)
class GameState:
    """Snapshot of a game in progress.

    ``move_history`` keeps moves past ``current_move_index`` so they can be
    redone; a new move truncates that tail.
    """

    level_id: int
    containers: tuple[Container, ...]
    initial_containers: tuple[Container, ...]
    move_history: tuple[Move, ...] = ()
    is_completed: bool = False
    is_lost: bool = False
    move_count: int = 0
    current_move_index: int = -1

    @classmethod
    def initial(cls, level_id: int, containers: Sequence[Container]) -> GameState:
        snapshot = tuple(containers)
        return cls(
            level_id=level_id,
            containers=snapshot,
            initial_containers=snapshot,
        )

    def get_container(self, container_id: int) -> Container | None:
        for container in self.containers:
            if container.id == container_id:
                return container
        return None

    @property
    def is_solved(self) -> bool:
        return is_solved_containers(self.containers)

    @property
    def can_undo(self) -> bool:
        return self.current_move_index >= 0

    @property
    def can_redo(self) -> bool:
        return self.current_move_index < len(self.move_history) - 1

    @property
    def undoable_moves_count(self) -> int:
        return self.current_move_index + 1

    @property
    def redoable_moves_count(self) -> int:
        return len(self.move_history) - self.current_move_index - 1

    @property
    def effective_move_count(self) -> int:
        return self.current_move_index + 1

    def add_move(self, move: Move, containers: Sequence[Container]) -> GameState:
        history = self.move_history[: self.current_move_index + 1] + (move,)
        snapshot = tuple(containers)
        return replace(
            self,
            containers=snapshot,
            move_history=history,
            move_count=self.move_count + 1,
            current_move_index=len(history) - 1,
            is_completed=is_solved_containers(snapshot),
        )

    def _reconstruct(self, target_index: int) -> tuple[Container, ...]:
        containers = list(self.initial_containers)
        for move in self.move_history[: target_index + 1]:
            _apply_move(containers, move)
        return tuple(containers)

    def undo_move(self) -> GameState | None:
        if not self.can_undo:
            return None
        target = self.current_move_index - 1
        containers = self._reconstruct(target)
        return replace(
            self,
            containers=containers,
            current_move_index=target,
            is_completed=is_solved_containers(containers),
            is_lost=False,
        )

    def redo_move(self) -> GameState | None:
        if not self.can_redo:
            return None
        target = self.current_move_index + 1
        containers = self._reconstruct(target)
        return replace(
            self,
            containers=containers,
            current_move_index=target,
            is_completed=is_solved_containers(containers),
            is_lost=False,
        )

    def reset(self) -> GameState:
        return GameState.initial(self.level_id, self.initial_containers)

    def to_dict(self) -> dict[str, Any]:
        return {
            "level_id": self.level_id,
            "containers": [c.to_dict() for c in self.containers],
            "initial_containers": [c.to_dict() for c in self.initial_containers],
            "move_history": [m.to_dict() for m in self.move_history],
            "is_completed": self.is_completed,
            "is_lost": self.is_lost,
            "move_count": self.move_count,
            "current_move_index": self.current_move_index,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> GameState:
        containers = tuple(Container.from_dict(c) for c in data.get("containers") or [])
        initial = data.get("initial_containers")
        return cls(
            level_id=data.get("level_id"),
            containers=containers,
            initial_containers=(
                tuple(Container.from_dict(c) for c in initial)
                if isinstance(initial, list)
                else containers
            ),
            move_history=tuple(Move.from_dict(m) for m in data.get("move_history") or []),
            is_completed=bool(data.get("is_completed", False)),
            is_lost=bool(data.get("is_lost", False)),
            move_count=int(data.get("move_count", 0)),
            current_move_index=int(data.get("current_move_index", -1)),
        )
