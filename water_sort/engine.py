from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace

from .colors import LiquidColor
from .models import Container, GameState, InvalidPourError, Move


@dataclass(frozen=True, slots=True)
class PourResult:
    message: str = ""

    @property
    def is_success(self) -> bool:
        return isinstance(self, PourSuccess)

    @property
    def is_failure(self) -> bool:
        return not self.is_success


@dataclass(frozen=True, slots=True)
class PourSuccess(PourResult):
    move: Move | None = None


@dataclass(frozen=True, slots=True)
class PourFailure(PourResult):
    """Base class for rejected pours."""


@dataclass(frozen=True, slots=True)
class PourFailureSameContainer(PourFailure):
    container_id: int = -1


@dataclass(frozen=True, slots=True)
class PourFailureInvalidContainer(PourFailure):
    container_id: int = -1


@dataclass(frozen=True, slots=True)
class PourFailureEmptySource(PourFailure):
    container_id: int = -1


@dataclass(frozen=True, slots=True)
class PourFailureContainerFull(PourFailure):
    container_id: int = -1


@dataclass(frozen=True, slots=True)
class PourFailureColorMismatch(PourFailure):
    source_color: LiquidColor | None = None
    target_color: LiquidColor | None = None


@dataclass(frozen=True, slots=True)
class PourFailureInsufficientCapacity(PourFailure):
    container_id: int = -1
    attempted_volume: int = 0
    available_capacity: int = 0


def _same_container(container_id: int) -> PourFailureSameContainer:
    return PourFailureSameContainer(
        message=f"Cannot pour from container {container_id} to itself",
        container_id=container_id,
    )


def _invalid_container(container_id: int) -> PourFailureInvalidContainer:
    return PourFailureInvalidContainer(
        message=f"Container {container_id} does not exist",
        container_id=container_id,
    )


class WaterSortGameEngine:
    """Rules of the puzzle over immutable ``GameState`` snapshots."""

    def initialize_level(
        self, level_id: int, containers: Sequence[Container]
    ) -> GameState:
        return GameState.initial(level_id, tuple(containers))

    def validate_pour(
        self, state: GameState, from_id: int, to_id: int
    ) -> PourResult:
        if from_id == to_id:
            return _same_container(from_id)
        source = state.get_container(from_id)
        if source is None:
            return _invalid_container(from_id)
        target = state.get_container(to_id)
        if target is None:
            return _invalid_container(to_id)
        liquid = source.top_continuous_layer()
        if liquid is None:
            return PourFailureEmptySource(
                message=f"Container {from_id} is empty", container_id=from_id
            )
        if target.is_full:
            return PourFailureContainerFull(
                message=f"Container {to_id} is full", container_id=to_id
            )

        if not target.can_accept_pour(liquid.color, liquid.volume):
            target_color = target.top_color
            if target_color is not None and target_color != liquid.color:
                return PourFailureColorMismatch(
                    message=(
                        f"Cannot pour {liquid.color.display_name} onto "
                        f"{target_color.display_name}"
                    ),
                    source_color=liquid.color,
                    target_color=target_color,
                )
            return PourFailureInsufficientCapacity(
                message=(
                    f"Container {to_id} has only {target.remaining_capacity} capacity, "
                    f"but attempted to pour {liquid.volume}"
                ),
                container_id=to_id,
                attempted_volume=liquid.volume,
                available_capacity=target.remaining_capacity,
            )

        return PourSuccess(
            move=Move(from_container_id=from_id, to_container_id=to_id, liquid_moved=liquid)
        )

    def attempt_pour(self, state: GameState, from_id: int, to_id: int) -> PourResult:
        return self.validate_pour(state, from_id, to_id)

    def execute_pour(self, state: GameState, from_id: int, to_id: int) -> GameState:
        result = self.validate_pour(state, from_id, to_id)
        if not isinstance(result, PourSuccess) or result.move is None:
            raise InvalidPourError(f"Cannot execute invalid pour: {result.message}")

        move = result.move
        containers = list(state.containers)
        for pos, container in enumerate(containers):
            if container.id == from_id:
                containers[pos] = container.without_top_layer()
            elif container.id == to_id:
                containers[pos] = container.with_liquid_added(move.liquid_moved)

        new_state = state.add_move(move, containers)
        return replace(new_state, is_lost=self.check_loss_condition(new_state))

    def undo_last_move(self, state: GameState) -> GameState | None:
        return state.undo_move()

    def redo_next_move(self, state: GameState) -> GameState | None:
        return state.redo_move()

    def check_win_condition(self, state: GameState) -> bool:
        return state.is_solved

    def legal_moves(self, state: GameState) -> list[tuple[int, int]]:
        moves: list[tuple[int, int]] = []
        for source in state.containers:
            if source.is_empty:
                continue
            for target in state.containers:
                if source.id == target.id:
                    continue
                if self.validate_pour(state, source.id, target.id).is_success:
                    moves.append((source.id, target.id))
        return moves

    def has_legal_moves(self, state: GameState) -> bool:
        if state.is_solved:
            return False
        for source in state.containers:
            if source.is_empty:
                continue
            # Pouring out of a finished tube never helps.
            if source.is_sorted and source.is_full:
                continue
            for target in state.containers:
                if source.id == target.id:
                    continue
                if self.validate_pour(state, source.id, target.id).is_success:
                    return True
        return False

    def check_loss_condition(self, state: GameState) -> bool:
        if state.is_solved:
            return False
        return not self.has_legal_moves(state)

    def loss_message(self, state: GameState) -> str:
        if not self.check_loss_condition(state):
            return "Game is not in a loss state"
        return (
            "No more valid moves available! "
            "The puzzle cannot be solved from this state."
        )

    def detailed_loss_reason(self, state: GameState) -> str:
        if not self.check_loss_condition(state):
            return "Game is not in a loss state"
        containers = state.containers
        lines = [
            "Loss detected:",
            f"- Puzzle is not solved: {not state.is_solved}",
            f"- Valid moves available: {len(self.legal_moves(state))}",
            f"- Total containers: {len(containers)}",
            f"- Empty containers: {sum(1 for c in containers if c.is_empty)}",
            f"- Full containers: {sum(1 for c in containers if c.is_full)}",
            f"- Sorted containers: {sum(1 for c in containers if c.is_sorted)}",
        ]
        return "\n".join(lines)
