from __future__ import annotations

import logging
from collections import deque
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TypeAlias

from .colors import LiquidColor
from .engine import WaterSortGameEngine
from .models import Container, GameState

logger = logging.getLogger(__name__)

DEFAULT_MAX_STATES = 10000

Tube: TypeAlias = tuple[int, tuple[LiquidColor, ...]]
SearchState: TypeAlias = tuple[Tube, ...]
Step: TypeAlias = tuple[int, int]


@dataclass(frozen=True, slots=True)
class HintMove:
    from_container_id: int
    to_container_id: int


def _encode(containers: Sequence[Container]) -> SearchState:
    return tuple((c.capacity, c.to_units()) for c in containers)


def _signature(state: SearchState) -> tuple[Tube, ...]:
    # Tube order is irrelevant to solvability.
    return tuple(sorted(state, key=lambda tube: (tube[0], [c.value for c in tube[1]])))


def _top_run(units: tuple[LiquidColor, ...]) -> int:
    top = units[-1]
    run = 0
    for color in reversed(units):
        if color != top:
            break
        run += 1
    return run


def _is_solved(state: SearchState) -> bool:
    groups: dict[LiquidColor, list[Tube]] = {}
    for tube in state:
        units = tube[1]
        if not units:
            continue
        if any(color != units[0] for color in units):
            return False
        groups.setdefault(units[0], []).append(tube)
    for tubes in groups.values():
        capacity = tubes[0][0]
        total = sum(len(units) for _cap, units in tubes)
        if len(tubes) > -(-total // capacity):
            return False
        filled = sorted((len(units) for _cap, units in tubes), reverse=True)
        if any(volume != capacity for volume in filled[:-1]):
            return False
    return True


def _can_pour(state: SearchState, src: int, dst: int) -> bool:
    _src_cap, src_units = state[src]
    dst_cap, dst_units = state[dst]
    if src == dst or not src_units or len(dst_units) >= dst_cap:
        return False
    if dst_units and dst_units[-1] != src_units[-1]:
        return False
    return _top_run(src_units) <= dst_cap - len(dst_units)


def _pour(state: SearchState, src: int, dst: int) -> SearchState:
    src_cap, src_units = state[src]
    dst_cap, dst_units = state[dst]
    run = _top_run(src_units)
    tubes = list(state)
    tubes[src] = (src_cap, src_units[:-run])
    tubes[dst] = (dst_cap, dst_units + src_units[-run:])
    return tuple(tubes)


def _move_priority(state: SearchState, src: int, dst: int) -> int:
    src_cap, src_units = state[src]
    dst_cap, dst_units = state[dst]
    run = _top_run(src_units)
    empties_source = len(src_units) == run
    priority = 0
    if not dst_units:
        priority += 100
        if empties_source:
            priority += 200
    elif dst_units[-1] == src_units[-1]:
        priority += 150
        if dst_cap - len(dst_units) == run:
            priority += 100
        if empties_source:
            priority += 100
    if empties_source and len(src_units) < src_cap:
        priority += 50
    if empties_source and len(src_units) == src_cap:
        priority -= 50
    return priority


def _prioritized_moves(state: SearchState) -> list[Step]:
    candidates: list[tuple[int, Step]] = []
    for src in range(len(state)):
        for dst in range(len(state)):
            if _can_pour(state, src, dst):
                candidates.append((_move_priority(state, src, dst), (src, dst)))
    candidates.sort(key=lambda item: -item[0])
    return [step for _priority, step in candidates]


def find_solution(
    containers: Sequence[Container], *, max_states: int = DEFAULT_MAX_STATES
) -> list[Step] | None:
    """Depth-first search guided by move priorities.

    Returns a list of ``(from_container_id, to_container_id)`` pours, ``[]`` if
    the input is already solved, or ``None`` if nothing was found within
    ``max_states`` expanded states.
    """
    if max_states < 1:
        raise ValueError("max_states must be >= 1")
    start = _encode(containers)
    ids = [container.id for container in containers]
    if _is_solved(start):
        return []

    stack: list[tuple[SearchState, tuple[Step, ...]]] = [(start, ())]
    visited: set[tuple[Tube, ...]] = set()
    explored = 0
    while stack and explored < max_states:
        state, path = stack.pop()
        signature = _signature(state)
        if signature in visited:
            continue
        visited.add(signature)
        explored += 1

        # Push lowest priority first so the best move is expanded next.
        for src, dst in reversed(_prioritized_moves(state)):
            nxt = _pour(state, src, dst)
            if _signature(nxt) in visited:
                continue
            next_path = path + ((ids[src], ids[dst]),)
            if _is_solved(nxt):
                return list(next_path)
            stack.append((nxt, next_path))

    logger.debug(
        "no solution within budget: explored=%d max_states=%d exhausted=%s",
        explored,
        max_states,
        not stack,
    )
    return None


def find_shortest_solution(
    containers: Sequence[Container], *, max_states: int = DEFAULT_MAX_STATES
) -> list[Step] | None:
    """Breadth-first search for a minimum-pour solution."""
    if max_states < 1:
        raise ValueError("max_states must be >= 1")
    start = _encode(containers)
    ids = [container.id for container in containers]
    if _is_solved(start):
        return []

    queue: deque[tuple[SearchState, tuple[Step, ...]]] = deque([(start, ())])
    visited = {_signature(start)}
    while queue:
        state, path = queue.popleft()
        for src, dst in _prioritized_moves(state):
            nxt = _pour(state, src, dst)
            signature = _signature(nxt)
            if signature in visited:
                continue
            visited.add(signature)
            next_path = path + ((ids[src], ids[dst]),)
            if _is_solved(nxt):
                return list(next_path)
            queue.append((nxt, next_path))
        if len(visited) > max_states:
            logger.debug("shortest-path search hit budget of %d states", max_states)
            return None
    return None


def is_solvable(
    containers: Sequence[Container], *, max_states: int = DEFAULT_MAX_STATES
) -> bool:
    """True when the layout is unsolved and a solution is found within budget."""
    solution = find_solution(containers, max_states=max_states)
    return bool(solution)


class HintSolver:
    def __init__(
        self,
        engine: WaterSortGameEngine | None = None,
        *,
        max_states: int = DEFAULT_MAX_STATES,
    ) -> None:
        self.engine = engine or WaterSortGameEngine()
        self.max_states = max_states

    def find_best_move(self, state: GameState) -> HintMove | None:
        if self.engine.check_win_condition(state):
            return None
        solution = find_shortest_solution(state.containers, max_states=self.max_states)
        if not solution:
            return None
        from_id, to_id = solution[0]
        return HintMove(from_container_id=from_id, to_container_id=to_id)
