from __future__ import annotations

from dataclasses import replace
from typing import Any, Literal, TypeAlias

from .engine import PourSuccess, WaterSortGameEngine
from .models import (
    Container,
    GameState,
    InvalidActionError,
    InvalidPourError,
    Level,
    WaterSortError,
)

Action: TypeAlias = tuple[int, int]


def _parse_action(action: object, action_space: tuple[Action, ...]) -> Action:
    if isinstance(action, int) and not isinstance(action, bool):
        if 0 <= action < len(action_space):
            return action_space[action]
        raise InvalidActionError(f"action int must be in [0, {len(action_space) - 1}]")
    if isinstance(action, (tuple, list)) and len(action) == 2:
        from_id, to_id = action
    else:
        raise InvalidActionError(
            "action must be an int or a (from_container, to_container) pair"
        )
    if (
        isinstance(from_id, bool)
        or isinstance(to_id, bool)
        or not isinstance(from_id, int)
        or not isinstance(to_id, int)
    ):
        raise InvalidActionError("from_container and to_container must be integers")
    return (from_id, to_id)


def _describe_container(container: Container) -> str:
    units = " ".join(color.value for color in container.to_units()) or "(empty)"
    return (
        f"Container {container.id} "
        f"({container.current_volume}/{container.capacity}): {units}"
    )


def state_payload(state: GameState) -> dict[str, Any]:
    return {
        "level_id": state.level_id,
        "containers": [
            {
                "id": container.id,
                "capacity": container.capacity,
                "units": [color.value for color in container.to_units()],
            }
            for container in state.containers
        ],
        "move_count": state.move_count,
        "is_completed": state.is_completed,
        "is_lost": state.is_lost,
    }


def tool_schemas(*, tool_prefix: str = "water_sort") -> list[dict[str, Any]]:
    """Tool schemas (JSON/OpenAPI-style) for LLM tool-calling integrations."""

    empty_params = {"type": "object", "additionalProperties": False, "properties": {}}
    state_result = {
        "type": "object",
        "properties": {
            "ok": {"type": "boolean"},
            "state": {"type": "object"},
            "error": {"type": "string"},
        },
        "required": ["ok", "state"],
    }
    return [
        {
            "name": f"{tool_prefix}_pour",
            "description": (
                "Pour the top run of one colour from a source container into a "
                "target container. The target must be empty or share the top "
                "colour, and the whole run must fit."
            ),
            "parameters": {
                "type": "object",
                "additionalProperties": False,
                "properties": {
                    "from_container": {"type": "integer", "minimum": 0},
                    "to_container": {"type": "integer", "minimum": 0},
                },
                "required": ["from_container", "to_container"],
            },
            "response_schema": state_result,
        },
        {
            "name": f"{tool_prefix}_get_state",
            "description": "Return the current containers, bottom -> top.",
            "parameters": empty_params,
            "response_schema": state_result,
        },
        {
            "name": f"{tool_prefix}_is_solved",
            "description": "Return whether the puzzle is currently solved.",
            "parameters": empty_params,
            "response_schema": {
                "type": "object",
                "properties": {
                    "ok": {"type": "boolean"},
                    "solved": {"type": "boolean"},
                },
                "required": ["ok", "solved"],
            },
        },
        {
            "name": f"{tool_prefix}_get_legal_moves",
            "description": "Return all currently legal pours as [from, to] pairs.",
            "parameters": empty_params,
            "response_schema": {
                "type": "object",
                "properties": {
                    "ok": {"type": "boolean"},
                    "legal_moves": {
                        "type": "array",
                        "items": {
                            "type": "array",
                            "minItems": 2,
                            "maxItems": 2,
                            "items": {"type": "integer", "minimum": 0},
                        },
                    },
                },
                "required": ["ok", "legal_moves"],
            },
        },
        {
            "name": f"{tool_prefix}_undo",
            "description": "Undo the last pour.",
            "parameters": empty_params,
            "response_schema": state_result,
        },
    ]


class WaterSortEnv:
    """Stepping environment over a single level.

    Supports an RL loop via ``step(action) -> (state, reward, done, info)``
    and tool calling via ``tool_schemas()`` + ``WaterSortToolbox``.
    """

    def __init__(
        self,
        level: Level,
        *,
        step_penalty: float = 0.0,
        illegal_move_penalty: float = -1.0,
        solve_reward: float = 1.0,
        illegal_action_behavior: Literal["penalize", "raise", "terminate"] = "penalize",
        max_steps: int | None = None,
        record_history: bool = False,
        terminal_on_loss: bool = True,
        engine: WaterSortGameEngine | None = None,
    ) -> None:
        if illegal_action_behavior not in {"penalize", "raise", "terminate"}:
            raise ValueError(
                "illegal_action_behavior must be one of: penalize, raise, terminate"
            )
        if max_steps is not None and max_steps < 1:
            raise ValueError("max_steps must be >= 1")

        self.level = level
        self.engine = engine or WaterSortGameEngine()
        self.step_penalty = float(step_penalty)
        self.illegal_move_penalty = float(illegal_move_penalty)
        self.solve_reward = float(solve_reward)
        self.illegal_action_behavior = illegal_action_behavior
        self.max_steps = max_steps
        self.record_history = record_history
        self.terminal_on_loss = terminal_on_loss

        ids = [container.id for container in level.initial_containers]
        self._action_space: tuple[Action, ...] = tuple(
            (src, dst) for src in ids for dst in ids if src != dst
        )
        self.step_count = 0
        self.history: list[Action] = []
        self._state = self.engine.initialize_level(level.id, level.initial_containers)

    @property
    def action_space(self) -> tuple[Action, ...]:
        return self._action_space

    @property
    def move_count(self) -> int:
        return self._state.effective_move_count

    def get_state(self) -> GameState:
        return self._state

    def reset(self) -> GameState:
        self._state = self.engine.initialize_level(
            self.level.id, self.level.initial_containers
        )
        self.step_count = 0
        self.history = []
        return self._state

    def is_solved(self) -> bool:
        return self.engine.check_win_condition(self._state)

    def is_lost(self) -> bool:
        return self.engine.check_loss_condition(self._state)

    def get_legal_moves(self) -> list[Action]:
        return self.engine.legal_moves(self._state)

    def move(self, from_id: int, to_id: int) -> GameState:
        self._state = self.engine.execute_pour(self._state, from_id, to_id)
        if self.record_history:
            self.history.append((from_id, to_id))
        return self._state

    def undo(self) -> GameState:
        previous = self.engine.undo_last_move(self._state)
        if previous is None:
            raise WaterSortError("cannot undo: no history")
        self._state = previous
        if self.record_history and self.history:
            self.history.pop()
        return self._state

    def redo(self) -> GameState:
        following = self.engine.redo_next_move(self._state)
        if following is None:
            raise WaterSortError("cannot redo: nothing to redo")
        self._state = replace(
            following, is_lost=self.engine.check_loss_condition(following)
        )
        if self.record_history:
            redone = following.move_history[following.current_move_index]
            self.history.append((redone.from_container_id, redone.to_container_id))
        return self._state

    def _apply_max_steps_truncation(self, done: bool, info: dict[str, Any]) -> bool:
        if self.max_steps is not None and self.step_count >= self.max_steps and not done:
            info["truncated"] = True
            return True
        return done

    def _illegal(
        self, exc: WaterSortError, info: dict[str, Any]
    ) -> tuple[GameState, float, bool, dict[str, Any]]:
        info["illegal_action"] = True
        info["error"] = str(exc)
        if self.illegal_action_behavior == "raise":
            raise exc
        done = self.illegal_action_behavior == "terminate"
        done = self._apply_max_steps_truncation(done, info)
        info["solved"] = self.is_solved()
        return (self._state, self.illegal_move_penalty, done, info)

    def step(self, action: object) -> tuple[GameState, float, bool, dict[str, Any]]:
        """Apply an action.

        Action formats:
          - int in [0, len(action_space)-1], where action_space[i]=(from,to)
          - (from, to) container ids as a tuple/list of two ints
        """

        self.step_count += 1
        info: dict[str, Any] = {
            "step_count": self.step_count,
            "move_count": self.move_count,
            "illegal_action": False,
            "truncated": False,
        }

        try:
            from_id, to_id = _parse_action(action, self._action_space)
        except InvalidActionError as exc:
            return self._illegal(exc, info)

        info["action"] = (from_id, to_id)
        result = self.engine.validate_pour(self._state, from_id, to_id)
        if not isinstance(result, PourSuccess):
            info["failure"] = type(result).__name__
            return self._illegal(InvalidPourError(result.message), info)

        state = self.move(from_id, to_id)
        solved = self.is_solved()
        reward = self.step_penalty
        if solved:
            reward += self.solve_reward
        done = solved
        done = self._apply_max_steps_truncation(done, info)
        if state.is_lost and self.terminal_on_loss and not done:
            info["loss_terminated"] = True
            done = True

        info["move_count"] = self.move_count
        info["solved"] = solved
        info["lost"] = state.is_lost
        if self.record_history:
            info["history"] = list(self.history)
        return (state, reward, done, info)

    def format_prompt_state(self, *, include_legal_moves: bool = False) -> str:
        lines = ["Containers (bottom -> top):"]
        lines.extend(_describe_container(c) for c in self._state.containers)
        lines.append("")
        lines.append(f"Moves: {self.move_count}")
        if include_legal_moves:
            legal = ", ".join(f"{src}->{dst}" for src, dst in self.get_legal_moves())
            lines.append(f"Legal moves: [{legal}]")
        return "\n".join(lines)


class WaterSortToolbox:
    """Wraps an env so tool calls return error payloads instead of raising."""

    def __init__(self, env: WaterSortEnv) -> None:
        self.env = env

    def _state_payload(self) -> dict[str, Any]:
        return {"state": state_payload(self.env.get_state())}

    def pour(self, from_container: int, to_container: int) -> dict[str, Any]:
        try:
            self.env.move(from_container, to_container)
        except WaterSortError as exc:
            return {"ok": False, "error": str(exc), **self._state_payload()}
        return {
            "ok": True,
            "solved": self.env.is_solved(),
            "lost": self.env.get_state().is_lost,
            **self._state_payload(),
        }

    def get_state(self) -> dict[str, Any]:
        return {"ok": True, **self._state_payload()}

    def is_solved(self) -> dict[str, Any]:
        return {"ok": True, "solved": self.env.is_solved()}

    def get_legal_moves(self) -> dict[str, Any]:
        return {
            "ok": True,
            "legal_moves": [list(move) for move in self.env.get_legal_moves()],
        }

    def undo(self) -> dict[str, Any]:
        try:
            self.env.undo()
        except WaterSortError as exc:
            return {"ok": False, "error": str(exc), **self._state_payload()}
        return {"ok": True, **self._state_payload()}
