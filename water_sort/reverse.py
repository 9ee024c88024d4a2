from __future__ import annotations

import logging
import random
from collections.abc import Sequence
from dataclasses import dataclass, replace
from typing import Literal

from . import parameters, similarity
from .colors import PALETTE, LiquidColor
from .config import LevelGenerationConfig
from .engine import WaterSortGameEngine
from .generator import generate_tags, validate_generation_inputs
from .models import Container, GenerationError, Level, LiquidLayer, is_solved_containers
from .solver import find_solution, is_solvable
from .validator import has_completed_containers, optimize_empty_containers

logger = logging.getLogger(__name__)

ScrambleKind = Literal["split_unified", "create_mixture", "move_to_empty"]


@dataclass(frozen=True, slots=True)
class ScrambleMove:
    source: int
    target: int
    volume: int
    kind: ScrambleKind


def calculate_scramble_moves(difficulty: int, color_count: int) -> int:
    return round(color_count * 2 * (1 + difficulty / 10))


def contiguous_fraction(containers: Sequence[Container]) -> float:
    """Share of colours whose whole volume sits in a single layer."""
    layers_per_color: dict[LiquidColor, int] = {}
    for container in containers:
        for layer in container.merged_layers().layers:
            layers_per_color[layer.color] = layers_per_color.get(layer.color, 0) + 1
    if not layers_per_color:
        return 1.0
    unified = sum(1 for count in layers_per_color.values() if count == 1)
    return unified / len(layers_per_color)


def format_state_compact(containers: Sequence[Container]) -> str:
    """One letter per unit, e.g. ``|RRB||BBR|| |``."""
    parts = []
    for container in containers:
        if container.is_empty:
            parts.append("| |")
        else:
            parts.append(
                "|" + "".join(unit.value[0].upper() for unit in container.to_units()) + "|"
            )
    return "".join(parts)


def _describe_layers(container: Container) -> str:
    if container.is_empty:
        return "EMPTY"
    layers = " | ".join(f"{layer.color.value}:{layer.volume}" for layer in container.layers)
    return f"[{layers}] ({container.current_volume}/{container.capacity})"


@dataclass(frozen=True, slots=True)
class ScrambleStep:
    step_number: int
    move: ScrambleMove
    state_before: tuple[Container, ...]
    state_after: tuple[Container, ...]
    contiguous_fraction: float
    is_solvable_after: bool | None = None

    def __str__(self) -> str:
        if self.is_solvable_after is None:
            verdict = ""
        elif self.is_solvable_after:
            verdict = " [SOLVABLE]"
        else:
            verdict = " [UNSOLVABLE]"
        return (
            f"{self.move.kind.upper()}: Container {self.move.source} -> "
            f"Container {self.move.target} (volume: {self.move.volume}, "
            f"contiguous: {self.contiguous_fraction * 100:.1f}%){verdict}\n"
            f"    State: {format_state_compact(self.state_after)}"
        )


@dataclass(frozen=True, slots=True)
class GenerationAudit:
    """Record of how a scrambled level was produced, for debugging generators."""

    level_id: int
    difficulty: int
    color_count: int
    container_capacity: int
    empty_slots: int
    selected_colors: tuple[LiquidColor, ...]
    solved_state: tuple[Container, ...]
    scramble_steps: tuple[ScrambleStep, ...]
    final_state: tuple[Container, ...]
    validation_failures: tuple[str, ...]
    is_solvable: bool
    solvability_error: str | None = None
    first_unsolvable_step: int | None = None

    def format_report(self) -> str:
        rule = "=" * 80
        lines = [rule, f"GENERATION AUDIT FOR LEVEL {self.level_id}", rule, ""]
        lines.append("Parameters:")
        lines.append(f"  Level ID: {self.level_id}")
        lines.append(f"  Difficulty: {self.difficulty}")
        lines.append(f"  Color Count: {self.color_count}")
        lines.append(f"  Container Capacity: {self.container_capacity}")
        lines.append(f"  Empty Slots: {self.empty_slots}")
        lines.append(
            "  Selected Colors: " + ", ".join(color.value for color in self.selected_colors)
        )
        lines.append("")
        lines.append("Solved State:")
        for pos, container in enumerate(self.solved_state):
            lines.append(f"  Container {pos}: {_describe_layers(container)}")
        lines.append("")
        lines.append(f"Scrambling Steps ({len(self.scramble_steps)} total):")
        for step in self.scramble_steps:
            marker = (
                " <-- FIRST UNSOLVABLE STEP"
                if step.step_number == self.first_unsolvable_step
                else ""
            )
            lines.append(f"  Step {step.step_number}: {step}{marker}")
        lines.append("")
        lines.append("Final State:")
        for pos, container in enumerate(self.final_state):
            lines.append(f"  Container {pos}: {_describe_layers(container)}")
        lines.append("")
        lines.append("Validation:")
        if self.validation_failures:
            lines.append("  FAILED")
            lines.extend(f"    - {failure}" for failure in self.validation_failures)
        else:
            lines.append("  PASSED")
        lines.append("")
        lines.append("Solvability:")
        if self.is_solvable:
            lines.append("  SOLVABLE")
        else:
            lines.append("  UNSOLVABLE")
            if self.first_unsolvable_step is not None:
                lines.append(
                    f"    First became unsolvable at step: {self.first_unsolvable_step}"
                )
            if self.solvability_error is not None:
                lines.append(f"    Error: {self.solvability_error}")
        lines.append("")
        lines.append(rule)
        return "\n".join(lines)


@dataclass(frozen=True, slots=True)
class _Attempt:
    level: Level
    solution: list[tuple[int, int]]
    colors: tuple[LiquidColor, ...]
    solved_state: tuple[Container, ...]
    steps: tuple[ScrambleStep, ...]
    failures: tuple[str, ...]


def _state_signature(containers: Sequence[Container]) -> tuple[str, ...]:
    parts = []
    for container in containers:
        if container.is_empty:
            parts.append("[empty]")
        else:
            parts.append(
                "["
                + ",".join(f"{layer.color.value}:{layer.volume}" for layer in container.layers)
                + "]"
            )
    return tuple(sorted(parts))


def _move_liquid(
    containers: Sequence[Container], move: ScrambleMove
) -> list[Container]:
    """Move ``move.volume`` units of the source's top layer, stacking on any colour."""
    updated = list(containers)
    source = updated[move.source]
    target = updated[move.target]
    top = source.layers[-1]
    if top.volume == move.volume:
        source_layers = source.layers[:-1]
    else:
        source_layers = source.layers[:-1] + (
            LiquidLayer(color=top.color, volume=top.volume - move.volume),
        )
    moved = LiquidLayer(color=top.color, volume=move.volume)
    if target.layers and target.layers[-1].color == top.color:
        target_layers = target.layers[:-1] + (target.layers[-1].combine_with(moved),)
    else:
        target_layers = target.layers + (moved,)
    updated[move.source] = Container(
        id=source.id, capacity=source.capacity, layers=source_layers
    )
    updated[move.target] = Container(
        id=target.id, capacity=target.capacity, layers=target_layers
    )
    return updated


class ReverseLevelGenerator:
    """Starts from a solved layout and scrambles it with backward-style moves."""

    def __init__(self, config: LevelGenerationConfig | None = None) -> None:
        self.config = config or LevelGenerationConfig()
        self._rng = random.Random(self.config.seed)
        self._engine = WaterSortGameEngine()

    def generate_level(
        self,
        level_id: int,
        difficulty: int,
        container_count: int,
        color_count: int,
        container_capacity: int | None = None,
    ) -> Level:
        return self._generate(
            level_id, difficulty, container_count, color_count, container_capacity
        ).level

    def generate_level_with_solution(
        self,
        level_id: int,
        difficulty: int,
        container_count: int,
        color_count: int,
        container_capacity: int | None = None,
    ) -> tuple[Level, list[tuple[int, int]]]:
        attempt = self._generate(
            level_id, difficulty, container_count, color_count, container_capacity
        )
        return (attempt.level, attempt.solution)

    def generate_level_with_audit(
        self,
        level_id: int,
        difficulty: int,
        container_count: int,
        color_count: int,
        container_capacity: int | None = None,
        *,
        check_steps: bool = False,
    ) -> tuple[Level, GenerationAudit]:
        """Generate a level and keep every scramble step of the accepted attempt.

        With ``check_steps`` the solver runs on the state after each step and the
        audit marks the first step that left the puzzle unsolvable.
        """
        attempt = self._generate(
            level_id,
            difficulty,
            container_count,
            color_count,
            container_capacity,
            record_steps=True,
        )
        steps = attempt.steps
        first_unsolvable: int | None = None
        if check_steps:
            checked = []
            for step in steps:
                solvable = is_solvable(
                    step.state_after, max_states=self.config.max_solvability_states
                )
                if not solvable and first_unsolvable is None:
                    first_unsolvable = step.step_number
                checked.append(replace(step, is_solvable_after=solvable))
            steps = tuple(checked)

        level = attempt.level
        audit = GenerationAudit(
            level_id=level.id,
            difficulty=level.difficulty,
            color_count=level.color_count,
            container_capacity=attempt.solved_state[0].capacity,
            empty_slots=level.total_empty_slots,
            selected_colors=attempt.colors,
            solved_state=attempt.solved_state,
            scramble_steps=steps,
            final_state=level.initial_containers,
            validation_failures=attempt.failures,
            is_solvable=True,
            first_unsolvable_step=first_unsolvable,
        )
        return (level, audit)

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
        return self.generate_level(
            level_id, difficulty, container_count, color_count, container_capacity
        )

    def validate_level(self, level: Level) -> bool:
        if not level.is_structurally_valid:
            return False
        return is_solvable(
            level.initial_containers, max_states=self.config.max_solvability_states
        )

    def is_level_similar(self, level: Level, existing_levels: Sequence[Level]) -> bool:
        return similarity.is_level_similar_to_any(level, existing_levels)

    def generate_level_signature(self, level: Level) -> str:
        return similarity.generate_normalized_signature(level)

    def has_completed_containers(self, level: Level) -> bool:
        return has_completed_containers(level)

    def generate_level_series(
        self, start_id: int, count: int, *, start_difficulty: int = 1
    ) -> list[Level]:
        if count < 1:
            raise ValueError("count must be >= 1")
        levels: list[Level] = []
        for index in range(count):
            difficulty = parameters.calculate_progressive_difficulty(
                index, start_difficulty
            )
            container_count = parameters.calculate_container_count(difficulty)
            levels.append(
                self.generate_level(
                    start_id + index,
                    difficulty,
                    container_count,
                    parameters.calculate_color_count(difficulty, container_count),
                )
            )
        return levels

    def _generate(
        self,
        level_id: int,
        difficulty: int,
        container_count: int,
        color_count: int,
        container_capacity: int | None,
        *,
        record_steps: bool = False,
    ) -> _Attempt:
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

        failures: list[str] = []
        for attempt in range(1, self.config.max_generation_attempts + 1):
            colors = self._rng.sample(PALETTE, color_count)
            solved = self._create_solved_state(container_count, colors, capacity)
            steps: list[ScrambleStep] | None = [] if record_steps else None
            containers = self._scramble(solved, difficulty, color_count, steps)
            if containers is None:
                failures.append(f"attempt {attempt}: no container could be emptied")
                logger.debug("level %s attempt %d: scramble failed", level_id, attempt)
                continue
            if is_solved_containers(containers):
                failures.append(f"attempt {attempt}: scramble left the level solved")
                logger.debug("level %s attempt %d: scramble failed", level_id, attempt)
                continue

            level = Level(
                id=level_id,
                difficulty=difficulty,
                container_count=container_count,
                color_count=color_count,
                initial_containers=tuple(containers),
                tags=generate_tags(level_id, difficulty),
            )
            level = optimize_empty_containers(
                level, max_states=self.config.max_solvability_states
            )
            if not level.is_structurally_valid:
                failures.append(f"attempt {attempt}: structurally invalid")
                continue
            solution = find_solution(
                level.initial_containers,
                max_states=self.config.max_solvability_states,
            )
            if not solution:
                failures.append(
                    f"attempt {attempt}: no solution within "
                    f"{self.config.max_solvability_states} states"
                )
                logger.debug("level %s attempt %d: not solvable", level_id, attempt)
                continue
            self._verify_forward_solution(level, solution)
            return _Attempt(
                level=level,
                solution=solution,
                colors=tuple(colors),
                solved_state=tuple(solved),
                steps=tuple(steps or ()),
                failures=tuple(failures),
            )

        raise GenerationError(
            f"Failed to generate a scrambled level after "
            f"{self.config.max_generation_attempts} attempts (level_id={level_id})"
        )

    def _create_solved_state(
        self, container_count: int, colors: Sequence[LiquidColor], capacity: int
    ) -> list[Container]:
        containers = [
            Container(
                id=pos,
                capacity=capacity,
                layers=(LiquidLayer(color=color, volume=capacity),),
            )
            for pos, color in enumerate(colors)
        ]
        containers.extend(
            Container(id=pos, capacity=capacity)
            for pos in range(len(colors), container_count)
        )
        return containers

    def _possible_moves(self, containers: Sequence[Container]) -> list[ScrambleMove]:
        moves: list[ScrambleMove] = []
        for src, source in enumerate(containers):
            if source.is_empty:
                continue
            top = source.layers[-1]
            for dst, target in enumerate(containers):
                if src == dst:
                    continue
                if len(source.layers) == 1 and top.volume > 1 and target.is_empty:
                    volume = self._rng.randint(1, top.volume - 1)
                    if target.remaining_capacity >= volume:
                        moves.append(ScrambleMove(src, dst, volume, "split_unified"))
                if not target.is_empty and target.top_color != top.color:
                    volume = min(top.volume, target.remaining_capacity)
                    if volume > 0:
                        moves.append(ScrambleMove(src, dst, volume, "create_mixture"))
                if len(source.layers) > 1 and target.is_empty:
                    volume = min(top.volume, target.remaining_capacity)
                    if volume > 0:
                        moves.append(ScrambleMove(src, dst, volume, "move_to_empty"))
        return moves

    def _scramble(
        self,
        containers: list[Container],
        difficulty: int,
        color_count: int,
        steps: list[ScrambleStep] | None = None,
    ) -> list[Container] | None:
        move_count = calculate_scramble_moves(difficulty, color_count)
        history: set[tuple[str, ...]] = set()
        done = 0
        tries = 0
        while done < move_count and tries < move_count * 10:
            tries += 1
            moves = self._possible_moves(containers)
            self._rng.shuffle(moves)
            for move in moves:
                candidate = _move_liquid(containers, move)
                signature = _state_signature(candidate)
                if signature not in history:
                    history.add(signature)
                    if steps is not None:
                        steps.append(
                            ScrambleStep(
                                step_number=len(steps) + 1,
                                move=move,
                                state_before=tuple(containers),
                                state_after=tuple(candidate),
                                contiguous_fraction=contiguous_fraction(candidate),
                            )
                        )
                    containers = candidate
                    done += 1
                    break

        if not any(container.is_empty for container in containers):
            containers = self._free_one_container(containers)
            if containers is None:
                return None

        return [
            container.merged_layers().with_id(pos)
            for pos, container in enumerate(containers)
        ]

    def _free_one_container(
        self, containers: list[Container]
    ) -> list[Container] | None:
        ordered = sorted(containers, key=lambda c: c.current_volume)
        drained = ordered[0]
        others = ordered[1:]
        for layer in reversed(drained.layers):
            for _ in range(layer.volume):
                unit = LiquidLayer(color=layer.color, volume=1)
                for pos, target in enumerate(others):
                    if target.remaining_capacity >= 1:
                        others[pos] = Container(
                            id=target.id,
                            capacity=target.capacity,
                            layers=target.layers + (unit,),
                        )
                        break
                else:
                    return None
        return [Container(id=drained.id, capacity=drained.capacity)] + others

    def _verify_forward_solution(
        self, level: Level, solution: Sequence[tuple[int, int]]
    ) -> None:
        state = self._engine.initialize_level(level.id, level.initial_containers)
        for from_id, to_id in solution:
            state = self._engine.execute_pour(state, from_id, to_id)
        if not self._engine.check_win_condition(state):
            raise GenerationError("scrambled level replay did not reach a solved state")
