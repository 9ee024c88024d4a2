from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass, replace
from typing import TextIO

from ..config import LevelGenerationConfig
from ..engine import WaterSortGameEngine
from ..generator import WaterSortLevelGenerator
from ..models import Level
from . import add_common_args, build_generation_config, configure_logging

DEMO_SEED = 42
DEMO_LEVELS = 5
DEMO_CAPACITY = 4


@dataclass(frozen=True, slots=True)
class LevelReport:
    level: Level
    difficulty: int
    container_count: int
    color_count: int
    not_initially_solved: bool
    is_solvable: bool
    total_empty_slots: int
    empty_containers: int
    sorted_containers: int

    @property
    def has_empty_slots(self) -> bool:
        return self.total_empty_slots >= 1

    @property
    def passed(self) -> bool:
        return self.not_initially_solved and self.is_solvable and self.has_empty_slots


def demo_parameters(index: int) -> tuple[int, int, int]:
    """Return ``(difficulty, container_count, color_count)`` for demo level ``index``."""
    return (index * 2, 4 + index, 2 + index // 2)


def _verdict(ok: bool) -> str:
    return "PASS" if ok else "FAIL"


def run_demo(
    *,
    seed: int = DEMO_SEED,
    levels: int = DEMO_LEVELS,
    config: LevelGenerationConfig | None = None,
    stream: TextIO | None = None,
) -> list[LevelReport]:
    """Generate the demo levels and print a PASS/FAIL line per check.

    Failed checks are reported, never raised; errors from the generator or
    engine propagate. The closing line reports how many levels failed instead
    of always announcing success, and the output is plain ASCII without the
    status emoji of the app's console demo.
    """
    out = stream if stream is not None else sys.stdout
    base = config or LevelGenerationConfig()
    generator = WaterSortLevelGenerator(replace(base, seed=seed))
    engine = WaterSortGameEngine()

    print("Level Generator Requirements Demo\n", file=out)
    reports: list[LevelReport] = []
    for index in range(1, levels + 1):
        difficulty, container_count, color_count = demo_parameters(index)
        print(
            f"Level {index} (Difficulty: {difficulty}, Containers: {container_count}, "
            f"Colors: {color_count})",
            file=out,
        )

        level = generator.generate_level(
            index, difficulty, container_count, color_count, DEMO_CAPACITY
        )

        initial_state = engine.initialize_level(level.id, level.initial_containers)
        not_solved = not engine.check_win_condition(initial_state)
        print(f"   Not initially solved: {_verdict(not_solved)}", file=out)

        solvable = generator.validate_level(level)
        print(f"   Is solvable: {_verdict(solvable)}", file=out)

        total_empty = sum(c.remaining_capacity for c in level.initial_containers)
        slots = f"PASS ({total_empty} slots)" if total_empty >= 1 else "FAIL"
        print(f"   Has empty slots: {slots}", file=out)

        report = LevelReport(
            level=level,
            difficulty=difficulty,
            container_count=container_count,
            color_count=color_count,
            not_initially_solved=not_solved,
            is_solvable=solvable,
            total_empty_slots=total_empty,
            empty_containers=level.empty_container_count,
            sorted_containers=sum(
                1 for c in level.initial_containers if not c.is_empty and c.is_sorted
            ),
        )
        print(f"   Empty containers: {report.empty_containers}", file=out)
        print(f"   Total empty slots: {report.total_empty_slots}", file=out)
        print(f"   Already sorted containers: {report.sorted_containers}", file=out)
        print("", file=out)
        reports.append(report)

    failed = sum(1 for report in reports if not report.passed)
    if failed:
        print(f"{failed} of {len(reports)} levels failed at least one check.", file=out)
    else:
        print("All requirements verified successfully!", file=out)
    print("", file=out)
    print("Summary:", file=out)
    print("   1. Levels are never initially solved", file=out)
    print("   2. Levels are validated for solvability", file=out)
    print(
        "   3. Hard levels can use partial empty containers "
        "(not just full empty containers)",
        file=out,
    )
    print("   4. Minimum empty slots requirement keeps puzzles solvable", file=out)
    return reports


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate sample levels and report the generator requirements."
    )
    parser.add_argument(
        "--levels", type=int, default=DEMO_LEVELS, help="Number of demo levels."
    )
    add_common_args(parser)
    args = parser.parse_args()
    configure_logging(args.verbose)

    config = build_generation_config(args, default_seed=DEMO_SEED)
    seed = config.seed if config.seed is not None else DEMO_SEED
    run_demo(seed=seed, levels=args.levels, config=config)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
