from __future__ import annotations

import argparse
import json
from pathlib import Path

from ..env import WaterSortEnv
from ..models import Level
from ..solver import DEFAULT_MAX_STATES, find_shortest_solution, find_solution
from . import configure_logging


def load_levels(path: str) -> list[Level]:
    data = json.loads(Path(path).read_text())
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a level object or a list of levels")
    return [Level.from_dict(item) for item in data]


def main() -> int:
    parser = argparse.ArgumentParser(description="Solve levels from a JSON file.")
    parser.add_argument("levels", help="JSON file written by 'water-sort generate'.")
    parser.add_argument("--max-states", type=int, default=DEFAULT_MAX_STATES)
    parser.add_argument(
        "--shortest", action="store_true", help="Breadth-first minimum-pour search."
    )
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()
    configure_logging(args.verbose)

    search = find_shortest_solution if args.shortest else find_solution
    unsolved = 0
    for level in load_levels(args.levels):
        solution = search(level.initial_containers, max_states=args.max_states)
        if solution is None:
            unsolved += 1
            print(f"Level {level.id}: no solution within {args.max_states} states")
            continue

        env = WaterSortEnv(level, illegal_action_behavior="raise")
        for move in solution:
            env.step(move)
        moves = " ".join(f"{src}->{dst}" for src, dst in solution)
        print(f"Level {level.id}: {len(solution)} pours, solved={env.is_solved()}")
        if moves:
            print(f"   {moves}")
    return 1 if unsolved else 0


if __name__ == "__main__":
    raise SystemExit(main())
