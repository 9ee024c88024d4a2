from __future__ import annotations

import argparse
import json
from pathlib import Path

from .. import parameters
from ..generator import WaterSortLevelGenerator
from ..models import Level
from ..reverse import ReverseLevelGenerator
from . import add_common_args, build_generation_config, configure_logging


def main() -> int:
    parser = argparse.ArgumentParser(description="Generate water-sort levels as JSON.")
    parser.add_argument("--start-id", type=int, default=1)
    parser.add_argument("--count", type=int, default=1)
    parser.add_argument("--difficulty", type=int, default=None)
    parser.add_argument("--containers", type=int, default=None)
    parser.add_argument("--colors", type=int, default=None)
    parser.add_argument("--capacity", type=int, default=None)
    parser.add_argument(
        "--method",
        choices=("random", "reverse"),
        default="random",
        help="Random distribution or scramble-from-solved generation.",
    )
    parser.add_argument("--out", default=None, help="Write JSON to this path.")
    add_common_args(parser)
    args = parser.parse_args()
    configure_logging(args.verbose)

    if args.count < 1:
        raise SystemExit("--count must be >= 1")

    config = build_generation_config(args)
    generator = (
        ReverseLevelGenerator(config)
        if args.method == "reverse"
        else WaterSortLevelGenerator(config)
    )

    levels: list[Level] = []
    for offset in range(args.count):
        level_id = args.start_id + offset
        difficulty = (
            args.difficulty
            if args.difficulty is not None
            else parameters.calculate_difficulty_for_level(level_id)
        )
        containers = (
            args.containers
            if args.containers is not None
            else parameters.calculate_container_count(difficulty)
        )
        colors = (
            args.colors
            if args.colors is not None
            else parameters.calculate_color_count(difficulty, containers)
        )
        levels.append(
            generator.generate_unique_level(
                level_id,
                difficulty,
                containers,
                colors,
                args.capacity,
                existing_levels=levels,
            )
        )

    payload = json.dumps([level.to_dict() for level in levels], indent=2)
    if args.out:
        Path(args.out).write_text(payload + "\n")
        print(f"Wrote {len(levels)} levels to {args.out}")
    else:
        print(payload)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
