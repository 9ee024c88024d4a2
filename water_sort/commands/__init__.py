from __future__ import annotations

import argparse
import logging
from typing import Any

from ..config import LevelGenerationConfig, load_generation_config


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def add_common_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default=None,
        help="JSON config file; generator settings may sit under a 'generator' key.",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed.")
    parser.add_argument(
        "--max-states",
        type=int,
        default=None,
        help="Solver state budget used when validating levels.",
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Enable debug logging."
    )


def build_generation_config(
    args: argparse.Namespace, *, default_seed: int | None = None
) -> LevelGenerationConfig:
    """Config file values first, then command-line flags on top."""
    overrides: dict[str, Any] = {}
    if args.seed is not None:
        overrides["seed"] = args.seed
    if args.max_states is not None:
        overrides["max_solvability_states"] = args.max_states

    if args.config:
        return load_generation_config(args.config, overrides=overrides)
    if "seed" not in overrides and default_seed is not None:
        overrides["seed"] = default_seed
    return LevelGenerationConfig.from_dict(overrides)
