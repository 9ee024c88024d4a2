"""Water-sort puzzle engine, solver and level generators."""

from __future__ import annotations

from .colors import LiquidColor
from .config import LevelGenerationConfig
from .engine import WaterSortGameEngine
from .env import WaterSortEnv, WaterSortToolbox, tool_schemas
from .generator import WaterSortLevelGenerator
from .models import (
    Container,
    GameState,
    GenerationError,
    InvalidActionError,
    InvalidLevelError,
    InvalidPourError,
    Level,
    LiquidLayer,
    Move,
    WaterSortError,
)
from .progression import LevelProgress, LevelProgressionManager
from .reverse import GenerationAudit, ReverseLevelGenerator
from .service import LevelGenerationService
from .solver import HintSolver, find_solution, is_solvable

__all__ = [
    "Container",
    "GameState",
    "GenerationAudit",
    "GenerationError",
    "HintSolver",
    "InvalidActionError",
    "InvalidLevelError",
    "InvalidPourError",
    "Level",
    "LevelGenerationConfig",
    "LevelGenerationService",
    "LevelProgress",
    "LevelProgressionManager",
    "LiquidColor",
    "LiquidLayer",
    "Move",
    "ReverseLevelGenerator",
    "WaterSortEnv",
    "WaterSortError",
    "WaterSortGameEngine",
    "WaterSortLevelGenerator",
    "WaterSortToolbox",
    "find_solution",
    "is_solvable",
    "tool_schemas",
]
