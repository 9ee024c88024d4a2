from __future__ import annotations

import json

from water_sort import (
    LevelGenerationConfig,
    WaterSortEnv,
    WaterSortLevelGenerator,
    WaterSortToolbox,
    find_solution,
    tool_schemas,
)


def main() -> int:
    generator = WaterSortLevelGenerator(LevelGenerationConfig(seed=7))
    level = generator.generate_level(1, 2, 5, 2)
    env = WaterSortEnv(level)
    toolbox = WaterSortToolbox(env)

    print("Tools:", ", ".join(schema["name"] for schema in tool_schemas()))
    print(env.format_prompt_state(include_legal_moves=True))

    for from_id, to_id in find_solution(level.initial_containers) or []:
        result = toolbox.pour(from_id, to_id)
        print(f"pour {from_id}->{to_id}: ok={result['ok']} solved={result['solved']}")

    print(json.dumps(toolbox.is_solved()))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
