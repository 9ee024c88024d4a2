from __future__ import annotations

import sys
from typing import Callable

from water_sort.commands import demo, generate, render, solve


COMMANDS: dict[str, tuple[str, Callable[[], int]]] = {
    "demo": ("Generator requirements demo", demo.main),
    "generate": ("Generate levels as JSON", generate.main),
    "solve": ("Solve levels from JSON", solve.main),
    "render": ("Render levels to PNG", render.main),
}


def _print_help() -> None:
    print("water-sort <command> [args]\n")
    print("Commands:")
    for name, (desc, _) in COMMANDS.items():
        print(f"  {name:20s} {desc}")


def main(argv: list[str] | None = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if not args or args[0] in {"-h", "--help"}:
        _print_help()
        return 0

    command = args.pop(0)
    if command not in COMMANDS:
        print(f"Unknown command: {command}\n")
        _print_help()
        return 2

    _, handler = COMMANDS[command]
    sys.argv = [f"water-sort {command}"] + args
    return handler()


if __name__ == "__main__":
    raise SystemExit(main())
