from __future__ import annotations

from water_sort.commands.demo import run_demo


def main() -> int:
    run_demo(seed=42)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
