from __future__ import annotations

import argparse
import base64
from pathlib import Path

from ..vision import render_level_image
from . import configure_logging
from .solve import load_levels


def main() -> int:
    parser = argparse.ArgumentParser(description="Render levels to PNG images.")
    parser.add_argument("levels", help="JSON file written by 'water-sort generate'.")
    parser.add_argument("--out-dir", default="renders")
    parser.add_argument("--unit-size", type=int, default=32)
    parser.add_argument("--no-labels", action="store_true")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()
    configure_logging(args.verbose)

    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    for level in load_levels(args.levels):
        image = render_level_image(
            level, unit_size=args.unit_size, label_containers=not args.no_labels
        )
        path = out_dir / f"level_{level.id}.png"
        path.write_bytes(base64.b64decode(image.data_base64))
        print(f"Wrote {path} ({image.width}x{image.height})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
