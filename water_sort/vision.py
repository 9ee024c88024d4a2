from __future__ import annotations

import base64
import io
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from .env import WaterSortEnv
from .models import Container, GameState, Level


@dataclass(frozen=True, slots=True)
class StateImage:
    mime_type: str
    data_base64: str
    data_url: str
    width: int
    height: int


def render_containers_image(
    containers: Sequence[Container],
    *,
    unit_size: int = 32,
    label_containers: bool = True,
    background: str = "white",
) -> StateImage:
    try:
        from PIL import Image, ImageDraw, ImageFont
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError(
            "Missing pillow. Install with: pip install 'water-sort[viz]'"
        ) from exc

    if unit_size < 4:
        raise ValueError("unit_size must be >= 4")
    if not containers:
        raise ValueError("at least one container is required to render image")

    capacity = max(container.capacity for container in containers)
    tube_w = unit_size + 8
    gap = max(12, unit_size // 2)
    margin = max(16, unit_size // 2)
    label_h = 18 if label_containers else 0
    width = margin * 2 + len(containers) * tube_w + (len(containers) - 1) * gap
    height = margin * 2 + label_h + capacity * unit_size + 8

    img = Image.new("RGB", (width, height), background)
    draw = ImageDraw.Draw(img)
    font = ImageFont.load_default()

    for pos, container in enumerate(containers):
        x0 = margin + pos * (tube_w + gap)
        x1 = x0 + tube_w
        bottom = height - margin
        top = bottom - container.capacity * unit_size - 8

        units = container.to_units()
        for level, color in enumerate(units):
            y1 = bottom - 4 - level * unit_size
            y0 = y1 - unit_size
            draw.rectangle([x0 + 4, y0, x1 - 4, y1], fill=color.rgb)

        # Tube outline is open at the top.
        draw.line((x0, top, x0, bottom), fill="#374151", width=2)
        draw.line((x1, top, x1, bottom), fill="#374151", width=2)
        draw.line((x0, bottom, x1, bottom), fill="#374151", width=2)

        if label_containers:
            label = str(container.id)
            bbox = draw.textbbox((0, 0), label, font=font)
            label_w = bbox[2] - bbox[0]
            draw.text(
                (x0 + (tube_w - label_w) / 2, margin // 2),
                label,
                fill="black",
                font=font,
            )

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    b64 = base64.b64encode(buffer.getvalue()).decode("ascii")
    return StateImage(
        mime_type="image/png",
        data_base64=b64,
        data_url=f"data:image/png;base64,{b64}",
        width=width,
        height=height,
    )


def render_state_image(
    state: GameState | Mapping[str, Any],
    *,
    unit_size: int = 32,
    label_containers: bool = True,
    background: str = "white",
) -> StateImage:
    if not isinstance(state, GameState):
        raw = state.get("containers")
        if not isinstance(raw, list):
            raise ValueError("state.containers is required to render image")
        state = GameState.from_dict(state)
    return render_containers_image(
        state.containers,
        unit_size=unit_size,
        label_containers=label_containers,
        background=background,
    )


def render_env_image(
    env: WaterSortEnv,
    *,
    unit_size: int = 32,
    label_containers: bool = True,
    background: str = "white",
) -> StateImage:
    return render_state_image(
        env.get_state(),
        unit_size=unit_size,
        label_containers=label_containers,
        background=background,
    )


def render_level_image(
    level: Level,
    *,
    unit_size: int = 32,
    label_containers: bool = True,
    background: str = "white",
) -> StateImage:
    return render_containers_image(
        level.initial_containers,
        unit_size=unit_size,
        label_containers=label_containers,
        background=background,
    )
