from __future__ import annotations

from water_sort.colors import LiquidColor
from water_sort.models import Container, Level

R = LiquidColor.RED
B = LiquidColor.BLUE
G = LiquidColor.GREEN


def tube(id: int, *units: LiquidColor, capacity: int = 4) -> Container:
    return Container.from_units(id, capacity, units)


def make_level(
    containers: list[Container], *, level_id: int = 1, difficulty: int = 1
) -> Level:
    colors = {layer.color for c in containers for layer in c.layers}
    return Level(
        id=level_id,
        difficulty=difficulty,
        container_count=len(containers),
        color_count=len(colors),
        initial_containers=tuple(containers),
    )


def crossed_level(*, spare: int = 1) -> Level:
    """Two swapped colours in capacity-2 tubes; three pours solve it."""
    containers = [tube(0, R, B, capacity=2), tube(1, B, R, capacity=2)]
    containers.extend(tube(2 + i, capacity=2) for i in range(spare))
    return make_level(containers)


def stuck_level() -> Level:
    return make_level([tube(0, R, B, R, B), tube(1, B, R, B, R)])
