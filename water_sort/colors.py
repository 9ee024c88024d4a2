from __future__ import annotations

from enum import Enum


class LiquidColor(Enum):
    """Palette of liquid colours; values are the lowercase serialised names."""

    RED = "red"
    BLUE = "blue"
    GREEN = "green"
    YELLOW = "yellow"
    PURPLE = "purple"
    ORANGE = "orange"
    PINK = "pink"
    CYAN = "cyan"
    BROWN = "brown"
    LIME = "lime"

    @property
    def hex_value(self) -> str:
        return _HEX_VALUES[self]

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @property
    def rgb(self) -> tuple[int, int, int]:
        value = self.hex_value.lstrip("#")
        return (int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16))

    @classmethod
    def parse(cls, value: object) -> LiquidColor:
        if isinstance(value, LiquidColor):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower()
            for color in cls:
                if color.value == normalized:
                    return color
        raise ValueError(f"unknown liquid color: {value!r}")


_HEX_VALUES: dict[LiquidColor, str] = {
    LiquidColor.RED: "#e53e3e",
    LiquidColor.BLUE: "#3182ce",
    LiquidColor.GREEN: "#38a169",
    LiquidColor.YELLOW: "#d69e2e",
    LiquidColor.PURPLE: "#805ad5",
    LiquidColor.ORANGE: "#dd6b20",
    LiquidColor.PINK: "#ed64a6",
    LiquidColor.CYAN: "#0bc5ea",
    LiquidColor.BROWN: "#8b4513",
    LiquidColor.LIME: "#68d391",
}

PALETTE: tuple[LiquidColor, ...] = tuple(LiquidColor)
