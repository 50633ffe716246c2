"""
Deterministic per-class colors.
"""

import colorsys
from typing import Dict, Iterator, List, Sequence

from .errors import UnknownClassError
from .types import Color

HUE_STEP = 20.0
SATURATION = 0.6
BRIGHTNESS = 1.0


def hsb_color(hue: float, saturation: float, brightness: float) -> Color:
    """Convert HSB (hue in degrees) to an RGB Color."""
    r, g, b = colorsys.hsv_to_rgb((hue % 360.0) / 360.0, saturation, brightness)
    return Color(round(r * 255), round(g * 255), round(b * 255))


class ClassPalette:
    """
    Label to color mapping built from an ordered class list.

    The class at index i gets hue (i + 1) * 20 degrees, so the same list
    always yields the same colors.
    """

    def __init__(self, class_names: Sequence[str]):
        self._names: List[str] = list(class_names)
        self._colors: Dict[str, Color] = {}
        for i, name in enumerate(self._names):
            self._colors[name] = hsb_color((i + 1) * HUE_STEP, SATURATION, BRIGHTNESS)

    def color_for(self, label: str) -> Color:
        try:
            return self._colors[label]
        except KeyError:
            raise UnknownClassError(f"No color for label {label!r}") from None

    def __getitem__(self, label: str) -> Color:
        return self.color_for(label)

    def __contains__(self, label: object) -> bool:
        return label in self._colors

    def __len__(self) -> int:
        return len(self._colors)

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def as_dict(self) -> Dict[str, str]:
        """Label to hex color, in class order."""
        return {name: self._colors[name].hex for name in self._names}
