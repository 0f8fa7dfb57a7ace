"""
Heatmap classification: scalar samples to [0, 1] intensities and colors.
"""

import colorsys
from dataclasses import dataclass
from typing import Literal, Sequence

import numpy as np
from matplotlib import colormaps
from matplotlib.colors import to_hex
from numpy.typing import NDArray

from time_distortion.errors import ContractViolation
from time_distortion.points import GridPoint, travel_times_of


@dataclass
class HeatmapCell:
    """A classified sample."""

    position: tuple[float, float]
    value: float
    intensity: float
    color: str

    def to_dict(self) -> dict:
        return {
            "coordinates": list(self.position),
            "value": self.value,
            "intensity": self.intensity,
            "color": self.color,
        }


def hsl_ramp(intensity: float) -> str:
    """Blue (0) to red (1) hue ramp at 70% saturation, 50% lightness."""
    hue = (240.0 - 240.0 * intensity) / 360.0
    r, g, b = colorsys.hls_to_rgb(hue, 0.5, 0.7)
    return to_hex((r, g, b))


class HeatmapClassifier:
    """
    Min-max normalizes sample values and maps them to colors.

    Attributes:
        colormap: Any matplotlib colormap name, or 'hsl' for the blue-to-red
            hue ramp
    """

    def __init__(self, colormap: str | Literal["hsl"] = "viridis"):
        if colormap != "hsl" and colormap not in colormaps:
            raise ValueError(f"Unknown colormap: {colormap}")
        self.colormap = colormap

    def normalize(self, values: Sequence[float] | NDArray) -> NDArray[np.floating]:
        """
        (value - min) / (max - min) over the sample's own range.

        A constant sample (max == min) maps to all zeros.
        """
        v = np.asarray(values, dtype=np.float64)
        if v.size == 0:
            return v
        lo, hi = float(v.min()), float(v.max())
        if hi == lo:
            return np.zeros_like(v)
        return np.clip((v - lo) / (hi - lo), 0.0, 1.0)

    def color(self, intensity: float) -> str:
        """Hex color for an intensity in [0, 1]."""
        if self.colormap == "hsl":
            return hsl_ramp(intensity)
        return to_hex(colormaps[self.colormap](float(intensity)))

    def classify(
        self,
        samples: Sequence[tuple[Sequence[float], float]],
    ) -> list[HeatmapCell]:
        """
        Classify (position, value) samples.

        Returns:
            One HeatmapCell per sample, in input order
        """
        positions = [(float(p[0]), float(p[1])) for p, _ in samples]
        values = [float(v) for _, v in samples]
        intensities = self.normalize(values)

        return [
            HeatmapCell(position=pos, value=val, intensity=float(i), color=self.color(i))
            for pos, val, i in zip(positions, values, intensities)
        ]

    def classify_points(
        self,
        points: Sequence[GridPoint],
        positions: Sequence[GridPoint] | None = None,
    ) -> list[HeatmapCell]:
        """
        Classify points by travel_time (missing counts as 0).

        Args:
            points: Points supplying travel times
            positions: Optional parallel list supplying the drawn positions,
                e.g. original points colored by distorted travel times
        """
        times = travel_times_of(points)
        anchors = positions if positions is not None else points
        if len(anchors) != len(points):
            raise ContractViolation(
                f"positions ({len(anchors)}) and points ({len(points)}) differ in length"
            )
        samples = [(p.coordinates, t) for p, t in zip(anchors, times)]
        return self.classify(samples)
