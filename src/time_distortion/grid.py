"""
Point lattice generation over a circular region.
"""

import math
from typing import Sequence

import numpy as np
from loguru import logger

from time_distortion.geo import MILES_PER_DEGREE_LAT, Metric, distance
from time_distortion.points import GridPoint

# Tolerance on the radius test so lattice points exactly on the circle survive
# floating-point rounding.
_RADIUS_TOL = 1e-9


class GridGenerator:
    """
    Lays a square lattice over a circle and keeps the points inside it.

    The lattice is centred on the circle centre, so the centre itself is
    always a sample. The number of points returned approximates, but does not
    exactly match, the requested count.

    Attributes:
        metric: 'haversine' for (lon, lat) centres, 'planar' for miles
    """

    def __init__(self, metric: Metric = "haversine"):
        if metric not in ("planar", "haversine"):
            raise ValueError(f"Unknown metric: {metric}")
        self.metric = metric

    def cell_size(self, radius: float, point_count: int) -> float:
        """Lattice spacing in miles: 2 * radius / sqrt(count)."""
        return 2.0 * radius / math.sqrt(point_count)

    def generate(
        self,
        center: Sequence[float],
        radius: float,
        point_count: int,
    ) -> list[GridPoint]:
        """
        Generate grid points filling the circle.

        Args:
            center: Circle centre, (lon, lat) or planar (x, y)
            radius: Circle radius in miles
            point_count: Target number of points

        Returns:
            GridPoints in row-major lattice order with ids 'point-{index}'
        """
        if radius <= 0:
            raise ValueError(f"radius must be positive, got {radius}")
        if point_count < 1:
            raise ValueError(f"point_count must be at least 1, got {point_count}")

        cx, cy = float(center[0]), float(center[1])
        cell = self.cell_size(radius, point_count)

        # Spacing along each axis in coordinate units
        if self.metric == "haversine":
            dy = cell / MILES_PER_DEGREE_LAT
            cos_lat = math.cos(math.radians(cy))
            dx = dy / max(cos_lat, 1e-12)
        else:
            dx = dy = cell

        half_steps = int(math.floor(radius / cell + _RADIUS_TOL))
        offsets = np.arange(-half_steps, half_steps + 1, dtype=np.float64)

        ys = cy + offsets * dy
        xs = cx + offsets * dx
        X, Y = np.meshgrid(xs, ys)  # rows follow y, x varies within a row
        lattice = np.stack([X.ravel(), Y.ravel()], axis=1)

        d = distance(lattice, np.array([cx, cy]), metric=self.metric)
        inside = lattice[d <= radius + _RADIUS_TOL]

        points = [
            GridPoint(
                id=f"point-{i}",
                coordinates=(x, y),
                original_coordinates=(x, y),
            )
            for i, (x, y) in enumerate(inside)
        ]

        logger.debug(
            f"Generated {len(points)} grid points (requested {point_count}, "
            f"cell {cell:.4f} mi)"
        )
        return points
