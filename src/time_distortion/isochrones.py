"""
Isochrone bands: accessibility polygons per travel-time threshold.

For each threshold the points reachable within it are wrapped in a convex
hull, then buffered outward by a fixed margin to soften the boundary. Hull
and buffer are computed in a local metric plane so the margin and the areas
are in real distance units even for (lon, lat) input.
"""

from dataclasses import dataclass, field
from typing import Sequence

import numpy as np
from loguru import logger
from numpy.typing import NDArray
from shapely.errors import GEOSException
from shapely.geometry import MultiPoint, Polygon

from time_distortion.errors import GeometryFailure
from time_distortion.geo import LocalProjection, Metric
from time_distortion.points import GridPoint, coordinates_of, travel_times_of

DEFAULT_THRESHOLDS = (5.0, 10.0, 15.0, 20.0, 25.0)
DEFAULT_BUFFER_MILES = 0.1
MIN_HULL_POINTS = 3


@dataclass
class IsochroneBand:
    """
    Accessibility polygon for one threshold.

    Attributes:
        threshold: Travel-time limit in minutes
        coordinates: Implicitly closed ring; empty when not computable
        area: Area of the band in square miles (0 when empty)
        point_count: Number of points within the threshold
    """

    threshold: float
    coordinates: list[tuple[float, float]] = field(default_factory=list)
    area: float = 0.0
    point_count: int = 0

    @property
    def is_empty(self) -> bool:
        return len(self.coordinates) == 0

    def to_dict(self) -> dict:
        return {
            "threshold": self.threshold,
            "coordinates": [list(c) for c in self.coordinates],
            "area": self.area,
        }


def convex_hull(plane_points: NDArray[np.floating]) -> Polygon:
    """
    Convex hull of planar points as a Shapely polygon.

    Raises:
        GeometryFailure: If the hull is not a polygon (collinear or
            coincident input) or GEOS fails
    """
    try:
        hull = MultiPoint([tuple(p) for p in plane_points]).convex_hull
    except (GEOSException, ValueError) as e:
        raise GeometryFailure(f"convex hull failed: {e}") from e

    if hull.geom_type != "Polygon" or hull.is_empty or hull.area <= 0:
        raise GeometryFailure(f"degenerate hull ({hull.geom_type})")
    return hull


class IsochroneBuilder:
    """
    Builds one IsochroneBand per threshold.

    Attributes:
        buffer_miles: Outward margin applied to each hull
        metric: How to interpret coordinates ('planar' miles or 'haversine')
        quad_segs: Segments per quarter circle in buffered corners
    """

    def __init__(
        self,
        buffer_miles: float = DEFAULT_BUFFER_MILES,
        metric: Metric = "planar",
        quad_segs: int = 16,
    ):
        if buffer_miles < 0:
            raise ValueError(f"buffer_miles must be non-negative, got {buffer_miles}")
        self.buffer_miles = buffer_miles
        self.metric = metric
        self.quad_segs = quad_segs

    def build(
        self,
        points: Sequence[GridPoint],
        thresholds: Sequence[float] = DEFAULT_THRESHOLDS,
    ) -> list[IsochroneBand]:
        """
        Compute isochrone bands.

        A failure for one threshold yields an empty band for that threshold
        only; the remaining thresholds are still computed.

        Args:
            points: Points with travel_time (missing counts as 0)
            thresholds: Travel-time limits in minutes

        Returns:
            One band per threshold, in the given order
        """
        X = coordinates_of(points)
        times = travel_times_of(points)
        projection = self._projection(X)

        bands = []
        for threshold in thresholds:
            mask = times <= threshold
            count = int(mask.sum())
            band = IsochroneBand(threshold=float(threshold), point_count=count)

            if count < MIN_HULL_POINTS:
                bands.append(band)
                continue

            try:
                ring, area = self._buffered_ring(X[mask], projection)
            except GeometryFailure as e:
                logger.warning(f"Isochrone for {threshold} min is empty: {e}")
            else:
                band.coordinates = ring
                band.area = area
            bands.append(band)

        return bands

    def hull_area(self, points: Sequence[GridPoint], threshold: float) -> float:
        """
        Unbuffered convex-hull area, in square miles, of points within threshold.

        Returns 0 for fewer than three points or a degenerate hull.
        """
        X = coordinates_of(points)
        selected = X[travel_times_of(points) <= threshold]
        if len(selected) < MIN_HULL_POINTS:
            return 0.0

        projection = self._projection(X)
        try:
            hull = convex_hull(projection.forward(selected))
        except GeometryFailure as e:
            logger.warning(f"Coverage for {threshold} min is 0: {e}")
            return 0.0
        return projection.area_to_square_miles(hull.area)

    def _projection(self, X: NDArray[np.floating]) -> LocalProjection:
        origin = X.mean(axis=0) if len(X) else np.zeros(2)
        return LocalProjection(origin, metric=self.metric)

    def _buffered_ring(
        self,
        selected: NDArray[np.floating],
        projection: LocalProjection,
    ) -> tuple[list[tuple[float, float]], float]:
        hull = convex_hull(projection.forward(selected))

        margin = projection.miles_to_units(self.buffer_miles)
        try:
            shape = hull.buffer(margin, quad_segs=self.quad_segs) if margin > 0 else hull
        except (GEOSException, ValueError) as e:
            raise GeometryFailure(f"buffer failed: {e}") from e

        if shape.geom_type != "Polygon" or shape.is_empty:
            raise GeometryFailure(f"buffer produced {shape.geom_type}")

        exterior = np.asarray(shape.exterior.coords)[:-1]
        if not np.all(np.isfinite(exterior)):
            raise GeometryFailure("non-finite buffer coordinates")

        ring = [(float(x), float(y)) for x, y in projection.inverse(exterior)]
        return ring, projection.area_to_square_miles(shape.area)


def band_areas(bands: Sequence[IsochroneBand]) -> NDArray[np.floating]:
    """Area of each band in square miles."""
    return np.array([b.area for b in bands], dtype=np.float64)

