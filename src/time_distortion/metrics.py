"""
Network metrics over original and distorted point sets.

Connectivity counts reachable points under a travel-time threshold,
centrality normalizes it by the best-connected point, coverage measures the
hull area reachable within a threshold, and the distortion statistics
summarize how far points moved.
"""

from dataclasses import dataclass, field
from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from time_distortion.errors import ContractViolation
from time_distortion.geo import Metric, distance
from time_distortion.isochrones import DEFAULT_THRESHOLDS, IsochroneBuilder
from time_distortion.points import GridPoint, coordinates_of, travel_times_of

DEFAULT_CONNECTIVITY_THRESHOLD = 20.0


@dataclass
class NetworkSummary:
    """
    Aggregated connectivity and distortion statistics.

    Attributes:
        connectivity: Reachable-point count per point
        centrality: Connectivity normalized to [0, 1]
        distortions: Distance each point moved, in miles
        max_distortion: Largest distortion in miles
        average_time: Mean travel time in minutes
        coverage: Hull area in square miles keyed by threshold
    """

    connectivity: NDArray[np.integer]
    centrality: NDArray[np.floating]
    distortions: NDArray[np.floating]
    max_distortion: float
    average_time: float
    coverage: dict[float, float] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "connectivity": self.connectivity.tolist(),
            "centrality": self.centrality.tolist(),
            "distortions": self.distortions.tolist(),
            "maxDistortion": self.max_distortion,
            "averageTime": self.average_time,
            "coverage": {str(k): v for k, v in self.coverage.items()},
        }


class NetworkMetrics:
    """
    Computes connectivity, centrality, coverage and distortion statistics.

    Attributes:
        threshold: Connectivity threshold in minutes
        metric: Distance metric for distortion magnitudes and areas
    """

    def __init__(
        self,
        threshold: float = DEFAULT_CONNECTIVITY_THRESHOLD,
        metric: Metric = "planar",
    ):
        self.threshold = threshold
        self.metric = metric
        self._hulls = IsochroneBuilder(buffer_miles=0.0, metric=metric)

    def connectivity(self, points: Sequence[GridPoint]) -> NDArray[np.integer]:
        """
        For each point, the number of other points with travel_time below threshold.
        """
        times = travel_times_of(points)
        below = times < self.threshold
        total = int(below.sum())
        # Exclude self from the count
        return (total - below.astype(int)).astype(int)

    def pairwise_connectivity(self, time_matrix: NDArray[np.floating]) -> NDArray[np.integer]:
        """
        For each point, the number of others reachable in under threshold
        minutes according to the pairwise time matrix.
        """
        M = np.asarray(time_matrix, dtype=np.float64)
        if M.ndim != 2 or M.shape[0] != M.shape[1]:
            raise ContractViolation(f"time_matrix must be square, got {M.shape}")
        reachable = M < self.threshold
        np.fill_diagonal(reachable, False)
        return reachable.sum(axis=1).astype(int)

    def centrality(self, connectivity: Sequence[int] | NDArray) -> NDArray[np.floating]:
        """connectivity / max(connectivity); all zeros when nothing is connected."""
        c = np.asarray(connectivity, dtype=np.float64)
        if c.size == 0:
            return c
        peak = c.max()
        if peak == 0:
            return np.zeros_like(c)
        return c / peak

    def coverage_area(self, points: Sequence[GridPoint], threshold: float) -> float:
        """Convex-hull area (square miles) of points within threshold; 0 if undefined."""
        return self._hulls.hull_area(points, threshold)

    def distortion_magnitudes(
        self,
        original: Sequence[GridPoint],
        distorted: Sequence[GridPoint],
    ) -> NDArray[np.floating]:
        """Distance in miles between each original and distorted position."""
        if len(original) != len(distorted):
            raise ContractViolation(
                f"original ({len(original)}) and distorted ({len(distorted)}) differ in length"
            )
        if len(original) == 0:
            return np.zeros(0)
        return distance(coordinates_of(original), coordinates_of(distorted), metric=self.metric)

    def max_distortion(
        self,
        original: Sequence[GridPoint],
        distorted: Sequence[GridPoint],
    ) -> float:
        """Largest displacement in miles (0 for empty input)."""
        d = self.distortion_magnitudes(original, distorted)
        return float(d.max()) if d.size else 0.0

    def average_time(self, points: Sequence[GridPoint]) -> float:
        """Mean travel time, missing values counted as 0 (0 for empty input)."""
        times = travel_times_of(points)
        return float(times.mean()) if times.size else 0.0

    def compute(
        self,
        original: Sequence[GridPoint],
        distorted: Sequence[GridPoint],
        thresholds: Sequence[float] = DEFAULT_THRESHOLDS,
    ) -> NetworkSummary:
        """
        All metrics at once.

        Travel times come from the distorted points; coverage hulls are taken
        over the original positions, as in the isochrone layer.
        """
        distortions = self.distortion_magnitudes(original, distorted)
        timed = [
            o.with_travel_time(d.travel_time) if d.travel_time is not None else o
            for o, d in zip(original, distorted)
        ]
        connectivity = self.connectivity(distorted)

        return NetworkSummary(
            connectivity=connectivity,
            centrality=self.centrality(connectivity),
            distortions=distortions,
            max_distortion=float(distortions.max()) if distortions.size else 0.0,
            average_time=self.average_time(distorted),
            coverage={float(t): self.coverage_area(timed, t) for t in thresholds},
        )
