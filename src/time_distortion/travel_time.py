"""
Travel-time estimation from straight-line distance.

Travel time is approximated as distance over a constant speed; no road
network is modelled.
"""

from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from time_distortion.geo import DEFAULT_SPEED_MPH, Metric, pairwise_distances
from time_distortion.points import GridPoint, coordinates_of


class TravelTimeMatrix:
    """
    Builds symmetric travel-time matrices in minutes.

    Attributes:
        speed_mph: Assumed constant travel speed
        metric: Distance metric used between coordinates
    """

    def __init__(self, speed_mph: float = DEFAULT_SPEED_MPH, metric: Metric = "planar"):
        if speed_mph <= 0:
            raise ValueError(f"speed_mph must be positive, got {speed_mph}")
        self.speed_mph = speed_mph
        self.metric = metric

    def travel_time(self, distance_miles):
        """Convert a distance (scalar or array) in miles into minutes."""
        return (np.asarray(distance_miles, dtype=np.float64) / self.speed_mph) * 60.0

    def compute(self, points: Sequence[GridPoint]) -> NDArray[np.floating]:
        """
        Compute the (N, N) travel-time matrix for a point list.

        Distances are evaluated once per unordered pair and mirrored, so the
        matrix is exactly symmetric with a zero diagonal.
        """
        return self.compute_from_coordinates(coordinates_of(points))

    def compute_from_coordinates(self, coordinates: NDArray[np.floating]) -> NDArray[np.floating]:
        """Same as compute, for a raw (N, 2) coordinate array."""
        distances = pairwise_distances(coordinates, metric=self.metric)
        times = self.travel_time(distances)
        np.fill_diagonal(times, 0.0)
        return times
