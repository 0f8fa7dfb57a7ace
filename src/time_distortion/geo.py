"""
Distance metrics, unit constants and local projections.

Coordinates are opaque 2D vectors to most of the engine. Two metrics give
them meaning:

- 'planar': (x, y) in miles, Euclidean distance
- 'haversine': (longitude, latitude) in degrees, great-circle distance
"""

from typing import Literal, Sequence

import numpy as np
from numpy.typing import NDArray
from scipy.spatial.distance import pdist, squareform

Metric = Literal["planar", "haversine"]

DEFAULT_SPEED_MPH = 30.0
EARTH_RADIUS_MILES = 3958.7613
EARTH_RADIUS_METERS = 6_371_008.8
METERS_PER_MILE = 1609.344
SQ_METERS_TO_SQ_MILES = 3.861e-7
MILES_PER_DEGREE_LAT = EARTH_RADIUS_MILES * np.pi / 180.0


def as_coordinates(coordinates: Sequence[Sequence[float]] | NDArray) -> NDArray[np.floating]:
    """Convert a coordinate sequence to a float64 array of shape (N, 2)."""
    arr = np.asarray(coordinates, dtype=np.float64)
    if arr.size == 0:
        return arr.reshape(0, 2)
    if arr.ndim != 2 or arr.shape[1] != 2:
        raise ValueError(f"Expected coordinates of shape (N, 2), got {arr.shape}")
    return arr


def haversine_miles(
    a: NDArray[np.floating],
    b: NDArray[np.floating],
) -> NDArray[np.floating]:
    """
    Great-circle distance in miles between (lon, lat) pairs.

    Args:
        a: Array of shape (..., 2) in degrees
        b: Array of shape (..., 2) in degrees, broadcastable against a

    Returns:
        Distances with the broadcast shape of a[..., 0] and b[..., 0]
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    lon1, lat1 = np.radians(a[..., 0]), np.radians(a[..., 1])
    lon2, lat2 = np.radians(b[..., 0]), np.radians(b[..., 1])

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    h = np.sin(dlat / 2) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin(dlon / 2) ** 2
    h = np.clip(h, 0.0, 1.0)
    return 2 * EARTH_RADIUS_MILES * np.arcsin(np.sqrt(h))


def distance(
    a: NDArray[np.floating],
    b: NDArray[np.floating],
    metric: Metric = "planar",
) -> NDArray[np.floating]:
    """Element-wise distance in miles between two coordinate arrays."""
    if metric == "planar":
        diff = np.asarray(a, dtype=np.float64) - np.asarray(b, dtype=np.float64)
        return np.hypot(diff[..., 0], diff[..., 1])
    elif metric == "haversine":
        return haversine_miles(a, b)
    raise ValueError(f"Unknown metric: {metric}")


def pairwise_distances(
    coordinates: NDArray[np.floating],
    metric: Metric = "planar",
) -> NDArray[np.floating]:
    """
    Symmetric (N, N) distance matrix in miles.

    Each unordered pair is evaluated once and mirrored, so M[i, j] and
    M[j, i] are the same float.
    """
    X = as_coordinates(coordinates)
    n = X.shape[0]
    if n < 2:
        return np.zeros((n, n))

    if metric == "planar":
        condensed = pdist(X, metric="euclidean")
    elif metric == "haversine":
        rows, cols = np.triu_indices(n, k=1)
        condensed = haversine_miles(X[rows], X[cols])
    else:
        raise ValueError(f"Unknown metric: {metric}")

    return squareform(condensed)


class LocalProjection:
    """
    Maps coordinates into a local metric plane and back.

    For 'planar' input the plane is the identity (units stay miles). For
    'haversine' input an equirectangular projection about the reference point
    gives meters, accurate over the few-mile extents this engine works with.
    """

    def __init__(self, origin: Sequence[float], metric: Metric = "planar"):
        self.origin = np.asarray(origin, dtype=np.float64)
        self.metric = metric
        if metric == "haversine":
            self._cos_lat = np.cos(np.radians(self.origin[1]))
            self._m_per_deg = EARTH_RADIUS_METERS * np.pi / 180.0
        elif metric != "planar":
            raise ValueError(f"Unknown metric: {metric}")

    @property
    def meters_per_unit(self) -> float:
        """Length of one plane unit in meters."""
        return 1.0 if self.metric == "haversine" else METERS_PER_MILE

    def forward(self, coordinates: NDArray[np.floating]) -> NDArray[np.floating]:
        """Project coordinates into the plane."""
        X = as_coordinates(coordinates)
        if self.metric == "planar":
            return X.copy()
        out = np.empty_like(X)
        out[:, 0] = (X[:, 0] - self.origin[0]) * self._m_per_deg * self._cos_lat
        out[:, 1] = (X[:, 1] - self.origin[1]) * self._m_per_deg
        return out

    def inverse(self, plane: NDArray[np.floating]) -> NDArray[np.floating]:
        """Map plane coordinates back to the input coordinate system."""
        P = as_coordinates(plane)
        if self.metric == "planar":
            return P.copy()
        out = np.empty_like(P)
        out[:, 0] = P[:, 0] / (self._m_per_deg * self._cos_lat) + self.origin[0]
        out[:, 1] = P[:, 1] / self._m_per_deg + self.origin[1]
        return out

    def miles_to_units(self, miles: float) -> float:
        """Convert a length in miles into plane units."""
        return miles * METERS_PER_MILE / self.meters_per_unit

    def area_to_square_miles(self, area: float) -> float:
        """Convert an area in squared plane units into square miles."""
        if self.metric == "planar":
            return float(area)
        return float(area) * SQ_METERS_TO_SQ_MILES
