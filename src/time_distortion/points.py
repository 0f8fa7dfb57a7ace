"""
Point data model shared by every pipeline stage.

Points are immutable values: a stage that changes a position or attaches a
travel time returns new GridPoint objects via dataclasses.replace.
"""

from dataclasses import dataclass, replace
from typing import Any, Optional, Sequence

import numpy as np
from numpy.typing import NDArray

Coordinate = tuple[float, float]


@dataclass(frozen=True)
class GridPoint:
    """
    A sample location in the analysed region.

    Attributes:
        id: Stable identifier assigned at generation time
        coordinates: Current (x, y) or (lon, lat) position
        travel_time: Average travel time in minutes, None until distortion
        original_coordinates: Position at creation, never changed afterwards
    """

    id: str
    coordinates: Coordinate
    travel_time: Optional[float] = None
    original_coordinates: Optional[Coordinate] = None

    def __post_init__(self):
        """Normalize coordinate tuples and validate travel time."""
        object.__setattr__(self, "coordinates", _as_pair(self.coordinates))
        if self.original_coordinates is not None:
            object.__setattr__(
                self, "original_coordinates", _as_pair(self.original_coordinates)
            )
        if self.travel_time is not None and self.travel_time < 0:
            raise ValueError(f"travel_time must be non-negative, got {self.travel_time}")

    def with_coordinates(self, coordinates: Sequence[float]) -> "GridPoint":
        """Return a copy at a new position, keeping original_coordinates."""
        return replace(self, coordinates=_as_pair(coordinates))

    def with_travel_time(self, travel_time: float) -> "GridPoint":
        """Return a copy carrying the given travel time."""
        return replace(self, travel_time=float(travel_time))

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the external point-list key names."""
        data: dict[str, Any] = {
            "id": self.id,
            "coordinates": list(self.coordinates),
        }
        if self.travel_time is not None:
            data["travelTime"] = self.travel_time
        if self.original_coordinates is not None:
            data["originalCoordinates"] = list(self.original_coordinates)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GridPoint":
        """Inverse of to_dict."""
        original = data.get("originalCoordinates")
        return cls(
            id=str(data["id"]),
            coordinates=tuple(data["coordinates"]),
            travel_time=data.get("travelTime"),
            original_coordinates=tuple(original) if original is not None else None,
        )


def _as_pair(values: Sequence[float]) -> Coordinate:
    x, y = values
    return (float(x), float(y))


def coordinates_of(points: Sequence[GridPoint]) -> NDArray[np.floating]:
    """Stack point coordinates into an array of shape (N, 2)."""
    if len(points) == 0:
        return np.zeros((0, 2))
    return np.array([p.coordinates for p in points], dtype=np.float64)


def original_coordinates_of(points: Sequence[GridPoint]) -> NDArray[np.floating]:
    """Stack original coordinates, falling back to the current position."""
    if len(points) == 0:
        return np.zeros((0, 2))
    return np.array(
        [p.original_coordinates or p.coordinates for p in points],
        dtype=np.float64,
    )


def travel_times_of(points: Sequence[GridPoint]) -> NDArray[np.floating]:
    """Travel times as an array, treating missing values as 0."""
    return np.array(
        [p.travel_time if p.travel_time is not None else 0.0 for p in points],
        dtype=np.float64,
    )


def points_from_coordinates(
    coordinates: Sequence[Sequence[float]],
    travel_times: Optional[Sequence[Optional[float]]] = None,
    prefix: str = "point",
) -> list[GridPoint]:
    """Build GridPoints with sequential ids from raw coordinates."""
    points = []
    for i, xy in enumerate(coordinates):
        t = travel_times[i] if travel_times is not None else None
        pair = _as_pair(xy)
        points.append(
            GridPoint(
                id=f"{prefix}-{i}",
                coordinates=pair,
                travel_time=None if t is None else float(t),
                original_coordinates=pair,
            )
        )
    return points
