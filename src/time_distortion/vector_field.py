"""
Vector-field synthesis from scattered displacement vectors.

Displacements known at a handful of points are spread onto a regular grid by
inverse-distance-squared (Shepard) interpolation. The grid lives in the
normalized unit square; cell (i, j) sits at (i / W, j / H).
"""

from dataclasses import dataclass
from typing import Any, Optional, Sequence

import numpy as np
from loguru import logger
from numpy.typing import NDArray
from scipy.spatial.distance import cdist

from time_distortion.errors import ContractViolation
from time_distortion.geo import as_coordinates

Bounds = tuple[float, float, float, float]

DEFAULT_GRID_SIZE = 20


@dataclass
class VectorField:
    """
    Regular grid of 2D vectors.

    Attributes:
        vectors: Array of shape (W, H, 2); vectors[i, j] is the vector at
            normalized position (i / W, j / H)
    """

    vectors: NDArray[np.floating]

    def __post_init__(self):
        """Validate grid shape."""
        self.vectors = np.asarray(self.vectors, dtype=np.float64)
        if self.vectors.ndim != 3 or self.vectors.shape[2] != 2:
            raise ContractViolation(
                f"vectors must have shape (W, H, 2), got {self.vectors.shape}"
            )
        if self.vectors.shape[0] < 1 or self.vectors.shape[1] < 1:
            raise ContractViolation("vector field must have at least one cell")

    @property
    def width(self) -> int:
        return self.vectors.shape[0]

    @property
    def height(self) -> int:
        return self.vectors.shape[1]

    @property
    def magnitudes(self) -> NDArray[np.floating]:
        """Vector lengths of shape (W, H)."""
        return np.linalg.norm(self.vectors, axis=2)

    def grid_positions(self) -> NDArray[np.floating]:
        """Normalized cell positions of shape (W, H, 2)."""
        return grid_positions(self.width, self.height)

    def to_list(self) -> list[list[dict[str, float]]]:
        """External format: nested lists of {x, y}."""
        return [
            [{"x": float(v[0]), "y": float(v[1])} for v in column]
            for column in self.vectors
        ]

    @classmethod
    def from_list(cls, data: Sequence[Sequence[dict[str, Any]]]) -> "VectorField":
        """Inverse of to_list."""
        return cls(np.array([[[c["x"], c["y"]] for c in column] for column in data]))

    @classmethod
    def uniform(cls, vector: Sequence[float], width: int = DEFAULT_GRID_SIZE,
                height: Optional[int] = None) -> "VectorField":
        """Field with the same vector in every cell."""
        height = width if height is None else height
        vectors = np.broadcast_to(np.asarray(vector, dtype=np.float64), (width, height, 2))
        return cls(vectors.copy())


def grid_positions(width: int, height: int) -> NDArray[np.floating]:
    """Normalized positions (i / width, j / height) of shape (W, H, 2)."""
    gx = np.arange(width, dtype=np.float64) / width
    gy = np.arange(height, dtype=np.float64) / height
    GX, GY = np.meshgrid(gx, gy, indexing="ij")
    return np.stack([GX, GY], axis=2)


def normalize_to_bounds(
    positions: NDArray[np.floating],
    bounds: Bounds,
) -> NDArray[np.floating]:
    """Map positions inside bounds (xmin, ymin, xmax, ymax) into the unit square."""
    xmin, ymin, xmax, ymax = bounds
    span = np.array([xmax - xmin, ymax - ymin], dtype=np.float64)
    # Degenerate extent along an axis collapses that axis to 0
    safe = np.where(span > 0, span, 1.0)
    out = (as_coordinates(positions) - np.array([xmin, ymin])) / safe
    out[:, span <= 0] = 0.0
    return out


def bounds_of(positions: NDArray[np.floating]) -> Bounds:
    """Axis-aligned bounding box (xmin, ymin, xmax, ymax)."""
    X = as_coordinates(positions)
    if X.shape[0] == 0:
        return (0.0, 0.0, 1.0, 1.0)
    xmin, ymin = X.min(axis=0)
    xmax, ymax = X.max(axis=0)
    return (float(xmin), float(ymin), float(xmax), float(ymax))


class VectorFieldSynthesizer:
    """
    Interpolates per-point displacement vectors onto a regular grid.

    Attributes:
        grid_size: Cells per axis (the field is grid_size x grid_size)
    """

    def __init__(self, grid_size: int = DEFAULT_GRID_SIZE):
        if grid_size < 1:
            raise ValueError(f"grid_size must be at least 1, got {grid_size}")
        self.grid_size = grid_size

    def synthesize(
        self,
        positions: Sequence[Sequence[float]] | NDArray,
        displacements: Sequence[Sequence[float]] | NDArray,
        bounds: Optional[Bounds] = None,
    ) -> VectorField:
        """
        Build the vector field.

        Args:
            positions: Source positions of shape (N, 2)
            displacements: Displacement vectors of shape (N, 2)
            bounds: If given, positions are normalized from these bounds into
                the unit square first; otherwise they are taken as normalized

        Returns:
            VectorField of shape (grid_size, grid_size, 2)
        """
        P = as_coordinates(positions)
        V = as_coordinates(displacements)
        if P.shape != V.shape:
            raise ContractViolation(
                f"positions {P.shape} and displacements {V.shape} differ in shape"
            )
        if bounds is not None:
            P = normalize_to_bounds(P, bounds)

        G = grid_positions(self.grid_size, self.grid_size).reshape(-1, 2)
        vectors = self._interpolate(G, P, V)

        logger.debug(f"Synthesized {self.grid_size}x{self.grid_size} field from {len(P)} vectors")
        return VectorField(vectors.reshape(self.grid_size, self.grid_size, 2))

    def _interpolate(
        self,
        G: NDArray[np.floating],
        P: NDArray[np.floating],
        V: NDArray[np.floating],
    ) -> NDArray[np.floating]:
        """Inverse-distance-squared weighted average at each grid position."""
        out = np.zeros((G.shape[0], 2))
        if P.shape[0] == 0:
            return out

        d2 = cdist(G, P, metric="sqeuclidean")
        coincident = d2 == 0.0

        weights = np.where(coincident, 0.0, 1.0 / np.where(coincident, 1.0, d2))
        weight_sum = weights.sum(axis=1)

        has_weight = weight_sum > 0
        out[has_weight] = (weights[has_weight] @ V) / weight_sum[has_weight, None]

        # A grid position sitting exactly on a source takes that source's
        # vector (the mean, if several sources coincide there)
        exact_rows = np.any(coincident, axis=1)
        if np.any(exact_rows):
            hits = coincident[exact_rows].astype(np.float64)
            out[exact_rows] = (hits @ V) / hits.sum(axis=1, keepdims=True)

        return out
