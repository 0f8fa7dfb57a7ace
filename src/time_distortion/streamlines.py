"""
Streamline tracing through a gridded vector field.

Lines are integrated with a fixed-step, unit-normalized explicit Euler
scheme from a deterministic lattice of seed points. Every line stops on the
first of:

1. the sampled cell lies outside the field (zero vector)
2. the local vector magnitude drops below STAGNATION_EPS
3. the next position leaves the bounds
4. the approximate length (points * step) reaches line_length
5. max_steps iterations
"""

from dataclasses import dataclass
from typing import Literal, Sequence

import numpy as np
from loguru import logger
from numpy.typing import NDArray

from time_distortion.vector_field import Bounds, VectorField

STAGNATION_EPS = 1e-6
DEFAULT_SEED_DENSITY = 10

# Slack on the length test so that, e.g., 10 * 0.1 counts as reaching 1.0
_LENGTH_EPS = 1e-9


@dataclass(frozen=True)
class StreamlineOptions:
    """Integration options; every field has an independent default."""

    step_size: float = 0.1
    max_steps: int = 1000
    line_length: float = 10.0

    def __post_init__(self):
        """Validate option values."""
        if self.step_size <= 0:
            raise ValueError(f"step_size must be positive, got {self.step_size}")
        if self.max_steps < 0:
            raise ValueError(f"max_steps must be non-negative, got {self.max_steps}")
        if self.line_length <= 0:
            raise ValueError(f"line_length must be positive, got {self.line_length}")


def _check_bounds(bounds: Bounds) -> None:
    xmin, ymin, xmax, ymax = bounds
    if not (xmax > xmin and ymax > ymin):
        raise ValueError(f"Invalid bounds {bounds}: need xmin < xmax and ymin < ymax")


class StreamlineTracer:
    """
    Integrates flow paths through a VectorField.

    Attributes:
        options: Step size, step budget and maximum length
        seed_density: Seeds per axis of the seed lattice
        interpolation: 'nearest' reads the cell at the floored index,
            'bilinear' blends the four surrounding cells
    """

    def __init__(
        self,
        options: StreamlineOptions | None = None,
        seed_density: int = DEFAULT_SEED_DENSITY,
        interpolation: Literal["nearest", "bilinear"] = "nearest",
    ):
        if seed_density < 1:
            raise ValueError(f"seed_density must be at least 1, got {seed_density}")
        if interpolation not in ("nearest", "bilinear"):
            raise ValueError(f"Unknown interpolation: {interpolation}")
        self.options = options or StreamlineOptions()
        self.seed_density = seed_density
        self.interpolation = interpolation

    def seed_points(self, bounds: Bounds) -> NDArray[np.floating]:
        """
        Regular seed lattice at cell centres, (i + 0.5) / density across bounds.

        Returns:
            Array of shape (density**2, 2), x-major order
        """
        _check_bounds(bounds)
        xmin, ymin, xmax, ymax = bounds
        t = (np.arange(self.seed_density) + 0.5) / self.seed_density
        xs = xmin + (xmax - xmin) * t
        ys = ymin + (ymax - ymin) * t
        X, Y = np.meshgrid(xs, ys, indexing="ij")
        return np.stack([X.ravel(), Y.ravel()], axis=1)

    def sample(self, field: VectorField, bounds: Bounds, x: float, y: float) -> NDArray[np.floating]:
        """
        Field vector at a world position; zero outside the sampleable grid.
        """
        xmin, ymin, xmax, ymax = bounds
        W, H = field.width, field.height

        fx = (x - xmin) / (xmax - xmin) * (W - 1)
        fy = (y - ymin) / (ymax - ymin) * (H - 1)
        i = int(np.floor(fx))
        j = int(np.floor(fy))

        if i < 0 or i >= W - 1 or j < 0 or j >= H - 1:
            return np.zeros(2)

        if self.interpolation == "nearest":
            return field.vectors[i, j]

        tx = fx - i
        ty = fy - j
        v = field.vectors
        return (
            (1 - tx) * (1 - ty) * v[i, j]
            + tx * (1 - ty) * v[i + 1, j]
            + (1 - tx) * ty * v[i, j + 1]
            + tx * ty * v[i + 1, j + 1]
        )

    def trace(
        self,
        field: VectorField,
        bounds: Bounds,
        seed: Sequence[float],
    ) -> NDArray[np.floating]:
        """
        Integrate one streamline from a seed.

        Returns:
            Points of shape (M, 2), M >= 1 (the seed is always included)
        """
        _check_bounds(bounds)
        xmin, ymin, xmax, ymax = bounds
        step = self.options.step_size

        x, y = float(seed[0]), float(seed[1])
        line = [(x, y)]

        for _ in range(self.options.max_steps):
            vector = self.sample(field, bounds, x, y)
            magnitude = float(np.hypot(vector[0], vector[1]))
            if magnitude < STAGNATION_EPS:
                break

            x += step * vector[0] / magnitude
            y += step * vector[1] / magnitude

            if x < xmin or x > xmax or y < ymin or y > ymax:
                break

            line.append((x, y))

            if len(line) * step >= self.options.line_length - _LENGTH_EPS:
                break

        return np.array(line, dtype=np.float64)

    def trace_all(
        self,
        field: VectorField,
        bounds: Bounds,
        seeds: NDArray[np.floating] | None = None,
    ) -> list[NDArray[np.floating]]:
        """
        Trace from every seed and keep lines that advanced at least one step.

        Args:
            field: Vector field to integrate
            bounds: World bounds (xmin, ymin, xmax, ymax) mapped onto the field
            seeds: Optional explicit seeds; defaults to the seed lattice

        Returns:
            List of streamlines, each of shape (M, 2) with M >= 2
        """
        if seeds is None:
            seeds = self.seed_points(bounds)

        lines = []
        for seed in seeds:
            line = self.trace(field, bounds, seed)
            if len(line) > 1:
                lines.append(line)

        logger.debug(f"Traced {len(lines)} streamlines from {len(seeds)} seeds")
        return lines


def streamlines_to_list(lines: Sequence[NDArray[np.floating]]) -> list[list[dict[str, float]]]:
    """External format: each line as a list of {x, y}."""
    return [[{"x": float(p[0]), "y": float(p[1])} for p in line] for line in lines]


def polyline_length(line: NDArray[np.floating]) -> float:
    """Exact arc length of a polyline."""
    if len(line) < 2:
        return 0.0
    return float(np.sum(np.linalg.norm(np.diff(line, axis=0), axis=1)))
