"""
Coordinate distortion driven by travel time.

Two strategies share a single interface:

- 'heuristic': each point is pushed radially away from a fixed anchor (the
  first point) by its mean travel time in hours, scaled by the distortion
  factor. Displacement is exactly linear in the factor.
- 'classical_mds': the time matrix is embedded in 2D by classical
  multidimensional scaling, then aligned onto the original coordinates with
  a similarity Procrustes fit. Each point moves by factor * (embedded -
  original), so when time is proportional to distance nothing moves.
"""

from dataclasses import dataclass
from typing import Literal, Sequence

import numpy as np
from loguru import logger
from numpy.typing import NDArray
from scipy.linalg import orthogonal_procrustes

from time_distortion.errors import ContractViolation
from time_distortion.points import GridPoint, coordinates_of

Strategy = Literal["heuristic", "classical_mds"]


@dataclass
class DistortionResult:
    """
    Output of a distortion pass.

    Attributes:
        points: Distorted points with travel_time populated
        displacements: Per-point displacement vectors of shape (N, 2)
        average_times: Mean travel time per point in minutes
        strategy: Strategy that produced the result
    """

    points: list[GridPoint]
    displacements: NDArray[np.floating]
    average_times: NDArray[np.floating]
    strategy: Strategy

    @property
    def magnitudes(self) -> NDArray[np.floating]:
        """Length of each displacement vector."""
        return np.linalg.norm(self.displacements, axis=1)


class DistortionEngine:
    """
    Displaces points according to a travel-time matrix.

    Attributes:
        strategy: 'heuristic' (default) or 'classical_mds'
    """

    def __init__(self, strategy: Strategy = "heuristic"):
        if strategy not in ("heuristic", "classical_mds"):
            raise ValueError(f"Unknown strategy: {strategy}")
        self.strategy = strategy

    def distort(
        self,
        points: Sequence[GridPoint],
        time_matrix: NDArray[np.floating],
        distortion_factor: float = 1.0,
    ) -> DistortionResult:
        """
        Distort a point list.

        Args:
            points: Input points
            time_matrix: Travel times of shape (N, N) in minutes
            distortion_factor: Non-negative strength, UI range [0, 5]

        Returns:
            DistortionResult with distorted points and displacements
        """
        M = np.asarray(time_matrix, dtype=np.float64)
        n = len(points)
        if M.shape != (n, n):
            raise ContractViolation(
                f"time_matrix shape {M.shape} does not match {n} points"
            )
        if distortion_factor < 0:
            raise ValueError(f"distortion_factor must be non-negative, got {distortion_factor}")

        X = coordinates_of(points)
        average_times = M.mean(axis=1) if n > 0 else np.zeros(0)

        if self.strategy == "heuristic":
            displacements = self._heuristic_displacements(X, average_times, distortion_factor)
        else:
            displacements = self._mds_displacements(X, M, distortion_factor)

        new_coords = X + displacements
        distorted = [
            GridPoint(
                id=p.id,
                coordinates=tuple(new_coords[i]),
                travel_time=float(average_times[i]),
                original_coordinates=p.original_coordinates or p.coordinates,
            )
            for i, p in enumerate(points)
        ]

        logger.debug(
            f"Distorted {n} points with {self.strategy} strategy "
            f"(factor={distortion_factor})"
        )
        return DistortionResult(
            points=distorted,
            displacements=displacements,
            average_times=average_times,
            strategy=self.strategy,
        )

    def _heuristic_displacements(
        self,
        X: NDArray[np.floating],
        average_times: NDArray[np.floating],
        factor: float,
    ) -> NDArray[np.floating]:
        """Radial push away from the first point, length avg_time/60 * factor."""
        n = X.shape[0]
        if n == 0:
            return np.zeros((0, 2))

        scale = (average_times / 60.0) * factor

        delta = X - X[0]
        direction = np.arctan2(delta[:, 1], delta[:, 0])
        # Coincident with the anchor: no defined direction, use 0
        direction[(delta[:, 0] == 0) & (delta[:, 1] == 0)] = 0.0

        return np.stack([scale * np.cos(direction), scale * np.sin(direction)], axis=1)

    def _mds_displacements(
        self,
        X: NDArray[np.floating],
        M: NDArray[np.floating],
        factor: float,
    ) -> NDArray[np.floating]:
        """Displacement toward the Procrustes-aligned classical MDS embedding."""
        n = X.shape[0]
        if n < 3:
            return np.zeros((n, 2))

        Y = classical_mds(M, n_components=2)
        aligned = align_similarity(Y, X)
        if aligned is None:
            return np.zeros((n, 2))

        return factor * (aligned - X)


def classical_mds(
    dissimilarities: NDArray[np.floating],
    n_components: int = 2,
) -> NDArray[np.floating]:
    """
    Classical (Torgerson) multidimensional scaling.

    Args:
        dissimilarities: Symmetric matrix D of shape (N, N)
        n_components: Embedding dimension

    Returns:
        Embedding of shape (N, n_components)
    """
    D = np.asarray(dissimilarities, dtype=np.float64)
    n = D.shape[0]

    # Double centering: B = -1/2 H D^2 H with H = I - J/n
    H = np.eye(n) - np.ones((n, n)) / n
    B = -0.5 * H @ (D ** 2) @ H
    B = (B + B.T) / 2

    eigenvalues, eigenvectors = np.linalg.eigh(B)

    # eigh returns ascending order; take the largest
    idx = np.argsort(eigenvalues)[::-1][:n_components]
    eigenvalues = np.maximum(eigenvalues[idx], 0.0)
    eigenvectors = eigenvectors[:, idx]

    embedding = eigenvectors * np.sqrt(eigenvalues)
    if embedding.shape[1] < n_components:
        padding = np.zeros((n, n_components - embedding.shape[1]))
        embedding = np.hstack([embedding, padding])

    return embedding


def align_similarity(
    source: NDArray[np.floating],
    target: NDArray[np.floating],
) -> NDArray[np.floating] | None:
    """
    Map source onto target with rotation, uniform scale and translation.

    Returns None when either configuration has no spread.
    """
    mu_s = source.mean(axis=0)
    mu_t = target.mean(axis=0)
    S = source - mu_s
    T = target - mu_t

    norm_s = np.sum(S ** 2)
    if norm_s < 1e-24 or np.sum(T ** 2) < 1e-24:
        return None

    R, _ = orthogonal_procrustes(S, T)
    rotated = S @ R
    scale = np.sum(rotated * T) / norm_s

    return scale * rotated + mu_t
