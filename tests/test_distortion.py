"""Tests for coordinate distortion and reveal progress."""

import numpy as np
import pytest

from time_distortion.distortion import (
    DistortionEngine,
    align_similarity,
    classical_mds,
)
from time_distortion.errors import ContractViolation
from time_distortion.geo import pairwise_distances
from time_distortion.points import GridPoint, coordinates_of, points_from_coordinates
from time_distortion.reveal import advance, frame_schedule, interpolate_positions, is_complete
from time_distortion.travel_time import TravelTimeMatrix


@pytest.fixture
def grid_points():
    """Small planar point set."""
    rng = np.random.default_rng(7)
    return points_from_coordinates(rng.uniform(0, 3, size=(12, 2)))


@pytest.fixture
def time_matrix(grid_points):
    return TravelTimeMatrix().compute(grid_points)


class TestHeuristicDistortion:
    """Tests for the default radial heuristic."""

    def test_displacement_linear_in_factor(self, grid_points, time_matrix):
        """Doubling the factor exactly doubles every displacement."""
        engine = DistortionEngine()
        r1 = engine.distort(grid_points, time_matrix, distortion_factor=1.0)
        r2 = engine.distort(grid_points, time_matrix, distortion_factor=2.0)

        assert np.array_equal(r2.displacements, 2.0 * r1.displacements)
        assert np.array_equal(r2.magnitudes, 2.0 * r1.magnitudes)

    def test_magnitude_is_average_hours(self, grid_points, time_matrix):
        """Displacement length equals mean travel time in hours times factor."""
        result = DistortionEngine().distort(grid_points, time_matrix, distortion_factor=3.0)
        expected = time_matrix.mean(axis=1) / 60.0 * 3.0
        assert np.allclose(result.magnitudes, expected)

    def test_radial_direction(self, grid_points, time_matrix):
        """Points move away from the first point."""
        result = DistortionEngine().distort(grid_points, time_matrix)
        X = coordinates_of(grid_points)
        outward = X[1:] - X[0]
        dots = np.sum(outward * result.displacements[1:], axis=1)
        assert np.all(dots > 0)

    def test_anchor_moves_along_x(self, grid_points, time_matrix):
        """The anchor has no direction to itself and uses angle 0."""
        result = DistortionEngine().distort(grid_points, time_matrix)
        assert result.displacements[0, 1] == 0.0
        assert result.displacements[0, 0] >= 0.0

    def test_travel_time_populated(self, grid_points, time_matrix):
        result = DistortionEngine().distort(grid_points, time_matrix)
        times = np.array([p.travel_time for p in result.points])
        assert np.allclose(times, time_matrix.mean(axis=1))

    def test_original_coordinates_preserved(self, grid_points, time_matrix):
        result = DistortionEngine().distort(grid_points, time_matrix)
        for before, after in zip(grid_points, result.points):
            assert after.original_coordinates == before.coordinates
            assert after.id == before.id

    def test_inputs_untouched(self, grid_points, time_matrix):
        before = coordinates_of(grid_points).copy()
        DistortionEngine().distort(grid_points, time_matrix, distortion_factor=5.0)
        assert np.array_equal(coordinates_of(grid_points), before)

    def test_single_point(self):
        """A lone point has no direction and zero mean time."""
        points = [GridPoint(id="solo", coordinates=(1.0, 2.0))]
        result = DistortionEngine().distort(points, np.zeros((1, 1)))

        assert np.all(np.isfinite(result.displacements))
        assert result.points[0].coordinates == (1.0, 2.0)
        assert result.points[0].travel_time == 0.0

    def test_zero_factor_no_movement(self, grid_points, time_matrix):
        result = DistortionEngine().distort(grid_points, time_matrix, distortion_factor=0.0)
        assert np.array_equal(coordinates_of(result.points), coordinates_of(grid_points))

    def test_shape_mismatch(self, grid_points):
        with pytest.raises(ContractViolation):
            DistortionEngine().distort(grid_points, np.zeros((3, 3)))

    def test_negative_factor(self, grid_points, time_matrix):
        with pytest.raises(ValueError):
            DistortionEngine().distort(grid_points, time_matrix, distortion_factor=-1.0)

    def test_unknown_strategy(self):
        with pytest.raises(ValueError):
            DistortionEngine(strategy="force_directed")

    def test_deterministic(self, grid_points, time_matrix):
        engine = DistortionEngine()
        a = engine.distort(grid_points, time_matrix)
        b = engine.distort(grid_points, time_matrix)
        assert np.array_equal(a.displacements, b.displacements)


class TestClassicalMDS:
    """Tests for the MDS strategy."""

    def test_embedding_preserves_planar_distances(self):
        rng = np.random.default_rng(3)
        X = rng.uniform(0, 10, size=(15, 2))
        D = pairwise_distances(X)
        Y = classical_mds(D)

        assert Y.shape == (15, 2)
        assert np.allclose(pairwise_distances(Y), D, atol=1e-8)

    def test_similarity_alignment_recovers_transform(self):
        rng = np.random.default_rng(4)
        X = rng.uniform(0, 1, size=(10, 2))
        theta = 0.7
        R = np.array([[np.cos(theta), -np.sin(theta)], [np.sin(theta), np.cos(theta)]])
        Y = 3.0 * X @ R + np.array([5.0, -2.0])

        assert np.allclose(align_similarity(Y, X), X, atol=1e-10)

    def test_alignment_degenerate(self):
        assert align_similarity(np.zeros((4, 2)), np.ones((4, 2))) is None

    def test_uniform_speed_no_displacement(self, grid_points, time_matrix):
        """When time is proportional to distance, nothing moves."""
        result = DistortionEngine("classical_mds").distort(grid_points, time_matrix)
        assert np.allclose(result.displacements, 0.0, atol=1e-9)

    def test_congestion_moves_points(self, grid_points, time_matrix):
        """Slowing travel to one point pushes it away."""
        M = time_matrix.copy()
        M[0, 1:] *= 3.0
        M[1:, 0] *= 3.0
        r1 = DistortionEngine("classical_mds").distort(grid_points, M, distortion_factor=1.0)
        r2 = DistortionEngine("classical_mds").distort(grid_points, M, distortion_factor=2.0)

        assert r1.magnitudes.max() > 1e-3
        assert np.allclose(r2.displacements, 2.0 * r1.displacements)

    def test_few_points(self):
        points = points_from_coordinates([(0, 0), (1, 0)])
        M = TravelTimeMatrix().compute(points)
        result = DistortionEngine("classical_mds").distort(points, M)
        assert np.array_equal(result.displacements, np.zeros((2, 2)))
        assert result.points[1].travel_time == pytest.approx(1.0)


class TestReveal:
    """Tests for reveal progress."""

    def test_advance(self):
        assert advance(0.0, 500.0) == pytest.approx(0.5)
        assert advance(0.9, 500.0) == 1.0
        assert advance(0.2, -1000.0) == 0.0

    def test_is_complete(self):
        assert not is_complete(0.99)
        assert is_complete(advance(0.99, 100.0))

    def test_interpolate(self):
        A = np.array([[0.0, 0.0], [1.0, 1.0]])
        B = np.array([[2.0, 0.0], [1.0, 3.0]])
        assert np.allclose(interpolate_positions(A, B, 0.5), [[1.0, 0.0], [1.0, 2.0]])
        assert np.allclose(interpolate_positions(A, B, 0.0), A)
        assert np.allclose(interpolate_positions(A, B, 1.0), B)

    def test_interpolate_mismatch(self):
        with pytest.raises(ContractViolation):
            interpolate_positions(np.zeros((2, 2)), np.zeros((3, 2)), 0.5)

    def test_frame_schedule(self):
        schedule = frame_schedule(1.0, rate=0.25)
        assert schedule[0] == 0.0
        assert schedule[-1] == 1.0
        assert np.all(np.diff(schedule) > 0)
        assert schedule == [0.0, 0.25, 0.5, 0.75, 1.0]

    def test_frame_schedule_invalid(self):
        with pytest.raises(ValueError):
            frame_schedule(0.0)
