"""Tests for grid generation and travel-time matrices."""

import numpy as np
import pytest

from time_distortion.geo import distance
from time_distortion.grid import GridGenerator
from time_distortion.points import coordinates_of, points_from_coordinates
from time_distortion.travel_time import TravelTimeMatrix


class TestGridGenerator:
    """Tests for GridGenerator."""

    @pytest.fixture
    def planar_grid(self):
        """21-point planar grid: 5x5 lattice with corners outside the circle."""
        return GridGenerator(metric="planar").generate((0.0, 0.0), 1.0, 25)

    def test_cell_size(self):
        assert GridGenerator().cell_size(1.0, 25) == pytest.approx(0.4)

    def test_points_inside_circle(self, planar_grid):
        X = coordinates_of(planar_grid)
        assert np.all(np.hypot(X[:, 0], X[:, 1]) <= 1.0 + 1e-9)

    def test_planar_count(self, planar_grid):
        """Corner lattice points fall outside the circle."""
        assert len(planar_grid) == 21

    def test_center_included(self, planar_grid):
        X = coordinates_of(planar_grid)
        assert np.any(np.all(np.isclose(X, 0.0), axis=1))

    def test_ids_sequential(self, planar_grid):
        assert [p.id for p in planar_grid] == [f"point-{i}" for i in range(len(planar_grid))]

    def test_original_coordinates_set(self, planar_grid):
        for p in planar_grid:
            assert p.original_coordinates == p.coordinates
            assert p.travel_time is None

    def test_row_major_order(self, planar_grid):
        """Rows by ascending y, x ascending within a row."""
        X = coordinates_of(planar_grid)
        keys = [(round(y, 9), round(x, 9)) for x, y in X]
        assert keys == sorted(keys)

    def test_haversine_grid(self):
        """Geographic grid stays within the radius in miles."""
        center = (-73.970464, 40.777627)
        points = GridGenerator(metric="haversine").generate(center, 0.5, 25)
        X = coordinates_of(points)
        d = distance(X, np.array(center), metric="haversine")

        assert np.all(d <= 0.5 + 1e-6)
        assert 15 <= len(points) <= 35

    def test_count_approximates_request(self):
        for count in (25, 100, 400):
            points = GridGenerator(metric="planar").generate((0, 0), 2.0, count)
            # Circle covers pi/4 of the bounding square
            assert 0.5 * count <= len(points) <= 1.2 * count

    def test_invalid_inputs(self):
        gen = GridGenerator(metric="planar")
        with pytest.raises(ValueError):
            gen.generate((0, 0), 0.0, 25)
        with pytest.raises(ValueError):
            gen.generate((0, 0), 1.0, 0)
        with pytest.raises(ValueError):
            GridGenerator(metric="euclid")


class TestTravelTimeMatrix:
    """Tests for TravelTimeMatrix."""

    @pytest.fixture
    def triangle(self):
        return points_from_coordinates([(0, 0), (1, 0), (0, 1)])

    def test_scenario_unit_triangle(self, triangle):
        """At 30 mph, each mile takes two minutes."""
        M = TravelTimeMatrix().compute(triangle)
        expected = np.array([
            [0.0, 2.0, 2.0],
            [2.0, 0.0, 2 * np.sqrt(2)],
            [2.0, 2 * np.sqrt(2), 0.0],
        ])
        assert np.allclose(M, expected)
        assert M[1, 2] == pytest.approx(2.83, abs=0.01)

    def test_symmetric_zero_diagonal(self):
        rng = np.random.default_rng(42)
        points = points_from_coordinates(rng.uniform(0, 5, size=(40, 2)))
        M = TravelTimeMatrix().compute(points)

        assert np.array_equal(M, M.T)
        assert np.all(np.diag(M) == 0)
        assert np.all(M >= 0)

    def test_haversine_symmetric(self):
        rng = np.random.default_rng(1)
        X = np.column_stack([rng.uniform(-74.0, -73.9, 20), rng.uniform(40.7, 40.8, 20)])
        M = TravelTimeMatrix(metric="haversine").compute(points_from_coordinates(X))
        assert np.array_equal(M, M.T)

    def test_speed_scales_time(self, triangle):
        slow = TravelTimeMatrix(speed_mph=30).compute(triangle)
        fast = TravelTimeMatrix(speed_mph=60).compute(triangle)
        assert np.allclose(fast, slow / 2)

    def test_single_and_empty(self):
        assert TravelTimeMatrix().compute(points_from_coordinates([(1, 1)])).shape == (1, 1)
        assert TravelTimeMatrix().compute([]).shape == (0, 0)

    def test_invalid_speed(self):
        with pytest.raises(ValueError):
            TravelTimeMatrix(speed_mph=0)
