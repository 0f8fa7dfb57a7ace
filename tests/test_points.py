"""Tests for the point data model and geographic helpers."""

import dataclasses

import numpy as np
import pytest

from time_distortion.geo import (
    LocalProjection,
    SQ_METERS_TO_SQ_MILES,
    distance,
    haversine_miles,
    pairwise_distances,
)
from time_distortion.points import (
    GridPoint,
    coordinates_of,
    original_coordinates_of,
    points_from_coordinates,
    travel_times_of,
)


class TestGridPoint:
    """Tests for GridPoint."""

    def test_coordinates_normalized_to_float_tuple(self):
        """Test that coordinates are stored as float tuples."""
        p = GridPoint(id="a", coordinates=[1, 2])
        assert p.coordinates == (1.0, 2.0)
        assert isinstance(p.coordinates, tuple)

    def test_frozen(self):
        """Test that points cannot be mutated in place."""
        p = GridPoint(id="a", coordinates=(0, 0))
        with pytest.raises(dataclasses.FrozenInstanceError):
            p.coordinates = (1.0, 1.0)

    def test_with_coordinates_keeps_original(self):
        """Test that moving a point keeps its original coordinates."""
        p = GridPoint(id="a", coordinates=(0, 0), original_coordinates=(0, 0))
        moved = p.with_coordinates((3, 4))

        assert moved.coordinates == (3.0, 4.0)
        assert moved.original_coordinates == (0.0, 0.0)
        assert p.coordinates == (0.0, 0.0)

    def test_negative_travel_time_rejected(self):
        """Test travel time validation."""
        with pytest.raises(ValueError):
            GridPoint(id="a", coordinates=(0, 0), travel_time=-1.0)

    def test_dict_round_trip(self):
        """Test external format keys."""
        p = GridPoint(id="a", coordinates=(1, 2), travel_time=3.5, original_coordinates=(0, 0))
        data = p.to_dict()

        assert data == {
            "id": "a",
            "coordinates": [1.0, 2.0],
            "travelTime": 3.5,
            "originalCoordinates": [0.0, 0.0],
        }
        assert GridPoint.from_dict(data) == p

    def test_optional_keys_omitted(self):
        """Test that unset optional fields are not serialized."""
        data = GridPoint(id="a", coordinates=(1, 2)).to_dict()
        assert "travelTime" not in data
        assert "originalCoordinates" not in data


class TestPointArrays:
    """Tests for array helpers."""

    def test_coordinates_of(self):
        points = points_from_coordinates([(0, 0), (1, 2)])
        assert coordinates_of(points).shape == (2, 2)
        assert coordinates_of([]).shape == (0, 2)

    def test_travel_times_missing_as_zero(self):
        points = points_from_coordinates([(0, 0), (1, 2)], travel_times=[None, 4.0])
        assert np.array_equal(travel_times_of(points), [0.0, 4.0])

    def test_original_falls_back_to_current(self):
        points = [GridPoint(id="a", coordinates=(5, 5))]
        assert np.array_equal(original_coordinates_of(points), [[5.0, 5.0]])

    def test_sequential_ids(self):
        points = points_from_coordinates([(0, 0), (1, 1), (2, 2)])
        assert [p.id for p in points] == ["point-0", "point-1", "point-2"]


class TestGeo:
    """Tests for distance metrics and projections."""

    def test_planar_distance(self):
        assert distance(np.array([0.0, 0.0]), np.array([3.0, 4.0])) == pytest.approx(5.0)

    def test_haversine_one_degree_latitude(self):
        """One degree of latitude is about 69 miles."""
        d = haversine_miles(np.array([0.0, 0.0]), np.array([0.0, 1.0]))
        assert d == pytest.approx(69.09, rel=1e-3)

    def test_pairwise_symmetric(self):
        rng = np.random.default_rng(0)
        X = rng.uniform(-74, -73, size=(15, 2))
        for metric in ("planar", "haversine"):
            D = pairwise_distances(X, metric=metric)
            assert np.array_equal(D, D.T)
            assert np.all(np.diag(D) == 0)

    def test_unknown_metric(self):
        with pytest.raises(ValueError):
            pairwise_distances(np.zeros((3, 2)), metric="manhattan")

    def test_projection_round_trip(self):
        """Test forward/inverse of the local projection."""
        X = np.array([[-73.97, 40.77], [-73.96, 40.78], [-73.98, 40.79]])
        proj = LocalProjection(X.mean(axis=0), metric="haversine")
        assert np.allclose(proj.inverse(proj.forward(X)), X, atol=1e-12)

    def test_projection_distances_match_haversine(self):
        """Projected distances agree with great-circle distances at small scale."""
        a = np.array([-73.97, 40.77])
        b = np.array([-73.96, 40.78])
        proj = LocalProjection(a, metric="haversine")
        P = proj.forward(np.array([a, b]))
        meters = np.linalg.norm(P[1] - P[0])
        assert meters / 1609.344 == pytest.approx(float(haversine_miles(a, b)), rel=1e-3)

    def test_area_conversion(self):
        assert LocalProjection((0, 0), metric="planar").area_to_square_miles(2.0) == 2.0
        geo = LocalProjection((0, 0), metric="haversine")
        assert geo.area_to_square_miles(1e6) == pytest.approx(1e6 * SQ_METERS_TO_SQ_MILES)
        assert geo.miles_to_units(1.0) == pytest.approx(1609.344)
