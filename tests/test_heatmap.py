"""Tests for heatmap classification."""

import numpy as np
import pytest

from time_distortion.errors import ContractViolation
from time_distortion.heatmap import HeatmapClassifier, hsl_ramp
from time_distortion.points import GridPoint, points_from_coordinates


class TestNormalize:
    """Tests for min-max normalization."""

    def test_endpoints(self):
        out = HeatmapClassifier().normalize([10.0, 20.0, 15.0])
        assert np.allclose(out, [0.0, 1.0, 0.5])

    def test_constant_input(self):
        out = HeatmapClassifier().normalize([7.0, 7.0, 7.0])
        assert np.array_equal(out, [0.0, 0.0, 0.0])

    def test_empty_input(self):
        assert HeatmapClassifier().normalize([]).size == 0

    def test_in_unit_interval(self):
        rng = np.random.default_rng(3)
        out = HeatmapClassifier().normalize(rng.normal(size=100))
        assert out.min() == 0.0
        assert out.max() == 1.0


class TestColors:
    """Tests for color mapping."""

    def test_hsl_ramp_endpoints(self):
        assert hsl_ramp(0.0) == "#2626d9"
        assert hsl_ramp(1.0) == "#d92626"

    def test_viridis(self):
        c = HeatmapClassifier("viridis")
        assert c.color(0.0) == "#440154"
        assert c.color(1.0) == "#fde725"

    def test_unknown_colormap(self):
        with pytest.raises(ValueError):
            HeatmapClassifier("not-a-colormap")


class TestClassify:
    """Tests for HeatmapClassifier.classify."""

    def test_preserves_order_and_values(self):
        samples = [((0.0, 0.0), 3.0), ((1.0, 0.0), 1.0), ((2.0, 0.0), 5.0)]
        cells = HeatmapClassifier("hsl").classify(samples)

        assert [c.position for c in cells] == [(0.0, 0.0), (1.0, 0.0), (2.0, 0.0)]
        assert [c.value for c in cells] == [3.0, 1.0, 5.0]
        assert [c.intensity for c in cells] == pytest.approx([0.5, 0.0, 1.0])
        assert cells[1].color == "#2626d9"
        assert cells[2].color == "#d92626"

    def test_classify_points_with_positions(self):
        """Distorted times drawn at original positions."""
        original = points_from_coordinates([(0, 0), (1, 1)])
        distorted = points_from_coordinates([(5, 5), (6, 6)], travel_times=[2.0, 4.0])
        cells = HeatmapClassifier().classify_points(distorted, positions=original)

        assert [c.position for c in cells] == [(0.0, 0.0), (1.0, 1.0)]
        assert [c.value for c in cells] == [2.0, 4.0]

    def test_missing_time_is_zero(self):
        points = [
            GridPoint(id="a", coordinates=(0, 0)),
            GridPoint(id="b", coordinates=(1, 0), travel_time=10.0),
        ]
        cells = HeatmapClassifier().classify_points(points)
        assert [c.intensity for c in cells] == [0.0, 1.0]

    def test_length_mismatch(self):
        points = points_from_coordinates([(0, 0), (1, 1)], travel_times=[1, 2])
        with pytest.raises(ContractViolation):
            HeatmapClassifier().classify_points(points, positions=points[:1])

    def test_to_dict(self):
        cell = HeatmapClassifier().classify([((1.0, 2.0), 3.0)])[0]
        data = cell.to_dict()
        assert data["coordinates"] == [1.0, 2.0]
        assert data["intensity"] == 0.0
