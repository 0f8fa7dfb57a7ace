"""
End-to-end distortion analysis.

Wires the engine components together the way the map view consumes them:

    grid -> travel times -> distortion -> vector field -> streamlines
                                      |-> tessellation, isochrones,
                                      |-> heatmap, network metrics

Configuration is a set of dataclasses, loadable from a YAML file.
"""

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

import numpy as np
import yaml
from loguru import logger
from numpy.typing import NDArray

from time_distortion.distortion import DistortionEngine, DistortionResult, Strategy
from time_distortion.geo import DEFAULT_SPEED_MPH, Metric
from time_distortion.grid import GridGenerator
from time_distortion.heatmap import HeatmapCell, HeatmapClassifier
from time_distortion.isochrones import (
    DEFAULT_BUFFER_MILES,
    DEFAULT_THRESHOLDS,
    IsochroneBand,
    IsochroneBuilder,
)
from time_distortion.metrics import DEFAULT_CONNECTIVITY_THRESHOLD, NetworkMetrics, NetworkSummary
from time_distortion.points import GridPoint, coordinates_of
from time_distortion.streamlines import StreamlineOptions, StreamlineTracer, streamlines_to_list
from time_distortion.tessellation import TessellationEngine
from time_distortion.travel_time import TravelTimeMatrix
from time_distortion.vector_field import (
    DEFAULT_GRID_SIZE,
    VectorField,
    VectorFieldSynthesizer,
    bounds_of,
    normalize_to_bounds,
)

# Map view default: Central Park, New York
DEFAULT_CENTER = (-73.970464, 40.777627)


@dataclass
class GridConfig:
    """Sample grid settings."""

    center: tuple[float, float] = DEFAULT_CENTER
    radius_miles: float = 0.5
    point_count: int = 25
    metric: Metric = "haversine"


@dataclass
class DistortionConfig:
    """Travel-time and distortion settings."""

    strategy: Strategy = "heuristic"
    factor: float = 1.0
    speed_mph: float = DEFAULT_SPEED_MPH


@dataclass
class FieldConfig:
    """Vector-field and streamline settings (normalized unit-square units)."""

    grid_size: int = DEFAULT_GRID_SIZE
    step_size: float = 0.1
    max_steps: int = 1000
    line_length: float = 10.0
    seed_density: int = 10
    interpolation: str = "nearest"


@dataclass
class AnalysisConfig:
    """Derived-layer settings."""

    isochrone_thresholds: tuple[float, ...] = DEFAULT_THRESHOLDS
    buffer_miles: float = DEFAULT_BUFFER_MILES
    connectivity_threshold: float = DEFAULT_CONNECTIVITY_THRESHOLD
    tessellation_size: tuple[float, float] = (1.0, 1.0)
    colormap: str = "viridis"


@dataclass
class PipelineConfig:
    """Complete pipeline configuration."""

    grid: GridConfig = field(default_factory=GridConfig)
    distortion: DistortionConfig = field(default_factory=DistortionConfig)
    flow: FieldConfig = field(default_factory=FieldConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "PipelineConfig":
        """
        Build a config from nested dictionaries.

        Missing sections and keys keep their defaults; unknown ones raise
        ValueError.
        """
        data = data or {}
        sections = {
            "grid": GridConfig,
            "distortion": DistortionConfig,
            "flow": FieldConfig,
            "analysis": AnalysisConfig,
        }
        unknown = set(data) - set(sections)
        if unknown:
            raise ValueError(f"Unknown config sections: {sorted(unknown)}")

        kwargs = {}
        for name, section_cls in sections.items():
            kwargs[name] = _build_section(section_cls, data.get(name) or {})
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _build_section(section_cls, values: dict[str, Any]):
    allowed = {f.name for f in fields(section_cls)}
    unknown = set(values) - allowed
    if unknown:
        raise ValueError(f"Unknown keys for {section_cls.__name__}: {sorted(unknown)}")

    # YAML gives lists where the dataclasses hold tuples
    converted = {k: tuple(v) if isinstance(v, list) else v for k, v in values.items()}
    return section_cls(**converted)


def load_config(config_path: str | Path) -> PipelineConfig:
    """Load a PipelineConfig from a YAML file."""
    with open(config_path) as f:
        return PipelineConfig.from_dict(yaml.safe_load(f))


@dataclass
class AnalysisResult:
    """
    Every layer produced by one pipeline run.

    Streamlines are in the coordinate system of the points; the vector field
    is defined on the unit square spanned by the original point bounds.
    Voronoi cells lie in (0, 0, *tessellation_size).
    """

    points: list[GridPoint]
    distorted: list[GridPoint]
    time_matrix: NDArray[np.floating]
    displacements: NDArray[np.floating]
    vector_field: VectorField
    streamlines: list[NDArray[np.floating]]
    cells: list[list[tuple[float, float]]]
    isochrones: list[IsochroneBand]
    heatmap: list[HeatmapCell]
    network: NetworkSummary
    bounds: tuple[float, float, float, float]
    tessellation_size: tuple[float, float] = (1.0, 1.0)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation using the external formats."""
        return {
            "points": [p.to_dict() for p in self.points],
            "distortedPoints": [p.to_dict() for p in self.distorted],
            "timeMatrix": self.time_matrix.tolist(),
            "vectorField": self.vector_field.to_list(),
            "streamlines": streamlines_to_list(self.streamlines),
            "voronoi": [[list(p) for p in cell] for cell in self.cells],
            "isochrones": [band.to_dict() for band in self.isochrones],
            "heatmap": [cell.to_dict() for cell in self.heatmap],
            "network": self.network.to_dict(),
            "bounds": list(self.bounds),
            "tessellationSize": list(self.tessellation_size),
        }


class DistortionPipeline:
    """
    Runs the full analysis for a PipelineConfig.

    Every stage is a pure function of the config, so two runs with the same
    config produce identical results.
    """

    def __init__(self, config: Optional[PipelineConfig] = None):
        self.config = config or PipelineConfig()

    def run(self, points: Optional[list[GridPoint]] = None) -> AnalysisResult:
        """
        Execute the pipeline.

        Args:
            points: Optional precomputed points; a grid is generated from the
                config when omitted

        Returns:
            AnalysisResult with every layer
        """
        cfg = self.config
        metric = cfg.grid.metric

        if points is None:
            points = GridGenerator(metric=metric).generate(
                cfg.grid.center, cfg.grid.radius_miles, cfg.grid.point_count
            )
        logger.info(f"Running distortion analysis on {len(points)} points")

        time_matrix = TravelTimeMatrix(cfg.distortion.speed_mph, metric=metric).compute(points)
        result = DistortionEngine(cfg.distortion.strategy).distort(
            points, time_matrix, cfg.distortion.factor
        )

        original_xy = coordinates_of(points)
        bounds = bounds_of(original_xy)
        vector_field, streamlines = self._flow(original_xy, result, bounds)
        cells = self._cells(result)

        isochrones = IsochroneBuilder(cfg.analysis.buffer_miles, metric=metric).build(
            [p.with_travel_time(d.travel_time) for p, d in zip(points, result.points)],
            cfg.analysis.isochrone_thresholds,
        )
        heatmap = HeatmapClassifier(cfg.analysis.colormap).classify_points(
            result.points, positions=points
        )
        network = NetworkMetrics(cfg.analysis.connectivity_threshold, metric=metric).compute(
            points, result.points, cfg.analysis.isochrone_thresholds
        )

        n_bands = sum(1 for b in isochrones if not b.is_empty)
        logger.info(
            f"Analysis complete: {len(streamlines)} streamlines, "
            f"{n_bands}/{len(isochrones)} isochrone bands, "
            f"max distortion {network.max_distortion:.3f} mi"
        )

        return AnalysisResult(
            points=list(points),
            distorted=result.points,
            time_matrix=time_matrix,
            displacements=result.displacements,
            vector_field=vector_field,
            streamlines=streamlines,
            cells=cells,
            isochrones=isochrones,
            heatmap=heatmap,
            network=network,
            bounds=bounds,
            tessellation_size=tuple(cfg.analysis.tessellation_size),
        )

    def _flow(
        self,
        original_xy: NDArray[np.floating],
        result: DistortionResult,
        bounds: tuple[float, float, float, float],
    ) -> tuple[VectorField, list[NDArray[np.floating]]]:
        """Synthesize the field on the unit square and trace it back into world units."""
        fc = self.config.flow
        vector_field = VectorFieldSynthesizer(fc.grid_size).synthesize(
            original_xy, result.displacements, bounds=bounds
        )
        tracer = StreamlineTracer(
            StreamlineOptions(fc.step_size, fc.max_steps, fc.line_length),
            seed_density=fc.seed_density,
            interpolation=fc.interpolation,
        )
        unit_lines = tracer.trace_all(vector_field, (0.0, 0.0, 1.0, 1.0))

        xmin, ymin, xmax, ymax = bounds
        origin = np.array([xmin, ymin])
        span = np.array([xmax - xmin, ymax - ymin])
        return vector_field, [origin + line * span for line in unit_lines]

    def _cells(
        self,
        result: DistortionResult,
    ) -> list[list[tuple[float, float]]]:
        """Voronoi cells of the distorted positions, scaled into the clip rectangle."""
        width, height = self.config.analysis.tessellation_size
        distorted_xy = coordinates_of(result.points)
        sites = normalize_to_bounds(distorted_xy, bounds_of(distorted_xy)) * np.array([width, height])
        return TessellationEngine().tessellate(sites, width, height)
