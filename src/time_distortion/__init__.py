"""
Time Distortion: accessibility maps warped by travel time.

Warps geographic point positions according to travel time rather than
physical distance, then derives geometric analyses from the warped field.

Key concepts:
- Generates a point lattice over a circular region
- Estimates travel times from straight-line distance at a constant speed
- Displaces points by a time-derived offset (heuristic or classical MDS)
- Interpolates displacements into a vector field and traces streamlines
- Derives Voronoi cells, isochrone bands, heatmaps and network metrics
"""

__version__ = "0.1.0"


def __getattr__(name):
    """Lazy import of the public API."""
    # Data model
    if name == "GridPoint":
        from time_distortion.points import GridPoint
        return GridPoint

    # Engine components
    elif name == "GridGenerator":
        from time_distortion.grid import GridGenerator
        return GridGenerator
    elif name == "TravelTimeMatrix":
        from time_distortion.travel_time import TravelTimeMatrix
        return TravelTimeMatrix
    elif name == "DistortionEngine":
        from time_distortion.distortion import DistortionEngine
        return DistortionEngine
    elif name == "VectorFieldSynthesizer":
        from time_distortion.vector_field import VectorFieldSynthesizer
        return VectorFieldSynthesizer
    elif name == "VectorField":
        from time_distortion.vector_field import VectorField
        return VectorField
    elif name == "StreamlineTracer":
        from time_distortion.streamlines import StreamlineTracer
        return StreamlineTracer
    elif name == "StreamlineOptions":
        from time_distortion.streamlines import StreamlineOptions
        return StreamlineOptions
    elif name == "TessellationEngine":
        from time_distortion.tessellation import TessellationEngine
        return TessellationEngine
    elif name == "IsochroneBuilder":
        from time_distortion.isochrones import IsochroneBuilder
        return IsochroneBuilder
    elif name == "HeatmapClassifier":
        from time_distortion.heatmap import HeatmapClassifier
        return HeatmapClassifier
    elif name == "NetworkMetrics":
        from time_distortion.metrics import NetworkMetrics
        return NetworkMetrics

    # Orchestration
    elif name == "DistortionPipeline":
        from time_distortion.pipeline import DistortionPipeline
        return DistortionPipeline
    elif name == "PipelineConfig":
        from time_distortion.pipeline import PipelineConfig
        return PipelineConfig

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    # Data model
    "GridPoint",
    # Engine
    "GridGenerator",
    "TravelTimeMatrix",
    "DistortionEngine",
    "VectorFieldSynthesizer",
    "VectorField",
    "StreamlineTracer",
    "StreamlineOptions",
    "TessellationEngine",
    "IsochroneBuilder",
    "HeatmapClassifier",
    "NetworkMetrics",
    # Orchestration
    "DistortionPipeline",
    "PipelineConfig",
]
