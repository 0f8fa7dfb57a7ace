"""
Static plotting functions for distortion analysis layers.

All functions return matplotlib Figure objects for flexibility in
saving/display.

Key Functions:
    plot_distortion: Original vs distorted positions with displacement links
    plot_streamlines: Flow paths traced through the distortion field
    plot_voronoi: Voronoi cells of the distorted positions
    plot_isochrones: Nested accessibility bands
    plot_heatmap: Points colored by travel-time intensity
    plot_network: Points sized by connectivity
    plot_layer: Dispatch by layer name for an AnalysisResult
"""

from typing import Sequence

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.collections import LineCollection, PolyCollection
from numpy.typing import NDArray

from time_distortion.heatmap import HeatmapCell
from time_distortion.isochrones import IsochroneBand
from time_distortion.pipeline import AnalysisResult
from time_distortion.points import GridPoint, coordinates_of
from time_distortion.reveal import interpolate_positions
from viz.styles import (
    VizStyle,
    create_figure,
    format_axis_labels,
    get_band_colors,
    get_cmap_time,
)

LAYERS = ("distortion", "streamlines", "voronoi", "isochrones", "heatmap", "network")


# =============================================================================
# Point Layers
# =============================================================================


def plot_distortion(
    points: Sequence[GridPoint],
    distorted: Sequence[GridPoint],
    progress: float = 1.0,
    style: VizStyle | None = None,
    title: str | None = "Travel-Time Distortion",
) -> plt.Figure:
    """
    Plot original positions, distorted positions and the links between them.

    Args:
        points: Original points.
        distorted: Distorted points, parallel to points.
        progress: Reveal progress in [0, 1]; distorted markers are drawn
            part-way along their displacement.
        style: Visualization style.
        title: Plot title.

    Returns:
        Matplotlib figure.
    """
    if style is None:
        style = VizStyle()
    palette = style.palette

    original_xy = coordinates_of(points)
    distorted_xy = coordinates_of(distorted)
    current = interpolate_positions(original_xy, distorted_xy, progress)

    fig, ax = create_figure(style=style)

    links = np.stack([original_xy, distorted_xy], axis=1)
    ax.add_collection(LineCollection(
        links,
        colors=palette.displacement,
        linestyles="dashed",
        linewidths=style.edge_lw,
    ))
    ax.scatter(
        original_xy[:, 0], original_xy[:, 1],
        s=style.scatter_size, c=palette.original,
        alpha=palette.point_alpha, label="Original",
    )
    ax.scatter(
        current[:, 0], current[:, 1],
        s=style.scatter_size, c=palette.distorted,
        alpha=palette.point_alpha, label="Distorted",
    )

    ax.autoscale()
    ax.set_aspect("equal", adjustable="datalim")
    ax.legend(loc="upper right")
    format_axis_labels(ax, title=title, style=style)
    return fig


def plot_heatmap(
    cells: Sequence[HeatmapCell],
    style: VizStyle | None = None,
    title: str | None = "Travel-Time Heatmap",
) -> plt.Figure:
    """Scatter heatmap cells using their precomputed colors."""
    if style is None:
        style = VizStyle()

    fig, ax = create_figure(style=style)
    if cells:
        xy = np.array([c.position for c in cells])
        ax.scatter(
            xy[:, 0], xy[:, 1],
            s=style.scatter_size * 4,
            c=[c.color for c in cells],
            alpha=0.6,
            edgecolors=[c.color for c in cells],
        )
    ax.set_aspect("equal", adjustable="datalim")
    format_axis_labels(ax, title=title, style=style)
    return fig


def plot_network(
    points: Sequence[GridPoint],
    connectivity: Sequence[int] | NDArray,
    style: VizStyle | None = None,
    title: str | None = "Connectivity",
) -> plt.Figure:
    """Points sized by connectivity: 50 + 10 per reachable point."""
    if style is None:
        style = VizStyle()
    palette = style.palette

    fig, ax = create_figure(style=style)
    xy = coordinates_of(points)
    sizes = 50 + 10 * np.asarray(connectivity, dtype=np.float64)
    if len(xy):
        ax.scatter(
            xy[:, 0], xy[:, 1],
            s=sizes, c=palette.network, edgecolors=palette.network_edge,
            linewidths=2, alpha=0.6,
        )
    ax.set_aspect("equal", adjustable="datalim")
    format_axis_labels(ax, title=title, style=style)
    return fig


# =============================================================================
# Field and Polygon Layers
# =============================================================================


def plot_streamlines(
    streamlines: Sequence[NDArray[np.floating]],
    bounds: tuple[float, float, float, float] | None = None,
    style: VizStyle | None = None,
    title: str | None = "Distortion Streamlines",
    color_by_progress: bool = True,
) -> plt.Figure:
    """
    Draw streamlines, optionally shading each from start to end.

    Args:
        streamlines: Lines of shape (M, 2).
        bounds: Optional axis limits (xmin, ymin, xmax, ymax).
        style: Visualization style.
        title: Plot title.
        color_by_progress: Color segments by position along the line.

    Returns:
        Matplotlib figure.
    """
    if style is None:
        style = VizStyle()
    palette = style.palette

    fig, ax = create_figure(style=style)

    for line in streamlines:
        if len(line) < 2:
            continue
        segments = np.stack([line[:-1], line[1:]], axis=1)
        if color_by_progress:
            lc = LineCollection(
                segments,
                cmap=get_cmap_time(),
                linewidths=style.streamline_lw,
                alpha=palette.streamline_alpha,
            )
            lc.set_array(np.linspace(0, 1, len(segments)))
        else:
            lc = LineCollection(
                segments,
                colors=palette.streamline,
                linewidths=style.streamline_lw,
                alpha=palette.streamline_alpha,
            )
        ax.add_collection(lc)

    if bounds is not None:
        ax.set_xlim(bounds[0], bounds[2])
        ax.set_ylim(bounds[1], bounds[3])
    else:
        ax.autoscale()
    ax.set_aspect("equal", adjustable="datalim")
    format_axis_labels(ax, title=title, style=style)
    return fig


def plot_voronoi(
    cells: Sequence[Sequence[tuple[float, float]]],
    width: float = 1.0,
    height: float = 1.0,
    values: Sequence[float] | NDArray | None = None,
    style: VizStyle | None = None,
    title: str | None = "Voronoi Partition",
) -> plt.Figure:
    """
    Fill Voronoi cells, colored by values when given.

    Empty cells are skipped.
    """
    if style is None:
        style = VizStyle()
    palette = style.palette

    fig, ax = create_figure(style=style)

    keep = [i for i, c in enumerate(cells) if len(c) > 0]
    polygons = [np.asarray(cells[i]) for i in keep]
    collection = PolyCollection(
        polygons,
        edgecolors=palette.cell_edge,
        linewidths=style.edge_lw,
        alpha=palette.cell_alpha,
    )
    if values is not None and keep:
        collection.set_array(np.asarray(values, dtype=np.float64)[keep])
        collection.set_cmap(get_cmap_time())
        plt.colorbar(collection, ax=ax, label="Travel time (min)", shrink=0.8)
    else:
        collection.set_facecolor(palette.original)
    ax.add_collection(collection)

    ax.set_xlim(0, width)
    ax.set_ylim(0, height)
    ax.set_aspect("equal")
    format_axis_labels(ax, xlabel="x", ylabel="y", title=title, style=style)
    return fig


def plot_isochrones(
    bands: Sequence[IsochroneBand],
    points: Sequence[GridPoint] | None = None,
    style: VizStyle | None = None,
    title: str | None = "Isochrones",
) -> plt.Figure:
    """Draw bands from the widest threshold down so nearer bands stay visible."""
    if style is None:
        style = VizStyle()
    palette = style.palette

    fig, ax = create_figure(style=style)
    colors = get_band_colors(len(bands))

    order = sorted(range(len(bands)), key=lambda i: bands[i].threshold, reverse=True)
    for i in order:
        band = bands[i]
        if band.is_empty:
            continue
        ring = np.asarray(band.coordinates)
        ax.fill(
            ring[:, 0], ring[:, 1],
            facecolor=colors[i], edgecolor=colors[i],
            alpha=palette.isochrone_alpha,
            label=f"{band.threshold:g} min",
        )

    if points:
        xy = coordinates_of(points)
        ax.scatter(xy[:, 0], xy[:, 1], s=style.scatter_size / 2, c=palette.original)

    if any(not b.is_empty for b in bands):
        ax.legend(loc="upper right")
    ax.set_aspect("equal", adjustable="datalim")
    format_axis_labels(ax, title=title, style=style)
    return fig


def plot_layer(
    result: AnalysisResult,
    layer: str,
    style: VizStyle | None = None,
) -> plt.Figure:
    """Render one named layer of an AnalysisResult."""
    if layer == "distortion":
        return plot_distortion(result.points, result.distorted, style=style)
    elif layer == "streamlines":
        return plot_streamlines(result.streamlines, bounds=result.bounds, style=style)
    elif layer == "voronoi":
        times = [p.travel_time or 0.0 for p in result.distorted]
        width, height = result.tessellation_size
        return plot_voronoi(result.cells, width, height, values=times, style=style)
    elif layer == "isochrones":
        return plot_isochrones(result.isochrones, result.points, style=style)
    elif layer == "heatmap":
        return plot_heatmap(result.heatmap, style=style)
    elif layer == "network":
        return plot_network(result.points, result.network.connectivity, style=style)
    raise ValueError(f"Unknown layer: {layer}. Choose from {', '.join(LAYERS)}")
