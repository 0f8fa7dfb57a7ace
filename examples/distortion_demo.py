"""
Time Distortion Demo

Runs the complete analysis around the default map center and renders:
1. The distortion reveal at several progress values
2. Streamlines of the displacement field
3. Voronoi partition of the distorted points
4. Isochrone bands and the travel-time heatmap

Usage:
    python examples/distortion_demo.py
"""

import sys
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import matplotlib.pyplot as plt
from matplotlib.gridspec import GridSpec

from time_distortion.pipeline import DistortionPipeline, PipelineConfig
from time_distortion.reveal import frame_schedule, interpolate_positions
from time_distortion.points import coordinates_of
from viz.styles import ColorPalette, apply_style, save_figure


def plot_reveal(result, n_frames: int = 4):
    """Distorted positions part-way through the reveal."""
    palette = ColorPalette()
    original = coordinates_of(result.points)
    distorted = coordinates_of(result.distorted)

    # One frame every 250 ms at the default rate
    schedule = frame_schedule(250.0)[-n_frames:]

    fig, axes = plt.subplots(1, len(schedule), figsize=(4 * len(schedule), 4))
    for ax, progress in zip(axes, schedule):
        current = interpolate_positions(original, distorted, progress)
        ax.scatter(original[:, 0], original[:, 1], s=10, color=palette.original, alpha=0.4)
        ax.scatter(current[:, 0], current[:, 1], s=14, color=palette.distorted)
        ax.set_title(f"progress = {progress:.2f}")
        ax.set_aspect("equal", adjustable="datalim")
    return fig


def plot_layers(result):
    """Streamlines, Voronoi cells, isochrones and heatmap side by side."""
    palette = ColorPalette()
    fig = plt.figure(figsize=(12, 10))
    gs = GridSpec(2, 2, figure=fig)

    ax = fig.add_subplot(gs[0, 0])
    for line in result.streamlines:
        ax.plot(line[:, 0], line[:, 1], color=palette.streamline, linewidth=0.8)
    ax.set_title(f"Streamlines ({len(result.streamlines)})")

    ax = fig.add_subplot(gs[0, 1])
    for cell in result.cells:
        if cell:
            xs, ys = zip(*(cell + cell[:1]))
            ax.plot(xs, ys, color=palette.cell_edge, linewidth=0.6)
    ax.set_title("Voronoi partition")

    ax = fig.add_subplot(gs[1, 0])
    for band in reversed(result.isochrones):
        if not band.is_empty:
            xs, ys = zip(*(band.coordinates + band.coordinates[:1]))
            ax.fill(xs, ys, alpha=0.25, label=f"{band.threshold:g} min")
    original = coordinates_of(result.points)
    ax.scatter(original[:, 0], original[:, 1], s=6, color="black")
    ax.legend(loc="upper right")
    ax.set_title("Isochrones")

    ax = fig.add_subplot(gs[1, 1])
    xs = [c.position[0] for c in result.heatmap]
    ys = [c.position[1] for c in result.heatmap]
    ax.scatter(xs, ys, c=[c.color for c in result.heatmap], s=80)
    ax.set_title("Travel-time heatmap")

    for a in fig.axes:
        a.set_aspect("equal", adjustable="datalim")
    return fig


def main():
    print("=" * 60)
    print("Time Distortion Demo")
    print("=" * 60)

    apply_style()
    config = PipelineConfig.from_dict({
        "grid": {"radius_miles": 1.0, "point_count": 64},
        "distortion": {"factor": 2.0},
    })

    print("\n1. Running analysis...")
    result = DistortionPipeline(config).run()
    print(f"   Points: {len(result.points)}")
    print(f"   Average time: {result.network.average_time:.2f} min")
    print(f"   Max distortion: {result.network.max_distortion:.4f} mi")
    for threshold, area in result.network.coverage.items():
        print(f"   Coverage within {threshold:g} min: {area:.3f} sq mi")

    output_dir = Path(__file__).parent / "outputs"
    output_dir.mkdir(exist_ok=True)

    print("\n2. Rendering reveal...")
    save_figure(plot_reveal(result), str(output_dir / "reveal.png"))

    print("\n3. Rendering layers...")
    save_figure(plot_layers(result), str(output_dir / "layers.png"))

    print(f"\nFigures saved to {output_dir}")


if __name__ == "__main__":
    main()
