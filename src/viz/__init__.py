"""
Visualization module for Time Distortion.

Static matplotlib renderings of every analysis layer, for reports and quick
inspection. Interactive map rendering lives outside this package.

Usage:
    from viz import plot_layer, save_figure
    from time_distortion.pipeline import DistortionPipeline

    result = DistortionPipeline().run()
    fig = plot_layer(result, "streamlines")
    save_figure(fig, "figures/streamlines.png")

Modules:
    styles: Color palettes and matplotlib configuration
    static: Layer plotting functions
"""

from viz.styles import (
    ColorPalette,
    VizStyle,
    apply_style,
    create_figure,
    save_figure,
    get_cmap_time,
    get_band_colors,
)

from viz.static import (
    LAYERS,
    plot_distortion,
    plot_streamlines,
    plot_voronoi,
    plot_isochrones,
    plot_heatmap,
    plot_network,
    plot_layer,
)

__all__ = [
    # Styles
    "ColorPalette",
    "VizStyle",
    "apply_style",
    "create_figure",
    "save_figure",
    "get_cmap_time",
    "get_band_colors",
    # Static plots
    "LAYERS",
    "plot_distortion",
    "plot_streamlines",
    "plot_voronoi",
    "plot_isochrones",
    "plot_heatmap",
    "plot_network",
    "plot_layer",
]

__version__ = "0.1.0"
