"""
Styling for distortion map visualizations.

Consistent palettes and matplotlib configuration for the static layer plots.

Key Design Principles:
- Original positions cool, distorted positions warm
- Colorblind-friendly sequential maps for time
- Works for both reports (paper) and screens
"""

from dataclasses import dataclass, field
from typing import Literal

import matplotlib as mpl
import matplotlib.pyplot as plt
import numpy as np
from numpy.typing import NDArray


@dataclass(frozen=True)
class ColorPalette:
    """Color palette for distortion layers."""

    # Point sets
    original: str = "#3b82f6"     # Blue, pre-distortion positions
    distorted: str = "#ef4444"    # Red, distorted positions
    displacement: str = "#6b7280" # Gray dashed link between the two

    # Derived layers
    streamline: str = "#f17720"
    cell_edge: str = "#1f2937"
    network: str = "#4caf50"
    network_edge: str = "#2e7d32"

    # Neutral colors
    grid: str = "#e5e7eb"
    text: str = "#1f2937"
    background_light: str = "#ffffff"
    background_dark: str = "#1e293b"

    # Alphas
    point_alpha: float = 0.5
    streamline_alpha: float = 0.8
    cell_alpha: float = 0.35
    isochrone_alpha: float = 0.3


@dataclass
class VizStyle:
    """Visualization style configuration."""

    mode: Literal["paper", "screen"] = "paper"
    palette: ColorPalette = field(default_factory=ColorPalette)

    # Figure dimensions
    fig_width: float = 8.0
    fig_height: float = 8.0
    dpi: int = 150

    # Line widths
    streamline_lw: float = 1.2
    edge_lw: float = 0.8
    axis_lw: float = 0.8

    # Marker sizes
    scatter_size: float = 30

    # Font sizes
    title_size: float = 14
    label_size: float = 12
    tick_size: float = 10
    legend_size: float = 10

    # Grid
    show_grid: bool = True
    grid_alpha: float = 0.3

    def __post_init__(self) -> None:
        """Adjust settings based on mode."""
        if self.mode not in ("paper", "screen"):
            raise ValueError(f"Unknown style mode: {self.mode}")
        if self.mode == "screen":
            self.fig_width = 10.0
            self.fig_height = 10.0
            self.title_size = 16
            self.label_size = 14

    @property
    def background(self) -> str:
        """Get background color based on mode."""
        if self.mode == "paper":
            return self.palette.background_light
        return self.palette.background_dark

    @property
    def text_color(self) -> str:
        """Get text color based on mode."""
        if self.mode == "paper":
            return self.palette.text
        return "#f8fafc"


def apply_style(style: VizStyle | None = None) -> None:
    """Apply visualization style to matplotlib rcParams.

    Args:
        style: VizStyle configuration. Uses paper mode by default.
    """
    if style is None:
        style = VizStyle()

    font_family = "serif" if style.mode == "paper" else "sans-serif"

    mpl.rcParams.update({
        # Figure
        "figure.figsize": (style.fig_width, style.fig_height),
        "figure.dpi": style.dpi,
        "figure.facecolor": style.background,
        "figure.edgecolor": style.background,

        # Axes
        "axes.facecolor": style.background,
        "axes.edgecolor": style.palette.grid,
        "axes.linewidth": style.axis_lw,
        "axes.labelsize": style.label_size,
        "axes.titlesize": style.title_size,
        "axes.labelcolor": style.text_color,
        "axes.grid": style.show_grid,
        "axes.spines.top": False,
        "axes.spines.right": False,

        # Grid
        "grid.color": style.palette.grid,
        "grid.alpha": style.grid_alpha,
        "grid.linewidth": 0.5,

        # Ticks
        "xtick.labelsize": style.tick_size,
        "ytick.labelsize": style.tick_size,
        "xtick.color": style.text_color,
        "ytick.color": style.text_color,

        # Legend
        "legend.fontsize": style.legend_size,
        "legend.framealpha": 0.8,
        "legend.facecolor": style.background,
        "legend.edgecolor": style.palette.grid,

        # Font
        "font.family": font_family,
        "font.size": style.label_size,
        "text.color": style.text_color,
    })


def get_cmap_time() -> mpl.colors.LinearSegmentedColormap:
    """Colormap from short (blue) to long (red) travel times."""
    palette = ColorPalette()
    colors = [palette.original, "#a855f7", palette.distorted]
    return mpl.colors.LinearSegmentedColormap.from_list("travel_time", colors)


def get_band_colors(n_bands: int) -> NDArray[np.floating]:
    """RGBA colors for n isochrone bands, nearest band first."""
    return get_cmap_time()(np.linspace(0, 1, max(n_bands, 1)))[:n_bands]


def create_figure(
    nrows: int = 1,
    ncols: int = 1,
    style: VizStyle | None = None,
    **kwargs
) -> tuple[plt.Figure, plt.Axes | NDArray]:
    """Create a figure with consistent styling.

    Args:
        nrows: Number of subplot rows.
        ncols: Number of subplot columns.
        style: VizStyle configuration.
        **kwargs: Additional arguments to plt.subplots.

    Returns:
        Tuple of (figure, axes).
    """
    if style is None:
        style = VizStyle()

    apply_style(style)

    fig, axes = plt.subplots(
        nrows, ncols,
        figsize=(style.fig_width * ncols * 0.8, style.fig_height * nrows * 0.8),
        **kwargs
    )
    fig.patch.set_facecolor(style.background)

    return fig, axes


def format_axis_labels(
    ax: plt.Axes,
    xlabel: str = "Longitude",
    ylabel: str = "Latitude",
    title: str | None = None,
    style: VizStyle | None = None,
) -> None:
    """Format axis labels and title consistently."""
    if style is None:
        style = VizStyle()

    ax.set_xlabel(xlabel, fontsize=style.label_size)
    ax.set_ylabel(ylabel, fontsize=style.label_size)

    if title:
        ax.set_title(title, fontsize=style.title_size, pad=10)


def save_figure(
    fig: plt.Figure,
    path: str,
    style: VizStyle | None = None,
    tight: bool = True,
) -> None:
    """Save figure with consistent settings.

    Args:
        fig: Matplotlib figure.
        path: Output path (should end in .pdf or .png).
        style: VizStyle configuration.
        tight: Use tight_layout.
    """
    if style is None:
        style = VizStyle()

    if tight:
        fig.tight_layout()

    fig.savefig(
        path,
        dpi=style.dpi * 2 if str(path).endswith(".png") else style.dpi,
        facecolor=style.background,
        edgecolor="none",
        bbox_inches="tight",
        pad_inches=0.1,
    )
    plt.close(fig)
