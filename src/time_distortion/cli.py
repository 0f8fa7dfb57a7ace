#!/usr/bin/env python3
"""
CLI for the time distortion engine.

Usage:
    time-distortion analyze --config config.yaml --output result.json
    time-distortion plot --config config.yaml --layer streamlines --output map.png
    time-distortion plot --layer voronoi --style screen --output slide.png
    time-distortion info
"""

import json
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

import fire
from loguru import logger

from time_distortion.pipeline import DistortionPipeline, PipelineConfig, load_config


def configure_logging(level: str = "INFO") -> None:
    """Replace loguru's default sink with one at the given level."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def build_config(
    config: Optional[str] = None,
    factor: Optional[float] = None,
    radius: Optional[float] = None,
    points: Optional[int] = None,
    strategy: Optional[str] = None,
) -> PipelineConfig:
    """Load a config file (or defaults) and apply command-line overrides."""
    if config:
        logger.info(f"Loading config from {config}")
        cfg = load_config(config)
    else:
        cfg = PipelineConfig()

    if factor is not None:
        cfg.distortion = replace(cfg.distortion, factor=float(factor))
    if strategy is not None:
        cfg.distortion = replace(cfg.distortion, strategy=strategy)
    if radius is not None:
        cfg.grid = replace(cfg.grid, radius_miles=float(radius))
    if points is not None:
        cfg.grid = replace(cfg.grid, point_count=int(points))
    return cfg


class CLI:
    """Time distortion CLI."""

    def __init__(self, log_level: str = "INFO"):
        configure_logging(log_level)

    def analyze(
        self,
        config: Optional[str] = None,
        output: Optional[str] = None,
        factor: Optional[float] = None,
        radius: Optional[float] = None,
        points: Optional[int] = None,
        strategy: Optional[str] = None,
    ) -> None:
        """
        Run the full analysis and write every layer as JSON.

        Args:
            config: Path to configuration YAML file (defaults if omitted)
            output: Path of the JSON result; summary only if omitted
            factor: Override distortion factor
            radius: Override grid radius in miles
            points: Override target point count
            strategy: Override distortion strategy ('heuristic' or 'classical_mds')
        """
        cfg = build_config(config, factor, radius, points, strategy)
        result = DistortionPipeline(cfg).run()

        logger.info(f"Points: {len(result.points)}")
        logger.info(f"Average time: {result.network.average_time:.2f} min")
        logger.info(f"Max distortion: {result.network.max_distortion:.4f} mi")
        for threshold, area in result.network.coverage.items():
            logger.info(f"Coverage within {threshold:g} min: {area:.4f} sq mi")

        if output:
            output_path = Path(output)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(output_path, "w") as f:
                json.dump(result.to_dict(), f, indent=2)
            logger.info(f"Saved results to {output_path}")

    def plot(
        self,
        output: str = "distortion.png",
        config: Optional[str] = None,
        layer: str = "distortion",
        factor: Optional[float] = None,
        style: str = "paper",
    ) -> None:
        """
        Render one layer to an image file.

        Args:
            output: Output image path (.png or .pdf)
            config: Path to configuration YAML file
            layer: One of distortion, streamlines, voronoi, isochrones,
                heatmap, network
            factor: Override distortion factor
            style: 'paper' (light, serif) or 'screen' (dark, larger type)
        """
        from viz.static import plot_layer
        from viz.styles import VizStyle, save_figure

        viz_style = VizStyle(mode=style)

        cfg = build_config(config, factor)
        result = DistortionPipeline(cfg).run()

        fig = plot_layer(result, layer, style=viz_style)
        save_figure(fig, output, style=viz_style)
        logger.info(f"Saved {layer} plot to {output}")

    def info(self) -> None:
        """Print information about the package."""
        logger.info("Time Distortion")
        logger.info("=" * 40)
        logger.info("Warps point positions by travel time and derives accessibility layers")
        logger.info("")
        logger.info("Commands:")
        logger.info("  analyze - Run the pipeline and export all layers as JSON")
        logger.info("  plot    - Render a layer with matplotlib")
        logger.info("  info    - Print this information")


def main():
    """Main entry point."""
    fire.Fire(CLI)


if __name__ == "__main__":
    main()
