"""
Progress model for revealing a distortion gradually.

The engine owns no timer. A caller (a UI loop, a renderer producing frames)
feeds elapsed time into advance() and draws interpolate_positions() at the
returned progress.
"""

from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from time_distortion.errors import ContractViolation
from time_distortion.geo import as_coordinates

# Progress gained per millisecond: a full reveal takes one second.
DEFAULT_RATE = 0.001


def advance(progress: float, delta_time: float, rate: float = DEFAULT_RATE) -> float:
    """
    Step reveal progress forward.

    Args:
        progress: Current progress in [0, 1]
        delta_time: Elapsed time since the last step, in milliseconds
        rate: Progress per millisecond

    Returns:
        New progress, clamped to [0, 1]
    """
    return float(min(max(progress + delta_time * rate, 0.0), 1.0))


def is_complete(progress: float) -> bool:
    """Whether the reveal has finished."""
    return progress >= 1.0


def interpolate_positions(
    original: Sequence[Sequence[float]] | NDArray,
    distorted: Sequence[Sequence[float]] | NDArray,
    progress: float,
) -> NDArray[np.floating]:
    """Linear blend original + (distorted - original) * progress."""
    A = as_coordinates(original)
    B = as_coordinates(distorted)
    if A.shape != B.shape:
        raise ContractViolation(
            f"original and distorted differ in shape: {A.shape} vs {B.shape}"
        )
    t = min(max(progress, 0.0), 1.0)
    return A + (B - A) * t


def frame_schedule(frame_interval: float, rate: float = DEFAULT_RATE) -> list[float]:
    """
    Progress values for a reveal rendered at a fixed frame interval.

    Args:
        frame_interval: Milliseconds between frames, must be positive

    Returns:
        Progress values starting at 0 and ending at exactly 1
    """
    if frame_interval <= 0:
        raise ValueError(f"frame_interval must be positive, got {frame_interval}")
    if rate <= 0:
        raise ValueError(f"rate must be positive, got {rate}")

    schedule = [0.0]
    progress = 0.0
    while not is_complete(progress):
        progress = advance(progress, frame_interval, rate)
        schedule.append(progress)
    return schedule
