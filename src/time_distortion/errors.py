"""
Error taxonomy for the distortion engine.

Recoverable conditions (too few points for a hull, zero-range normalization,
stagnant vectors) are handled with explicit fallback values and never raise.
Only contract violations by the caller propagate.
"""


class TimeDistortionError(Exception):
    """Base class for engine errors."""


class ContractViolation(TimeDistortionError, ValueError):
    """
    Raised when a caller breaks an input contract.

    Examples are parallel point lists of different lengths or a time matrix
    whose shape does not match the point count. These indicate a bug in the
    calling code, not bad geographic data, so the engine never catches them.
    """


class GeometryFailure(TimeDistortionError):
    """
    A geometric routine (hull, buffer, triangulation) failed for one item.

    Raised inside a per-item boundary and converted there into an empty
    result, so one failing isochrone band or cell never aborts the batch.
    """
