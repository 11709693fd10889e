"""Thumbnail dimension planning.

Planning runs before any decode or resample stage so that oversized inputs
are rejected without spending a process spawn on them.
"""

from __future__ import annotations

from mediathumb.errors import TooTallError, TooWideError
from mediathumb.models import Dims


def validate_source_dims(source: Dims, max_source: Dims) -> None:
    """Reject a source exceeding the configured maximum on either axis.

    A zero maximum on an axis leaves that axis unconstrained.

    Raises:
        TooWideError: If the source is wider than allowed.
        TooTallError: If the source is taller than allowed.
    """
    if max_source.width and source.width > max_source.width:
        raise TooWideError(source.width, max_source.width)
    if max_source.height and source.height > max_source.height:
        raise TooTallError(source.height, max_source.height)


def scale_to_fit(source: Dims, target: Dims) -> Dims:
    """Scale source down proportionally to fit within target.

    Never upscales: a source fitting within target on both axes is returned
    unchanged. Otherwise one factor, taken from the axis whose source/target
    ratio is larger, is applied to both axes and the results are truncated.
    Integer arithmetic keeps the binding axis exactly at its bound. Neither
    axis is allowed to reach zero.
    """
    if source.width <= target.width and source.height <= target.height:
        return source

    # Compare width/target.width against height/target.height without floats
    if source.width * target.height >= source.height * target.width:
        width = target.width
        height = source.height * target.width // source.width
    else:
        height = target.height
        width = source.width * target.height // source.height
    return Dims(max(width, 1), max(height, 1))


def plan_thumbnail_dims(
    source: Dims,
    max_source: Dims,
    target: Dims,
    pass_through: bool = False,
) -> Dims:
    """Validate source dimensions and compute the thumbnail size.

    Args:
        source: Measured source dimensions.
        max_source: Maximum accepted source dimensions, 0 = unconstrained.
        target: Thumbnail bounds. Both axes must be positive.
        pass_through: Skip the maximum check, for formats without a fixed
            raster size such as PDF documents.

    A source whose width or height is unknown (0) cannot be scaled here, so
    target is returned and the caller must let the encoder fit the picture
    (see scale_filter's pass_through). The max_source check only covers the
    known axes: a configured cap cannot apply to an axis the probe did not
    report.

    Returns:
        Planned thumbnail dimensions, or target for an unknown source size.

    Raises:
        TooWideError: If the source is wider than max_source allows.
        TooTallError: If the source is taller than max_source allows.
        ValueError: If target has a zero axis.
    """
    if target.width <= 0 or target.height <= 0:
        raise ValueError(f"thumbnail bounds must be positive, got {target}")
    if not pass_through:
        validate_source_dims(source, max_source)
    if not source.is_known:
        # Callers fit unknown sizes with scale_filter(pass_through=True)
        return target
    return scale_to_fit(source, target)
