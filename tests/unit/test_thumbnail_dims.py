"""Unit tests for thumbnail dimension planning."""

import pytest

from mediathumb.errors import InvalidImageError, TooTallError, TooWideError
from mediathumb.models import Dims
from mediathumb.thumbnail.dims import (
    plan_thumbnail_dims,
    scale_to_fit,
    validate_source_dims,
)

BOUNDS = Dims(150, 150)
UNCONSTRAINED = Dims()


class TestScaleToFit:
    """Tests for scale_to_fit()."""

    def test_landscape(self) -> None:
        """Should bind on width for landscape sources."""
        assert scale_to_fit(Dims(1280, 720), BOUNDS) == Dims(150, 84)

    def test_portrait(self) -> None:
        """Should bind on height for portrait sources."""
        assert scale_to_fit(Dims(720, 1280), BOUNDS) == Dims(84, 150)

    def test_square(self) -> None:
        """Should scale a square source to the bounds."""
        assert scale_to_fit(Dims(1000, 1000), BOUNDS) == Dims(150, 150)

    def test_never_upscales(self) -> None:
        """Should keep a source that already fits."""
        assert scale_to_fit(Dims(100, 50), BOUNDS) == Dims(100, 50)

    def test_exact_fit(self) -> None:
        """Should keep a source equal to the bounds."""
        assert scale_to_fit(Dims(150, 150), BOUNDS) == Dims(150, 150)

    def test_one_axis_too_large(self) -> None:
        """Should scale both axes when only one exceeds the bounds."""
        assert scale_to_fit(Dims(300, 100), BOUNDS) == Dims(150, 50)

    def test_extreme_aspect_keeps_one_pixel(self) -> None:
        """Should never produce a zero-sized axis."""
        assert scale_to_fit(Dims(10000, 10), BOUNDS) == Dims(150, 1)

    def test_non_square_bounds(self) -> None:
        """Should respect both bounds independently."""
        result = scale_to_fit(Dims(1920, 1080), Dims(320, 100))
        assert result == Dims(177, 100)

    @pytest.mark.parametrize(
        "source",
        [Dims(1280, 720), Dims(4000, 3000), Dims(151, 149), Dims(333, 777)],
    )
    def test_result_within_bounds(self, source: Dims) -> None:
        """Should always fit within the bounds and keep the aspect ratio."""
        result = scale_to_fit(source, BOUNDS)
        assert 1 <= result.width <= BOUNDS.width
        assert 1 <= result.height <= BOUNDS.height
        skew = abs(result.width * source.height - result.height * source.width)
        assert skew <= max(source.width, source.height)


class TestValidateSourceDims:
    """Tests for validate_source_dims()."""

    def test_too_wide(self) -> None:
        """Should reject a source wider than allowed."""
        with pytest.raises(TooWideError) as exc_info:
            validate_source_dims(Dims(5000, 100), Dims(4000, 4000))
        assert exc_info.value.width == 5000
        assert exc_info.value.max_width == 4000

    def test_too_tall(self) -> None:
        """Should reject a source taller than allowed."""
        with pytest.raises(TooTallError):
            validate_source_dims(Dims(100, 5000), Dims(4000, 4000))

    def test_errors_are_invalid_image(self) -> None:
        """Should raise InvalidImageError subclasses."""
        with pytest.raises(InvalidImageError):
            validate_source_dims(Dims(5000, 5000), Dims(4000, 4000))

    def test_zero_axis_unconstrained(self) -> None:
        """Should ignore an axis with a zero maximum."""
        validate_source_dims(Dims(100000, 10), Dims(0, 100))

    def test_at_limit(self) -> None:
        """Should accept a source exactly at the limit."""
        validate_source_dims(Dims(4000, 4000), Dims(4000, 4000))


class TestPlanThumbnailDims:
    """Tests for plan_thumbnail_dims()."""

    def test_plans_scaled_dims(self) -> None:
        """Should validate and scale in one step."""
        assert plan_thumbnail_dims(Dims(1280, 720), UNCONSTRAINED, BOUNDS) == Dims(
            150, 84
        )

    def test_rejects_before_scaling(self) -> None:
        """Should raise for oversized sources."""
        with pytest.raises(TooWideError):
            plan_thumbnail_dims(Dims(5000, 100), Dims(4000, 4000), BOUNDS)

    def test_pass_through_skips_limit(self) -> None:
        """Should not check limits for pass-through sources."""
        result = plan_thumbnail_dims(
            Dims(5000, 100), Dims(4000, 4000), BOUNDS, pass_through=True
        )
        assert result == Dims(150, 3)

    @pytest.mark.parametrize("source", [Dims(), Dims(0, 480), Dims(640, 0)])
    def test_unknown_source_returns_bounds(self, source: Dims) -> None:
        """Should return the bounds when either axis is unknown."""
        assert plan_thumbnail_dims(source, UNCONSTRAINED, BOUNDS) == BOUNDS

    def test_unknown_source_ignores_cap(self) -> None:
        """Should not apply the maximum size to axes of unknown size."""
        assert plan_thumbnail_dims(Dims(), Dims(10, 10), BOUNDS) == BOUNDS
        assert plan_thumbnail_dims(Dims(0, 8), Dims(10, 10), BOUNDS) == BOUNDS

    def test_known_axis_still_capped(self) -> None:
        """Should check the known axis of a partially unknown source."""
        with pytest.raises(TooWideError):
            plan_thumbnail_dims(Dims(640, 0), Dims(100, 100), BOUNDS)

    def test_zero_target_rejected(self) -> None:
        """Should reject bounds with a zero axis."""
        with pytest.raises(ValueError, match="positive"):
            plan_thumbnail_dims(Dims(100, 100), UNCONSTRAINED, Dims(0, 150))
