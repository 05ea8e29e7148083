"""Tests for elevation range computation."""
import warnings

import numpy as np
import pytest

from slopeview.errors import DegenerateRangeWarning, EmptyGridError, InvalidGridError
from slopeview.models import NormalizationRange
from slopeview.normalize import compute_range


class TestComputeRange:
    def test_raw_range(self, hill_grid):
        with warnings.catch_warnings():
            warnings.simplefilter("error", DegenerateRangeWarning)
            rng = compute_range(hill_grid)
        assert rng.min == hill_grid.min()
        assert rng.max == hill_grid.max()
        assert not rng.clamped

    def test_flat_grid_is_clamped(self):
        with pytest.warns(DegenerateRangeWarning):
            rng = compute_range([[5, 5], [5, 5]])
        assert rng == NormalizationRange(min=5.0, max=6.0, clamped=True)
        assert rng.max > rng.min

    def test_single_sample(self):
        with pytest.warns(DegenerateRangeWarning):
            rng = compute_range([[42.0]])
        assert (rng.min, rng.max) == (42.0, 43.0)

    def test_ocean_only_survey(self):
        with pytest.warns(DegenerateRangeWarning):
            rng = compute_range(np.zeros((25, 25)))
        assert (rng.min, rng.max) == (0.0, 1.0)

    def test_range_below_epsilon_is_clamped(self):
        with pytest.warns(DegenerateRangeWarning):
            rng = compute_range([[10.0, 10.4]], epsilon=1.0)
        assert (rng.min, rng.max) == (10.0, 11.0)

    def test_wide_epsilon_never_shrinks_range(self):
        with pytest.warns(DegenerateRangeWarning):
            rng = compute_range([[0, 1], [2, 3]], epsilon=5.0)
        assert rng.clamped
        assert (rng.min, rng.max) == (0.0, 3.0)

    def test_custom_epsilon(self):
        rng = compute_range([[10.0, 10.4]], epsilon=0.1)
        assert (rng.min, rng.max) == (10.0, 10.4)
        assert not rng.clamped

    def test_negative_elevations(self):
        rng = compute_range([[-30.0, 12.0], [4.0, 0.0]])
        assert (rng.min, rng.max) == (-30.0, 12.0)

    def test_bounds_within_grid(self):
        grid = np.random.default_rng(3).uniform(0, 900, (9, 9))
        rng = compute_range(grid)
        assert grid.min() <= rng.min < rng.max <= grid.max()

    def test_empty_grid(self):
        with pytest.raises(EmptyGridError):
            compute_range([])

    def test_empty_rows(self):
        with pytest.raises(EmptyGridError):
            compute_range([[]])

    def test_non_finite(self):
        with pytest.raises(InvalidGridError):
            compute_range([[1.0, float("nan")]])


class TestNormalizationRange:
    def test_rejects_inverted(self):
        with pytest.raises(ValueError):
            NormalizationRange(min=3.0, max=3.0)

    def test_span(self):
        assert NormalizationRange(min=-2.0, max=8.0).span == 10.0
