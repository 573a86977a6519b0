"""Unit tests for trend-curve fitting (loess and lm)."""

import numpy as np
import pytest

from ionviz.plotting.algorithms.smoothing import can_smooth, fit_lm, fit_loess, fit_smooth


@pytest.fixture
def line_xy():
    x = np.array([10.0, 50.0, 100.0, 250.0, 500.0, 10.0, 50.0, 100.0, 250.0, 500.0])
    noise = np.array([0.5, -0.3, 1.0, -2.0, 3.0, -0.5, 0.3, -1.0, 2.0, -3.0])
    return x, 2.0 * x + 1.0 + noise


def test_can_smooth_needs_two_distinct_x():
    assert can_smooth([1.0, 2.0], [1.0, 2.0])
    assert not can_smooth([1.0, 1.0, 1.0], [1.0, 2.0, 3.0])
    assert not can_smooth([1.0, np.nan], [1.0, 2.0])


def test_fit_lm_recovers_line_with_band(line_xy):
    x, y = line_xy
    fit = fit_lm(x, y, n_points=20)
    assert len(fit.x) == 20
    assert fit.x[0] == pytest.approx(10.0)
    assert fit.x[-1] == pytest.approx(500.0)
    slope = (fit.y[-1] - fit.y[0]) / (fit.x[-1] - fit.x[0])
    assert slope == pytest.approx(2.0, abs=0.05)
    assert fit.has_band
    assert np.all(fit.lower <= fit.y)
    assert np.all(fit.upper >= fit.y)


def test_fit_lm_without_se_has_no_band(line_xy):
    fit = fit_lm(*line_xy, se=False)
    assert not fit.has_band


def test_fit_loess_sorted_and_same_length(line_xy):
    x, y = line_xy
    fit = fit_loess(x, y, span=0.8)
    assert len(fit.x) == len(x)
    assert np.all(np.diff(fit.x) >= 0)
    assert not fit.has_band


def test_fit_smooth_dispatch_and_errors(line_xy):
    assert fit_smooth(*line_xy, method="lm").has_band
    with pytest.raises(ValueError):
        fit_smooth(*line_xy, method="spline")
    with pytest.raises(ValueError):
        fit_lm([1.0, 1.0], [2.0, 3.0])
