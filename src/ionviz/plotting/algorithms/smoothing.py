"""
Trend-curve fitting for the smooth geom.

  - "loess": locally weighted regression (statsmodels lowess), span = fraction
    of points used for each local fit. No confidence band.
  - "lm": ordinary least squares line (statsmodels OLS) evaluated on an even
    grid, with a confidence band for the mean from get_prediction().
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np
import statsmodels.api as sm


@dataclass
class SmoothFit:
    """Fitted trend curve, sorted by x. lower/upper are None without a band."""
    x: np.ndarray
    y: np.ndarray
    lower: Optional[np.ndarray] = None
    upper: Optional[np.ndarray] = None

    @property
    def has_band(self) -> bool:
        return self.lower is not None and self.upper is not None


def _clean_xy(x, y) -> tuple[np.ndarray, np.ndarray]:
    xa = np.asarray(x, dtype=float).ravel()
    ya = np.asarray(y, dtype=float).ravel()
    if xa.shape != ya.shape:
        raise ValueError(f"x and y must have the same length, got {xa.size} and {ya.size}")
    keep = np.isfinite(xa) & np.isfinite(ya)
    return xa[keep], ya[keep]


def can_smooth(x, y) -> bool:
    """True if there are at least two distinct finite x values to fit."""
    xa, _ = _clean_xy(x, y)
    return np.unique(xa).size >= 2


def fit_loess(x, y, *, span: float = 0.75) -> SmoothFit:
    """Locally weighted scatterplot smoothing of y on x."""
    xa, ya = _clean_xy(x, y)
    if np.unique(xa).size < 2:
        raise ValueError("loess needs at least two distinct x values")
    fitted = sm.nonparametric.lowess(ya, xa, frac=span, return_sorted=True)
    return SmoothFit(x=fitted[:, 0], y=fitted[:, 1])


def fit_lm(
    x,
    y,
    *,
    se: bool = True,
    level: float = 0.95,
    n_points: int = 80,
) -> SmoothFit:
    """Straight-line OLS fit evaluated on n_points evenly spaced x values.

    With se=True the band is the confidence interval of the fitted mean at
    the given level.
    """
    xa, ya = _clean_xy(x, y)
    if np.unique(xa).size < 2:
        raise ValueError("lm needs at least two distinct x values")
    model = sm.OLS(ya, sm.add_constant(xa, has_constant="add")).fit()
    grid = np.linspace(xa.min(), xa.max(), n_points)
    pred = model.get_prediction(sm.add_constant(grid, has_constant="add"))
    frame = pred.summary_frame(alpha=1.0 - level)
    if not se:
        return SmoothFit(x=grid, y=frame["mean"].to_numpy())
    return SmoothFit(
        x=grid,
        y=frame["mean"].to_numpy(),
        lower=frame["mean_ci_lower"].to_numpy(),
        upper=frame["mean_ci_upper"].to_numpy(),
    )


def fit_smooth(x, y, *, method: str = "loess", span: float = 0.75, se: bool = True) -> SmoothFit:
    """Dispatch to fit_loess or fit_lm."""
    if method == "loess":
        return fit_loess(x, y, span=span)
    if method == "lm":
        return fit_lm(x, y, se=se)
    raise ValueError(f"Unknown smooth method {method!r}")
