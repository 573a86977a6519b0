"""
Histogram binning: pure numpy.

Two policies, matching what the histogram geom draws:

  - explicit bin width: edges are integer multiples of the width, starting at
    or below the smallest value and ending at or above the largest;
  - automatic: a fixed number of equal-width bins spanning [min, max].
"""

from __future__ import annotations

from typing import Optional

import numpy as np

# Tolerance (in units of the bin width) for values sitting on an edge after float division
_EDGE_TOL = 1e-9


def _finite(values) -> np.ndarray:
    arr = np.asarray(values, dtype=float).ravel()
    return arr[np.isfinite(arr)]


def histogram_edges(
    values,
    *,
    bin_width: Optional[float] = None,
    bins: int = 30,
) -> np.ndarray:
    """
    Compute bin edges for a histogram.

    Args:
        values: Numeric values; NaN and inf are ignored.
        bin_width: Width of every bin. When set, edges are k * bin_width for
            consecutive integers k and cover the observed range.
        bins: Number of equal-width bins used when bin_width is None.

    Returns:
        Increasing array of edges (len = number of bins + 1). Empty if there
        are no finite values.
    """
    arr = _finite(values)
    if arr.size == 0:
        return np.zeros(0, dtype=float)

    if bin_width is None:
        if bins < 1:
            raise ValueError(f"bins must be >= 1, got {bins}")
        return np.histogram_bin_edges(arr, bins=bins)

    if not bin_width > 0:
        raise ValueError(f"bin_width must be > 0, got {bin_width}")

    vmin = float(arr.min())
    vmax = float(arr.max())
    k0 = int(np.floor(vmin / bin_width + _EDGE_TOL))
    k1 = int(np.ceil(vmax / bin_width - _EDGE_TOL))
    # float division can land one bin short on either side
    if k0 * bin_width > vmin:
        k0 -= 1
    if k1 * bin_width < vmax:
        k1 += 1
    if k1 <= k0:
        k1 = k0 + 1
    return np.arange(k0, k1 + 1, dtype=float) * bin_width


def histogram_counts(
    values,
    *,
    bin_width: Optional[float] = None,
    bins: int = 30,
    edges: Optional[np.ndarray] = None,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Count values per bin.

    Args:
        values: Numeric values; NaN and inf are ignored.
        bin_width: See histogram_edges.
        bins: See histogram_edges.
        edges: Precomputed edges (e.g. shared by stacked groups). Overrides
            bin_width and bins.

    Returns:
        (counts, edges). Both empty if there are no edges to count into.
    """
    arr = _finite(values)
    if edges is None:
        edges = histogram_edges(arr, bin_width=bin_width, bins=bins)
    if edges.size < 2:
        return np.zeros(0, dtype=np.int64), edges
    # last bin is closed on the right, so vmax is counted
    counts, _ = np.histogram(arr, bins=edges)
    return counts, edges
