"""Quick plots: pandas' built-in ``DataFrame.plot`` with the Plotly backend.

These are one-call charts with no layering and no facets, shown next to the
ChartSpec versions of the same charts. Each returns a ``plotly.graph_objects.Figure``.
"""

from __future__ import annotations

from typing import Optional

import pandas as pd
import plotly.graph_objects as go

from ionviz.utils.logging import get_logger
from ionviz.plotting.plot_helpers import require_columns

logger = get_logger(__name__)

BACKEND = "plotly"


def quick_scatter(df: pd.DataFrame, x: str, y: str) -> go.Figure:
    """Scatter of y against x."""
    require_columns(df, [x, y])
    logger.info(f"quick_scatter: x={x!r}, y={y!r}, rows={len(df)}")
    return df.plot(kind="scatter", x=x, y=y, backend=BACKEND)


def quick_hist(df: pd.DataFrame, col: str, bins: Optional[int] = None) -> go.Figure:
    """Histogram of one column.

    Args:
        df: Table.
        col: Numeric column to bin.
        bins: Maximum number of bins. None lets Plotly choose.
    """
    require_columns(df, [col])
    if bins is not None and bins < 1:
        raise ValueError(f"bins must be >= 1, got {bins}")
    logger.info(f"quick_hist: col={col!r}, bins={bins}, rows={len(df)}")
    kwargs = {} if bins is None else {"nbins": int(bins)}
    return df.plot(kind="hist", x=col, backend=BACKEND, **kwargs)


def quick_box(df: pd.DataFrame, col: str, by: Optional[str] = None) -> go.Figure:
    """Boxplot of one column, optionally one box per category of ``by``."""
    require_columns(df, [col, by])
    logger.info(f"quick_box: col={col!r}, by={by!r}, rows={len(df)}")
    return df.plot(kind="box", x=by, y=col, backend=BACKEND)


def quick_bar_counts(df: pd.DataFrame, col: str) -> go.Figure:
    """Bar chart of row counts per value of ``col`` (sorted by value)."""
    require_columns(df, [col])
    counts = (
        df[col]
        .value_counts(dropna=True)
        .sort_index()
        .rename_axis(col)
        .reset_index(name="count")
    )
    logger.info(f"quick_bar_counts: col={col!r}, categories={len(counts)}")
    return counts.plot(kind="bar", x=col, y="count", backend=BACKEND)
