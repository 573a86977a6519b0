"""
Facet partitioning: split a table into the panels of a sub-plot grid.

  - wrap: one panel per distinct value of one column, laid out row-major
    into ncol columns (default: ceil(sqrt(n)));
  - grid: one panel per (row value, col value) combination, every
    combination drawn even when it has no rows;
  - none: a single panel holding the whole table.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Optional

import pandas as pd

from ionviz.plotting.chart_spec import Facet


@dataclass
class FacetPanel:
    """One sub-plot: its key values, 1-based grid position and rows."""
    key: tuple[Any, ...]
    title: str
    row: int
    col: int
    data: pd.DataFrame


def _sorted_values(df: pd.DataFrame, col: str) -> list[Any]:
    return sorted(df[col].dropna().unique().tolist())


def wrap_shape(n_panels: int, ncol: Optional[int] = None) -> tuple[int, int]:
    """(rows, cols) of a wrapped layout for n_panels."""
    if n_panels <= 0:
        return 1, 1
    if ncol is None:
        ncol = math.ceil(math.sqrt(n_panels))
    ncol = min(ncol, n_panels)
    return math.ceil(n_panels / ncol), ncol


def facet_panels(df: pd.DataFrame, facet: Facet) -> list[FacetPanel]:
    """Partition df into facet panels (see module docstring).

    Rows with a missing facet value belong to no panel.
    """
    if facet.wrap:
        values = _sorted_values(df, facet.wrap)
        _, ncols = wrap_shape(len(values), facet.ncol)
        panels = []
        for i, value in enumerate(values):
            panels.append(FacetPanel(
                key=(value,),
                title=str(value),
                row=i // ncols + 1,
                col=i % ncols + 1,
                data=df[df[facet.wrap] == value],
            ))
        return panels

    if facet.rows or facet.cols:
        row_values = _sorted_values(df, facet.rows) if facet.rows else [None]
        col_values = _sorted_values(df, facet.cols) if facet.cols else [None]
        panels = []
        for r, row_value in enumerate(row_values):
            for c, col_value in enumerate(col_values):
                mask = pd.Series(True, index=df.index)
                if facet.rows:
                    mask &= df[facet.rows] == row_value
                if facet.cols:
                    mask &= df[facet.cols] == col_value
                key = tuple(v for v in (row_value, col_value) if v is not None)
                panels.append(FacetPanel(
                    key=key,
                    title=" | ".join(str(v) for v in key),
                    row=r + 1,
                    col=c + 1,
                    data=df[mask],
                ))
        return panels

    return [FacetPanel(key=(), title="", row=1, col=1, data=df)]


def grid_shape(facet: Facet, panels: list[FacetPanel]) -> tuple[int, int]:
    """(rows, cols) of the sub-plot grid holding panels."""
    if facet.wrap:
        return wrap_shape(len(panels), facet.ncol)
    if not panels:
        return 1, 1
    return max(p.row for p in panels), max(p.col for p in panels)
