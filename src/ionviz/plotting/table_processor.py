"""Table processing for the ion ratio lesson.

This module provides the TableProcessor class for the non-destructive
derivations the lesson performs on the loaded table: a 1-based row index,
a positivity flag, positive-only views, the unknown/known sample split and
categorical pre-filters. Plotting code never mutates the source table.
"""

from __future__ import annotations

from typing import Any

import numpy as np
import pandas as pd

from ionviz.utils.logging import get_logger
from ionviz.plotting.plot_helpers import require_columns
from ionviz.plotting.pre_filter_conventions import PRE_FILTER_NONE

logger = get_logger(__name__)

DEFAULT_ROW_INDEX_COL = "row_index"
DEFAULT_SAMPLE_TYPE_COL = "sample_type"
DEFAULT_UNKNOWN_SAMPLE_TYPE = "unknown"


class TableProcessor:
    """Derives columns and filtered views from a source table.

    Every method returns a new DataFrame (a copy or a filtered view); the
    source table held in ``df`` is never altered in place.

    Attributes:
        df: The source DataFrame.
    """

    def __init__(self, df: pd.DataFrame) -> None:
        self.df = df

    def with_row_index(self, col: str = DEFAULT_ROW_INDEX_COL) -> pd.DataFrame:
        """Return a copy with a 1-based consecutive integer row index column.

        Args:
            col: Name of the row index column to add (replaced if present).

        Returns:
            Copy of the table with ``col`` = 1, 2, ..., len(table).
        """
        out = self.df.copy()
        out[col] = np.arange(1, len(out) + 1, dtype=np.int64)
        return out

    def positive_mask(self, col: str) -> pd.Series:
        """Boolean mask, True where ``col`` is strictly greater than zero.

        Values that do not parse as numbers (and NaN) are not positive.
        """
        require_columns(self.df, [col])
        return self.get_numeric(self.df, col).gt(0)

    def with_positive_flag(self, col: str, flag_col: str | None = None) -> pd.DataFrame:
        """Return a copy with a boolean positivity flag for ``col``.

        Args:
            col: Numeric column to test.
            flag_col: Name of the flag column. Defaults to ``f"{col}_positive"``.
        """
        mask = self.positive_mask(col)
        out = self.df.copy()
        out[flag_col or f"{col}_positive"] = mask.to_numpy(dtype=bool)
        return out

    def filter_positive(self, col: str) -> pd.DataFrame:
        """Rows where ``col`` > 0. The result is never larger than the table."""
        mask = self.positive_mask(col)
        df_f = self.df[mask]
        logger.debug(f"filter_positive({col!r}): kept {len(df_f)}/{len(self.df)} rows")
        return df_f

    def split_by_sample_type(
        self,
        unknown: str = DEFAULT_UNKNOWN_SAMPLE_TYPE,
        col: str = DEFAULT_SAMPLE_TYPE_COL,
    ) -> tuple[pd.DataFrame, pd.DataFrame]:
        """Partition the table into (unknown samples, everything else).

        Rows whose sample type is missing are not equal to ``unknown`` and so
        land in the second part. The two parts are disjoint and their sizes
        sum to the table size.
        """
        require_columns(self.df, [col])
        is_unknown = self.df[col].astype(str) == str(unknown)
        unknowns = self.df[is_unknown]
        knowns = self.df[~is_unknown]
        logger.debug(
            f"split_by_sample_type: {len(unknowns)} {unknown!r} rows, {len(knowns)} other rows"
        )
        return unknowns, knowns

    def filter_by_pre_filters(self, selections: dict[str, Any]) -> pd.DataFrame:
        """Filter rows by categorical column selections.

        For each column, a selection other than PRE_FILTER_NONE keeps only
        rows where ``df[col].astype(str) == str(selection)``. Selections are
        ANDed across columns.
        """
        require_columns(self.df, selections.keys())
        df_f = self.df
        for col, val in selections.items():
            if val is None or val == PRE_FILTER_NONE:
                continue
            # Compare as strings so dropdown strings match numeric columns
            df_f = df_f[df_f[col].astype(str) == str(val)]
        return df_f

    def distinct_values(self, col: str) -> list[Any]:
        """Sorted unique non-null values of ``col``."""
        require_columns(self.df, [col])
        return sorted(self.df[col].dropna().unique().tolist())

    def get_numeric(self, df_f: pd.DataFrame, col: str) -> pd.Series:
        """Column as a numeric Series; unparseable values become NaN."""
        return pd.to_numeric(df_f[col], errors="coerce")

    def summarize(self, group_col: str, value_col: str) -> pd.DataFrame:
        """Count, mean, std, sem, min and max of ``value_col`` per group.

        Returns:
            DataFrame indexed by group value (sorted), one column per statistic.
        """
        require_columns(self.df, [group_col, value_col])
        tmp = pd.DataFrame({
            "g": self.df[group_col].astype(str),
            "y": self.get_numeric(self.df, value_col),
        }).dropna(subset=["y"])
        grp = tmp.groupby("g", sort=True)["y"]
        out = pd.DataFrame({
            "count": grp.count(),
            "mean": grp.mean(),
            "std": grp.std(ddof=1),
            "sem": grp.sem(ddof=1),
            "min": grp.min(),
            "max": grp.max(),
        })
        out.index.name = group_col
        return out
