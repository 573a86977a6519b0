"""Helper functions for chart construction.

Column detection (numeric vs categorical) and the column-presence check
that makes a bad mapping fail before anything is drawn.
"""

from __future__ import annotations

from typing import Iterable

import pandas as pd


class MissingColumnError(KeyError, ValueError):
    """Raised when a chart or table operation references columns the table lacks."""

    def __init__(self, missing: list[str], available: Iterable[str]) -> None:
        self.missing = list(missing)
        self.available = [str(c) for c in available]
        super().__init__(self.missing)

    def __str__(self) -> str:
        return (
            f"Column(s) not found in table: {self.missing!r}. "
            f"Available columns: {self.available!r}"
        )


def require_columns(df: pd.DataFrame, columns: Iterable[str | None]) -> None:
    """Raise MissingColumnError if any (non-None) column is absent from df."""
    missing = [c for c in dict.fromkeys(columns) if c is not None and c not in df.columns]
    if missing:
        raise MissingColumnError(missing, df.columns)


_NUMERIC_KINDS = {"i", "u", "f"}  # int, unsigned, float (pandas dtype.kind)


def is_numeric_column(df: pd.DataFrame, col: str) -> bool:
    """Return True if the column has an int/unsigned/float dtype."""
    if col not in df.columns:
        return False
    return getattr(df[col].dtype, "kind", None) in _NUMERIC_KINDS


def numeric_columns(df: pd.DataFrame) -> list[str]:
    """Extract list of numeric column names from dataframe.

    Args:
        df: DataFrame to analyze.

    Returns:
        List of column names that are numeric (int, unsigned, float).
    """
    return [str(c) for c in df.columns if getattr(df[c].dtype, "kind", None) in _NUMERIC_KINDS]


def categorical_candidates(df: pd.DataFrame) -> list[str]:
    """Heuristic: object/category/bool, or low-ish cardinality.

    Identifies columns that are good candidates for color, fill and facets:
    - Object, string, category, or boolean dtype columns
    - Numeric columns with low cardinality (<= 20 or <= 5% of rows)

    Args:
        df: DataFrame to analyze.

    Returns:
        List of column names that are categorical candidates.
    """
    out: list[str] = []
    n = len(df)
    for c in df.columns:
        s = df[c]
        kind = getattr(s.dtype, "kind", None)
        if kind in {"O", "b", "U", "S"} or str(s.dtype) in ("category", "string"):
            out.append(str(c))
            continue
        nunique = s.nunique(dropna=True)
        if n > 0 and nunique <= max(20, int(0.05 * n)):
            out.append(str(c))
    return out


def is_categorical_column(df: pd.DataFrame, col: str) -> bool:
    """Return True if col is a categorical candidate (suitable for boxplot x-axis, facets, etc.)."""
    if col not in df.columns:
        return False
    return col in categorical_candidates(df)


def column_kinds(df: pd.DataFrame) -> dict[str, str]:
    """Map each column to "numeric" or "categorical" by dtype."""
    return {
        str(c): "numeric" if is_numeric_column(df, c) else "categorical"
        for c in df.columns
    }
