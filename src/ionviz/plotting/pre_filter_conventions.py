"""Pre-filter conventions for chart specs.

Single source of truth for the "no filter" sentinel so ChartSpec,
TableProcessor and FigureGenerator agree on it.
"""

# Sentinel value meaning "no filter" for a pre-filter column.
# Used in: ChartSpec.pre_filter, TableProcessor.filter_by_pre_filters, notebook dropdowns.
PRE_FILTER_NONE = "(none)"


def default_pre_filter(pre_filter_columns: list[str]) -> dict[str, str]:
    """Build an initial pre_filter dict where every column is unfiltered.

    Args:
        pre_filter_columns: Column names used for pre-filtering.

    Returns:
        Dict mapping each column to PRE_FILTER_NONE.
    """
    return {col: PRE_FILTER_NONE for col in pre_filter_columns}


def is_filtered(selections: dict[str, object]) -> bool:
    """True if any selection applies a filter (is not None or PRE_FILTER_NONE)."""
    return any(v is not None and v != PRE_FILTER_NONE for v in selections.values())


def format_pre_filter_display(selections: dict[str, object]) -> str:
    """Short label for trace names and titles: active pre-filter or 'All'."""
    if not is_filtered(selections):
        return "All"
    parts = [f"{k}={v}" for k, v in selections.items() if v is not None and v != PRE_FILTER_NONE]
    return ", ".join(parts)
