"""Declarative chart grammar rendered with Plotly, plus pandas quick plots."""

from ionviz.plotting.chart_spec import Aes, ChartSpec, Facet, Geom, Labels
from ionviz.plotting.figure_generator import FigureGenerator
from ionviz.plotting.plot_helpers import MissingColumnError, column_kinds, require_columns
from ionviz.plotting.quick_plot import quick_bar_counts, quick_box, quick_hist, quick_scatter
from ionviz.plotting.table_processor import TableProcessor

__all__ = [
    "Aes",
    "ChartSpec",
    "Facet",
    "FigureGenerator",
    "Geom",
    "Labels",
    "MissingColumnError",
    "TableProcessor",
    "column_kinds",
    "quick_bar_counts",
    "quick_box",
    "quick_hist",
    "quick_scatter",
    "require_columns",
]
