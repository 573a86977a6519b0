"""
ionviz: Visualizing ion ratio tables with a declarative chart grammar.

This package provides:
- ChartSpec / FigureGenerator: aesthetic mappings, geoms and facets rendered to Plotly
- Quick plots: pandas DataFrame.plot with the Plotly backend, for contrast
- The ion ratio lesson: table loading, derived columns and the ordered lesson steps
- Logging utilities for library and application use

For logging configuration in standalone scripts/notebooks:
    ```python
    from ionviz.utils.logging import configure_logging
    configure_logging(level="DEBUG")
    ```

When used as a library (imported by other applications), logging is
automatically handled by the parent application's configuration.
"""

import logging

from ionviz.utils.logging import configure_logging, get_logger

from ionviz.plotting import Aes, ChartSpec, Facet, FigureGenerator, Geom, Labels, MissingColumnError
from ionviz.lesson import lesson_steps, load_table, prepare_lesson_data, render_step

# Ensure ionviz logger has NullHandler so logs don't propagate to root
# when no application has configured logging. Applications/notebooks call
# configure_logging() to replace this with a real handler.
_logger = logging.getLogger("ionviz")
if not _logger.handlers:
    _logger.addHandler(logging.NullHandler())

__all__ = [
    "Aes",
    "ChartSpec",
    "Facet",
    "FigureGenerator",
    "Geom",
    "Labels",
    "MissingColumnError",
    "configure_logging",
    "get_logger",
    "lesson_steps",
    "load_table",
    "prepare_lesson_data",
    "render_step",
]

__version__ = "0.1.0"
