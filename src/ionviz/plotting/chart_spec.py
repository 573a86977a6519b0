"""Declarative chart specification.

This module defines the Geom enum and the ChartSpec dataclass (with its Aes,
Facet and Labels parts): the table-independent description of one chart.
FigureGenerator turns a table plus a ChartSpec into a Plotly figure.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Optional

import pandas as pd

from ionviz.utils.logging import get_logger
from ionviz.plotting.plot_helpers import require_columns

logger = get_logger(__name__)

DEFAULT_BINS = 30
DEFAULT_TEMPLATE = "plotly_white"
SMOOTH_METHODS = ("loess", "lm")


class Geom(Enum):
    """Geometric rendering primitives a chart layer can use."""
    POINT = "point"
    JITTER = "jitter"
    LINE = "line"
    BAR = "bar"          # count of rows per x value
    COL = "col"          # bar height taken from y
    HISTOGRAM = "histogram"
    SMOOTH = "smooth"
    BOXPLOT = "boxplot"


# Geoms that need both x and y mapped
_NEEDS_XY = {Geom.POINT, Geom.JITTER, Geom.LINE, Geom.COL, Geom.SMOOTH}


@dataclass
class Aes:
    """Mapping of columns to visual channels."""
    x: Optional[str] = None
    y: Optional[str] = None
    color: Optional[str] = None  # points, lines, smooth curves
    fill: Optional[str] = None   # bars, histograms, boxes
    shape: Optional[str] = None  # point marker symbol

    def columns(self) -> list[str]:
        """Mapped column names, in channel order, without duplicates."""
        cols = [self.x, self.y, self.color, self.fill, self.shape]
        return [c for c in dict.fromkeys(cols) if c]

    def to_dict(self) -> dict[str, Any]:
        return {"x": self.x, "y": self.y, "color": self.color, "fill": self.fill, "shape": self.shape}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Aes":
        return cls(**{k: data.get(k) for k in ("x", "y", "color", "fill", "shape")})


@dataclass
class Facet:
    """Partition of a chart into a grid of sub-plots.

    Use ``wrap`` for one categorical column (panels wrapped into ``ncol``
    columns) or ``rows``/``cols`` for a grid keyed by one or two columns.
    """
    wrap: Optional[str] = None
    rows: Optional[str] = None
    cols: Optional[str] = None
    ncol: Optional[int] = None
    free_scales: bool = True   # each panel gets its own axis ranges

    def __post_init__(self) -> None:
        if self.wrap and (self.rows or self.cols):
            raise ValueError("Facet takes either wrap or rows/cols, not both")
        if self.ncol is not None and self.ncol < 1:
            raise ValueError(f"Facet ncol must be >= 1, got {self.ncol}")

    @property
    def is_active(self) -> bool:
        return bool(self.wrap or self.rows or self.cols)

    def columns(self) -> list[str]:
        return [c for c in (self.wrap, self.rows, self.cols) if c]

    def to_dict(self) -> dict[str, Any]:
        return {
            "wrap": self.wrap,
            "rows": self.rows,
            "cols": self.cols,
            "ncol": self.ncol,
            "free_scales": self.free_scales,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Facet":
        ncol = data.get("ncol")
        return cls(
            wrap=data.get("wrap"),
            rows=data.get("rows"),
            cols=data.get("cols"),
            ncol=int(ncol) if ncol is not None else None,
            free_scales=bool(data.get("free_scales", True)),
        )


@dataclass
class Labels:
    """Cosmetic text overrides. None means "use the column name"."""
    title: Optional[str] = None
    x: Optional[str] = None
    y: Optional[str] = None
    legend: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "x": self.x, "y": self.y, "legend": self.legend}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Labels":
        return cls(**{k: data.get(k) for k in ("title", "x", "y", "legend")})


@dataclass
class ChartSpec:
    """Configuration for a single chart.

    Holds the aesthetic mapping, the ordered geom layers, an optional facet
    partition, cosmetic labels, and the per-geom parameters (bins, smoothing,
    jitter). Construction validates combinations that can never render.
    """
    aes: Aes
    geoms: list[Geom] = field(default_factory=lambda: [Geom.POINT])
    facet: Facet = field(default_factory=Facet)
    labels: Labels = field(default_factory=Labels)
    pre_filter: dict[str, Any] = field(default_factory=dict)  # column -> value; PRE_FILTER_NONE = no filter
    bin_width: Optional[float] = None  # histogram; None = automatic fixed bin count
    bins: int = DEFAULT_BINS           # histogram bin count when bin_width is None
    smooth_method: str = "loess"       # "loess" or "lm"
    smooth_se: bool = True             # confidence band (lm only)
    span: float = 0.75                 # loess fraction of points per local fit
    jitter_width: float = 0.2          # +/- horizontal jitter for JITTER
    jitter_height: float = 0.0         # +/- vertical jitter for JITTER
    dodge_width: float = 0.0           # side-by-side offset between color groups
    jitter_seed: int = 0
    point_size: int = 7
    opacity: float = 1.0
    hide_x_ticks: bool = False
    hide_y_ticks: bool = False
    show_legend: bool = True
    template: Optional[str] = None     # None = FigureGenerator default

    def __post_init__(self) -> None:
        self.geoms = [g if isinstance(g, Geom) else Geom(g) for g in self.geoms]
        if not self.geoms:
            raise ValueError("ChartSpec needs at least one geom")
        for geom in self.geoms:
            if geom in _NEEDS_XY and not (self.aes.x and self.aes.y):
                raise ValueError(f"geom {geom.value!r} needs both x and y mapped")
            if geom in (Geom.BAR, Geom.HISTOGRAM) and not self.aes.x:
                raise ValueError(f"geom {geom.value!r} needs x mapped")
            if geom == Geom.BOXPLOT and not self.aes.y:
                raise ValueError("geom 'boxplot' needs y mapped")
        if self.bin_width is not None and not self.bin_width > 0:
            raise ValueError(f"bin_width must be > 0, got {self.bin_width}")
        if self.bins < 1:
            raise ValueError(f"bins must be >= 1, got {self.bins}")
        if self.smooth_method not in SMOOTH_METHODS:
            raise ValueError(f"smooth_method must be one of {SMOOTH_METHODS}, got {self.smooth_method!r}")
        if not 0 < self.span <= 1:
            raise ValueError(f"span must be in (0, 1], got {self.span}")

    def columns(self) -> list[str]:
        """Every column the spec reads: mapped, facet and pre-filter columns."""
        cols = self.aes.columns() + self.facet.columns() + list(self.pre_filter.keys())
        return list(dict.fromkeys(cols))

    def validate_columns(self, df: pd.DataFrame) -> None:
        """Raise MissingColumnError if the table lacks any column the spec reads."""
        require_columns(df, self.columns())

    def to_dict(self) -> dict[str, Any]:
        """Serialize ChartSpec to a JSON-friendly dictionary."""
        return {
            "aes": self.aes.to_dict(),
            "geoms": [g.value for g in self.geoms],
            "facet": self.facet.to_dict(),
            "labels": self.labels.to_dict(),
            "pre_filter": self.pre_filter,
            "bin_width": self.bin_width,
            "bins": self.bins,
            "smooth_method": self.smooth_method,
            "smooth_se": self.smooth_se,
            "span": self.span,
            "jitter_width": self.jitter_width,
            "jitter_height": self.jitter_height,
            "dodge_width": self.dodge_width,
            "jitter_seed": self.jitter_seed,
            "point_size": self.point_size,
            "opacity": self.opacity,
            "hide_x_ticks": self.hide_x_ticks,
            "hide_y_ticks": self.hide_y_ticks,
            "show_legend": self.show_legend,
            "template": self.template,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChartSpec":
        """Deserialize ChartSpec from a dictionary.

        Missing keys take their defaults; unknown keys are ignored with a warning.

        Raises:
            ValueError: If the decoded values fail ChartSpec validation.
        """
        known = {f.name for f in fields(cls)}
        for key in data.keys():
            if key not in known:
                logger.warning(f"Unknown key '{key}' in chart spec, ignoring")

        pre_filter = data.get("pre_filter")
        if not isinstance(pre_filter, dict):
            pre_filter = {}
        bin_width = data.get("bin_width")
        return cls(
            aes=Aes.from_dict(data.get("aes") or {}),
            geoms=[Geom(g) for g in data.get("geoms", [Geom.POINT.value])],
            facet=Facet.from_dict(data.get("facet") or {}),
            labels=Labels.from_dict(data.get("labels") or {}),
            pre_filter=dict(pre_filter),
            bin_width=float(bin_width) if bin_width is not None else None,
            bins=int(data.get("bins", DEFAULT_BINS)),
            smooth_method=str(data.get("smooth_method", "loess")),
            smooth_se=bool(data.get("smooth_se", True)),
            span=float(data.get("span", 0.75)),
            jitter_width=float(data.get("jitter_width", 0.2)),
            jitter_height=float(data.get("jitter_height", 0.0)),
            dodge_width=float(data.get("dodge_width", 0.0)),
            jitter_seed=int(data.get("jitter_seed", 0)),
            point_size=int(data.get("point_size", 7)),
            opacity=float(data.get("opacity", 1.0)),
            hide_x_ticks=bool(data.get("hide_x_ticks", False)),
            hide_y_ticks=bool(data.get("hide_y_ticks", False)),
            show_legend=bool(data.get("show_legend", True)),
            template=data.get("template"),
        )
