"""Plotly figure generation for declarative chart specs.

This module provides the FigureGenerator class, which renders a table (or a
pre-filtered view of it) and a ChartSpec into a Plotly figure dictionary:
one sub-plot per facet panel, one set of traces per geom layer per panel.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

import numpy as np
import pandas as pd
import plotly.graph_objects as go
from plotly.colors import qualitative
from plotly.subplots import make_subplots

from ionviz.utils.logging import get_logger
from ionviz.plotting.chart_spec import DEFAULT_TEMPLATE, ChartSpec, Facet, Geom
from ionviz.plotting.table_processor import TableProcessor
from ionviz.plotting.plot_helpers import is_numeric_column
from ionviz.plotting.pre_filter_conventions import format_pre_filter_display
from ionviz.plotting.algorithms.binning import histogram_counts, histogram_edges
from ionviz.plotting.algorithms.facets import FacetPanel, facet_panels, grid_shape
from ionviz.plotting.algorithms.smoothing import can_smooth, fit_smooth

logger = get_logger(__name__)

# Discrete palette for color/fill categories (cycled when exhausted)
PALETTE = qualitative.Plotly

# Single-series color for geoms without a color/fill mapping
DEFAULT_COLOR = "#444444"
SMOOTH_COLOR = "#3366FF"

# Plotly marker symbols for the shape channel
PLOTLY_SYMBOLS = [
    "circle", "square", "diamond", "triangle-up", "triangle-down",
    "triangle-left", "triangle-right", "pentagon", "hexagon", "hexagon2",
    "octagon", "star", "hexagram", "star-triangle-up", "star-triangle-down",
    "star-square", "star-diamond", "diamond-tall", "diamond-wide", "hourglass",
    "bowtie", "circle-cross", "circle-x", "square-cross", "square-x",
    "diamond-cross", "diamond-x", "cross", "x", "triangle-ne",
]

_COUNT_GEOMS = {Geom.BAR, Geom.HISTOGRAM}
_BAR_GEOMS = {Geom.BAR, Geom.COL, Geom.HISTOGRAM}


@dataclass
class _RenderContext:
    """Per-figure state shared by every panel and layer."""
    spec: ChartSpec
    x_categories: Optional[list[str]]
    group_order: dict[str, list[str]]
    colors: dict[tuple[str, str], str]
    symbols: dict[str, str]
    continuous_color: bool
    hist_edges: Optional[np.ndarray]
    rng: np.random.Generator
    legend_seen: set[str] = field(default_factory=set)
    colorbar_shown: bool = False


class FigureGenerator:
    """Generates Plotly figure dictionaries from a table and a ChartSpec.

    Geoms are drawn in the order the spec lists them, so later layers sit on
    top (e.g. POINT then SMOOTH). Every mapped column must exist; a missing
    one raises MissingColumnError before anything is drawn.

    Attributes:
        template: Plotly template used when the spec does not name one.
    """

    def __init__(self, *, template: str = DEFAULT_TEMPLATE) -> None:
        self.template = template

    def make_figure(self, df: pd.DataFrame, spec: ChartSpec) -> dict:
        """Generate a Plotly figure dictionary for the spec.

        Args:
            df: Table (or filtered view). Rows the chart should not show must be
                removed by the caller; only spec.pre_filter is applied here.
            spec: ChartSpec to render.

        Returns:
            Plotly figure dictionary.
        """
        spec.validate_columns(df)
        df_f = TableProcessor(df).filter_by_pre_filters(spec.pre_filter) if spec.pre_filter else df

        logger.info(
            f"FigureGenerator.make_figure: geoms={[g.value for g in spec.geoms]}, "
            f"rows={len(df_f)}, aes={spec.aes.to_dict()}, facet={spec.facet.columns()}, "
            f"pre_filter={format_pre_filter_display(spec.pre_filter)}"
        )
        if Geom.HISTOGRAM in spec.geoms and spec.bin_width is None:
            logger.info(f"histogram using bins = {spec.bins}. Pick a better value with bin_width.")

        ctx = self._make_context(df_f, spec)
        panels = facet_panels(df_f, spec.facet)
        nrows, ncols = grid_shape(spec.facet, panels)
        fig = self._make_subplots(spec.facet, panels, nrows, ncols)

        for panel in panels:
            for geom in spec.geoms:
                self._add_layer(fig, geom, panel, ctx)

        self._apply_layout(fig, ctx, nrows, ncols)
        result = fig.to_dict()
        logger.debug(f"Figure generated: {len(result.get('data', []))} traces in {len(panels)} panel(s)")
        return result

    # -----------------------------
    # Setup
    # -----------------------------
    def _make_context(self, df_f: pd.DataFrame, spec: ChartSpec) -> _RenderContext:
        aes = spec.aes
        x_categories = None
        if aes.x and not is_numeric_column(df_f, aes.x):
            x_categories = self._category_order(df_f, aes.x)
            for geom in (Geom.HISTOGRAM, Geom.SMOOTH):
                if geom in spec.geoms:
                    raise ValueError(f"geom {geom.value!r} needs a numeric x column; {aes.x!r} is categorical")

        continuous_color = bool(aes.color) and is_numeric_column(df_f, aes.color)

        group_order: dict[str, list[str]] = {}
        colors: dict[tuple[str, str], str] = {}
        for slot, col in (("color", aes.color), ("fill", aes.fill)):
            if not col or col in group_order or (slot == "color" and continuous_color):
                continue
            order = self._category_order(df_f, col)
            group_order[col] = order
            for i, value in enumerate(order):
                colors[(col, value)] = PALETTE[i % len(PALETTE)]

        symbols: dict[str, str] = {}
        if aes.shape:
            shape_order = self._category_order(df_f, aes.shape)
            group_order.setdefault(aes.shape, shape_order)
            symbols = {v: PLOTLY_SYMBOLS[i % len(PLOTLY_SYMBOLS)] for i, v in enumerate(shape_order)}

        # Shared bin edges unless every panel has its own x scale
        hist_edges = None
        if Geom.HISTOGRAM in spec.geoms and not (spec.facet.is_active and spec.facet.free_scales):
            hist_edges = histogram_edges(
                pd.to_numeric(df_f[aes.x], errors="coerce"),
                bin_width=spec.bin_width,
                bins=spec.bins,
            )

        return _RenderContext(
            spec=spec,
            x_categories=x_categories,
            group_order=group_order,
            colors=colors,
            symbols=symbols,
            continuous_color=continuous_color,
            hist_edges=hist_edges,
            rng=np.random.default_rng(spec.jitter_seed),
        )

    @staticmethod
    def _category_order(df: pd.DataFrame, col: str) -> list[str]:
        return [str(v) for v in sorted(df[col].dropna().unique().tolist())]

    def _make_subplots(self, facet: Facet, panels: list[FacetPanel], nrows: int, ncols: int) -> go.Figure:
        shared = False if facet.free_scales else "all"
        kwargs: dict[str, Any] = dict(
            rows=nrows,
            cols=ncols,
            shared_xaxes=shared,
            shared_yaxes=shared,
            horizontal_spacing=min(0.06, 0.9 / max(ncols - 1, 1)),
            vertical_spacing=min(0.1, 0.9 / max(nrows - 1, 1)),
        )
        if facet.wrap:
            kwargs["subplot_titles"] = [p.title for p in panels]
        elif panels and (facet.rows or facet.cols):
            col_key = 1 if facet.rows else 0
            if facet.rows:
                kwargs["row_titles"] = [
                    str(next(p.key[0] for p in panels if p.row == r)) for r in range(1, nrows + 1)
                ]
            if facet.cols:
                kwargs["column_titles"] = [
                    str(next(p.key[col_key] for p in panels if p.col == c)) for c in range(1, ncols + 1)
                ]
        return make_subplots(**kwargs)

    # -----------------------------
    # Shared helpers
    # -----------------------------
    def _x_positions(self, x: pd.Series, ctx: _RenderContext) -> np.ndarray:
        """Numeric x, or category index 0..n-1 when x is categorical."""
        if ctx.x_categories is None:
            return pd.to_numeric(x, errors="coerce").to_numpy(dtype=float)
        cat_to_pos = {c: float(i) for i, c in enumerate(ctx.x_categories)}
        return x.map(lambda v: cat_to_pos.get(str(v), np.nan) if pd.notna(v) else np.nan).to_numpy(dtype=float)

    def _groups(
        self, data: pd.DataFrame, col: Optional[str], ctx: _RenderContext
    ) -> list[tuple[int, Optional[str], pd.DataFrame]]:
        """(index in global order, label, rows) per group of col; one unlabelled group if col is None."""
        if not col:
            return [(0, None, data)]
        order = ctx.group_order[col]
        labels = data[col].map(lambda v: str(v) if pd.notna(v) else None)
        out = []
        for idx, label in enumerate(order):
            sub = data[labels == label]
            if len(sub) > 0:
                out.append((idx, label, sub))
        return out

    def _legend(self, label: Optional[str], ctx: _RenderContext) -> dict[str, Any]:
        """Trace name/legend kwargs; each label gets one legend entry across panels and layers."""
        if label is None:
            return dict(name=format_pre_filter_display(ctx.spec.pre_filter), showlegend=False)
        show = ctx.spec.show_legend and label not in ctx.legend_seen
        ctx.legend_seen.add(label)
        return dict(name=label, legendgroup=label, showlegend=show)

    def _group_color(self, col: Optional[str], label: Optional[str], ctx: _RenderContext, default: str) -> str:
        if col is None or label is None:
            return default
        return ctx.colors.get((col, label), default)

    def _point_group_col(self, ctx: _RenderContext) -> Optional[str]:
        """Column that splits point/line traces: categorical color, else shape."""
        aes = ctx.spec.aes
        if aes.color and not ctx.continuous_color:
            return aes.color
        return aes.shape

    def _box_group_col(self, ctx: _RenderContext) -> Optional[str]:
        """Column that splits boxes: fill, else categorical color."""
        aes = ctx.spec.aes
        if aes.fill:
            return aes.fill
        return aes.color if not ctx.continuous_color else None

    # -----------------------------
    # Layers
    # -----------------------------
    def _add_layer(self, fig: go.Figure, geom: Geom, panel: FacetPanel, ctx: _RenderContext) -> None:
        if geom == Geom.POINT:
            self._layer_points(fig, panel, ctx, jitter=False)
        elif geom == Geom.JITTER:
            self._layer_points(fig, panel, ctx, jitter=True)
        elif geom == Geom.LINE:
            self._layer_line(fig, panel, ctx)
        elif geom == Geom.BAR:
            self._layer_bar(fig, panel, ctx)
        elif geom == Geom.COL:
            self._layer_col(fig, panel, ctx)
        elif geom == Geom.HISTOGRAM:
            self._layer_histogram(fig, panel, ctx)
        elif geom == Geom.SMOOTH:
            self._layer_smooth(fig, panel, ctx)
        elif geom == Geom.BOXPLOT:
            self._layer_boxplot(fig, panel, ctx)
        else:
            raise ValueError(f"Unsupported geom {geom!r}")

    def _layer_points(self, fig: go.Figure, panel: FacetPanel, ctx: _RenderContext, *, jitter: bool) -> None:
        """Scatter points; JITTER adds seeded uniform noise, dodge_width separates groups."""
        spec = ctx.spec
        aes = spec.aes
        group_col = self._point_group_col(ctx)
        n_groups = len(ctx.group_order.get(group_col, [])) if group_col else 1

        for idx, label, sub in self._groups(panel.data, group_col, ctx):
            x = self._x_positions(sub[aes.x], ctx)
            y = pd.to_numeric(sub[aes.y], errors="coerce").to_numpy(dtype=float)
            if spec.dodge_width and n_groups > 1:
                x = x + (idx - (n_groups - 1) / 2) * spec.dodge_width
            if jitter:
                x = x + ctx.rng.uniform(-spec.jitter_width, spec.jitter_width, size=len(x))
                if spec.jitter_height:
                    y = y + ctx.rng.uniform(-spec.jitter_height, spec.jitter_height, size=len(y))

            marker: dict[str, Any] = dict(size=spec.point_size, opacity=spec.opacity)
            if ctx.continuous_color:
                marker.update(
                    color=pd.to_numeric(sub[aes.color], errors="coerce").tolist(),
                    colorscale="Viridis",
                    showscale=not ctx.colorbar_shown,
                    colorbar=dict(title=dict(text=spec.labels.legend or aes.color)),
                )
                ctx.colorbar_shown = True
            else:
                marker["color"] = self._group_color(aes.color, label if group_col == aes.color else None, ctx, DEFAULT_COLOR)
            if aes.shape:
                marker["symbol"] = [ctx.symbols.get(str(v), "circle") for v in sub[aes.shape]]

            fig.add_trace(
                go.Scatter(
                    x=x.tolist(),
                    y=y.tolist(),
                    mode="markers",
                    marker=marker,
                    customdata=sub[aes.x].astype(str).tolist(),
                    hovertemplate=f"{aes.x}=%{{customdata}}<br>{aes.y}=%{{y}}<extra></extra>",
                    **self._legend(label, ctx),
                ),
                row=panel.row,
                col=panel.col,
            )

    def _layer_line(self, fig: go.Figure, panel: FacetPanel, ctx: _RenderContext) -> None:
        """Points joined in x order, one line per group."""
        spec = ctx.spec
        aes = spec.aes
        group_col = self._point_group_col(ctx)
        for _, label, sub in self._groups(panel.data, group_col, ctx):
            x = self._x_positions(sub[aes.x], ctx)
            y = pd.to_numeric(sub[aes.y], errors="coerce").to_numpy(dtype=float)
            order = np.argsort(x, kind="stable")
            color = self._group_color(aes.color, label if group_col == aes.color else None, ctx, DEFAULT_COLOR)
            fig.add_trace(
                go.Scatter(
                    x=x[order].tolist(),
                    y=y[order].tolist(),
                    mode="lines",
                    line=dict(color=color, width=2),
                    opacity=spec.opacity,
                    **self._legend(label, ctx),
                ),
                row=panel.row,
                col=panel.col,
            )

    def _layer_bar(self, fig: go.Figure, panel: FacetPanel, ctx: _RenderContext) -> None:
        """Count of rows per x value, stacked by fill."""
        spec = ctx.spec
        aes = spec.aes
        for _, label, sub in self._groups(panel.data, aes.fill, ctx):
            x = pd.Series(self._x_positions(sub[aes.x], ctx)).dropna()
            counts = x.value_counts().sort_index()
            fig.add_trace(
                go.Bar(
                    x=counts.index.tolist(),
                    y=counts.values.tolist(),
                    marker=dict(color=self._group_color(aes.fill, label, ctx, DEFAULT_COLOR)),
                    opacity=spec.opacity,
                    hovertemplate="count=%{y}<extra></extra>",
                    **self._legend(label, ctx),
                ),
                row=panel.row,
                col=panel.col,
            )

    def _layer_col(self, fig: go.Figure, panel: FacetPanel, ctx: _RenderContext) -> None:
        """Bar heights from y (summed per x value), stacked by fill."""
        spec = ctx.spec
        aes = spec.aes
        for _, label, sub in self._groups(panel.data, aes.fill, ctx):
            tmp = pd.DataFrame({
                "x": self._x_positions(sub[aes.x], ctx),
                "y": pd.to_numeric(sub[aes.y], errors="coerce").to_numpy(dtype=float),
            }).dropna(subset=["x"])
            heights = tmp.groupby("x", sort=True)["y"].sum()
            fig.add_trace(
                go.Bar(
                    x=heights.index.tolist(),
                    y=heights.values.tolist(),
                    marker=dict(color=self._group_color(aes.fill, label, ctx, DEFAULT_COLOR)),
                    opacity=spec.opacity,
                    **self._legend(label, ctx),
                ),
                row=panel.row,
                col=panel.col,
            )

    def _layer_histogram(self, fig: go.Figure, panel: FacetPanel, ctx: _RenderContext) -> None:
        """Binned counts of x drawn as touching bars; fill groups stack on shared edges."""
        spec = ctx.spec
        aes = spec.aes
        edges = ctx.hist_edges
        if edges is None:
            edges = histogram_edges(
                pd.to_numeric(panel.data[aes.x], errors="coerce"),
                bin_width=spec.bin_width,
                bins=spec.bins,
            )
        if edges.size < 2:
            logger.warning(f"No finite {aes.x!r} values for histogram panel {panel.title!r}, panel left empty")
            return

        centers = (edges[:-1] + edges[1:]) / 2
        widths = np.diff(edges)
        bounds = np.column_stack([edges[:-1], edges[1:]]).tolist()
        for _, label, sub in self._groups(panel.data, aes.fill, ctx):
            counts, _ = histogram_counts(pd.to_numeric(sub[aes.x], errors="coerce"), edges=edges)
            fig.add_trace(
                go.Bar(
                    x=centers.tolist(),
                    y=counts.tolist(),
                    width=widths.tolist(),
                    marker=dict(
                        color=self._group_color(aes.fill, label, ctx, DEFAULT_COLOR),
                        line=dict(width=0.5, color="white"),
                    ),
                    opacity=spec.opacity,
                    customdata=bounds,
                    meta={"bin_edges": edges.tolist()},
                    hovertemplate="[%{customdata[0]:.4g}, %{customdata[1]:.4g}]<br>count=%{y}<extra></extra>",
                    **self._legend(label, ctx),
                ),
                row=panel.row,
                col=panel.col,
            )

    def _layer_smooth(self, fig: go.Figure, panel: FacetPanel, ctx: _RenderContext) -> None:
        """Trend curve per color group, with a confidence band when the fit provides one."""
        spec = ctx.spec
        aes = spec.aes
        group_col = aes.color if aes.color and not ctx.continuous_color else None
        for _, label, sub in self._groups(panel.data, group_col, ctx):
            x = pd.to_numeric(sub[aes.x], errors="coerce").to_numpy(dtype=float)
            y = pd.to_numeric(sub[aes.y], errors="coerce").to_numpy(dtype=float)
            if not can_smooth(x, y):
                logger.warning(
                    f"Not enough distinct {aes.x!r} values to smooth group {label!r} "
                    f"in panel {panel.title!r}, skipping"
                )
                continue
            fit = fit_smooth(x, y, method=spec.smooth_method, span=spec.span, se=spec.smooth_se)
            color = self._group_color(group_col, label, ctx, SMOOTH_COLOR)
            if fit.has_band:
                fig.add_trace(
                    go.Scatter(
                        x=np.concatenate([fit.x, fit.x[::-1]]).tolist(),
                        y=np.concatenate([fit.upper, fit.lower[::-1]]).tolist(),
                        mode="lines",
                        fill="toself",
                        fillcolor=color,
                        line=dict(width=0, color=color),
                        opacity=0.2,
                        hoverinfo="skip",
                        showlegend=False,
                        legendgroup=label,
                        name=f"{label} ({spec.smooth_method} band)" if label else f"{spec.smooth_method} band",
                    ),
                    row=panel.row,
                    col=panel.col,
                )
            fig.add_trace(
                go.Scatter(
                    x=fit.x.tolist(),
                    y=fit.y.tolist(),
                    mode="lines",
                    line=dict(color=color, width=2),
                    meta={"smooth_method": spec.smooth_method},
                    **self._legend(label, ctx),
                ),
                row=panel.row,
                col=panel.col,
            )

    def _layer_boxplot(self, fig: go.Figure, panel: FacetPanel, ctx: _RenderContext) -> None:
        """Box-and-whisker per x value; fill (or color) groups sit side by side."""
        spec = ctx.spec
        aes = spec.aes
        group_col = self._box_group_col(ctx)
        dodged = group_col is not None and group_col != aes.x
        for _, label, sub in self._groups(panel.data, group_col, ctx):
            color = self._group_color(group_col, label, ctx, DEFAULT_COLOR)
            kwargs: dict[str, Any] = dict(
                y=pd.to_numeric(sub[aes.y], errors="coerce").tolist(),
                boxpoints="outliers",
                marker=dict(size=4, color=color),
                line=dict(width=1.5, color=color),
                **self._legend(label, ctx),
            )
            if aes.x:
                kwargs["x"] = self._x_positions(sub[aes.x], ctx).tolist()
            if dodged:
                kwargs.update(alignmentgroup="x", offsetgroup=label)
            fig.add_trace(go.Box(**kwargs), row=panel.row, col=panel.col)

    # -----------------------------
    # Layout
    # -----------------------------
    def _apply_layout(self, fig: go.Figure, ctx: _RenderContext, nrows: int, ncols: int) -> None:
        spec = ctx.spec
        aes = spec.aes
        counts_only = any(g in _COUNT_GEOMS for g in spec.geoms) and not aes.y
        x_title = spec.labels.x if spec.labels.x is not None else (aes.x or "")
        y_title = spec.labels.y if spec.labels.y is not None else (aes.y or ("count" if counts_only else ""))

        # Axis titles once: x along the bottom row, y down the first column
        for c in range(1, ncols + 1):
            fig.update_xaxes(title_text=x_title, row=nrows, col=c)
        for r in range(1, nrows + 1):
            fig.update_yaxes(title_text=y_title, row=r, col=1)

        if ctx.x_categories is not None:
            fig.update_xaxes(
                tickmode="array",
                tickvals=list(range(len(ctx.x_categories))),
                ticktext=ctx.x_categories,
            )
        if spec.hide_x_ticks:
            fig.update_xaxes(showticklabels=False)
        if spec.hide_y_ticks:
            fig.update_yaxes(showticklabels=False)

        legend_cols = [c for c in (aes.color, aes.fill, aes.shape) if c and c in ctx.group_order]
        legend_title = spec.labels.legend or " / ".join(dict.fromkeys(legend_cols))

        layout: dict[str, Any] = dict(
            template=spec.template or self.template,
            margin=dict(l=50, r=30, t=60 if spec.labels.title else 40, b=50),
            showlegend=spec.show_legend,
            uirevision="keep",
        )
        if spec.labels.title:
            layout["title_text"] = spec.labels.title
        if legend_title:
            layout["legend_title_text"] = legend_title
        if any(g in _BAR_GEOMS for g in spec.geoms):
            layout["barmode"] = "stack"
            layout["bargap"] = 0.1 if Geom.HISTOGRAM not in spec.geoms else 0
        box_group = self._box_group_col(ctx)
        if Geom.BOXPLOT in spec.geoms and box_group is not None and box_group != aes.x:
            layout["boxmode"] = "group"
        fig.update_layout(**layout)
