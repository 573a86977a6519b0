"""Lesson steps: the ordered charts of the ion ratio lesson.

Each LessonStep pairs a short markdown narrative with either a quick plot
(pandas + Plotly backend) or a ChartSpec rendered by FigureGenerator, and
names which view of the prepared table it draws. The notebook walks these in
order; tests render every one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Union

import pandas as pd
import plotly.graph_objects as go

from ionviz.utils.logging import get_logger
from ionviz.plotting.chart_spec import Aes, ChartSpec, Facet, Geom, Labels
from ionviz.plotting.figure_generator import FigureGenerator
from ionviz.plotting.quick_plot import quick_box, quick_hist, quick_scatter
from ionviz.plotting.table_processor import DEFAULT_ROW_INDEX_COL, TableProcessor
from ionviz.lesson.schema import (
    COMPOUND_NAME,
    CONCENTRATION,
    EXPECTED_CONCENTRATION,
    ION_RATIO,
    SAMPLE_TYPE,
    UNKNOWN_SAMPLE_TYPE,
)

logger = get_logger(__name__)

ROW_INDEX = DEFAULT_ROW_INDEX_COL
ION_RATIO_POSITIVE = f"{ION_RATIO}_positive"

# Views of the prepared table a step can draw
TABLE_VIEWS = ("full", "positive", "knowns", "unknowns")


@dataclass
class LessonData:
    """The prepared table and the filtered views the lesson draws from."""
    full: pd.DataFrame
    positive: pd.DataFrame
    knowns: pd.DataFrame
    unknowns: pd.DataFrame

    def view(self, name: str) -> pd.DataFrame:
        if name not in TABLE_VIEWS:
            raise KeyError(f"Unknown table view {name!r}, expected one of {TABLE_VIEWS}")
        return getattr(self, name)


def prepare_lesson_table(df: pd.DataFrame) -> pd.DataFrame:
    """Copy of df with the row index and ion ratio positivity flag added."""
    table = TableProcessor(df).with_row_index(ROW_INDEX)
    return TableProcessor(table).with_positive_flag(ION_RATIO, ION_RATIO_POSITIVE)


def prepare_lesson_data(df: pd.DataFrame) -> LessonData:
    """Prepare the table once and derive the positive-only and known/unknown views."""
    full = prepare_lesson_table(df)
    proc = TableProcessor(full)
    positive = proc.filter_positive(ION_RATIO)
    unknowns, knowns = proc.split_by_sample_type(UNKNOWN_SAMPLE_TYPE, SAMPLE_TYPE)
    logger.info(
        f"Lesson data: {len(full)} rows, {len(positive)} positive {ION_RATIO}, "
        f"{len(knowns)} known / {len(unknowns)} {UNKNOWN_SAMPLE_TYPE} samples"
    )
    return LessonData(full=full, positive=positive, knowns=knowns, unknowns=unknowns)


@dataclass(frozen=True)
class LessonStep:
    """One chart of the lesson.

    Exactly one of ``spec`` (grammar steps) or ``quick`` (quick-plot steps)
    is set; ``table`` names the LessonData view it draws.
    """
    key: str
    title: str
    narrative: str
    table: str = "full"
    spec: Optional[ChartSpec] = None
    quick: Optional[Callable[[pd.DataFrame], go.Figure]] = None

    @property
    def kind(self) -> str:
        return "quick" if self.quick is not None else "grammar"

    def build(self, data: LessonData, generator: Optional[FigureGenerator] = None) -> dict:
        """Render this step to a Plotly figure dictionary."""
        df = data.view(self.table)
        if self.quick is not None:
            return self.quick(df).to_dict()
        if self.spec is None:
            raise ValueError(f"Lesson step {self.key!r} has neither a spec nor a quick plot")
        return (generator or FigureGenerator()).make_figure(df, self.spec)


def lesson_steps() -> list[LessonStep]:
    """The lesson's steps, in teaching order."""
    return [
        LessonStep(
            key="quick_scatter",
            title="A quick look",
            narrative=(
                "The built-in plot is one call: every ion ratio against its row "
                "number. Fast, but there is nothing to build on."
            ),
            quick=lambda df: quick_scatter(df, ROW_INDEX, ION_RATIO),
        ),
        LessonStep(
            key="quick_hist",
            title="A quick histogram",
            narrative="The built-in histogram of the positive ion ratios.",
            table="positive",
            quick=lambda df: quick_hist(df, ION_RATIO),
        ),
        LessonStep(
            key="points_by_row",
            title="The same scatter, declared",
            narrative=(
                "A chart is data, an aesthetic mapping (`x = row_index`, "
                "`y = ion_ratio`) and a geom (`point`)."
            ),
            spec=ChartSpec(
                aes=Aes(x=ROW_INDEX, y=ION_RATIO),
                geoms=[Geom.POINT],
                labels=Labels(x="Row", y="Ion ratio"),
            ),
        ),
        LessonStep(
            key="positive_histogram",
            title="Histogram of positive ion ratios",
            narrative=(
                "Zeros swamp the distribution, so drop them first. Without a bin "
                "width the histogram falls back to 30 bins."
            ),
            table="positive",
            spec=ChartSpec(aes=Aes(x=ION_RATIO), geoms=[Geom.HISTOGRAM]),
        ),
        LessonStep(
            key="histogram_bin_width",
            title="Choosing a bin width",
            narrative="A bin width of 0.01 puts every bin edge on a round number.",
            table="positive",
            spec=ChartSpec(aes=Aes(x=ION_RATIO), geoms=[Geom.HISTOGRAM], bin_width=0.01),
        ),
        LessonStep(
            key="histogram_by_compound",
            title="Fill by compound",
            narrative="Mapping `fill` to the compound stacks one colored layer per compound.",
            table="positive",
            spec=ChartSpec(
                aes=Aes(x=ION_RATIO, fill=COMPOUND_NAME),
                geoms=[Geom.HISTOGRAM],
                bin_width=0.01,
                labels=Labels(legend="Compound"),
            ),
        ),
        LessonStep(
            key="facet_by_compound",
            title="Small multiples",
            narrative=(
                "Stacked layers are hard to compare. `facet_wrap` gives each "
                "compound its own panel with its own scales."
            ),
            table="positive",
            spec=ChartSpec(
                aes=Aes(x=ION_RATIO, fill=COMPOUND_NAME),
                geoms=[Geom.HISTOGRAM],
                bin_width=0.01,
                facet=Facet(wrap=COMPOUND_NAME),
                show_legend=False,
            ),
        ),
        LessonStep(
            key="concentration_vs_expected",
            title="Measured against expected",
            narrative=(
                "Only standards and QCs have an expected concentration. Layer a "
                "linear fit over the points, one per compound."
            ),
            table="knowns",
            spec=ChartSpec(
                aes=Aes(x=EXPECTED_CONCENTRATION, y=CONCENTRATION, color=COMPOUND_NAME),
                geoms=[Geom.POINT, Geom.SMOOTH],
                smooth_method="lm",
                labels=Labels(x="Expected concentration", y="Concentration", legend="Compound"),
            ),
        ),
        LessonStep(
            key="facet_grid",
            title="Two-way facets",
            narrative="`facet_grid` crosses sample type (rows) with compound (columns).",
            table="positive",
            spec=ChartSpec(
                aes=Aes(x=ROW_INDEX, y=ION_RATIO),
                geoms=[Geom.POINT],
                facet=Facet(rows=SAMPLE_TYPE, cols=COMPOUND_NAME),
                point_size=5,
            ),
        ),
        LessonStep(
            key="boxplot_by_compound",
            title="Boxplots",
            narrative=(
                "One box per compound. The fill legend already names the boxes, "
                "so the x tick labels are hidden."
            ),
            table="positive",
            spec=ChartSpec(
                aes=Aes(x=COMPOUND_NAME, y=ION_RATIO, fill=COMPOUND_NAME),
                geoms=[Geom.BOXPLOT],
                hide_x_ticks=True,
                labels=Labels(x="", y="Ion ratio", legend="Compound"),
            ),
        ),
        LessonStep(
            key="jitter_dodge",
            title="Jitter and dodge",
            narrative=(
                "Points on a categorical axis overlap. Jitter spreads them a "
                "little; dodge sets each compound side by side."
            ),
            table="positive",
            spec=ChartSpec(
                aes=Aes(x=SAMPLE_TYPE, y=ION_RATIO, color=COMPOUND_NAME),
                geoms=[Geom.JITTER],
                jitter_width=0.04,
                dodge_width=0.2,
                jitter_seed=1,
                opacity=0.8,
                labels=Labels(x="Sample type", y="Ion ratio", legend="Compound"),
            ),
        ),
        LessonStep(
            key="bar_counts",
            title="Counting rows",
            narrative="`bar` counts rows per compound; `fill` splits each bar by sample type.",
            spec=ChartSpec(
                aes=Aes(x=COMPOUND_NAME, fill=SAMPLE_TYPE),
                geoms=[Geom.BAR],
                labels=Labels(x="Compound", legend="Sample type"),
            ),
        ),
        LessonStep(
            key="quick_box",
            title="And the quick boxplot",
            narrative="For comparison, the built-in boxplot of the same data.",
            table="positive",
            quick=lambda df: quick_box(df, ION_RATIO, by=COMPOUND_NAME),
        ),
    ]


def get_step(key: str) -> LessonStep:
    """Look up a lesson step by key.

    Raises:
        KeyError: If no step has this key.
    """
    for step in lesson_steps():
        if step.key == key:
            return step
    raise KeyError(f"Unknown lesson step {key!r}")


def render_step(
    key: str,
    data: Union[LessonData, pd.DataFrame],
    generator: Optional[FigureGenerator] = None,
) -> dict:
    """Figure dictionary for one lesson step.

    Args:
        key: Step key (see lesson_steps()).
        data: Prepared LessonData, or a loaded table to prepare first.
        generator: FigureGenerator to use. Defaults to a new one.
    """
    step = get_step(key)
    if isinstance(data, pd.DataFrame):
        data = prepare_lesson_data(data)
    logger.info(f"Rendering lesson step {key!r} ({step.kind})")
    return step.build(data, generator)
