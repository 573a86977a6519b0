"""
Ion ratio lesson: Marimo notebook

Loads the configured CSV (or the bundled data/ion_ratios.csv), prepares the
table once, then walks every lesson step: a markdown narrative and the chart
it builds. The last cells are a "try it" chart with dropdowns for x, y,
color, geom, facet, bin width and pre-filters, and a button that saves the
current chart as the configured default.

Run:
  cd ionviz && uv run marimo edit notebooks/ion_ratio_lesson.py
  cd ionviz && uv run marimo run notebooks/ion_ratio_lesson.py

Requires: pip install -e ".[notebook]"
"""

import marimo

__generated_with = "0.19.11"
app = marimo.App(width="medium")


@app.cell(hide_code=True)
def _():
    import marimo as mo
    import sys
    from pathlib import Path

    # Ensure ionviz is importable when run from the project root
    _nb_path = Path(__file__).resolve()
    _src = _nb_path.parent.parent / "src"
    if str(_src) not in sys.path:
        sys.path.insert(0, str(_src))

    import plotly.graph_objects as go

    from ionviz.utils.logging import configure_logging
    from ionviz.lesson.lesson_config import LessonConfig
    from ionviz.lesson.schema import (
        COMPOUND_NAME,
        DEFAULT_CSV,
        ION_RATIO,
        SAMPLE_TYPE,
        get_data_csv_files,
        load_csv_for_file,
        load_table,
    )
    from ionviz.lesson.steps import lesson_steps, prepare_lesson_data
    from ionviz.plotting.chart_spec import Aes, ChartSpec, Facet, Geom
    from ionviz.plotting.figure_generator import FigureGenerator
    from ionviz.plotting.plot_helpers import categorical_candidates, numeric_columns
    from ionviz.plotting.pre_filter_conventions import PRE_FILTER_NONE, default_pre_filter
    from ionviz.plotting.table_processor import TableProcessor

    configure_logging()
    config = LessonConfig.load()
    csv_files = get_data_csv_files()

    return (
        Aes,
        COMPOUND_NAME,
        ChartSpec,
        DEFAULT_CSV,
        Facet,
        FigureGenerator,
        Geom,
        ION_RATIO,
        PRE_FILTER_NONE,
        SAMPLE_TYPE,
        TableProcessor,
        categorical_candidates,
        config,
        csv_files,
        default_pre_filter,
        go,
        lesson_steps,
        load_csv_for_file,
        load_table,
        mo,
        numeric_columns,
        prepare_lesson_data,
    )


@app.cell
def _(DEFAULT_CSV, config, csv_files, mo):
    _default = DEFAULT_CSV if DEFAULT_CSV in csv_files else (csv_files[0] if csv_files else None)
    csv_file_select = mo.ui.dropdown(
        options=csv_files,
        value=_default,
        label="CSV file (data/)",
    )
    _configured = config.get_data_csv()
    mo.vstack(
        [
            mo.md("# Visualizing ion ratios"),
            mo.md(
                f"Configured CSV: `{_configured}`" if _configured
                else "No CSV configured, choose one from `data/`."
            ),
            csv_file_select,
        ],
        gap=1,
    )
    return (csv_file_select,)


@app.cell(hide_code=True)
def _(
    COMPOUND_NAME,
    FigureGenerator,
    ION_RATIO,
    TableProcessor,
    config,
    csv_file_select,
    load_csv_for_file,
    load_table,
    mo,
    prepare_lesson_data,
):
    _configured = config.get_data_csv()
    if _configured is not None:
        df = load_table(_configured)
    else:
        df = load_csv_for_file(csv_file_select.value or "ion_ratios.csv")
    data = prepare_lesson_data(df)
    figure_generator = FigureGenerator(template=config.data.template)

    summary = TableProcessor(data.positive).summarize(COMPOUND_NAME, ION_RATIO)
    mo.vstack(
        [
            mo.md(
                f"**{len(data.full)}** rows, **{len(data.positive)}** with a positive ion ratio, "
                f"**{len(data.knowns)}** known and **{len(data.unknowns)}** unknown samples."
            ),
            mo.md("Positive ion ratios per compound:"),
            mo.ui.table(summary.reset_index(), selection=None),
        ],
        gap=1,
    )
    return data, df, figure_generator


@app.cell(hide_code=True)
def _(data, figure_generator, go, lesson_steps, mo):
    _cells = []
    for _step in lesson_steps():
        _fig = go.Figure(_step.build(data, figure_generator))
        _cells.append(mo.md(f"## {_step.title}\n\n_{_step.kind}_\n\n{_step.narrative}"))
        _cells.append(mo.ui.plotly(_fig))
    mo.vstack(_cells, gap=1)
    return


@app.cell
def _(
    COMPOUND_NAME,
    Geom,
    PRE_FILTER_NONE,
    SAMPLE_TYPE,
    TableProcessor,
    categorical_candidates,
    config,
    data,
    default_pre_filter,
    mo,
    numeric_columns,
):
    # "Try it" controls, seeded from the configured default chart
    _default = config.get_default_chart()
    _num = numeric_columns(data.full)
    _cat = categorical_candidates(data.full)
    _all = list(dict.fromkeys(_num + _cat))

    def _pick(value, options, fallback):
        return value if value in options else fallback

    x_select = mo.ui.dropdown(
        options=_all,
        value=_pick(_default.aes.x if _default else None, _all, "ion_ratio"),
        label="x",
    )
    y_select = mo.ui.dropdown(
        options=[PRE_FILTER_NONE] + _all,
        value=_pick(_default.aes.y if _default else None, _all, PRE_FILTER_NONE),
        label="y",
    )
    color_select = mo.ui.dropdown(
        options=[PRE_FILTER_NONE] + _cat,
        value=_pick(_default.aes.fill if _default else None, _cat, PRE_FILTER_NONE),
        label="color / fill",
    )
    geom_select = mo.ui.dropdown(
        options=[g.value for g in Geom],
        value=_default.geoms[0].value if _default else Geom.HISTOGRAM.value,
        label="geom",
    )
    facet_select = mo.ui.dropdown(
        options=[PRE_FILTER_NONE] + _cat,
        value=_pick(_default.facet.wrap if _default else None, _cat, PRE_FILTER_NONE),
        label="facet wrap",
    )
    bin_width = mo.ui.number(start=0.0, stop=100.0, step=0.005, value=0.01, label="bin width (0 = 30 bins)")
    positive_only = mo.ui.checkbox(value=True, label="Positive ion ratios only")

    # One dropdown per pre-filter column, starting unfiltered
    _pre_filter = default_pre_filter([COMPOUND_NAME, SAMPLE_TYPE])
    if _default:
        _pre_filter.update({k: str(v) for k, v in _default.pre_filter.items() if k in _pre_filter})
    _processor = TableProcessor(data.full)
    pre_filter_selects = mo.ui.dictionary({
        _col: mo.ui.dropdown(
            options=[PRE_FILTER_NONE] + [str(v) for v in _processor.distinct_values(_col)],
            value=_pick(_value, [str(v) for v in _processor.distinct_values(_col)], PRE_FILTER_NONE),
            label=_col,
        )
        for _col, _value in _pre_filter.items()
    })
    save_default = mo.ui.run_button(label="Save as default chart")

    mo.vstack(
        [
            mo.md("## Try it"),
            mo.hstack([x_select, y_select, color_select], justify="start", gap=1),
            mo.hstack([geom_select, facet_select, bin_width], justify="start", gap=1),
            pre_filter_selects.hstack(justify="start", gap=1),
            mo.hstack([positive_only, save_default], justify="start", gap=1),
        ],
        gap=1,
    )
    return (
        bin_width,
        color_select,
        facet_select,
        geom_select,
        positive_only,
        pre_filter_selects,
        save_default,
        x_select,
        y_select,
    )


@app.cell(hide_code=True)
def _(
    Aes,
    ChartSpec,
    Facet,
    Geom,
    PRE_FILTER_NONE,
    bin_width,
    color_select,
    config,
    data,
    facet_select,
    figure_generator,
    geom_select,
    go,
    mo,
    positive_only,
    pre_filter_selects,
    x_select,
    y_select,
):
    def _col(select):
        return None if select.value in (None, PRE_FILTER_NONE) else select.value

    _color = _col(color_select)
    _bw = float(bin_width.value or 0.0)
    _df = data.positive if positive_only.value else data.full
    try_spec = None
    try:
        try_spec = ChartSpec(
            aes=Aes(x=x_select.value, y=_col(y_select), color=_color, fill=_color),
            geoms=[Geom(geom_select.value)],
            facet=Facet(wrap=_col(facet_select)),
            bin_width=_bw if _bw > 0 else None,
            bins=config.data.bins,
            point_size=config.data.point_size,
            pre_filter=dict(pre_filter_selects.value),
        )
        _out = mo.ui.plotly(go.Figure(figure_generator.make_figure(_df, try_spec)))
    except (KeyError, ValueError) as e:
        try_spec = None
        _out = mo.md(f"**Cannot draw this chart:** {e}")
    _out
    return (try_spec,)


@app.cell(hide_code=True)
def _(config, mo, save_default, try_spec):
    mo.stop(not save_default.value)
    if try_spec is None:
        _msg = mo.md("Nothing to save, the current chart is not valid.")
    else:
        config.set_default_chart(try_spec)
        config.save()
        _msg = mo.md(f"Saved as the default chart in `{config.path}`.")
    _msg
    return


if __name__ == "__main__":
    app.run()
