"""Render every lesson step from a script and print what each figure holds.

Run from the project root:
    python examples/lesson_walkthrough.py
    python examples/lesson_walkthrough.py --csv path/to/runs.csv --remember

With --remember the CSV is stored in the lesson config, so the notebook and
later runs load it instead of the bundled sample.
"""

from __future__ import annotations

import argparse

from ionviz.utils.logging import configure_logging
from ionviz.lesson.lesson_config import LessonConfig
from ionviz.lesson.schema import DEFAULT_CSV, load_csv_for_file, load_table
from ionviz.lesson.steps import lesson_steps, prepare_lesson_data
from ionviz.plotting.figure_generator import FigureGenerator


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--csv", help="CSV to load instead of the configured one")
    parser.add_argument("--remember", action="store_true", help="save --csv as the configured CSV")
    args = parser.parse_args()

    configure_logging(level="INFO")
    config = LessonConfig.load()
    if args.csv and args.remember:
        config.set_data_csv(args.csv)
        config.save()

    csv_path = args.csv or config.get_data_csv()
    df = load_table(csv_path) if csv_path else load_csv_for_file(DEFAULT_CSV)
    data = prepare_lesson_data(df)
    generator = FigureGenerator(template=config.data.template)
    for step in lesson_steps():
        fig = step.build(data, generator)
        n_axes = sum(1 for k in fig.get("layout", {}) if k.startswith("xaxis"))
        print(f"{step.key:28s} {step.kind:8s} traces={len(fig['data']):3d} axes={n_axes}")


if __name__ == "__main__":
    main()
