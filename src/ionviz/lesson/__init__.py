"""The ion ratio lesson: data loading, step registry and config."""

from ionviz.lesson.lesson_config import LessonConfig, LessonConfigData
from ionviz.lesson.schema import (
    DEFAULT_CSV,
    clean_names,
    get_data_dir,
    load_csv_for_file,
    load_table,
    make_example_table,
    normalize_column_name,
)
from ionviz.lesson.steps import (
    LessonData,
    LessonStep,
    get_step,
    lesson_steps,
    prepare_lesson_data,
    prepare_lesson_table,
    render_step,
)

__all__ = [
    "DEFAULT_CSV",
    "LessonConfig",
    "LessonConfigData",
    "LessonData",
    "LessonStep",
    "clean_names",
    "get_data_dir",
    "get_step",
    "lesson_steps",
    "load_csv_for_file",
    "load_table",
    "make_example_table",
    "normalize_column_name",
    "prepare_lesson_data",
    "prepare_lesson_table",
    "render_step",
]
