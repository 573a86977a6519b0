"""Schema and data loading for the ion ratio lesson.

Provides CSV discovery and loading (with column-name normalization), the
column names the lesson expects, and a deterministic synthetic table in the
same schema.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, Sequence

import numpy as np
import pandas as pd

from ionviz.utils.logging import get_logger
from ionviz.plotting.plot_helpers import require_columns

logger = get_logger(__name__)

# Default CSV to load on first visit
DEFAULT_CSV = "ion_ratios.csv"

# Columns the lesson expects after normalization
COMPOUND_NAME = "compound_name"
SAMPLE_TYPE = "sample_type"
ION_RATIO = "ion_ratio"
CONCENTRATION = "concentration"
EXPECTED_CONCENTRATION = "expected_concentration"

NUMERIC_COLUMNS = (ION_RATIO, CONCENTRATION, EXPECTED_CONCENTRATION)
CATEGORICAL_COLUMNS = (COMPOUND_NAME, SAMPLE_TYPE)

# Sample type of samples whose composition is not known in advance
UNKNOWN_SAMPLE_TYPE = "unknown"

DEFAULT_COMPOUNDS = ("codeine", "hydrocodone", "morphine", "oxycodone")
DEFAULT_SAMPLE_TYPES = ("qc", "standard", "unknown")
_EXPECTED_LEVELS = (10.0, 50.0, 100.0, 250.0, 500.0)

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_NON_ALNUM = re.compile(r"[^0-9a-zA-Z]+")


def get_data_dir() -> Path:
    """Resolve the project's data/ directory.

    Package layout: <root>/src/ionviz/lesson/schema.py
    Data: <root>/data/
    """
    # schema.py -> lesson -> ionviz -> src -> project root
    pkg_root = Path(__file__).resolve().parent.parent.parent.parent
    return pkg_root / "data"


def get_data_csv_files() -> list[str]:
    """List .csv filenames in data/ (sorted)."""
    data_dir = get_data_dir()
    if not data_dir.exists():
        return []
    return sorted(f.name for f in data_dir.iterdir() if f.suffix.lower() == ".csv")


def normalize_column_name(name: object) -> str:
    """snake_case a column header.

    "Compound Name" -> "compound_name", "ionRatio" -> "ion_ratio",
    "Expected Conc. " -> "expected_conc", "1st Run" -> "x1st_run".
    """
    s = _CAMEL_BOUNDARY.sub("_", str(name).strip())
    s = _NON_ALNUM.sub("_", s).strip("_").lower()
    if not s:
        return "x"
    if s[0].isdigit():
        s = "x" + s
    return s


def clean_names(df: pd.DataFrame) -> pd.DataFrame:
    """Return a copy of df with normalized, unique column names.

    Names that collide after normalization get _2, _3, ... suffixes in
    column order.
    """
    used: set[str] = set()
    new_names = []
    for col in df.columns:
        name = normalize_column_name(col)
        if name in used:
            k = 2
            while f"{name}_{k}" in used:
                k += 1
            name = f"{name}_{k}"
        used.add(name)
        new_names.append(name)
    out = df.copy()
    out.columns = new_names
    return out


def load_table(
    path: Path | str,
    *,
    numeric_columns: Iterable[str] = NUMERIC_COLUMNS,
    categorical_columns: Iterable[str] = CATEGORICAL_COLUMNS,
) -> pd.DataFrame:
    """Load a CSV, normalize its column names and coerce declared columns.

    Numeric columns go through ``pd.to_numeric(errors="coerce")``; categorical
    columns become strings (missing values stay missing).

    Raises:
        FileNotFoundError: If path does not exist.
        MissingColumnError: If a declared column is absent after normalization.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"CSV not found: {path}")
    df = clean_names(pd.read_csv(path))

    numeric_columns = list(numeric_columns)
    categorical_columns = list(categorical_columns)
    require_columns(df, numeric_columns + categorical_columns)
    for col in numeric_columns:
        df[col] = pd.to_numeric(df[col], errors="coerce")
    for col in categorical_columns:
        df[col] = df[col].where(df[col].isna(), df[col].astype(str))

    logger.info(f"Loaded {path.name}: {len(df)} rows, columns={list(df.columns)}")
    return df


def load_csv_for_file(filename: str) -> pd.DataFrame:
    """Load a CSV from data/ with load_table."""
    return load_table(get_data_dir() / filename)


def make_example_table(
    n_rows: int = 100,
    *,
    compounds: Sequence[str] = DEFAULT_COMPOUNDS,
    sample_types: Sequence[str] = DEFAULT_SAMPLE_TYPES,
    seed: int = 0,
    positive_fraction: float = 0.4,
) -> pd.DataFrame:
    """Deterministic synthetic table in the lesson's schema.

    Exactly ``round(positive_fraction * n_rows)`` rows have a positive ion
    ratio, the rest are 0.0. Every compound and sample type appears when
    n_rows is at least the number of categories. Unknown samples have no
    expected concentration.
    """
    if n_rows < 0:
        raise ValueError(f"n_rows must be >= 0, got {n_rows}")
    if not 0.0 <= positive_fraction <= 1.0:
        raise ValueError(f"positive_fraction must be in [0, 1], got {positive_fraction}")
    if not compounds or not sample_types:
        raise ValueError("compounds and sample_types must not be empty")

    rng = np.random.default_rng(seed)

    compound = np.array([compounds[i % len(compounds)] for i in range(n_rows)], dtype=object)
    sample_type = np.array([sample_types[i % len(sample_types)] for i in range(n_rows)], dtype=object)
    rng.shuffle(compound)
    rng.shuffle(sample_type)

    n_positive = int(round(positive_fraction * n_rows))
    positive = np.zeros(n_rows, dtype=bool)
    positive[rng.choice(n_rows, size=n_positive, replace=False)] = True
    ion_ratio = np.where(positive, np.round(rng.uniform(0.05, 0.6, size=n_rows), 4), 0.0)

    is_unknown = sample_type == UNKNOWN_SAMPLE_TYPE
    expected = rng.choice(_EXPECTED_LEVELS, size=n_rows)
    measured = expected * rng.normal(1.0, 0.08, size=n_rows)
    concentration = np.where(is_unknown, rng.uniform(5.0, 500.0, size=n_rows), measured)

    return pd.DataFrame({
        COMPOUND_NAME: compound,
        SAMPLE_TYPE: sample_type,
        ION_RATIO: ion_ratio,
        CONCENTRATION: np.round(concentration, 2),
        EXPECTED_CONCENTRATION: np.where(is_unknown, np.nan, expected),
    })
