"""
Lesson config persistence for ionviz (platformdirs + JSON).

Persisted items (schema v1):
- data_csv: CSV the lesson loads ("" = bundled sample in data/)
- template: Plotly template for grammar charts
- bins: automatic histogram bin count
- point_size: marker size for point geoms
- default_chart: ChartSpec dict for the notebook's "try it" cell

Behavior:
- If config file missing or unreadable -> defaults are used
- If schema_version mismatches:
  - default: reset to defaults
  - optional: keep loaded but update version
- Unknown keys in loaded JSON are ignored with warnings
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from platformdirs import user_config_dir

from ionviz.utils.logging import get_logger
from ionviz.plotting.chart_spec import DEFAULT_BINS, DEFAULT_TEMPLATE, ChartSpec

logger = get_logger(__name__)

# Increment when you make a breaking change to the on-disk JSON schema.
SCHEMA_VERSION: int = 1

DEFAULT_POINT_SIZE = 7


@dataclass
class LessonConfigData:
    """
    JSON-serializable config payload.

    Keep fields JSON-friendly:
    - primitives, lists, dicts
    """
    schema_version: int = SCHEMA_VERSION
    data_csv: str = ""
    template: str = DEFAULT_TEMPLATE
    bins: int = DEFAULT_BINS
    point_size: int = DEFAULT_POINT_SIZE
    default_chart: Dict[str, Any] = field(default_factory=dict)

    def to_json_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "schema_version": self.schema_version,
            "data_csv": self.data_csv,
            "template": self.template,
            "bins": self.bins,
            "point_size": self.point_size,
            "default_chart": self.default_chart,
        }

    @classmethod
    def from_json_dict(cls, d: Dict[str, Any]) -> "LessonConfigData":
        """
        Tolerant loader:
        - ignores unknown keys
        - tolerates partially missing or malformed values
        """
        try:
            schema_version = int(d.get("schema_version", -1))
        except (TypeError, ValueError):
            logger.warning(f"schema_version is not an integer: {d.get('schema_version')!r}")
            schema_version = -1
        data_csv = str(d.get("data_csv") or "")
        template = str(d.get("template") or DEFAULT_TEMPLATE)

        bins = DEFAULT_BINS
        if "bins" in d:
            try:
                bins = max(1, int(d["bins"]))
            except (TypeError, ValueError):
                logger.warning(f"bins is not an integer: {d['bins']!r}, using {DEFAULT_BINS}")

        point_size = DEFAULT_POINT_SIZE
        if "point_size" in d:
            try:
                point_size = max(1, int(d["point_size"]))
            except (TypeError, ValueError):
                logger.warning(f"point_size is not an integer: {d['point_size']!r}, using {DEFAULT_POINT_SIZE}")

        default_chart: Dict[str, Any] = {}
        raw_chart = d.get("default_chart", {})
        if isinstance(raw_chart, dict):
            default_chart = raw_chart
        else:
            logger.warning("default_chart is not a dict, using empty dict")

        # Warn about unknown keys in the root level
        known_keys = {"schema_version", "data_csv", "template", "bins", "point_size", "default_chart"}
        for key in d.keys():
            if key not in known_keys:
                logger.warning(f"Unknown key '{key}' in lesson config, ignoring")

        return cls(
            schema_version=schema_version,
            data_csv=data_csv,
            template=template,
            bins=bins,
            point_size=point_size,
            default_chart=default_chart,
        )


class LessonConfig:
    """
    Manager for loading/saving LessonConfigData to disk.
    """

    def __init__(self, *, path: Path, data: Optional[LessonConfigData] = None):
        self.path = path
        self.data = data if data is not None else LessonConfigData()

    # -----------------------------
    # Construction / persistence
    # -----------------------------
    @staticmethod
    def default_config_path(
        app_name: str = "ionviz",
        filename: str = "lesson_config.json",
        app_author: str | None = None,
    ) -> Path:
        """
        Determine OS-appropriate per-user config path.

        macOS:   ~/Library/Application Support/ionviz/lesson_config.json
        Linux:   ~/.config/ionviz/lesson_config.json
        Windows: %APPDATA%\\ionviz\\lesson_config.json
        """
        d = Path(user_config_dir(app_name, app_author))
        d.mkdir(parents=True, exist_ok=True)
        return d / filename

    @classmethod
    def load(
        cls,
        *,
        config_path: Optional[Path] = None,
        app_name: str = "ionviz",
        filename: str = "lesson_config.json",
        app_author: str | None = None,
        schema_version: int = SCHEMA_VERSION,
        reset_on_version_mismatch: bool = True,
        create_if_missing: bool = False,
    ) -> "LessonConfig":
        """
        Load config from disk.

        If file doesn't exist or is unreadable -> defaults.
        If schema mismatch:
          - reset_on_version_mismatch=True -> defaults
          - else -> keep loaded but overwrite schema_version

        If create_if_missing=True and file is missing -> immediately write defaults.
        """
        path = config_path or cls.default_config_path(app_name=app_name, filename=filename, app_author=app_author)
        default_data = LessonConfigData(schema_version=schema_version)

        try:
            raw = path.read_text(encoding="utf-8")
            parsed = json.loads(raw)
            if not isinstance(parsed, dict):
                logger.warning(f"Lesson config file at {path} does not contain a dict, using defaults")
                return cls(path=path, data=default_data)

            loaded = LessonConfigData.from_json_dict(parsed)

            if int(loaded.schema_version) != int(schema_version):
                if reset_on_version_mismatch:
                    logger.warning(
                        f"Lesson config schema version mismatch: loaded={loaded.schema_version}, "
                        f"expected={schema_version}, resetting to defaults"
                    )
                    cfg = cls(path=path, data=default_data)
                    if create_if_missing:
                        cfg.save()
                    return cfg
                loaded.schema_version = int(schema_version)

            return cls(path=path, data=loaded)
        except FileNotFoundError:
            logger.debug(f"Lesson config file not found at {path}, using defaults")
            cfg = cls(path=path, data=default_data)
            if create_if_missing:
                cfg.save()
            return cfg
        except json.JSONDecodeError as e:
            logger.warning(f"Lesson config file at {path} is not valid JSON: {e}, using defaults")
            return cls(path=path, data=default_data)
        except OSError as e:
            logger.warning(f"Error reading lesson config from {path}: {e}, using defaults")
            return cls(path=path, data=default_data)

    def save(self) -> None:
        """Write config to disk."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            json_str = json.dumps(self.data.to_json_dict(), indent=2)
            self.path.write_text(json_str, encoding="utf-8")
            logger.info(f"Saved lesson config to {self.path}")
        except OSError as e:
            logger.error(f"Error saving lesson config to {self.path}: {e}")
            raise

    def get_data_csv(self) -> Optional[Path]:
        """Configured CSV path, or None for the bundled sample."""
        return Path(self.data.data_csv).expanduser() if self.data.data_csv else None

    def set_data_csv(self, path: Optional[Path | str]) -> None:
        self.data.data_csv = str(path) if path else ""

    def get_default_chart(self) -> Optional[ChartSpec]:
        """ChartSpec for the "try it" cell, or None if unset or invalid."""
        if not self.data.default_chart:
            return None
        try:
            return ChartSpec.from_dict(self.data.default_chart)
        except ValueError as e:
            logger.warning(f"Error deserializing default_chart from config: {e}")
            return None

    def set_default_chart(self, spec: Optional[ChartSpec]) -> None:
        self.data.default_chart = spec.to_dict() if spec is not None else {}
