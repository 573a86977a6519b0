"""Unit tests for LessonConfig persistence (platformdirs + JSON)."""

from __future__ import annotations

import json
import logging

from ionviz.lesson.lesson_config import SCHEMA_VERSION, LessonConfig, LessonConfigData
from ionviz.plotting.chart_spec import Aes, ChartSpec, Geom


def test_load_missing_file_uses_defaults(tmp_path):
    cfg = LessonConfig.load(config_path=tmp_path / "lesson_config.json")
    assert cfg.data == LessonConfigData()
    assert cfg.data.template == "plotly_white"
    assert cfg.data.bins == 30
    assert cfg.get_data_csv() is None
    assert cfg.get_default_chart() is None
    assert not (tmp_path / "lesson_config.json").exists()


def test_create_if_missing_writes_defaults(tmp_path):
    path = tmp_path / "lesson_config.json"
    LessonConfig.load(config_path=path, create_if_missing=True)
    assert json.loads(path.read_text(encoding="utf-8"))["schema_version"] == SCHEMA_VERSION


def test_save_and_load(tmp_path):
    path = tmp_path / "lesson_config.json"
    cfg = LessonConfig(path=path)
    cfg.set_data_csv(tmp_path / "runs.csv")
    cfg.data.bins = 15
    spec = ChartSpec(aes=Aes(x="ion_ratio"), geoms=[Geom.HISTOGRAM], bin_width=0.01)
    cfg.set_default_chart(spec)
    cfg.save()

    loaded = LessonConfig.load(config_path=path)
    assert loaded.get_data_csv() == tmp_path / "runs.csv"
    assert loaded.data.bins == 15
    assert loaded.get_default_chart() == spec


def test_invalid_json_uses_defaults(tmp_path, caplog):
    path = tmp_path / "lesson_config.json"
    path.write_text("{not json", encoding="utf-8")
    with caplog.at_level(logging.WARNING, logger="ionviz"):
        cfg = LessonConfig.load(config_path=path)
    assert cfg.data == LessonConfigData()
    assert any("not valid JSON" in rec.getMessage() for rec in caplog.records)


def test_schema_mismatch_resets(tmp_path):
    path = tmp_path / "lesson_config.json"
    path.write_text(json.dumps({"schema_version": 999, "bins": 5}), encoding="utf-8")
    assert LessonConfig.load(config_path=path).data.bins == 30
    kept = LessonConfig.load(config_path=path, reset_on_version_mismatch=False)
    assert kept.data.bins == 5
    assert kept.data.schema_version == SCHEMA_VERSION


def test_unknown_and_malformed_keys_tolerated(caplog):
    raw = {"schema_version": SCHEMA_VERSION, "bins": "many", "default_chart": [1], "colour": "red"}
    with caplog.at_level(logging.WARNING, logger="ionviz"):
        data = LessonConfigData.from_json_dict(raw)
    assert data.bins == 30
    assert data.default_chart == {}
    assert any("colour" in rec.getMessage() for rec in caplog.records)


def test_invalid_default_chart_returns_none(tmp_path):
    cfg = LessonConfig(path=tmp_path / "c.json", data=LessonConfigData(default_chart={"geoms": ["pie"]}))
    assert cfg.get_default_chart() is None


def test_non_integer_schema_version_tolerated(tmp_path, caplog):
    raw = {"schema_version": "v1", "bins": 12}
    with caplog.at_level(logging.WARNING, logger="ionviz"):
        data = LessonConfigData.from_json_dict(raw)
    assert data.schema_version == -1
    assert data.bins == 12
    assert any("schema_version" in rec.getMessage() for rec in caplog.records)

    path = tmp_path / "lesson_config.json"
    path.write_text(json.dumps(raw), encoding="utf-8")
    assert LessonConfig.load(config_path=path).data == LessonConfigData()
