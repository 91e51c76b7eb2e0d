import json

import pytest
import yaml

from ip_sweeper.config import ConfigLoader, SweepConfig, ReportFormat, ProbeOutcome, ProbeStatus


def test_defaults():
    config = SweepConfig()
    assert config.timeout_ms == 2000
    assert 10 <= config.interval_ms <= 30
    assert config.max_in_flight is None
    assert config.interval == pytest.approx(0.02)
    assert config.timeout == pytest.approx(2.0)


@pytest.mark.parametrize("kwargs", [
    {"interval_ms": -1},
    {"timeout_ms": 0},
    {"max_in_flight": 0},
    {"log_level": "LOUD"},
])
def test_invalid_values_rejected(kwargs):
    with pytest.raises(ValueError):
        SweepConfig(**kwargs)


def test_from_dict_converts_format_and_drops_unknown_keys():
    config = SweepConfig.from_dict({"report_format": "JSON", "colour": "blue"})
    assert config.report_format is ReportFormat.JSON

    fallback = SweepConfig.from_dict({"report_format": "xml"})
    assert fallback.report_format is ReportFormat.CSV


def test_load_yaml_file_with_overrides(tmp_path):
    path = tmp_path / "sweep.yaml"
    path.write_text(yaml.safe_dump({"interval_ms": 30, "report_format": "text", "raw_output": True}),
                    encoding="utf-8")

    config = ConfigLoader.load(str(path), overrides={"interval_ms": 15, "output_file": None})

    assert config.interval_ms == 15
    assert config.report_format is ReportFormat.TEXT
    assert config.raw_output is True
    assert config.output_file == "sweep_results.csv"


def test_load_json_file(tmp_path):
    path = tmp_path / "sweep.json"
    path.write_text(json.dumps({"timeout_ms": 1000, "max_in_flight": 64}), encoding="utf-8")

    config = ConfigLoader.load(str(path))

    assert config.timeout_ms == 1000
    assert config.max_in_flight == 64


def test_missing_or_broken_file_falls_back_to_defaults(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert ConfigLoader.load("absent.yaml").interval_ms == 20

    broken = tmp_path / "broken.yaml"
    broken.write_text("- just\n- a list\n", encoding="utf-8")
    assert ConfigLoader.load(str(broken)).timeout_ms == 2000


def test_search_path_and_default_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    path = ConfigLoader.save_default_config()

    assert path.exists()
    assert yaml.safe_load(path.read_text(encoding="utf-8"))["timeout_ms"] == 2000
    assert ConfigLoader.load().timeout_ms == 2000


def test_outcome_to_dict():
    outcome = ProbeOutcome("abc", "10.0.0.1", ProbeStatus.SUCCESS, bytes=32, ttl=64, rtt_ms=1)
    assert outcome.to_dict()["status"] == "success"
    assert outcome.to_dict()["token"] == "abc"
