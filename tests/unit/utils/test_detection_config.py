"""Unit tests for configuration utilities."""

from pathlib import Path

import pytest
import yaml

from icartifact.detection import DetectionConfig
from icartifact.errors import MalformedInputError
from icartifact.utils.config import load_detection_config, merge_overrides


def _write(tmp_path, content) -> Path:
    path = tmp_path / "icartifact.yaml"
    path.write_text(yaml.safe_dump(content) if not isinstance(content, str) else content)
    return path


def test_full_config(tmp_path):
    path = _write(
        tmp_path,
        {"detection": {"target_label": "E17", "threshold": 4, "ddof": 1, "output_dir": "figs"}},
    )
    config = load_detection_config(path)

    assert config.target_label == "E17"
    assert config.threshold == 4.0
    assert config.ddof == 1
    assert config.output_dir == tmp_path / "figs"


def test_defaults_for_missing_keys(tmp_path):
    config = load_detection_config(_write(tmp_path, {"detection": {}}))
    assert config == DetectionConfig()


def test_absolute_output_dir_kept(tmp_path):
    out = tmp_path / "abs"
    config = load_detection_config(_write(tmp_path, {"detection": {"output_dir": str(out)}}))
    assert config.output_dir == out


@pytest.mark.parametrize(
    "content",
    [
        {"detection": {"threshold": "high"}},
        {"detection": {"ddof": 2}},
        {"detection": {"target_label": ""}},
        {"detection": {"unknown": 1}},
        {"other": {}},
        "detection: [unclosed",
    ],
)
def test_invalid_config(tmp_path, content):
    with pytest.raises(MalformedInputError):
        load_detection_config(_write(tmp_path, content))


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_detection_config(tmp_path / "missing.yaml")


def test_merge_overrides():
    base = DetectionConfig(threshold=4.0, target_label="E17", ddof=1)

    assert merge_overrides(base) == base
    merged = merge_overrides(base, threshold=6.0, output_dir="out")
    assert merged.threshold == 6.0
    assert merged.target_label == "E17"
    assert merged.output_dir == Path("out")
    assert merged.ddof == 1


def test_config_validation():
    with pytest.raises(MalformedInputError):
        DetectionConfig(threshold=float("nan"))
    with pytest.raises(MalformedInputError):
        DetectionConfig(ddof=3)


@pytest.mark.parametrize("threshold", ["abc", None, [5.0]])
def test_non_numeric_threshold(threshold):
    with pytest.raises(MalformedInputError, match="Threshold must be a number"):
        DetectionConfig(threshold=threshold)


def test_numeric_string_threshold_is_coerced():
    assert DetectionConfig(threshold="2.5").threshold == 2.5
