"""Tests for the command line interface."""

import pandas as pd
import pytest
import scipy.io as sio
import yaml

from icartifact import __version__
from icartifact.cli import create_parser, main
from icartifact.detection import REPORT_COLUMNS
from tests.fixtures.synthetic_layouts import (
    chanlocs_struct_array,
    create_ring_layout,
    create_ring_mixing,
)


@pytest.fixture
def set_file(tmp_path):
    layout = create_ring_layout()
    path = tmp_path / "sub-01_rest.set"
    sio.savemat(
        str(path),
        {
            "EEG": {
                "chanlocs": chanlocs_struct_array(layout),
                "icawinv": create_ring_mixing(layout),
                "filename": "sub-01_rest.set",
            }
        },
    )
    return path


def test_parser_defaults():
    args = create_parser().parse_args(["detect", "x.set"])
    assert args.threshold is None
    assert args.target_label is None
    assert args.no_figure is False


def test_detect_writes_csv_and_figure(tmp_path, set_file):
    csv_path = tmp_path / "results.csv"
    out_dir = tmp_path / "figs"

    exit_code = main(
        ["detect", str(set_file), "--output-dir", str(out_dir), "--csv", str(csv_path)]
    )

    assert exit_code == 0
    df = pd.read_csv(csv_path)
    assert list(df.columns) == list(REPORT_COLUMNS)
    assert bool(df.loc[0, "ExcessiveClassifier"]) is True
    assert df.loc[0, "MaxIC"] == 17
    assert (out_dir / "sub-01_rest_ExcessiveICAComponentAnalysis.png").exists()


def test_detect_threshold_override(tmp_path, set_file):
    csv_path = tmp_path / "results.csv"

    exit_code = main(
        ["detect", str(set_file), "--no-figure", "--threshold", "100", "--csv", str(csv_path)]
    )

    assert exit_code == 0
    row = pd.read_csv(csv_path, keep_default_na=False).iloc[0]
    assert bool(row["ExcessiveClassifier"]) is False
    assert row["CutoffThreshold"] == 100.0
    assert row["FigureFile"] == ""


def test_detect_with_config_and_pdf(tmp_path, set_file):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(yaml.safe_dump({"detection": {"threshold": 3.0}}))
    pdf_path = tmp_path / "report.pdf"

    exit_code = main(
        [
            "detect",
            str(set_file),
            "--config",
            str(config_path),
            "--output-dir",
            str(tmp_path),
            "--pdf",
            str(pdf_path),
        ]
    )

    assert exit_code == 0
    assert pdf_path.exists()


def test_missing_target_returns_error(tmp_path, set_file):
    exit_code = main(["detect", str(set_file), "--target-label", "E999", "--no-figure"])
    assert exit_code == 1
    assert not list(tmp_path.glob("*.png"))


def test_missing_file_returns_error(tmp_path):
    assert main(["detect", str(tmp_path / "missing.set")]) == 1


def test_version(capsys):
    assert main(["version"]) == 0
    assert __version__ in capsys.readouterr().out


def test_no_command_prints_help(capsys):
    assert main([]) == 0
    assert "detect" in capsys.readouterr().out
