"""Tests for the report table and PDF summary."""

import math
from pathlib import Path

import pandas as pd

from icartifact.detection import REPORT_COLUMNS, DetectionResult, detect
from icartifact.reporting import (
    FigureRenderer,
    generate_detection_report,
    results_to_dataframe,
    save_result_table,
)
from tests.fixtures.synthetic_layouts import create_ring_layout, create_ring_mixing


def _result(**kwargs):
    defaults = {
        "filename": "sub-01_rest.set",
        "excessive": True,
        "max_z": 6.2,
        "max_component": 17,
        "threshold": 5.0,
        "spatial_correlation": 0.93,
        "figure_file": Path("/tmp/sub-01_rest_ExcessiveICAComponentAnalysis.png"),
    }
    defaults.update(kwargs)
    return DetectionResult(**defaults)


def test_record_column_order():
    record = _result().to_record()
    assert tuple(record) == REPORT_COLUMNS
    assert tuple(REPORT_COLUMNS) == (
        "Filename",
        "ExcessiveClassifier",
        "MaxZScore",
        "MaxIC",
        "CutoffThreshold",
        "TemplateMatching",
        "FigureFile",
    )
    assert record["FigureFile"] == "/tmp/sub-01_rest_ExcessiveICAComponentAnalysis.png"


def test_record_without_figure():
    assert _result(figure_file=None).to_record()["FigureFile"] == ""


def test_dataframe_columns():
    df = results_to_dataframe([_result(), _result(filename="b.set", excessive=False)])
    assert list(df.columns) == list(REPORT_COLUMNS)
    assert df["ExcessiveClassifier"].tolist() == [True, False]
    assert df.loc[0, "MaxIC"] == 17


def test_single_result_dataframe():
    df = results_to_dataframe(_result())
    assert df.shape == (1, len(REPORT_COLUMNS))


def test_save_result_table(tmp_path):
    csv_path = save_result_table(_result(), tmp_path / "out" / "results.csv")

    df = pd.read_csv(csv_path)
    assert list(df.columns) == list(REPORT_COLUMNS)
    assert df.loc[0, "Filename"] == "sub-01_rest.set"
    assert math.isclose(df.loc[0, "MaxZScore"], 6.2)


def test_pdf_report_with_figure(tmp_path):
    layout = create_ring_layout()
    result = detect(
        layout, create_ring_mixing(layout), "sub-03.set", renderer=FigureRenderer(tmp_path)
    )

    pdf_path = generate_detection_report(result, tmp_path / "report.pdf")

    assert pdf_path.exists()
    assert pdf_path.read_bytes()[:5] == b"%PDF-"


def test_pdf_report_without_figure(tmp_path):
    result = _result(figure_file=None, spatial_correlation=float("nan"))
    pdf_path = generate_detection_report(result, tmp_path / "nested" / "report.pdf")
    assert pdf_path.exists()
