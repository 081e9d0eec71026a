"""Report table and PDF summary for detection results."""

from __future__ import annotations

import math
from pathlib import Path
from typing import Iterable, Union

import pandas as pd
from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import (
    Image as ReportImage,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table as ReportTable,
    TableStyle,
)

from icartifact.detection.types import REPORT_COLUMNS, DetectionResult
from icartifact.utils.logging import message


def results_to_dataframe(
    results: Union[DetectionResult, Iterable[DetectionResult]],
) -> pd.DataFrame:
    """Report rows as a DataFrame with exactly :data:`REPORT_COLUMNS`, in order."""

    if isinstance(results, DetectionResult):
        results = [results]
    rows = [result.to_record() for result in results]
    return pd.DataFrame(rows, columns=list(REPORT_COLUMNS))


def save_result_table(
    results: Union[DetectionResult, Iterable[DetectionResult]],
    path: Union[str, Path],
) -> Path:
    """Write the report table to a CSV file."""

    csv_path = Path(path)
    csv_path.parent.mkdir(parents=True, exist_ok=True)
    results_to_dataframe(results).to_csv(csv_path, index=False)
    message("info", f"Saved detection table to: {csv_path}")
    return csv_path


def _format_value(value) -> str:
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, float):
        return "n/a" if math.isnan(value) else f"{value:.3f}"
    return str(value) if value != "" else "-"


def _create_summary_table(result: DetectionResult) -> ReportTable:
    """Styled two-column table of the report record."""

    table_data = [["Field", "Value"]]
    table_data.extend(
        [column, _format_value(value)] for column, value in result.to_record().items()
    )

    table = ReportTable(table_data, colWidths=[2.2 * inch, 4.3 * inch])
    style = [
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#2C3E50")),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("TEXTCOLOR", (0, 1), (-1, -1), colors.HexColor("#2C3E50")),
        ("FONTNAME", (0, 1), (-1, -1), "Helvetica"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("ALIGN", (0, 0), (-1, -1), "LEFT"),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#F2F6F9")]),
        ("GRID", (0, 0), (-1, -1), 0.25, colors.HexColor("#D5DBDB")),
    ]
    if result.excessive:
        flag_row = 1 + REPORT_COLUMNS.index("ExcessiveClassifier")
        style.append(("TEXTCOLOR", (1, flag_row), (1, flag_row), colors.HexColor("#C0392B")))
    table.setStyle(TableStyle(style))
    return table


def generate_detection_report(
    result: DetectionResult, output_pdf: Union[str, Path]
) -> Path:
    """Write a one-page PDF with the report record and the detection figure.

    Parameters
    ----------
    result : DetectionResult
        Result to summarize. The figure is embedded when ``figure_file``
        points to an existing file.
    output_pdf : path-like
        Destination for the PDF.

    Returns
    -------
    Path
        Location of the written PDF.
    """

    pdf_path = Path(output_pdf)
    pdf_path.parent.mkdir(parents=True, exist_ok=True)

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        "DetectionTitle",
        parent=styles["Heading1"],
        fontSize=16,
        textColor=colors.HexColor("#2C3E50"),
        alignment=1,
    )
    normal_style = ParagraphStyle(
        "DetectionNormal",
        parent=styles["BodyText"],
        fontSize=9,
        leading=12,
        textColor=colors.HexColor("#2C3E50"),
    )

    verdict = (
        f"IC{result.max_component} exceeds the z-score cutoff of {result.threshold:g}."
        if result.excessive
        else f"No component exceeds the z-score cutoff of {result.threshold:g}."
    )

    story = [
        Paragraph("Excessive ICA Component Report", title_style),
        Spacer(1, 0.2 * inch),
        Paragraph(f"Source file: {result.filename}", normal_style),
        Paragraph(verdict, normal_style),
        Spacer(1, 0.25 * inch),
        _create_summary_table(result),
    ]

    if result.analysis is not None and result.analysis.degenerate:
        story.append(Spacer(1, 0.2 * inch))
        story.append(
            Paragraph(
                "Degenerate input: " + ", ".join(result.analysis.degenerate),
                normal_style,
            )
        )

    if result.figure_file is not None and Path(result.figure_file).exists():
        story.append(Spacer(1, 0.3 * inch))
        story.append(ReportImage(str(result.figure_file), width=5.5 * inch, height=5.5 * inch))

    doc = SimpleDocTemplate(
        str(pdf_path),
        pagesize=letter,
        rightMargin=36,
        leftMargin=36,
        topMargin=36,
        bottomMargin=36,
    )
    try:
        doc.build(story)
    except Exception as e:
        raise RuntimeError(f"Failed to write detection report {pdf_path}: {str(e)}") from e

    message("success", f"✓ Saved detection report to: {pdf_path}")
    return pdf_path
