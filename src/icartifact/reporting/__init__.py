"""Figures and report tables for detection results."""

from .figure import (
    DetectionLayoutSpec,
    FigureRenderer,
    build_detection_layout,
    figure_surface,
    render_detection_figure,
)
from .report import generate_detection_report, results_to_dataframe, save_result_table

__all__ = [
    "DetectionLayoutSpec",
    "FigureRenderer",
    "build_detection_layout",
    "figure_surface",
    "render_detection_figure",
    "generate_detection_report",
    "results_to_dataframe",
    "save_result_table",
]
