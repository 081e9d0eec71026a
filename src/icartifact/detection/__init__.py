"""Detection of ICA components that dominate a single sensor."""

from .excessive_component import (
    EPSILON,
    analyze,
    compute_zscores,
    detect,
    detect_excessive_component,
    find_target_sensor,
    gaussian_template,
    spatial_correlation,
)
from .types import (
    DEFAULT_TARGET_LABEL,
    DEFAULT_THRESHOLD,
    FIGURE_SUFFIX,
    REPORT_COLUMNS,
    ComponentAnalysis,
    DetectionConfig,
    DetectionResult,
    Sensor,
    SensorLayout,
)

__all__ = [
    "EPSILON",
    "DEFAULT_TARGET_LABEL",
    "DEFAULT_THRESHOLD",
    "FIGURE_SUFFIX",
    "REPORT_COLUMNS",
    "ComponentAnalysis",
    "DetectionConfig",
    "DetectionResult",
    "Sensor",
    "SensorLayout",
    "analyze",
    "compute_zscores",
    "detect",
    "detect_excessive_component",
    "find_target_sensor",
    "gaussian_template",
    "spatial_correlation",
]
