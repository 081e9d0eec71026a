"""Detection of sensor-specific ICA artifacts in EEG recordings.

Flags recordings in which one ICA component dominates a single electrode and
whose scalp map is localised around it.
"""

__version__ = "0.1.0"

from .detection import (
    DetectionConfig,
    DetectionResult,
    SensorLayout,
    detect,
    detect_excessive_component,
)
from .errors import IcArtifactError, MalformedInputError, NotFoundError

__all__ = [
    "DetectionConfig",
    "DetectionResult",
    "SensorLayout",
    "detect",
    "detect_excessive_component",
    "IcArtifactError",
    "MalformedInputError",
    "NotFoundError",
]
