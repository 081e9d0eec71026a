"""Data model for excessive-component detection."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from icartifact.errors import MalformedInputError

DEFAULT_TARGET_LABEL = "E55"
DEFAULT_THRESHOLD = 5.0
FIGURE_SUFFIX = "_ExcessiveICAComponentAnalysis.png"

# Report column names, in order. Downstream consumers rely on both.
REPORT_COLUMNS: Tuple[str, ...] = (
    "Filename",
    "ExcessiveClassifier",
    "MaxZScore",
    "MaxIC",
    "CutoffThreshold",
    "TemplateMatching",
    "FigureFile",
)


_MISSING = object()


def _record_field(record: Any, key: str) -> Any:
    """Read ``key`` from a mapping or an attribute-style struct."""

    if isinstance(record, Mapping):
        return record.get(key, _MISSING)
    return getattr(record, key, _MISSING)


def _coerce_coordinate(value: Any, label: str, axis: str) -> float:
    """Return ``value`` as a finite float or raise ``MalformedInputError``."""

    if value is None:
        raise MalformedInputError(f"Sensor '{label}' has no {axis} coordinate.")
    # EEGLAB stores missing coordinates as empty arrays
    if isinstance(value, np.ndarray):
        if value.size != 1:
            raise MalformedInputError(f"Sensor '{label}' has no {axis} coordinate.")
        value = value.item()
    try:
        coordinate = float(value)
    except (TypeError, ValueError) as e:
        raise MalformedInputError(
            f"Sensor '{label}' has a non-numeric {axis} coordinate: {value!r}"
        ) from e
    if not math.isfinite(coordinate):
        raise MalformedInputError(f"Sensor '{label}' has a non-finite {axis} coordinate.")
    return coordinate


@dataclass(frozen=True)
class Sensor:
    """One sensor with planar coordinates.

    Coordinates follow the EEGLAB convention (+X toward the nose, +Y toward
    the left ear). Any unit works as long as it is shared by the whole layout.
    """

    label: str
    x: float
    y: float


@dataclass(frozen=True)
class SensorLayout:
    """Ordered sensor table. Row ``i`` of a mixing matrix belongs to ``sensors[i]``."""

    sensors: Tuple[Sensor, ...]

    def __post_init__(self):
        object.__setattr__(self, "sensors", tuple(self.sensors))

    @classmethod
    def from_records(cls, records: Iterable[Union[Mapping[str, Any], Any]]) -> "SensorLayout":
        """Build a layout from EEGLAB-style channel location records.

        Each record is a mapping (or an object with attributes) providing a
        label under ``labels`` or ``label`` and the planar coordinates under
        ``X`` and ``Y``.
        """

        sensors = []
        for position, record in enumerate(records):
            label = _record_field(record, "labels")
            if label is _MISSING:
                label = _record_field(record, "label")
            if label is _MISSING or label is None or (
                isinstance(label, np.ndarray) and label.size == 0
            ):
                raise MalformedInputError(f"Sensor record {position} has no label.")
            label = str(label)

            coordinates = {}
            for axis in ("X", "Y"):
                value = _record_field(record, axis)
                if value is _MISSING:
                    raise MalformedInputError(
                        f"Sensor record '{label}' is missing the '{axis}' field."
                    )
                coordinates[axis] = _coerce_coordinate(value, label, axis)

            sensors.append(Sensor(label=label, x=coordinates["X"], y=coordinates["Y"]))
        return cls(tuple(sensors))

    def __len__(self) -> int:
        return len(self.sensors)

    def __iter__(self):
        return iter(self.sensors)

    def __getitem__(self, index: int) -> Sensor:
        return self.sensors[index]

    @property
    def labels(self) -> list:
        return [sensor.label for sensor in self.sensors]

    @property
    def positions(self) -> np.ndarray:
        """``(n_sensors, 2)`` array of planar ``(X, Y)`` coordinates."""
        return np.array([[s.x, s.y] for s in self.sensors], dtype=float).reshape(-1, 2)


def as_float_array(values: Any) -> np.ndarray:
    """Convert mixing weights to a float array or raise ``MalformedInputError``.

    Ragged rows and non-numeric entries are rejected.
    """

    try:
        return np.asarray(values, dtype=float)
    except (TypeError, ValueError) as e:
        raise MalformedInputError(
            f"Mixing matrix must be a rectangular array of numbers: {str(e)}"
        ) from e


def as_mixing_matrix(mixing: Any, n_sensors: int) -> np.ndarray:
    """Validate a sensor-by-component mixing matrix against the layout size."""

    matrix = as_float_array(mixing)
    if matrix.ndim != 2:
        raise MalformedInputError(
            f"Mixing matrix must be 2D (sensors x components), got {matrix.ndim}D."
        )
    n_rows, n_cols = matrix.shape
    if n_rows != n_sensors:
        raise MalformedInputError(
            f"Mixing matrix has {n_rows} rows but the layout has {n_sensors} sensors."
        )
    if n_cols < 1:
        raise MalformedInputError("Mixing matrix has no components.")
    if not np.all(np.isfinite(matrix)):
        raise MalformedInputError("Mixing matrix contains non-finite values.")
    return matrix


@dataclass(frozen=True)
class DetectionConfig:
    """Parameters of a detection run.

    ``output_dir`` of ``None`` resolves to the working directory when the
    figure is written. ``ddof=1`` reproduces the sample standard deviation
    used by EEGLAB's version of this check.
    """

    threshold: float = DEFAULT_THRESHOLD
    target_label: str = DEFAULT_TARGET_LABEL
    output_dir: Optional[Path] = None
    ddof: int = 0

    def __post_init__(self):
        try:
            threshold = float(self.threshold)
        except (TypeError, ValueError) as e:
            raise MalformedInputError(
                f"Threshold must be a number, got {self.threshold!r}"
            ) from e
        if not math.isfinite(threshold):
            raise MalformedInputError(f"Threshold must be finite, got {self.threshold!r}")
        if self.ddof not in (0, 1):
            raise MalformedInputError(f"ddof must be 0 or 1, got {self.ddof!r}")
        if not self.target_label:
            raise MalformedInputError("Target sensor label must not be empty.")
        object.__setattr__(self, "threshold", threshold)
        if self.output_dir is not None:
            object.__setattr__(self, "output_dir", Path(self.output_dir))


@dataclass(frozen=True)
class ComponentAnalysis:
    """Intermediate values of one detection, including both spatial fields."""

    target_label: str
    target_index: int
    abs_weights: np.ndarray
    z_scores: np.ndarray
    max_z: float
    max_index: int
    topography: np.ndarray
    template: np.ndarray
    template_sigma: float
    spatial_correlation: float
    degenerate: Tuple[str, ...] = ()


@dataclass(frozen=True)
class DetectionResult:
    """Outcome of one detection run.

    ``max_component`` is a 0-based column index into the mixing matrix.
    """

    filename: str
    excessive: bool
    max_z: float
    max_component: int
    threshold: float
    spatial_correlation: float
    figure_file: Optional[Path] = None
    analysis: Optional[ComponentAnalysis] = field(default=None, repr=False, compare=False)

    def to_record(self) -> Dict[str, Any]:
        """Return the report row keyed by :data:`REPORT_COLUMNS`, in order."""

        values: Sequence[Any] = (
            self.filename,
            bool(self.excessive),
            float(self.max_z),
            int(self.max_component),
            float(self.threshold),
            float(self.spatial_correlation),
            str(self.figure_file) if self.figure_file is not None else "",
        )
        return dict(zip(REPORT_COLUMNS, values))
