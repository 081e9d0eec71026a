"""Synthetic sensor layouts and mixing matrices for tests."""

from __future__ import annotations

from typing import Optional

import numpy as np

from icartifact.detection import Sensor, SensorLayout

TARGET = "E55"


def create_small_layout() -> SensorLayout:
    """Five sensors: E55 at the origin, the others at distances 1, 2, 3 and 4."""

    angles = np.deg2rad([0, 90, 180, 270])
    sensors = [Sensor(TARGET, 0.0, 0.0)]
    for idx, (distance, angle) in enumerate(zip([1.0, 2.0, 3.0, 4.0], angles), start=1):
        sensors.append(Sensor(f"E{idx}", distance * np.cos(angle), distance * np.sin(angle)))
    return SensorLayout(tuple(sensors))


def create_small_mixing(target_row) -> np.ndarray:
    """Mixing matrix for :func:`create_small_layout` with a chosen E55 row."""

    rng = np.random.default_rng(7)
    mixing = rng.normal(scale=0.5, size=(5, len(target_row)))
    mixing[0, :] = target_row
    return mixing


def create_ring_layout(n_rings: int = 4, per_ring: int = 12) -> SensorLayout:
    """Concentric rings of sensors around a vertex sensor, E55 on the second ring."""

    sensors = [Sensor("Cz", 0.0, 0.0)]
    label = 1
    for ring in range(1, n_rings + 1):
        radius = ring / n_rings
        for k in range(per_ring):
            angle = 2 * np.pi * k / per_ring + ring * 0.3
            sensors.append(Sensor(f"E{label}", radius * np.cos(angle), radius * np.sin(angle)))
            label += 1

    target_idx = 1 + per_ring + 3
    sensors[target_idx] = Sensor(TARGET, sensors[target_idx].x, sensors[target_idx].y)
    return SensorLayout(tuple(sensors))


def create_ring_mixing(
    layout: SensorLayout,
    n_components: int = 40,
    artifact_component: Optional[int] = 17,
    artifact_gain: float = 25.0,
    seed: int = 42,
) -> np.ndarray:
    """Broad random components plus, optionally, one component localised at E55."""

    rng = np.random.default_rng(seed)
    mixing = rng.normal(scale=1.0, size=(len(layout), n_components))
    if artifact_component is not None:
        positions = layout.positions
        target_idx = layout.labels.index(TARGET)
        distances = np.hypot(*(positions - positions[target_idx]).T)
        mixing[:, artifact_component] = artifact_gain * np.exp(-(distances**2) / (2 * 0.1**2))
    return mixing


def create_eeglab_struct(layout: SensorLayout, mixing: np.ndarray, filename: str = "sub-01_rest.set"):
    """EEGLAB-like ``EEG`` dict with ``chanlocs``, ``icawinv`` and ``filename``."""

    return {
        "chanlocs": [{"labels": s.label, "X": s.x, "Y": s.y} for s in layout],
        "icawinv": mixing,
        "filename": filename,
    }


def chanlocs_struct_array(layout: SensorLayout) -> np.ndarray:
    """``chanlocs`` as a record array so ``savemat`` writes a MATLAB struct array."""

    dtype = [("labels", object), ("X", object), ("Y", object)]
    return np.array([(s.label, s.x, s.y) for s in layout], dtype=dtype)
