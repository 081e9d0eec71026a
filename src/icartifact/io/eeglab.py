"""Loading sensor layouts and ICA mixing matrices.

Three sources are supported: EEGLAB ``.set`` files read with
``scipy.io.loadmat``, EEGLAB structures that are already in memory (for
example a dict built by another tool), and fitted MNE ICA objects together
with the recording they were fitted on.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import numpy as np
import scipy.io as sio

from icartifact.detection.types import SensorLayout, as_float_array, as_mixing_matrix
from icartifact.errors import MalformedInputError
from icartifact.utils.logging import message

UNKNOWN_FILENAME = "UnknownEEG.set"

_MISSING = object()


@dataclass(frozen=True)
class LoadedDecomposition:
    """Sensor layout, mixing matrix and recording identifier ready for detection."""

    layout: SensorLayout
    mixing: np.ndarray
    source_id: str


def _field(struct: Any, name: str) -> Any:
    if isinstance(struct, Mapping):
        return struct.get(name, _MISSING)
    return getattr(struct, name, _MISSING)


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, np.ndarray):
        return value.size == 0
    return False


def _chanloc_records(chanlocs: Any) -> list:
    """Normalize EEGLAB ``chanlocs`` to a list of records."""

    if isinstance(chanlocs, np.ndarray):
        return list(np.atleast_1d(chanlocs).ravel())
    if isinstance(chanlocs, (list, tuple)):
        return list(chanlocs)
    # loadmat squeezes a one-channel struct array to a bare struct
    return [chanlocs]


def _as_sensor_matrix(icawinv: Any, n_sensors: int) -> np.ndarray:
    """Restore the 2D shape of a mixing matrix squeezed by ``loadmat``."""

    matrix = as_float_array(icawinv)
    if matrix.ndim == 0:
        return matrix.reshape(1, 1)
    if matrix.ndim == 1:
        if n_sensors == 1:
            return matrix.reshape(1, -1)
        return matrix.reshape(-1, 1)
    return matrix


def from_eeglab_struct(eeg: Any) -> LoadedDecomposition:
    """Build a decomposition from an EEGLAB ``EEG`` structure.

    Parameters
    ----------
    eeg : mapping or struct
        Must provide ``chanlocs`` (records with ``labels``, ``X``, ``Y``) and
        ``icawinv``. ``filename`` is optional and defaults to
        ``"UnknownEEG.set"``.

    Returns
    -------
    LoadedDecomposition

    Raises
    ------
    MalformedInputError
        If ``chanlocs`` or ``icawinv`` is missing or empty, or if the records
        lack planar coordinates.
    """

    chanlocs = _field(eeg, "chanlocs")
    icawinv = _field(eeg, "icawinv")
    if chanlocs is _MISSING or icawinv is _MISSING:
        raise MalformedInputError("EEG structure must contain 'chanlocs' and 'icawinv' fields.")
    if _is_empty(chanlocs):
        raise MalformedInputError("EEG structure has no channel locations.")
    if _is_empty(icawinv):
        raise MalformedInputError("EEG structure has no ICA decomposition (empty 'icawinv').")

    filename = _field(eeg, "filename")
    if filename is _MISSING or _is_empty(filename):
        filename = UNKNOWN_FILENAME

    layout = SensorLayout.from_records(_chanloc_records(chanlocs))
    mixing = as_mixing_matrix(_as_sensor_matrix(icawinv, len(layout)), len(layout))

    message(
        "debug",
        f"Loaded EEGLAB decomposition: {len(layout)} channels, {mixing.shape[1]} components",
    )
    return LoadedDecomposition(layout=layout, mixing=mixing, source_id=str(filename))


def load_eeglab_set(path: Union[str, Path]) -> LoadedDecomposition:
    """Read an EEGLAB ``.set`` file and extract its ICA decomposition.

    Both the nested layout (a single ``EEG`` variable) and the flat layout
    written by newer EEGLAB versions are understood. HDF5-based (v7.3) files
    are not.
    """

    set_path = Path(path)
    if not set_path.is_file():
        raise FileNotFoundError(f"EEGLAB file not found: {set_path}")

    message("info", f"Loading EEGLAB file: {set_path}")
    try:
        mat = sio.loadmat(
            str(set_path), squeeze_me=True, struct_as_record=False, appendmat=False
        )
    except NotImplementedError as e:
        raise MalformedInputError(
            f"{set_path.name} is a MATLAB v7.3 (HDF5) file, which is not supported."
        ) from e
    except (sio.matlab.MatReadError, ValueError, TypeError, OSError) as e:
        raise MalformedInputError(f"Could not read {set_path.name}: {str(e)}") from e

    eeg = mat["EEG"] if "EEG" in mat else mat
    loaded = from_eeglab_struct(eeg)
    if loaded.source_id == UNKNOWN_FILENAME:
        loaded = LoadedDecomposition(loaded.layout, loaded.mixing, set_path.name)
    return loaded


def from_mne(inst: Any, ica: Any, source_id: Optional[str] = None) -> LoadedDecomposition:
    """Build a decomposition from an MNE recording and its fitted ICA.

    Channel positions are taken from ``inst.info`` and converted from MNE's
    head frame (+x right, +y anterior) to the EEGLAB planar frame (+X
    anterior, +Y left). The mixing matrix is ``ica.get_components()``.

    Parameters
    ----------
    inst : mne.io.BaseRaw or mne.Epochs
        Recording carrying a montage.
    ica : mne.preprocessing.ICA
        Fitted ICA.
    source_id : str, optional
        Defaults to the recording's file name.
    """

    info = inst.info
    records = []
    for name in ica.ch_names:
        if name not in info.ch_names:
            raise MalformedInputError(f"ICA channel {name} is not in the recording.")
        loc = np.asarray(info["chs"][info.ch_names.index(name)]["loc"][:3], dtype=float)
        if not np.all(np.isfinite(loc)) or not np.any(loc):
            raise MalformedInputError(
                f"Channel {name} has no position; set a montage before detection."
            )
        records.append({"labels": name, "X": loc[1], "Y": -loc[0]})

    layout = SensorLayout.from_records(records)
    mixing = as_mixing_matrix(ica.get_components(), len(layout))

    if source_id is None:
        filenames = getattr(inst, "filenames", None) or [getattr(inst, "filename", None)]
        first = filenames[0] if filenames else None
        source_id = Path(first).name if first else UNKNOWN_FILENAME

    return LoadedDecomposition(layout=layout, mixing=mixing, source_id=source_id)


def load_decomposition(source: Any) -> LoadedDecomposition:
    """Dispatch ``source`` to the matching loader."""

    if isinstance(source, LoadedDecomposition):
        return source
    if isinstance(source, (str, Path)):
        return load_eeglab_set(source)
    if isinstance(source, Mapping) or hasattr(source, "chanlocs"):
        return from_eeglab_struct(source)
    raise TypeError(
        "source must be a path to a .set file, an EEGLAB structure, or a "
        f"LoadedDecomposition, got {type(source).__name__}"
    )
