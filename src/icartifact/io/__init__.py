"""Input loaders for sensor layouts and ICA decompositions."""

from .eeglab import (
    UNKNOWN_FILENAME,
    LoadedDecomposition,
    from_eeglab_struct,
    from_mne,
    load_decomposition,
    load_eeglab_set,
)

__all__ = [
    "UNKNOWN_FILENAME",
    "LoadedDecomposition",
    "from_eeglab_struct",
    "from_mne",
    "load_decomposition",
    "load_eeglab_set",
]
