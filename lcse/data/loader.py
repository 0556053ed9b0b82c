# ----------------------------------------------------------------------
# loader.py
#
# Loader for the SSVEP benchmark dataset (.mat files).
# ----------------------------------------------------------------------

import numpy as np
from pathlib import Path
from scipy.io import loadmat
import h5py
from typing import Dict, List, Optional, Sequence, Union

from ..config import (
    MAT_VARIABLE_NAME, SAMPLING_RATE, STIMULUS_FREQUENCIES,
)
from ..exceptions import ShapeMismatchError
from .containers import SSVEPDataContainer


def _load_mat_v73(filepath: Path, variable: str) -> Optional[np.ndarray]:
    """
    Load one variable from a MATLAB v7.3 (HDF5) file.

    HDF5 stores MATLAB arrays in column-major order, so the axes come out
    reversed and are transposed back here.
    """
    with h5py.File(filepath, 'r') as f:
        if variable not in f:
            return None
        return np.asarray(f[variable][()]).T


def load_mat_array(filepath: Union[str, Path], variable: str = MAT_VARIABLE_NAME) -> np.ndarray:
    """
    Load a numeric array from a .mat file.

    Args:
        filepath: Path to .mat file
        variable: Name of the MATLAB variable

    Returns:
        The array, with MATLAB's axis order
    """
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"Path not found: {filepath}")

    try:
        # scipy handles v7.2 and earlier
        mat = loadmat(str(filepath), variable_names=[variable])
        array = mat.get(variable)
    except NotImplementedError:
        # v7.3 files need h5py
        array = _load_mat_v73(filepath, variable)

    if array is None:
        raise ShapeMismatchError(f"Variable '{variable}' not found in {filepath}")

    return np.asarray(array)


def load_benchmark_mat(
    filepath: Union[str, Path],
    variable: str = MAT_VARIABLE_NAME,
    sfreq: int = SAMPLING_RATE,
    ch_names: Optional[List[str]] = None,
    freqs: Optional[Sequence[float]] = None,
    participant_id: Optional[str] = None
) -> SSVEPDataContainer:
    """
    Load one subject of the SSVEP benchmark dataset.

    The file holds a 4-D array [Electrode_index, Time_points, Target_index,
    Block_index], e.g. (64, 1500, 40, 6) for the Tsinghua benchmark.

    Args:
        filepath: Path to the subject's .mat file (e.g. S1.mat)
        variable: Name of the data variable
        sfreq: Sampling rate of the recording in Hz
        ch_names: Channel names; defaults to ch0, ch1, ...
        freqs: Stimulus frequency of each target; defaults to the benchmark's
            40 frequencies when the target count matches
        participant_id: Participant identifier; defaults to the file stem

    Returns:
        SSVEPDataContainer with the full recording
    """
    filepath = Path(filepath)
    data = load_mat_array(filepath, variable)

    if data.ndim != 4:
        raise ShapeMismatchError(
            f"Expected a 4D array (channels, samples, targets, blocks) in "
            f"'{variable}', got shape {data.shape}"
        )

    if ch_names is None:
        ch_names = [f"ch{i}" for i in range(data.shape[0])]

    if freqs is None and data.shape[2] == len(STIMULUS_FREQUENCIES):
        freqs = STIMULUS_FREQUENCIES

    metadata: Dict = {
        'source': 'ssvep_benchmark',
        'mat_file': str(filepath),
        'variable': variable,
    }

    return SSVEPDataContainer(
        X=data.astype(np.float64),
        sfreq=sfreq,
        ch_names=list(ch_names),
        freqs=np.asarray(freqs) if freqs is not None else None,
        participant_id=participant_id or filepath.stem,
        metadata=metadata
    )
