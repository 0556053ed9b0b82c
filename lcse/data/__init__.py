# ----------------------------------------------------------------------
# Data loading and preprocessing module
# ----------------------------------------------------------------------

from .containers import SSVEPDataContainer, BlockSplit
from .loader import load_benchmark_mat, load_mat_array
from .preprocessor import Preprocessor

__all__ = [
    "SSVEPDataContainer",
    "BlockSplit",
    "load_benchmark_mat",
    "load_mat_array",
    "Preprocessor",
]
