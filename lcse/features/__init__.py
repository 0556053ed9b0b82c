# ----------------------------------------------------------------------
# Filter-bank decomposition module
# ----------------------------------------------------------------------

from .filter_bank import FilterBank, filter_bank_decompose, subband_weights

__all__ = [
    "FilterBank",
    "filter_bank_decompose",
    "subband_weights",
]
