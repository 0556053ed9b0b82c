# ----------------------------------------------------------------------
# LCSE: Latent Common Source Extraction for SSVEP classification
# ----------------------------------------------------------------------
"""
Frequency recognition for SSVEP-based BCIs via latent common source
extraction (generalized canonical correlation across trial blocks).

This module provides tools for:
- Filter-bank decomposition of multi-channel EEG epochs
- Learning per-target spatial filters that isolate the trial-invariant
  (latent common) SSVEP component
- Template matching, sub-band score fusion and target selection
- Loading the SSVEP benchmark dataset, leave-one-block-out
  cross-validation and information-transfer-rate reporting
"""

from .config import LCSEConfig, ExperimentConfig
from .exceptions import (
    LCSEError,
    ConfigurationError,
    ShapeMismatchError,
    InsufficientDataError,
    NumericalInstabilityError,
)
from .models.lcse import ClassificationResult, LCSEClassifier, classify

__version__ = "0.1.0"

__all__ = [
    "LCSEConfig",
    "ExperimentConfig",
    "LCSEError",
    "ConfigurationError",
    "ShapeMismatchError",
    "InsufficientDataError",
    "NumericalInstabilityError",
    "ClassificationResult",
    "LCSEClassifier",
    "classify",
]
