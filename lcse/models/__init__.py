# ----------------------------------------------------------------------
# SSVEP classification models
# ----------------------------------------------------------------------

from .base import BaseClassifier
from .gcca import SpatialFilter, block_covariances, learn_spatial_filter, learn_spatial_filters
from .lcse import (
    ClassificationResult,
    LCSEClassifier,
    SpatialFilterBank,
    build_template,
    build_templates,
    classify,
    correlation,
    score_trial,
)

__all__ = [
    "BaseClassifier",
    "SpatialFilter",
    "block_covariances",
    "learn_spatial_filter",
    "learn_spatial_filters",
    "ClassificationResult",
    "LCSEClassifier",
    "SpatialFilterBank",
    "build_template",
    "build_templates",
    "classify",
    "correlation",
    "score_trial",
]
