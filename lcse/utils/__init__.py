# ----------------------------------------------------------------------
# Utility functions
# ----------------------------------------------------------------------

from .visualization import (
    plot_cv_results,
    plot_score_matrix,
)

__all__ = [
    "plot_cv_results",
    "plot_score_matrix",
]
