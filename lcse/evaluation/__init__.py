# ----------------------------------------------------------------------
# Evaluation module
# ----------------------------------------------------------------------

from .metrics import (
    accuracy,
    itr,
    compute_metrics,
    compute_confusion_matrix,
)
from .cross_validation import (
    cross_validate_blocks,
    evaluate_fold,
    leave_one_block_out,
)
from .evaluator import ModelEvaluator

__all__ = [
    "accuracy",
    "itr",
    "compute_metrics",
    "compute_confusion_matrix",
    "cross_validate_blocks",
    "evaluate_fold",
    "leave_one_block_out",
    "ModelEvaluator",
]
