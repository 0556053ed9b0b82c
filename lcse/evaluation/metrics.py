# ----------------------------------------------------------------------
# metrics.py
#
# Evaluation metrics for SSVEP classification.
# ----------------------------------------------------------------------

import warnings
import numpy as np
from typing import Dict, List, Optional
from sklearn.metrics import (
    balanced_accuracy_score,
    confusion_matrix,
    cohen_kappa_score,
)


def accuracy(prediction: np.ndarray, labels: np.ndarray) -> float:
    """Fraction of test slots predicted correctly."""
    return float(np.mean(np.asarray(prediction) == np.asarray(labels)))


def itr(acc: float, n_targets: int, selection_time: float) -> float:
    """
    Information transfer rate in bits per minute (Wolpaw).

    Args:
        acc: Classification accuracy in [0, 1]
        n_targets: Number of targets
        selection_time: Seconds per selection (window + gaze shift)

    Returns:
        ITR in bits/min. NaN when the accuracy is 0, where the formula
        is undefined.
    """
    if not 0.0 <= acc <= 1.0:
        raise ValueError(f"Accuracy must be in [0, 1], got {acc}")
    if n_targets < 2:
        raise ValueError(f"ITR needs at least 2 targets, got {n_targets}")
    if selection_time <= 0:
        raise ValueError(f"selection_time must be positive, got {selection_time}")

    if acc == 1.0:
        bits = np.log2(n_targets)
    elif acc == 0.0:
        warnings.warn("ITR is undefined for zero accuracy; reporting NaN")
        return float('nan')
    else:
        bits = (np.log2(n_targets)
                + acc * np.log2(acc)
                + (1 - acc) * np.log2((1 - acc) / (n_targets - 1)))

    return float(bits * 60.0 / selection_time)


def compute_metrics(
    y_true: np.ndarray,
    y_pred: np.ndarray,
    selection_time: Optional[float] = None,
    metrics: Optional[List[str]] = None
) -> Dict[str, float]:
    """
    Compute multiple classification metrics.

    Args:
        y_true: True labels
        y_pred: Predicted labels
        selection_time: Seconds per selection; required for 'itr'
        metrics: List of metrics to compute. Options:
            'accuracy', 'balanced_accuracy', 'kappa', 'itr'
            If None, computes all available metrics.

    Returns:
        Dictionary of metric names to values
    """
    if metrics is None:
        metrics = ['accuracy', 'balanced_accuracy', 'kappa']
        if selection_time is not None:
            metrics.append('itr')

    results = {}

    if 'accuracy' in metrics:
        results['accuracy'] = accuracy(y_pred, y_true)

    if 'balanced_accuracy' in metrics:
        results['balanced_accuracy'] = balanced_accuracy_score(y_true, y_pred)

    if 'kappa' in metrics:
        # Undefined when only one class is present
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", RuntimeWarning)
            results['kappa'] = cohen_kappa_score(y_true, y_pred)

    if 'itr' in metrics:
        if selection_time is None:
            raise ValueError("selection_time is required to compute 'itr'")
        n_targets = len(np.unique(y_true))
        results['itr'] = itr(accuracy(y_pred, y_true), n_targets, selection_time)

    return results


def compute_confusion_matrix(
    y_true: np.ndarray,
    y_pred: np.ndarray,
    normalize: Optional[str] = None,
    labels: Optional[List] = None
) -> np.ndarray:
    """
    Compute confusion matrix.

    Args:
        y_true: True labels
        y_pred: Predicted labels
        normalize: Normalization mode ('true', 'pred', 'all', or None)
        labels: List of label values to include

    Returns:
        Confusion matrix array
    """
    return confusion_matrix(y_true, y_pred, labels=labels, normalize=normalize)
