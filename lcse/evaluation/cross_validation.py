# ----------------------------------------------------------------------
# cross_validation.py
#
# Leave-one-block-out cross-validation for SSVEP classification.
# ----------------------------------------------------------------------

import threading
import numpy as np
from typing import Dict, List, Optional, Generator, Any, Union
from joblib import Parallel, delayed
from sklearn.model_selection import LeaveOneGroupOut

from ..config import ExperimentConfig, LCSEConfig
from ..data.containers import SSVEPDataContainer, BlockSplit
from ..exceptions import (
    ConfigurationError,
    InsufficientDataError,
    NumericalInstabilityError,
    ShapeMismatchError,
)
from ..models.lcse import LCSEClassifier
from .metrics import compute_metrics


def leave_one_block_out(
    data: Union[SSVEPDataContainer, np.ndarray]
) -> Generator[BlockSplit, None, None]:
    """
    Generate leave-one-block-out splits.

    Each block is held out once as test data while the remaining blocks
    form the training set. Splits are new arrays; `data` is not modified.

    Args:
        data: Container or array of shape (n_channels, n_samples, n_targets, n_blocks)

    Yields:
        BlockSplit for each block, in block order
    """
    X = data.X if isinstance(data, SSVEPDataContainer) else np.asarray(data)
    if X.ndim != 4:
        raise ShapeMismatchError(
            f"data must be 4D (n_channels, n_samples, n_targets, n_blocks), "
            f"got shape {X.shape}"
        )
    if X.shape[3] < 2:
        raise InsufficientDataError(
            f"Leave-one-block-out needs at least 2 blocks, got {X.shape[3]}"
        )

    # One group per block; the target axis stays inside every fold
    blocks = np.arange(X.shape[3])
    logo = LeaveOneGroupOut()

    for train_idx, test_idx in logo.split(blocks.reshape(-1, 1), groups=blocks):
        yield BlockSplit(
            train=np.take(X, train_idx, axis=3),
            test=X[:, :, :, test_idx[0]].copy(),
            held_out_block=int(test_idx[0])
        )


def evaluate_fold(
    split: BlockSplit,
    config: LCSEConfig,
    selection_time: float,
    stop_event: Optional[threading.Event] = None
) -> Optional[Dict[str, Any]]:
    """
    Train on the training blocks of `split` and score its held-out block.

    Args:
        split: One leave-one-block-out fold
        config: Classifier configuration
        selection_time: Seconds per selection, for the ITR
        stop_event: Cancellation flag; the fold is skipped if it is set

    Returns:
        Fold details, or None if the fold was skipped. A fold whose spatial
        filters could not be estimated is returned with failed=True.
    """
    if stop_event is not None and stop_event.is_set():
        return None

    labels = split.labels
    details: Dict[str, Any] = {
        'block': split.held_out_block,
        'n_train_blocks': split.train.shape[3],
    }

    try:
        result = LCSEClassifier(config).fit(split.train).classify(split.test)
    except NumericalInstabilityError as exc:
        details.update({
            'failed': True,
            'error': str(exc),
            'failed_pairs': exc.pairs,
        })
        return details

    details['failed'] = False
    details.update(compute_metrics(labels, result.prediction, selection_time))
    details.update({
        'prediction': result.prediction,
        'scores': result.scores,
    })
    return details


def cross_validate_blocks(
    data: Union[SSVEPDataContainer, np.ndarray],
    config: Optional[ExperimentConfig] = None,
    n_jobs: Optional[int] = None,
    stop_event: Optional[threading.Event] = None,
    return_predictions: bool = False,
    verbose: bool = True
) -> Dict[str, Any]:
    """
    Leave-one-block-out evaluation of the LCSE classifier.

    `data` must already be channel-selected and windowed (see
    Preprocessor). Folds are independent and run in parallel when
    `n_jobs != 1`. A fold that raises NumericalInstabilityError is
    recorded as failed and the remaining folds still run.

    Args:
        data: Shape (n_channels, n_samples, n_targets, n_blocks)
        config: Experiment configuration (defaults to ExperimentConfig())
        n_jobs: joblib workers across folds (defaults to config.n_jobs)
        stop_event: Set it to skip all folds that have not started yet
        return_predictions: Whether to return predictions and score matrices
        verbose: Whether to print progress

    Returns:
        Dictionary containing:
            - 'scores': Accuracy of each completed fold
            - 'itrs': ITR of each completed fold (NaN at zero accuracy)
            - 'mean_score', 'std_score': Accuracy statistics
            - 'mean_itr': Mean ITR over folds with a defined ITR
            - 'blocks': Held-out block of each completed fold
            - 'failed_folds': Held-out blocks whose fold failed
            - 'fold_details': Per-fold dictionaries
            - 'cancelled': Whether some folds were skipped
            - 'predictions', 'score_matrices': (optional) per completed fold
    """
    config = config or ExperimentConfig()
    n_jobs = config.n_jobs if n_jobs is None else n_jobs

    if isinstance(data, SSVEPDataContainer) and data.sfreq != config.sampling_rate:
        raise ConfigurationError(
            f"Data sampled at {data.sfreq} Hz but configuration expects "
            f"{config.sampling_rate} Hz"
        )

    lcse_config = config.lcse_config()
    selection_time = config.selection_time

    splits = list(leave_one_block_out(data))

    if n_jobs == 1:
        fold_details = []
        for fold_idx, split in enumerate(splits):
            if verbose:
                print(f"Fold {fold_idx + 1}/{len(splits)} (block {split.held_out_block})...", end=" ")
            details = evaluate_fold(split, lcse_config, selection_time, stop_event)
            fold_details.append(details)
            if verbose:
                _print_fold(details)
    else:
        # Threads share the stop_event; processes would each get a copy
        parallel = Parallel(n_jobs=n_jobs, require='sharedmem' if stop_event is not None else None)
        fold_details = parallel(
            delayed(evaluate_fold)(split, lcse_config, selection_time, stop_event)
            for split in splits
        )
        if verbose:
            for fold_idx, details in enumerate(fold_details):
                print(f"Fold {fold_idx + 1}/{len(splits)} (block {splits[fold_idx].held_out_block})...", end=" ")
                _print_fold(details)

    completed = [d for d in fold_details if d is not None and not d['failed']]
    failed = [d for d in fold_details if d is not None and d['failed']]

    scores = [d['accuracy'] for d in completed]
    itrs = [d['itr'] for d in completed]

    results = {
        'scores': scores,
        'itrs': itrs,
        'blocks': [d['block'] for d in completed],
        'mean_score': float(np.mean(scores)) if scores else float('nan'),
        'std_score': float(np.std(scores)) if scores else float('nan'),
        'mean_itr': _finite_mean(itrs),
        'failed_folds': [d['block'] for d in failed],
        'fold_details': [d for d in fold_details if d is not None],
        'cancelled': any(d is None for d in fold_details),
        'n_folds': len(splits),
        'selection_time': selection_time,
        'config': config,
    }

    if return_predictions:
        results['predictions'] = [d['prediction'] for d in completed]
        results['score_matrices'] = [d['scores'] for d in completed]

    if verbose:
        print(f"\nOverall: {results['mean_score']:.4f} ± {results['std_score']:.4f}, "
              f"ITR {results['mean_itr']:.2f} bits/min")
        if results['failed_folds']:
            print(f"Failed folds (held-out blocks): {results['failed_folds']}")
        if results['cancelled']:
            print("Cross-validation cancelled before all folds ran")

    return results


def _finite_mean(values: List[float]) -> float:
    finite = [v for v in values if np.isfinite(v)]
    return float(np.mean(finite)) if finite else float('nan')


def _print_fold(details: Optional[Dict[str, Any]]):
    if details is None:
        print("skipped")
    elif details['failed']:
        print(f"FAILED ({details['error']})")
    else:
        print(f"Accuracy: {details['accuracy']:.4f}, ITR: {details['itr']:.2f} bits/min")
