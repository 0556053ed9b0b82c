# ----------------------------------------------------------------------
# gcca.py
#
# Spatial filter learning by generalized canonical correlation across
# trial blocks (sum-correlation formulation).
# ----------------------------------------------------------------------

import numpy as np
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple
from joblib import Parallel, delayed
from scipy.linalg import eigh, LinAlgError

from ..config import COV_REGULARIZATION, COND_TOLERANCE
from ..exceptions import (
    ConfigurationError,
    InsufficientDataError,
    NumericalInstabilityError,
)


@dataclass(frozen=True)
class SpatialFilter:
    """
    Projection from channel space to the reconstructed (latent) channels.

    Attributes:
        target: 0-based target index
        subband: 0-based sub-band index
        weights: Shape (n_recon_channels, n_channels); rows ordered by
            decreasing eigenvalue
        eigenvalues: Shape (n_recon_channels,); aggregate cross-block
            correlation captured by each row
    """
    target: int
    subband: int
    weights: np.ndarray
    eigenvalues: np.ndarray

    @property
    def n_components(self) -> int:
        return self.weights.shape[0]

    def project(self, data: np.ndarray) -> np.ndarray:
        """
        Apply the filter.

        Args:
            data: Shape (n_channels, n_samples) or (n_channels, n_samples, n_trials)

        Returns:
            Shape (n_components, n_samples) or (n_components, n_samples, n_trials)
        """
        return np.tensordot(self.weights, data, axes=([1], [0]))


def block_covariances(trials: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Summed cross-block and auto covariance matrices.

    Args:
        trials: Shape (n_channels, n_samples, n_blocks), one trial per block

    Returns:
        (cross, auto), each (n_channels, n_channels). `cross` sums X_b X_c^T / S
        over all ordered pairs b != c; `auto` sums X_b X_b^T / S.
    """
    n_samples = trials.shape[1]
    centered = trials - trials.mean(axis=1, keepdims=True)

    # Sum over all pairs (b, c) including b == c equals (sum_b X_b)(sum_c X_c)^T
    summed = centered.sum(axis=2)
    total = summed @ summed.T / n_samples
    auto = np.einsum('csb,dsb->cd', centered, centered) / n_samples
    cross = total - auto

    return cross, auto


def learn_spatial_filter(
    trials: np.ndarray,
    n_components: int,
    regularization: float = COV_REGULARIZATION,
    cond_tolerance: float = COND_TOLERANCE,
    target: int = 0,
    subband: int = 0
) -> SpatialFilter:
    """
    Learn the latent common source projection for one target and sub-band.

    Solves cross @ w = lambda * auto @ w and keeps the `n_components`
    eigenvectors with the largest eigenvalues. Components that repeat from
    block to block score high; block-specific noise does not.

    Args:
        trials: Shape (n_channels, n_samples, n_blocks)
        n_components: Number of reconstructed channels R (<= n_blocks - 1)
        regularization: Ridge added to `auto`, relative to its mean eigenvalue
        cond_tolerance: Largest acceptable condition number of the ridged `auto`;
            at the default ridge only degenerate (flat or non-finite) blocks exceed it
        target: Target index stored on the result
        subband: Sub-band index stored on the result

    Returns:
        SpatialFilter with weights of shape (n_components, n_channels)

    Raises:
        InsufficientDataError: fewer than 2 blocks
        ConfigurationError: n_components outside [1, min(n_blocks - 1, n_channels)]
        NumericalInstabilityError: `auto` is singular beyond tolerance
    """
    if trials.ndim != 3:
        raise InsufficientDataError(
            f"trials must be 3D (n_channels, n_samples, n_blocks), got shape {trials.shape}"
        )

    n_channels, _, n_blocks = trials.shape

    if n_blocks < 2:
        raise InsufficientDataError(
            f"At least 2 blocks are needed to learn a common source, got {n_blocks}"
        )
    if not 1 <= n_components <= n_blocks - 1:
        raise ConfigurationError(
            f"n_components must be in [1, {n_blocks - 1}] for {n_blocks} blocks, "
            f"got {n_components}"
        )
    if n_components > n_channels:
        raise ConfigurationError(
            f"n_components ({n_components}) exceeds the number of channels ({n_channels})"
        )

    cross, auto = block_covariances(np.asarray(trials, dtype=float))

    ridge = regularization * np.trace(auto) / n_channels
    auto = auto + ridge * np.eye(n_channels)

    cond = np.linalg.cond(auto) if np.all(np.isfinite(auto)) else np.nan
    if not np.isfinite(cond) or cond > cond_tolerance:
        raise NumericalInstabilityError(
            [(target, subband, f"auto-covariance condition number {cond:.3g}")]
        )

    try:
        eigenvalues, eigenvectors = eigh(cross, auto)
    except LinAlgError as exc:
        raise NumericalInstabilityError([(target, subband, str(exc))]) from exc

    order = np.argsort(eigenvalues)[::-1][:n_components]
    weights = eigenvectors[:, order].T.copy()
    top = eigenvalues[order].copy()

    weights.setflags(write=False)
    top.setflags(write=False)

    return SpatialFilter(target=target, subband=subband, weights=weights, eigenvalues=top)


def _learn_or_report(trials, n_components, regularization, cond_tolerance, target, subband):
    try:
        return learn_spatial_filter(
            trials, n_components, regularization, cond_tolerance,
            target=target, subband=subband
        )
    except NumericalInstabilityError as exc:
        return exc


def learn_spatial_filters(
    subband_data: Sequence[np.ndarray],
    n_components: int,
    regularization: float = COV_REGULARIZATION,
    cond_tolerance: float = COND_TOLERANCE,
    n_jobs: Optional[int] = 1
) -> Dict[Tuple[int, int], SpatialFilter]:
    """
    Learn spatial filters for every (target, sub-band) pair.

    Pairs are independent and are solved in parallel when `n_jobs != 1`.
    A numerically unstable pair does not stop the others; once every pair
    has been attempted, all failures are raised together.

    Args:
        subband_data: One array per sub-band, each of shape
            (n_channels, n_samples, n_targets, n_blocks)
        n_components: Number of reconstructed channels R
        regularization: Ridge added to the auto-covariance
        cond_tolerance: Largest acceptable condition number
        n_jobs: Number of joblib workers

    Returns:
        Dictionary mapping (target, subband) to SpatialFilter

    Raises:
        NumericalInstabilityError: listing every failing pair
    """
    pairs = [
        (t, n)
        for n in range(len(subband_data))
        for t in range(subband_data[n].shape[2])
    ]

    outcomes = Parallel(n_jobs=n_jobs)(
        delayed(_learn_or_report)(
            subband_data[n][:, :, t, :], n_components,
            regularization, cond_tolerance, t, n
        )
        for t, n in pairs
    )

    filters: Dict[Tuple[int, int], SpatialFilter] = {}
    failures: List[Tuple[int, int, str]] = []
    for (t, n), outcome in zip(pairs, outcomes):
        if isinstance(outcome, NumericalInstabilityError):
            failures.extend(outcome.failures)
        else:
            filters[(t, n)] = outcome

    if failures:
        raise NumericalInstabilityError(failures)

    return filters
