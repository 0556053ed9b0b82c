# ----------------------------------------------------------------------
# lcse.py
#
# Latent common source extraction (LCSE) classifier: templates,
# sub-band score fusion and target selection.
# ----------------------------------------------------------------------

import numpy as np
from dataclasses import dataclass, asdict, field
from typing import Dict, List, Optional, Tuple

from ..config import LCSEConfig, MIN_WINDOW_SECONDS
from ..exceptions import (
    ConfigurationError,
    ShapeMismatchError,
    InsufficientDataError,
)
from ..features.filter_bank import FilterBank, subband_weights
from .base import BaseClassifier
from .gcca import SpatialFilter, learn_spatial_filters


@dataclass(frozen=True)
class ClassificationResult:
    """
    Outcome of classifying one test tensor.

    Attributes:
        prediction: 1-based predicted target per test slot, shape (n_trials,)
        scores: Fused score of every test slot (rows) against every
            candidate target (columns), shape (n_trials, n_targets)
    """
    prediction: np.ndarray
    scores: np.ndarray

    @property
    def n_trials(self) -> int:
        return len(self.prediction)


@dataclass(frozen=True)
class SpatialFilterBank:
    """
    Trained LCSE model: filters and templates keyed by (target, subband).

    Built once per fit and never modified afterwards.
    """
    filter_bank: FilterBank
    weights: np.ndarray
    filters: Dict[Tuple[int, int], SpatialFilter] = field(repr=False)
    templates: Dict[Tuple[int, int], np.ndarray] = field(repr=False)
    n_targets: int = 0

    @property
    def n_subbands(self) -> int:
        return len(self.weights)

    def eigenvalues(self) -> np.ndarray:
        """Eigenvalues of every filter, shape (n_targets, n_subbands, n_components)."""
        return np.stack([
            np.stack([self.filters[(t, n)].eigenvalues for n in range(self.n_subbands)])
            for t in range(self.n_targets)
        ])


def build_template(spatial_filter: SpatialFilter, trials: np.ndarray) -> np.ndarray:
    """
    Average the projected training trials of one target and sub-band.

    Args:
        spatial_filter: Filter learned from `trials`
        trials: Shape (n_channels, n_samples, n_blocks)

    Returns:
        Template, shape (n_components, n_samples)
    """
    template = spatial_filter.project(trials).mean(axis=2)
    template.setflags(write=False)
    return template


def build_templates(
    filters: Dict[Tuple[int, int], SpatialFilter],
    subband_data: List[np.ndarray]
) -> Dict[Tuple[int, int], np.ndarray]:
    """Templates for every (target, subband) in `filters`."""
    return {
        (t, n): build_template(spatial_filter, subband_data[n][:, :, t, :])
        for (t, n), spatial_filter in filters.items()
    }


def correlation(x: np.ndarray, y: np.ndarray) -> float:
    """
    Pearson correlation between two equally shaped arrays.

    Multi-row inputs (several reconstructed channels) are flattened, giving
    the 2-D correlation coefficient over all entries. Returns 0 when either
    input has zero variance.
    """
    x = np.ravel(x) - np.mean(x)
    y = np.ravel(y) - np.mean(y)
    denom = np.sqrt(np.dot(x, x) * np.dot(y, y))
    if denom == 0:
        return 0.0
    return float(np.dot(x, y) / denom)


def score_trial(trial_subbands: List[np.ndarray], model: SpatialFilterBank) -> np.ndarray:
    """
    Fused score of one test trial against every target.

    score(t) = sum_n w(n) * corr(W[t, n] X_n, Template[t, n])^2

    Args:
        trial_subbands: Sub-band copies of the test trial, each (n_channels, n_samples)
        model: Trained filters and templates

    Returns:
        Scores, shape (n_targets,)
    """
    scores = np.zeros(model.n_targets)
    for t in range(model.n_targets):
        rho = np.array([
            correlation(
                model.filters[(t, n)].project(trial_subbands[n]),
                model.templates[(t, n)]
            )
            for n in range(model.n_subbands)
        ])
        scores[t] = np.sum(model.weights * rho ** 2)
    return scores


def check_training_data(train_data: np.ndarray, config: LCSEConfig) -> Tuple[int, int, int, int]:
    """
    Validate a training tensor against the configuration.

    Args:
        train_data: Shape (n_channels, n_samples, n_targets, n_blocks)
        config: Classifier configuration

    Returns:
        (n_channels, n_samples, n_targets, n_blocks)
    """
    if train_data.ndim != 4:
        raise ShapeMismatchError(
            f"train_data must be 4D (n_channels, n_samples, n_targets, n_blocks), "
            f"got shape {train_data.shape}"
        )

    n_channels, n_samples, n_targets, n_blocks = train_data.shape

    if n_channels < 2:
        raise InsufficientDataError(f"At least 2 channels are required, got {n_channels}")
    if n_targets < 2:
        raise InsufficientDataError(f"At least 2 targets are required, got {n_targets}")
    if n_blocks < 2:
        raise InsufficientDataError(f"At least 2 training blocks are required, got {n_blocks}")
    if n_samples < config.min_samples:
        raise InsufficientDataError(
            f"Epochs must hold at least {MIN_WINDOW_SECONDS}s of data "
            f"({config.min_samples} samples at {config.sampling_rate} Hz), got {n_samples}"
        )

    R = config.n_recon_channels
    if R > n_blocks - 1:
        raise ConfigurationError(
            f"n_recon_channels must be in [1, {n_blocks - 1}] with {n_blocks} "
            f"training blocks, got {R}"
        )
    if R > n_channels:
        raise ConfigurationError(
            f"n_recon_channels ({R}) exceeds the number of channels ({n_channels})"
        )

    return n_channels, n_samples, n_targets, n_blocks


def check_test_data(test_data: np.ndarray, n_channels: int, n_samples: int, n_targets: int):
    """Validate a test tensor against the training dimensions."""
    if test_data.ndim != 3:
        raise ShapeMismatchError(
            f"test_data must be 3D (n_channels, n_samples, n_targets), "
            f"got shape {test_data.shape}"
        )
    if test_data.shape[0] != n_channels:
        raise ShapeMismatchError(
            f"test_data has {test_data.shape[0]} channels, training data has {n_channels}"
        )
    if test_data.shape[1] != n_samples:
        raise ShapeMismatchError(
            f"test_data has {test_data.shape[1]} samples, training data has {n_samples}"
        )
    if test_data.shape[2] != n_targets:
        raise ShapeMismatchError(
            f"test_data has {test_data.shape[2]} trials, expected one per target ({n_targets})"
        )


class LCSEClassifier(BaseClassifier):
    """
    SSVEP classifier based on latent common source extraction.

    For every target and sub-band, a spatial filter is learned that
    maximizes the correlation of the projected signal across training
    blocks (generalized CCA over blocks). Averaging the projected training
    trials gives one template per target and sub-band. A test trial is
    projected through each target's filters, correlated with that target's
    templates, and the squared correlations are fused across sub-bands.

    No sinusoidal reference signals are used: the common source is found
    from cross-trial statistics alone.

    Example:
        >>> clf = LCSEClassifier(sampling_rate=250, n_subbands=5, n_recon_channels=3)
        >>> clf.fit(train_data)                   # (C, S, T, B)
        >>> result = clf.classify(test_data)      # (C, S, T)
        >>> result.prediction, result.scores
    """

    def __init__(self, config: Optional[LCSEConfig] = None, name: str = "LCSE", **kwargs):
        """
        Initialize the classifier.

        Args:
            config: Full configuration. If omitted, one is built from kwargs.
            name: Model name
            **kwargs: LCSEConfig fields (sampling_rate, n_subbands, ...)
        """
        if config is None:
            config = LCSEConfig(**kwargs)
        elif kwargs:
            raise ConfigurationError("Pass either config or keyword parameters, not both")

        super().__init__(name=name, **asdict(config))
        self.config = config
        self.model_: Optional[SpatialFilterBank] = None
        self._train_shape: Optional[Tuple[int, int, int, int]] = None

    def set_params(self, **params) -> 'LCSEClassifier':
        """Update configuration fields; the model must be refitted."""
        self.config = LCSEConfig(**{**asdict(self.config), **params})
        self.model_ = None
        return super().set_params(**params)

    def fit(self, train_data: np.ndarray, **kwargs) -> 'LCSEClassifier':
        """
        Learn spatial filters and templates.

        Args:
            train_data: Shape (n_channels, n_samples, n_targets, n_blocks)

        Returns:
            self
        """
        train_data = np.asarray(train_data, dtype=float)
        self._train_shape = check_training_data(train_data, self.config)
        self.model_ = self._build_model(train_data)
        self.is_fitted = True

        n_channels, n_samples, n_targets, n_blocks = self._train_shape
        self.history['n_channels'] = n_channels
        self.history['n_samples'] = n_samples
        self.history['n_targets'] = n_targets
        self.history['n_blocks'] = n_blocks
        self.history['eigenvalues'] = self.model_.eigenvalues()

        return self

    def _build_model(self, train_data: np.ndarray) -> SpatialFilterBank:
        config = self.config
        filter_bank = FilterBank(config.sampling_rate, config.n_subbands)

        # Filter the whole tensor once along the time axis
        subband_data = filter_bank.decompose(train_data, axis=1)

        filters = learn_spatial_filters(
            subband_data,
            n_components=config.n_recon_channels,
            regularization=config.regularization,
            cond_tolerance=config.cond_tolerance,
            n_jobs=config.n_jobs
        )
        templates = build_templates(filters, subband_data)

        weights = subband_weights(config.n_subbands, config.weight_a, config.weight_b)
        weights.setflags(write=False)

        return SpatialFilterBank(
            filter_bank=filter_bank,
            weights=weights,
            filters=filters,
            templates=templates,
            n_targets=train_data.shape[2]
        )

    def decision_function(self, test_data: np.ndarray) -> np.ndarray:
        """
        Score every test slot against every target.

        Args:
            test_data: Shape (n_channels, n_samples, n_targets)

        Returns:
            Score matrix, shape (n_targets, n_targets)
        """
        self._check_is_fitted()
        test_data = np.asarray(test_data, dtype=float)
        n_channels, n_samples, n_targets, _ = self._train_shape
        check_test_data(test_data, n_channels, n_samples, n_targets)

        scores = np.zeros((test_data.shape[2], n_targets))
        for slot in range(test_data.shape[2]):
            trial_subbands = self.model_.filter_bank.decompose(test_data[:, :, slot])
            scores[slot] = score_trial(trial_subbands, self.model_)

        return scores

    def classify(self, test_data: np.ndarray) -> ClassificationResult:
        """
        Predict targets and keep the full score matrix.

        Args:
            test_data: Shape (n_channels, n_samples, n_targets)

        Returns:
            ClassificationResult with 1-based predictions and scores
        """
        scores = self.decision_function(test_data)
        # np.argmax resolves ties to the smallest target index
        prediction = np.argmax(scores, axis=1) + 1
        return ClassificationResult(prediction=prediction, scores=scores)


def classify(
    sampling_rate: int,
    train_data: np.ndarray,
    test_data: np.ndarray,
    n_subbands: int,
    n_recon_channels: int,
    n_jobs: Optional[int] = 1
) -> ClassificationResult:
    """
    Train LCSE on `train_data` and classify `test_data`.

    All inputs are validated before any filtering or matrix computation.

    Args:
        sampling_rate: Sampling rate in Hz
        train_data: Shape (n_channels, n_samples, n_targets, n_blocks)
        test_data: Shape (n_channels, n_samples, n_targets), one held-out
            trial per target
        n_subbands: Number of filter-bank sub-bands K in [1, 7]
        n_recon_channels: Number of reconstructed channels R in [1, n_blocks - 1]
        n_jobs: joblib workers for the (target, sub-band) pairs

    Returns:
        ClassificationResult(prediction, scores)

    Raises:
        ConfigurationError: invalid K or R
        ShapeMismatchError: train/test dimensions differ
        InsufficientDataError: fewer than 2 channels, targets or blocks
        NumericalInstabilityError: singular covariance for some (target, sub-band)
    """
    config = LCSEConfig(
        sampling_rate=sampling_rate,
        n_subbands=n_subbands,
        n_recon_channels=n_recon_channels,
        n_jobs=n_jobs
    )

    train_data = np.asarray(train_data, dtype=float)
    test_data = np.asarray(test_data, dtype=float)

    # Shape agreement first, then data sufficiency and R
    if train_data.ndim != 4:
        raise ShapeMismatchError(
            f"train_data must be 4D (n_channels, n_samples, n_targets, n_blocks), "
            f"got shape {train_data.shape}"
        )
    check_test_data(test_data, *train_data.shape[:3])
    check_training_data(train_data, config)

    return LCSEClassifier(config).fit(train_data).classify(test_data)
