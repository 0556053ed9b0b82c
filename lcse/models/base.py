# ----------------------------------------------------------------------
# base.py
#
# Abstract base class for SSVEP target classifiers.
# All model implementations should inherit from this class.
# ----------------------------------------------------------------------

from abc import ABC, abstractmethod
import numpy as np
from typing import Dict, Any, Optional


class BaseClassifier(ABC):
    """
    Abstract base class for SSVEP frequency-recognition models.

    Unlike generic feature classifiers, SSVEP models are trained on a
    block-structured tensor (n_channels, n_samples, n_targets, n_blocks)
    and classify one trial per target slot (n_channels, n_samples, n_targets).
    The target of a training trial is its position on the target axis, so
    no separate label vector is needed.

    Predicted labels are 1-based target indices, matching the label
    convention of the SSVEP benchmark dataset.
    """

    def __init__(self, name: str = "BaseClassifier", **kwargs):
        """
        Initialize the classifier.

        Args:
            name: Human-readable name for the model
            **kwargs: Model-specific parameters
        """
        self.name = name
        self.params = kwargs
        self.is_fitted = False

        # Store training information
        self.history: Dict[str, Any] = {}

    @abstractmethod
    def fit(self, train_data: np.ndarray, **kwargs) -> 'BaseClassifier':
        """
        Train the model.

        Args:
            train_data: Shape (n_channels, n_samples, n_targets, n_blocks)
            **kwargs: Additional training parameters

        Returns:
            self
        """
        pass

    @abstractmethod
    def decision_function(self, test_data: np.ndarray) -> np.ndarray:
        """
        Score every test trial against every target.

        Args:
            test_data: Shape (n_channels, n_samples, n_trials)

        Returns:
            Score matrix, shape (n_trials, n_targets)
        """
        pass

    def predict(self, test_data: np.ndarray) -> np.ndarray:
        """
        Predict the target of each test trial.

        Args:
            test_data: Shape (n_channels, n_samples, n_trials)

        Returns:
            1-based target labels, shape (n_trials,)
        """
        scores = self.decision_function(test_data)
        return np.argmax(scores, axis=1) + 1

    def score(self, test_data: np.ndarray, labels: Optional[np.ndarray] = None) -> float:
        """
        Compute accuracy.

        Args:
            test_data: Shape (n_channels, n_samples, n_trials)
            labels: True 1-based labels. Defaults to 1..n_trials, i.e. one
                trial per target in target order.

        Returns:
            Accuracy score (0-1)
        """
        predictions = self.predict(test_data)
        if labels is None:
            labels = np.arange(1, len(predictions) + 1)
        return float(np.mean(predictions == np.asarray(labels)))

    def _check_is_fitted(self):
        if not self.is_fitted:
            raise ValueError("Model not fitted. Call fit() first.")

    def get_params(self) -> Dict[str, Any]:
        """
        Get model parameters.

        Returns:
            Dictionary of parameter names to values
        """
        return self.params.copy()

    def set_params(self, **params) -> 'BaseClassifier':
        """
        Set model parameters. Takes effect at the next fit().

        Args:
            **params: Parameters to set

        Returns:
            self
        """
        self.params.update(params)
        self.is_fitted = False
        return self

    def __repr__(self) -> str:
        status = "fitted" if self.is_fitted else "not fitted"
        return f"{self.name}({status}, params={self.params})"
