# ----------------------------------------------------------------------
# containers.py
#
# Data containers for block-structured SSVEP recordings.
# ----------------------------------------------------------------------

import numpy as np
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any, Sequence

from ..exceptions import ShapeMismatchError, InsufficientDataError


@dataclass
class SSVEPDataContainer:
    """
    Container for one subject's epoched SSVEP data.

    Attributes:
        X: EEG data of shape (n_channels, n_samples, n_targets, n_blocks)
        sfreq: Sampling frequency in Hz
        ch_names: List of channel names
        freqs: Stimulus frequency of each target (optional)
        participant_id: Identifier for the participant
        metadata: Additional metadata (flexible dict for extra info)

    Example:
        >>> container = SSVEPDataContainer(X=data, sfreq=250, ch_names=names)
        >>> occipital = container.select_channels([47, 53, 54, 55, 56, 57, 60, 61, 62])
        >>> window = occipital.segment(160, 50)
    """
    X: np.ndarray
    sfreq: int
    ch_names: List[str]
    freqs: Optional[np.ndarray] = None
    participant_id: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Validate data dimensions."""
        if self.X.ndim != 4:
            raise ShapeMismatchError(
                f"X must be 4D (n_channels, n_samples, n_targets, n_blocks), "
                f"got shape {self.X.shape}"
            )

        if len(self.ch_names) != self.X.shape[0]:
            raise ShapeMismatchError(
                f"Number of channel names ({len(self.ch_names)}) must match "
                f"number of channels in X ({self.X.shape[0]})"
            )

        if self.freqs is not None:
            self.freqs = np.asarray(self.freqs, dtype=float)
            if len(self.freqs) != self.X.shape[2]:
                raise ShapeMismatchError(
                    f"Number of stimulus frequencies ({len(self.freqs)}) must match "
                    f"number of targets in X ({self.X.shape[2]})"
                )

    @property
    def shape(self) -> tuple:
        """Shape of the EEG data (n_channels, n_samples, n_targets, n_blocks)."""
        return self.X.shape

    @property
    def n_channels(self) -> int:
        return self.X.shape[0]

    @property
    def n_samples(self) -> int:
        return self.X.shape[1]

    @property
    def n_targets(self) -> int:
        return self.X.shape[2]

    @property
    def n_blocks(self) -> int:
        return self.X.shape[3]

    @property
    def duration(self) -> float:
        """Duration of each epoch in seconds."""
        return self.n_samples / self.sfreq

    @property
    def labels(self) -> np.ndarray:
        """1-based target labels, in target-axis order."""
        return np.arange(1, self.n_targets + 1)

    def _derive(
        self,
        X: np.ndarray,
        ch_names: Optional[List[str]] = None,
        **metadata
    ) -> 'SSVEPDataContainer':
        return SSVEPDataContainer(
            X=X,
            sfreq=self.sfreq,
            ch_names=list(self.ch_names if ch_names is None else ch_names),
            freqs=self.freqs.copy() if self.freqs is not None else None,
            participant_id=self.participant_id,
            metadata={**self.metadata, **metadata}
        )

    def copy(self) -> 'SSVEPDataContainer':
        """Create a deep copy of the container."""
        return self._derive(self.X.copy())

    def select_channels(self, indices: Sequence[int]) -> 'SSVEPDataContainer':
        """
        Select a subset of channels by 0-based index.

        Args:
            indices: Channel indices to keep, in the desired order

        Returns:
            New SSVEPDataContainer with selected channels
        """
        indices = [int(i) for i in indices]
        bad = [i for i in indices if not -self.n_channels <= i < self.n_channels]
        if bad:
            raise ShapeMismatchError(
                f"Channel indices {bad} out of range for {self.n_channels} channels"
            )

        return self._derive(
            self.X[indices].copy(),
            ch_names=[self.ch_names[i] for i in indices],
            selected_from_n_channels=self.n_channels
        )

    def segment(self, start: int, length: int) -> 'SSVEPDataContainer':
        """
        Cut every epoch to samples [start, start + length).

        Args:
            start: First sample of the window
            length: Window length in samples

        Returns:
            New SSVEPDataContainer with windowed epochs
        """
        if start < 0 or length < 1 or start + length > self.n_samples:
            raise InsufficientDataError(
                f"Window [{start}, {start + length}) does not fit in epochs of "
                f"{self.n_samples} samples"
            )
        return self._derive(
            self.X[:, start:start + length].copy(),
            window_start=start,
            window_length=length
        )

    def __repr__(self) -> str:
        return (
            f"SSVEPDataContainer("
            f"X={self.shape}, "
            f"sfreq={self.sfreq}Hz, "
            f"duration={self.duration:.2f}s, "
            f"participant='{self.participant_id}')"
        )


@dataclass(frozen=True)
class BlockSplit:
    """
    One leave-one-block-out fold.

    Attributes:
        train: Shape (n_channels, n_samples, n_targets, n_blocks - 1)
        test: Shape (n_channels, n_samples, n_targets)
        held_out_block: 0-based index of the test block
    """
    train: np.ndarray
    test: np.ndarray
    held_out_block: int

    @property
    def labels(self) -> np.ndarray:
        """True 1-based labels of the test slots."""
        return np.arange(1, self.test.shape[2] + 1)

    def __repr__(self) -> str:
        return (
            f"BlockSplit("
            f"train={self.train.shape}, "
            f"test={self.test.shape}, "
            f"held_out_block={self.held_out_block})"
        )
