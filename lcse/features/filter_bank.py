# ----------------------------------------------------------------------
# filter_bank.py
#
# Filter-bank decomposition of SSVEP epochs and sub-band fusion weights.
# ----------------------------------------------------------------------

import warnings
import numpy as np
from typing import List, Tuple
from scipy import signal

from ..config import (
    SAMPLING_RATE, MAX_SUBBANDS,
    FB_PASSBAND_LOW, FB_STOPBAND_LOW, FB_PASSBAND_HIGH, FB_STOPBAND_HIGH,
    FB_GPASS, FB_GSTOP, FB_RIPPLE,
    FB_WEIGHT_A, FB_WEIGHT_B,
)
from ..exceptions import ConfigurationError, InsufficientDataError


def subband_weights(
    n_subbands: int,
    a: float = FB_WEIGHT_A,
    b: float = FB_WEIGHT_B
) -> np.ndarray:
    """
    Compute the fusion weight of each sub-band.

    w(n) = n^(-a) + b, with n the 1-based sub-band index.

    Args:
        n_subbands: Number of sub-bands
        a: Decay exponent
        b: Constant offset

    Returns:
        Weights, shape (n_subbands,)
    """
    n = np.arange(1, n_subbands + 1, dtype=float)
    return n ** (-a) + b


def _band_edges(sampling_rate: int, n_subbands: int) -> List[Tuple[float, float, float, float]]:
    """(stop_low, pass_low, pass_high, stop_high) in Hz for each sub-band."""
    nyquist = sampling_rate / 2.0

    pass_high = min(FB_PASSBAND_HIGH, 0.9 * nyquist)
    stop_high = min(FB_STOPBAND_HIGH, 0.95 * nyquist)
    if pass_high < FB_PASSBAND_HIGH:
        warnings.warn(
            f"Upper filter-bank edges clamped to {pass_high:.1f}/{stop_high:.1f} Hz "
            f"for sampling rate {sampling_rate} Hz"
        )

    edges = []
    for n in range(n_subbands):
        pass_low = FB_PASSBAND_LOW[n]
        stop_low = FB_STOPBAND_LOW[n]
        if pass_low >= pass_high:
            raise ConfigurationError(
                f"Sub-band {n + 1} starts at {pass_low} Hz, above the usable "
                f"band of a {sampling_rate} Hz recording ({pass_high:.1f} Hz)"
            )
        edges.append((stop_low, pass_low, pass_high, stop_high))
    return edges


class FilterBank:
    """
    Bank of zero-phase Chebyshev type I band-pass filters.

    The n-th sub-band keeps the n-th harmonic region of the stimulus range
    and everything above it up to ~90 Hz, so that each sub-band adds one
    more harmonic to the analysis. With a single sub-band the bank is a
    pass-through and the broadband signal is used as-is.

    Example:
        >>> bank = FilterBank(sampling_rate=250, n_subbands=5)
        >>> subbands = bank.decompose(epoch)  # list of 5 (C, S) arrays
    """

    def __init__(self, sampling_rate: int = SAMPLING_RATE, n_subbands: int = 5):
        """
        Design the filters.

        Args:
            sampling_rate: Sampling rate in Hz
            n_subbands: Number of sub-bands (1 disables filtering)
        """
        if not 1 <= n_subbands <= MAX_SUBBANDS:
            raise ConfigurationError(
                f"n_subbands must be in [1, {MAX_SUBBANDS}], got {n_subbands}"
            )

        self.sampling_rate = sampling_rate
        self.n_subbands = n_subbands
        self.bands: List[Tuple[float, float]] = []
        self._sos: List[np.ndarray] = []

        if n_subbands == 1:
            return

        for stop_low, pass_low, pass_high, stop_high in _band_edges(sampling_rate, n_subbands):
            order, wn = signal.cheb1ord(
                [pass_low, pass_high],
                [stop_low, stop_high],
                FB_GPASS,
                FB_GSTOP,
                fs=sampling_rate
            )
            sos = signal.cheby1(
                order, FB_RIPPLE, wn,
                btype='bandpass',
                output='sos',
                fs=sampling_rate
            )
            self.bands.append((pass_low, pass_high))
            self._sos.append(sos)

    @property
    def is_passthrough(self) -> bool:
        return self.n_subbands == 1

    def decompose(self, epoch: np.ndarray, axis: int = -1) -> List[np.ndarray]:
        """
        Split an epoch into sub-bands.

        Args:
            epoch: EEG data, e.g. (C, S) or a (C, S, T, B) training tensor
            axis: Time axis of `epoch`

        Returns:
            List of n_subbands arrays with the same shape as `epoch`
        """
        epoch = np.asarray(epoch, dtype=float)

        if self.is_passthrough:
            return [epoch.copy()]

        n_samples = epoch.shape[axis]
        if n_samples < 2:
            raise InsufficientDataError(
                f"Cannot band-pass filter an epoch of {n_samples} sample(s)"
            )

        subbands = []
        for sos in self._sos:
            # Clamp the edge padding so short windows remain filterable
            n_zeros = min((sos[:, 2] == 0).sum(), (sos[:, 5] == 0).sum())
            padlen = min(3 * (2 * len(sos) + 1 - n_zeros), n_samples - 1)
            subbands.append(signal.sosfiltfilt(sos, epoch, axis=axis, padlen=padlen))

        return subbands

    def __repr__(self) -> str:
        if self.is_passthrough:
            return f"FilterBank(sfreq={self.sampling_rate}Hz, passthrough)"
        bands = ", ".join(f"{lo:g}-{hi:g}Hz" for lo, hi in self.bands)
        return f"FilterBank(sfreq={self.sampling_rate}Hz, bands=[{bands}])"


def filter_bank_decompose(
    epoch: np.ndarray,
    sampling_rate: int = SAMPLING_RATE,
    n_subbands: int = 5
) -> List[np.ndarray]:
    """
    Decompose one epoch into `n_subbands` band-passed copies.

    Convenience wrapper around FilterBank for one-off use. The input is
    never modified.

    Args:
        epoch: Shape (n_channels, n_samples)
        sampling_rate: Sampling rate in Hz
        n_subbands: Number of sub-bands

    Returns:
        List of arrays of shape (n_channels, n_samples), ordered by sub-band
    """
    return FilterBank(sampling_rate, n_subbands).decompose(epoch)
