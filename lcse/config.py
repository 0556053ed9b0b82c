# ----------------------------------------------------------------------
# config.py
#
# Configuration for the LCSE SSVEP classification pipeline.
# ----------------------------------------------------------------------

from dataclasses import dataclass, field
from numbers import Integral
from pathlib import Path
from typing import Optional, Tuple

from .exceptions import ConfigurationError

# --------------------------
# 1. PATHS
# --------------------------
BASE_DIR = Path(__file__).parent
PROJECT_ROOT = BASE_DIR.parent

DATA_DIR = PROJECT_ROOT / "data"
RESULTS_DIR = PROJECT_ROOT / "results"

# Benchmark dataset: one .mat file per subject holding a variable "data"
MAT_VARIABLE_NAME = "data"

# --------------------------
# 2. DATASET PARAMETERS (SSVEP benchmark, Wang et al. 2017)
# --------------------------
SAMPLING_RATE = 250  # Hz

# Benchmark arrays are [Electrode_index, Time_points, Target_index, Block_index]

# Pz, PO5, PO3, POz, PO4, PO6, O1, Oz, O2 (0-based indices into the 64 channels)
OCCIPITAL_CHANNELS = (47, 53, 54, 55, 56, 57, 60, 61, 62)
OCCIPITAL_CHANNEL_NAMES = ("Pz", "PO5", "PO3", "POz", "PO4", "PO6", "O1", "Oz", "O2")

# Target frequencies in label order: 8, 9, ..., 15, 8.2, 9.2, ..., 15.8 Hz
STIMULUS_FREQUENCIES = tuple(
    round(start + step, 1)
    for start in (8.0, 8.2, 8.4, 8.6, 8.8)
    for step in range(8)
)

# 0.5 s visual cue precedes the flicker in every epoch
CUE_DURATION = 0.5  # seconds
VISUAL_LATENCY = 0.14  # seconds
GAZE_SHIFT_TIME = 2.0  # seconds, added to the window length for ITR

# --------------------------
# 3. FILTER BANK
# --------------------------
MAX_SUBBANDS = 7

# Lower band edges of each sub-band (Hz); upper edges are shared
FB_PASSBAND_LOW = (6.0, 14.0, 22.0, 30.0, 38.0, 46.0, 54.0)
FB_STOPBAND_LOW = (4.0, 10.0, 16.0, 24.0, 32.0, 40.0, 48.0)
FB_PASSBAND_HIGH = 90.0
FB_STOPBAND_HIGH = 100.0

FB_GPASS = 3  # dB
FB_GSTOP = 40  # dB
FB_RIPPLE = 0.5  # dB

# Sub-band fusion weights: w(n) = n^(-a) + b
FB_WEIGHT_A = 1.25
FB_WEIGHT_B = 0.25

# --------------------------
# 4. LCSE DEFAULTS
# --------------------------
N_SUBBANDS = 5
N_RECON_CHANNELS = 3

# Tikhonov term added to the summed auto-covariance, relative to its mean eigenvalue
COV_REGULARIZATION = 1e-6
# Condition number above which the auto-covariance is considered singular.
# With the relative ridge above the condition number stays below roughly
# n_channels / COV_REGULARIZATION, so at the default ridge this only trips on
# degenerate blocks (all-zero or non-finite data). It becomes a real bound
# when the ridge is switched off (regularization=0).
COND_TOLERANCE = 1e12

# Minimum epoch length, as a fraction of the sampling rate
MIN_WINDOW_SECONDS = 0.2

# --------------------------
# 5. EVALUATION
# --------------------------
BUFFER_LENGTH = 0.2  # seconds
N_JOBS = 1


def _is_int(value) -> bool:
    return isinstance(value, Integral) and not isinstance(value, bool)


@dataclass(frozen=True)
class LCSEConfig:
    """
    Immutable configuration for one LCSE classification call.

    Attributes:
        sampling_rate: EEG sampling rate in Hz
        n_subbands: Number of filter-bank sub-bands K (1 disables filtering)
        n_recon_channels: Number of reconstructed channels R, at most
            (number of training blocks - 1)
        weight_a: Decay exponent of the sub-band weights
        weight_b: Offset of the sub-band weights
        regularization: Relative ridge added to the auto-covariance
        cond_tolerance: Largest acceptable auto-covariance condition number
        n_jobs: joblib workers for the (target, sub-band) pairs
    """
    sampling_rate: int = SAMPLING_RATE
    n_subbands: int = N_SUBBANDS
    n_recon_channels: int = N_RECON_CHANNELS
    weight_a: float = FB_WEIGHT_A
    weight_b: float = FB_WEIGHT_B
    regularization: float = COV_REGULARIZATION
    cond_tolerance: float = COND_TOLERANCE
    n_jobs: Optional[int] = N_JOBS

    def __post_init__(self):
        if not _is_int(self.sampling_rate) or self.sampling_rate <= 0:
            raise ConfigurationError(
                f"sampling_rate must be a positive integer, got {self.sampling_rate!r}"
            )
        if not _is_int(self.n_subbands) or not 1 <= self.n_subbands <= MAX_SUBBANDS:
            raise ConfigurationError(
                f"n_subbands must be an integer in [1, {MAX_SUBBANDS}], "
                f"got {self.n_subbands!r}"
            )
        if not _is_int(self.n_recon_channels) or self.n_recon_channels < 1:
            raise ConfigurationError(
                f"n_recon_channels must be a positive integer, "
                f"got {self.n_recon_channels!r}"
            )
        if self.regularization < 0:
            raise ConfigurationError(
                f"regularization must be non-negative, got {self.regularization}"
            )
        if self.cond_tolerance <= 1:
            raise ConfigurationError(
                f"cond_tolerance must be greater than 1, got {self.cond_tolerance}"
            )

    @property
    def min_samples(self) -> int:
        """Shortest epoch (in samples) the classifier accepts."""
        return int(round(MIN_WINDOW_SECONDS * self.sampling_rate))


@dataclass(frozen=True)
class ExperimentConfig:
    """
    Immutable configuration of an offline leave-one-block-out evaluation.

    Attributes:
        sampling_rate: EEG sampling rate in Hz
        buffer_length: Analysis window (gaze time) in seconds
        gaze_shift_time: Time to shift gaze between selections, in seconds
        cue_duration: Visual cue preceding the flicker, in seconds
        visual_latency: Latency of the visual pathway, in seconds
        channels: 0-based channel indices to keep (None keeps all)
        use_filter_bank: Whether to decompose into sub-bands
        n_subbands: Number of sub-bands when the filter bank is enabled
        n_recon_channels: Number of reconstructed channels
        n_jobs: joblib workers across folds
    """
    sampling_rate: int = SAMPLING_RATE
    buffer_length: float = BUFFER_LENGTH
    gaze_shift_time: float = GAZE_SHIFT_TIME
    cue_duration: float = CUE_DURATION
    visual_latency: float = VISUAL_LATENCY
    channels: Optional[Tuple[int, ...]] = field(default=OCCIPITAL_CHANNELS)
    use_filter_bank: bool = True
    n_subbands: int = N_SUBBANDS
    n_recon_channels: int = N_RECON_CHANNELS
    n_jobs: Optional[int] = N_JOBS

    def __post_init__(self):
        if not isinstance(self.use_filter_bank, bool):
            raise ConfigurationError(
                f"use_filter_bank must be a bool, got {self.use_filter_bank!r}"
            )
        if self.buffer_length <= 0:
            raise ConfigurationError(
                f"buffer_length must be positive, got {self.buffer_length}"
            )
        if self.gaze_shift_time < 0:
            raise ConfigurationError(
                f"gaze_shift_time must be non-negative, got {self.gaze_shift_time}"
            )
        if self.channels is not None:
            object.__setattr__(self, "channels", tuple(int(c) for c in self.channels))
        # Fail early on K / R / sampling rate
        self.lcse_config()

    @property
    def effective_subbands(self) -> int:
        """Number of sub-bands actually used (1 when the filter bank is off)."""
        return self.n_subbands if self.use_filter_bank else 1

    @property
    def selection_time(self) -> float:
        """Time per selection in seconds, used for the ITR."""
        return self.buffer_length + self.gaze_shift_time

    def lcse_config(self, n_jobs: Optional[int] = 1) -> LCSEConfig:
        """Core configuration derived from this experiment."""
        return LCSEConfig(
            sampling_rate=self.sampling_rate,
            n_subbands=self.effective_subbands,
            n_recon_channels=self.n_recon_channels,
            n_jobs=n_jobs,
        )
