# ----------------------------------------------------------------------
# preprocessor.py
#
# Channel selection and epoch windowing for SSVEP evaluation.
# ----------------------------------------------------------------------

from typing import Optional, Sequence

from ..config import (
    SAMPLING_RATE, CUE_DURATION, VISUAL_LATENCY, BUFFER_LENGTH,
    OCCIPITAL_CHANNELS, ExperimentConfig,
)
from .containers import SSVEPDataContainer


class Preprocessor:
    """
    Prepare benchmark epochs for classification.

    Handles:
    - Channel subset selection (explicit index list)
    - Windowing every epoch at a fixed offset and length

    The analysis window starts after the visual cue plus the latency of
    the visual pathway and lasts `buffer_length` seconds.

    Note:
        Filtering is part of the classifier (filter bank); no artifact
        rejection is done here.
    """

    def __init__(
        self,
        sampling_rate: int = SAMPLING_RATE,
        buffer_length: float = BUFFER_LENGTH,
        cue_duration: float = CUE_DURATION,
        visual_latency: float = VISUAL_LATENCY,
        channels: Optional[Sequence[int]] = OCCIPITAL_CHANNELS
    ):
        """
        Initialize preprocessor.

        Args:
            sampling_rate: EEG sampling rate in Hz
            buffer_length: Window length in seconds
            cue_duration: Cue period at the start of each epoch, in seconds
            visual_latency: Visual latency in seconds
            channels: 0-based channel indices to keep (None keeps all)
        """
        self.sampling_rate = sampling_rate
        self.buffer_length = buffer_length
        self.cue_duration = cue_duration
        self.visual_latency = visual_latency
        self.channels = tuple(channels) if channels is not None else None

    @classmethod
    def from_config(cls, config: ExperimentConfig) -> 'Preprocessor':
        return cls(
            sampling_rate=config.sampling_rate,
            buffer_length=config.buffer_length,
            cue_duration=config.cue_duration,
            visual_latency=config.visual_latency,
            channels=config.channels
        )

    @property
    def window_start(self) -> int:
        """First sample of the analysis window."""
        cue = int(round(self.cue_duration * self.sampling_rate))
        latency = int(round(self.visual_latency * self.sampling_rate))
        return cue + latency

    @property
    def window_length(self) -> int:
        """Number of samples in the analysis window."""
        return int(round(self.buffer_length * self.sampling_rate))

    def select_channels(self, data: SSVEPDataContainer) -> SSVEPDataContainer:
        if self.channels is None:
            return data.copy()
        return data.select_channels(self.channels)

    def extract_window(self, data: SSVEPDataContainer) -> SSVEPDataContainer:
        return data.segment(self.window_start, self.window_length)

    def process(self, data: SSVEPDataContainer) -> SSVEPDataContainer:
        """
        Full preprocessing: channel selection, then windowing.

        Args:
            data: Full recording

        Returns:
            New container ready for cross-validation
        """
        return self.extract_window(self.select_channels(data))
