# ----------------------------------------------------------------------
# exceptions.py
#
# Error taxonomy for the LCSE pipeline.
# ----------------------------------------------------------------------

from typing import List, Tuple


class LCSEError(Exception):
    """Base class for all errors raised by the lcse package."""


class ConfigurationError(LCSEError, ValueError):
    """Invalid configuration (number of sub-bands, reconstructed channels, ...)."""


class ShapeMismatchError(LCSEError, ValueError):
    """Training and test tensors have incompatible ranks or dimensions."""


class InsufficientDataError(LCSEError, ValueError):
    """Too few channels, targets, blocks or samples to run the algorithm."""


class NumericalInstabilityError(LCSEError, ArithmeticError):
    """
    Covariance matrices too ill-conditioned to solve the eigenproblem.

    Raised once all (target, sub-band) pairs have been attempted, so that
    every failing pair is reported together.

    Attributes:
        failures: List of (target, subband, reason) tuples. Indices are
            0-based.
    """

    def __init__(self, failures: List[Tuple[int, int, str]]):
        self.failures = list(failures)
        pairs = ", ".join(f"(target={t}, subband={n})" for t, n, _ in self.failures)
        super().__init__(
            f"Spatial filter estimation failed for {len(self.failures)} "
            f"pair(s): {pairs}"
        )

    def __reduce__(self):
        # Survive the round trip through joblib worker processes
        return (self.__class__, (self.failures,))

    @property
    def pairs(self) -> List[Tuple[int, int]]:
        """The failing (target, subband) pairs."""
        return [(t, n) for t, n, _ in self.failures]
