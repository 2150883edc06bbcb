"""Error taxonomy and status codes for taper computations.

Each failure class carries the integer status a caller sees in status mode:

    0 = no errors
    1 = improper dimensions of an output array
    2 = improper bounds for an input variable
    3 = error allocating memory
    4 = file IO error while reading or writing a kernel
    5 = numerical failure in a collaborator (eigensolver, non-finite kernel)
"""

from __future__ import annotations

from enum import IntEnum
from typing import NamedTuple, Optional

import numpy as np


class TaperStatus(IntEnum):
    """Status codes reported in status mode."""

    OK = 0
    DIMENSION = 1
    RANGE = 2
    ALLOCATION = 3
    IO = 4
    NUMERICAL = 5


class TaperError(Exception):
    """Base class for failures of a taper computation."""

    status: TaperStatus = TaperStatus.OK


class DimensionError(TaperError, ValueError):
    """An output buffer is smaller than the problem requires."""

    status = TaperStatus.DIMENSION


class RangeError(TaperError, ValueError):
    """An input parameter is outside its admissible range."""

    status = TaperStatus.RANGE


class AllocationError(TaperError, MemoryError):
    """Scratch memory for the computation could not be allocated."""

    status = TaperStatus.ALLOCATION


class KernelIOError(TaperError, OSError):
    """A kernel builder failed to read or write its kernel."""

    status = TaperStatus.IO


class NumericalError(TaperError, ArithmeticError):
    """The kernel or its eigen-decomposition could not be computed.

    Raised for LAPACK failures and for kernels with non-finite entries.
    """

    status = TaperStatus.NUMERICAL


class TaperResult(NamedTuple):
    """Outcome of a single taper computation.

    On failure ``tapers``, ``eigenvalues`` and ``shannon`` are ``None`` and
    ``error`` holds the exception describing the problem.
    """

    tapers: Optional[np.ndarray]
    eigenvalues: Optional[np.ndarray]
    shannon: Optional[float]
    status: TaperStatus = TaperStatus.OK
    error: Optional[TaperError] = None

    @property
    def ok(self: "TaperResult") -> bool:
        return self.status is TaperStatus.OK

    def raise_for_status(self: "TaperResult") -> "TaperResult":
        """Raise the stored error, or return ``self`` when the call succeeded."""
        if self.error is not None:
            raise self.error
        return self

    @classmethod
    def failure(cls: "type[TaperResult]", error: TaperError) -> "TaperResult":
        return cls(
            tapers=None,
            eigenvalues=None,
            shannon=None,
            status=error.status,
            error=error,
        )


__all__ = [
    "AllocationError",
    "DimensionError",
    "KernelIOError",
    "NumericalError",
    "RangeError",
    "TaperError",
    "TaperResult",
    "TaperStatus",
]
