"""Configuration model for capslep."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Literal, Union

EigenDriver = Literal["stemr", "stebz", "stev", "auto"]

_EIGEN_DRIVERS = ("stemr", "stebz", "stev", "auto")


class ErrorMode(str, Enum):
    """How a failed computation is reported to the caller."""

    STATUS = "status"
    RAISE = "raise"


@dataclass(frozen=True)
class TaperConfig:
    """Solver settings shared by every call of a :class:`CapTaperSolver`."""

    # Plain strings such as "status" are normalized in __post_init__.
    error_mode: Union[ErrorMode, str] = ErrorMode.RAISE
    eigen_driver: EigenDriver = "stemr"
    sort_by_concentration: bool = True
    ordering_tolerance: float = 1e-10

    def __post_init__(self) -> None:
        object.__setattr__(self, "error_mode", normalize_error_mode(self.error_mode))
        if self.eigen_driver not in _EIGEN_DRIVERS:
            raise ValueError(
                f"eigen_driver must be one of {', '.join(_EIGEN_DRIVERS)}"
            )
        tol = float(self.ordering_tolerance)
        if not math.isfinite(tol) or tol < 0.0:
            raise ValueError("ordering_tolerance must be a finite value >= 0")


def normalize_error_mode(mode: ErrorMode | str) -> ErrorMode:
    """Coerce a user-supplied error mode into :class:`ErrorMode`."""
    if isinstance(mode, ErrorMode):
        return mode
    return ErrorMode(str(mode).strip().lower())


__all__ = ["EigenDriver", "ErrorMode", "TaperConfig", "normalize_error_mode"]
