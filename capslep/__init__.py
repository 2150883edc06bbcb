"""capslep: Slepian tapers concentrated within a polar spherical cap."""

import logging

from ._typecheck import enable_runtime_typecheck
from .runtime.dtypes import enable_double_precision

enable_runtime_typecheck()
enable_double_precision()

from .config import EigenDriver, ErrorMode, TaperConfig
from .errors import (
    AllocationError,
    DimensionError,
    KernelIOError,
    NumericalError,
    RangeError,
    TaperError,
    TaperResult,
    TaperStatus,
)
from .logging_utils import setup_logging
from .runtime.tapers import cap_shannon_number
from .solver import CapTaperSolver, compute_cap_tapers

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "AllocationError",
    "CapTaperSolver",
    "DimensionError",
    "EigenDriver",
    "ErrorMode",
    "KernelIOError",
    "NumericalError",
    "RangeError",
    "TaperConfig",
    "TaperError",
    "TaperResult",
    "TaperStatus",
    "cap_shannon_number",
    "compute_cap_tapers",
    "setup_logging",
]
