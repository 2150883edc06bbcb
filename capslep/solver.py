"""Solver facade for capslep."""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Optional, Union

import numpy as np

from .config import EigenDriver, ErrorMode, TaperConfig, normalize_error_mode
from .errors import TaperResult
from .operators.kernel import GrunbaumKernel, KernelBuilder
from .runtime.dtypes import IntLike, RealLike
from .runtime.tapers import run_cap_tapers


class CapTaperSolver:
    """Spherical-cap Slepian tapers for one angular order per call.

    The solver holds only configuration; every :meth:`compute` call owns its
    working memory, so one instance can be shared between threads computing
    different orders.

    Examples
    --------
    >>> solver = CapTaperSolver()
    >>> result = solver.compute(0.5, 20, 0)
    >>> result.tapers.shape, result.eigenvalues.shape
    ((21, 21), (21,))
    """

    def __init__(
        self,
        config: Optional[TaperConfig] = None,
        *,
        kernel_builder: Optional[KernelBuilder] = None,
        **overrides: Any,
    ):
        cfg = TaperConfig() if config is None else config
        if overrides:
            # e.g. CapTaperSolver(error_mode="status", eigen_driver="stebz")
            cfg = replace(cfg, **overrides)
        self._config = cfg
        self._kernel_builder = GrunbaumKernel() if kernel_builder is None else kernel_builder

    @property
    def config(self: "CapTaperSolver") -> TaperConfig:
        return self._config

    @property
    def error_mode(self: "CapTaperSolver") -> ErrorMode:
        return self._config.error_mode

    @property
    def kernel_builder(self: "CapTaperSolver") -> KernelBuilder:
        return self._kernel_builder

    def compute(
        self: "CapTaperSolver",
        theta0: RealLike,
        lmax: IntLike,
        m: IntLike,
        *,
        tapers: Optional[np.ndarray] = None,
        eigenvalues: Optional[np.ndarray] = None,
        shannon: bool = True,
    ) -> TaperResult:
        """Tapers, concentration factors and Shannon number of a polar cap.

        Parameters
        ----------
        theta0 : float
            Angular radius of the cap in radians, ``0 < theta0 <= pi``.
        lmax : int
            Bandwidth (maximum spherical-harmonic degree).
        m : int
            Angular order, ``|m| <= lmax``.
        tapers : numpy.ndarray, optional
            Caller-owned buffer of at least ``(lmax+1, lmax+1)``. Column ``j``
            receives the geodesy-normalized coefficients of taper ``j`` for
            degrees ``0..lmax``; columns are ordered by decreasing
            concentration.
        eigenvalues : numpy.ndarray, optional
            Caller-owned buffer of at least ``lmax+1`` entries receiving the
            concentration factor of each column.
        shannon : bool
            Whether to report the Shannon number (sum of the factors).

        Returns
        -------
        TaperResult
            When no buffers are given, freshly allocated arrays are returned.
            In :attr:`ErrorMode.STATUS` failures are returned with a non-zero
            ``status``; in :attr:`ErrorMode.RAISE` they are raised.
        """

        result = run_cap_tapers(
            theta0,
            lmax,
            m,
            tapers=tapers,
            eigenvalues=eigenvalues,
            shannon=shannon,
            config=self._config,
            kernel_builder=self._kernel_builder,
        )
        if self._config.error_mode is ErrorMode.RAISE:
            result.raise_for_status()
        return result


def compute_cap_tapers(
    theta0: RealLike,
    lmax: IntLike,
    m: IntLike,
    *,
    tapers: Optional[np.ndarray] = None,
    eigenvalues: Optional[np.ndarray] = None,
    shannon: bool = True,
    error_mode: Union[ErrorMode, str] = ErrorMode.RAISE,
    eigen_driver: EigenDriver = "stemr",
    sort_by_concentration: bool = True,
) -> TaperResult:
    """Functional shortcut for :meth:`CapTaperSolver.compute`."""

    solver = CapTaperSolver(
        TaperConfig(
            error_mode=normalize_error_mode(error_mode),
            eigen_driver=eigen_driver,
            sort_by_concentration=sort_by_concentration,
        )
    )
    return solver.compute(
        theta0,
        lmax,
        m,
        tapers=tapers,
        eigenvalues=eigenvalues,
        shannon=shannon,
    )


__all__ = ["CapTaperSolver", "compute_cap_tapers"]
