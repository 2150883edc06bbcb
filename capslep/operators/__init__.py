"""Operator namespace for the numerical collaborators of the taper solver."""

from . import kernel, legendre, quadrature, tridiagonal

__all__ = [
    "kernel",
    "legendre",
    "quadrature",
    "tridiagonal",
]
