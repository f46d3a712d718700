"""Utility functions and exceptions of the box discretization."""

from __future__ import annotations

import numpy as np

from .._core import HARMONIC_MEAN_EPS

__all__ = [
    "BoxModellingError",
    "InvalidPhaseStateError",
    "PhaseSwitchConflictError",
    "DeflectionError",
    "harmonic_mean_tensor",
]


class BoxModellingError(Exception):
    """Base class for errors raised by the two-phase two-component box model."""


class InvalidPhaseStateError(BoxModellingError, ValueError):
    """Error raised when a vertex carries a phase state which is not one of
    :class:`~porebox._core.PhaseState`."""


class PhaseSwitchConflictError(BoxModellingError):
    """Error raised when more than one phase transition is triggered at a single
    vertex in a single switch pass."""


class DeflectionError(BoxModellingError):
    """Error raised for an illegal sequence of deflections and restorations of the
    local solution."""


def harmonic_mean_tensor(
    K_i: np.ndarray, K_j: np.ndarray, eps: float = HARMONIC_MEAN_EPS
) -> np.ndarray:
    """Entry-wise harmonic mean of two tensors.

    Entries which are exactly equal in both tensors are kept as they are, all other
    entries are averaged as ``2 / (1 / (K_i + eps) + 1 / (K_j + eps))``. The
    regularization ``eps`` keeps zero entries finite.

    Parameters:
        K_i: First tensor.
        K_j: Second tensor, of the same shape as ``K_i``.
        eps: Regularization.

    Raises:
        ValueError: If the tensors have different shapes.

    Returns:
        The averaged tensor, as a new array.

    """
    K_i = np.asarray(K_i, dtype=float)
    K_j = np.asarray(K_j, dtype=float)
    if K_i.shape != K_j.shape:
        raise ValueError(f"Shapes {K_i.shape} and {K_j.shape} do not match.")

    mean = K_i.copy()
    differ = K_i != K_j
    mean[differ] = 2.0 / (1.0 / (K_i[differ] + eps) + 1.0 / (K_j[differ] + eps))
    return mean
