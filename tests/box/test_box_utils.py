"""Tests of the harmonic mean of permeabilities and the exception hierarchy."""

from __future__ import annotations

import numpy as np
import pytest

import porebox as pb
from porebox.box.utils import harmonic_mean_tensor


def test_harmonic_mean_of_scalars():
    mean = harmonic_mean_tensor(np.array([[4.0]]), np.array([[1.0]]))
    assert np.isclose(mean[0, 0], 1.6)


def test_equal_entries_are_kept():
    """Equal entries, in particular zero off-diagonal entries, are not averaged."""
    K_i = np.array([[2.0, 0.0], [0.0, 3.0]])
    K_j = np.array([[8.0, 0.0], [0.0, 3.0]])
    mean = harmonic_mean_tensor(K_i, K_j)
    assert mean[0, 1] == 0.0
    assert mean[1, 0] == 0.0
    assert mean[1, 1] == 3.0
    assert np.isclose(mean[0, 0], 2 / (1 / 2 + 1 / 8))
    # The input is not modified.
    assert K_i[0, 0] == 2.0


def test_regularization_of_zero_entries():
    mean = harmonic_mean_tensor(np.array([0.0]), np.array([1e-12]))
    assert np.all(np.isfinite(mean))
    assert mean[0] < 1e-19


def test_shape_mismatch():
    with pytest.raises(ValueError):
        harmonic_mean_tensor(np.eye(2), np.eye(3))


@pytest.mark.parametrize(
    "error",
    [
        pb.InvalidPhaseStateError,
        pb.PhaseSwitchConflictError,
        pb.DeflectionError,
    ],
)
def test_exception_hierarchy(error):
    assert issubclass(error, pb.BoxModellingError)
