"""Properties of the porous matrix."""

from __future__ import annotations

from typing import Callable, Union

import numpy as np

from ..params.tensor import SecondOrderTensor

__all__ = ["Soil"]


PermeabilityLike = Union[float, SecondOrderTensor, Callable[[np.ndarray], np.ndarray]]
"""A scalar (isotropic, homogeneous) permeability, a vertex-wise tensor, or a function
of the position returning a ``(dim, dim)`` tensor."""

PorosityLike = Union[float, np.ndarray, Callable[[np.ndarray], float]]
"""A scalar, vertex-wise values, or a function of the position."""


class Soil:
    """Porous matrix.

    Parameters:
        permeability: Intrinsic permeability in ``[m^2]``.
        porosity: Porosity.
        density: Density of the solid in ``[kg / m^3]``.
        specific_heat_capacity: Heat capacity of the solid in ``[J / kg K]``.
        thermal_conductivity: Effective heat conductivity of the fluid filled porous
            medium in ``[W / m K]``.

    Raises:
        ValueError: If a constant porosity is outside ``[0, 1]``.

    """

    def __init__(
        self,
        permeability: PermeabilityLike,
        porosity: PorosityLike,
        density: float = 2650.0,
        specific_heat_capacity: float = 800.0,
        thermal_conductivity: float = 2.0,
    ) -> None:
        if isinstance(porosity, (int, float)) and not 0.0 <= porosity <= 1.0:
            raise ValueError(f"Porosity {porosity} outside of [0, 1].")
        self._permeability = permeability
        self._porosity = porosity
        self.density = density
        self.specific_heat_capacity = specific_heat_capacity
        self.thermal_conductivity = thermal_conductivity

    def permeability(self, vertex: int, position: np.ndarray) -> np.ndarray:
        """Permeability tensor of a vertex, of shape ``(dim, dim)``."""
        dim = position.size
        K = self._permeability
        if isinstance(K, SecondOrderTensor):
            return K.at(vertex, dim)
        if callable(K):
            return np.atleast_2d(np.asarray(K(position), dtype=float))
        return float(K) * np.eye(dim)

    def porosity(self, vertex: int, position: np.ndarray) -> float:
        """Porosity of a vertex."""
        phi = self._porosity
        if isinstance(phi, np.ndarray):
            return float(phi[vertex])
        if callable(phi):
            return float(phi(position))
        return float(phi)
