"""Solubility limits of the two components in the phase they are not the main
constituent of."""

from __future__ import annotations

import abc

import numpy as np

from ..utils.common_constants import KELVIN_to_CELSIUS

__all__ = ["Solubility", "ConstantSolubility", "HenryAntoineSolubility"]


class Solubility(abc.ABC):
    """Abstract interface of the equilibrium solubilities of a binary system."""

    @abc.abstractmethod
    def x_aw(self, pressure_n: float, temperature: float) -> float:
        """Mass fraction of the nonwetting component in the wetting phase at
        equilibrium.

        Parameters:
            pressure_n: Nonwetting phase pressure in ``[Pa]``.
            temperature: Temperature in ``[K]``.

        """

    @abc.abstractmethod
    def x_wn(self, pressure_n: float, temperature: float) -> float:
        """Mass fraction of the wetting component in the nonwetting phase at
        equilibrium.

        Parameters:
            pressure_n: Nonwetting phase pressure in ``[Pa]``.
            temperature: Temperature in ``[K]``.

        """


class ConstantSolubility(Solubility):
    """Solubilities independent of pressure and temperature."""

    def __init__(self, x_aw: float = 0.0, x_wn: float = 0.0):
        self._x_aw = x_aw
        self._x_wn = x_wn

    def x_aw(self, pressure_n: float, temperature: float) -> float:
        return self._x_aw

    def x_wn(self, pressure_n: float, temperature: float) -> float:
        return self._x_wn


class HenryAntoineSolubility(Solubility):
    """Water-air solubilities.

    The vapour pressure of water is given by the Antoine equation, the dissolution of
    air in water by Henry's law. Both return mole fractions, which are used as mass
    fractions.

    """

    @staticmethod
    def henry(temperature: float) -> float:
        """Henry coefficient of air in water in ``[1 / Pa]``."""
        celsius = KELVIN_to_CELSIUS(temperature)
        return (0.8942 + 1.47 * np.exp(-0.04394 * celsius)) * 1e-10

    @staticmethod
    def antoine(temperature: float) -> float:
        """Saturation vapour pressure of water in ``[Pa]``."""
        celsius = KELVIN_to_CELSIUS(temperature)
        exponent = 8.19621 - 1730.63 / (celsius + 233.436)
        # 1 mbar = 100 Pa
        return 10.0**exponent * 100.0

    def x_wn(self, pressure_n: float, temperature: float) -> float:
        return self.antoine(temperature) / pressure_n

    def x_aw(self, pressure_n: float, temperature: float) -> float:
        partial_pressure_air = pressure_n * (1.0 - self.x_wn(pressure_n, temperature))
        return partial_pressure_air * self.henry(temperature)
