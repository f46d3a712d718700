"""Thermodynamic and transport properties of the two fluid phases.

Phase properties are functions of temperature ``[K]``, the phase's own pressure
``[Pa]`` and the mass fraction of the dissolved (minor) component in the phase.

"""

from __future__ import annotations

import abc
from dataclasses import dataclass

import numpy as np

from .._core import R_IDEAL_MOL
from ..utils.common_constants import KELVIN_to_CELSIUS

__all__ = ["FluidPhase", "ConstantPhase", "Water", "Air"]


class FluidPhase(abc.ABC):
    """Abstract interface of a fluid phase."""

    @abc.abstractmethod
    def density(
        self, temperature: float, pressure: float, dissolved_fraction: float
    ) -> float:
        """Mass density in ``[kg / m^3]``."""

    @abc.abstractmethod
    def viscosity(
        self, temperature: float, pressure: float, dissolved_fraction: float
    ) -> float:
        """Dynamic viscosity in ``[Pa s]``."""

    @abc.abstractmethod
    def enthalpy(
        self, temperature: float, pressure: float, dissolved_fraction: float
    ) -> float:
        """Specific enthalpy in ``[J / kg]``."""

    def internal_energy(
        self, temperature: float, pressure: float, dissolved_fraction: float
    ) -> float:
        """Specific internal energy ``h - p / rho`` in ``[J / kg]``."""
        rho = self.density(temperature, pressure, dissolved_fraction)
        return self.enthalpy(temperature, pressure, dissolved_fraction) - pressure / rho


@dataclass(frozen=True, kw_only=True)
class ConstantPhase(FluidPhase):
    """Fluid phase with constant density and viscosity."""

    density_value: float = 1000.0
    """Density in ``[kg / m^3]``."""

    viscosity_value: float = 1e-3
    """Dynamic viscosity in ``[Pa s]``."""

    specific_heat_capacity: float = 4180.0
    """Heat capacity in ``[J / kg K]``."""

    def density(
        self, temperature: float, pressure: float, dissolved_fraction: float
    ) -> float:
        return self.density_value

    def viscosity(
        self, temperature: float, pressure: float, dissolved_fraction: float
    ) -> float:
        return self.viscosity_value

    def enthalpy(
        self, temperature: float, pressure: float, dissolved_fraction: float
    ) -> float:
        return self.specific_heat_capacity * KELVIN_to_CELSIUS(temperature)


@dataclass(frozen=True, kw_only=True)
class Water(FluidPhase):
    """Liquid water with temperature dependent density and viscosity.

    Dissolved air is neglected in all properties.

    """

    reference_density: float = 999.8349
    """Density at 10 degrees Celsius in ``[kg / m^3]``."""

    compressibility: float = 0.0
    """Isothermal compressibility in ``[1 / Pa]``."""

    reference_pressure: float = 1e5
    """Pressure at which :attr:`reference_density` is attained."""

    specific_heat_capacity: float = 4180.0
    """Heat capacity in ``[J / kg K]``."""

    def thermal_expansion(self, delta_theta: float) -> float:
        """Volumetric thermal expansion for a temperature increment in Celsius."""
        return 0.0002115 + 1.32e-6 * delta_theta + 1.09e-8 * delta_theta**2

    def density(
        self, temperature: float, pressure: float, dissolved_fraction: float
    ) -> float:
        theta = KELVIN_to_CELSIUS(temperature)
        rho = self.reference_density / (1.0 + self.thermal_expansion(theta - 10.0))
        return rho * np.exp(self.compressibility * (pressure - self.reference_pressure))

    def viscosity(
        self, temperature: float, pressure: float, dissolved_fraction: float
    ) -> float:
        return 2.414e-5 * np.power(10.0, 247.8 / (temperature - 140.0))

    def enthalpy(
        self, temperature: float, pressure: float, dissolved_fraction: float
    ) -> float:
        return self.specific_heat_capacity * KELVIN_to_CELSIUS(temperature)


@dataclass(frozen=True, kw_only=True)
class Air(FluidPhase):
    """Air as an ideal gas. Dissolved water vapour is neglected."""

    molar_mass: float = 0.02896
    """Molar mass in ``[kg / mol]``."""

    dynamic_viscosity: float = 1.8e-5
    """Constant dynamic viscosity in ``[Pa s]``."""

    specific_heat_capacity: float = 1005.0
    """Heat capacity at constant pressure in ``[J / kg K]``."""

    def density(
        self, temperature: float, pressure: float, dissolved_fraction: float
    ) -> float:
        return pressure * self.molar_mass / (R_IDEAL_MOL * temperature)

    def viscosity(
        self, temperature: float, pressure: float, dissolved_fraction: float
    ) -> float:
        return self.dynamic_viscosity

    def enthalpy(
        self, temperature: float, pressure: float, dissolved_fraction: float
    ) -> float:
        return self.specific_heat_capacity * KELVIN_to_CELSIUS(temperature)
