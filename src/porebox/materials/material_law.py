"""Capillary pressure and relative permeability laws.

Material laws are evaluated per vertex. The box assembly treats them as black boxes of
saturation and position, see :class:`MaterialLaw`.

"""

from __future__ import annotations

import abc

import numpy as np

__all__ = ["MaterialLaw", "LinearMaterialLaw", "BrooksCorey"]


class MaterialLaw(abc.ABC):
    """Abstract interface of a two-phase material law."""

    @abc.abstractmethod
    def capillary_pressure(self, saturation_w: float, position: np.ndarray) -> float:
        """Capillary pressure ``p_n - p_w`` in ``[Pa]``.

        Parameters:
            saturation_w: Wetting phase saturation.
            position: Coordinates of the vertex.

        """

    @abc.abstractmethod
    def relperm_w(self, saturation_w: float, position: np.ndarray) -> float:
        """Relative permeability of the wetting phase."""

    @abc.abstractmethod
    def relperm_n(self, saturation_n: float, position: np.ndarray) -> float:
        """Relative permeability of the nonwetting phase."""


class LinearMaterialLaw(MaterialLaw):
    """Linear capillary pressure and linear relative permeabilities.

    ``p_c = p_e + (1 - S_w) (p_max - p_e)``, ``k_rw = S_w``, ``k_rn = S_n``, with
    saturations clipped to ``[0, 1]``.

    Parameters:
        max_pressure: Capillary pressure at vanishing wetting saturation.
        entry_pressure: Capillary pressure at full wetting saturation.

    """

    def __init__(self, max_pressure: float = 0.0, entry_pressure: float = 0.0):
        self.max_pressure = max_pressure
        self.entry_pressure = entry_pressure

    def capillary_pressure(self, saturation_w: float, position: np.ndarray) -> float:
        sw = min(max(saturation_w, 0.0), 1.0)
        return self.entry_pressure + (1.0 - sw) * (
            self.max_pressure - self.entry_pressure
        )

    def relperm_w(self, saturation_w: float, position: np.ndarray) -> float:
        return min(max(saturation_w, 0.0), 1.0)

    def relperm_n(self, saturation_n: float, position: np.ndarray) -> float:
        return min(max(saturation_n, 0.0), 1.0)


class BrooksCorey(MaterialLaw):
    """Brooks-Corey capillary pressure and Burdine relative permeabilities.

    The capillary pressure is singular for vanishing effective wetting saturation. It
    is evaluated at an effective saturation of at least ``min_effective_saturation``.

    Parameters:
        entry_pressure: Entry pressure ``p_d`` in ``[Pa]``.
        pore_size_index: Brooks-Corey exponent ``lambda``.
        residual_saturation_w: Residual saturation of the wetting phase.
        residual_saturation_n: Residual saturation of the nonwetting phase.
        min_effective_saturation: Regularization of the capillary pressure.

    Raises:
        ValueError: If the residual saturations leave no mobile saturation range.

    """

    def __init__(
        self,
        entry_pressure: float,
        pore_size_index: float,
        residual_saturation_w: float = 0.0,
        residual_saturation_n: float = 0.0,
        min_effective_saturation: float = 1e-3,
    ):
        if residual_saturation_w + residual_saturation_n >= 1.0:
            raise ValueError("Residual saturations must sum to less than one.")
        self.entry_pressure = entry_pressure
        self.pore_size_index = pore_size_index
        self.residual_saturation_w = residual_saturation_w
        self.residual_saturation_n = residual_saturation_n
        self.min_effective_saturation = min_effective_saturation

    def effective_saturation(self, saturation_w: float) -> float:
        """Effective wetting saturation, clipped to ``[0, 1]``."""
        mobile = 1.0 - self.residual_saturation_w - self.residual_saturation_n
        se = (saturation_w - self.residual_saturation_w) / mobile
        return min(max(se, 0.0), 1.0)

    def capillary_pressure(self, saturation_w: float, position: np.ndarray) -> float:
        se = max(self.effective_saturation(saturation_w), self.min_effective_saturation)
        return self.entry_pressure * se ** (-1.0 / self.pore_size_index)

    def relperm_w(self, saturation_w: float, position: np.ndarray) -> float:
        se = self.effective_saturation(saturation_w)
        lam = self.pore_size_index
        return se ** ((2.0 + 3.0 * lam) / lam)

    def relperm_n(self, saturation_n: float, position: np.ndarray) -> float:
        se = self.effective_saturation(1.0 - saturation_n)
        lam = self.pore_size_index
        return (1.0 - se) ** 2 * (1.0 - se ** ((2.0 + lam) / lam))
