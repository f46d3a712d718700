"""Constitutive laws consumed by the box assembly: material laws (capillary pressure,
relative permeability), solubilities, fluid phase properties and the porous matrix.

All laws are accessed through the abstract interfaces :class:`MaterialLaw`,
:class:`Solubility` and :class:`FluidPhase`. The implementations provided here serve
as references for problem setups and tests.

"""

__all__ = []

from . import fluids, material_law, soil, solubility
from .fluids import *
from .material_law import *
from .soil import *
from .solubility import *

__all__.extend(fluids.__all__)
__all__.extend(material_law.__all__)
__all__.extend(soil.__all__)
__all__.extend(solubility.__all__)
