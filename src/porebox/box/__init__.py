"""Box (vertex-centred finite volume) discretization of non-isothermal two-phase
two-component flow in porous media, with primary variable switching.

The sub-package is organized as follows:

- :mod:`~porebox.box.node_state`: Secondary variables of a vertex.
- :mod:`~porebox.box.phase_state`: Phase states of all vertices, with commit and
  rollback.
- :mod:`~porebox.box.local_assembler`: Storage and flux terms on a cell, local residual
  and numerical Jacobian.
- :mod:`~porebox.box.switch`: Appearance and disappearance of phases.
- :mod:`~porebox.box.energy`: Isothermal and non-isothermal energy models.
- :mod:`~porebox.box.model`: Global assembly and phase-state management.

"""

__all__ = []

from . import (
    energy,
    local_assembler,
    model,
    node_state,
    phase_state,
    problem,
    switch,
    utils,
)
from .energy import *
from .local_assembler import *
from .model import *
from .node_state import *
from .phase_state import *
from .problem import *
from .switch import *
from .utils import *

__all__.extend(energy.__all__)
__all__.extend(local_assembler.__all__)
__all__.extend(model.__all__)
__all__.extend(node_state.__all__)
__all__.extend(phase_state.__all__)
__all__.extend(problem.__all__)
__all__.extend(switch.__all__)
__all__.extend(utils.__all__)
