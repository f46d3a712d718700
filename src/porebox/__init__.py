"""   porebox.

Root directory for the porebox package. Contains the following sub-packages:

box: Box-scheme local assembly, phase-state bookkeeping and primary variable switching
    for two-phase two-component flow.

grids: Structured grids with precomputed box (vertex-centred finite volume) geometry.

materials: Interfaces and reference implementations of constitutive laws.

params: Physical parameters, permeability tensors.

utils: Physical constants, temperature conversion, logging.

viz: Export of vertex fields to vtu.


isort:skip_file

"""

import os
from pathlib import Path
import configparser


__version__ = "0.1.0"

# Read the config file from the directory where the python process was launched.
# A missing file results in an empty configuration.
cfg = configparser.ConfigParser()
cfg.read(Path(os.getcwd()) / Path("porebox.cfg"))
config = {section: dict(cfg[section]) for section in cfg.sections()}

# ------------------------------------
# Simplified namespaces. Classes and modules a user is exposed to have a shortcut here.

from porebox.utils.common_constants import *
from porebox.utils.logging import time_logger

from porebox._core import *

# Parameters
from porebox.params.tensor import SecondOrderTensor

# Grids
from porebox.grids import (
    BoxGrid,
    CellGeometry,
    SubControlVolumeFace,
    line_grid,
    rectangle_grid,
)

# Constitutive laws
from porebox import materials
from porebox.materials import (
    Air,
    ConstantPhase,
    BrooksCorey,
    ConstantSolubility,
    FluidPhase,
    HenryAntoineSolubility,
    LinearMaterialLaw,
    MaterialLaw,
    Soil,
    Solubility,
    Water,
)

# Box scheme
from porebox import box
from porebox.box import (
    BoxModellingError,
    DeflectionError,
    InvalidPhaseStateError,
    PhaseSwitchConflictError,
    EnergyModel,
    Isothermal,
    NonIsothermal,
    NodeState,
    update_node_state,
    PhaseStateStore,
    LocalAssembler,
    primary_variable_switch,
    run_switch_pass,
    TwoPhaseTwoComponentProblem,
    TwoPhaseTwoComponentModel,
)

# Visualization
from porebox.viz.exporter import Exporter
