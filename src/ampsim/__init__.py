"""
ampsim: exact state-vector simulation of qubit registers.

Holds one complex amplitude per permutation of the register and applies
local 2x2 unitaries (optionally controlled) and projective measurements
through bit-masked index enumeration, on dense or sparse storage.
"""

__version__ = "0.1.0"

from . import config
from . import utils
from . import sim
from .config import EngineConfig
from .sim import QEngine

__all__ = ["config", "utils", "sim", "EngineConfig", "QEngine", "__version__"]
