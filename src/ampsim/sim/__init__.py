"""
State-vector simulation core.

Amplitude containers (dense and sparse), bit-mask index enumeration, the 2x2
application kernel and the engine that exposes gates, probabilities and
measurement.
"""

from ampsim.sim.backend import StateVector
from ampsim.sim.statevector import DenseStateVector, SparseStateVector, create_state_vector
from ampsim.sim.parallel import ParallelFor
from ampsim.sim.engine import QEngine

__all__ = [
    "StateVector",
    "DenseStateVector",
    "SparseStateVector",
    "create_state_vector",
    "ParallelFor",
    "QEngine",
]
