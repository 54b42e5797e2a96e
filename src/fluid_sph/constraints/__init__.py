"""
Constraints module: evaluation and drawing data for particle constraints.
"""

from fluid_sph.constraints.rod import RodConstraint
from fluid_sph.constraints.circular_wire import CircularWireConstraint

__all__ = [
    "RodConstraint",
    "CircularWireConstraint",
]
