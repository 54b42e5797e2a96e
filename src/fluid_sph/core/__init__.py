"""
Core module: interfaces and the System orchestrator.

``fluid_sph.core.system`` depends on the sph and integration subpackages, which
in turn depend on these interfaces, so only the interfaces are imported here.
"""

from fluid_sph.core.interfaces import (
    Solver,
    Force,
    Constraint,
    NeighbourSearch,
    ICGenerator,
)

__all__ = [
    "Solver",
    "Force",
    "Constraint",
    "NeighbourSearch",
    "ICGenerator",
]
