"""
fluid-sph: particle-based SPH fluid simulation.

A small modular framework for interactive smoothed-particle-hydrodynamics
fluids: particles advanced by pluggable solvers under pressure, viscosity and
surface tension forces inside a rectangular container.
"""

__version__ = "1.0.0"
__author__ = "fluid-sph Dev Team"

# Core imports for convenience
from fluid_sph.core.interfaces import (
    Solver,
    Force,
    Constraint,
    NeighbourSearch,
    ICGenerator,
)
from fluid_sph.sph import Particle
from fluid_sph.core.system import System, SystemConfig

__all__ = [
    "Solver",
    "Force",
    "Constraint",
    "NeighbourSearch",
    "ICGenerator",
    "Particle",
    "System",
    "SystemConfig",
]
