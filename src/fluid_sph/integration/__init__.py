"""
Integration module: pluggable solvers and timestep control.
"""

from fluid_sph.integration.euler import EulerSolver
from fluid_sph.integration.midpoint import MidpointSolver
from fluid_sph.integration.runge_kutta import RK4Solver
from fluid_sph.integration.timestep_control import (
    estimate_step_error,
    rescale_timestep,
    enforce_timestep_limits,
)

__all__ = [
    "EulerSolver",
    "MidpointSolver",
    "RK4Solver",
    "estimate_step_error",
    "rescale_timestep",
    "enforce_timestep_limits",
]
