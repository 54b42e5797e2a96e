"""
Step-doubling timestep control.

The local error of a step of size dt is estimated by comparing one full step
against two half steps taken from the same starting state:

    x_A = Φ_dt(x)
    x_B = Φ_dt/2(Φ_dt/2(x))
    err = |x_A - x_B|

and the step is rescaled towards a target tolerance with

    dt_new = dt * (tol / err)^(1/2)

The trial steps run on the live System and are rolled back afterwards, so
only the accepted step taken by the caller is observable.

Design Notes
------------
This module provides standalone functions (not classes) for timestep control.
The System calls these functions rather than implementing the logic directly.
"""

import warnings
from typing import Any, Optional
import numpy as np

from fluid_sph.core.interfaces import Solver


def estimate_step_error(system: Any, solver: Solver, dt: float) -> float:
    """
    Estimate the local error of one step of size dt by step doubling.

    Parameters
    ----------
    system : System
        System to probe. Its state vector and clock are restored on return.
    solver : Solver
        Integration scheme whose error is being estimated.
    dt : float
        Candidate step size.

    Returns
    -------
    err : float
        Euclidean norm of the difference between the full-step and the
        two-half-step results.
    """
    before = system.get_state()
    t_before = system.get_time()

    solver.simulate_step(system, dt)
    x_a = system.get_state()
    system.set_state(before, t_before)

    solver.simulate_step(system, dt / 2)
    solver.simulate_step(system, dt / 2)
    x_b = system.get_state()
    system.set_state(before, t_before)

    return float(np.linalg.norm(x_a - x_b))


def rescale_timestep(dt: float, error: float, tolerance: float) -> float:
    """
    Rescale dt so the next local error approaches ``tolerance``.

    Parameters
    ----------
    dt : float
        Current step size.
    error : float
        Estimated local error for dt.
    tolerance : float
        Target local error.

    Returns
    -------
    dt_new : float
        ``dt * sqrt(tolerance / error)``; dt unchanged when the error is zero
        or not finite.
    """
    if not np.isfinite(error):
        warnings.warn(
            f"Non-finite step error estimate ({error}); keeping dt={dt:.3e}",
            RuntimeWarning,
        )
        return dt
    if error > 0:
        dt *= (tolerance / error) ** 0.5
    return float(dt)


def enforce_timestep_limits(
    dt: float,
    dt_min: Optional[float] = None,
    dt_max: Optional[float] = None
) -> float:
    """
    Clamp dt to optional absolute bounds.

    Parameters
    ----------
    dt : float
        Candidate step size.
    dt_min, dt_max : float, optional
        Bounds; None leaves that side open.

    Returns
    -------
    dt : float
        Clamped step size.
    """
    if dt_min is not None and dt < dt_min:
        dt = dt_min
    if dt_max is not None and dt > dt_max:
        dt = dt_max
    return float(dt)
