"""
Explicit (forward) Euler solver.

    x^(n+1) = x^n + h f(x^n)

First-order accurate; mainly useful as a reference and for step-doubling
error estimates, where its large local error makes adaptation visible.
"""

from fluid_sph.core.interfaces import Solver


class EulerSolver(Solver):
    """Forward Euler integration of the System state vector."""

    def simulate_step(self, system, h: float) -> None:
        state = system.get_state()
        t = system.get_time()

        deriv = system.deriv_eval()
        new_state = state + h * deriv

        system.set_state(system.check_collisions(new_state), t + h)
