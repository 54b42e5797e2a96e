"""
Explicit midpoint solver (second-order Runge-Kutta).

    k1 = f(x^n)
    k2 = f(x^n + h/2 k1)
    x^(n+1) = x^n + h k2
"""

from fluid_sph.core.interfaces import Solver


class MidpointSolver(Solver):
    """Midpoint integration of the System state vector."""

    def simulate_step(self, system, h: float) -> None:
        state = system.get_state()
        t = system.get_time()

        k1 = system.deriv_eval()
        system.set_state(state + 0.5 * h * k1, t + 0.5 * h)
        k2 = system.deriv_eval()

        new_state = state + h * k2
        system.set_state(system.check_collisions(new_state), t + h)
