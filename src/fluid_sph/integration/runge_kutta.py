"""
Classical fourth-order Runge-Kutta solver.

    k1 = f(x^n)
    k2 = f(x^n + h/2 k1)
    k3 = f(x^n + h/2 k2)
    k4 = f(x^n + h k3)
    x^(n+1) = x^n + h/6 (k1 + 2 k2 + 2 k3 + k4)

Intermediate stages are written to the System with ``set_state`` so that
every derivative evaluation sees a consistent particle configuration.
"""

from fluid_sph.core.interfaces import Solver


class RK4Solver(Solver):
    """Fourth-order Runge-Kutta integration of the System state vector."""

    def simulate_step(self, system, h: float) -> None:
        state = system.get_state()
        t = system.get_time()

        k1 = system.deriv_eval()
        system.set_state(state + 0.5 * h * k1, t + 0.5 * h)
        k2 = system.deriv_eval()
        system.set_state(state + 0.5 * h * k2, t + 0.5 * h)
        k3 = system.deriv_eval()
        system.set_state(state + h * k3, t + h)
        k4 = system.deriv_eval()

        new_state = state + (h / 6.0) * (k1 + 2.0 * k2 + 2.0 * k3 + k4)
        system.set_state(system.check_collisions(new_state), t + h)
