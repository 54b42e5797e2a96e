"""
Rod (fixed distance) constraint between two particles.

    C     = |x1 - x2|² - d²
    dC/dt = 2 (x1 - x2) · (v1 - v2)
"""

import numpy as np

from fluid_sph.core.interfaces import Constraint


class RodConstraint(Constraint):
    """
    Keeps two particles at a fixed distance.

    Parameters
    ----------
    p1, p2 : Particle
        Constrained particles.
    distance : float
        Rest length d.
    """

    def __init__(self, p1, p2, distance: float):
        super().__init__([p1, p2])
        if not distance > 0.0:
            raise ValueError(f"Rod length must be positive, got {distance}")
        self.distance = float(distance)

    @property
    def p1(self):
        return self.particles[0]

    @property
    def p2(self):
        return self.particles[1]

    def C(self) -> float:
        delta = self.p1.position - self.p2.position
        return float(np.dot(delta, delta) - self.distance**2)

    def C_dot(self) -> float:
        delta = self.p1.position - self.p2.position
        return float(2.0 * np.dot(delta, self.p1.velocity - self.p2.velocity))

    def draw(self):
        return {'segment': np.stack([self.p1.position, self.p2.position])}
