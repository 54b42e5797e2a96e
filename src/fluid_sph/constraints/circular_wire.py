"""
Circular wire constraint: a particle bound to a sphere around a fixed centre.

    C     = |x - c|² - r²
    dC/dt = 2 (x - c) · v
"""

import numpy as np

from fluid_sph.core.interfaces import Constraint


class CircularWireConstraint(Constraint):
    """
    Keeps a particle at a fixed distance from a fixed point.

    Parameters
    ----------
    particle : Particle
        Constrained particle.
    center : array_like, shape (3,)
        Wire centre.
    radius : float
        Wire radius.
    """

    def __init__(self, particle, center, radius: float):
        super().__init__([particle])
        self.center = np.array(center, dtype=np.float64)
        if self.center.shape != (3,):
            raise ValueError(f"center must be a 3-vector, got shape {self.center.shape}")
        if not radius > 0.0:
            raise ValueError(f"Wire radius must be positive, got {radius}")
        self.radius = float(radius)

    @property
    def particle(self):
        return self.particles[0]

    def C(self) -> float:
        delta = self.particle.position - self.center
        return float(np.dot(delta, delta) - self.radius**2)

    def C_dot(self) -> float:
        delta = self.particle.position - self.center
        return float(2.0 * np.dot(delta, self.particle.velocity))

    def draw(self):
        return {
            'center': self.center.copy(),
            'radius': np.float64(self.radius),
            'position': self.particle.position.copy(),
        }
