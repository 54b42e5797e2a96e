"""
Uniform gravity force f_i += m_i g.
"""

import numpy as np

from fluid_sph.core.interfaces import Force


class GravityForce(Force):
    """
    Constant gravitational acceleration acting on every target particle.

    Parameters
    ----------
    particles : sequence of Particle, optional
        Target particles.
    gravity : array_like, shape (3,), optional
        Acceleration vector. Default (0, -9.81, 0).
    """

    def __init__(self, particles=None, gravity=(0.0, -9.81, 0.0)):
        super().__init__(particles)
        self.gravity = np.array(gravity, dtype=np.float64)
        if self.gravity.shape != (3,):
            raise ValueError(f"gravity must be a 3-vector, got shape {self.gravity.shape}")

    def apply(self, system) -> None:
        for p in self.particles:
            p.force += p.mass * self.gravity

    def draw(self):
        return {'gravity': self.gravity.copy()}
