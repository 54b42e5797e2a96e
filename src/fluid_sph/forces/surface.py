"""
Surface tension force.

Near the free surface the colour field gradient n = ∇c is large and points
into the fluid. There the force

    f_i += -σ ∇²c(x_i) n / |n|

acts along the surface normal, proportional to the local curvature. Deep
inside the fluid |n| is close to zero and the normal is meaningless, so no
force is added below ``threshold``.
"""

import numpy as np

from fluid_sph.core.interfaces import Force


class SurfaceForce(Force):
    """
    Colour-field surface tension.

    Parameters
    ----------
    particles : sequence of Particle, optional
        Target particles.
    sigma : float, optional
        Surface tension coefficient. Default 72.75 (water-air).
    threshold : float, optional
        Minimum |∇c| for a particle to count as a surface particle.
    """

    def __init__(self, particles=None, sigma: float = 72.75, threshold: float = 0.01):
        super().__init__(particles)
        self.sigma = float(sigma)
        self.threshold = float(threshold)

    def apply(self, system) -> None:
        color_field = system.color_field
        for pi in self.particles:
            n = color_field.d_eval(pi.position)
            n_norm = np.linalg.norm(n)
            if n_norm > self.threshold:
                curvature = color_field.dd_eval(pi.position)
                pi.force += -self.sigma * curvature * n / n_norm
