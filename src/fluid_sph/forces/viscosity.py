"""
Viscosity force.

For each target particle i:

    f_i += μ Σ_j m_j (v_j - v_i) / ρ_j ∇²W_visc(x_i - x_j)

summed over every particle returned by the neighbour query at x_i. The
particle itself contributes nothing since v_i - v_i = 0.
"""

import numpy as np

from fluid_sph.core.interfaces import Force
from fluid_sph.sph.fields import safe_densities
from fluid_sph.sph.kernels import ViscosityKernel


class ViscosityForce(Force):
    """
    Müller-style viscosity with the viscosity-kernel Laplacian.

    Parameters
    ----------
    particles : sequence of Particle, optional
        Target particles.
    coefficient : float, optional
        Viscosity coefficient μ. Default is 100.0.
    """

    def __init__(self, particles=None, coefficient: float = 100.0):
        super().__init__(particles)
        self.coefficient = float(coefficient)
        self._kernel = None

    def _kernel_for(self, h: float) -> ViscosityKernel:
        if self._kernel is None or self._kernel.h != h:
            self._kernel = ViscosityKernel(h)
        return self._kernel

    def apply(self, system) -> None:
        # Same support and floor as the fields, which match the grid radius
        kernel = self._kernel_for(system.density_field.smoothing_length)
        density_floor = system.density_field.density_floor

        for pi in self.particles:
            neighbours = system.grid.query(pi.position)
            if not neighbours:
                continue

            positions = np.array([pj.position for pj in neighbours], dtype=np.float64)
            velocities = np.array([pj.velocity for pj in neighbours], dtype=np.float64)
            masses = np.array([pj.mass for pj in neighbours], dtype=np.float64)
            densities = safe_densities(
                np.array([pj.density for pj in neighbours], dtype=np.float64),
                density_floor,
            )

            lap_W = kernel.ddw(pi.position - positions)
            weights = masses / densities * lap_W
            viscosity_force = np.sum(weights[:, np.newaxis] * (velocities - pi.velocity), axis=0)

            pi.force += self.coefficient * viscosity_force
