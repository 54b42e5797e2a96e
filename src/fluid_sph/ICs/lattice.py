"""
Lattice block initial conditions.

Places particles on a regular cubic lattice, optionally perturbed by a small
seeded random jitter to break the symmetry that makes perfect lattices
numerically stiff.
"""

from typing import List, Optional, Sequence
import numpy as np

from fluid_sph.core.interfaces import ICGenerator
from fluid_sph.sph.particles import Particle


class LatticeBlock(ICGenerator):
    """
    Rectangular block of equal-mass particles.

    Parameters
    ----------
    spacing : float
        Lattice spacing.
    mass : float, optional
        Mass of every particle. Default 1.0.
    movable : bool, optional
        Movability flag for the generated particles. Default True.
    """

    def __init__(self, spacing: float, mass: float = 1.0, movable: bool = True):
        if not spacing > 0.0:
            raise ValueError(f"Lattice spacing must be positive, got {spacing}")
        self.spacing = float(spacing)
        self.mass = float(mass)
        self.movable = movable

    def positions(
        self,
        n_per_axis: Sequence[int],
        origin=(0.0, 0.0, 0.0),
        jitter: float = 0.0,
        seed: Optional[int] = None
    ) -> np.ndarray:
        """
        Lattice positions, x varying slowest.

        Returns
        -------
        positions : ndarray, shape (nx * ny * nz, 3)
        """
        if len(n_per_axis) != 3 or any(n < 0 for n in n_per_axis):
            raise ValueError(f"n_per_axis must be three non-negative counts, got {n_per_axis}")

        axes = [np.arange(n, dtype=np.float64) * self.spacing for n in n_per_axis]
        grid = np.stack(np.meshgrid(*axes, indexing='ij'), axis=-1).reshape(-1, 3)
        grid += np.asarray(origin, dtype=np.float64)

        if jitter > 0.0:
            rng = np.random.default_rng(seed)
            grid += rng.uniform(-jitter, jitter, size=grid.shape) * self.spacing

        return grid

    def generate(
        self,
        n_per_axis: Sequence[int],
        origin=(0.0, 0.0, 0.0),
        jitter: float = 0.0,
        seed: Optional[int] = None,
        **kwargs
    ) -> List[Particle]:
        """
        Generate the block.

        Parameters
        ----------
        n_per_axis : (nx, ny, nz)
            Particles along each axis.
        origin : array_like, shape (3,)
            Position of the lattice corner.
        jitter : float
            Maximum random displacement per component, in units of spacing.
        seed : int, optional
            Random seed for the jitter.

        Returns
        -------
        particles : List[Particle]
        """
        return [
            Particle(position, mass=self.mass, movable=self.movable)
            for position in self.positions(n_per_axis, origin, jitter, seed)
        ]
