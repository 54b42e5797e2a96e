"""
Particle entity for SPH fluid simulations.

Each particle carries its kinematic state (position, velocity), a force
accumulator that is cleared and refilled on every derivative evaluation, and
the SPH quantities (density, pressure) computed for the current configuration.
"""

from typing import Dict, Optional
import numpy as np
import numpy.typing as npt

# Type alias for clarity
NDArrayFloat = npt.NDArray[np.float64]


def _as_vector(value, name: str) -> NDArrayFloat:
    vec = np.array(value, dtype=np.float64)
    if vec.shape != (3,):
        raise ValueError(f"{name} must be a 3-vector, got shape {vec.shape}")
    return vec


class Particle:
    """
    Single SPH particle.

    Attributes
    ----------
    position : NDArrayFloat, shape (3,)
        Cartesian coordinates (x, y, z).
    velocity : NDArrayFloat, shape (3,)
        Velocity components (vx, vy, vz).
    force : NDArrayFloat, shape (3,)
        Force accumulator, summed over all registered forces.
    mass : float
        Particle mass (strictly positive).
    density : float
        Mass density ρ from SPH summation. Starts at 1.0 so the particle is
        usable as a divisor before the first density evaluation.
    pressure : float
        Pressure from the equation of state k (ρ - ρ_rest).
    movable : bool
        Immovable particles ignore state writes (fixed anchors, walls).
    """

    def __init__(
        self,
        position,
        velocity=None,
        mass: float = 1.0,
        movable: bool = True
    ):
        """
        Initialize particle.

        Parameters
        ----------
        position : array_like, shape (3,)
            Initial position. Also the position restored by ``reset``.
        velocity : array_like, shape (3,), optional
            Initial velocity. If None, initialized to zeros.
        mass : float, optional
            Particle mass. Default is 1.0.
        movable : bool, optional
            Whether state writes reach this particle. Default is True.
        """
        if not mass > 0.0:
            raise ValueError(f"Particle mass must be positive, got {mass}")

        self.start_position = _as_vector(position, "position")
        self.start_velocity = (
            _as_vector(velocity, "velocity") if velocity is not None
            else np.zeros(3, dtype=np.float64)
        )
        self.mass = float(mass)
        self.movable = bool(movable)
        self.reset()

    def reset(self) -> None:
        """Restore the initial position and velocity and clear derived data."""
        self.position = self.start_position.copy()
        self.velocity = self.start_velocity.copy()
        self.force = np.zeros(3, dtype=np.float64)
        self.density = 1.0
        self.pressure = 0.0

    def draw(
        self,
        draw_velocity: bool = False,
        draw_force: bool = False
    ) -> Dict[str, NDArrayFloat]:
        """
        Collect drawing data for this particle.

        Returns
        -------
        data : Dict[str, NDArrayFloat]
            'position' always; 'velocity' and 'force' as (2, 3) line
            segments starting at the particle when requested.
        """
        data = {'position': self.position.copy()}
        if draw_velocity:
            data['velocity'] = np.stack([self.position, self.position + self.velocity])
        if draw_force:
            data['force'] = np.stack([self.position, self.position + self.force])
        return data

    def kinetic_energy(self) -> float:
        """Return (1/2) m |v|²."""
        return 0.5 * self.mass * float(np.dot(self.velocity, self.velocity))

    def __repr__(self) -> str:
        return (
            f"Particle(position={self.position.tolist()}, "
            f"velocity={self.velocity.tolist()}, mass={self.mass:.3e}, "
            f"movable={self.movable})"
        )
