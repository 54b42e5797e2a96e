"""
Abstract base classes defining interfaces for pluggable fluid-SPH modules.

This module establishes the contract between the System orchestrator and its
collaborators: time-stepping solvers, force terms, constraints, neighbour
searches and initial-condition generators. Any of them can be swapped for an
alternative implementation without touching the System.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence
import numpy as np
import numpy.typing as npt


# Type aliases for clarity
NDArrayFloat = npt.NDArray[np.float64]


class Solver(ABC):
    """
    Abstract base class for numerical integration schemes.

    Implementations: EulerSolver, MidpointSolver, RK4Solver.

    A solver only talks to the System through its state-vector contract
    (``get_state``, ``set_state``, ``get_time``), its derivative contract
    (``deriv_eval``) and its collision correction (``check_collisions``).
    """

    @abstractmethod
    def simulate_step(self, system: Any, h: float) -> None:
        """
        Advance the system in place by one step of size h.

        Parameters
        ----------
        system : System
            System to advance. Its particles and clock are updated in place.
        h : float
            Step size.
        """
        pass


class Force(ABC):
    """
    Abstract base class for force terms.

    Implementations: PressureForce, ViscosityForce, SurfaceForce, GravityForce.

    A force holds non-owning references to its target particles and adds its
    contribution into each target's force accumulator when applied.
    """

    def __init__(self, particles: Optional[Sequence[Any]] = None):
        self.particles: List[Any] = []
        self.set_target(particles if particles is not None else [])

    def set_target(self, particles: Sequence[Any]) -> None:
        """Replace the target particle subset."""
        self.particles = list(particles)

    def add_as_target(self, particle: Any) -> None:
        """Append a single particle to the target subset."""
        self.particles.append(particle)

    @abstractmethod
    def apply(self, system: Any) -> None:
        """
        Add this force's contribution into the targets' force accumulators.

        Parameters
        ----------
        system : System
            Owning system. Densities and pressures of the current
            configuration are already populated when this is called.
        """
        pass

    def draw(self) -> Optional[Dict[str, NDArrayFloat]]:
        """Return drawing data for an external renderer, or None."""
        return None


class Constraint(ABC):
    """
    Abstract base class for particle constraints.

    Implementations: RodConstraint, CircularWireConstraint.

    Constraints are evaluated for inspection and drawing only; no constraint
    solver acts on them.
    """

    def __init__(self, particles: Optional[Sequence[Any]] = None):
        self.particles: List[Any] = []
        self.set_target(particles if particles is not None else [])

    def set_target(self, particles: Sequence[Any]) -> None:
        """Replace the constrained particle subset."""
        self.particles = list(particles)

    @abstractmethod
    def C(self) -> float:
        """Return the constraint value (zero when satisfied)."""
        pass

    @abstractmethod
    def C_dot(self) -> float:
        """Return the time derivative of the constraint value."""
        pass

    @abstractmethod
    def draw(self) -> Dict[str, NDArrayFloat]:
        """Return drawing data for an external renderer."""
        pass


class NeighbourSearch(ABC):
    """
    Abstract base class for spatial neighbour queries.

    Implementations: UniformGrid, BruteForceSearch.
    """

    @abstractmethod
    def update(self, particles: Sequence[Any]) -> None:
        """
        Rebuild the search structure from the current particle positions.

        Parameters
        ----------
        particles : Sequence[Particle]
            Particles to index.
        """
        pass

    @abstractmethod
    def query(self, position: NDArrayFloat) -> List[Any]:
        """
        Return the particles near a point.

        Parameters
        ----------
        position : NDArrayFloat, shape (3,)
            Query point.

        Returns
        -------
        neighbours : List[Particle]
            Particles within the search radius, in no particular order.
        """
        pass


class ICGenerator(ABC):
    """
    Abstract base class for initial conditions generators.

    Implementations: LatticeBlock.
    """

    @abstractmethod
    def generate(self, n_per_axis: Sequence[int], **kwargs) -> List[Any]:
        """
        Generate an initial particle distribution.

        Parameters
        ----------
        n_per_axis : Sequence[int]
            Number of particles along each axis.
        **kwargs : model-specific parameters (origin, jitter, seed, ...).

        Returns
        -------
        particles : List[Particle]
            Newly created particles.
        """
        pass
