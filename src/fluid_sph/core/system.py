"""
System orchestrator for SPH fluid simulation.

This module implements the System class that owns the particles, forces,
constraints and SPH fields, exposes the flat state vector used by pluggable
solvers, and drives fixed or adaptive time steps.

Design:
- The System owns particles; forces and constraints only reference them
- Solvers are injected and only see the state-vector / derivative contract
- Each derivative evaluation is an explicit three-phase pipeline:
  density -> pressure -> forces
- Boundary collisions are resolved on the proposed state before it is written

State-vector layout (6 entries per particle, in container order):

    [x0, y0, z0, vx0, vy0, vz0, x1, y1, z1, vx1, ...]
"""

from typing import Dict, List, Optional, Tuple
import numpy as np
import numpy.typing as npt
from pydantic import BaseModel, Field, model_validator, ConfigDict

from fluid_sph.core.interfaces import Constraint, Force, NeighbourSearch, Solver
from fluid_sph.integration.timestep_control import (
    estimate_step_error,
    rescale_timestep,
    enforce_timestep_limits,
)
from fluid_sph.sph.fields import ColorField, DensityField, PressureField, safe_densities
from fluid_sph.sph.neighbours_cpu import UniformGrid
from fluid_sph.sph.particles import Particle


NDArrayFloat = npt.NDArray[np.float64]

# Position + velocity, three components each
STATE_STRIDE = 6


class SystemConfig(BaseModel):
    """
    Configuration for an SPH fluid system with Pydantic validation.

    Defaults reproduce the classic interactive-fluid setup: a 0.4 x 0.4 open
    column in X/Z with a floor at Y = -2, water-air surface tension and a soft
    pressure stiffness.

    Attributes
    ----------
    dt_initial : float
        Initial step size.
    adaptive : bool
        Default stepping mode for ``System.step``.
    error_tolerance : float
        Target local error for adaptive step-size control.
    smoothing_length : float
        Kernel support radius h (also the neighbour search radius). Frozen,
        since the System builds its grid and fields from it.
    stiffness : float
        Pressure stiffness k in p = k (ρ - ρ_rest).
    viscosity : float
        Viscosity coefficient μ.
    surface_tension : float
        Surface tension coefficient σ.
    surface_threshold : float
        Minimum colour-gradient magnitude for surface tension to act.
    density_floor : float
        Smallest density accepted as a divisor. Frozen.
    x_min, x_max, y_min, y_max, z_min, z_max : Optional[float]
        Container bounds; None leaves that side open.
    """

    # Time evolution
    t_start: float = Field(default=0.0, ge=0.0, description="Start time")
    dt_initial: float = Field(default=0.001, gt=0.0, description="Initial step size")
    dt_min: Optional[float] = Field(default=None, gt=0.0, description="Smallest adaptive step")
    dt_max: Optional[float] = Field(default=None, gt=0.0, description="Largest adaptive step")
    adaptive: bool = Field(default=False, description="Use step doubling to adapt dt")
    error_tolerance: float = Field(default=0.001, gt=0.0, description="Target local error")

    # Fluid parameters
    smoothing_length: float = Field(default=0.1, gt=0.0, frozen=True, description="Kernel support radius h")
    stiffness: float = Field(default=0.1, ge=0.0, description="Pressure stiffness k")
    viscosity: float = Field(default=100.0, ge=0.0, description="Viscosity coefficient")
    surface_tension: float = Field(default=72.75, ge=0.0, description="Surface tension coefficient")
    surface_threshold: float = Field(default=0.01, ge=0.0, description="Surface detection threshold")
    density_floor: float = Field(default=1e-6, gt=0.0, frozen=True, description="Minimum density used as divisor")

    # Container
    x_min: Optional[float] = Field(default=-0.2, description="Lower X wall")
    x_max: Optional[float] = Field(default=0.2, description="Upper X wall")
    y_min: Optional[float] = Field(default=-2.0, description="Floor")
    y_max: Optional[float] = Field(default=None, description="Ceiling (open by default)")
    z_min: Optional[float] = Field(default=-0.2, description="Lower Z wall")
    z_max: Optional[float] = Field(default=0.2, description="Upper Z wall")

    # Misc
    log_interval: int = Field(default=100, gt=0, description="Steps between progress messages")
    verbose: bool = Field(default=False, description="Enable verbose logging")
    random_seed: Optional[int] = Field(default=42, description="Random seed for initial conditions")

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid",  # Raise error on unknown fields
    )

    @model_validator(mode='after')
    def validate_configuration_consistency(self):
        """Cross-field checks on timestep limits and container bounds."""
        if self.dt_min is not None and self.dt_max is not None and self.dt_max <= self.dt_min:
            raise ValueError(
                f"dt_max ({self.dt_max}) must be greater than dt_min ({self.dt_min})"
            )
        if self.dt_min is not None and self.dt_initial < self.dt_min:
            raise ValueError(
                f"dt_initial ({self.dt_initial}) must not be below dt_min ({self.dt_min})"
            )
        if self.dt_max is not None and self.dt_initial > self.dt_max:
            raise ValueError(
                f"dt_initial ({self.dt_initial}) must not exceed dt_max ({self.dt_max})"
            )

        for axis in ('x', 'y', 'z'):
            lower = getattr(self, f"{axis}_min")
            upper = getattr(self, f"{axis}_max")
            if lower is not None and upper is not None and upper <= lower:
                raise ValueError(
                    f"{axis}_max ({upper}) must be greater than {axis}_min ({lower})"
                )

        return self

    def container_bounds(self) -> List[Tuple[int, Optional[float], Optional[float]]]:
        """
        Container walls in resolution order.

        Returns
        -------
        bounds : list of (axis, lower, upper)
            Axes in the order X, Z, Y.
        """
        return [
            (0, self.x_min, self.x_max),
            (2, self.z_min, self.z_max),
            (1, self.y_min, self.y_max),
        ]


class System:
    """
    Particle-system orchestrator for SPH fluids.

    Owns the particles (their order fixes the state-vector layout), the forces
    and constraints, one density, one pressure and one colour field, the
    simulation clock and the step size. The solver is referenced, not owned.

    Usage:
        >>> from fluid_sph import System, SystemConfig, Particle
        >>> from fluid_sph.forces import default_fluid_forces, GravityForce
        >>> from fluid_sph.integration import RK4Solver
        >>>
        >>> system = System(RK4Solver(), SystemConfig(adaptive=True))
        >>> for force in default_fluid_forces(system.config):
        ...     system.add_force(force)
        >>> system.add_force(GravityForce())
        >>> system.add_particle(Particle([0.0, 0.0, 0.0]))
        >>> system.step()
    """

    def __init__(
        self,
        solver: Solver,
        config: Optional[SystemConfig] = None,
        grid: Optional[NeighbourSearch] = None,
    ):
        """
        Initialize the system.

        Parameters
        ----------
        solver : Solver
            Integration scheme used by ``step``.
        config : SystemConfig, optional
            Parameters; defaults to ``SystemConfig()``.
        grid : NeighbourSearch, optional
            Neighbour search; defaults to a UniformGrid with cell size h.
        """
        self.solver = solver
        self.config = config if config is not None else SystemConfig()

        self.particles: List[Particle] = []
        self.forces: List[Force] = []
        self.constraints: List[Constraint] = []

        self.time = self.config.t_start
        self.dt = self.config.dt_initial
        self.step_count = 0
        self.last_error = 0.0

        h = self.config.smoothing_length
        self.grid = grid if grid is not None else UniformGrid(cell_size=h)

        # Fields only see the query capability, not the System
        floor = self.config.density_floor
        self.density_field = DensityField(self.grid.query, h, floor)
        self.pressure_field = PressureField(self.grid.query, h, floor)
        self.color_field = ColorField(self.grid.query, h, floor)

    # ------------------------------------------------------------------
    # Ownership
    # ------------------------------------------------------------------

    def add_particle(self, p: Particle) -> None:
        """
        Add a particle and register it as a target of every current force.

        Forces added later do not pick up earlier particles.
        """
        self.particles.append(p)
        for f in self.forces:
            f.add_as_target(p)

    def add_force(self, f: Force) -> None:
        """Add a force; forces are applied in registration order."""
        self.forces.append(f)

    def add_constraint(self, c: Constraint) -> None:
        """Add a constraint (evaluated for drawing only)."""
        self.constraints.append(c)

    def particle(self, index: int) -> Particle:
        """Return the particle at a state-vector index."""
        if not 0 <= index < len(self.particles):
            raise IndexError(
                f"Particle index {index} out of range [0, {len(self.particles) - 1}]"
            )
        return self.particles[index]

    def free(self) -> None:
        """Release all particles, forces and constraints."""
        self.particles.clear()
        self.forces.clear()
        self.constraints.clear()
        self.grid.update(self.particles)
        self._log("System freed")

    def reset(self) -> None:
        """Reset every particle to its initial state and rewind the clock."""
        for p in self.particles:
            p.reset()
        self.time = self.config.t_start
        self.dt = self.config.dt_initial
        self.step_count = 0
        self.last_error = 0.0

    # ------------------------------------------------------------------
    # State vector
    # ------------------------------------------------------------------

    def get_dim(self) -> int:
        """State-vector length: 3 position + 3 velocity per particle."""
        return len(self.particles) * STATE_STRIDE

    def get_time(self) -> float:
        return self.time

    def get_state(self) -> NDArrayFloat:
        """
        Copy of the current state.

        Returns
        -------
        state : NDArrayFloat, shape (6N,)
            Position then velocity of each particle, in container order.
        """
        state = np.empty(self.get_dim(), dtype=np.float64)
        view = state.reshape(-1, STATE_STRIDE)
        for i, p in enumerate(self.particles):
            view[i, 0:3] = p.position
            view[i, 3:6] = p.velocity
        return state

    def set_state(self, state: NDArrayFloat, time: Optional[float] = None) -> None:
        """
        Write a state vector back into the particles.

        Immovable particles ignore their slice of the vector.

        Parameters
        ----------
        state : NDArrayFloat, shape (6N,)
            New state in the ``get_state`` layout.
        time : float, optional
            New clock value; the clock is left unchanged when omitted.
        """
        view = self._state_view(state)
        for i, p in enumerate(self.particles):
            if p.movable:
                p.position = view[i, 0:3].copy()
                p.velocity = view[i, 3:6].copy()
        if time is not None:
            self.time = float(time)

    def _state_view(self, state: NDArrayFloat) -> NDArrayFloat:
        state = np.asarray(state, dtype=np.float64)
        if state.shape != (self.get_dim(),):
            raise ValueError(
                f"State vector must have shape ({self.get_dim()},), got {state.shape}"
            )
        return state.reshape(-1, STATE_STRIDE)

    # ------------------------------------------------------------------
    # Derivative pipeline
    # ------------------------------------------------------------------

    def deriv_eval(self) -> NDArrayFloat:
        """
        Time derivative of the state for the current configuration.

        Clears force accumulators, recomputes densities, pressures and all
        forces, then assembles [v, f / ρ] per particle. The state itself is
        not modified.
        """
        self.clear_forces()
        self.compute_forces()
        return self.compute_derivative()

    def clear_forces(self) -> None:
        for p in self.particles:
            p.force = np.zeros(3, dtype=np.float64)

    def compute_forces(self) -> None:
        """
        Density, pressure and force phases, in that order.

        The rest density is the mean density of the current configuration, so
        pressures are relative to the average compression of the fluid.
        """
        if not self.particles:
            return

        self.grid.update(self.particles)

        # Phase 1: densities
        rest_density = 0.0
        for p in self.particles:
            p.density = self.density_field.eval(p)
            rest_density += p.density
        rest_density /= len(self.particles)

        # Phase 2: pressures
        k = self.config.stiffness
        for p in self.particles:
            p.pressure = k * (p.density - rest_density)

        # Phase 3: forces
        for f in self.forces:
            f.apply(self)

    def compute_derivative(self) -> NDArrayFloat:
        dst = np.empty(self.get_dim(), dtype=np.float64)
        if not self.particles:
            return dst

        view = dst.reshape(-1, STATE_STRIDE)
        densities = safe_densities(
            np.array([p.density for p in self.particles], dtype=np.float64),
            self.config.density_floor,
        )
        for i, p in enumerate(self.particles):
            view[i, 0:3] = p.velocity
            view[i, 3:6] = p.force / densities[i]
        return dst

    # ------------------------------------------------------------------
    # Time stepping
    # ------------------------------------------------------------------

    def step(self, adaptive: Optional[bool] = None) -> None:
        """
        Advance the system by one step.

        Parameters
        ----------
        adaptive : bool, optional
            Use step doubling to rescale ``dt`` before the accepted step.
            Defaults to ``config.adaptive``.
        """
        if not self.particles:
            self._log("No particles; step skipped")
            return

        if adaptive is None:
            adaptive = self.config.adaptive

        if adaptive:
            err = estimate_step_error(self, self.solver, self.dt)
            self.last_error = err
            dt_new = rescale_timestep(self.dt, err, self.config.error_tolerance)
            dt_new = enforce_timestep_limits(dt_new, self.config.dt_min, self.config.dt_max)
            if dt_new != self.dt:
                self._log(f"dt {self.dt:.3e} -> {dt_new:.3e} (error {err:.3e})")
            self.dt = dt_new

        self.solver.simulate_step(self, self.dt)
        self.step_count += 1

    def run(self, t_end: float, adaptive: Optional[bool] = None) -> int:
        """
        Step until the clock reaches ``t_end``.

        Returns
        -------
        n_steps : int
            Number of steps taken.
        """
        n_steps = 0
        if not self.particles:
            self._log("No particles; nothing to run")
            return n_steps

        while self.time < t_end:
            self.step(adaptive)
            n_steps += 1
            if n_steps % self.config.log_interval == 0:
                self._log(
                    f"step {self.step_count}: dt={self.dt:.3e}, "
                    f"E_kin={self.kinetic_energy():.3e}"
                )
        return n_steps

    # ------------------------------------------------------------------
    # Collisions
    # ------------------------------------------------------------------

    def check_collisions(self, new_state: NDArrayFloat) -> NDArrayFloat:
        """
        Clamp positions to the container and reflect outgoing velocities.

        Each axis is handled independently in the order X, Z, Y. A position
        beyond a wall is moved onto the wall; if the matching velocity
        component still points outwards it is negated.

        Parameters
        ----------
        new_state : NDArrayFloat, shape (6N,)
            Proposed state.

        Returns
        -------
        corrected : NDArrayFloat, shape (6N,)
            Corrected copy; neither the input nor the particles are modified.
        """
        corrected = np.array(self._state_view(new_state), dtype=np.float64)

        for axis, lower, upper in self.config.container_bounds():
            pos = corrected[:, axis]
            vel = corrected[:, axis + 3]

            if lower is not None:
                hit = pos < lower
                pos[hit] = lower
                outgoing = hit & (vel < 0.0)
                vel[outgoing] = -vel[outgoing]

            if upper is not None:
                hit = pos > upper
                pos[hit] = upper
                outgoing = hit & (vel > 0.0)
                vel[outgoing] = -vel[outgoing]

        return corrected.reshape(-1)

    # ------------------------------------------------------------------
    # Read-only views for renderers and diagnostics
    # ------------------------------------------------------------------

    def draw(
        self,
        draw_velocity: bool = False,
        draw_force: bool = False,
        draw_constraint: bool = False
    ) -> Dict[str, object]:
        """
        Collect drawing data for an external renderer.

        Returns
        -------
        data : dict
            'particles': per-particle dicts from ``Particle.draw``;
            'forces': non-None ``Force.draw`` results (if draw_force);
            'constraints': ``Constraint.draw`` results (if draw_constraint).
        """
        data: Dict[str, object] = {
            'particles': [p.draw(draw_velocity, draw_force) for p in self.particles],
        }
        if draw_force:
            data['forces'] = [d for d in (f.draw() for f in self.forces) if d is not None]
        if draw_constraint:
            data['constraints'] = [c.draw() for c in self.constraints]
        return data

    def kinetic_energy(self) -> float:
        """Total kinetic energy ∑ (1/2) m |v|²."""
        return float(sum(p.kinetic_energy() for p in self.particles))

    def center_of_mass(self) -> NDArrayFloat:
        """Mass-weighted mean position (zeros for an empty system)."""
        if not self.particles:
            return np.zeros(3, dtype=np.float64)
        masses = np.array([p.mass for p in self.particles], dtype=np.float64)
        positions = np.array([p.position for p in self.particles], dtype=np.float64)
        return np.sum(masses[:, np.newaxis] * positions, axis=0) / np.sum(masses)

    def _log(self, message: str):
        """Log message if verbose."""
        if self.config.verbose:
            print(f"[{self.time:.4f}] {message}")

    def __repr__(self) -> str:
        return (
            f"System(n_particles={len(self.particles)}, n_forces={len(self.forces)}, "
            f"time={self.time:.4f}, dt={self.dt:.3e})"
        )
