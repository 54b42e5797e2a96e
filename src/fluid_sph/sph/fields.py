"""
SPH interpolated fields.

A field A is reconstructed at any point x from particle samples as

    A(x) = Σ_j m_j (A_j / ρ_j) W(x - x_j, h)

and its derivatives by differentiating the kernel only:

    ∇A(x)  = Σ_j m_j (A_j / ρ_j) ∇W(x - x_j, h)
    ∇²A(x) = Σ_j m_j (A_j / ρ_j) ∇²W(x - x_j, h)

The sum runs over the particles returned by the neighbour query at x. Each
field picks its per-neighbour weight m_j A_j / ρ_j and which kernel to use for
each derivative order (Müller et al. 2003, Sections 3-4).
"""

from abc import ABC, abstractmethod
from typing import Callable, List, Sequence
import warnings
import numpy as np
import numpy.typing as npt

from fluid_sph.sph.kernels import Poly6Kernel, SmoothingKernel, SpikyKernel, ViscosityKernel
from fluid_sph.sph.particles import Particle

# Type alias for clarity
NDArrayFloat = npt.NDArray[np.float64]

NeighbourQuery = Callable[[NDArrayFloat], Sequence[Particle]]


def safe_densities(densities: NDArrayFloat, density_floor: float) -> NDArrayFloat:
    """
    Clamp densities used as divisors to ``density_floor``.

    Non-finite and too-small values are replaced and a RuntimeWarning is
    issued, so a degenerate configuration is reported instead of turning into
    NaN/Inf forces.
    """
    bad = ~(densities >= density_floor) | ~np.isfinite(densities)
    if np.any(bad):
        warnings.warn(
            f"{int(np.count_nonzero(bad))} particle densities below floor "
            f"{density_floor:g} clamped (degenerate configuration)",
            RuntimeWarning,
        )
        densities = np.where(bad, density_floor, densities)
    return densities


class Field(ABC):
    """
    Base class for SPH-interpolated scalar fields.

    Parameters
    ----------
    query : callable
        Neighbour capability: ``query(position) -> sequence of Particle``.
    smoothing_length : float
        Kernel support radius h.
    density_floor : float
        Lower bound applied to neighbour densities used as divisors.
    """

    value_kernel_type = Poly6Kernel
    gradient_kernel_type = SpikyKernel
    laplacian_kernel_type = ViscosityKernel

    def __init__(
        self,
        query: NeighbourQuery,
        smoothing_length: float,
        density_floor: float = 1e-6
    ):
        self.query = query
        self.smoothing_length = float(smoothing_length)
        self.density_floor = float(density_floor)
        self.value_kernel: SmoothingKernel = self.value_kernel_type(smoothing_length)
        self.gradient_kernel: SmoothingKernel = self.gradient_kernel_type(smoothing_length)
        self.laplacian_kernel: SmoothingKernel = self.laplacian_kernel_type(smoothing_length)

    @abstractmethod
    def weights(self, neighbours: List[Particle]) -> NDArrayFloat:
        """Per-neighbour weight m_j A_j / ρ_j, shape (M,)."""
        pass

    def _gather(self, position: NDArrayFloat):
        position = np.asarray(position, dtype=np.float64)
        neighbours = list(self.query(position))
        if neighbours:
            offsets = position - np.array([p.position for p in neighbours], dtype=np.float64)
        else:
            offsets = np.empty((0, 3), dtype=np.float64)
        return neighbours, offsets

    def _densities(self, neighbours: List[Particle]) -> NDArrayFloat:
        densities = np.array([p.density for p in neighbours], dtype=np.float64)
        return safe_densities(densities, self.density_floor)

    def eval(self, particle: Particle) -> float:
        """Field value at a particle's position."""
        return self.eval_at(particle.position)

    def eval_at(self, position: NDArrayFloat) -> float:
        """Field value A(x)."""
        neighbours, offsets = self._gather(position)
        if not neighbours:
            return 0.0
        return float(np.sum(self.weights(neighbours) * self.value_kernel.w(offsets)))

    def d_eval(self, position: NDArrayFloat) -> NDArrayFloat:
        """Field gradient ∇A(x), shape (3,)."""
        neighbours, offsets = self._gather(position)
        if not neighbours:
            return np.zeros(3, dtype=np.float64)
        return np.sum(self.weights(neighbours)[:, np.newaxis] * self.gradient_kernel.dw(offsets), axis=0)

    def dd_eval(self, position: NDArrayFloat) -> float:
        """Field Laplacian ∇²A(x)."""
        neighbours, offsets = self._gather(position)
        if not neighbours:
            return 0.0
        return float(np.sum(self.weights(neighbours) * self.laplacian_kernel.ddw(offsets)))


class DensityField(Field):
    """Mass density ρ(x) = Σ_j m_j W_poly6(x - x_j)."""

    def weights(self, neighbours: List[Particle]) -> NDArrayFloat:
        return np.array([p.mass for p in neighbours], dtype=np.float64)


class PressureField(Field):
    """
    Pressure p(x) = Σ_j m_j (p_j / ρ_j) W(x - x_j).

    The gradient uses the spiky kernel so that close particles repel.
    """

    def weights(self, neighbours: List[Particle]) -> NDArrayFloat:
        masses = np.array([p.mass for p in neighbours], dtype=np.float64)
        pressures = np.array([p.pressure for p in neighbours], dtype=np.float64)
        return masses * pressures / self._densities(neighbours)


class ColorField(Field):
    """
    Colour field c(x) = Σ_j (m_j / ρ_j) W_poly6(x - x_j).

    It is 1 inside the fluid and 0 outside; its gradient points towards the
    interior near the free surface and its Laplacian measures curvature.
    """

    gradient_kernel_type = Poly6Kernel
    laplacian_kernel_type = Poly6Kernel

    def weights(self, neighbours: List[Particle]) -> NDArrayFloat:
        masses = np.array([p.mass for p in neighbours], dtype=np.float64)
        return masses / self._densities(neighbours)
