"""
SPH smoothing kernels for incompressible-style fluid simulation.

This module implements the three kernels of Müller, Charypar & Gross (2003)
used for interactive SPH fluids. All have compact support radius h and vanish
for r >= h:

- Poly6: smooth density estimation, also used for the colour field.
- Spiky: non-vanishing gradient near r = 0, used for pressure.
- Viscosity: positive Laplacian everywhere inside the support, used for
  viscous momentum diffusion.

The per-pair loops are compiled with numba; the kernel classes wrap them with
input normalisation so callers can pass any (M, 3) or (3,) array of offsets
r_i - r_j.

References
----------
.. [1] Müller, M., Charypar, D., Gross, M. (2003), "Particle-Based Fluid
       Simulation for Interactive Applications", Proc. SCA 2003, 154-159.
"""

import numpy as np
import numpy.typing as npt
from numba import njit

# Type alias for clarity
NDArrayFloat = npt.NDArray[np.float64]


@njit(fastmath=True)
def _poly6_w(r_vec, h):
    n = r_vec.shape[0]
    out = np.zeros(n)
    h2 = h * h
    coeff = 315.0 / (64.0 * np.pi * h**9)
    for k in range(n):
        r2 = r_vec[k, 0]**2 + r_vec[k, 1]**2 + r_vec[k, 2]**2
        if r2 < h2:
            d = h2 - r2
            out[k] = coeff * d * d * d
    return out


@njit(fastmath=True)
def _poly6_dw(r_vec, h):
    n = r_vec.shape[0]
    out = np.zeros((n, 3))
    h2 = h * h
    coeff = -945.0 / (32.0 * np.pi * h**9)
    for k in range(n):
        r2 = r_vec[k, 0]**2 + r_vec[k, 1]**2 + r_vec[k, 2]**2
        if r2 < h2:
            d = h2 - r2
            factor = coeff * d * d
            out[k, 0] = factor * r_vec[k, 0]
            out[k, 1] = factor * r_vec[k, 1]
            out[k, 2] = factor * r_vec[k, 2]
    return out


@njit(fastmath=True)
def _poly6_ddw(r_vec, h):
    n = r_vec.shape[0]
    out = np.zeros(n)
    h2 = h * h
    coeff = -945.0 / (32.0 * np.pi * h**9)
    for k in range(n):
        r2 = r_vec[k, 0]**2 + r_vec[k, 1]**2 + r_vec[k, 2]**2
        if r2 < h2:
            d = h2 - r2
            out[k] = coeff * d * (3.0 * h2 - 7.0 * r2)
    return out


@njit(fastmath=True)
def _spiky_w(r_vec, h):
    n = r_vec.shape[0]
    out = np.zeros(n)
    coeff = 15.0 / (np.pi * h**6)
    for k in range(n):
        r = np.sqrt(r_vec[k, 0]**2 + r_vec[k, 1]**2 + r_vec[k, 2]**2)
        if r < h:
            d = h - r
            out[k] = coeff * d * d * d
    return out


@njit(fastmath=True)
def _spiky_dw(r_vec, h):
    n = r_vec.shape[0]
    out = np.zeros((n, 3))
    coeff = -45.0 / (np.pi * h**6)
    for k in range(n):
        r = np.sqrt(r_vec[k, 0]**2 + r_vec[k, 1]**2 + r_vec[k, 2]**2)
        # Direction is undefined at r = 0
        if r > 0.0 and r < h:
            d = h - r
            factor = coeff * d * d / r
            out[k, 0] = factor * r_vec[k, 0]
            out[k, 1] = factor * r_vec[k, 1]
            out[k, 2] = factor * r_vec[k, 2]
    return out


@njit(fastmath=True)
def _spiky_ddw(r_vec, h):
    n = r_vec.shape[0]
    out = np.zeros(n)
    coeff = 90.0 / (np.pi * h**6)
    for k in range(n):
        r = np.sqrt(r_vec[k, 0]**2 + r_vec[k, 1]**2 + r_vec[k, 2]**2)
        if r > 0.0 and r < h:
            out[k] = coeff * (h - r) * (2.0 * r - h) / r
    return out


@njit(fastmath=True)
def _viscosity_w(r_vec, h):
    n = r_vec.shape[0]
    out = np.zeros(n)
    coeff = 15.0 / (2.0 * np.pi * h**3)
    for k in range(n):
        r = np.sqrt(r_vec[k, 0]**2 + r_vec[k, 1]**2 + r_vec[k, 2]**2)
        # W diverges as h / 2r at the origin
        if r > 0.0 and r < h:
            out[k] = coeff * (-(r**3) / (2.0 * h**3) + (r * r) / (h * h) + h / (2.0 * r) - 1.0)
    return out


@njit(fastmath=True)
def _viscosity_dw(r_vec, h):
    n = r_vec.shape[0]
    out = np.zeros((n, 3))
    coeff = 15.0 / (2.0 * np.pi * h**3)
    for k in range(n):
        r = np.sqrt(r_vec[k, 0]**2 + r_vec[k, 1]**2 + r_vec[k, 2]**2)
        if r > 0.0 and r < h:
            factor = coeff * (-3.0 * r / (2.0 * h**3) + 2.0 / (h * h) - h / (2.0 * r**3))
            out[k, 0] = factor * r_vec[k, 0]
            out[k, 1] = factor * r_vec[k, 1]
            out[k, 2] = factor * r_vec[k, 2]
    return out


@njit(fastmath=True)
def _viscosity_ddw(r_vec, h):
    n = r_vec.shape[0]
    out = np.zeros(n)
    coeff = 45.0 / (np.pi * h**6)
    for k in range(n):
        r = np.sqrt(r_vec[k, 0]**2 + r_vec[k, 1]**2 + r_vec[k, 2]**2)
        if r < h:
            out[k] = coeff * (h - r)
    return out


class SmoothingKernel:
    """
    Base wrapper around a compiled kernel triple (W, ∇W, ∇²W).

    Subclasses bind the numba functions. Inputs are offset vectors
    r_vec = r_i - r_j; a single (3,) offset is treated as one pair.
    """

    _w = None
    _dw = None
    _ddw = None

    def __init__(self, h: float):
        """
        Initialize kernel.

        Parameters
        ----------
        h : float
            Support radius; the kernel is zero for r >= h.
        """
        if not h > 0.0:
            raise ValueError(f"Support radius must be positive, got {h}")
        self.h = float(h)

    @staticmethod
    def _offsets(r_vec) -> NDArrayFloat:
        r_vec = np.ascontiguousarray(r_vec, dtype=np.float64)
        if r_vec.ndim == 1:
            r_vec = r_vec.reshape(1, -1)
        if r_vec.ndim != 2 or r_vec.shape[1] != 3:
            raise ValueError(f"Offsets must have shape (M, 3), got {r_vec.shape}")
        return r_vec

    def w(self, r_vec) -> NDArrayFloat:
        """Kernel value W(r_vec, h), shape (M,)."""
        return self._w(self._offsets(r_vec), self.h)

    def dw(self, r_vec) -> NDArrayFloat:
        """Kernel gradient ∇W(r_vec, h), shape (M, 3)."""
        return self._dw(self._offsets(r_vec), self.h)

    def ddw(self, r_vec) -> NDArrayFloat:
        """Kernel Laplacian ∇²W(r_vec, h), shape (M,)."""
        return self._ddw(self._offsets(r_vec), self.h)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(h={self.h})"


class Poly6Kernel(SmoothingKernel):
    """
    Poly6 kernel W = 315 / (64 π h⁹) (h² - r²)³.

    Depends on r only through r², so no square root is needed. Its gradient
    vanishes at the origin, which makes it unsuitable for pressure.
    """

    _w = staticmethod(_poly6_w)
    _dw = staticmethod(_poly6_dw)
    _ddw = staticmethod(_poly6_ddw)


class SpikyKernel(SmoothingKernel):
    """
    Spiky kernel W = 15 / (π h⁶) (h - r)³.

    Gradient magnitude grows towards the origin, giving the repulsion that
    keeps particles from clustering under pressure.
    """

    _w = staticmethod(_spiky_w)
    _dw = staticmethod(_spiky_dw)
    _ddw = staticmethod(_spiky_ddw)


class ViscosityKernel(SmoothingKernel):
    """
    Viscosity kernel with Laplacian ∇²W = 45 / (π h⁶) (h - r).

    The Laplacian is positive everywhere inside the support, so viscous forces
    only ever reduce relative velocities.
    """

    _w = staticmethod(_viscosity_w)
    _dw = staticmethod(_viscosity_dw)
    _ddw = staticmethod(_viscosity_ddw)
