"""
SPH module: particles, kernels, fields and neighbour search.
"""

from .particles import Particle
from .kernels import SmoothingKernel, Poly6Kernel, SpikyKernel, ViscosityKernel
from .fields import Field, DensityField, PressureField, ColorField, safe_densities
from .neighbours_cpu import UniformGrid, BruteForceSearch

__all__ = [
    # Particles
    "Particle",

    # Kernels
    "SmoothingKernel",
    "Poly6Kernel",
    "SpikyKernel",
    "ViscosityKernel",

    # Fields
    "Field",
    "DensityField",
    "PressureField",
    "ColorField",
    "safe_densities",

    # Neighbour search
    "UniformGrid",
    "BruteForceSearch",
]
