"""
Forces module: SPH fluid forces and external body forces.
"""

from fluid_sph.forces.pressure import PressureForce
from fluid_sph.forces.viscosity import ViscosityForce
from fluid_sph.forces.surface import SurfaceForce
from fluid_sph.forces.gravity import GravityForce


def default_fluid_forces(config, particles=()):
    """
    Build the pressure, viscosity and surface tension forces for a config.

    Parameters
    ----------
    config : SystemConfig
        Source of the viscosity and surface tension coefficients.
    particles : sequence of Particle, optional
        Initial targets shared by all three forces.

    Returns
    -------
    forces : list of Force
        [PressureForce, ViscosityForce, SurfaceForce], in application order.
    """
    return [
        PressureForce(particles),
        ViscosityForce(particles, coefficient=config.viscosity),
        SurfaceForce(particles, sigma=config.surface_tension, threshold=config.surface_threshold),
    ]


__all__ = [
    "PressureForce",
    "ViscosityForce",
    "SurfaceForce",
    "GravityForce",
    "default_fluid_forces",
]
