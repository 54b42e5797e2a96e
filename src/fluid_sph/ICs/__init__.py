"""
Initial conditions module.
"""

from fluid_sph.ICs.lattice import LatticeBlock

__all__ = ["LatticeBlock"]
