"""
CPU-based neighbour search for SPH particles.

Two implementations of the NeighbourSearch interface:

- BruteForceSearch: O(N) scan per query, the reference for testing.
- UniformGrid: spatial hashing into cubic cells of edge ``cell_size``; a query
  scans only the cells overlapping the search sphere.

Both must be rebuilt with ``update`` whenever particle positions change. A
query returns every indexed particle within ``radius`` of the query point,
including a particle located exactly at that point.
"""

from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Tuple
import numpy as np
import numpy.typing as npt

from fluid_sph.core.interfaces import NeighbourSearch
from fluid_sph.sph.particles import Particle

# Type alias for clarity
NDArrayFloat = npt.NDArray[np.float64]

Cell = Tuple[int, int, int]


class BruteForceSearch(NeighbourSearch):
    """
    Pairwise distance neighbour search.

    Suitable for small particle counts and as a reference for UniformGrid.
    """

    def __init__(self, radius: float):
        """
        Parameters
        ----------
        radius : float
            Search radius (normally the kernel support radius h).
        """
        if not radius > 0.0:
            raise ValueError(f"Search radius must be positive, got {radius}")
        self.radius = float(radius)
        self._particles: List[Particle] = []
        self._positions = np.empty((0, 3), dtype=np.float64)

    def update(self, particles: Sequence[Particle]) -> None:
        self._particles = list(particles)
        if self._particles:
            self._positions = np.array([p.position for p in self._particles], dtype=np.float64)
        else:
            self._positions = np.empty((0, 3), dtype=np.float64)

    def query(self, position: NDArrayFloat) -> List[Particle]:
        if not self._particles:
            return []
        r_ij = np.linalg.norm(self._positions - np.asarray(position, dtype=np.float64), axis=1)
        return [self._particles[j] for j in np.flatnonzero(r_ij <= self.radius)]


class UniformGrid(NeighbourSearch):
    """
    Uniform spatial-hash grid.

    Particles are bucketed by ``floor(position / cell_size)``. Cells are stored
    sparsely in a dict, so the grid is unbounded and costs memory only for
    occupied cells.

    Attributes
    ----------
    cell_size : float
        Edge length of a cubic cell.
    radius : float
        Search radius. Defaults to ``cell_size`` so a query visits the 27
        cells around the query point.
    """

    def __init__(self, cell_size: float, radius: Optional[float] = None):
        if not cell_size > 0.0:
            raise ValueError(f"Cell size must be positive, got {cell_size}")
        self.cell_size = float(cell_size)
        self.radius = float(radius) if radius is not None else self.cell_size
        if not self.radius > 0.0:
            raise ValueError(f"Search radius must be positive, got {radius}")

        # Number of cells to scan on each side of the query cell
        self._reach = int(np.ceil(self.radius / self.cell_size))
        self._cells: Dict[Cell, Tuple[List[Particle], NDArrayFloat]] = {}

    def _cell_of(self, position: NDArrayFloat) -> Cell:
        ix, iy, iz = np.floor(np.asarray(position, dtype=np.float64) / self.cell_size).astype(np.int64)
        return int(ix), int(iy), int(iz)

    def update(self, particles: Sequence[Particle]) -> None:
        members: Dict[Cell, List[Particle]] = defaultdict(list)
        for p in particles:
            members[self._cell_of(p.position)].append(p)
        # Positions are stacked per cell so a query filters whole cells at once
        self._cells = {
            cell: (ps, np.array([p.position for p in ps], dtype=np.float64))
            for cell, ps in members.items()
        }

    def query(self, position: NDArrayFloat) -> List[Particle]:
        position = np.asarray(position, dtype=np.float64)
        cx, cy, cz = self._cell_of(position)
        reach = self._reach

        candidates: List[Particle] = []
        blocks = []
        for ix in range(cx - reach, cx + reach + 1):
            for iy in range(cy - reach, cy + reach + 1):
                for iz in range(cz - reach, cz + reach + 1):
                    cell = self._cells.get((ix, iy, iz))
                    if cell is not None:
                        candidates.extend(cell[0])
                        blocks.append(cell[1])
        if not candidates:
            return []

        offsets = np.concatenate(blocks) - position
        r2 = np.einsum('ij,ij->i', offsets, offsets)
        return [candidates[j] for j in np.flatnonzero(r2 <= self.radius * self.radius)]

    @property
    def n_cells(self) -> int:
        """Number of occupied cells."""
        return len(self._cells)
