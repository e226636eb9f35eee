"""Staggered MAC grid for the hybrid particle/grid solver.

MAC (Marker-And-Cell) grid layout, arrays indexed ``[i, j]`` with ``i``
along x and ``j`` along y:
- Cell data (type, density): cell centers, shape (nx, ny)
- Velocity x (u): vertical faces at (i, j+0.5), shape (nx+1, ny)
- Velocity y (v): horizontal faces at (i+0.5, j), shape (nx, ny+1)

Only the outer ring of cells is solid. Interior cells are never
reclassified; the free surface is represented only through the density
field.
"""

import numpy as np
from enum import IntEnum
from typing import Tuple


class CellType(IntEnum):
    """Cell classification stored in ``MACGrid.cell_type``."""
    FLUID = 0
    AIR = 1
    SOLID = 2


class MACGrid:
    """Fixed-size staggered grid with per-face weight accumulators."""

    def __init__(self, nx: int, ny: int, h: float):
        if nx < 2 or ny < 2:
            raise ValueError(f"Grid needs at least two cells per axis, got {nx}x{ny}")
        if not h > 0:
            raise ValueError(f"Cell size must be positive, got {h}")

        self.nx = int(nx)
        self.ny = int(ny)
        self.h = float(h)

        # Face velocities and their splat weights
        self.u = np.zeros((self.nx + 1, self.ny), dtype=np.float32)
        self.v = np.zeros((self.nx, self.ny + 1), dtype=np.float32)
        self.u_weight = np.zeros_like(self.u)
        self.v_weight = np.zeros_like(self.v)

        # Pre-solve snapshot for the FLIP update
        self.u_prev = np.zeros_like(self.u)
        self.v_prev = np.zeros_like(self.v)

        self.density = np.zeros((self.nx, self.ny), dtype=np.float32)
        self.cell_type = np.full((self.nx, self.ny), CellType.AIR, dtype=np.int8)
        self._init_solid_ring()

    @classmethod
    def for_domain(cls, width: float, height: float, spacing: float) -> 'MACGrid':
        """Grid covering a ``width`` x ``height`` domain plus one cell of padding."""
        if not (width > 0 and height > 0 and spacing > 0):
            raise ValueError(
                f"Domain dimensions must be positive, got width={width}, "
                f"height={height}, spacing={spacing}"
            )
        nx = max(2, int(np.floor(width / spacing)) + 1)
        ny = max(2, int(np.floor(height / spacing)) + 1)
        return cls(nx, ny, spacing)

    def _init_solid_ring(self):
        self.cell_type[0, :] = CellType.SOLID
        self.cell_type[-1, :] = CellType.SOLID
        self.cell_type[:, 0] = CellType.SOLID
        self.cell_type[:, -1] = CellType.SOLID

    # ------------------------------------------------------------------
    # Geometry helpers
    # ------------------------------------------------------------------
    @property
    def domain_size(self) -> Tuple[float, float]:
        """Physical extent covered by the cells."""
        return self.nx * self.h, self.ny * self.h

    @property
    def solid_mask(self) -> np.ndarray:
        return self.cell_type == CellType.SOLID

    def is_solid(self, i: int, j: int) -> bool:
        return bool(self.cell_type[i, j] == CellType.SOLID)

    def cell_index(self, i: int, j: int) -> int:
        """Flat row-major index ``i + j * nx`` of cell (i, j)."""
        return i + j * self.nx

    # ------------------------------------------------------------------
    # State updates
    # ------------------------------------------------------------------
    def enforce_boundaries(self):
        """Zero all four faces of every solid cell."""
        solid = self.solid_mask
        self.u[:-1, :][solid] = 0.0
        self.u[1:, :][solid] = 0.0
        self.v[:, :-1][solid] = 0.0
        self.v[:, 1:][solid] = 0.0

    def snapshot(self):
        """Copy the current face velocities into the pre-solve buffers."""
        self.u_prev[...] = self.u
        self.v_prev[...] = self.v

    def clear(self):
        """Zero every field except the classification."""
        for field in (self.u, self.v, self.u_weight, self.v_weight,
                      self.u_prev, self.v_prev, self.density):
            field.fill(0.0)
