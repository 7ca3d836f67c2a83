"""Tile-transition handling for particle positions on a TiledGrid.

Particles on a mesh carry local tile coordinates plus a tile id. When a
local coordinate leaves ``[0, ni) x [0, nj)`` the particle belongs to a
neighbouring tile (or has crossed a periodic seam / hit a wall) and its
position has to be re-expressed there.
"""

from __future__ import annotations

import numpy as np

from pydisplace.grid.tiles import TiledGrid


class BoundaryHandler:
    """Resolves tile crossings for positions on a tiled grid.

    Parameters
    ----------
    grid : TiledGrid
        Grid providing the tile layout and axis periodicity.
    """

    def __init__(self, grid: TiledGrid) -> None:
        self.grid = grid

    def resolve(self, x, y, fid) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Return ``(x, y, fid)`` expressed on the tile that contains them.

        Processing order:
        1. Local → global index coordinates
        2. Periodic wrap or wall clamp per axis
        3. Global → local coordinates on the owning tile
        """
        gx, gy = self.grid.to_global(x, y, fid)
        nx, ny = self.grid.global_shape
        px, py = self.grid.periodic

        gx = _wrap_periodic(gx, nx) if px else _clamp_wall(gx, nx)
        gy = _wrap_periodic(gy, ny) if py else _clamp_wall(gy, ny)

        return self.grid.from_global(gx, gy)

    def update_location(self, state: np.ndarray) -> np.ndarray:
        """Correct *state* in place and return it.

        *state* has rows ``x, y[, z], fid`` and one column per particle; only
        the horizontal rows and the tile-id row are rewritten.
        """
        x, y, fid = self.resolve(state[0], state[1], state[-1])
        state[0] = x
        state[1] = y
        state[-1] = fid
        return state


# -----------------------------------------------------------------------
# Pure helper functions (easy to test independently)
# -----------------------------------------------------------------------

def _wrap_periodic(g: np.ndarray, n: int) -> np.ndarray:
    """Wrap global coordinates into ``[0, n)``."""
    g = np.mod(g, n)
    # np.mod returns n for tiny negative inputs; fold that edge back to 0.
    return np.where(g >= n, 0.0, g)


def _clamp_wall(g: np.ndarray, n: int) -> np.ndarray:
    """Clamp global coordinates between the walls at ``0`` and ``n``."""
    return np.clip(g, 0.0, np.nextafter(float(n), 0.0))
