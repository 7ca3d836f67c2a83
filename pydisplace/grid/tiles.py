"""Tiled structured grids for mesh flow fields.

A ``TiledGrid`` splits a global ``(NX, NY)`` index space into equally sized
rectangular tiles laid out in blocks. Tile ids run from 0 with the x tile
index varying fastest. Positions on a tile are continuous local index
coordinates ``x in [0, ni)``, ``y in [0, nj)`` where cell ``i`` spans
``[i, i + 1)`` and its centre sits at ``i + 0.5``.

Neighbouring tiles are related by pure translation, so a local coordinate
that runs past a tile edge maps to the neighbour without any rotation of
vector components.
"""

from __future__ import annotations

import numpy as np

from pydisplace.core.models import TileError


class TiledGrid:
    """Block layout of tiles over a global structured grid.

    Parameters
    ----------
    global_shape : tuple[int, int]
        Number of cells ``(NX, NY)`` of the whole domain.
    tile_shape : tuple[int, int] or None
        Cells per tile ``(ni, nj)``. Defaults to a single tile.
    periodic : tuple[bool, bool]
        Whether the x / y axes wrap around. Non-periodic axes are walls.
    lon_bounds, lat_bounds : tuple[float, float]
        Longitude / latitude spanned by the global grid edges (degrees).
    """

    def __init__(
        self,
        global_shape: tuple[int, int],
        tile_shape: tuple[int, int] | None = None,
        periodic: tuple[bool, bool] = (True, True),
        lon_bounds: tuple[float, float] = (-180.0, 180.0),
        lat_bounds: tuple[float, float] = (-90.0, 90.0),
    ) -> None:
        nx, ny = (int(n) for n in global_shape)
        ni, nj = (int(n) for n in (tile_shape or global_shape))
        if min(nx, ny, ni, nj) <= 0:
            raise ValueError(f"Grid sizes must be positive, got {global_shape} / {tile_shape}")
        if nx % ni or ny % nj:
            raise ValueError(
                f"Tile shape {(ni, nj)} does not divide global shape {(nx, ny)}"
            )
        self.global_shape = (nx, ny)
        self.tile_shape = (ni, nj)
        self.layout = (nx // ni, ny // nj)
        self.periodic = (bool(periodic[0]), bool(periodic[1]))
        self.lon_bounds = (float(lon_bounds[0]), float(lon_bounds[1]))
        self.lat_bounds = (float(lat_bounds[0]), float(lat_bounds[1]))

    def __repr__(self) -> str:
        return (
            f"TiledGrid(global_shape={self.global_shape}, tile_shape={self.tile_shape}, "
            f"n_tiles={self.n_tiles}, periodic={self.periodic})"
        )

    @property
    def n_tiles(self) -> int:
        return self.layout[0] * self.layout[1]

    # ------------------------------------------------------------------
    # Tile bookkeeping
    # ------------------------------------------------------------------

    def check_fid(self, fid) -> np.ndarray:
        """Return *fid* as an int array, raising TileError for unknown tiles."""
        fid = np.rint(np.asarray(fid, dtype=float)).astype(int)
        if np.any((fid < 0) | (fid >= self.n_tiles)):
            raise TileError(
                f"Tile id outside [0, {self.n_tiles - 1}]: {np.unique(fid).tolist()}"
            )
        return fid

    def tile_origin(self, fid) -> tuple[np.ndarray, np.ndarray]:
        """Global index of the lower-left corner of tile(s) *fid*."""
        fid = self.check_fid(fid)
        ntx = self.layout[0]
        ni, nj = self.tile_shape
        return (fid % ntx) * ni, (fid // ntx) * nj

    def to_global(self, x, y, fid) -> tuple[np.ndarray, np.ndarray]:
        """Local tile coordinates → global index coordinates."""
        ox, oy = self.tile_origin(fid)
        return np.asarray(x, dtype=float) + ox, np.asarray(y, dtype=float) + oy

    def from_global(self, gx, gy) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Global index coordinates (inside the domain) → ``(x, y, fid)``."""
        gx = np.asarray(gx, dtype=float)
        gy = np.asarray(gy, dtype=float)
        ni, nj = self.tile_shape
        ntx, nty = self.layout
        tx = np.clip(np.floor(gx / ni).astype(int), 0, ntx - 1)
        ty = np.clip(np.floor(gy / nj).astype(int), 0, nty - 1)
        return gx - tx * ni, gy - ty * nj, ty * ntx + tx

    # ------------------------------------------------------------------
    # Tiled array helpers
    # ------------------------------------------------------------------

    def split(self, global_array: np.ndarray) -> np.ndarray:
        """Cut a ``(NX, NY, ...)`` array into ``(n_tiles, ni, nj, ...)``."""
        arr = np.asarray(global_array)
        if arr.shape[:2] != self.global_shape:
            raise ValueError(
                f"Expected leading shape {self.global_shape}, got {arr.shape[:2]}"
            )
        ni, nj = self.tile_shape
        tiles = np.empty((self.n_tiles, ni, nj) + arr.shape[2:], dtype=arr.dtype)
        for fid in range(self.n_tiles):
            ox, oy = self.tile_origin(fid)
            tiles[fid] = arr[ox:ox + ni, oy:oy + nj]
        return tiles

    def assemble(self, tiles: np.ndarray) -> np.ndarray:
        """Inverse of :meth:`split`."""
        tiles = np.asarray(tiles)
        ni, nj = self.tile_shape
        if tiles.shape[:3] != (self.n_tiles, ni, nj):
            raise ValueError(
                f"Expected leading shape {(self.n_tiles, ni, nj)}, got {tiles.shape[:3]}"
            )
        out = np.empty(self.global_shape + tiles.shape[3:], dtype=tiles.dtype)
        for fid in range(self.n_tiles):
            ox, oy = self.tile_origin(fid)
            out[ox:ox + ni, oy:oy + nj] = tiles[fid]
        return out

    def exchange(self, tiles: np.ndarray, halo: int = 1) -> np.ndarray:
        """Pad every tile with *halo* cells taken from its neighbours.

        Periodic axes wrap around the global domain; wall axes repeat the
        edge value. Returns ``(n_tiles, ni + 2*halo, nj + 2*halo, ...)``.
        """
        g = self.assemble(tiles)
        extra = [(0, 0)] * (g.ndim - 2)
        g = np.pad(g, [(halo, halo), (0, 0)] + extra,
                   mode="wrap" if self.periodic[0] else "edge")
        g = np.pad(g, [(0, 0), (halo, halo)] + extra,
                   mode="wrap" if self.periodic[1] else "edge")

        ni, nj = self.tile_shape
        padded = np.empty(
            (self.n_tiles, ni + 2 * halo, nj + 2 * halo) + g.shape[2:], dtype=g.dtype,
        )
        for fid in range(self.n_tiles):
            ox, oy = self.tile_origin(fid)
            padded[fid] = g[ox:ox + ni + 2 * halo, oy:oy + nj + 2 * halo]
        return padded

    # ------------------------------------------------------------------
    # Geographic coordinates
    # ------------------------------------------------------------------

    def to_lonlat(self, x, y, fid) -> tuple[np.ndarray, np.ndarray]:
        """Longitude / latitude (degrees) of local positions on tile(s) *fid*.

        Global index ``0`` sits on the first grid edge, so cell centres map
        to ``lon_min + (i + 0.5) * dlon``.
        """
        gx, gy = self.to_global(x, y, fid)
        nx, ny = self.global_shape
        lon0, lon1 = self.lon_bounds
        lat0, lat1 = self.lat_bounds
        lon = lon0 + gx * (lon1 - lon0) / nx
        lat = lat0 + gy * (lat1 - lat0) / ny
        return lon, lat
