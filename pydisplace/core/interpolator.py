"""Spatial (C-grid) and temporal interpolation of flow fields.

Positions are continuous grid-index coordinates: cell ``i`` spans
``[i, i + 1)`` and its centre sits at ``i + 0.5``. Velocity components are
staggered on a C-grid, so each component has its own node offset:

    u at (i,       j + 0.5, k + 0.5)
    v at (i + 0.5, j,       k + 0.5)
    w at (i + 0.5, j + 0.5, k      )

Spatial interpolation is bilinear (2-D) or trilinear (3-D) in x→y→z order
on each snapshot, followed by linear interpolation in time between the two
bracketing snapshots.
"""

from __future__ import annotations

import numpy as np

from pydisplace.core.fields import (
    ArrayField2D,
    ArrayField3D,
    FLOW_FIELD_TYPES,
    FlowField,
    MeshField2D,
    MeshField3D,
)
from pydisplace.core.models import FlowFieldError

# Node offsets of each component in index space.
OFFSETS_2D = {"u": (0.0, 0.5), "v": (0.5, 0.0)}
OFFSETS_3D = {"u": (0.0, 0.5, 0.5), "v": (0.5, 0.0, 0.5), "w": (0.5, 0.5, 0.0)}


# ---------------------------------------------------------------------------
# Temporal weight
# ---------------------------------------------------------------------------

def time_weight(t: float, time_bounds: tuple[float, float]) -> float:
    """Fractional position of *t* inside ``time_bounds``.

    A degenerate window (``t_start == t_end``) returns 0.0 so that the
    first snapshot is used as is. Times outside the window extrapolate
    linearly.
    """
    t0, t1 = time_bounds
    if t1 == t0:
        return 0.0
    return (t - t0) / (t1 - t0)


# ---------------------------------------------------------------------------
# Cell location helpers
# ---------------------------------------------------------------------------

def _locate(s: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Integer cell index and fractional distance along one axis."""
    i0 = np.floor(s)
    return i0.astype(int), s - i0


def _locate_vertical(s: np.ndarray, nz: int) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Vertical cell indices and weight, clamped to the node range."""
    if nz == 1:
        zero = np.zeros(np.shape(s), dtype=int)
        return zero, zero, np.zeros(np.shape(s))
    s = np.clip(s, 0.0, nz - 1.0)
    k0 = np.minimum(np.floor(s).astype(int), nz - 2)
    return k0, k0 + 1, s - k0


# ---------------------------------------------------------------------------
# Doubly periodic arrays
# ---------------------------------------------------------------------------

def bilinear_periodic(
    var_2d: np.ndarray, x: np.ndarray, y: np.ndarray,
    offset: tuple[float, float],
) -> np.ndarray:
    """Bilinear interpolation on a doubly periodic ``(nx, ny)`` array.

    Parameters
    ----------
    var_2d : np.ndarray
        Component values at its staggered nodes.
    x, y : np.ndarray
        Positions in index space (any real value; wrapped periodically).
    offset : tuple[float, float]
        Node offset of the component (see ``OFFSETS_2D``).

    Returns
    -------
    np.ndarray
        Interpolated values, one per position.
    """
    nx, ny = var_2d.shape
    i0, xd = _locate(np.asarray(x, dtype=float) - offset[0])
    j0, yd = _locate(np.asarray(y, dtype=float) - offset[1])

    i0 %= nx
    j0 %= ny
    i1 = (i0 + 1) % nx
    j1 = (j0 + 1) % ny

    # --- x-direction interpolation (2 pairs) ---
    c0 = var_2d[i0, j0] * (1 - xd) + var_2d[i1, j0] * xd
    c1 = var_2d[i0, j1] * (1 - xd) + var_2d[i1, j1] * xd

    # --- y-direction interpolation ---
    return c0 * (1 - yd) + c1 * yd


def trilinear_periodic(
    var_3d: np.ndarray, x: np.ndarray, y: np.ndarray, z: np.ndarray,
    offset: tuple[float, float, float],
) -> np.ndarray:
    """Trilinear interpolation on an ``(nx, ny, nz)`` array.

    x and y wrap periodically; the vertical axis is bounded and clamps to
    the first / last node.
    """
    nx, ny, nz = var_3d.shape
    i0, xd = _locate(np.asarray(x, dtype=float) - offset[0])
    j0, yd = _locate(np.asarray(y, dtype=float) - offset[1])
    k0, k1, zd = _locate_vertical(np.asarray(z, dtype=float) - offset[2], nz)

    i0 %= nx
    j0 %= ny
    i1 = (i0 + 1) % nx
    j1 = (j0 + 1) % ny

    # --- x-direction interpolation (4 pairs) ---
    c00 = var_3d[i0, j0, k0] * (1 - xd) + var_3d[i1, j0, k0] * xd
    c01 = var_3d[i0, j1, k0] * (1 - xd) + var_3d[i1, j1, k0] * xd
    c10 = var_3d[i0, j0, k1] * (1 - xd) + var_3d[i1, j0, k1] * xd
    c11 = var_3d[i0, j1, k1] * (1 - xd) + var_3d[i1, j1, k1] * xd

    # --- y-direction interpolation (2 pairs) ---
    c0 = c00 * (1 - yd) + c01 * yd
    c1 = c10 * (1 - yd) + c11 * yd

    # --- z-direction interpolation ---
    return c0 * (1 - zd) + c1 * zd


# ---------------------------------------------------------------------------
# Tiled arrays (halo padded by one cell)
# ---------------------------------------------------------------------------

def bilinear_tiles(
    halo: np.ndarray, fid: np.ndarray, x: np.ndarray, y: np.ndarray,
    offset: tuple[float, float],
) -> np.ndarray:
    """Bilinear interpolation on halo-padded tiles ``(n_tiles, ni+2, nj+2)``.

    Positions must already be resolved onto their tile, i.e.
    ``0 <= x < ni`` and ``0 <= y < nj``.
    """
    i0, xd = _locate(np.asarray(x, dtype=float) - offset[0])
    j0, yd = _locate(np.asarray(y, dtype=float) - offset[1])
    i0 += 1
    j0 += 1

    c0 = halo[fid, i0, j0] * (1 - xd) + halo[fid, i0 + 1, j0] * xd
    c1 = halo[fid, i0, j0 + 1] * (1 - xd) + halo[fid, i0 + 1, j0 + 1] * xd
    return c0 * (1 - yd) + c1 * yd


def trilinear_tiles(
    halo: np.ndarray, fid: np.ndarray, x: np.ndarray, y: np.ndarray, z: np.ndarray,
    offset: tuple[float, float, float],
) -> np.ndarray:
    """Trilinear interpolation on halo-padded tiles ``(n_tiles, ni+2, nj+2, nz)``."""
    nz = halo.shape[3]
    i0, xd = _locate(np.asarray(x, dtype=float) - offset[0])
    j0, yd = _locate(np.asarray(y, dtype=float) - offset[1])
    k0, k1, zd = _locate_vertical(np.asarray(z, dtype=float) - offset[2], nz)
    i0 += 1
    j0 += 1
    i1 = i0 + 1
    j1 = j0 + 1

    c00 = halo[fid, i0, j0, k0] * (1 - xd) + halo[fid, i1, j0, k0] * xd
    c01 = halo[fid, i0, j1, k0] * (1 - xd) + halo[fid, i1, j1, k0] * xd
    c10 = halo[fid, i0, j0, k1] * (1 - xd) + halo[fid, i1, j0, k1] * xd
    c11 = halo[fid, i0, j1, k1] * (1 - xd) + halo[fid, i1, j1, k1] * xd

    c0 = c00 * (1 - yd) + c01 * yd
    c1 = c10 * (1 - yd) + c11 * yd
    return c0 * (1 - zd) + c1 * zd


# ---------------------------------------------------------------------------
# Field-level interpolation
# ---------------------------------------------------------------------------

class Interpolator:
    """Interpolates a flow field to particle positions.

    Parameters
    ----------
    field : FlowField
        One of the four flow field variants.

    Positions are ``(n_state, n_particles)`` arrays with rows
    ``x, y[, z][, fid]``. Mesh positions must already be resolved onto
    their tile.
    """

    def __init__(self, field: FlowField) -> None:
        if not isinstance(field, FLOW_FIELD_TYPES):
            raise FlowFieldError(
                f"Cannot interpolate {type(field).__name__}; expected a flow field variant"
            )
        self.field = field

    def spatial(self, key: str, position: np.ndarray) -> np.ndarray:
        """Interpolate snapshot component *key* (e.g. ``"u0"``) in space."""
        field = self.field
        name = key[0]
        x, y = position[0], position[1]

        if isinstance(field, ArrayField2D):
            return bilinear_periodic(getattr(field, key), x, y, OFFSETS_2D[name])
        if isinstance(field, ArrayField3D):
            return trilinear_periodic(getattr(field, key), x, y, position[2], OFFSETS_3D[name])

        fid = field.grid.check_fid(position[-1])
        if isinstance(field, MeshField2D):
            return bilinear_tiles(field.halo[key], fid, x, y, OFFSETS_2D[name])
        return trilinear_tiles(field.halo[key], fid, x, y, position[2], OFFSETS_3D[name])

    def velocity(self, position: np.ndarray, t: float) -> np.ndarray:
        """Velocity ``(n_dims, n_particles)`` at *position* and time *t*.

        Each component is interpolated in space at both snapshots and the
        two results are blended linearly in time.
        """
        field = self.field
        position = np.asarray(position, dtype=float)
        weight = time_weight(t, field.time_bounds)

        out = np.empty((field.n_dims, position.shape[-1]))
        for row, name in enumerate(field.components):
            first = self.spatial(name + "0", position)
            if weight == 0.0:
                out[row] = first
                continue
            second = self.spatial(name + "1", position)
            out[row] = first * (1 - weight) + second * weight
        return out
