"""Example flow fields and lookup helpers.

``sinusoidal_flow_field`` and ``random_flow_field`` build small doubly
periodic test cases; ``convert_to_flow_fields`` turns plain ``(nx, ny)``
velocity arrays into a tiled mesh field.
"""

from __future__ import annotations

import numpy as np

from pydisplace.core.fields import ArrayField2D, MeshField2D
from pydisplace.grid.tiles import TiledGrid
from pydisplace.utils.coordinate_converter import CoordinateConverter


def sinusoidal_flow_field(nx: int = 16, ny: int | None = None, fac: float = 0.1,
                          time_bounds: tuple[float, float] = (0.0, 10.0)) -> ArrayField2D:
    """Stationary flow derived from the streamfunction ``fac * (sin x + cos y)``.

    The ``nx x ny`` grid spans one period along each axis so the field is
    doubly periodic. Cell-centred velocities are staggered onto the C-grid
    and divided by the grid spacing, giving grid units per unit time.

    Parameters
    ----------
    nx, ny : int
        Number of cells along x and y (``ny`` defaults to ``nx``).
    fac : float
        Amplitude of the streamfunction.
    time_bounds : tuple[float, float]
        Window of the (stationary) field.
    """
    ny = nx if ny is None else ny
    dx = 2 * np.pi / nx
    dy = 2 * np.pi / ny
    xc = dx * (np.arange(1, nx + 1) - 0.5)
    yc = dy * (np.arange(1, ny + 1) - 0.5)
    X, Y = np.meshgrid(xc, yc, indexing="ij")

    u_center = -fac * np.sin(Y)
    v_center = -fac * np.cos(X)

    u = CoordinateConverter.to_grid_units(CoordinateConverter.stagger_u(u_center), dx)
    v = CoordinateConverter.to_grid_units(CoordinateConverter.stagger_v(v_center), dy)
    return ArrayField2D(u, u, v, v, time_bounds)


def random_flow_field(n: int = 16, rng: np.random.Generator | None = None,
                      n_modes: int = 3, speed: float = 0.1,
                      ) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Random non-divergent flow on an ``n x n`` doubly periodic grid.

    A corner streamfunction is built from *n_modes* random Fourier modes
    per axis; velocities follow from :meth:`CoordinateConverter.streamfunction_velocity`
    and are scaled so the largest component equals *speed* (grid units).

    Returns
    -------
    tuple[np.ndarray, np.ndarray, np.ndarray]
        ``(u, v, psi)``, each shaped ``(n, n)``.
    """
    rng = rng if rng is not None else np.random.default_rng()
    theta = 2 * np.pi * np.arange(n) / n
    X, Y = np.meshgrid(theta, theta, indexing="ij")

    psi = np.zeros((n, n))
    for kx in range(1, n_modes + 1):
        for ky in range(1, n_modes + 1):
            amp = rng.standard_normal() / (kx * kx + ky * ky)
            phase_x, phase_y = rng.uniform(0, 2 * np.pi, size=2)
            psi += amp * np.cos(kx * X + phase_x) * np.cos(ky * Y + phase_y)

    u, v = CoordinateConverter.streamfunction_velocity(psi)
    scale = speed / max(np.abs(u).max(), np.abs(v).max())
    return u * scale, v * scale, psi * scale


def convert_to_flow_fields(u: np.ndarray, v: np.ndarray, t_end: float,
                           tile_shape: tuple[int, int] | None = None) -> MeshField2D:
    """Stationary mesh field over ``(0, t_end)`` from global ``(nx, ny)`` arrays.

    The domain is doubly periodic; *tile_shape* splits it into tiles
    (default: a single tile).
    """
    u = np.asarray(u, dtype=float)
    v = np.asarray(v, dtype=float)
    grid = TiledGrid(u.shape, tile_shape, periodic=(True, True))
    ut = grid.split(u)
    vt = grid.split(v)
    return MeshField2D(ut, ut, vt, vt, (0.0, float(t_end)), grid)


def nearest_to_xy(component: np.ndarray, x, y, fid=None) -> np.ndarray:
    """Value of the cell containing each position.

    Parameters
    ----------
    component : np.ndarray
        ``(nx, ny)`` array (periodic wrap) or ``(n_tiles, ni, nj)`` tiles
        when *fid* is given (indices clipped to the tile).
    x, y : array_like
        Positions in grid-index coordinates.
    fid : array_like, optional
        Tile ids, for tiled components.
    """
    i = np.floor(np.asarray(x, dtype=float)).astype(int)
    j = np.floor(np.asarray(y, dtype=float)).astype(int)
    if fid is None:
        nx, ny = component.shape[:2]
        return component[i % nx, j % ny]
    _, ni, nj = component.shape[:3]
    f = np.rint(np.asarray(fid, dtype=float)).astype(int)
    return component[f, np.clip(i, 0, ni - 1), np.clip(j, 0, nj - 1)]
