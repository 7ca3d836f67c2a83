"""Grid staggering, unit and spherical coordinate conversions.

Flow fields expect C-grid velocities in grid-index units per unit time.
These helpers turn cell-centred velocities (or a corner streamfunction)
into that convention, and generate points on the sphere for seeding
particles in geographic coordinates.
"""

from __future__ import annotations

import numpy as np


class CoordinateConverter:
    """Static methods for staggering and coordinate transformations."""

    @staticmethod
    def stagger_u(u_center: np.ndarray) -> np.ndarray:
        """Average cell-centred u onto the west faces of a periodic grid.

        u_face[i, j] = 0.5 * (u_center[i-1, j] + u_center[i, j])

        Parameters
        ----------
        u_center : np.ndarray
            Velocity at cell centres, shape ``(nx, ny[, nz])``.

        Returns
        -------
        np.ndarray
            Velocity at the u points, same shape.
        """
        u_center = np.asarray(u_center, dtype=float)
        return 0.5 * (np.roll(u_center, 1, axis=0) + u_center)

    @staticmethod
    def stagger_v(v_center: np.ndarray) -> np.ndarray:
        """Average cell-centred v onto the south faces of a periodic grid.

        v_face[i, j] = 0.5 * (v_center[i, j-1] + v_center[i, j])
        """
        v_center = np.asarray(v_center, dtype=float)
        return 0.5 * (np.roll(v_center, 1, axis=1) + v_center)

    @staticmethod
    def to_grid_units(velocity: np.ndarray, spacing: float | np.ndarray) -> np.ndarray:
        """Convert a physical velocity into grid cells per unit time.

        Parameters
        ----------
        velocity : np.ndarray
            Velocity in distance units per unit time (e.g. m/s).
        spacing : float or np.ndarray
            Grid spacing along the velocity's axis, same distance units.
            Arrays broadcast against *velocity* (for non-uniform grids).
        """
        return np.asarray(velocity, dtype=float) / spacing

    @staticmethod
    def streamfunction_velocity(psi: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        """Non-divergent C-grid velocities from a corner streamfunction.

        With ``psi[i, j]`` at the grid corner ``(i, j)``:

            u[i, j] = -(psi[i, j+1] - psi[i, j])
            v[i, j] =   psi[i+1, j] - psi[i, j]

        Both axes wrap periodically, so the discrete divergence
        ``u[i+1, j] - u[i, j] + v[i, j+1] - v[i, j]`` vanishes exactly.

        Returns
        -------
        tuple[np.ndarray, np.ndarray]
            ``(u, v)`` in grid units when *psi* is in grid units squared.
        """
        psi = np.asarray(psi, dtype=float)
        u = -(np.roll(psi, -1, axis=1) - psi)
        v = np.roll(psi, -1, axis=0) - psi
        return u, v

    @staticmethod
    def lonlat_to_xyz(lon, lat) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Cartesian coordinates on the unit sphere of (lon, lat) in degrees."""
        lon_rad = np.deg2rad(np.asarray(lon, dtype=float))
        lat_rad = np.deg2rad(np.asarray(lat, dtype=float))
        cos_lat = np.cos(lat_rad)
        return cos_lat * np.cos(lon_rad), cos_lat * np.sin(lon_rad), np.sin(lat_rad)

    @staticmethod
    def randn_lonlat(n: int, rng: np.random.Generator | None = None) -> tuple[np.ndarray, np.ndarray]:
        """Draw *n* points uniformly distributed on the sphere.

        Normalised 3-D Gaussian vectors are uniform in direction, which
        avoids the polar clustering of uniform (lon, lat) draws.

        Returns
        -------
        tuple[np.ndarray, np.ndarray]
            Longitude in ``[-180, 180]`` and latitude in ``[-90, 90]``, degrees.
        """
        rng = rng if rng is not None else np.random.default_rng()
        xyz = rng.standard_normal((3, n))
        xyz /= np.linalg.norm(xyz, axis=0)
        lon = np.rad2deg(np.arctan2(xyz[1], xyz[0]))
        lat = np.rad2deg(np.arcsin(np.clip(xyz[2], -1.0, 1.0)))
        return lon, lat
