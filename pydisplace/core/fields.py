"""Flow fields: gridded velocity snapshots bracketing a time window.

Four closed variants share the ``FlowField`` base:

- ``ArrayField2D`` (u0, u1, v0, v1, time_bounds)
- ``ArrayField3D`` (u0, u1, v0, v1, w0, w1, time_bounds)
- ``MeshField2D``  (u0, u1, v0, v1, time_bounds, grid)
- ``MeshField3D``  (u0, u1, v0, v1, w0, w1, time_bounds, grid)

Velocities live on a C-grid (``u`` staggered by -0.5 cell along axis 1,
``v`` along axis 2, ``w`` along axis 3 relative to cell centres) and are
expressed in grid-index units per unit time. Array variants are doubly
periodic; mesh variants carry a leading tile axis and a ``TiledGrid``.

Instances are immutable: components are copied and flagged read-only.
Use :meth:`FlowField.with_time_bounds` to move to another time window.

Example::

    F = flow_fields(u, u, v, v, (0.0, 10.0))
    F = flow_fields(u, u, v, v, (0.0, 10.0), grid=TiledGrid((32, 16), (16, 16)))
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

import numpy as np

from pydisplace.core.models import FlowFieldError
from pydisplace.grid.boundary import BoundaryHandler
from pydisplace.grid.tiles import TiledGrid

logger = logging.getLogger(__name__)


def _check_time_bounds(time_bounds) -> tuple[float, float]:
    """Validate and normalise a ``(t_start, t_end)`` pair."""
    if time_bounds is None:
        raise FlowFieldError("time_bounds is required")
    try:
        bounds = tuple(float(t) for t in time_bounds)
    except (TypeError, ValueError) as exc:
        raise FlowFieldError(f"Malformed time_bounds {time_bounds!r}") from exc
    if len(bounds) != 2:
        raise FlowFieldError(f"time_bounds needs exactly 2 entries, got {len(bounds)}")
    if not all(np.isfinite(bounds)):
        raise FlowFieldError(f"time_bounds must be finite, got {bounds}")
    if bounds[0] > bounds[1]:
        raise FlowFieldError(f"time_bounds must be ordered, got {bounds}")
    return bounds


class FlowField:
    """Shared behaviour of the four flow field variants."""

    components: tuple[str, ...] = ()
    n_dims: int = 0
    is_mesh: bool = False
    # Expected ndim of each component array.
    _array_ndim: int = 0

    def _validate(self) -> None:
        arrays = {}
        for name in self.components:
            for snap in ("0", "1"):
                key = name + snap
                arr = np.array(getattr(self, key), dtype=float)
                if arr.ndim != self._array_ndim:
                    raise FlowFieldError(
                        f"{type(self).__name__}.{key} must be {self._array_ndim}-D, "
                        f"got shape {arr.shape}"
                    )
                arr.setflags(write=False)
                arrays[key] = arr

        shapes = {arr.shape for arr in arrays.values()}
        if len(shapes) != 1:
            raise FlowFieldError(
                "Component shapes differ: "
                + ", ".join(f"{k}={v.shape}" for k, v in arrays.items())
            )

        for key, arr in arrays.items():
            object.__setattr__(self, key, arr)
        object.__setattr__(self, "time_bounds", _check_time_bounds(self.time_bounds))

    @property
    def shape(self) -> tuple[int, ...]:
        """Spatial shape shared by every component."""
        return self.u0.shape

    @property
    def is_stationary(self) -> bool:
        """True when the window is degenerate (``t_start == t_end``)."""
        return self.time_bounds[0] == self.time_bounds[1]

    def with_time_bounds(self, time_bounds) -> "FlowField":
        """Copy of this field bracketing a different time window."""
        return dataclasses.replace(self, time_bounds=time_bounds)


@dataclass(frozen=True, eq=False)
class ArrayField2D(FlowField):
    """Doubly-periodic 2-D field, components shaped ``(nx, ny)``."""
    u0: np.ndarray
    u1: np.ndarray
    v0: np.ndarray
    v1: np.ndarray
    time_bounds: tuple[float, float]

    components = ("u", "v")
    n_dims = 2
    _array_ndim = 2

    def __post_init__(self) -> None:
        self._validate()


@dataclass(frozen=True, eq=False)
class ArrayField3D(FlowField):
    """Periodic-in-x/y 3-D field, components shaped ``(nx, ny, nz)``."""
    u0: np.ndarray
    u1: np.ndarray
    v0: np.ndarray
    v1: np.ndarray
    w0: np.ndarray
    w1: np.ndarray
    time_bounds: tuple[float, float]

    components = ("u", "v", "w")
    n_dims = 3
    _array_ndim = 3

    def __post_init__(self) -> None:
        self._validate()


class _MeshMixin:
    """Tile checks, halo exchange and tile-crossing resolution."""

    is_mesh = True

    def _setup_mesh(self) -> None:
        if not isinstance(self.grid, TiledGrid):
            raise FlowFieldError(
                f"{type(self).__name__} needs a TiledGrid, got {type(self.grid).__name__}"
            )
        expected = (self.grid.n_tiles,) + self.grid.tile_shape
        if self.shape[:3] != expected:
            raise FlowFieldError(
                f"Component shape {self.shape} does not match grid tiles {expected}"
            )
        if self.update_location is None:
            object.__setattr__(
                self, "update_location", BoundaryHandler(self.grid).update_location,
            )

        halo = {}
        for name in self.components:
            for snap in ("0", "1"):
                padded = self.grid.exchange(getattr(self, name + snap), halo=1)
                padded.setflags(write=False)
                halo[name + snap] = padded
        object.__setattr__(self, "halo", halo)
        logger.debug("Exchanged halos for %d tiles of %s", self.grid.n_tiles, self.grid.tile_shape)


@dataclass(frozen=True, eq=False)
class MeshField2D(_MeshMixin, FlowField):
    """Tiled 2-D field, components shaped ``(n_tiles, ni, nj)``."""
    u0: np.ndarray
    u1: np.ndarray
    v0: np.ndarray
    v1: np.ndarray
    time_bounds: tuple[float, float]
    grid: TiledGrid
    update_location: Optional[Callable[[np.ndarray], np.ndarray]] = None
    halo: dict = field(init=False, repr=False)

    components = ("u", "v")
    n_dims = 2
    _array_ndim = 3

    def __post_init__(self) -> None:
        self._validate()
        self._setup_mesh()


@dataclass(frozen=True, eq=False)
class MeshField3D(_MeshMixin, FlowField):
    """Tiled 3-D field, components shaped ``(n_tiles, ni, nj, nz)``."""
    u0: np.ndarray
    u1: np.ndarray
    v0: np.ndarray
    v1: np.ndarray
    w0: np.ndarray
    w1: np.ndarray
    time_bounds: tuple[float, float]
    grid: TiledGrid
    update_location: Optional[Callable[[np.ndarray], np.ndarray]] = None
    halo: dict = field(init=False, repr=False)

    components = ("u", "v", "w")
    n_dims = 3
    _array_ndim = 4

    def __post_init__(self) -> None:
        self._validate()
        self._setup_mesh()


FLOW_FIELD_TYPES = (ArrayField2D, ArrayField3D, MeshField2D, MeshField3D)


def flow_fields(*args, grid: TiledGrid | None = None,
                update_location: Callable | None = None) -> FlowField:
    """Build the flow field variant matching the arguments.

    ``flow_fields(u0, u1, v0, v1, time_bounds)`` gives a 2-D field and
    ``flow_fields(u0, u1, v0, v1, w0, w1, time_bounds)`` a 3-D one. Passing
    *grid* selects the mesh variant; the components must then carry a
    leading tile axis (see ``TiledGrid.split``).
    """
    if len(args) == 5:
        if grid is None:
            return ArrayField2D(*args)
        return MeshField2D(*args, grid=grid, update_location=update_location)
    if len(args) == 7:
        if grid is None:
            return ArrayField3D(*args)
        return MeshField3D(*args, grid=grid, update_location=update_location)
    raise FlowFieldError(
        f"flow_fields expects 5 (2-D) or 7 (3-D) positional arguments, got {len(args)}"
    )
