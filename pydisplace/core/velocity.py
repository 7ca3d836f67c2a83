"""Velocity functions: the right-hand side of the particle ODE.

A velocity function is any callable ``velocity(position, params, t)``
returning a derivative with the same shape as ``position``. The strategies
here interpolate one of the flow field variants; user code can supply any
other callable (for instance an analytic flow with a plain parameter
bundle) through ``ParticleSetConfig.velocity``.
"""

from __future__ import annotations

import numpy as np

from pydisplace.core.fields import FlowField
from pydisplace.core.interpolator import Interpolator
from pydisplace.core.models import FlowFieldError


class VelocityFunction:
    """Base class for interpolating velocity strategies."""

    def __call__(self, position: np.ndarray, params: FlowField, t: float) -> np.ndarray:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class ArrayVelocity(VelocityFunction):
    """Velocity on doubly periodic array fields (2-D or 3-D).

    The state rows are ``x, y[, z]``; every row gets a velocity component.
    """

    def __call__(self, position, params, t):
        position = np.asarray(position, dtype=float)
        return Interpolator(params).velocity(position, t)


class MeshVelocity(VelocityFunction):
    """Velocity on tiled mesh fields (2-D or 3-D).

    The state rows are ``x, y[, z], fid``. Mid-step the solver can push
    local coordinates past a tile edge, so a copy of the position is
    resolved onto its owning tile before the lookup. The tile-id row has a
    zero derivative.
    """

    def __call__(self, position, params, t):
        position = np.asarray(position, dtype=float)
        resolved = self.resolve(position, params)
        out = np.zeros_like(position)
        out[:params.n_dims] = Interpolator(params).velocity(resolved, t)
        return out

    @staticmethod
    def resolve(state: np.ndarray, params: FlowField) -> np.ndarray:
        """Copy of *state* re-expressed on the tiles that contain it."""
        return params.update_location(np.array(state, dtype=float, copy=True))


def default_velocity(field) -> VelocityFunction:
    """Interpolating velocity strategy for *field*'s variant."""
    if not isinstance(field, FlowField):
        raise FlowFieldError(
            f"No default velocity for {type(field).__name__}; "
            "pass a velocity function explicitly"
        )
    return MeshVelocity() if field.is_mesh else ArrayVelocity()
