"""Unit tests for flow field construction and validation."""

from __future__ import annotations

import dataclasses

import numpy as np
import pytest

from pydisplace.core.fields import (
    ArrayField2D,
    ArrayField3D,
    MeshField2D,
    MeshField3D,
    flow_fields,
)
from pydisplace.core.models import FlowFieldError
from pydisplace.grid.tiles import TiledGrid


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _uv(shape=(4, 3), seed=0):
    rng = np.random.default_rng(seed)
    return rng.uniform(-1, 1, shape), rng.uniform(-1, 1, shape)


# ---------------------------------------------------------------------------
# Factory dispatch
# ---------------------------------------------------------------------------

class TestFlowFieldsFactory:
    def test_five_args_gives_array_2d(self):
        u, v = _uv()
        F = flow_fields(u, u, v, v, (0.0, 1.0))
        assert isinstance(F, ArrayField2D)
        assert F.n_dims == 2
        assert not F.is_mesh

    def test_seven_args_gives_array_3d(self):
        u, v = _uv((4, 3, 2))
        F = flow_fields(u, u, v, v, 0 * u, u, (0.0, 1.0))
        assert isinstance(F, ArrayField3D)
        assert F.components == ("u", "v", "w")

    def test_grid_gives_mesh_2d(self):
        grid = TiledGrid((4, 4), (2, 2))
        u, v = _uv((4, 4))
        F = flow_fields(grid.split(u), grid.split(u), grid.split(v), grid.split(v),
                        (0.0, 1.0), grid=grid)
        assert isinstance(F, MeshField2D)
        assert F.is_mesh

    def test_grid_gives_mesh_3d(self):
        grid = TiledGrid((4, 4), (4, 2))
        u = np.ones((4, 4, 3))
        t = grid.split(u)
        F = flow_fields(t, t, t, t, t, t, (0.0, 1.0), grid=grid)
        assert isinstance(F, MeshField3D)
        assert F.shape == (2, 4, 2, 3)

    def test_wrong_arity_raises(self):
        u, v = _uv()
        with pytest.raises(FlowFieldError):
            flow_fields(u, u, v, (0.0, 1.0))


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class TestValidation:
    def test_mismatched_shapes_raise(self):
        u, v = _uv()
        with pytest.raises(FlowFieldError, match="shapes differ"):
            ArrayField2D(u, u, v[:, :2], v[:, :2], (0.0, 1.0))

    def test_wrong_ndim_raises(self):
        u, v = _uv((4, 3, 2))
        with pytest.raises(FlowFieldError):
            ArrayField2D(u, u, v, v, (0.0, 1.0))

    def test_missing_time_bounds_raises(self):
        u, v = _uv()
        with pytest.raises(FlowFieldError):
            ArrayField2D(u, u, v, v, None)

    @pytest.mark.parametrize("bounds", [(0.0,), (0.0, 1.0, 2.0), ("a", 1.0),
                                        (0.0, np.nan), (2.0, 1.0)])
    def test_malformed_time_bounds_raise(self, bounds):
        u, v = _uv()
        with pytest.raises(FlowFieldError):
            ArrayField2D(u, u, v, v, bounds)

    def test_degenerate_window_is_allowed(self):
        u, v = _uv()
        F = ArrayField2D(u, u, v, v, (3.0, 3.0))
        assert F.is_stationary
        assert F.time_bounds == (3.0, 3.0)

    def test_mesh_shape_must_match_grid(self):
        grid = TiledGrid((4, 4), (2, 2))
        u = np.ones((3, 2, 2))
        with pytest.raises(FlowFieldError):
            MeshField2D(u, u, u, u, (0.0, 1.0), grid)

    def test_mesh_needs_tiled_grid(self):
        u = np.ones((1, 2, 2))
        with pytest.raises(FlowFieldError):
            MeshField2D(u, u, u, u, (0.0, 1.0), grid=None)


# ---------------------------------------------------------------------------
# Immutability
# ---------------------------------------------------------------------------

class TestImmutability:
    def test_components_are_read_only_copies(self):
        u, v = _uv()
        F = ArrayField2D(u, u, v, v, (0.0, 1.0))
        u[0, 0] = 99.0
        assert F.u0[0, 0] != 99.0
        with pytest.raises(ValueError):
            F.u0[0, 0] = 1.0

    def test_attributes_cannot_be_reassigned(self):
        u, v = _uv()
        F = ArrayField2D(u, u, v, v, (0.0, 1.0))
        with pytest.raises(dataclasses.FrozenInstanceError):
            F.time_bounds = (1.0, 2.0)

    def test_with_time_bounds_returns_new_instance(self):
        u, v = _uv()
        F = ArrayField2D(u, u, v, v, (0.0, 1.0))
        G = F.with_time_bounds((1.0, 2.0))
        assert G is not F
        assert F.time_bounds == (0.0, 1.0)
        assert G.time_bounds == (1.0, 2.0)
        np.testing.assert_array_equal(G.u0, F.u0)

    def test_mesh_with_time_bounds_keeps_grid(self):
        grid = TiledGrid((4, 4), (2, 2))
        t = grid.split(np.ones((4, 4)))
        F = MeshField2D(t, t, t, t, (0.0, 1.0), grid)
        G = F.with_time_bounds((1.0, 2.0))
        assert G.grid is grid
        assert set(G.halo) == {"u0", "u1", "v0", "v1"}


# ---------------------------------------------------------------------------
# Mesh halos
# ---------------------------------------------------------------------------

class TestMeshHalo:
    def test_halo_shape(self):
        grid = TiledGrid((6, 4), (3, 2))
        t = grid.split(np.arange(24.0).reshape(6, 4))
        F = MeshField2D(t, t, t, t, (0.0, 1.0), grid)
        assert F.halo["u0"].shape == (4, 5, 4)

    def test_default_update_location_resolves_tiles(self):
        grid = TiledGrid((4, 4), (2, 2))
        t = grid.split(np.zeros((4, 4)))
        F = MeshField2D(t, t, t, t, (0.0, 1.0), grid)
        state = np.array([[2.5], [0.5], [0.0]])
        F.update_location(state)
        np.testing.assert_allclose(state[:, 0], [0.5, 0.5, 1.0])
