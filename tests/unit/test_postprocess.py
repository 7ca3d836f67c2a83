"""Unit tests for the record postprocessors."""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from pydisplace.core.fields import ArrayField2D, ArrayField3D, MeshField2D, MeshField3D
from pydisplace.core.models import ODESolution
from pydisplace.core.postprocess import (
    default_postprocess,
    empty_record,
    postprocess_mesh,
    postprocess_mesh_3d,
    postprocess_table,
    postprocess_xy,
    postprocess_xyz,
    record_columns,
)
from pydisplace.grid.tiles import TiledGrid


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _solution(n_state: int, n_particles: int = 3, n_saved: int = 2) -> ODESolution:
    t = np.arange(n_saved, dtype=float)
    u = np.arange(n_saved * n_state * n_particles, dtype=float).reshape(
        n_saved, n_state, n_particles) / 10.0
    return ODESolution(t=t, u=u)


def _array2d(shape=(4, 4)):
    z = np.zeros(shape)
    return ArrayField2D(z, z, z, z, (0.0, 1.0))


# ---------------------------------------------------------------------------
# Row order
# ---------------------------------------------------------------------------

class TestRowOrder:
    def test_grouped_by_time_in_id_order(self):
        sol = _solution(2, n_particles=3, n_saved=2)
        df = postprocess_xy(sol, _array2d((100, 100)), np.array([7, 3, 5]))
        assert list(df.columns) == ["ID", "x", "y", "t"]
        assert len(df) == 6
        assert df["ID"].tolist() == [7, 3, 5, 7, 3, 5]
        assert df["t"].tolist() == [0.0, 0.0, 0.0, 1.0, 1.0, 1.0]
        np.testing.assert_allclose(df["x"], [0.0, 0.1, 0.2, 0.6, 0.7, 0.8])
        np.testing.assert_allclose(df["y"], [0.3, 0.4, 0.5, 0.9, 1.0, 1.1])

    def test_id_count_must_match(self):
        with pytest.raises(ValueError):
            postprocess_xy(_solution(2), _array2d(), np.array([1, 2]))

    def test_inputs_untouched(self):
        sol = _solution(2)
        before = sol.u.copy()
        ids = np.array([0, 1, 2])
        a = postprocess_xy(sol, _array2d(), ids)
        b = postprocess_xy(sol, _array2d(), ids)
        np.testing.assert_array_equal(sol.u, before)
        assert a is not b
        pd.testing.assert_frame_equal(a, b)


# ---------------------------------------------------------------------------
# Variants
# ---------------------------------------------------------------------------

class TestVariants:
    def test_xy_wraps_into_domain(self):
        sol = ODESolution(t=np.array([0.0]), u=np.array([[[-0.5, 9.0], [4.5, 2.0]]]))
        df = postprocess_xy(sol, _array2d((4, 4)), np.array([0, 1]))
        np.testing.assert_allclose(df["x"], [3.5, 1.0])
        np.testing.assert_allclose(df["y"], [0.5, 2.0])

    def test_xy_tiny_negative_folds_to_zero(self):
        sol = ODESolution(t=np.array([0.0]), u=np.array([[[-1e-17], [-1e-17]]]))
        df = postprocess_xy(sol, _array2d((16, 16)), np.array([0]))
        assert df["x"].iloc[0] == 0.0
        assert df["y"].iloc[0] == 0.0

    def test_xyz_keeps_z(self):
        z = np.zeros((4, 4, 2))
        F = ArrayField3D(z, z, z, z, z, z, (0.0, 1.0))
        sol = ODESolution(t=np.array([0.0]), u=np.array([[[5.0], [1.0], [-0.3]]]))
        df = postprocess_xyz(sol, F, np.array([0]))
        assert list(df.columns) == ["ID", "x", "y", "z", "t"]
        assert df["x"].iloc[0] == pytest.approx(1.0)
        assert df["z"].iloc[0] == pytest.approx(-0.3)

    def test_mesh_lonlat_and_fid(self):
        grid = TiledGrid((360, 180), (180, 180))
        t = grid.split(np.zeros((360, 180)))
        F = MeshField2D(t, t, t, t, (0.0, 1.0), grid)
        sol = ODESolution(t=np.array([0.0]), u=np.array([[[0.5, 0.5], [90.0, 90.0], [0.0, 1.0]]]))
        df = postprocess_mesh(sol, F, np.array([1, 2]))
        assert list(df.columns) == ["ID", "x", "y", "fid", "t", "lon", "lat"]
        assert df["fid"].dtype.kind == "i"
        np.testing.assert_allclose(df["lon"], [-179.5, 0.5])
        np.testing.assert_allclose(df["lat"], [0.0, 0.0])

    def test_mesh_3d_columns(self):
        grid = TiledGrid((4, 4), (2, 2))
        t = grid.split(np.zeros((4, 4, 2)))
        F = MeshField3D(t, t, t, t, t, t, (0.0, 1.0), grid)
        sol = ODESolution(t=np.array([0.0, 1.0]), u=np.zeros((2, 4, 3)))
        df = postprocess_mesh_3d(sol, F, np.arange(3))
        assert list(df.columns) == ["ID", "x", "y", "z", "fid", "t", "lon", "lat"]
        assert len(df) == 6

    def test_table_names_state_rows(self):
        df = postprocess_table(_solution(4, n_particles=2))
        assert list(df.columns) == ["ID", "x", "y", "z", "s3", "t"]
        assert df["ID"].tolist() == [0, 1, 0, 1]


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

class TestDefaults:
    def test_default_postprocess_per_variant(self):
        assert default_postprocess(_array2d()) is postprocess_xy
        assert default_postprocess({"time_bounds": (0, 1)}) is postprocess_table

    def test_empty_record_dtypes(self):
        df = empty_record(("ID", "x", "fid", "t"))
        assert len(df) == 0
        assert df["ID"].dtype == np.int64
        assert df["fid"].dtype == np.int64
        assert df["x"].dtype == np.float64

    def test_record_columns_for_bundle(self):
        assert record_columns({"a": 1}, 3) == ("ID", "x", "y", "z", "t")
        with pytest.raises(ValueError):
            record_columns({"a": 1})
