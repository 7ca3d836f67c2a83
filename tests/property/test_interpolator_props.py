"""Property-based tests for C-grid interpolation.

Uses hypothesis for automated input generation (100 examples each).
"""

from __future__ import annotations

import numpy as np
from hypothesis import given, settings, strategies as st

from pydisplace.core.fields import ArrayField2D, ArrayField3D
from pydisplace.core.interpolator import (
    OFFSETS_2D,
    Interpolator,
    bilinear_periodic,
    time_weight,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_field_2d(nx: int = 6, ny: int = 5, time_bounds=(0.0, 4.0),
                   seed: int = 42) -> ArrayField2D:
    rng = np.random.default_rng(seed)
    u0, u1, v0, v1 = rng.uniform(-1, 1, (4, nx, ny))
    return ArrayField2D(u0, u1, v0, v1, time_bounds)


def _make_field_3d(nx: int = 4, ny: int = 5, nz: int = 3, seed: int = 7) -> ArrayField3D:
    rng = np.random.default_rng(seed)
    arrays = rng.uniform(-1, 1, (6, nx, ny, nz))
    return ArrayField3D(*arrays, (0.0, 1.0))


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

coord = st.floats(min_value=-20.0, max_value=20.0,
                  allow_nan=False, allow_infinity=False)

times = st.floats(min_value=-10.0, max_value=10.0,
                  allow_nan=False, allow_infinity=False)

shifts = st.integers(min_value=-3, max_value=3)


# ---------------------------------------------------------------------------
# Property 1: periodicity
# ---------------------------------------------------------------------------

@given(x=coord, y=coord, kx=shifts, ky=shifts)
@settings(max_examples=100)
def test_property_1_periodic_in_x_and_y(x, y, kx, ky):
    """Property 1: shifting a position by whole domain lengths leaves
    the interpolated velocity unchanged."""
    F = _make_field_2d()
    interp = Interpolator(F)
    nx, ny = F.shape
    a = interp.velocity(np.array([[x], [y]]), 1.0)
    b = interp.velocity(np.array([[x + kx * nx], [y + ky * ny]]), 1.0)
    np.testing.assert_allclose(a, b, atol=1e-9)


@given(x=coord, y=coord, z=st.floats(min_value=-2.0, max_value=5.0), k=shifts)
@settings(max_examples=100)
def test_property_1_periodic_3d(x, y, z, k):
    """Property 1 (3-D): horizontal periodicity holds at any depth."""
    F = _make_field_3d()
    interp = Interpolator(F)
    nx, ny, _ = F.shape
    a = interp.velocity(np.array([[x], [y], [z]]), 0.5)
    b = interp.velocity(np.array([[x + k * nx], [y - k * ny], [z]]), 0.5)
    np.testing.assert_allclose(a, b, atol=1e-9)


# ---------------------------------------------------------------------------
# Property 2: node exactness and bounds
# ---------------------------------------------------------------------------

@given(i=st.integers(min_value=0, max_value=5), j=st.integers(min_value=0, max_value=4))
@settings(max_examples=100)
def test_property_2_exact_at_nodes(i, j):
    """Property 2: at a staggered node the stored value is returned."""
    F = _make_field_2d()
    ox, oy = OFFSETS_2D["u"]
    value = bilinear_periodic(F.u0, np.array([i + ox]), np.array([j + oy]), OFFSETS_2D["u"])
    np.testing.assert_allclose(value, [F.u0[i, j]], atol=1e-12)


@given(x=coord, y=coord)
@settings(max_examples=100)
def test_property_2_within_data_range(x, y):
    """Property 2: bilinear weights are convex, so results stay inside
    the range of the data."""
    F = _make_field_2d()
    value = bilinear_periodic(F.v0, np.array([x]), np.array([y]), OFFSETS_2D["v"])
    assert F.v0.min() - 1e-12 <= value[0] <= F.v0.max() + 1e-12


# ---------------------------------------------------------------------------
# Property 3: temporal blending
# ---------------------------------------------------------------------------

@given(t=times)
@settings(max_examples=100)
def test_property_3_linear_in_time(t):
    """Property 3: velocity is the linear blend of the two snapshots,
    extrapolated outside the window."""
    F = _make_field_2d(time_bounds=(0.0, 4.0))
    interp = Interpolator(F)
    pos = np.array([[1.3, 4.7], [2.2, 0.1]])
    w = time_weight(t, F.time_bounds)

    first = Interpolator(ArrayField2D(F.u0, F.u0, F.v0, F.v0, F.time_bounds)).velocity(pos, 0.0)
    second = Interpolator(ArrayField2D(F.u1, F.u1, F.v1, F.v1, F.time_bounds)).velocity(pos, 0.0)
    np.testing.assert_allclose(interp.velocity(pos, t), (1 - w) * first + w * second, atol=1e-9)


@given(t=times, t0=times)
@settings(max_examples=100)
def test_property_3_degenerate_window_uses_first_snapshot(t, t0):
    """Property 3: with ``t_start == t_end`` the first snapshot is used
    at every time and no NaN appears."""
    F = _make_field_2d(time_bounds=(t0, t0))
    pos = np.array([[0.4], [3.3]])
    out = Interpolator(F).velocity(pos, t)
    assert np.all(np.isfinite(out))
    expected = Interpolator(ArrayField2D(F.u0, F.u0, F.v0, F.v0, (0.0, 1.0))).velocity(pos, 0.0)
    np.testing.assert_array_equal(out, expected)
