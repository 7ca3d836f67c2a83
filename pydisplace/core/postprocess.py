"""Conversion of ODE solutions into trajectory record tables.

A postprocessor is any callable
``postprocess(solution, field, ids, time_window) -> pandas.DataFrame``.
Rows are grouped by sample time; within a group particles follow ``ids``
order, so a solution with S saves of N particles gives S*N rows. Every
call builds a new frame and leaves its inputs untouched.
"""

from __future__ import annotations

import numpy as np
import pandas as pd

from pydisplace.core.fields import ArrayField2D, ArrayField3D, MeshField2D, MeshField3D
from pydisplace.core.models import ODESolution
from pydisplace.grid.boundary import _wrap_periodic

RECORD_COLUMNS = {
    ArrayField2D: ("ID", "x", "y", "t"),
    ArrayField3D: ("ID", "x", "y", "z", "t"),
    MeshField2D: ("ID", "x", "y", "fid", "t", "lon", "lat"),
    MeshField3D: ("ID", "x", "y", "z", "fid", "t", "lon", "lat"),
}

_INT_COLUMNS = ("ID", "fid")
_STATE_NAMES = ("x", "y", "z")


def empty_record(columns) -> pd.DataFrame:
    """Empty record table with typed *columns* (``ID``/``fid`` integer)."""
    return pd.DataFrame({
        name: pd.Series(dtype="int64" if name in _INT_COLUMNS else "float64")
        for name in columns
    })


def _base_columns(solution: ODESolution, ids) -> dict[str, np.ndarray]:
    n_saved = len(solution)
    ids = np.asarray(ids)
    if ids.shape != (solution.n_particles,):
        raise ValueError(
            f"Got {ids.size} ids for {solution.n_particles} particles"
        )
    return {
        "ID": np.tile(ids, n_saved),
        "t": np.repeat(np.asarray(solution.t, dtype=float), solution.n_particles),
    }


def _row(solution: ODESolution, row: int) -> np.ndarray:
    return np.array(solution.component(row), dtype=float).ravel()


# ---------------------------------------------------------------------------
# Variant postprocessors
# ---------------------------------------------------------------------------

def postprocess_xy(solution, field, ids, time_window=None) -> pd.DataFrame:
    """Record for ``ArrayField2D``: ``ID, x, y, t`` wrapped into the domain."""
    nx, ny = field.shape
    cols = _base_columns(solution, ids)
    cols["x"] = _wrap_periodic(_row(solution, 0), nx)
    cols["y"] = _wrap_periodic(_row(solution, 1), ny)
    return pd.DataFrame(cols, columns=list(RECORD_COLUMNS[ArrayField2D]))


def postprocess_xyz(solution, field, ids, time_window=None) -> pd.DataFrame:
    """Record for ``ArrayField3D``: ``ID, x, y, z, t``.

    x and y are wrapped into the periodic domain; z is kept as integrated.
    """
    nx, ny = field.shape[:2]
    cols = _base_columns(solution, ids)
    cols["x"] = _wrap_periodic(_row(solution, 0), nx)
    cols["y"] = _wrap_periodic(_row(solution, 1), ny)
    cols["z"] = _row(solution, 2)
    return pd.DataFrame(cols, columns=list(RECORD_COLUMNS[ArrayField3D]))


def postprocess_mesh(solution, field, ids, time_window=None) -> pd.DataFrame:
    """Record for ``MeshField2D``: tile coordinates plus ``lon, lat``."""
    cols = _base_columns(solution, ids)
    cols["x"] = _row(solution, 0)
    cols["y"] = _row(solution, 1)
    fid = field.grid.check_fid(_row(solution, 2))
    cols["fid"] = fid
    cols["lon"], cols["lat"] = field.grid.to_lonlat(cols["x"], cols["y"], fid)
    return pd.DataFrame(cols, columns=list(RECORD_COLUMNS[MeshField2D]))


def postprocess_mesh_3d(solution, field, ids, time_window=None) -> pd.DataFrame:
    """Record for ``MeshField3D``: as ``postprocess_mesh`` with ``z``."""
    cols = _base_columns(solution, ids)
    cols["x"] = _row(solution, 0)
    cols["y"] = _row(solution, 1)
    cols["z"] = _row(solution, 2)
    fid = field.grid.check_fid(_row(solution, 3))
    cols["fid"] = fid
    cols["lon"], cols["lat"] = field.grid.to_lonlat(cols["x"], cols["y"], fid)
    return pd.DataFrame(cols, columns=list(RECORD_COLUMNS[MeshField3D]))


def postprocess_table(solution, field=None, ids=None, time_window=None) -> pd.DataFrame:
    """Generic record: ``ID``, one column per state row, then ``t``.

    State rows are named ``x, y, z`` and then ``s3, s4, ...``. Used for
    plain parameter bundles where no flow field variant is known.
    """
    if ids is None:
        ids = np.arange(solution.n_particles)
    cols = _base_columns(solution, ids)
    names = state_names(solution.u.shape[1])
    for row, name in enumerate(names):
        cols[name] = _row(solution, row)
    return pd.DataFrame(cols, columns=["ID", *names, "t"])


def state_names(n_state: int) -> tuple[str, ...]:
    """Column names used by ``postprocess_table`` for *n_state* rows."""
    return _STATE_NAMES[:n_state] + tuple(f"s{k}" for k in range(3, n_state))


_DEFAULTS = {
    ArrayField2D: postprocess_xy,
    ArrayField3D: postprocess_xyz,
    MeshField2D: postprocess_mesh,
    MeshField3D: postprocess_mesh_3d,
}


def default_postprocess(field):
    """Postprocessor matching *field*'s variant (``postprocess_table`` otherwise)."""
    return _DEFAULTS.get(type(field), postprocess_table)


def record_columns(field, n_state: int | None = None) -> tuple[str, ...]:
    """Columns produced by the default postprocessor of *field*."""
    if type(field) in RECORD_COLUMNS:
        return RECORD_COLUMNS[type(field)]
    if n_state is None:
        raise ValueError("n_state is required for fields without a known variant")
    return ("ID", *state_names(n_state), "t")
