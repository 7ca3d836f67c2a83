"""ParticleSet: particle state, trajectory record and the integration driver.

A ``ParticleSet`` owns the current particle positions, their ids, the flow
field (or a plain parameter bundle) and three strategies resolved once at
construction: the velocity function, the solve capability and the
postprocessor. :meth:`ParticleSet.integrate` advances every particle over a
time window and appends the newly sampled rows to the record:

    build ODEProblem → solve → postprocess → append new rows → move position

Example::

    F = sinusoidal_flow_field()
    P = ParticleSet.from_field(F, x, y)
    P.integrate((0.0, 5.0)).integrate((5.0, 10.0))
    P.record.groupby("ID").size()
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Mapping

import numpy as np
import pandas as pd

from pydisplace.core.fields import FlowField
from pydisplace.core.integrator import solver_default
from pydisplace.core.models import (
    FlowFieldError,
    ODEProblem,
    ONE_MONTH,
    ParticleSetConfig,
)
from pydisplace.core.postprocess import default_postprocess, empty_record, record_columns
from pydisplace.core.velocity import default_velocity

logger = logging.getLogger(__name__)


def _time_bounds_of(params) -> tuple[float, float] | None:
    """``time_bounds`` of a flow field or mapping-style parameter bundle."""
    if isinstance(params, Mapping):
        bounds = params.get("time_bounds")
    else:
        bounds = getattr(params, "time_bounds", None)
    if bounds is None:
        return None
    return float(bounds[0]), float(bounds[1])


class ParticleSet:
    """Particles advected through a flow field.

    Parameters
    ----------
    position : array_like
        Initial state, shape ``(n_state, n_particles)`` with rows
        ``x, y[, z][, fid]`` in grid-index coordinates.
    field : FlowField or object
        Flow field variant, or any parameter bundle understood by a custom
        velocity function.
    ids : array_like, optional
        Unique integer particle ids (default ``0 .. n_particles - 1``).
    record : pandas.DataFrame, optional
        Existing trajectory record to extend (default: empty).
    config : ParticleSetConfig, optional
        Strategies and auxiliary data. Strategies left as ``None`` default
        to those of the field variant.

    Raises
    ------
    ValueError
        If *position* is not 2-D or *ids* does not match the particles.
    FlowFieldError
        If no default velocity exists for *field* and none was given.
    """

    def __init__(
        self,
        position,
        field: FlowField | Any,
        ids=None,
        record: pd.DataFrame | None = None,
        config: ParticleSetConfig | None = None,
    ) -> None:
        position = np.array(position, dtype=float)
        if position.ndim == 1:
            position = position[:, np.newaxis]
        if position.ndim != 2:
            raise ValueError(
                f"position must be (n_state, n_particles), got shape {position.shape}"
            )
        n = position.shape[1]

        ids = np.arange(n) if ids is None else np.asarray(ids)
        if ids.shape != (n,):
            raise ValueError(f"Got {ids.size} ids for {n} particles")
        if not np.issubdtype(ids.dtype, np.integer):
            raise ValueError(f"ids must be integers, got dtype {ids.dtype}")
        if len(np.unique(ids)) != n:
            raise ValueError("ids must be unique")

        config = config or ParticleSetConfig()
        self.position = position
        self.field = field
        self.ids = ids.astype(np.int64)
        self.velocity = config.velocity or default_velocity(field)
        self.solver = config.solver or solver_default()
        self.postprocess = config.postprocess or default_postprocess(field)
        self.diagnostics = config.diagnostics
        self.metadata = config.metadata

        if record is None:
            record = empty_record(record_columns(field, position.shape[0]))
        self.record = record

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def from_field(cls, field: FlowField, x, y, z=None, fid=None,
                   ids=None, config: ParticleSetConfig | None = None) -> "ParticleSet":
        """Build a set whose state rows match *field*'s variant.

        ``z`` is required for 3-D variants; ``fid`` defaults to tile 0 on
        mesh variants.
        """
        rows = [np.atleast_1d(np.asarray(x, dtype=float)),
                np.atleast_1d(np.asarray(y, dtype=float))]
        n = rows[0].size
        if field.n_dims == 3:
            if z is None:
                raise ValueError(f"{type(field).__name__} needs a z coordinate")
            rows.append(np.broadcast_to(np.asarray(z, dtype=float), (n,)))
        if field.is_mesh:
            fid = 0 if fid is None else fid
            rows.append(np.broadcast_to(np.asarray(fid, dtype=float), (n,)))
        return cls(np.vstack(rows), field, ids=ids, config=config)

    @classmethod
    def from_dict(cls, mapping: Mapping[str, Any]) -> "ParticleSet":
        """Build a set from keyword-style entries.

        Recognised keys: ``position`` (required), ``record``, ``ID``,
        ``velocity``, ``integration``, ``postprocessing``, ``parameters``,
        ``diagnostics``, ``metadata``. Without ``parameters`` the bundle
        ``{"time_bounds": ONE_MONTH}`` is used.
        """
        if "position" not in mapping:
            raise ValueError("'position' is required")
        unknown = set(mapping) - {
            "position", "record", "ID", "velocity", "integration",
            "postprocessing", "parameters", "diagnostics", "metadata",
        }
        if unknown:
            raise ValueError(f"Unknown ParticleSet keys: {sorted(unknown)}")

        config = ParticleSetConfig(
            velocity=mapping.get("velocity"),
            solver=mapping.get("integration"),
            postprocess=mapping.get("postprocessing"),
            diagnostics=dict(mapping.get("diagnostics") or {}),
            metadata=dict(mapping.get("metadata") or {}),
        )
        params = mapping.get("parameters")
        if params is None:
            params = {"time_bounds": ONE_MONTH}
        return cls(
            mapping["position"], params,
            ids=mapping.get("ID"), record=mapping.get("record"), config=config,
        )

    @property
    def config(self) -> ParticleSetConfig:
        """Resolved strategies and auxiliary data of this set."""
        return ParticleSetConfig(
            velocity=self.velocity,
            solver=self.solver,
            postprocess=self.postprocess,
            diagnostics=self.diagnostics,
            metadata=self.metadata,
        )

    # ------------------------------------------------------------------
    # Integration
    # ------------------------------------------------------------------

    def integrate(self, time_window=None) -> "ParticleSet":
        """Advance all particles over *time_window* and extend the record.

        Parameters
        ----------
        time_window : tuple[float, float], optional
            ``(t_start, t_end)``; may run backward. Defaults to the field's
            ``time_bounds``.

        Returns
        -------
        ParticleSet
            ``self``, so calls can be chained.

        Raises
        ------
        FlowFieldError
            If no window is given and the field has no ``time_bounds``.
        SolverError, NumericalInstabilityError
            Propagated unmodified from the solve capability.
        """
        if time_window is None:
            time_window = _time_bounds_of(self.field)
            if time_window is None:
                raise FlowFieldError(
                    f"{type(self.field).__name__} has no time_bounds; pass time_window"
                )
        t0, t1 = float(time_window[0]), float(time_window[1])

        problem = ODEProblem(
            rhs=self.velocity,
            u0=self.position.copy(),
            tspan=(t0, t1),
            params=self.field,
            callback=getattr(self.field, "update_location", None),
        )
        solution = self.solver(problem)
        table = self.postprocess(solution, self.field, self.ids, (t0, t1))

        new_rows = self._new_rows(table, t0, t1)
        if len(self.record) == 0:
            self.record = new_rows.reset_index(drop=True)
        elif len(new_rows):
            self.record = pd.concat([self.record, new_rows], ignore_index=True)

        self.position = solution.final

        logger.info(
            f"Integrated {self.n_particles} particles over [{t0}, {t1}]: "
            f"{len(solution)} saves, {len(new_rows)} new rows, "
            f"record has {len(self.record)} rows"
        )
        return self

    def _new_rows(self, table: pd.DataFrame, t0: float, t1: float) -> pd.DataFrame:
        """Rows of *table* that extend the record.

        The first sample of a window is the state the previous window ended
        on, so particles that already have recorded rows skip it. Every
        later sample is appended, keeping the last recorded row of each
        particle equal to its ``position``. Particles without any recorded
        row keep every row.
        """
        missing = {"ID", "t"} - set(table.columns)
        if missing:
            raise ValueError(f"Postprocessed table lacks columns {sorted(missing)}")
        if len(self.record) == 0 or len(table) == 0:
            return table

        recorded = table["ID"].isin(self.record["ID"].unique())
        start = table["t"] == table["t"].iloc[0]
        keep = ~(recorded & start)
        dropped = int((~keep).sum())
        if dropped:
            logger.debug(f"Skipped {dropped} rows repeating the window start [{t0}, {t1}]")
        return table[keep.to_numpy()]

    # ------------------------------------------------------------------
    # Copies
    # ------------------------------------------------------------------

    def similar(self) -> "ParticleSet":
        """New set with the same field, strategies and ids.

        Position is a fresh uninitialised buffer of the same shape and
        dtype; the record is empty with the same columns.
        """
        out = ParticleSet(
            np.empty_like(self.position),
            self.field,
            ids=self.ids.copy(),
            record=self.record.iloc[0:0].copy(),
            config=self._copied_config(),
        )
        return out

    def subset(self, indices) -> "ParticleSet":
        """Independent set holding the particles at column *indices*.

        Position and record are copies; the field and strategies are shared.
        """
        indices = np.atleast_1d(np.asarray(indices))
        ids = self.ids[indices]
        record = self.record[self.record["ID"].isin(ids)].copy() \
            if len(self.record) else self.record.iloc[0:0].copy()
        return ParticleSet(
            self.position[:, indices].copy(),
            self.field,
            ids=ids,
            record=record.reset_index(drop=True),
            config=self._copied_config(),
        )

    def _copied_config(self) -> ParticleSetConfig:
        config = self.config
        config.diagnostics = copy.deepcopy(self.diagnostics)
        config.metadata = copy.deepcopy(self.metadata)
        return config

    # ------------------------------------------------------------------
    # Summaries
    # ------------------------------------------------------------------

    def diff(self) -> pd.DataFrame:
        """Per-particle record length and first→last displacement.

        Columns are ``ID, nrow`` and ``dlon, dlat`` when the record carries
        geographic coordinates, else ``dx, dy``.
        """
        rec = self.record
        if {"lon", "lat"} <= set(rec.columns):
            pairs = (("dlon", "lon"), ("dlat", "lat"))
        else:
            pairs = (("dx", "x"), ("dy", "y"))

        grouped = rec.groupby("ID", sort=False)
        out = pd.DataFrame({"nrow": grouped.size()})
        for name, col in pairs:
            out[name] = grouped[col].last() - grouped[col].first()
        return out.reset_index()

    @property
    def shape(self) -> tuple[int, int]:
        return self.position.shape

    @property
    def n_particles(self) -> int:
        return self.position.shape[1]

    def __len__(self) -> int:
        return self.n_particles

    def __repr__(self) -> str:
        postprocess = getattr(self.postprocess, "__name__", repr(self.postprocess))
        return (
            f"ParticleSet(n_particles={self.n_particles}, n_state={self.position.shape[0]}, "
            f"field={type(self.field).__name__}, velocity={self.velocity!r}, "
            f"solver={self.solver!r}, postprocess={postprocess}, "
            f"record_rows={len(self.record)})"
        )
