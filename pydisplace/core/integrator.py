"""ODE solve capabilities for particle sets.

A solve capability is any callable ``solver(problem) -> ODESolution``. Two
are provided:

- ``ODESolver``: adaptive Runge-Kutta through ``scipy.integrate.solve_ivp``
  (RK45 by default, the embedded 5(4) scheme standing in for Tsit5).
- ``HeunSolver``: fixed-step Heun (Modified Euler) predictor-corrector.

Both integrate every particle of the ``(n_state, n_particles)`` state in
one system and apply the problem callback (tile-crossing resolution) to
each saved state.
"""

from __future__ import annotations

import logging

import numpy as np
from scipy.integrate import solve_ivp

from pydisplace.core.models import (
    NumericalInstabilityError,
    ODEProblem,
    ODESolution,
    SolverConfig,
    SolverError,
)

logger = logging.getLogger(__name__)


def save_grid(t0: float, t1: float, spacing: float) -> np.ndarray:
    """Times ``t0, t0 ± spacing, ...`` up to and including ``t1``.

    The grid follows the integration direction; ``t1`` is appended when it
    is not a whole number of *spacing* away from ``t0``.
    """
    if spacing <= 0:
        raise ValueError(f"Save spacing must be positive, got {spacing}")
    span = t1 - t0
    sign = 1.0 if span >= 0 else -1.0
    n = int(np.floor(abs(span) / spacing + 1e-9))
    grid = t0 + sign * spacing * np.arange(n + 1)
    tol = 1e-9 * max(abs(span), spacing)
    if abs(grid[-1] - t1) <= tol:
        grid[-1] = t1
    else:
        grid = np.append(grid, t1)
    return grid


class ODESolver:
    """Adaptive solve capability backed by ``scipy.integrate.solve_ivp``.

    Parameters
    ----------
    config : SolverConfig, optional
        Method, tolerances and save spacing. Defaults to RK45 with
        ``rtol = atol = 1e-8`` saving every accepted step.

    Raises
    ------
    SolverError
        If ``solve_ivp`` reports failure.
    NumericalInstabilityError
        If a saved state contains NaN or Inf.
    """

    def __init__(self, config: SolverConfig | None = None) -> None:
        self.config = config or SolverConfig()

    def __repr__(self) -> str:
        c = self.config
        return (
            f"ODESolver(method={c.method!r}, rtol={c.rtol}, atol={c.atol}, "
            f"saveat={c.saveat})"
        )

    def __call__(self, problem: ODEProblem) -> ODESolution:
        t0, t1 = (float(t) for t in problem.tspan)
        u0 = np.array(problem.u0, dtype=float)
        if t0 == t1:
            logger.warning(f"Zero-length window at t={t0}; returning the initial state")
            return _finish(problem, np.array([t0]), u0[np.newaxis])

        cfg = self.config
        t_eval = None if cfg.saveat is None else save_grid(t0, t1, float(cfg.saveat))

        shape = u0.shape
        if u0.size == 0:
            # solve_ivp cannot size an empty state
            t = np.array([t0, t1]) if t_eval is None else t_eval
            logger.debug(f"Empty state over [{t0}, {t1}]; nothing to integrate")
            return _finish(problem, t, np.zeros((len(t),) + shape))

        params = problem.params
        rhs = problem.rhs

        def fun(t, y):
            return np.asarray(rhs(y.reshape(shape), params, t), dtype=float).ravel()

        sol = solve_ivp(
            fun,
            (t0, t1),
            u0.ravel(),
            method=cfg.method,
            t_eval=t_eval,
            rtol=cfg.rtol,
            atol=cfg.atol,
            max_step=cfg.max_step,
        )
        if not sol.success:
            raise SolverError(f"solve_ivp failed over [{t0}, {t1}]: {sol.message}")

        logger.debug(
            "solve_ivp %s: %d saves, %d rhs evaluations over [%s, %s]",
            cfg.method, len(sol.t), sol.nfev, t0, t1,
        )
        u = sol.y.T.reshape((-1,) + shape)
        return _finish(problem, np.asarray(sol.t, dtype=float), u)


class HeunSolver:
    """Fixed-step Heun (Modified Euler) predictor-corrector.

    Advances the whole state with:

        P(t+Δt) = P(t) + 0.5 * [V(P(t), t) + V(P'(t+Δt), t+Δt)] * Δt

    where ``P' = P + V(P, t) * Δt``. The last step is shortened so the
    window end is hit exactly; every step is saved.

    Parameters
    ----------
    dt : float
        Step magnitude (positive); its sign follows the window direction.
    """

    def __init__(self, dt: float) -> None:
        if not dt > 0:
            raise ValueError(f"dt must be positive, got {dt}")
        self.dt = float(dt)

    def __repr__(self) -> str:
        return f"HeunSolver(dt={self.dt})"

    def step(self, problem: ODEProblem, P: np.ndarray, t: float, dt: float) -> np.ndarray:
        """Perform one Heun step of signed size *dt* from ``(P, t)``."""
        # --- Predictor stage ---
        V1 = np.asarray(problem.rhs(P, problem.params, t), dtype=float)
        P_pred = P + V1 * dt

        # --- Corrector stage ---
        V2 = np.asarray(problem.rhs(P_pred, problem.params, t + dt), dtype=float)
        return P + 0.5 * (V1 + V2) * dt

    def __call__(self, problem: ODEProblem) -> ODESolution:
        t0, t1 = (float(t) for t in problem.tspan)
        P = np.array(problem.u0, dtype=float)
        times = save_grid(t0, t1, self.dt) if t0 != t1 else np.array([t0])

        states = [P.copy()]
        for ta, tb in zip(times[:-1], times[1:]):
            P = self.step(problem, P, ta, tb - ta)
            if problem.callback is not None:
                P = problem.callback(P)
            states.append(P.copy())

        logger.debug("Heun: %d steps over [%s, %s]", len(times) - 1, t0, t1)
        return _finish(problem, times, np.stack(states))


def solver_default() -> ODESolver:
    """Default solve capability: RK45 with ``rtol = atol = 1e-8``."""
    return ODESolver(SolverConfig())


# -----------------------------------------------------------------------
# Pure helper functions
# -----------------------------------------------------------------------

def _finish(problem: ODEProblem, t: np.ndarray, u: np.ndarray) -> ODESolution:
    """Check saved states, apply the callback and wrap them up."""
    u = np.array(u, dtype=float)
    bad = ~np.all(np.isfinite(u.reshape(u.shape[0], -1)), axis=1)
    if np.any(bad):
        first = int(np.argmax(bad))
        raise NumericalInstabilityError(
            f"Non-finite state at t={t[first]} (save {first} of {len(t)})"
        )
    if problem.callback is not None:
        for s in range(u.shape[0]):
            u[s] = problem.callback(u[s])
    return ODESolution(t=t, u=u)
