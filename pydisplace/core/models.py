"""Core data models and custom exceptions for pydisplace.

Defines the exception taxonomy, the default time constants, the solver
configuration and the problem/solution containers exchanged between the
integration driver and the solve capability.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import numpy as np


# ---------------------------------------------------------------------------
# Custom Exceptions
# ---------------------------------------------------------------------------

class PyDisplaceError(Exception):
    """Base exception for all pydisplace errors."""


class FlowFieldError(PyDisplaceError):
    """Raised when flow-field components or time bounds are malformed."""


class ConfigParseError(PyDisplaceError):
    """Raised when a solver namelist has format errors.

    Attributes:
        line_number: The line number where the error was detected.
        expected: Description of the expected format.
    """

    def __init__(self, message: str, line_number: int | None = None,
                 expected: str | None = None):
        self.line_number = line_number
        self.expected = expected
        parts = [message]
        if line_number is not None:
            parts.append(f"line {line_number}")
        if expected is not None:
            parts.append(f"expected: {expected}")
        super().__init__(" | ".join(parts))


class SolverError(PyDisplaceError):
    """Raised when the solve capability fails to advance through the window."""


class NumericalInstabilityError(PyDisplaceError):
    """Raised when NaN or Inf values are detected in the solver state."""


class TileError(PyDisplaceError):
    """Raised when a tile id does not exist on the grid."""


# ---------------------------------------------------------------------------
# Time constants
# ---------------------------------------------------------------------------

DAY = 86400.0                      # seconds
MONTH = 365.0 / 12.0 * DAY         # seconds
ONE_MONTH = (-0.5 * MONTH, 0.5 * MONTH)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass
class SolverConfig:
    """Options for the default ODE solve capability.

    Attributes
    ----------
    method : str
        ``scipy.integrate.solve_ivp`` method name. ``"RK45"`` (Dormand-Prince)
        plays the role of the Tsit5 scheme used by the reference runs.
    rtol, atol : float
        Relative and absolute tolerances.
    saveat : float or None
        Spacing of the save grid. ``None`` records every accepted solver step.
    max_step : float
        Upper bound on the internal step size.
    """
    method: str = "RK45"
    rtol: float = 1e-8
    atol: float = 1e-8
    saveat: Optional[float] = None
    max_step: float = np.inf


@dataclass
class ParticleSetConfig:
    """Strategies and auxiliary data handed to a ParticleSet.

    Any strategy left as ``None`` is replaced by the default for the flow
    field variant when the particle set is built:

    - ``velocity``: interpolating velocity function for the variant
    - ``solver``: adaptive RK45 at ``rtol = atol = 1e-8``
    - ``postprocess``: variant table builder (``postprocess_table`` for a
      plain parameter bundle)
    """
    velocity: Optional[Callable] = None
    solver: Optional[Callable] = None
    postprocess: Optional[Callable] = None
    diagnostics: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Problem / solution containers
# ---------------------------------------------------------------------------

@dataclass
class ODEProblem:
    """Initial value problem for a particle set.

    Attributes
    ----------
    rhs : callable
        ``rhs(position, params, t) -> derivative`` with ``derivative`` shaped
        like ``position``.
    u0 : np.ndarray
        Initial state, shape ``(n_state, n_particles)``.
    tspan : tuple[float, float]
        Integration window; may run backward.
    params : object
        Flow field or parameter bundle forwarded to ``rhs``.
    callback : callable, optional
        Applied to every saved state (tile-crossing resolution).
    """
    rhs: Callable
    u0: np.ndarray
    tspan: tuple[float, float]
    params: Any = None
    callback: Optional[Callable[[np.ndarray], np.ndarray]] = None


@dataclass
class ODESolution:
    """Sampled trajectory returned by a solve capability.

    ``u`` has shape ``(n_saved, n_state, n_particles)`` and ``t`` has shape
    ``(n_saved,)`` with times ordered along the integration direction.
    """
    t: np.ndarray
    u: np.ndarray

    def __len__(self) -> int:
        return len(self.t)

    def __getitem__(self, idx):
        return self.u[idx]

    @property
    def n_particles(self) -> int:
        return self.u.shape[-1]

    @property
    def final(self) -> np.ndarray:
        """Deep copy of the state at the end of the window."""
        return copy.deepcopy(self.u[-1])

    def component(self, row: int) -> np.ndarray:
        """State row ``row`` for every save, shape ``(n_saved, n_particles)``."""
        return self.u[:, row, :]
