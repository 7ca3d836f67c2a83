"""SOLVER namelist parser and writer.

Solver options can be kept in a small Fortran-style namelist so that runs
are reproducible from a text file:

    &SOLVER
     METHOD = 'RK45',
     RTOL = 1e-08,
     ATOL = 1e-08,
     SAVEAT = 1.0,
     MAX_STEP = INF,
     /

``SAVEAT = NONE`` records every accepted solver step. Keys are case
insensitive; unknown keys are ignored with a warning.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

import numpy as np

from pydisplace.core.models import ConfigParseError, SolverConfig

logger = logging.getLogger(__name__)

SOLVE_IVP_METHODS = ("RK45", "RK23", "DOP853", "Radau", "BDF", "LSODA")

# Mapping from namelist keys to SolverConfig field names + types
_SOLVER_KEY_MAP: dict[str, tuple[str, type]] = {
    "METHOD": ("method", str),
    "RTOL": ("rtol", float),
    "ATOL": ("atol", float),
    "SAVEAT": ("saveat", float),
    "MAX_STEP": ("max_step", float),
}

_PAIR_RE = re.compile(r'(\w+)\s*=\s*([^,/\n]+)')


def _parse_float(value: str, line_number: int, key: str) -> float:
    text = value.strip().upper().strip('.')
    if text == "INF":
        return float(np.inf)
    try:
        return float(value)
    except ValueError:
        raise ConfigParseError(
            f"Cannot parse float '{value}' for {key}",
            line_number=line_number,
            expected=f"float ({key})",
        )


def _parse_method(value: str, line_number: int) -> str:
    name = value.strip().strip("'\"")
    for method in SOLVE_IVP_METHODS:
        if method.upper() == name.upper():
            return method
    raise ConfigParseError(
        f"Unknown solver method '{name}'",
        line_number=line_number,
        expected=" | ".join(SOLVE_IVP_METHODS),
    )


def parse_solver_cfg(text: str) -> dict:
    """Parse a ``&SOLVER`` namelist into SolverConfig keyword arguments.

    Parameters
    ----------
    text : str
        Full text of the namelist.

    Returns
    -------
    dict
        Parsed values keyed by SolverConfig field name. Keys absent from
        the text are absent from the result.

    Raises
    ------
    ConfigParseError
        If the ``&SOLVER`` header is missing or a value cannot be parsed.
    """
    lines = text.splitlines()
    start = None
    for idx, raw in enumerate(lines):
        if raw.strip():
            if re.match(r'\s*&SOLVER\b', raw, flags=re.IGNORECASE):
                start = idx
            break
    if start is None:
        raise ConfigParseError(
            "Missing namelist header",
            line_number=1,
            expected="&SOLVER",
        )

    result: dict = {}
    for idx in range(start, len(lines)):
        line_number = idx + 1
        content = lines[idx]
        content = re.sub(r'&SOLVER\b', '', content, flags=re.IGNORECASE)
        content = re.sub(r'&END\b', '/', content, flags=re.IGNORECASE)
        done = '/' in content
        content = content.split('/', 1)[0]

        for key_raw, val_raw in _PAIR_RE.findall(content):
            key = key_raw.strip().upper()
            val = val_raw.strip().rstrip(',')
            if key not in _SOLVER_KEY_MAP:
                logger.warning(f"Ignoring unknown SOLVER key {key} on line {line_number}")
                continue

            field_name, field_type = _SOLVER_KEY_MAP[key]
            if field_type is str:
                result[field_name] = _parse_method(val, line_number)
            elif key == "SAVEAT" and val.strip("'\"").upper() == "NONE":
                result[field_name] = None
            else:
                number = _parse_float(val, line_number, key)
                if not number > 0:
                    raise ConfigParseError(
                        f"{key} must be positive, got {val}",
                        line_number=line_number,
                        expected="positive float",
                    )
                result[field_name] = number
        if done:
            break
    else:
        raise ConfigParseError(
            "Unterminated SOLVER namelist",
            line_number=len(lines),
            expected="'/' or &END",
        )

    return result


def load_solver_config(text: str) -> SolverConfig:
    """Parse namelist *text* into a SolverConfig (missing keys use defaults)."""
    return SolverConfig(**parse_solver_cfg(text))


def read_solver_cfg(path: str | Path) -> SolverConfig:
    """Read a SOLVER namelist file into a SolverConfig."""
    return load_solver_config(Path(path).read_text())


# ---------------------------------------------------------------------------
# SOLVER namelist writer
# ---------------------------------------------------------------------------

# Reverse mapping: SolverConfig field name → namelist key
_FIELD_TO_SOLVER_KEY: dict[str, str] = {v[0]: k for k, v in _SOLVER_KEY_MAP.items()}


def _format_float(value: float) -> str:
    if np.isinf(value):
        return "INF"
    return repr(float(value))


def write_solver_cfg(config: SolverConfig) -> str:
    """Generate a ``&SOLVER`` namelist from a SolverConfig.

    All fields are written so that :func:`load_solver_config` returns an
    equal configuration.
    """
    lines: list[str] = ["&SOLVER"]
    for field_name, key in _FIELD_TO_SOLVER_KEY.items():
        value = getattr(config, field_name)
        if field_name == "method":
            lines.append(f" {key} = '{value}',")
        elif value is None:
            lines.append(f" {key} = NONE,")
        else:
            lines.append(f" {key} = {_format_float(value)},")
    lines.append(" /")
    return "\n".join(lines) + "\n"
