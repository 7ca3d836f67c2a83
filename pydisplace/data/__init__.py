"""Solver configuration input/output."""

from pydisplace.data.config_parser import (
    load_solver_config,
    parse_solver_cfg,
    read_solver_cfg,
    write_solver_cfg,
)

__all__ = [
    'load_solver_config',
    'parse_solver_cfg',
    'read_solver_cfg',
    'write_solver_cfg',
]
