"""Unit tests for the SOLVER namelist parser and writer."""

from __future__ import annotations

import numpy as np
import pytest

from pydisplace.core.models import ConfigParseError, SolverConfig
from pydisplace.data.config_parser import (
    load_solver_config,
    parse_solver_cfg,
    read_solver_cfg,
    write_solver_cfg,
)


SAMPLE = """\
&SOLVER
 METHOD = 'DOP853',
 RTOL = 1e-06,
 ATOL = 1e-09,
 SAVEAT = 0.5,
 MAX_STEP = INF,
 /
"""


class TestParseSolverCfg:
    def test_sample(self):
        result = parse_solver_cfg(SAMPLE)
        assert result == {
            "method": "DOP853",
            "rtol": 1e-6,
            "atol": 1e-9,
            "saveat": 0.5,
            "max_step": np.inf,
        }

    def test_keys_are_case_insensitive(self):
        result = parse_solver_cfg("&solver\n rtol = 1e-4, method = rk23\n/\n")
        assert result == {"rtol": 1e-4, "method": "RK23"}

    def test_single_line(self):
        assert parse_solver_cfg("&SOLVER SAVEAT = 2.0 /") == {"saveat": 2.0}

    def test_saveat_none(self):
        assert parse_solver_cfg("&SOLVER\n SAVEAT = NONE,\n/") == {"saveat": None}

    def test_end_marker(self):
        assert parse_solver_cfg("&SOLVER\n ATOL = 1e-3\n&END\n") == {"atol": 1e-3}

    def test_unknown_keys_ignored(self):
        assert parse_solver_cfg("&SOLVER\n FOO = 1,\n RTOL = 0.1\n/") == {"rtol": 0.1}

    def test_missing_header(self):
        with pytest.raises(ConfigParseError) as excinfo:
            parse_solver_cfg("RTOL = 1e-3\n/")
        assert excinfo.value.line_number == 1

    def test_bad_float_reports_line(self):
        with pytest.raises(ConfigParseError) as excinfo:
            parse_solver_cfg("&SOLVER\n METHOD = 'RK45',\n RTOL = tight,\n/")
        assert excinfo.value.line_number == 3
        assert "RTOL" in str(excinfo.value)

    def test_non_positive_value(self):
        with pytest.raises(ConfigParseError):
            parse_solver_cfg("&SOLVER\n ATOL = 0.0\n/")

    def test_unknown_method(self):
        with pytest.raises(ConfigParseError):
            parse_solver_cfg("&SOLVER\n METHOD = 'Tsit5'\n/")

    def test_unterminated(self):
        with pytest.raises(ConfigParseError):
            parse_solver_cfg("&SOLVER\n RTOL = 1e-3\n")


class TestLoadAndWrite:
    def test_load_fills_defaults(self):
        config = load_solver_config("&SOLVER\n SAVEAT = 1.0\n/")
        assert config == SolverConfig(saveat=1.0)

    def test_write_then_load(self):
        config = SolverConfig(method="Radau", rtol=1e-5, atol=1e-7, saveat=None, max_step=3.0)
        assert load_solver_config(write_solver_cfg(config)) == config

    def test_default_round_trip(self):
        text = write_solver_cfg(SolverConfig())
        assert "MAX_STEP = INF" in text
        assert "SAVEAT = NONE" in text
        assert load_solver_config(text) == SolverConfig()

    def test_read_file(self, tmp_path):
        path = tmp_path / "SOLVER.CFG"
        path.write_text(SAMPLE)
        assert read_solver_cfg(path).method == "DOP853"
