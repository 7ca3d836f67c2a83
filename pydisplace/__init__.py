"""pydisplace - trajectories of individuals advected by gridded flow fields.

Particles ("individuals") are integrated through a velocity field given on
a C-grid, either as doubly periodic arrays or as a tiled mesh, and their
trajectories are accumulated in a pandas record table.

Package Structure:
    core/       - Flow fields, interpolation, solvers, particle sets
    grid/       - Tiled grid and tile-crossing resolution
    data/       - Solver namelist parser and writer
    utils/      - Coordinate conversions and example flow fields
    compute/    - Batched parallel integration
"""

__version__ = "0.1.0"

# Core
from pydisplace.core.fields import (
    ArrayField2D,
    ArrayField3D,
    FlowField,
    MeshField2D,
    MeshField3D,
    flow_fields,
)
from pydisplace.core.individuals import ParticleSet
from pydisplace.core.integrator import HeunSolver, ODESolver, solver_default
from pydisplace.core.interpolator import Interpolator, time_weight
from pydisplace.core.models import (
    DAY,
    MONTH,
    ONE_MONTH,
    ConfigParseError,
    FlowFieldError,
    NumericalInstabilityError,
    ODEProblem,
    ODESolution,
    ParticleSetConfig,
    PyDisplaceError,
    SolverConfig,
    SolverError,
    TileError,
)
from pydisplace.core.postprocess import (
    postprocess_mesh,
    postprocess_mesh_3d,
    postprocess_table,
    postprocess_xy,
    postprocess_xyz,
)
from pydisplace.core.velocity import ArrayVelocity, MeshVelocity, default_velocity

# Grid
from pydisplace.grid.boundary import BoundaryHandler
from pydisplace.grid.tiles import TiledGrid

# Data I/O
from pydisplace.data.config_parser import load_solver_config, parse_solver_cfg, write_solver_cfg

# Utils
from pydisplace.utils.coordinate_converter import CoordinateConverter
from pydisplace.utils.flow_fields import (
    convert_to_flow_fields,
    nearest_to_xy,
    random_flow_field,
    sinusoidal_flow_field,
)

# Compute
from pydisplace.compute.parallel import ParallelExecutor

__all__ = [
    # Core - Fields
    'ArrayField2D',
    'ArrayField3D',
    'FlowField',
    'MeshField2D',
    'MeshField3D',
    'flow_fields',
    # Core - Particle sets
    'ParticleSet',
    # Core - Solvers
    'HeunSolver',
    'ODESolver',
    'solver_default',
    # Core - Interpolation and velocity
    'ArrayVelocity',
    'Interpolator',
    'MeshVelocity',
    'default_velocity',
    'time_weight',
    # Core - Postprocessing
    'postprocess_mesh',
    'postprocess_mesh_3d',
    'postprocess_table',
    'postprocess_xy',
    'postprocess_xyz',
    # Core - Models
    'DAY',
    'MONTH',
    'ONE_MONTH',
    'ODEProblem',
    'ODESolution',
    'ParticleSetConfig',
    'SolverConfig',
    # Core - Exceptions
    'ConfigParseError',
    'FlowFieldError',
    'NumericalInstabilityError',
    'PyDisplaceError',
    'SolverError',
    'TileError',
    # Grid
    'BoundaryHandler',
    'TiledGrid',
    # Data I/O
    'load_solver_config',
    'parse_solver_cfg',
    'write_solver_cfg',
    # Utils
    'CoordinateConverter',
    'convert_to_flow_fields',
    'nearest_to_xy',
    'random_flow_field',
    'sinusoidal_flow_field',
    # Compute
    'ParallelExecutor',
]
