"""Core trajectory integration: flow fields, interpolation, solvers and particle sets."""

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

__all__ = [
    # Fields
    'ArrayField2D',
    'ArrayField3D',
    'FlowField',
    'MeshField2D',
    'MeshField3D',
    'flow_fields',
    # Particle sets
    'ParticleSet',
    # Solvers
    'HeunSolver',
    'ODESolver',
    'solver_default',
    # Interpolation and velocity
    'ArrayVelocity',
    'Interpolator',
    'MeshVelocity',
    'default_velocity',
    'time_weight',
    # Postprocessing
    'postprocess_mesh',
    'postprocess_mesh_3d',
    'postprocess_table',
    'postprocess_xy',
    'postprocess_xyz',
    # Models
    'DAY',
    'MONTH',
    'ONE_MONTH',
    'ODEProblem',
    'ODESolution',
    'ParticleSetConfig',
    'SolverConfig',
    # Exceptions
    'ConfigParseError',
    'FlowFieldError',
    'NumericalInstabilityError',
    'PyDisplaceError',
    'SolverError',
    'TileError',
]
