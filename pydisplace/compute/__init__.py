"""Batched and parallel integration of particle sets."""

from pydisplace.compute.parallel import ParallelExecutor

__all__ = [
    'ParallelExecutor',
]
