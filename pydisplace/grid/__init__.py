"""Tiled grid capability used by mesh flow fields."""

from pydisplace.grid.boundary import BoundaryHandler
from pydisplace.grid.tiles import TiledGrid

__all__ = [
    'BoundaryHandler',
    'TiledGrid',
]
