"""Utility modules."""

from pydisplace.utils.coordinate_converter import CoordinateConverter
from pydisplace.utils.flow_fields import (
    convert_to_flow_fields,
    nearest_to_xy,
    random_flow_field,
    sinusoidal_flow_field,
)

__all__ = [
    'CoordinateConverter',
    'convert_to_flow_fields',
    'nearest_to_xy',
    'random_flow_field',
    'sinusoidal_flow_field',
]
