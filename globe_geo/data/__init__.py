"""
Data loading and validation module.

Provides the Pydantic record schema and functions that turn photo rows
into validated GeoPoints.
"""
from globe_geo.data.schemas import PhotoRecord
from globe_geo.data.loaders import load_points_csv, frame_to_points, records_to_points

__all__ = [
    'PhotoRecord',
    'load_points_csv',
    'frame_to_points',
    'records_to_points',
]
