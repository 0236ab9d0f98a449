"""
Core geo modules.

Contains spherical geometry, proximity clustering and viewport/LOD
reduction. Every function here is synchronous and free of shared state.
"""
from globe_geo.core.geometry import (
    Coordinate,
    BoundingBox,
    DistanceUnit,
    distance,
    bearing,
    destination,
    midpoint,
    centroid,
    bounding_box,
    is_point_in_bounds,
    interpolate_great_circle,
    normalize_longitude,
    normalize_latitude,
    validate,
    EARTH_RADIUS_KM,
    EARTH_RADIUS_MILES,
)
from globe_geo.core.clustering import (
    GeoPoint,
    GeoCluster,
    ProximityClusterer,
    cluster_points,
    select_representative,
)
from globe_geo.core.viewport import (
    LODLevel,
    ViewportReducer,
    ViewportResult,
    filter_by_bounds,
    lod_for_altitude,
    subsample,
    marker_size,
)

__all__ = [
    # Geometry
    'Coordinate',
    'BoundingBox',
    'DistanceUnit',
    'distance',
    'bearing',
    'destination',
    'midpoint',
    'centroid',
    'bounding_box',
    'is_point_in_bounds',
    'interpolate_great_circle',
    'normalize_longitude',
    'normalize_latitude',
    'validate',
    'EARTH_RADIUS_KM',
    'EARTH_RADIUS_MILES',
    # Clustering
    'GeoPoint',
    'GeoCluster',
    'ProximityClusterer',
    'cluster_points',
    'select_representative',
    # Viewport
    'LODLevel',
    'ViewportReducer',
    'ViewportResult',
    'filter_by_bounds',
    'lod_for_altitude',
    'subsample',
    'marker_size',
]
