"""
Spherical geometry functions for geotagged photo points.

Provides distance, bearing, destination, midpoint, centroid, bounding box and
great-circle interpolation on a spherical Earth. All trigonometry runs in
radians internally; the public API takes and returns decimal degrees.

Inputs are anything exposing ``latitude`` and ``longitude`` attributes
(Coordinate, GeoPoint, caller records). Coordinates are NOT range-checked
here: callers must run ``validate`` (or ``normalize_*``) first. Unvalidated
values give mathematically defined but meaningless results, never an error.
"""
import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Protocol, Tuple, Union

import numpy as np

from globe_geo.utils.error_handling import require_non_empty
from globe_geo.utils.exceptions import InvalidInputError


# Mean Earth radius (spherical approximation)
EARTH_RADIUS_KM = 6371.0
EARTH_RADIUS_MILES = 3959.0

# Equatorial circumference used by the web-map zoom approximation
EARTH_CIRCUMFERENCE_KM = 40075.0
MIN_ZOOM = 1
MAX_ZOOM = 18


class DistanceUnit(str, Enum):
    """Units accepted by distance-based functions."""
    KM = "km"
    MILES = "miles"


class LatLon(Protocol):
    latitude: float
    longitude: float


@dataclass(frozen=True)
class Coordinate:
    """A latitude/longitude pair in decimal degrees."""
    latitude: float
    longitude: float

    def to_dict(self) -> dict:
        return {'latitude': self.latitude, 'longitude': self.longitude}


@dataclass(frozen=True)
class BoundingBox:
    """
    Rectangular lat/lon region in decimal degrees.

    ``west > east`` is a valid box that crosses the antimeridian (e.g.
    west=170, east=-170 covers 170..180 and -180..-170).
    """
    north: float
    south: float
    east: float
    west: float

    def __post_init__(self):
        if self.south > self.north:
            raise InvalidInputError(
                f"BoundingBox south ({self.south}) must not exceed north ({self.north})"
            )

    @property
    def wraps_antimeridian(self) -> bool:
        return self.west > self.east

    def to_dict(self) -> dict:
        return {'north': self.north, 'south': self.south, 'east': self.east, 'west': self.west}


UnitLike = Union[DistanceUnit, str]


def as_unit(unit: UnitLike) -> DistanceUnit:
    """Coerce 'km' / 'miles' (or a DistanceUnit) to DistanceUnit."""
    try:
        return DistanceUnit(unit)
    except ValueError:
        raise InvalidInputError(f"Unknown distance unit: {unit!r} (expected 'km' or 'miles')") from None


def earth_radius(unit: UnitLike = DistanceUnit.KM) -> float:
    """Return the Earth radius constant for ``unit`` ('km' or 'miles')."""
    return EARTH_RADIUS_KM if as_unit(unit) is DistanceUnit.KM else EARTH_RADIUS_MILES


def _central_angle(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    # Haversine central angle, all arguments in radians
    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = (math.sin(dlat / 2)) ** 2 + \
        math.cos(lat1) * math.cos(lat2) * (math.sin(dlon / 2)) ** 2
    a = min(1.0, a)

    return 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance(a: LatLon, b: LatLon, unit: UnitLike = DistanceUnit.KM) -> float:
    """
    Calculate great-circle distance between two points using Haversine formula.

    Args:
        a: First point (decimal degrees)
        b: Second point (decimal degrees)
        unit: 'km' (default) or 'miles'

    Returns:
        Distance in the requested unit; 0 for identical points

    Example:
        >>> # Paris to London
        >>> d = distance(Coordinate(48.8566, 2.3522), Coordinate(51.5074, -0.1278))
        >>> print(f"{d:.0f} km")
        344 km

    References:
        https://en.wikipedia.org/wiki/Haversine_formula
    """
    angle = _central_angle(
        math.radians(a.latitude), math.radians(a.longitude),
        math.radians(b.latitude), math.radians(b.longitude),
    )
    return earth_radius(unit) * angle


def bearing(a: LatLon, b: LatLon) -> float:
    """
    Calculate initial bearing (forward azimuth) from point a to point b.

    Args:
        a: Starting point (decimal degrees)
        b: Destination point (decimal degrees)

    Returns:
        Bearing in degrees [0, 360), clockwise from north. Identical points
        have no direction; 0 is returned by convention.

    References:
        https://www.movable-type.co.uk/scripts/latlong.html
    """
    if a.latitude == b.latitude and a.longitude == b.longitude:
        return 0.0

    lat1_rad = math.radians(a.latitude)
    lat2_rad = math.radians(b.latitude)
    dlon = math.radians(b.longitude - a.longitude)

    y = math.sin(dlon) * math.cos(lat2_rad)
    x = math.cos(lat1_rad) * math.sin(lat2_rad) - \
        math.sin(lat1_rad) * math.cos(lat2_rad) * math.cos(dlon)

    bearing_deg = math.degrees(math.atan2(y, x))

    # Normalize to 0-360
    return (bearing_deg + 360) % 360


def bearing_difference(bearing1: float, bearing2: float) -> float:
    """
    Absolute angular difference between two bearings, in degrees [0, 180].

    Example:
        >>> bearing_difference(350, 10)
        20.0
    """
    diff = abs(bearing1 - bearing2) % 360

    # Take the smaller angle (accounting for wrap-around)
    if diff > 180:
        diff = 360 - diff

    return float(diff)


def distance_and_bearing(a: LatLon, b: LatLon,
                         unit: UnitLike = DistanceUnit.KM) -> Tuple[float, float]:
    """Convenience wrapper returning ``(distance(a, b, unit), bearing(a, b))``."""
    return distance(a, b, unit), bearing(a, b)


def destination(start: LatLon, distance: float, bearing: float,
                unit: UnitLike = DistanceUnit.KM) -> Coordinate:
    """
    Point reached by travelling ``distance`` along initial ``bearing`` from ``start``.

    Args:
        start: Starting point (decimal degrees)
        distance: Distance to travel, in ``unit``
        bearing: Initial bearing in degrees clockwise from north
        unit: 'km' (default) or 'miles'

    Returns:
        Destination coordinate, longitude normalized to [-180, 180]

    Example:
        >>> p = destination(Coordinate(0.0, 0.0), 111.19, 90)
        >>> round(p.longitude, 2)
        1.0
    """
    angular_distance = distance / earth_radius(unit)

    lat1 = math.radians(start.latitude)
    lon1 = math.radians(start.longitude)
    bearing_rad = math.radians(bearing)

    lat2 = math.asin(
        math.sin(lat1) * math.cos(angular_distance) +
        math.cos(lat1) * math.sin(angular_distance) * math.cos(bearing_rad)
    )
    lon2 = lon1 + math.atan2(
        math.sin(bearing_rad) * math.sin(angular_distance) * math.cos(lat1),
        math.cos(angular_distance) - math.sin(lat1) * math.sin(lat2)
    )

    return Coordinate(
        latitude=math.degrees(lat2),
        longitude=normalize_longitude(math.degrees(lon2)),
    )


def midpoint(a: LatLon, b: LatLon) -> Coordinate:
    """Great-circle midpoint between two points (not the average of degrees)."""
    lat1 = math.radians(a.latitude)
    lon1 = math.radians(a.longitude)
    lat2 = math.radians(b.latitude)
    dlon = math.radians(b.longitude - a.longitude)

    bx = math.cos(lat2) * math.cos(dlon)
    by = math.cos(lat2) * math.sin(dlon)

    lat3 = math.atan2(
        math.sin(lat1) + math.sin(lat2),
        math.sqrt((math.cos(lat1) + bx) ** 2 + by ** 2)
    )
    lon3 = lon1 + math.atan2(by, math.cos(lat1) + bx)

    return Coordinate(
        latitude=math.degrees(lat3),
        longitude=normalize_longitude(math.degrees(lon3)),
    )


def centroid(points: Iterable[LatLon]) -> Coordinate:
    """
    Geographic center of a point set.

    Each point is converted to a 3-D unit vector, the vectors are averaged and
    the mean is projected back to latitude/longitude. Unlike averaging degrees
    this stays correct across the antimeridian and near the poles.

    Args:
        points: Non-empty iterable of points

    Returns:
        Centroid coordinate. A single point is returned unchanged. For
        perfectly balanced inputs (e.g. two antipodal points) the mean vector
        is zero and the direction is arbitrary.

    Raises:
        EmptyInputError: If ``points`` is empty
    """
    points = list(points)
    require_non_empty(points, "centroid point set")

    if len(points) == 1:
        return Coordinate(latitude=points[0].latitude, longitude=points[0].longitude)

    x = y = z = 0.0
    for point in points:
        lat = math.radians(point.latitude)
        lon = math.radians(point.longitude)
        x += math.cos(lat) * math.cos(lon)
        y += math.cos(lat) * math.sin(lon)
        z += math.sin(lat)

    n = len(points)
    x /= n
    y /= n
    z /= n

    lon = math.atan2(y, x)
    lat = math.atan2(z, math.sqrt(x * x + y * y))

    return Coordinate(latitude=math.degrees(lat), longitude=math.degrees(lon))


def bounding_box(center: LatLon, radius_km: float) -> BoundingBox:
    """
    Smallest lat/lon box containing every point within ``radius_km`` of ``center``.

    The longitude half-span is ``asin(sin(d) / cos(lat))`` for angular radius
    ``d``, which widens the box toward the poles. If the circle reaches a pole
    (or the half-span would reach 180 degrees) the box covers all longitudes
    and its latitude is clamped. East/west are normalized and may wrap.

    Args:
        center: Circle center (decimal degrees)
        radius_km: Circle radius in kilometres (>= 0)

    Returns:
        BoundingBox, possibly with ``west > east``

    Raises:
        InvalidInputError: If ``radius_km`` is negative

    References:
        http://janmatuschek.de/LatitudeLongitudeBoundingCoordinates
    """
    if radius_km < 0:
        raise InvalidInputError(f"radius_km must be >= 0, got {radius_km}")

    angular_distance = radius_km / EARTH_RADIUS_KM
    angular_deg = math.degrees(angular_distance)

    # Latitude edges stay in degrees so a zero radius reproduces the center exactly
    north = center.latitude + angular_deg
    south = center.latitude - angular_deg

    if south > -90.0 and north < 90.0:
        ratio = math.sin(angular_distance) / math.cos(math.radians(center.latitude))
        if ratio < 1.0 and angular_distance < math.pi / 2:
            delta_lon = math.degrees(math.asin(ratio))
            return BoundingBox(
                north=north,
                south=south,
                east=normalize_longitude(center.longitude + delta_lon),
                west=normalize_longitude(center.longitude - delta_lon),
            )
    else:
        # A pole lies inside the circle
        north = min(north, 90.0)
        south = max(south, -90.0)

    return BoundingBox(north=north, south=south, east=180.0, west=-180.0)


def is_point_in_bounds(point: LatLon, box: BoundingBox) -> bool:
    """
    Check whether a point lies inside a box, honouring antimeridian wrap.

    For a wrapped box (``west > east``) a longitude is inside when it is
    ``>= west`` OR ``<= east``. Longitudes -180 and 180 name the same
    meridian and are tested in both forms.
    """
    if not box.south <= point.latitude <= box.north:
        return False

    lon = point.longitude
    if _lon_in_range(lon, box):
        return True
    return abs(lon) == 180.0 and _lon_in_range(-lon, box)


def _lon_in_range(lon: float, box: BoundingBox) -> bool:
    if box.west <= box.east:
        return box.west <= lon <= box.east
    return lon >= box.west or lon <= box.east


def interpolate_great_circle(start: LatLon, end: LatLon, fraction: float) -> Coordinate:
    """
    Point a ``fraction`` of the way along the great-circle arc from start to end.

    Args:
        start: Arc start (decimal degrees)
        end: Arc end (decimal degrees)
        fraction: Position along the arc, 0 = start, 1 = end

    Returns:
        Interpolated coordinate. A zero-length arc returns ``start``.
        Antipodal endpoints have no unique arc and give an arbitrary one.

    Raises:
        InvalidInputError: If ``fraction`` is outside [0, 1]
    """
    if not 0.0 <= fraction <= 1.0:
        raise InvalidInputError(f"fraction must be within [0, 1], got {fraction}")

    if fraction == 0.0:
        return Coordinate(latitude=start.latitude, longitude=start.longitude)
    if fraction == 1.0:
        return Coordinate(latitude=end.latitude, longitude=end.longitude)

    lat1 = math.radians(start.latitude)
    lon1 = math.radians(start.longitude)
    lat2 = math.radians(end.latitude)
    lon2 = math.radians(end.longitude)

    angular_distance = _central_angle(lat1, lon1, lat2, lon2)
    sin_d = math.sin(angular_distance)
    if angular_distance == 0.0 or sin_d == 0.0:
        return Coordinate(latitude=start.latitude, longitude=start.longitude)

    a = math.sin((1 - fraction) * angular_distance) / sin_d
    b = math.sin(fraction * angular_distance) / sin_d

    x = a * math.cos(lat1) * math.cos(lon1) + b * math.cos(lat2) * math.cos(lon2)
    y = a * math.cos(lat1) * math.sin(lon1) + b * math.cos(lat2) * math.sin(lon2)
    z = a * math.sin(lat1) + b * math.sin(lat2)

    lat = math.atan2(z, math.sqrt(x ** 2 + y ** 2))
    lon = math.atan2(y, x)

    return Coordinate(latitude=math.degrees(lat), longitude=math.degrees(lon))


def great_circle_path(start: LatLon, end: LatLon, segments: int = 32) -> List[Coordinate]:
    """
    Evenly spaced points along the great-circle arc, endpoints included.

    Used to draw travel routes between albums as curved arcs.

    Args:
        start: Arc start
        end: Arc end
        segments: Number of arc segments (>= 1); ``segments + 1`` points are returned

    Raises:
        InvalidInputError: If ``segments`` < 1
    """
    if segments < 1:
        raise InvalidInputError(f"segments must be >= 1, got {segments}")

    return [interpolate_great_circle(start, end, i / segments) for i in range(segments + 1)]


def normalize_longitude(lng: float) -> float:
    """
    Wrap a longitude into [-180, 180].

    Values already in range are returned unchanged, so the function is
    idempotent (180 stays 180, 190 becomes -170).
    """
    if -180.0 <= lng <= 180.0:
        return lng
    return ((lng + 180.0) % 360.0) - 180.0


def normalize_latitude(lat: float) -> float:
    """Clamp a latitude into [-90, 90] (latitudes do not wrap)."""
    if math.isnan(lat):
        return lat
    return max(-90.0, min(90.0, lat))


def validate(coord) -> bool:
    """
    Check that a coordinate is usable by the geometry functions.

    True when latitude and longitude are both real, finite numbers with
    latitude in [-90, 90] and longitude in [-180, 180].
    """
    lat = getattr(coord, 'latitude', None)
    lon = getattr(coord, 'longitude', None)

    for value in (lat, lon):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        if not math.isfinite(value):
            return False

    return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0


def zoom_level_for_distance(distance_km: float) -> int:
    """
    Approximate web-map zoom level that frames ``distance_km``.

    Example:
        >>> zoom_level_for_distance(100)
        10
    """
    if distance_km <= 0:
        return MAX_ZOOM

    zoom = math.log2(EARTH_CIRCUMFERENCE_KM / distance_km) + 1
    return int(round(max(MIN_ZOOM, min(MAX_ZOOM, zoom))))


def format_coordinate(coord: LatLon, precision: int = 4) -> str:
    """
    Human-readable hemisphere notation.

    Example:
        >>> format_coordinate(Coordinate(48.8566, 2.3522))
        '48.8566°N, 2.3522°E'
    """
    lat_dir = 'N' if coord.latitude >= 0 else 'S'
    lon_dir = 'E' if coord.longitude >= 0 else 'W'
    return (
        f"{abs(coord.latitude):.{precision}f}°{lat_dir}, "
        f"{abs(coord.longitude):.{precision}f}°{lon_dir}"
    )


def haversine_distance_vec(lat1, lon1, lat2, lon2,
                           unit: UnitLike = DistanceUnit.KM) -> np.ndarray:
    """Vectorized version of distance for numpy arrays / pandas Series."""
    phi1 = np.radians(np.asarray(lat1, dtype=float))
    phi2 = np.radians(np.asarray(lat2, dtype=float))
    dphi = phi2 - phi1
    dlmb = np.radians(np.asarray(lon2, dtype=float) - np.asarray(lon1, dtype=float))

    a = np.sin(dphi / 2) ** 2 + np.cos(phi1) * np.cos(phi2) * np.sin(dlmb / 2) ** 2
    a = np.clip(a, 0.0, 1.0)

    return earth_radius(unit) * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))
