"""
Viewport and level-of-detail reduction for map/globe rendering.

Keeps per-frame marker counts bounded as the camera moves:
  - filter_by_bounds: drop points outside the (padded) visible box
  - lod_for_altitude: map camera altitude to a detail tier
  - subsample: deterministic stride sampling per tier
  - marker_size: shrink markers as the camera rises

The intended pipeline is filter_by_bounds then subsample (see
ViewportReducer.reduce). When to re-run it is the caller's scheduling
concern (see globe_geo.utils.scheduling).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, TypeVar, Union

import numpy as np
import pandas as pd

from globe_geo.core.geometry import (
    BoundingBox,
    LatLon,
    is_point_in_bounds,
    normalize_longitude,
)
from globe_geo.utils.config import GeoConfig, ViewportParams
from globe_geo.utils.error_handling import validate_columns_exist
from globe_geo.utils.exceptions import InvalidInputError
from globe_geo.utils.logging_config import get_logger

logger = get_logger(__name__)

P = TypeVar("P", bound=LatLon)


class LODLevel(str, Enum):
    """Detail tiers, ordered by decreasing rendered density."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    MINIMAL = "minimal"

    @property
    def rank(self) -> int:
        """0 for HIGH up to 3 for MINIMAL."""
        return _LOD_ORDER.index(self)


_LOD_ORDER = (LODLevel.HIGH, LODLevel.MEDIUM, LODLevel.LOW, LODLevel.MINIMAL)

LODLike = Union[LODLevel, str]

_DEFAULT_PARAMS = ViewportParams()


def _as_lod(lod: LODLike) -> LODLevel:
    try:
        return LODLevel(lod)
    except ValueError:
        raise InvalidInputError(
            f"Unknown LOD level: {lod!r} (expected one of {[lvl.value for lvl in _LOD_ORDER]})"
        ) from None


# -----------------------------
# Bounds filtering
# -----------------------------

def expand_bounds(box: BoundingBox, padding: float) -> BoundingBox:
    """
    Grow a box by ``padding`` degrees on every side.

    Latitude is clamped to [-90, 90]. Longitude edges that pass +-180 are
    wrapped so the result becomes an antimeridian-crossing box; a padded span
    of 360 degrees or more covers every longitude.

    Raises:
        InvalidInputError: If ``padding`` is negative
    """
    if padding < 0:
        raise InvalidInputError(f"padding must be >= 0, got {padding}")

    north = min(90.0, box.north + padding)
    south = max(-90.0, box.south - padding)

    if padding == 0:
        return BoundingBox(north=north, south=south, east=box.east, west=box.west)

    if box.west <= box.east:
        span = box.east - box.west
    else:
        span = box.east - box.west + 360.0

    if span + 2 * padding >= 360.0:
        return BoundingBox(north=north, south=south, east=180.0, west=-180.0)

    return BoundingBox(
        north=north,
        south=south,
        east=normalize_longitude(box.east + padding),
        west=normalize_longitude(box.west - padding),
    )


def filter_by_bounds(points: Sequence[P], box: BoundingBox, padding: float = 0.0) -> List[P]:
    """
    Keep points inside ``box`` expanded by ``padding`` degrees.

    Longitude containment is wrap-aware: with ``west > east`` a point is
    inside when its longitude is >= west OR <= east.

    Example:
        >>> box = BoundingBox(north=10, south=-10, east=-170, west=170)
        >>> [p.longitude for p in filter_by_bounds(points, box)]
        [179.0]
    """
    expanded = expand_bounds(box, padding)
    return [p for p in points if is_point_in_bounds(p, expanded)]


def filter_frame_by_bounds(
    df: pd.DataFrame,
    box: BoundingBox,
    padding: float = 0.0,
    lat_col: str = 'latitude',
    lon_col: str = 'longitude',
) -> pd.DataFrame:
    """Vectorized filter_by_bounds for a points DataFrame; rows with NaN coordinates are dropped."""
    validate_columns_exist(df, {lat_col, lon_col}, "points DataFrame")
    expanded = expand_bounds(box, padding)

    lat = df[lat_col].to_numpy(dtype=float)
    lon = df[lon_col].to_numpy(dtype=float)

    lat_mask = (lat >= expanded.south) & (lat <= expanded.north)
    # -180 and 180 are the same meridian
    antimeridian = np.abs(lon) == 180.0
    lon_mask = _lon_mask(lon, expanded) | (antimeridian & _lon_mask(-lon, expanded))

    return df[np.asarray(lat_mask & lon_mask)].copy()


def _lon_mask(lon: np.ndarray, box: BoundingBox) -> np.ndarray:
    if box.west <= box.east:
        return (lon >= box.west) & (lon <= box.east)
    return (lon >= box.west) | (lon <= box.east)


# -----------------------------
# Level of detail
# -----------------------------

def lod_for_altitude(altitude: float, params: Optional[ViewportParams] = None) -> LODLevel:
    """
    Detail tier for a camera altitude (globe radii above the surface).

    Defaults: < 1.5 high, < 2.5 medium, < 4 low, otherwise minimal.
    """
    params = params or _DEFAULT_PARAMS
    if altitude < params.high_max_altitude:
        return LODLevel.HIGH
    if altitude < params.medium_max_altitude:
        return LODLevel.MEDIUM
    if altitude < params.low_max_altitude:
        return LODLevel.LOW
    return LODLevel.MINIMAL


def _subsample_indices(count: int, rate: float) -> range:
    if count == 0:
        return range(0)
    if rate >= 1.0:
        return range(count)

    # round() absorbs float noise in count * rate before ceil()
    target = math.ceil(round(count * rate, 9))
    step = max(1, count // target)
    return range(0, count, step)[:target]


def subsample(points: Sequence[P], lod: LODLike, params: Optional[ViewportParams] = None) -> List[P]:
    """
    Deterministic stride sample of ``points`` for a detail tier.

    Keeps every Nth element (N = floor(count / target), target =
    ceil(count * rate)) and truncates to target. The same input in the same
    order always yields the same subset. Spatially sorted input gives a
    spatially biased sample; shuffle upstream if uniformity matters.

    Default rates: high 100%, medium 70%, low 40%, minimal 20%.
    """
    params = params or _DEFAULT_PARAMS
    rate = params.sample_rates[_as_lod(lod).value]
    points = list(points)
    return [points[i] for i in _subsample_indices(len(points), rate)]


def subsample_frame(df: pd.DataFrame, lod: LODLike, params: Optional[ViewportParams] = None) -> pd.DataFrame:
    """Vectorized subsample for a points DataFrame (positional stride)."""
    params = params or _DEFAULT_PARAMS
    rate = params.sample_rates[_as_lod(lod).value]
    return df.iloc[list(_subsample_indices(len(df), rate))].copy()


def marker_size(altitude: float, base_size: Optional[float] = None,
                params: Optional[ViewportParams] = None) -> float:
    """
    Marker size for a camera altitude.

    Piecewise scale of ``base_size`` (default 0.3): x1.0 / x0.8 / x0.6 / x0.4
    for high / medium / low / minimal detail.
    """
    params = params or _DEFAULT_PARAMS
    if base_size is None:
        base_size = params.base_marker_size
    lod = lod_for_altitude(altitude, params)
    return base_size * params.marker_scales[lod.value]


# -----------------------------
# Pipeline
# -----------------------------

@dataclass(frozen=True)
class ViewportResult:
    """Points to render for one viewport state."""
    points: List
    lod: LODLevel
    marker_size: float
    total: int
    in_bounds: int

    def to_dict(self) -> dict:
        return {
            'lod': self.lod.value,
            'marker_size': self.marker_size,
            'total': self.total,
            'in_bounds': self.in_bounds,
            'rendered': len(self.points),
            'points': [p.to_dict() if hasattr(p, 'to_dict') else
                       {'latitude': p.latitude, 'longitude': p.longitude} for p in self.points],
        }


class ViewportReducer:
    """
    Filters then subsamples a point set for the current camera state.

    Example:
        >>> reducer = ViewportReducer()
        >>> result = reducer.reduce(points, box, altitude=3.0)
        >>> result.lod
        <LODLevel.LOW: 'low'>
    """

    def __init__(self, params: Optional[ViewportParams] = None):
        self.params = params or ViewportParams()

    @classmethod
    def from_config(cls, config: GeoConfig) -> 'ViewportReducer':
        return cls(config.viewport)

    def filter_by_bounds(self, points: Sequence[P], box: BoundingBox,
                         padding: Optional[float] = None) -> List[P]:
        if padding is None:
            padding = self.params.padding_deg
        return filter_by_bounds(points, box, padding)

    def lod_for_altitude(self, altitude: float) -> LODLevel:
        return lod_for_altitude(altitude, self.params)

    def subsample(self, points: Sequence[P], lod: LODLike) -> List[P]:
        return subsample(points, lod, self.params)

    def marker_size(self, altitude: float, base_size: Optional[float] = None) -> float:
        return marker_size(altitude, base_size, self.params)

    def reduce(self, points: Sequence[P], box: BoundingBox, altitude: float,
               padding: Optional[float] = None) -> ViewportResult:
        """
        Run the bounds filter and LOD subsample for one viewport state.

        Args:
            points: Validated points
            box: Visible region
            altitude: Camera altitude
            padding: Bounds padding in degrees (default: params.padding_deg)

        Returns:
            ViewportResult with the points to render
        """
        points = list(points)
        visible = self.filter_by_bounds(points, box, padding)
        lod = self.lod_for_altitude(altitude)
        sampled = self.subsample(visible, lod)

        logger.debug(
            "viewport_reduced",
            total=len(points),
            in_bounds=len(visible),
            rendered=len(sampled),
            lod=lod.value,
            altitude=altitude,
        )

        return ViewportResult(
            points=sampled,
            lod=lod,
            marker_size=self.marker_size(altitude),
            total=len(points),
            in_bounds=len(visible),
        )
