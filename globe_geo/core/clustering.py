"""
Proximity clustering of geotagged photo points.

Greedy single-pass algorithm:
  1) Walk the points in input order; each unassigned point becomes a seed
  2) Every still-unassigned point within max_distance of the seed joins it
  3) Multi-member clusters get a spherical centroid and a radius equal to the
     farthest member; singletons keep the seed coordinate and radius 0

Membership is decided by distance to the seed only, not transitively, so two
members of one cluster can be up to 2 x max_distance apart. The result is
deterministic for a fixed input order but changes if the input is reordered.
Runtime is O(n^2) distance evaluations.

Points are not re-validated here; filter with geometry.validate first.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Generic, List, Optional, Sequence, Tuple, TypeVar

from globe_geo.core.geometry import (
    Coordinate,
    DistanceUnit,
    UnitLike,
    as_unit,
    centroid,
    distance,
)
from globe_geo.utils.config import ClusteringParams, GeoConfig
from globe_geo.utils.error_handling import handle_empty_sequence
from globe_geo.utils.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


# -----------------------------
# Data model
# -----------------------------

@dataclass(frozen=True)
class GeoPoint(Generic[T]):
    """
    A geotagged item: identifier, coordinate, optional display name and an
    opaque payload (e.g. the photo row) that the core never interprets except
    for representative selection.
    """
    id: str
    latitude: float
    longitude: float
    name: Optional[str] = None
    payload: Optional[T] = None

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(latitude=self.latitude, longitude=self.longitude)

    def to_dict(self) -> dict:
        data = {
            'id': self.id,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'name': self.name,
        }
        if isinstance(self.payload, Mapping):
            data['payload'] = dict(self.payload)
        elif self.payload is not None:
            data['payload'] = self.payload
        return data


@dataclass(frozen=True)
class GeoCluster(Generic[T]):
    """A group of points around a seed; ``count`` always equals ``len(members)``."""
    id: str
    centroid: Coordinate
    members: Tuple[GeoPoint[T], ...]
    radius: float

    @property
    def count(self) -> int:
        return len(self.members)

    @property
    def seed(self) -> GeoPoint[T]:
        return self.members[0]

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'centroid': self.centroid.to_dict(),
            'radius': self.radius,
            'count': self.count,
            'members': [m.to_dict() for m in self.members],
        }


# -----------------------------
# Clustering
# -----------------------------

def cluster_radius(center: Coordinate, members: Sequence[GeoPoint],
                   unit: UnitLike = DistanceUnit.KM) -> float:
    """Maximum distance from ``center`` to any member (0 for no members)."""
    max_distance = 0.0
    for member in members:
        max_distance = max(max_distance, distance(center, member, unit))
    return max_distance


class ProximityClusterer:
    """
    Seed-based proximity clusterer.

    Example:
        >>> clusterer = ProximityClusterer(ClusteringParams(max_distance_km=50))
        >>> clusters = clusterer.cluster(points)
        >>> sum(c.count for c in clusters) == len(points)
        True
    """

    def __init__(self, params: Optional[ClusteringParams] = None):
        self.params = params or ClusteringParams()

    @classmethod
    def from_config(cls, config: GeoConfig) -> 'ProximityClusterer':
        return cls(config.clustering)

    @handle_empty_sequence()
    def cluster(self, points: Sequence[GeoPoint[T]]) -> List[GeoCluster[T]]:
        """
        Partition ``points`` into clusters.

        Args:
            points: Validated points, in the order that decides seeding

        Returns:
            Clusters in seed order; every input point appears in exactly one
            cluster. Empty input gives an empty list.
        """
        points = list(points)
        max_distance = self.params.max_distance_km
        unit = self.params.unit

        # Tracked by position so duplicate ids are never merged or dropped
        assigned = [False] * len(points)
        clusters: List[GeoCluster[T]] = []

        for i, seed in enumerate(points):
            if assigned[i]:
                continue
            assigned[i] = True
            members = [seed]

            # Every index before i is already assigned
            for j in range(i + 1, len(points)):
                if assigned[j]:
                    continue
                if distance(seed, points[j], unit) <= max_distance:
                    members.append(points[j])
                    assigned[j] = True

            clusters.append(self._build_cluster(seed, members))

        logger.debug(
            "clusters_built",
            points=len(points),
            clusters=len(clusters),
            max_distance=max_distance,
            unit=unit,
        )
        return clusters

    def _build_cluster(self, seed: GeoPoint[T], members: List[GeoPoint[T]]) -> GeoCluster[T]:
        if len(members) == 1:
            center = Coordinate(latitude=seed.latitude, longitude=seed.longitude)
            radius = 0.0
        else:
            center = centroid(members)
            radius = cluster_radius(center, members, self.params.unit)

        return GeoCluster(
            id=f"cluster-{seed.id}",
            centroid=center,
            members=tuple(members),
            radius=radius,
        )


def cluster_points(
    points: Sequence[GeoPoint[T]],
    max_distance: float = 100.0,
    unit: UnitLike = DistanceUnit.KM,
) -> List[GeoCluster[T]]:
    """
    Convenience function to cluster points without building params.

    Args:
        points: Validated points
        max_distance: Seed-to-member radius in ``unit`` (default 100)
        unit: 'km' (default) or 'miles'

    Returns:
        List of GeoCluster
    """
    params = ClusteringParams(max_distance_km=max_distance, unit=as_unit(unit).value)
    return ProximityClusterer(params).cluster(points)


# -----------------------------
# Presentation helpers
# -----------------------------

def _payload_value(payload: Any, field_name: str) -> Any:
    if payload is None:
        return None
    if isinstance(payload, Mapping):
        return payload.get(field_name)
    return getattr(payload, field_name, None)


def select_representative(
    cluster: GeoCluster[T],
    caption_field: str = 'caption',
    favorite_field: str = 'is_favorite',
) -> GeoPoint[T]:
    """
    Pick the member shown for a cluster.

    Preference order: first member with a non-empty caption, then first
    member flagged favorite, then the first member (the seed).
    """
    for member in cluster.members:
        caption = _payload_value(member.payload, caption_field)
        if isinstance(caption, str):
            if caption.strip():
                return member
        elif caption:
            return member

    for member in cluster.members:
        if _payload_value(member.payload, favorite_field):
            return member

    return cluster.members[0]


def cluster_label(cluster: GeoCluster) -> Optional[str]:
    """
    Most common non-empty member name; the first name to reach the top count wins.

    Returns None when no member has a name.
    """
    counts: dict = {}
    best: Optional[str] = None
    best_count = 0

    for member in cluster.members:
        if not member.name:
            continue
        counts[member.name] = counts.get(member.name, 0) + 1
        if counts[member.name] > best_count:
            best_count = counts[member.name]
            best = member.name

    return best
