"""
Tests for proximity clustering.
"""
import json
import random
from types import SimpleNamespace

import pytest

from globe_geo.core.clustering import (
    GeoPoint,
    GeoCluster,
    ProximityClusterer,
    cluster_points,
    cluster_radius,
    cluster_label,
    select_representative,
)
from globe_geo.core.geometry import Coordinate, destination, distance
from globe_geo.utils.config import ClusteringParams, GeoConfig
from globe_geo.utils.exceptions import InvalidInputError


def make_point(point_id, lat, lon, name=None, **payload):
    return GeoPoint(id=point_id, latitude=lat, longitude=lon, name=name, payload=payload or None)


@pytest.fixture
def city_points():
    """Sixty points scattered around three cities, shuffled deterministically."""
    rng = random.Random(42)
    cities = [('Paris', 48.8566, 2.3522), ('Tokyo', 35.6762, 139.6503), ('Lima', -12.0464, -77.0428)]
    points = []
    for i in range(60):
        name, lat, lon = cities[i % 3]
        points.append(make_point(
            f"p{i}",
            lat + rng.uniform(-0.3, 0.3),
            lon + rng.uniform(-0.3, 0.3),
            name=name,
        ))
    rng.shuffle(points)
    return points


class TestClusterBasics:
    """Tests for the ProximityClusterer.cluster operation."""

    def test_empty_input(self):
        """Empty input gives no clusters."""
        assert ProximityClusterer().cluster([]) == []

    def test_two_close_points_merge(self):
        """Two points 10 km apart with max 50 km form one cluster of two."""
        p1 = make_point('a', 48.0, 2.0)
        q = destination(p1, 10.0, 90)
        p2 = make_point('b', q.latitude, q.longitude)

        clusters = cluster_points([p1, p2], max_distance=50)

        assert len(clusters) == 1
        assert clusters[0].count == 2
        assert clusters[0].radius == pytest.approx(5.0, abs=0.1)

    def test_far_points_stay_single(self):
        """(0,0) and (0,0.9) are ~100 km apart; max 50 km gives two singletons."""
        p1 = make_point('a', 0.0, 0.0)
        p2 = make_point('b', 0.0, 0.9)

        clusters = cluster_points([p1, p2], max_distance=50)

        assert len(clusters) == 2
        for cluster, point in zip(clusters, (p1, p2)):
            assert cluster.count == 1
            assert cluster.radius == 0.0
            assert cluster.centroid == Coordinate(point.latitude, point.longitude)

    def test_partition(self, city_points):
        """Every input point appears in exactly one cluster."""
        clusters = cluster_points(city_points, max_distance=50)

        member_ids = [m.id for c in clusters for m in c.members]
        assert sorted(member_ids) == sorted(p.id for p in city_points)
        assert sum(c.count for c in clusters) == len(city_points)

    def test_count_matches_members(self, city_points):
        for cluster in cluster_points(city_points, max_distance=20):
            assert cluster.count == len(cluster.members)

    def test_members_within_max_distance_of_seed(self, city_points):
        for cluster in cluster_points(city_points, max_distance=25):
            for member in cluster.members:
                assert distance(cluster.seed, member) <= 25

    def test_radius_covers_members(self, city_points):
        for cluster in cluster_points(city_points, max_distance=40):
            for member in cluster.members:
                assert distance(cluster.centroid, member) <= cluster.radius + 1e-9

    def test_large_radius_groups_cities(self, city_points):
        """Points around three distant cities give three clusters."""
        clusters = cluster_points(city_points, max_distance=200)
        assert len(clusters) == 3
        assert {cluster_label(c) for c in clusters} == {'Paris', 'Tokyo', 'Lima'}


class TestSeedSemantics:
    """Membership is decided against the seed only."""

    def test_not_transitive(self):
        """C is close to B but too far from seed A, so it starts its own cluster."""
        a = make_point('a', 0.0, 0.0)
        b = make_point('b', 0.0, 0.4)
        c = make_point('c', 0.0, 0.8)

        clusters = cluster_points([a, b, c], max_distance=50)

        assert [[m.id for m in cl.members] for cl in clusters] == [['a', 'b'], ['c']]

    def test_members_can_be_twice_max_distance_apart(self):
        seed = make_point('seed', 0.0, 0.4)
        west = make_point('west', 0.0, 0.0)
        east = make_point('east', 0.0, 0.8)

        clusters = cluster_points([seed, west, east], max_distance=50)

        assert len(clusters) == 1
        assert distance(west, east) > 50

    def test_deterministic(self, city_points):
        first = cluster_points(city_points, max_distance=30)
        second = cluster_points(city_points, max_distance=30)
        assert first == second

    def test_order_decides_seeds(self):
        a = make_point('a', 0.0, 0.0)
        b = make_point('b', 0.0, 0.4)
        c = make_point('c', 0.0, 0.8)

        forward = cluster_points([a, b, c], max_distance=50)
        backward = cluster_points([c, b, a], max_distance=50)

        assert [cl.id for cl in forward] == ['cluster-a', 'cluster-c']
        assert [cl.id for cl in backward] == ['cluster-c', 'cluster-a']

    def test_duplicate_ids_kept(self):
        """Points sharing an id are still separate points."""
        p1 = make_point('dup', 10.0, 10.0)
        p2 = make_point('dup', -10.0, -10.0)

        clusters = cluster_points([p1, p2], max_distance=50)

        assert len(clusters) == 2
        assert sum(c.count for c in clusters) == 2

    def test_identical_coordinates(self):
        points = [make_point(str(i), 35.0, 139.0) for i in range(5)]
        clusters = cluster_points(points, max_distance=0)
        assert len(clusters) == 1
        assert clusters[0].count == 5
        assert clusters[0].radius == pytest.approx(0.0, abs=1e-6)


class TestUnits:
    """Tests for the distance unit option."""

    def test_miles(self):
        """~44.5 km is ~27.6 miles."""
        a = make_point('a', 0.0, 0.0)
        b = make_point('b', 0.0, 0.4)

        assert len(cluster_points([a, b], max_distance=30, unit='miles')) == 1
        assert len(cluster_points([a, b], max_distance=25, unit='miles')) == 2

    def test_radius_reported_in_unit(self):
        a = make_point('a', 0.0, 0.0)
        b = make_point('b', 0.0, 0.4)

        km = cluster_points([a, b], max_distance=100, unit='km')[0].radius
        miles = cluster_points([a, b], max_distance=100, unit='miles')[0].radius

        assert miles == pytest.approx(km * 3959.0 / 6371.0, rel=1e-9)

    def test_invalid_unit(self):
        with pytest.raises(InvalidInputError):
            cluster_points([make_point('a', 0, 0)], unit='parsecs')

    def test_from_config(self):
        config = GeoConfig(clustering=ClusteringParams(max_distance_km=5.0, unit='miles'))
        clusterer = ProximityClusterer.from_config(config)
        assert clusterer.params.max_distance_km == 5.0
        assert clusterer.params.unit == 'miles'


class TestClusterRadius:
    """Tests for cluster_radius helper."""

    def test_no_members(self):
        assert cluster_radius(Coordinate(0, 0), []) == 0.0

    def test_farthest_member(self):
        members = [make_point('a', 0, 1), make_point('b', 0, 2)]
        assert cluster_radius(Coordinate(0, 0), members) == pytest.approx(distance(Coordinate(0, 0), members[1]))


class TestSelectRepresentative:
    """Tests for select_representative."""

    def _cluster(self, members):
        return GeoCluster(id='c', centroid=Coordinate(0, 0), members=tuple(members), radius=0.0)

    def test_prefers_caption(self):
        members = [
            make_point('1', 0, 0, is_favorite=True),
            make_point('2', 0, 0, caption='Sunset over the bay'),
        ]
        assert select_representative(self._cluster(members)).id == '2'

    def test_blank_caption_ignored(self):
        members = [
            make_point('1', 0, 0, caption='   '),
            make_point('2', 0, 0, is_favorite=True),
        ]
        assert select_representative(self._cluster(members)).id == '2'

    def test_falls_back_to_seed(self):
        members = [make_point('1', 0, 0), make_point('2', 0, 0)]
        assert select_representative(self._cluster(members)).id == '1'

    def test_object_payload(self):
        members = [
            GeoPoint(id='1', latitude=0, longitude=0, payload=SimpleNamespace(caption=None, is_favorite=False)),
            GeoPoint(id='2', latitude=0, longitude=0, payload=SimpleNamespace(caption=None, is_favorite=True)),
        ]
        assert select_representative(self._cluster(members)).id == '2'

    def test_custom_fields(self):
        members = [make_point('1', 0, 0), make_point('2', 0, 0, title='Harbour')]
        cluster = self._cluster(members)
        assert select_representative(cluster, caption_field='title').id == '2'


class TestClusterLabel:
    """Tests for cluster_label."""

    def _cluster(self, names):
        members = tuple(make_point(str(i), 0, 0, name=n) for i, n in enumerate(names))
        return GeoCluster(id='c', centroid=Coordinate(0, 0), members=members, radius=0.0)

    def test_most_common(self):
        assert cluster_label(self._cluster(['Rome', 'Paris', 'Rome'])) == 'Rome'

    def test_tie_first_to_reach(self):
        assert cluster_label(self._cluster(['Rome', 'Paris', 'Paris', 'Rome'])) == 'Paris'

    def test_no_names(self):
        assert cluster_label(self._cluster([None, '', None])) is None


class TestSerialization:
    """Tests for to_dict output."""

    def test_cluster_to_dict_is_json_serializable(self, city_points):
        clusters = cluster_points(city_points, max_distance=50)
        data = [c.to_dict() for c in clusters]

        text = json.dumps(data)
        assert text
        assert data[0]['count'] == len(data[0]['members'])
        assert set(data[0]['centroid']) == {'latitude', 'longitude'}

    def test_point_payload_copied(self):
        point = make_point('a', 1.0, 2.0, name='X', caption='hi')
        data = point.to_dict()
        assert data['payload'] == {'caption': 'hi'}
        assert data['name'] == 'X'

    def test_point_without_payload(self):
        assert 'payload' not in GeoPoint(id='a', latitude=1.0, longitude=2.0).to_dict()
