import random

import pytest

from routeweaver.utils.geo import (
    DistanceBand,
    RegionBounds,
    bounding_box,
    bucket_by_distance,
    decode_polyline,
    extract_distance_km,
    haversine_meters,
    min_distance_to_route,
    path_length_meters,
    point_to_segment_distance,
    rebalance_buckets,
    shuffle,
)


def test_haversine_identity_and_symmetry():
    assert haversine_meters(9.9312, 76.2673, 9.9312, 76.2673) == 0
    forward = haversine_meters(9.9312, 76.2673, 10.0889, 77.0595)
    backward = haversine_meters(10.0889, 77.0595, 9.9312, 76.2673)
    assert forward == pytest.approx(backward, rel=1e-9)


def test_haversine_one_degree_of_latitude():
    assert haversine_meters(0, 0, 1, 0) == pytest.approx(111_195, rel=1e-3)


def test_decode_google_reference_polyline():
    points = decode_polyline("_p~iF~ps|U_ulLnnqC_mqNvxq`@")

    assert points == [
        pytest.approx((-120.2, 38.5)),
        pytest.approx((-120.95, 40.7)),
        pytest.approx((-126.453, 43.252)),
    ]


def test_decode_truncated_polyline_keeps_decoded_points():
    points = decode_polyline("_p~iF~ps|U_ulL")

    assert points == [pytest.approx((-120.2, 38.5))]


def test_decode_empty_polyline():
    assert decode_polyline("") == []


def test_bounding_box():
    box = bounding_box([(76.2, 9.9), (77.0, 10.1), (76.5, 9.5)])

    assert box == {
        "northeast": {"lat": 10.1, "lng": 77.0},
        "southwest": {"lat": 9.5, "lng": 76.2},
    }
    assert bounding_box([]) is None


def test_point_to_segment_distance_projects_onto_segment():
    # Point one hundredth of a degree north of the middle of an east-west segment
    distance = point_to_segment_distance((76.5, 10.01), (76.0, 10.0), (77.0, 10.0))

    assert distance == pytest.approx(haversine_meters(10.01, 76.5, 10.0, 76.5), rel=1e-6)


def test_point_to_segment_distance_clamps_to_endpoints():
    distance = point_to_segment_distance((75.0, 10.0), (76.0, 10.0), (77.0, 10.0))

    assert distance == pytest.approx(haversine_meters(10.0, 75.0, 10.0, 76.0), rel=1e-6)


def test_point_to_degenerate_segment():
    distance = point_to_segment_distance((76.1, 10.0), (76.0, 10.0), (76.0, 10.0))

    assert distance == pytest.approx(haversine_meters(10.0, 76.1, 10.0, 76.0), rel=1e-6)


def test_min_distance_to_route():
    route = [(76.0, 10.0), (77.0, 10.0), (77.0, 11.0)]

    assert min_distance_to_route((77.0, 10.5), route) == pytest.approx(0, abs=1e-6)
    assert min_distance_to_route((77.0, 10.5), [(77.0, 10.0)]) is None


def test_path_length():
    points = [(76.0, 10.0), (76.0, 10.5), (76.0, 11.0)]

    assert path_length_meters(points) == pytest.approx(haversine_meters(10.0, 76.0, 11.0, 76.0), rel=1e-9)
    assert path_length_meters(points[:1]) == 0


@pytest.mark.parametrize("text, expected", [
    ("Hill station, 130 km from Kochi", 130.0),
    ("About 42.5km away", 42.5),
    ("Waterfall (70 KM from Kochi)", 70.0),
    ("No distance here", None),
    ("", None),
    (None, None),
])
def test_extract_distance_km(text, expected):
    assert extract_distance_km(text) == expected


BANDS = [DistanceBand("short", 30, 60), DistanceBand("medium", 60, 100), DistanceBand("long", 100, 150)]


def test_bucket_by_distance():
    items = [("a", 45), ("b", 80), ("c", 120), ("d", 10), ("e", 500), ("f", None)]

    buckets = bucket_by_distance(items, BANDS, lambda item: item[1], unknown_band=1)

    assert [[name for name, _ in bucket] for bucket in buckets] == [["a", "d"], ["b", "f"], ["c", "e"]]


def test_bucket_boundary_goes_to_first_matching_band():
    buckets = bucket_by_distance([60], BANDS, lambda d: d, unknown_band=2)

    assert buckets == [[60], [], []]


def test_rebalance_moves_surplus_without_duplicates():
    buckets = [["s1"], ["m1", "m2", "m3", "m4", "m5", "m6"], ["l1", "l2"]]

    rebalance_buckets(buckets, minimum=3)

    assert buckets == [["s1", "m4", "m5"], ["m1", "m2", "m3"], ["l1", "l2", "m6"]]
    flattened = [item for bucket in buckets for item in bucket]
    assert len(flattened) == len(set(flattened)) == 9


def test_rebalance_leaves_buckets_when_no_surplus():
    buckets = [["a"], ["b", "c"], ["d", "e", "f"]]

    rebalance_buckets(buckets, minimum=3)

    assert buckets == [["a"], ["b", "c"], ["d", "e", "f"]]


def test_shuffle_returns_new_permutation():
    items = list(range(20))

    shuffled = shuffle(items, random.Random(7))

    assert shuffled is not items
    assert sorted(shuffled) == items
    assert items == list(range(20))
    assert shuffle([], random.Random(1)) == []


def test_region_bounds_contains_and_clamp():
    region = RegionBounds("Kerala", 8.2, 12.8, 74.8, 77.8)

    assert region.contains(9.9, 76.2)
    assert not region.contains(13.0, 76.2)
    assert region.clamp(13.0, 76.2, tolerance=0.5) == (12.8, 76.2)
    assert region.clamp(14.0, 76.2, tolerance=0.5) is None
