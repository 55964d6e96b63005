import pytest

from tracklog.distance import EARTH_RADIUS_M, cumulative_distances, haversine_distance
from tracklog.models import Segment, TrackPoint


class TestHaversine:
    def test_same_point_is_zero(self):
        assert haversine_distance(37.7749, -122.4194, 37.7749, -122.4194) == 0.0

    def test_known_distance(self):
        # SF City Hall to Ferry Building is roughly 2.5 km
        d = haversine_distance(37.7793, -122.4193, 37.7956, -122.3935)
        assert 2000 < d < 3000

    def test_one_degree_along_meridian(self):
        d = haversine_distance(0.0, 0.0, 1.0, 0.0)
        assert d == pytest.approx(EARTH_RADIUS_M * 3.141592653589793 / 180)

    def test_symmetric(self):
        a = haversine_distance(46.0, 7.0, 46.1, 7.2)
        b = haversine_distance(46.1, 7.2, 46.0, 7.0)
        assert a == pytest.approx(b)

    def test_antipodal(self):
        d = haversine_distance(0.0, 0.0, 0.0, 180.0)
        assert d == pytest.approx(EARTH_RADIUS_M * 3.141592653589793)


class TestCumulativeDistances:
    def test_gap_between_segments_not_counted(self, step_m):
        seg1 = Segment(points=(TrackPoint(0.0, 0.0), TrackPoint(0.0009, 0.0)))
        seg2 = Segment(points=(TrackPoint(1.0, 0.0), TrackPoint(1.0009, 0.0)))
        dists = cumulative_distances([seg1, seg2])
        assert dists[0] == [0.0, pytest.approx(step_m)]
        assert dists[1][0] == pytest.approx(step_m)
        assert dists[1][1] == pytest.approx(2 * step_m)
