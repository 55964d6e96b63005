import pytest

from tracklog.analyzer import StatisticsConfig, compute_statistics
from tracklog.errors import EmptyTrack, InvalidCoordinate, MalformedDocument, ParseError
from tracklog.ingest import ingest, parse_and_summarize


class TestParseAndSummarize:
    def test_sample_ride(self, sample_gpx_bytes, step_m):
        segments, stats = parse_and_summarize(sample_gpx_bytes)
        assert len(segments) == 2
        assert stats.segment_count == 2
        assert stats.point_count == 8
        # 5 moving steps; the stop and the gap between segments add nothing
        assert stats.total_distance == pytest.approx(5 * step_m)
        assert stats.elevation_gain == pytest.approx(10.0)
        assert stats.elevation_loss == pytest.approx(5.0)
        assert stats.min_elevation == pytest.approx(10.0)
        assert stats.max_elevation == pytest.approx(25.0)
        assert stats.duration == 640.0
        assert stats.moving_time == pytest.approx(100.0)
        assert stats.max_speed == pytest.approx(step_m / 20)
        assert stats.skipped_time_pairs == 0

    def test_config_applied(self, sample_gpx_bytes):
        _, stats = parse_and_summarize(sample_gpx_bytes, StatisticsConfig(noise_threshold=4.0))
        # Only 10 -> 15 (+5), 20 -> 25 (+5) count; 25 -> 22 is under 4m
        assert stats.elevation_gain == pytest.approx(10.0)
        assert stats.elevation_loss == 0.0

    def test_parse_errors_are_typed(self, malformed_gpx_bytes, gpx_factory):
        with pytest.raises(MalformedDocument):
            parse_and_summarize(malformed_gpx_bytes)
        with pytest.raises(InvalidCoordinate):
            parse_and_summarize(gpx_factory([(95.0, 0.0)]))
        with pytest.raises(EmptyTrack):
            parse_and_summarize(gpx_factory([]))

    def test_all_parse_errors_share_base(self, malformed_gpx_bytes):
        with pytest.raises(ParseError):
            parse_and_summarize(malformed_gpx_bytes)

    def test_out_of_order_pair_does_not_abort(self, gpx_factory):
        from datetime import datetime, timezone
        t = lambda s: datetime(2024, 1, 1, 0, 0, s, tzinfo=timezone.utc)  # noqa: E731
        raw = gpx_factory([
            (37.0, -122.0, 1, t(0)),
            (37.0009, -122.0, 1, t(20)),
            (37.0018, -122.0, 1, t(10)),
            (37.0027, -122.0, 1, t(30)),
        ])
        segments, stats = parse_and_summarize(raw)
        assert segments[0].anomalies == (2,)
        assert stats.skipped_time_pairs == 1
        assert stats.duration == 30.0


class TestIngest:
    def test_ingest_builds_track(self, sample_gpx_bytes):
        track = ingest(sample_gpx_bytes, "user-1", "sample_ride.gpx")
        assert track.owner_id == "user-1"
        assert track.title == "sample_ride.gpx"
        assert len(track.points) == 8

    def test_statistics_rederived_identically(self, sample_gpx_bytes):
        track = ingest(sample_gpx_bytes, "user-1", "sample_ride.gpx", title="Ride")
        assert compute_statistics(list(track.segments)) == track.statistics
