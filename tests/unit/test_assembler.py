from datetime import datetime, timezone

import pytest

from tracklog.analyzer import compute_statistics
from tracklog.assembler import assemble_track
from tracklog.errors import ValidationError


@pytest.fixture
def segments(timed_segment):
    return [timed_segment]


@pytest.fixture
def stats(segments):
    return compute_statistics(segments)


class TestAssembleTrack:
    def test_fields_passed_through(self, segments, stats):
        now = datetime(2024, 7, 1, 12, 0, 0, tzinfo=timezone.utc)
        track = assemble_track("user-1", "Evening loop", "loop.gpx", segments, stats, now=now)
        assert track.owner_id == "user-1"
        assert track.title == "Evening loop"
        assert track.filename == "loop.gpx"
        assert track.segments == tuple(segments)
        assert track.statistics is stats
        assert track.created_at == now
        assert track.id

    def test_title_defaults_to_filename(self, segments, stats):
        assert assemble_track("u", None, "ride.gpx", segments, stats).title == "ride.gpx"
        assert assemble_track("u", "   ", "ride.gpx", segments, stats).title == "ride.gpx"

    def test_created_at_defaults_to_now_utc(self, segments, stats):
        before = datetime.now(timezone.utc)
        track = assemble_track("u", None, "ride.gpx", segments, stats)
        assert before <= track.created_at <= datetime.now(timezone.utc)

    def test_ids_unique(self, segments, stats):
        a = assemble_track("u", None, "ride.gpx", segments, stats)
        b = assemble_track("u", None, "ride.gpx", segments, stats)
        assert a.id != b.id

    @pytest.mark.parametrize("owner", [None, "", "   "])
    def test_missing_owner_rejected(self, segments, stats, owner):
        with pytest.raises(ValidationError):
            assemble_track(owner, None, "ride.gpx", segments, stats)

    def test_empty_segments_rejected(self, stats):
        with pytest.raises(ValidationError):
            assemble_track("u", None, "ride.gpx", [], stats)

    def test_missing_filename_rejected(self, segments, stats):
        with pytest.raises(ValidationError):
            assemble_track("u", "Title", "", segments, stats)

    def test_error_kind(self, stats):
        with pytest.raises(ValidationError) as exc:
            assemble_track("u", None, "ride.gpx", [], stats)
        assert exc.value.kind == "ValidationError"
