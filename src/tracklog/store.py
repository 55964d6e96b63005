"""Track persistence.

Tracks are keyed by an opaque id and retrievable by id or by owner. The
disk store keeps one JSON document per track plus an index file mapping
track id -> owner, title and creation time.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from threading import Lock

import gpxpy.gpx

from tracklog.errors import StorageError
from tracklog.models import Segment, Track, TrackPoint, TrackStatistics

logger = logging.getLogger(__name__)

_STAT_TIME_FIELDS = ("start_time", "end_time")


def _time_str(t: datetime | None) -> str | None:
    return t.isoformat() if t is not None else None


def _parse_time(s: str | None) -> datetime | None:
    return datetime.fromisoformat(s) if s is not None else None


def track_to_dict(track: Track) -> dict:
    """Convert a Track to a JSON-serializable dict."""
    stats = {
        name: getattr(track.statistics, name)
        for name in TrackStatistics.__dataclass_fields__
    }
    for name in _STAT_TIME_FIELDS:
        stats[name] = _time_str(stats[name])
    return {
        "id": track.id,
        "owner_id": track.owner_id,
        "title": track.title,
        "filename": track.filename,
        "created_at": track.created_at.isoformat(),
        "statistics": stats,
        "segments": [
            {
                "points": [[pt.lat, pt.lon, pt.elevation, _time_str(pt.time)] for pt in seg.points],
                "anomalies": list(seg.anomalies),
            }
            for seg in track.segments
        ],
    }


def track_from_dict(data: dict) -> Track:
    """Rebuild a Track from track_to_dict output."""
    stats = dict(data["statistics"])
    for name in _STAT_TIME_FIELDS:
        stats[name] = _parse_time(stats[name])
    segments = tuple(
        Segment(
            points=tuple(
                TrackPoint(lat=lat, lon=lon, elevation=ele, time=_parse_time(t))
                for lat, lon, ele, t in seg["points"]
            ),
            anomalies=tuple(seg.get("anomalies", ())),
        )
        for seg in data["segments"]
    )
    return Track(
        id=data["id"],
        owner_id=data["owner_id"],
        title=data["title"],
        filename=data["filename"],
        segments=segments,
        statistics=TrackStatistics(**stats),
        created_at=datetime.fromisoformat(data["created_at"]),
    )


def export_gpx(track: Track) -> str:
    """Render a stored track back to a GPX 1.1 document."""
    gpx = gpxpy.gpx.GPX()
    gpx_track = gpxpy.gpx.GPXTrack(name=track.title)
    gpx.tracks.append(gpx_track)
    for seg in track.segments:
        gpx_segment = gpxpy.gpx.GPXTrackSegment()
        for pt in seg.points:
            gpx_segment.points.append(
                gpxpy.gpx.GPXTrackPoint(pt.lat, pt.lon, elevation=pt.elevation, time=pt.time)
            )
        gpx_track.segments.append(gpx_segment)
    return gpx.to_xml(version="1.1")


class TrackStore:
    """Interface for track persistence."""

    def save(self, track: Track) -> str:
        raise NotImplementedError

    def get(self, track_id: str, owner_id: str | None = None) -> Track | None:
        raise NotImplementedError

    def list_by_owner(self, owner_id: str) -> list[Track]:
        raise NotImplementedError

    def delete(self, track_id: str) -> bool:
        raise NotImplementedError

    def rename(self, track_id: str, title: str) -> Track | None:
        raise NotImplementedError


class MemoryTrackStore(TrackStore):
    """Thread-safe in-memory store."""

    def __init__(self):
        self._tracks: dict[str, Track] = {}
        self.lock = Lock()

    def save(self, track: Track) -> str:
        with self.lock:
            self._tracks[track.id] = track
        return track.id

    def get(self, track_id: str, owner_id: str | None = None) -> Track | None:
        with self.lock:
            track = self._tracks.get(track_id)
        if track is None or (owner_id is not None and track.owner_id != owner_id):
            return None
        return track

    def list_by_owner(self, owner_id: str) -> list[Track]:
        with self.lock:
            tracks = [t for t in self._tracks.values() if t.owner_id == owner_id]
        return sorted(tracks, key=lambda t: t.created_at, reverse=True)

    def delete(self, track_id: str) -> bool:
        with self.lock:
            return self._tracks.pop(track_id, None) is not None

    def rename(self, track_id: str, title: str) -> Track | None:
        with self.lock:
            track = self._tracks.get(track_id)
            if track is not None:
                track.title = title
            return track

    def __len__(self) -> int:
        return len(self._tracks)


class DiskTrackStore(TrackStore):
    """JSON-file store: <dir>/<track_id>.json plus <dir>/index.json."""

    def __init__(self, store_dir: Path | str):
        self.store_dir = Path(store_dir)
        self.index_path = self.store_dir / "index.json"
        self.lock = Lock()

    def _track_path(self, track_id: str) -> Path:
        return self.store_dir / f"{track_id}.json"

    def _load_index(self) -> dict:
        """Load the index (maps track_id -> {owner_id, title, created_at})."""
        if self.index_path.exists():
            try:
                with self.index_path.open() as f:
                    return json.load(f)
            except (json.JSONDecodeError, OSError) as e:
                raise StorageError(f"Cannot read track index {self.index_path}: {e}") from e
        return {}

    def _save_index(self, index: dict) -> None:
        self.store_dir.mkdir(parents=True, exist_ok=True)
        tmp = self.index_path.with_suffix(".tmp")
        with tmp.open("w") as f:
            json.dump(index, f, indent=1)
        tmp.replace(self.index_path)

    def _read_track(self, track_id: str) -> Track | None:
        path = self._track_path(track_id)
        if not path.exists():
            return None
        try:
            with path.open() as f:
                return track_from_dict(json.load(f))
        except (json.JSONDecodeError, OSError, KeyError, TypeError, ValueError) as e:
            raise StorageError(f"Cannot read track {track_id}: {e}") from e

    def _write_track(self, track: Track) -> None:
        with self._track_path(track.id).open("w") as f:
            json.dump(track_to_dict(track), f)

    def save(self, track: Track) -> str:
        with self.lock:
            index = self._load_index()
            index[track.id] = {
                "owner_id": track.owner_id,
                "title": track.title,
                "created_at": track.created_at.isoformat(),
            }
            try:
                self.store_dir.mkdir(parents=True, exist_ok=True)
                self._write_track(track)
            except OSError as e:
                raise StorageError(f"Cannot save track {track.id}: {e}") from e
            try:
                self._save_index(index)
            except OSError as e:
                # No unindexed track files
                self._track_path(track.id).unlink(missing_ok=True)
                raise StorageError(f"Cannot update track index for {track.id}: {e}") from e
        logger.debug("Saved track %s (%s) for owner %s", track.id, track.filename, track.owner_id)
        return track.id

    def get(self, track_id: str, owner_id: str | None = None) -> Track | None:
        with self.lock:
            track = self._read_track(track_id)
        if track is None or (owner_id is not None and track.owner_id != owner_id):
            return None
        return track

    def list_by_owner(self, owner_id: str) -> list[Track]:
        with self.lock:
            index = self._load_index()
            ids = [
                track_id
                for track_id, entry in sorted(index.items(), key=lambda x: x[1]["created_at"], reverse=True)
                if entry["owner_id"] == owner_id
            ]
            tracks = [self._read_track(track_id) for track_id in ids]
        return [t for t in tracks if t is not None]

    def delete(self, track_id: str) -> bool:
        with self.lock:
            index = self._load_index()
            path = self._track_path(track_id)
            existed = track_id in index or path.exists()
            try:
                if track_id in index:
                    del index[track_id]
                    self._save_index(index)
                path.unlink(missing_ok=True)
            except OSError as e:
                raise StorageError(f"Cannot delete track {track_id}: {e}") from e
        return existed

    def rename(self, track_id: str, title: str) -> Track | None:
        with self.lock:
            track = self._read_track(track_id)
            if track is None:
                return None
            index = self._load_index()
            track.title = title
            try:
                self._write_track(track)
                if track_id in index:
                    index[track_id]["title"] = title
                    self._save_index(index)
            except OSError as e:
                raise StorageError(f"Cannot rename track {track_id}: {e}") from e
        return track
