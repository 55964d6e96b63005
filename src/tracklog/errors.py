"""Error types raised by the ingestion pipeline.

Fatal errors abort processing of a single file. Callers tell them apart by
class (or by ``kind``) so an upload handler can surface the problem to the
user while the batch importer records it and moves on.
"""


class TrackError(Exception):
    """Base class for all tracklog errors."""

    @property
    def kind(self) -> str:
        return type(self).__name__


class ParseError(TrackError):
    """A GPX document could not be turned into segments."""


class MalformedDocument(ParseError):
    """Structurally broken XML, or a root element other than <gpx>."""


class InvalidCoordinate(ParseError):
    """A point lies outside the valid latitude/longitude ranges."""

    def __init__(self, lat: float, lon: float):
        self.lat = lat
        self.lon = lon
        super().__init__(f"Coordinate out of range: lat={lat}, lon={lon}")


class EmptyTrack(ParseError):
    """No usable track points were found."""


class ValidationError(TrackError):
    """A track could not be assembled because an invariant does not hold."""


class StorageError(TrackError):
    """The track store failed to persist or load a track."""
