"""tracklog - GPX track ingestion and statistics."""

from tracklog.assembler import assemble_track
from tracklog.ingest import parse_and_summarize

__version__ = "0.1.0"

__all__ = ["assemble_track", "parse_and_summarize", "__version__"]
