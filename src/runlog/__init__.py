"""runlog — run history store and query service for batch ingestion pipelines."""

__version__ = "0.1.0"

from runlog.ingest.buffer import IngestBuffer
from runlog.pipeline.context import RunContext, IngestStage, track_run

__all__ = ["IngestBuffer", "RunContext", "IngestStage", "track_run", "__version__"]
