from runlog.ingest.buffer import IngestBuffer

__all__ = ["IngestBuffer"]
