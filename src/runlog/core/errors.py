"""Run history errors."""


class RunHistoryError(Exception):
    """Base class for write-path failures in the run history store."""


class UnknownRunError(RunHistoryError):
    """Raised when an operation references a process id with no run record."""
    def __init__(self, process_id: int):
        self.process_id = process_id
        super().__init__(f"Unknown process run: {process_id}")


class AlreadyTerminalError(RunHistoryError):
    """Raised when a run that is no longer running is completed or written to."""
    def __init__(self, process_id: int, status: str):
        self.process_id = process_id
        self.status = status
        super().__init__(f"Process run {process_id} is already {status}")
