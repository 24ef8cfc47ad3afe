"""Process run and unit models — the persisted execution history."""

from datetime import datetime
from sqlalchemy import String, Text, DateTime, Integer, Boolean, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column
from runlog.core.database import Base
from runlog.core.clock import utcnow
import enum


class RunStatus(str, enum.Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not RunStatus.RUNNING


class ProcessRun(Base):
    __tablename__ = "process_runs"
    # AUTOINCREMENT keeps process ids monotonic on SQLite
    __table_args__ = {"sqlite_autoincrement": True}

    process_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    status: Mapped[str] = mapped_column(String(20), default=RunStatus.RUNNING.value, index=True)
    start_time: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    end_time: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    invoked_by: Mapped[str | None] = mapped_column(String(100), nullable=True)  # scheduler, manual, api
    error: Mapped[str | None] = mapped_column(Text, nullable=True)


class ProcessUnit(Base):
    __tablename__ = "process_units"
    __table_args__ = (Index("ix_process_units_run_ts", "process_id", "timestamp"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    process_id: Mapped[int] = mapped_column(Integer, ForeignKey("process_runs.process_id"), nullable=False)
    unit_key: Mapped[str] = mapped_column(String(255), nullable=False)
    success: Mapped[bool] = mapped_column(Boolean, default=True)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    unit_type: Mapped[str | None] = mapped_column(String(50), nullable=True)  # e.g. sobi_file, bill
    action: Mapped[str | None] = mapped_column(String(50), nullable=True)  # e.g. ingest, archive
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
