"""Job, job dependency edge and job config tables."""

from datetime import datetime

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from peridot.db.base import Base, UTCDateTime


class JobRow(Base):
    __tablename__ = "jobs"
    __table_args__ = (
        Index("ix_jobs_readiness", "is_ready", "status", "health"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    repopull_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("repo_pulls.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # No cascade: an agent with jobs cannot be deleted
    agent_id: Mapped[int] = mapped_column(Integer, ForeignKey("agents.id"), nullable=False, index=True)
    started_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    finished_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    status: Mapped[int] = mapped_column(Integer, nullable=False)
    health: Mapped[int] = mapped_column(Integer, nullable=False)
    output: Mapped[str] = mapped_column(Text, nullable=False, default="")
    is_ready: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class JobPriorIdRow(Base):
    """Dependency edge: ``job_id`` may not run until ``priorjob_id`` is clear."""

    __tablename__ = "jobpriorids"

    job_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("jobs.id", ondelete="CASCADE"), primary_key=True
    )
    priorjob_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("jobs.id", ondelete="CASCADE"), primary_key=True, index=True
    )


class JobPathConfigRow(Base):
    """One config entry; unique per (job, collection, key).

    ``value`` holds the literal for kv entries and for path entries with
    no back-reference; ``priorjob_id`` holds the back-reference otherwise.
    A job referenced here cannot be deleted while the entry exists.
    """

    __tablename__ = "jobpathconfigs"

    job_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("jobs.id", ondelete="CASCADE"), primary_key=True
    )
    config_type: Mapped[int] = mapped_column("type", Integer, primary_key=True)
    config_key: Mapped[str] = mapped_column("key", String(255), primary_key=True)
    value: Mapped[str | None] = mapped_column(Text, nullable=True)
    priorjob_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("jobs.id"), nullable=True, index=True
    )
