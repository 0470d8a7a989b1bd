"""Pydantic models for Job, its configuration and the job request bodies.

Wire format uses snake_case keys. Within the codereader and spdxreader
collections each entry is either ``{"path": "..."}`` or
``{"priorjob_id": N}``; whichever side is unset is omitted on output.
"""

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator

from peridot.models.common import EntityId, RefId
from peridot.models.enums import Health, Status


class JobPathConfig(BaseModel):
    """Input location for a reader agent: a literal path or another job's output.

    Exactly one of ``path`` and ``priorjob_id`` is set. A ``priorjob_id``
    tells the agent which job's result to consume; it does not gate this
    job on that one finishing. Add the ID to ``priorjob_ids`` as well when
    ordering matters.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    path: str | None = None
    priorjob_id: RefId | None = None

    @model_validator(mode="after")
    def _check_one_form(self) -> "JobPathConfig":
        if (self.path is None) == (self.priorjob_id is None):
            raise ValueError("exactly one of path or priorjob_id must be set")
        return self

    @classmethod
    def literal(cls, path: str) -> "JobPathConfig":
        return cls(path=path)

    @classmethod
    def reference(cls, priorjob_id: int) -> "JobPathConfig":
        return cls(priorjob_id=priorjob_id)

    @property
    def is_reference(self) -> bool:
        return self.priorjob_id is not None


class JobConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kv: dict[str, str] = Field(default_factory=dict)
    codereader: dict[str, JobPathConfig] = Field(default_factory=dict)
    spdxreader: dict[str, JobPathConfig] = Field(default_factory=dict)


def _sorted_unique(ids: list[int]) -> list[int]:
    return sorted(set(ids))


# Prior job IDs form a set; keep them sorted for stable output.
PriorJobIds = Annotated[list[RefId], AfterValidator(_sorted_unique)]


class Job(BaseModel):
    """A unit of work bound to one repo pull and one agent."""

    model_config = ConfigDict(extra="forbid")

    id: EntityId = 0
    repopull_id: EntityId
    agent_id: EntityId
    priorjob_ids: PriorJobIds = Field(default_factory=list)
    # None means "has not happened yet"
    started_at: datetime | None = None
    finished_at: datetime | None = None
    status: Status = Status.STARTUP
    health: Health = Health.OK
    output: str = ""
    is_ready: bool = False
    config: JobConfig = Field(default_factory=JobConfig)


# ── Request models ─────────────────────────────────────────────────────────────

class JobCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    repopull_id: RefId
    agent_id: RefId
    priorjob_ids: PriorJobIds = Field(default_factory=list)
    config: JobConfig = Field(default_factory=JobConfig)


class JobReadyUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    is_ready: bool


class JobStatusUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    started_at: datetime | None = None
    finished_at: datetime | None = None
    status: Status
    health: Health
    output: str = ""

    @model_validator(mode="after")
    def _reject_same(self) -> "JobStatusUpdate":
        if self.status == Status.SAME or self.health == Health.SAME:
            raise ValueError("status and health must be concrete values, not 'same'")
        return self
