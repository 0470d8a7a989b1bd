"""Pydantic models for repos, their branches and pulls."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from peridot.models.common import EntityId, RefId
from peridot.models.enums import Health, Status


class Repo(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: EntityId = 0
    subproject_id: EntityId
    name: str
    address: str


class RepoBranch(BaseModel):
    model_config = ConfigDict(extra="forbid")

    repo_id: EntityId
    branch: str


class RepoPull(BaseModel):
    """One fetch of a repo branch at a point in time."""

    model_config = ConfigDict(extra="forbid")

    id: EntityId = 0
    repo_id: EntityId
    branch: str
    started_at: datetime | None = None
    finished_at: datetime | None = None
    status: Status = Status.STARTUP
    health: Health = Health.OK
    output: str = ""
    commit: str = ""
    tag: str = ""
    spdx_id: str = ""


# ── Request models ─────────────────────────────────────────────────────────────

class RepoCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    subproject_id: RefId
    name: str = Field(min_length=1)
    address: str = Field(min_length=1)


class RepoBranchCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    branch: str = Field(min_length=1)


class RepoPullCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    branch: str = Field(min_length=1)
    commit: str = ""
    tag: str = ""
    spdx_id: str = ""
