"""Pydantic models for projects and subprojects."""

from pydantic import BaseModel, ConfigDict, Field

from peridot.models.common import EntityId, RefId


class Project(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: EntityId = 0
    name: str
    fullname: str


class Subproject(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: EntityId = 0
    project_id: EntityId
    name: str
    fullname: str


# ── Request models ─────────────────────────────────────────────────────────────

class ProjectCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)
    fullname: str = Field(min_length=1)


class ProjectUpdate(BaseModel):
    """Empty strings leave the stored value unchanged."""

    model_config = ConfigDict(extra="forbid")

    name: str = ""
    fullname: str = ""


class SubprojectCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    project_id: RefId
    name: str = Field(min_length=1)
    fullname: str = Field(min_length=1)
