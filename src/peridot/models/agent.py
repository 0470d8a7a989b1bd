"""Pydantic models for agents."""

from pydantic import BaseModel, ConfigDict, Field

from peridot.models.common import EntityId


class Agent(BaseModel):
    """An external service registered to run jobs, with its declared abilities."""

    model_config = ConfigDict(extra="forbid")

    id: EntityId = 0
    name: str
    is_active: bool = False
    address: str = ""
    port: int = Field(0, ge=0, le=65535)
    is_codereader: bool = False
    is_spdxreader: bool = False
    is_codewriter: bool = False
    is_spdxwriter: bool = False


# ── Request models ─────────────────────────────────────────────────────────────

class AgentCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)
    is_active: bool = False
    address: str = ""
    port: int = Field(0, ge=0, le=65535)
    is_codereader: bool = False
    is_spdxreader: bool = False
    is_codewriter: bool = False
    is_spdxwriter: bool = False


class AgentStatusUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    is_active: bool
    address: str
    port: int = Field(ge=0, le=65535)


class AgentAbilitiesUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    is_codereader: bool
    is_spdxreader: bool
    is_codewriter: bool
    is_spdxwriter: bool
