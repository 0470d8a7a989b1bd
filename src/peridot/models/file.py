"""Pydantic models for file hashes and file instances."""

from pydantic import BaseModel, ConfigDict

from peridot.models.common import BigEntityId, EntityId


class FileHash(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: BigEntityId = 0
    sha256: str
    sha1: str


class FileInstance(BaseModel):
    """A file at a path within one repo pull, pointing at its content hash."""

    model_config = ConfigDict(extra="forbid")

    id: BigEntityId = 0
    repopull_id: EntityId
    filehash_id: BigEntityId
    path: str
