"""Pydantic model for users."""

from pydantic import BaseModel, ConfigDict

from peridot.models.common import EntityId
from peridot.models.enums import UserAccessLevel


class User(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: EntityId = 0
    name: str
    github: str
    access: UserAccessLevel = UserAccessLevel.DISABLED
