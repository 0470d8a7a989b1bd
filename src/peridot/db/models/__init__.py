"""SQLAlchemy ORM models - import all to register with Base.metadata."""

from peridot.db.models.user import UserRow
from peridot.db.models.hierarchy import (
    ProjectRow,
    RepoBranchRow,
    RepoPullRow,
    RepoRow,
    SubprojectRow,
)
from peridot.db.models.file import FileHashRow, FileInstanceRow
from peridot.db.models.agent import AgentRow
from peridot.db.models.job import JobPathConfigRow, JobPriorIdRow, JobRow

__all__ = [
    "UserRow",
    "ProjectRow",
    "SubprojectRow",
    "RepoRow",
    "RepoBranchRow",
    "RepoPullRow",
    "FileHashRow",
    "FileInstanceRow",
    "AgentRow",
    "JobRow",
    "JobPriorIdRow",
    "JobPathConfigRow",
]
