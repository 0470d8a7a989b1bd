"""Project and subproject repositories."""

from sqlalchemy.ext.asyncio import AsyncSession

from peridot.db.models.hierarchy import ProjectRow, SubprojectRow
from peridot.errors.exceptions import MalformedInputError
from peridot.models.project import Project, Subproject
from peridot.repositories.base import BaseRepository
from peridot.repositories.job_repo import CONFIG_FOREIGN_KEY


def _names_update(entity: str, pk_value: int, new_name: str, new_fullname: str) -> dict:
    """Build the column set for a name/fullname update; empty means unchanged."""
    values = {}
    if new_name:
        values["name"] = new_name
    if new_fullname:
        values["fullname"] = new_fullname
    if not values:
        raise MalformedInputError(f"only empty strings passed to update {entity} for id {pk_value}")
    return values


class ProjectRepository(BaseRepository):
    entity = "project"

    def __init__(self, session: AsyncSession):
        super().__init__(session, ProjectRow)

    @staticmethod
    def to_model(row: ProjectRow) -> Project:
        return Project(id=row.id, name=row.name, fullname=row.fullname)

    async def get_all(self) -> list[Project]:
        return [self.to_model(r) for r in await self.list_rows()]

    async def get(self, project_id: int) -> Project:
        return self.to_model(await self.get_row(project_id))

    async def add(self, name: str, fullname: str) -> int:
        row = await self.create("", name=name, fullname=fullname)
        return row.id

    async def update_names(self, project_id: int, new_name: str, new_fullname: str) -> None:
        values = _names_update(self.entity, project_id, new_name, new_fullname)
        await self.update_by_id(project_id, **values)

    async def delete(self, project_id: int) -> None:
        await self.delete_by_id(project_id, CONFIG_FOREIGN_KEY)


class SubprojectRepository(BaseRepository):
    entity = "subproject"

    def __init__(self, session: AsyncSession):
        super().__init__(session, SubprojectRow)

    @staticmethod
    def to_model(row: SubprojectRow) -> Subproject:
        return Subproject(id=row.id, project_id=row.project_id, name=row.name, fullname=row.fullname)

    async def get_all(self) -> list[Subproject]:
        return [self.to_model(r) for r in await self.list_rows()]

    async def get_all_for_project(self, project_id: int) -> list[Subproject]:
        rows = await self.list_rows(SubprojectRow.project_id == project_id)
        return [self.to_model(r) for r in rows]

    async def get(self, subproject_id: int) -> Subproject:
        return self.to_model(await self.get_row(subproject_id))

    async def add(self, project_id: int, name: str, fullname: str) -> int:
        row = await self.create(
            "subprojects.project_id -> projects.id",
            project_id=project_id,
            name=name,
            fullname=fullname,
        )
        return row.id

    async def update_names(self, subproject_id: int, new_name: str, new_fullname: str) -> None:
        values = _names_update(self.entity, subproject_id, new_name, new_fullname)
        await self.update_by_id(subproject_id, **values)

    async def update_project_id(self, subproject_id: int, new_project_id: int) -> None:
        await self.update_by_id(
            subproject_id, "subprojects.project_id -> projects.id", project_id=new_project_id
        )

    async def delete(self, subproject_id: int) -> None:
        await self.delete_by_id(subproject_id, CONFIG_FOREIGN_KEY)
