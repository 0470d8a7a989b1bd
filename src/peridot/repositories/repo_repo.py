"""Repo, repo branch and repo pull repositories."""

from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from peridot.db.models.hierarchy import RepoBranchRow, RepoPullRow, RepoRow
from peridot.errors.exceptions import MalformedInputError, NotFoundError, ReferentialIntegrityError
from peridot.models.enums import Health, Status
from peridot.models.repo import Repo, RepoBranch, RepoPull
from peridot.repositories.base import BaseRepository, translate_integrity_error
from peridot.repositories.job_repo import CONFIG_FOREIGN_KEY


class RepoRepository(BaseRepository):
    entity = "repo"

    def __init__(self, session: AsyncSession):
        super().__init__(session, RepoRow)

    @staticmethod
    def to_model(row: RepoRow) -> Repo:
        return Repo(id=row.id, subproject_id=row.subproject_id, name=row.name, address=row.address)

    async def get_all(self) -> list[Repo]:
        return [self.to_model(r) for r in await self.list_rows()]

    async def get_all_for_subproject(self, subproject_id: int) -> list[Repo]:
        rows = await self.list_rows(RepoRow.subproject_id == subproject_id)
        return [self.to_model(r) for r in rows]

    async def get(self, repo_id: int) -> Repo:
        return self.to_model(await self.get_row(repo_id))

    async def add(self, subproject_id: int, name: str, address: str) -> int:
        row = await self.create(
            "repos.subproject_id -> subprojects.id",
            subproject_id=subproject_id,
            name=name,
            address=address,
        )
        return row.id

    async def update_fields(self, repo_id: int, new_name: str, new_address: str) -> None:
        values = {}
        if new_name:
            values["name"] = new_name
        if new_address:
            values["address"] = new_address
        if not values:
            raise MalformedInputError(f"only empty strings passed to update repo for id {repo_id}")
        await self.update_by_id(repo_id, **values)

    async def update_subproject_id(self, repo_id: int, new_subproject_id: int) -> None:
        await self.update_by_id(
            repo_id, "repos.subproject_id -> subprojects.id", subproject_id=new_subproject_id
        )

    async def delete(self, repo_id: int) -> None:
        await self.delete_by_id(repo_id, CONFIG_FOREIGN_KEY)


class RepoBranchRepository:
    """Branches are keyed by (repo_id, branch) rather than an ID."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_all_for_repo(self, repo_id: int) -> list[RepoBranch]:
        stmt = (
            select(RepoBranchRow)
            .where(RepoBranchRow.repo_id == repo_id)
            .order_by(RepoBranchRow.branch)
        )
        result = await self.session.execute(stmt)
        return [RepoBranch(repo_id=r.repo_id, branch=r.branch) for r in result.scalars().all()]

    async def add(self, repo_id: int, branch: str) -> None:
        self.session.add(RepoBranchRow(repo_id=repo_id, branch=branch))
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise translate_integrity_error(
                exc,
                "repo_branches.repo_id -> repos.id",
                f"could not add branch {branch} for repo ID {repo_id}",
            ) from exc

    async def delete(self, repo_id: int, branch: str) -> None:
        stmt = delete(RepoBranchRow).where(
            RepoBranchRow.repo_id == repo_id,
            RepoBranchRow.branch == branch,
        )
        try:
            result = await self.session.execute(stmt)
        except IntegrityError as exc:
            raise ReferentialIntegrityError(
                CONFIG_FOREIGN_KEY,
                f"branch {branch} of repo {repo_id} is still referenced by {CONFIG_FOREIGN_KEY}",
            ) from exc
        if result.rowcount == 0:
            raise NotFoundError("branch", f"{branch} in repo {repo_id}", field="name")


class RepoPullRepository(BaseRepository):
    entity = "repo pull"

    def __init__(self, session: AsyncSession):
        super().__init__(session, RepoPullRow)

    @staticmethod
    def to_model(row: RepoPullRow) -> RepoPull:
        return RepoPull(
            id=row.id,
            repo_id=row.repo_id,
            branch=row.branch,
            started_at=row.started_at,
            finished_at=row.finished_at,
            status=Status.from_int(row.status),
            health=Health.from_int(row.health),
            output=row.output,
            commit=row.commit,
            tag=row.tag,
            spdx_id=row.spdx_id,
        )

    async def get_all_for_repo_branch(self, repo_id: int, branch: str) -> list[RepoPull]:
        rows = await self.list_rows(RepoPullRow.repo_id == repo_id, RepoPullRow.branch == branch)
        return [self.to_model(r) for r in rows]

    async def get(self, repopull_id: int) -> RepoPull:
        return self.to_model(await self.get_row(repopull_id))

    async def add(self, repo_id: int, branch: str, commit: str, tag: str, spdx_id: str) -> int:
        """Add a pull that has not started yet."""
        return await self.add_full(
            repo_id, branch, None, None, Status.STARTUP, Health.OK, "", commit, tag, spdx_id
        )

    async def add_full(
        self,
        repo_id: int,
        branch: str,
        started_at: datetime | None,
        finished_at: datetime | None,
        status: Status,
        health: Health,
        output: str,
        commit: str,
        tag: str,
        spdx_id: str,
    ) -> int:
        row = await self.create(
            "repo_pulls.(repo_id, branch) -> repo_branches",
            repo_id=repo_id,
            branch=branch,
            started_at=started_at,
            finished_at=finished_at,
            status=status.code,
            health=health.code,
            output=output,
            commit=commit,
            tag=tag,
            spdx_id=spdx_id,
        )
        return row.id

    async def delete(self, repopull_id: int) -> None:
        await self.delete_by_id(repopull_id, CONFIG_FOREIGN_KEY)
