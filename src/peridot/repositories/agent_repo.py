"""Agent repository."""

from sqlalchemy.ext.asyncio import AsyncSession

from peridot.db.models.agent import AgentRow
from peridot.errors.exceptions import NotFoundError
from peridot.models.agent import Agent
from peridot.repositories.base import BaseRepository


class AgentRepository(BaseRepository):
    entity = "agent"

    def __init__(self, session: AsyncSession):
        super().__init__(session, AgentRow)

    @staticmethod
    def to_model(row: AgentRow) -> Agent:
        return Agent(
            id=row.id,
            name=row.name,
            is_active=row.is_active,
            address=row.address,
            port=row.port,
            is_codereader=row.is_codereader,
            is_spdxreader=row.is_spdxreader,
            is_codewriter=row.is_codewriter,
            is_spdxwriter=row.is_spdxwriter,
        )

    async def get_all(self) -> list[Agent]:
        return [self.to_model(r) for r in await self.list_rows()]

    async def get(self, agent_id: int) -> Agent:
        return self.to_model(await self.get_row(agent_id))

    async def get_by_name(self, name: str) -> Agent:
        rows = await self.list_rows(AgentRow.name == name)
        if not rows:
            raise NotFoundError("agent", name, field="name")
        return self.to_model(rows[0])

    async def add(
        self,
        name: str,
        is_active: bool,
        address: str,
        port: int,
        is_codereader: bool,
        is_spdxreader: bool,
        is_codewriter: bool,
        is_spdxwriter: bool,
    ) -> int:
        row = await self.create(
            "agents.name unique",
            name=name,
            is_active=is_active,
            address=address,
            port=port,
            is_codereader=is_codereader,
            is_spdxreader=is_spdxreader,
            is_codewriter=is_codewriter,
            is_spdxwriter=is_spdxwriter,
        )
        return row.id

    async def update_status(self, agent_id: int, is_active: bool, address: str, port: int) -> None:
        await self.update_by_id(agent_id, is_active=is_active, address=address, port=port)

    async def update_abilities(
        self,
        agent_id: int,
        is_codereader: bool,
        is_spdxreader: bool,
        is_codewriter: bool,
        is_spdxwriter: bool,
    ) -> None:
        await self.update_by_id(
            agent_id,
            is_codereader=is_codereader,
            is_spdxreader=is_spdxreader,
            is_codewriter=is_codewriter,
            is_spdxwriter=is_spdxwriter,
        )

    async def delete(self, agent_id: int) -> None:
        await self.delete_by_id(agent_id, "jobs.agent_id -> agents.id")
