"""Agent registry API routes."""

from fastapi import APIRouter

from peridot.dependencies import DBSession, IdPath
from peridot.models.agent import AgentAbilitiesUpdate, AgentCreate, AgentStatusUpdate
from peridot.repositories.agent_repo import AgentRepository

router = APIRouter(tags=["Agents"])


@router.get("/agents")
async def list_agents(db: DBSession) -> list[dict]:
    agents = await AgentRepository(db).get_all()
    return [a.model_dump(mode="json") for a in agents]


@router.get("/agents/{agent_id}")
async def get_agent(agent_id: IdPath, db: DBSession) -> dict:
    agent = await AgentRepository(db).get(agent_id)
    return agent.model_dump(mode="json")


@router.post("/agents", status_code=201)
async def create_agent(body: AgentCreate, db: DBSession) -> dict:
    repo = AgentRepository(db)
    agent_id = await repo.add(
        body.name,
        body.is_active,
        body.address,
        body.port,
        body.is_codereader,
        body.is_spdxreader,
        body.is_codewriter,
        body.is_spdxwriter,
    )
    await db.commit()
    return (await repo.get(agent_id)).model_dump(mode="json")


@router.put("/agents/{agent_id}/status")
async def update_agent_status(agent_id: IdPath, body: AgentStatusUpdate, db: DBSession) -> dict:
    repo = AgentRepository(db)
    await repo.update_status(agent_id, body.is_active, body.address, body.port)
    await db.commit()
    return (await repo.get(agent_id)).model_dump(mode="json")


@router.put("/agents/{agent_id}/abilities")
async def update_agent_abilities(agent_id: IdPath, body: AgentAbilitiesUpdate, db: DBSession) -> dict:
    repo = AgentRepository(db)
    await repo.update_abilities(
        agent_id, body.is_codereader, body.is_spdxreader, body.is_codewriter, body.is_spdxwriter
    )
    await db.commit()
    return (await repo.get(agent_id)).model_dump(mode="json")


@router.delete("/agents/{agent_id}", status_code=204)
async def delete_agent(agent_id: IdPath, db: DBSession) -> None:
    await AgentRepository(db).delete(agent_id)
    await db.commit()
