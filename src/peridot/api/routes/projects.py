"""Project and subproject API routes."""

from fastapi import APIRouter

from peridot.dependencies import DBSession, IdPath
from peridot.models.project import ProjectCreate, ProjectUpdate, SubprojectCreate
from peridot.repositories.project_repo import ProjectRepository, SubprojectRepository

router = APIRouter(tags=["Projects"])


@router.get("/projects")
async def list_projects(db: DBSession) -> list[dict]:
    return [p.model_dump(mode="json") for p in await ProjectRepository(db).get_all()]


@router.get("/projects/{project_id}")
async def get_project(project_id: IdPath, db: DBSession) -> dict:
    return (await ProjectRepository(db).get(project_id)).model_dump(mode="json")


@router.post("/projects", status_code=201)
async def create_project(body: ProjectCreate, db: DBSession) -> dict:
    repo = ProjectRepository(db)
    project_id = await repo.add(body.name, body.fullname)
    await db.commit()
    return (await repo.get(project_id)).model_dump(mode="json")


@router.put("/projects/{project_id}")
async def update_project(project_id: IdPath, body: ProjectUpdate, db: DBSession) -> dict:
    """Rename a project. Empty fields keep their stored value."""
    repo = ProjectRepository(db)
    await repo.update_names(project_id, body.name, body.fullname)
    await db.commit()
    return (await repo.get(project_id)).model_dump(mode="json")


@router.delete("/projects/{project_id}", status_code=204)
async def delete_project(project_id: IdPath, db: DBSession) -> None:
    await ProjectRepository(db).delete(project_id)
    await db.commit()


@router.get("/projects/{project_id}/subprojects")
async def list_subprojects(project_id: IdPath, db: DBSession) -> list[dict]:
    subprojects = await SubprojectRepository(db).get_all_for_project(project_id)
    return [s.model_dump(mode="json") for s in subprojects]


@router.get("/subprojects/{subproject_id}")
async def get_subproject(subproject_id: IdPath, db: DBSession) -> dict:
    return (await SubprojectRepository(db).get(subproject_id)).model_dump(mode="json")


@router.post("/subprojects", status_code=201)
async def create_subproject(body: SubprojectCreate, db: DBSession) -> dict:
    repo = SubprojectRepository(db)
    subproject_id = await repo.add(body.project_id, body.name, body.fullname)
    await db.commit()
    return (await repo.get(subproject_id)).model_dump(mode="json")


@router.delete("/subprojects/{subproject_id}", status_code=204)
async def delete_subproject(subproject_id: IdPath, db: DBSession) -> None:
    await SubprojectRepository(db).delete(subproject_id)
    await db.commit()
