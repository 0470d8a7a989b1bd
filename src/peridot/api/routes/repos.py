"""Repo, branch and repo pull API routes."""

from fastapi import APIRouter, Query

from peridot.dependencies import DBSession, IdPath
from peridot.models.repo import RepoBranchCreate, RepoCreate, RepoPullCreate
from peridot.repositories.repo_repo import (
    RepoBranchRepository,
    RepoPullRepository,
    RepoRepository,
)

router = APIRouter(tags=["Repos"])


@router.get("/subprojects/{subproject_id}/repos")
async def list_repos(subproject_id: IdPath, db: DBSession) -> list[dict]:
    repos = await RepoRepository(db).get_all_for_subproject(subproject_id)
    return [r.model_dump(mode="json") for r in repos]


@router.get("/repos/{repo_id}")
async def get_repo(repo_id: IdPath, db: DBSession) -> dict:
    return (await RepoRepository(db).get(repo_id)).model_dump(mode="json")


@router.post("/repos", status_code=201)
async def create_repo(body: RepoCreate, db: DBSession) -> dict:
    repo = RepoRepository(db)
    repo_id = await repo.add(body.subproject_id, body.name, body.address)
    await db.commit()
    return (await repo.get(repo_id)).model_dump(mode="json")


@router.delete("/repos/{repo_id}", status_code=204)
async def delete_repo(repo_id: IdPath, db: DBSession) -> None:
    await RepoRepository(db).delete(repo_id)
    await db.commit()


# ─── Branches ──────────────────────────────────────────────────────────────────

@router.get("/repos/{repo_id}/branches")
async def list_branches(repo_id: IdPath, db: DBSession) -> list[dict]:
    branches = await RepoBranchRepository(db).get_all_for_repo(repo_id)
    return [b.model_dump(mode="json") for b in branches]


@router.post("/repos/{repo_id}/branches", status_code=201)
async def create_branch(repo_id: IdPath, body: RepoBranchCreate, db: DBSession) -> dict:
    await RepoBranchRepository(db).add(repo_id, body.branch)
    await db.commit()
    return {"repo_id": repo_id, "branch": body.branch}


# Branch names may contain slashes
@router.delete("/repos/{repo_id}/branches/{branch:path}", status_code=204)
async def delete_branch(repo_id: IdPath, branch: str, db: DBSession) -> None:
    await RepoBranchRepository(db).delete(repo_id, branch)
    await db.commit()


# ─── Repo pulls ────────────────────────────────────────────────────────────────

@router.get("/repos/{repo_id}/pulls")
async def list_repo_pulls(repo_id: IdPath, db: DBSession, branch: str = Query(min_length=1)) -> list[dict]:
    pulls = await RepoPullRepository(db).get_all_for_repo_branch(repo_id, branch)
    return [p.model_dump(mode="json", exclude_none=True) for p in pulls]


@router.get("/repopulls/{repopull_id}")
async def get_repo_pull(repopull_id: IdPath, db: DBSession) -> dict:
    return (await RepoPullRepository(db).get(repopull_id)).model_dump(mode="json", exclude_none=True)


@router.post("/repos/{repo_id}/pulls", status_code=201)
async def create_repo_pull(repo_id: IdPath, body: RepoPullCreate, db: DBSession) -> dict:
    repo = RepoPullRepository(db)
    repopull_id = await repo.add(repo_id, body.branch, body.commit, body.tag, body.spdx_id)
    await db.commit()
    return (await repo.get(repopull_id)).model_dump(mode="json", exclude_none=True)


@router.delete("/repopulls/{repopull_id}", status_code=204)
async def delete_repo_pull(repopull_id: IdPath, db: DBSession) -> None:
    await RepoPullRepository(db).delete(repopull_id)
    await db.commit()
