"""Job graph API routes."""

from fastapi import APIRouter, Query

from peridot.dependencies import Graph, IdPath
from peridot.models.job import JobCreate, JobReadyUpdate, JobStatusUpdate

router = APIRouter(tags=["Jobs"])


@router.get("/jobs/ready")
async def get_ready_jobs(graph: Graph, n: int = Query(0, ge=0)) -> list[dict]:
    """List jobs that can start now, lowest ID first; ``n=0`` returns all."""
    jobs = await graph.get_ready_jobs(n)
    return [job.model_dump(mode="json", exclude_none=True) for job in jobs]


@router.get("/jobs")
async def get_jobs_by_ids(graph: Graph, ids: list[int] = Query(default=[])) -> list[dict]:
    """Batch lookup. Unknown IDs are left out of the result, not reported."""
    jobs = await graph.get_jobs_by_ids(ids)
    return [job.model_dump(mode="json", exclude_none=True) for job in jobs]


@router.get("/jobs/{job_id}")
async def get_job(job_id: IdPath, graph: Graph) -> dict:
    job = await graph.get_job_by_id(job_id)
    return job.model_dump(mode="json", exclude_none=True)


@router.get("/repopulls/{repopull_id}/jobs")
async def get_jobs_for_repo_pull(repopull_id: IdPath, graph: Graph) -> list[dict]:
    jobs = await graph.get_all_jobs_for_repo_pull(repopull_id)
    return [job.model_dump(mode="json", exclude_none=True) for job in jobs]


@router.post("/jobs", status_code=201)
async def create_job(body: JobCreate, graph: Graph) -> dict:
    job_id = await graph.add_job_with_configs(
        body.repopull_id,
        body.agent_id,
        body.priorjob_ids,
        config_kv=body.config.kv,
        config_codereader=body.config.codereader,
        config_spdxreader=body.config.spdxreader,
    )
    job = await graph.get_job_by_id(job_id)
    return job.model_dump(mode="json", exclude_none=True)


@router.put("/jobs/{job_id}/ready")
async def update_job_ready(job_id: IdPath, body: JobReadyUpdate, graph: Graph) -> dict:
    await graph.update_job_is_ready(job_id, body.is_ready)
    job = await graph.get_job_by_id(job_id)
    return job.model_dump(mode="json", exclude_none=True)


@router.put("/jobs/{job_id}/status")
async def update_job_status(job_id: IdPath, body: JobStatusUpdate, graph: Graph) -> dict:
    await graph.update_job_status(
        job_id, body.started_at, body.finished_at, body.status, body.health, body.output
    )
    job = await graph.get_job_by_id(job_id)
    return job.model_dump(mode="json", exclude_none=True)


@router.delete("/jobs/{job_id}", status_code=204)
async def delete_job(job_id: IdPath, graph: Graph) -> None:
    await graph.delete_job(job_id)
