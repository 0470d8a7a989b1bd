"""Job repository: the store-facing half of the job graph.

Every read here is batched by job ID so that hydrating N jobs costs three
queries (jobs, config entries, dependency edges) regardless of N.
"""

from datetime import datetime

from sqlalchemy import case, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from peridot.db.models.job import JobPathConfigRow, JobPriorIdRow, JobRow
from peridot.models.enums import Health, JobConfigType, Status
from peridot.repositories.base import BaseRepository, translate_integrity_error

JOB_FOREIGN_KEYS = "jobs.repopull_id -> repo_pulls.id, jobs.agent_id -> agents.id"
EDGE_FOREIGN_KEY = "jobpriorids.priorjob_id -> jobs.id"
CONFIG_FOREIGN_KEY = "jobpathconfigs.priorjob_id -> jobs.id"


class JobRepository(BaseRepository):
    entity = "job"

    def __init__(self, session: AsyncSession):
        super().__init__(session, JobRow)

    # ── reads ──────────────────────────────────────────────────────────────

    async def get_job_row(self, job_id: int) -> JobRow:
        return await self.get_row(job_id)

    async def get_job_rows(self, job_ids: list[int]) -> list[JobRow]:
        return await self.get_rows(job_ids)

    async def get_job_rows_for_repo_pull(self, repopull_id: int) -> list[JobRow]:
        return await self.list_rows(JobRow.repopull_id == repopull_id)

    async def get_config_rows(self, job_ids: list[int]) -> list[JobPathConfigRow]:
        if not job_ids:
            return []
        stmt = (
            select(JobPathConfigRow)
            .where(JobPathConfigRow.job_id.in_(job_ids))
            .order_by(
                JobPathConfigRow.job_id,
                JobPathConfigRow.config_type,
                JobPathConfigRow.config_key,
            )
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_prior_edges(self, job_ids: list[int]) -> list[tuple[int, int]]:
        """Return (job_id, priorjob_id) pairs for the given jobs."""
        if not job_ids:
            return []
        stmt = (
            select(JobPriorIdRow.job_id, JobPriorIdRow.priorjob_id)
            .where(JobPriorIdRow.job_id.in_(job_ids))
            .order_by(JobPriorIdRow.job_id, JobPriorIdRow.priorjob_id)
        )
        result = await self.session.execute(stmt)
        return [(job_id, prior_id) for job_id, prior_id in result.all()]

    async def select_ready_job_ids(self, limit: int = 0) -> list[int]:
        """Select IDs of jobs that are ready to run, lowest ID first.

        Phase one flags, per job with at least one edge, whether any prior
        job is not terminally clear (not stopped, or stopped with an error).
        Phase two left-joins that flag onto all jobs, treating "no edges"
        as unblocked, and keeps configured jobs that have never started.
        ``limit`` of 0 returns every match.
        """
        prior = aliased(JobRow)
        prior_unclear = case(
            (
                (prior.status != Status.STOPPED.code) | (prior.health == Health.ERROR.code),
                1,
            ),
            else_=0,
        )
        blocked = (
            select(
                JobPriorIdRow.job_id.label("job_id"),
                func.max(prior_unclear).label("any_prior_unready"),
            )
            .join(prior, prior.id == JobPriorIdRow.priorjob_id)
            .group_by(JobPriorIdRow.job_id)
            .subquery("blocked")
        )
        stmt = (
            select(JobRow.id)
            .outerjoin(blocked, blocked.c.job_id == JobRow.id)
            .where(
                func.coalesce(blocked.c.any_prior_unready, 0) == 0,
                JobRow.is_ready.is_(True),
                JobRow.status == Status.STARTUP.code,
                JobRow.health == Health.OK.code,
            )
            .order_by(JobRow.id)
        )
        if limit > 0:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    # ── writes ─────────────────────────────────────────────────────────────

    async def insert_job(
        self,
        repopull_id: int,
        agent_id: int,
        started_at: datetime | None,
        finished_at: datetime | None,
        status: Status,
        health: Health,
        output: str,
        is_ready: bool,
    ) -> int:
        row = await self.create(
            JOB_FOREIGN_KEYS,
            repopull_id=repopull_id,
            agent_id=agent_id,
            started_at=started_at,
            finished_at=finished_at,
            status=status.code,
            health=health.code,
            output=output,
            is_ready=is_ready,
        )
        return row.id

    async def insert_prior_edge(self, job_id: int, priorjob_id: int) -> None:
        self.session.add(JobPriorIdRow(job_id=job_id, priorjob_id=priorjob_id))
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise translate_integrity_error(
                exc,
                EDGE_FOREIGN_KEY,
                f"could not add prior job ID {priorjob_id} to job {job_id}: no such job",
            ) from exc

    async def insert_config(
        self,
        job_id: int,
        config_type: JobConfigType,
        key: str,
        value: str | None,
        priorjob_id: int | None,
    ) -> None:
        self.session.add(
            JobPathConfigRow(
                job_id=job_id,
                config_type=config_type.code,
                config_key=key,
                value=value,
                priorjob_id=priorjob_id,
            )
        )
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise translate_integrity_error(
                exc,
                CONFIG_FOREIGN_KEY,
                f"could not add {config_type.string} config {key!r} to job {job_id}",
            ) from exc

    async def update_is_ready(self, job_id: int, ready: bool) -> None:
        await self.update_by_id(job_id, is_ready=ready)

    async def update_status(
        self,
        job_id: int,
        started_at: datetime | None,
        finished_at: datetime | None,
        status: Status,
        health: Health,
        output: str,
    ) -> None:
        await self.update_by_id(
            job_id,
            started_at=started_at,
            finished_at=finished_at,
            status=status.code,
            health=health.code,
            output=output,
        )

    async def delete(self, job_id: int) -> None:
        await self.delete_by_id(job_id, CONFIG_FOREIGN_KEY)

