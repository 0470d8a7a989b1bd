"""Job dependency graph: create, update and query jobs and their edges.

A job lists the earlier jobs it depends on (its prior jobs). A job is
ready to run once it is marked ready, has never started, is healthy, and
every prior job has stopped without an error. Degraded prior jobs do not
block their dependents.

Each public operation is one unit of work against the store: it either
commits as a whole or leaves no trace. When the session passed in is
already inside a transaction, the operation runs in a savepoint and the
caller stays responsible for committing or rolling back the outer one.
"""

import asyncio
import logging
from collections import defaultdict
from collections.abc import AsyncIterator, Iterable, Mapping
from contextlib import asynccontextmanager
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from peridot.config import settings
from peridot.db.models.job import JobPathConfigRow, JobRow
from peridot.errors.exceptions import MalformedInputError, PeridotError, StoreTimeoutError
from peridot.models.common import MAX_ID
from peridot.models.enums import Health, JobConfigType, Status
from peridot.models.job import Job, JobConfig, JobPathConfig
from peridot.repositories.job_repo import JobRepository

logger = logging.getLogger(__name__)


def _apply_config_row(config: JobConfig, row: JobPathConfigRow) -> None:
    config_type = JobConfigType.from_int(row.config_type)
    if config_type == JobConfigType.KV:
        config.kv[row.config_key] = row.value or ""
        return
    if row.priorjob_id:
        entry = JobPathConfig.reference(row.priorjob_id)
    else:
        entry = JobPathConfig.literal(row.value or "")
    if config_type == JobConfigType.CODEREADER:
        config.codereader[row.config_key] = entry
    else:
        config.spdxreader[row.config_key] = entry


def _check_prior_ids(prior_ids: Iterable[int]) -> list[int]:
    unique = sorted(set(prior_ids))
    bad = [p for p in unique if not 1 <= p <= MAX_ID]
    if bad:
        raise MalformedInputError(
            f"prior job IDs must be between 1 and {MAX_ID}",
            details={"priorjob_ids": bad},
        )
    return unique


class JobGraph:
    """Store-backed job graph bound to one database session."""

    def __init__(self, session: AsyncSession, timeout: float | None = None):
        self.session = session
        self.repo = JobRepository(session)
        self.timeout = settings.store_timeout_seconds if timeout is None else timeout

    @asynccontextmanager
    async def _unit_of_work(self, operation: str, snapshot: bool = False) -> AsyncIterator[None]:
        try:
            async with asyncio.timeout(self.timeout):
                if self.session.in_transaction():
                    # Caller owns the transaction; undo only this call on failure
                    async with self.session.begin_nested():
                        yield
                    return
                async with self.session.begin():
                    if snapshot:
                        await self._use_snapshot_isolation()
                    yield
        except TimeoutError as exc:
            logger.warning("Store timeout in %s after %ss", operation, self.timeout)
            raise StoreTimeoutError(operation, self.timeout) from exc

    async def _use_snapshot_isolation(self) -> None:
        # On SQLite the explicit BEGIN already pins one snapshot per transaction
        if self.session.get_bind().dialect.name == "postgresql":
            await self.session.connection(
                execution_options={"isolation_level": "REPEATABLE READ"}
            )

    async def _hydrate(self, rows: list[JobRow]) -> list[Job]:
        if not rows:
            return []
        job_ids = [row.id for row in rows]

        priors: dict[int, list[int]] = defaultdict(list)
        for job_id, prior_id in await self.repo.get_prior_edges(job_ids):
            priors[job_id].append(prior_id)

        configs: dict[int, JobConfig] = {}
        for config_row in await self.repo.get_config_rows(job_ids):
            config = configs.setdefault(config_row.job_id, JobConfig())
            _apply_config_row(config, config_row)

        return [
            Job(
                id=row.id,
                repopull_id=row.repopull_id,
                agent_id=row.agent_id,
                priorjob_ids=priors.get(row.id, []),
                started_at=row.started_at,
                finished_at=row.finished_at,
                status=Status.from_int(row.status),
                health=Health.from_int(row.health),
                output=row.output,
                is_ready=row.is_ready,
                config=configs.get(row.id) or JobConfig(),
            )
            for row in rows
        ]

    # ── reads ──────────────────────────────────────────────────────────────

    async def get_job_by_id(self, job_id: int) -> Job:
        async with self._unit_of_work("get_job_by_id"):
            row = await self.repo.get_job_row(job_id)
            jobs = await self._hydrate([row])
        return jobs[0]

    async def get_jobs_by_ids(self, job_ids: Iterable[int]) -> list[Job]:
        """Fetch the jobs that exist among ``job_ids``, ordered by ID.

        IDs with no matching job are skipped rather than reported.
        """
        # IDs outside the key range cannot match a row
        wanted = sorted(i for i in set(job_ids) if 0 <= i <= MAX_ID)
        if not wanted:
            return []
        async with self._unit_of_work("get_jobs_by_ids"):
            rows = await self.repo.get_job_rows(wanted)
            return await self._hydrate(rows)

    async def get_all_jobs_for_repo_pull(self, repopull_id: int) -> list[Job]:
        async with self._unit_of_work("get_all_jobs_for_repo_pull"):
            rows = await self.repo.get_job_rows_for_repo_pull(repopull_id)
            return await self._hydrate(rows)

    async def get_ready_jobs(self, n: int = 0) -> list[Job]:
        """Return up to ``n`` runnable jobs, lowest ID first (0 means all)."""
        if n < 0:
            raise MalformedInputError(
                "number of ready jobs requested cannot be negative",
                details={"n": n},
            )
        async with self._unit_of_work("get_ready_jobs", snapshot=True):
            job_ids = await self.repo.select_ready_job_ids(n)
            rows = await self.repo.get_job_rows(job_ids)
            jobs = await self._hydrate(rows)
        logger.debug("Ready jobs: %s", [job.id for job in jobs])
        return jobs

    # ── writes ─────────────────────────────────────────────────────────────

    async def add_job(self, repopull_id: int, agent_id: int, priorjob_ids: Iterable[int] = ()) -> int:
        return await self.add_job_with_configs(repopull_id, agent_id, priorjob_ids)

    async def add_job_with_configs(
        self,
        repopull_id: int,
        agent_id: int,
        priorjob_ids: Iterable[int] = (),
        config_kv: Mapping[str, str] | None = None,
        config_codereader: Mapping[str, JobPathConfig] | None = None,
        config_spdxreader: Mapping[str, JobPathConfig] | None = None,
    ) -> int:
        """Create a job with its edges and configuration, returning its ID.

        New jobs start in STARTUP with health OK, no timestamps, empty
        output and not ready. If any prior job or referenced config job
        does not exist nothing is written.
        """
        prior_ids = _check_prior_ids(priorjob_ids)
        path_configs = (
            (JobConfigType.CODEREADER, config_codereader or {}),
            (JobConfigType.SPDXREADER, config_spdxreader or {}),
        )
        try:
            async with self._unit_of_work("add_job_with_configs"):
                job_id = await self.repo.insert_job(
                    repopull_id, agent_id, None, None, Status.STARTUP, Health.OK, "", False
                )
                for prior_id in prior_ids:
                    await self.repo.insert_prior_edge(job_id, prior_id)
                for key in sorted(config_kv or {}):
                    await self.repo.insert_config(job_id, JobConfigType.KV, key, config_kv[key], None)
                for config_type, entries in path_configs:
                    for key in sorted(entries):
                        entry = entries[key]
                        value = None if entry.is_reference else entry.path
                        await self.repo.insert_config(job_id, config_type, key, value, entry.priorjob_id)
        except PeridotError as exc:
            logger.warning("Job creation failed for repo pull %s: %s", repopull_id, exc.message)
            raise

        logger.info(
            "Job %d created (repopull=%d agent=%d priors=%s)",
            job_id, repopull_id, agent_id, prior_ids,
        )
        return job_id

    async def update_job_is_ready(self, job_id: int, ready: bool) -> None:
        async with self._unit_of_work("update_job_is_ready"):
            await self.repo.update_is_ready(job_id, ready)
        logger.info("Job %d marked ready=%s", job_id, ready)

    async def update_job_status(
        self,
        job_id: int,
        started_at: datetime | None,
        finished_at: datetime | None,
        status: Status,
        health: Health,
        output: str,
    ) -> None:
        """Overwrite the job's run state. SAME is not a storable value."""
        if status == Status.SAME or health == Health.SAME:
            raise MalformedInputError(
                "status and health must be concrete values, not 'same'",
                details={"status": status.string, "health": health.string},
            )
        async with self._unit_of_work("update_job_status"):
            await self.repo.update_status(job_id, started_at, finished_at, status, health, output)
        logger.info("Job %d status=%s health=%s", job_id, status.string, health.string)

    async def delete_job(self, job_id: int) -> None:
        """Delete a job and its edges and config entries.

        Jobs that list this job as a prior job lose that edge. A job that
        another job's config entry still refers to cannot be deleted.
        """
        async with self._unit_of_work("delete_job"):
            await self.repo.delete(job_id)
        logger.info("Job %d deleted", job_id)
