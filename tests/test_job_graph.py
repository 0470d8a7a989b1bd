"""Tests for the job graph engine against an in-memory SQLite store."""

import asyncio
from datetime import datetime, timezone

import pytest
from sqlalchemy import func, select

from peridot.db.base import Base
from peridot.db.engine import create_db_engine, create_session_factory
from peridot.db.models.job import JobPathConfigRow, JobPriorIdRow, JobRow
from peridot.errors.exceptions import (
    DuplicateKeyError,
    MalformedInputError,
    NotFoundError,
    ReferentialIntegrityError,
    StoreTimeoutError,
)
from peridot.models.common import MAX_ID
from peridot.models.enums import Health, JobConfigType, Status
from peridot.models.job import JobPathConfig
from peridot.repositories.job_repo import JobRepository
from peridot.repositories.repo_repo import RepoPullRepository
from peridot.services.job_graph import JobGraph

STARTED = datetime(2019, 5, 2, 13, 53, 41, tzinfo=timezone.utc)
FINISHED = datetime(2019, 5, 2, 13, 54, 2, tzinfo=timezone.utc)


@pytest.fixture
def graph(db_session):
    return JobGraph(db_session)


async def _add_ready_job(graph, hierarchy, priors=()) -> int:
    job_id = await graph.add_job(hierarchy["repopull_id"], hierarchy["agent_id"], priors)
    await graph.update_job_is_ready(job_id, True)
    return job_id


async def _finish(graph, job_id, health=Health.OK):
    await graph.update_job_status(job_id, STARTED, FINISHED, Status.STOPPED, health, "done")


async def _count(db_session, model) -> int:
    return await db_session.scalar(select(func.count()).select_from(model))


# ---------------------------------------------------------------------------
# Creation and lookup
# ---------------------------------------------------------------------------

async def test_add_job_defaults(graph, hierarchy):
    job_id = await graph.add_job(hierarchy["repopull_id"], hierarchy["agent_id"])
    job = await graph.get_job_by_id(job_id)
    assert job.id == job_id
    assert job.repopull_id == hierarchy["repopull_id"]
    assert job.agent_id == hierarchy["agent_id"]
    assert job.status is Status.STARTUP
    assert job.health is Health.OK
    assert job.started_at is None and job.finished_at is None
    assert job.output == ""
    assert job.is_ready is False
    assert job.priorjob_ids == []
    assert job.config.kv == {} and job.config.codereader == {} and job.config.spdxreader == {}


async def test_add_job_with_configs_round_trip(graph, hierarchy):
    first = await graph.add_job(hierarchy["repopull_id"], hierarchy["agent_id"])
    second = await graph.add_job(hierarchy["repopull_id"], hierarchy["agent_id"])
    job_id = await graph.add_job_with_configs(
        hierarchy["repopull_id"],
        hierarchy["agent_id"],
        [second, first, second],
        config_kv={"hello": "world", "mode": "fast"},
        config_codereader={
            "primary": JobPathConfig.reference(first),
            "deps": JobPathConfig.literal("/deps/"),
        },
        config_spdxreader={"licenses": JobPathConfig.literal("/spdx/")},
    )

    job = await graph.get_job_by_id(job_id)
    assert job.priorjob_ids == [first, second]
    assert job.config.kv == {"hello": "world", "mode": "fast"}
    assert job.config.codereader == {
        "primary": JobPathConfig.reference(first),
        "deps": JobPathConfig.literal("/deps/"),
    }
    assert job.config.spdxreader == {"licenses": JobPathConfig.literal("/spdx/")}

    dumped = job.model_dump(mode="json", exclude_none=True)
    assert dumped["config"]["codereader"]["primary"] == {"priorjob_id": first}
    assert dumped["config"]["codereader"]["deps"] == {"path": "/deps/"}


async def test_reference_config_stores_null_value(graph, hierarchy, db_session):
    first = await graph.add_job(hierarchy["repopull_id"], hierarchy["agent_id"])
    job_id = await graph.add_job_with_configs(
        hierarchy["repopull_id"],
        hierarchy["agent_id"],
        config_codereader={"primary": JobPathConfig.reference(first)},
    )
    row = await db_session.scalar(select(JobPathConfigRow).where(JobPathConfigRow.job_id == job_id))
    await db_session.commit()
    assert row.value is None
    assert row.priorjob_id == first


async def test_config_reference_does_not_add_edge(graph, hierarchy):
    first = await graph.add_job(hierarchy["repopull_id"], hierarchy["agent_id"])
    job_id = await graph.add_job_with_configs(
        hierarchy["repopull_id"],
        hierarchy["agent_id"],
        config_spdxreader={"input": JobPathConfig.reference(first)},
    )
    assert (await graph.get_job_by_id(job_id)).priorjob_ids == []


async def test_get_job_not_found(graph, hierarchy):
    with pytest.raises(NotFoundError) as exc_info:
        await graph.get_job_by_id(999)
    assert exc_info.value.message == "no job found with ID 999"


async def test_get_jobs_by_ids_partial_miss(graph, hierarchy):
    created = [await graph.add_job(hierarchy["repopull_id"], hierarchy["agent_id"]) for _ in range(3)]
    await graph.delete_job(created[1])

    jobs = await graph.get_jobs_by_ids(created)
    assert [job.id for job in jobs] == [created[0], created[2]]
    missing = set(created) - {job.id for job in jobs}
    assert missing == {created[1]}


async def test_get_jobs_by_ids_empty(graph, hierarchy):
    assert await graph.get_jobs_by_ids([]) == []


async def test_get_jobs_by_ids_skips_ids_beyond_key_range(graph, hierarchy):
    job_id = await graph.add_job(hierarchy["repopull_id"], hierarchy["agent_id"])
    jobs = await graph.get_jobs_by_ids([job_id, 2**40, MAX_ID + 1])
    assert [job.id for job in jobs] == [job_id]
    assert await graph.get_jobs_by_ids([2**40]) == []


async def test_get_all_jobs_for_repo_pull(graph, hierarchy, db_session):
    other_pull = await RepoPullRepository(db_session).add(hierarchy["repo_id"], "master", "def456", "", "")
    await db_session.commit()
    mine = await graph.add_job(hierarchy["repopull_id"], hierarchy["agent_id"])
    theirs = await graph.add_job(other_pull, hierarchy["agent_id"])

    jobs = await graph.get_all_jobs_for_repo_pull(hierarchy["repopull_id"])
    assert {job.id for job in jobs} == {mine}
    assert {job.id for job in await graph.get_all_jobs_for_repo_pull(other_pull)} == {theirs}
    assert await graph.get_all_jobs_for_repo_pull(12345) == []


# ---------------------------------------------------------------------------
# Referential integrity and atomicity
# ---------------------------------------------------------------------------

async def test_unknown_prior_job_rejected_and_nothing_written(graph, hierarchy, db_session):
    with pytest.raises(ReferentialIntegrityError) as exc_info:
        await graph.add_job_with_configs(
            hierarchy["repopull_id"],
            hierarchy["agent_id"],
            [404],
            config_kv={"a": "b"},
        )
    assert exc_info.value.relationship == "jobpriorids.priorjob_id -> jobs.id"
    assert "404" in exc_info.value.message

    assert await _count(db_session, JobRow) == 0
    assert await _count(db_session, JobPathConfigRow) == 0
    await db_session.commit()


async def test_unknown_config_reference_rejected(graph, hierarchy, db_session):
    with pytest.raises(ReferentialIntegrityError):
        await graph.add_job_with_configs(
            hierarchy["repopull_id"],
            hierarchy["agent_id"],
            config_codereader={"primary": JobPathConfig.reference(77)},
        )
    assert await _count(db_session, JobRow) == 0
    await db_session.commit()


async def test_unknown_agent_rejected(graph, hierarchy):
    with pytest.raises(ReferentialIntegrityError):
        await graph.add_job(hierarchy["repopull_id"], 9999)


async def test_unknown_repo_pull_rejected(graph, hierarchy):
    with pytest.raises(ReferentialIntegrityError):
        await graph.add_job(9999, hierarchy["agent_id"])


async def test_zero_prior_id_rejected(graph, hierarchy):
    with pytest.raises(MalformedInputError):
        await graph.add_job(hierarchy["repopull_id"], hierarchy["agent_id"], [0])


async def test_prior_id_beyond_key_range_rejected(graph, hierarchy, db_session):
    with pytest.raises(MalformedInputError) as exc_info:
        await graph.add_job(hierarchy["repopull_id"], hierarchy["agent_id"], [MAX_ID + 1])
    assert exc_info.value.details == {"priorjob_ids": [MAX_ID + 1]}
    assert await _count(db_session, JobRow) == 0
    await db_session.commit()


async def test_config_key_unique_within_one_collection(graph, hierarchy, db_engine):
    job_id = await graph.add_job_with_configs(
        hierarchy["repopull_id"],
        hierarchy["agent_id"],
        config_codereader={"primary": JobPathConfig.literal("/code/")},
    )

    async with create_session_factory(db_engine)() as session:
        repo = JobRepository(session)
        await repo.insert_config(job_id, JobConfigType.SPDXREADER, "primary", "/spdx/", None)
        await session.commit()
        with pytest.raises(DuplicateKeyError):
            await repo.insert_config(job_id, JobConfigType.CODEREADER, "primary", "/other/", None)
        await session.rollback()

    job = await graph.get_job_by_id(job_id)
    assert job.config.codereader == {"primary": JobPathConfig.literal("/code/")}
    assert job.config.spdxreader == {"primary": JobPathConfig.literal("/spdx/")}


# ---------------------------------------------------------------------------
# Updates and deletes
# ---------------------------------------------------------------------------

async def test_update_is_ready_touches_only_flag(graph, hierarchy):
    job_id = await graph.add_job_with_configs(
        hierarchy["repopull_id"], hierarchy["agent_id"], config_kv={"k": "v"}
    )
    await graph.update_job_is_ready(job_id, True)
    job = await graph.get_job_by_id(job_id)
    assert job.is_ready is True
    assert job.status is Status.STARTUP
    assert job.config.kv == {"k": "v"}


async def test_update_status_replaces_run_fields(graph, hierarchy):
    job_id = await _add_ready_job(graph, hierarchy)
    await graph.update_job_status(job_id, STARTED, None, Status.RUNNING, Health.DEGRADED, "halfway")
    job = await graph.get_job_by_id(job_id)
    assert job.started_at == STARTED
    assert job.finished_at is None
    assert job.status is Status.RUNNING
    assert job.health is Health.DEGRADED
    assert job.output == "halfway"
    assert job.is_ready is True


async def test_update_status_rejects_same(graph, hierarchy):
    job_id = await graph.add_job(hierarchy["repopull_id"], hierarchy["agent_id"])
    with pytest.raises(MalformedInputError):
        await graph.update_job_status(job_id, None, None, Status.SAME, Health.OK, "")


@pytest.mark.parametrize("operation", ["ready", "status", "delete"])
async def test_mutating_missing_job_is_not_found(graph, hierarchy, operation):
    with pytest.raises(NotFoundError):
        if operation == "ready":
            await graph.update_job_is_ready(321, True)
        elif operation == "status":
            await graph.update_job_status(321, None, None, Status.RUNNING, Health.OK, "")
        else:
            await graph.delete_job(321)


async def test_delete_cascades_edges_and_configs(graph, hierarchy, db_session):
    first = await graph.add_job(hierarchy["repopull_id"], hierarchy["agent_id"])
    second = await graph.add_job_with_configs(
        hierarchy["repopull_id"], hierarchy["agent_id"], [first], config_kv={"k": "v"}
    )
    third = await graph.add_job(hierarchy["repopull_id"], hierarchy["agent_id"], [second])

    await graph.delete_job(second)

    assert await _count(db_session, JobPathConfigRow) == 0
    assert await _count(db_session, JobPriorIdRow) == 0
    await db_session.commit()
    assert (await graph.get_job_by_id(third)).priorjob_ids == []


async def test_delete_refused_while_config_refers_to_job(graph, hierarchy):
    first = await graph.add_job(hierarchy["repopull_id"], hierarchy["agent_id"])
    await graph.add_job_with_configs(
        hierarchy["repopull_id"],
        hierarchy["agent_id"],
        config_codereader={"primary": JobPathConfig.reference(first)},
    )
    with pytest.raises(ReferentialIntegrityError):
        await graph.delete_job(first)
    assert (await graph.get_job_by_id(first)).id == first


async def test_jobs_cascade_with_repo_pull(graph, hierarchy, db_session):
    job_id = await graph.add_job(hierarchy["repopull_id"], hierarchy["agent_id"])
    await RepoPullRepository(db_session).delete(hierarchy["repopull_id"])
    await db_session.commit()
    with pytest.raises(NotFoundError):
        await graph.get_job_by_id(job_id)


# ---------------------------------------------------------------------------
# Readiness
# ---------------------------------------------------------------------------

async def test_ready_without_dependencies(graph, hierarchy):
    job_id = await _add_ready_job(graph, hierarchy)
    assert [job.id for job in await graph.get_ready_jobs(0)] == [job_id]


async def test_not_ready_until_flagged(graph, hierarchy):
    await graph.add_job(hierarchy["repopull_id"], hierarchy["agent_id"])
    assert await graph.get_ready_jobs() == []


async def test_blocked_by_unfinished_prior(graph, hierarchy):
    prior = await graph.add_job(hierarchy["repopull_id"], hierarchy["agent_id"])
    dependent = await _add_ready_job(graph, hierarchy, [prior])
    await graph.update_job_status(prior, STARTED, None, Status.RUNNING, Health.OK, "")
    assert dependent not in [job.id for job in await graph.get_ready_jobs()]


async def test_blocked_by_prior_error(graph, hierarchy):
    prior = await graph.add_job(hierarchy["repopull_id"], hierarchy["agent_id"])
    dependent = await _add_ready_job(graph, hierarchy, [prior])
    await _finish(graph, prior, Health.ERROR)
    assert dependent not in [job.id for job in await graph.get_ready_jobs()]


async def test_unblocked_by_prior_degraded(graph, hierarchy):
    prior = await graph.add_job(hierarchy["repopull_id"], hierarchy["agent_id"])
    dependent = await _add_ready_job(graph, hierarchy, [prior])
    await _finish(graph, prior, Health.DEGRADED)
    assert [job.id for job in await graph.get_ready_jobs()] == [dependent]


async def test_blocked_while_any_prior_unclear(graph, hierarchy):
    done = await graph.add_job(hierarchy["repopull_id"], hierarchy["agent_id"])
    pending = await graph.add_job(hierarchy["repopull_id"], hierarchy["agent_id"])
    dependent = await _add_ready_job(graph, hierarchy, [done, pending])
    await _finish(graph, done)
    await graph.update_job_status(pending, STARTED, None, Status.RUNNING, Health.OK, "")
    assert await graph.get_ready_jobs() == []

    await _finish(graph, pending)
    ready = await graph.get_ready_jobs()
    assert [job.id for job in ready] == [dependent]
    assert ready[0].priorjob_ids == sorted([done, pending])


async def test_started_or_unhealthy_jobs_never_ready(graph, hierarchy):
    running = await _add_ready_job(graph, hierarchy)
    await graph.update_job_status(running, STARTED, None, Status.RUNNING, Health.OK, "")
    stopped = await _add_ready_job(graph, hierarchy)
    await _finish(graph, stopped)
    degraded = await _add_ready_job(graph, hierarchy)
    await graph.update_job_status(degraded, None, None, Status.STARTUP, Health.DEGRADED, "")
    assert await graph.get_ready_jobs() == []


async def test_ready_cap_returns_lowest_ids(graph, hierarchy):
    ready_ids = [await _add_ready_job(graph, hierarchy) for _ in range(5)]
    jobs = await graph.get_ready_jobs(3)
    assert [job.id for job in jobs] == sorted(ready_ids)[:3]
    assert len(await graph.get_ready_jobs(0)) == 5
    assert len(await graph.get_ready_jobs(10)) == 5


async def test_ready_jobs_are_fully_hydrated(graph, hierarchy):
    prior = await graph.add_job(hierarchy["repopull_id"], hierarchy["agent_id"])
    await _finish(graph, prior)
    job_id = await graph.add_job_with_configs(
        hierarchy["repopull_id"],
        hierarchy["agent_id"],
        [prior],
        config_codereader={"primary": JobPathConfig.reference(prior)},
    )
    await graph.update_job_is_ready(job_id, True)

    [job] = await graph.get_ready_jobs()
    assert job.id == job_id
    assert job.priorjob_ids == [prior]
    assert job.config.codereader["primary"].priorjob_id == prior


async def test_negative_cap_rejected(graph, hierarchy):
    with pytest.raises(MalformedInputError):
        await graph.get_ready_jobs(-1)


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------

async def test_caller_owned_transaction_is_not_committed(graph, hierarchy, db_session):
    with pytest.raises(RuntimeError):
        async with db_session.begin():
            await graph.add_job(hierarchy["repopull_id"], hierarchy["agent_id"])
            raise RuntimeError("abandon")
    assert await _count(db_session, JobRow) == 0
    await db_session.commit()


async def test_timeout_surfaces_as_store_timeout(db_session, hierarchy, monkeypatch):
    graph = JobGraph(db_session, timeout=0.01)

    async def slow_select(limit=0):
        await asyncio.sleep(1)
        return []

    monkeypatch.setattr(graph.repo, "select_ready_job_ids", slow_select)
    with pytest.raises(StoreTimeoutError) as exc_info:
        await graph.get_ready_jobs()
    assert exc_info.value.status_code == 504


async def test_failed_call_inside_caller_transaction_undoes_only_itself(graph, hierarchy, db_session):
    async with db_session.begin():
        kept = await graph.add_job(hierarchy["repopull_id"], hierarchy["agent_id"])
        with pytest.raises(ReferentialIntegrityError):
            await graph.add_job(hierarchy["repopull_id"], hierarchy["agent_id"], [kept + 100])
    assert await _count(db_session, JobRow) == 1
    assert (await graph.get_job_by_id(kept)).repopull_id == hierarchy["repopull_id"]


async def test_ready_jobs_read_from_one_snapshot(tmp_path, seed_hierarchy, monkeypatch):
    engine = create_db_engine(f"sqlite+aiosqlite:///{tmp_path / 'snapshot.db'}")
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        factory = create_session_factory(engine)
        async with factory() as reader, factory() as writer:
            ids = await seed_hierarchy(reader)
            graph = JobGraph(reader)
            job_id = await _add_ready_job(graph, ids)
            get_job_rows = graph.repo.get_job_rows

            async def delete_before_fetch(job_ids):
                # A second session removes the job after selection, before hydration
                await JobGraph(writer).delete_job(job_ids[0])
                return await get_job_rows(job_ids)

            monkeypatch.setattr(graph.repo, "get_job_rows", delete_before_fetch)
            assert [job.id for job in await graph.get_ready_jobs()] == [job_id]

            monkeypatch.undo()
            assert await graph.get_ready_jobs() == []
    finally:
        await engine.dispose()
