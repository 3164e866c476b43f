import asyncio
from datetime import timedelta

import pytest

from worker.core.exceptions import JobAlreadyRunningError
from worker.models.job import JobDescriptor, JobKind, JobState
from worker.services.job_runner import JobRunner, create_job_runner
from worker.services.job_service import JobService
from worker.utils.clock import FixedClock

from conftest import NOW, RecordingStore, make_alert, seed


def descriptor(job_id="run-1"):
    return JobDescriptor(name=JobKind.CHECK_NEW_ALERTS, id=job_id)


def build_runner(store, notifier):
    service = JobService()
    return service, create_job_runner(service, store=store, notifier=notifier, clock=FixedClock(NOW))


def test_successful_run_is_recorded_as_completed(notifier):
    store = seed(RecordingStore(), [make_alert("A", timedelta(hours=1))])
    service, runner = build_runner(store, notifier)

    outcome = asyncio.run(runner.execute(descriptor()))

    assert outcome.ok is True
    assert outcome.result.alerts_processed == ["A"]
    assert outcome.failure is None

    status = service.get_job("run-1")
    assert status.status == JobState.COMPLETED
    assert status.progress == 100
    assert status.result == {"kind": "check_new_alerts", "alerts_processed": ["A"], "job_name": "check_new_alerts"}


def test_zero_eligible_run_still_completes_at_100(notifier):
    service, runner = build_runner(RecordingStore(), notifier)

    outcome = asyncio.run(runner.execute(descriptor()))

    assert outcome.ok is True
    assert outcome.result.alerts_processed == []
    assert service.get_job("run-1").progress == 100


def test_partial_failure_is_reported_with_processed_ids(notifier):
    store = seed(RecordingStore(fail_on={"a2"}), [
        make_alert("a1", timedelta(minutes=30)),
        make_alert("a2", timedelta(minutes=20)),
        make_alert("a3", timedelta(minutes=10)),
    ])
    service, runner = build_runner(store, notifier)

    outcome = asyncio.run(runner.execute(descriptor()))

    assert outcome.ok is False
    assert outcome.result is None
    assert outcome.failure.alert_id == "a2"
    assert outcome.failure.alerts_processed == ["a1"]

    status = service.get_job("run-1")
    assert status.status == JobState.FAILED
    assert status.failure.alerts_processed == ["a1"]
    assert status.progress == 33
    assert "a2" in status.error


def test_progress_recorded_by_service_never_decreases():
    service = JobService()
    service.create_job(descriptor())

    for percent in (10, 50, 30, 120, -5):
        service.update_job_progress("run-1", percent)

    assert service.get_job("run-1").progress == 100


def test_unknown_handler_is_a_terminal_failure():
    service = JobService()
    runner = JobRunner(service, handlers={})

    outcome = asyncio.run(runner.execute(descriptor()))

    assert outcome.ok is False
    assert "No handler registered" in outcome.failure.error
    assert service.get_job("run-1").status == JobState.FAILED


def test_same_run_cannot_be_entered_twice():
    service = JobService()

    async def scenario():
        started = asyncio.Event()
        release = asyncio.Event()

        async def slow_handler(desc, report):
            started.set()
            await release.wait()
            raise RuntimeError("stop")

        runner = JobRunner(service, {JobKind.CHECK_NEW_ALERTS: slow_handler})
        first = asyncio.create_task(runner.execute(descriptor()))
        await started.wait()

        with pytest.raises(JobAlreadyRunningError):
            await runner.execute(descriptor())

        release.set()
        return await first

    outcome = asyncio.run(scenario())
    assert outcome.ok is False


def test_cancelled_run_is_marked_failed():
    service = JobService()

    async def scenario():
        started = asyncio.Event()

        async def hanging_handler(desc, report):
            report(40)
            started.set()
            await asyncio.sleep(3600)

        runner = JobRunner(service, {JobKind.CHECK_NEW_ALERTS: hanging_handler})
        task = asyncio.create_task(runner.execute(descriptor()))
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(scenario())

    status = service.get_job("run-1")
    assert status.status == JobState.FAILED
    assert status.error == "cancelled"
    assert status.progress == 40


def test_failed_run_is_not_retried(notifier):
    store = seed(RecordingStore(fail_on={"a1"}), [make_alert("a1", timedelta(minutes=5))])
    service, runner = build_runner(store, notifier)

    asyncio.run(runner.execute(descriptor()))

    assert store.saved == []
    assert service.get_job("run-1").status == JobState.FAILED


def test_retry_of_failed_run_id_starts_clean(notifier):
    store = seed(RecordingStore(fail_on={"a3"}), [
        make_alert("a1", timedelta(minutes=30)),
        make_alert("a2", timedelta(minutes=20)),
        make_alert("a3", timedelta(minutes=10)),
    ])
    service, runner = build_runner(store, notifier)

    first = asyncio.run(runner.execute(descriptor()))
    assert first.ok is False
    assert service.get_job("run-1").progress == 67

    seed(store, [make_alert(f"b{i}", timedelta(minutes=i)) for i in (1, 2, 3)])

    progress_seen = []
    original_update = service.update_job_progress

    def recording_update(job_id, percent):
        original_update(job_id, percent)
        progress_seen.append(service.get_job(job_id).progress)

    service.update_job_progress = recording_update
    store.fail_on.clear()
    retry = asyncio.run(runner.execute(descriptor()))

    assert retry.ok is True
    assert retry.result.alerts_processed == ["a3", "b1", "b2", "b3"]
    assert progress_seen[0] == 25

    status = service.get_job("run-1")
    assert status.status == JobState.COMPLETED
    assert status.error is None
    assert status.failure is None
    assert status.progress == 100
    assert status.result["alerts_processed"] == ["a3", "b1", "b2", "b3"]


def test_clear_finished_jobs_keeps_newest_and_active_runs():
    service = JobService()
    for i in range(4):
        service.create_job(descriptor(f"done-{i}"))
        service.complete_job(f"done-{i}", {})
    service.create_job(descriptor("broken"))
    service.fail_job("broken", "boom")
    service.create_job(descriptor("pending"))

    removed = service.clear_finished_jobs(keep=2)

    assert removed == 3
    assert list(service.jobs) == ["done-3", "broken", "pending"]
    assert service.clear_finished_jobs() == 2
    assert list(service.jobs) == ["pending"]
