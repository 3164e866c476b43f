# routers/job_router.py

"""
Job Management API Routes
"""

import logging
from datetime import timedelta
from typing import Optional
from fastapi import APIRouter, HTTPException, BackgroundTasks
from worker.core.config import settings
from worker.models.job import CheckNewAlertsRequest, JobDescriptor, JobKind, JobState, JobStatus
from worker.notifiers.web_notifier import LoggingNotifier
from worker.services.job_runner import create_job_runner
from worker.services.job_service import JobService
from worker.stores.alert_store import build_alert_store
from worker.utils.clock import SystemClock

logger = logging.getLogger(__name__)

router = APIRouter(prefix=f"{settings.api_prefix}/jobs", tags=["Jobs"])
job_service = JobService()
alert_store = build_alert_store(settings.store_backend, settings.sqlite_path)
job_runner = create_job_runner(
    job_service,
    store=alert_store,
    notifier=LoggingNotifier(),
    clock=SystemClock(),
    stale_window=timedelta(hours=settings.stale_window_hours)
)


def enqueue_check_new_alerts(job_id: Optional[str] = None) -> JobDescriptor:
    """Register a new alert-check run with the job service"""
    if job_id:
        descriptor = JobDescriptor(name=JobKind.CHECK_NEW_ALERTS, id=job_id)
    else:
        descriptor = JobDescriptor(name=JobKind.CHECK_NEW_ALERTS)
    job_service.create_job(descriptor)
    return descriptor


@router.post("/check-new-alerts")
async def create_check_new_alerts_job(
        background_tasks: BackgroundTasks,
        request: Optional[CheckNewAlertsRequest] = None
):
    """Start an alert check as background job"""
    job_id = request.job_id if request else None

    if job_id:
        existing = job_service.get_job(job_id)
        if existing and existing.status in (JobState.STARTED, JobState.RUNNING):
            raise HTTPException(status_code=409, detail=f"Job {job_id} is already running")

    descriptor = enqueue_check_new_alerts(job_id)
    logger.info(f"POST /api/jobs/check-new-alerts - Enqueued {descriptor.label}")

    background_tasks.add_task(run_job_background, descriptor)

    return {
        "job_id": descriptor.id,
        "status": "started",
        "message": "Alert check started"
    }


@router.get("/{job_id}", response_model=JobStatus)
async def get_job_status(job_id: str):
    """Get status of a job run"""
    job = job_service.get_job(job_id)

    if not job:
        raise HTTPException(status_code=404, detail="Job not found")

    return job


@router.delete("")
async def clear_finished_jobs():
    """Clear all completed and failed jobs from memory"""
    cleared_count = job_service.clear_finished_jobs()
    active_count = job_service.get_active_jobs_count()

    return {
        "message": f"Cleared {cleared_count} finished jobs",
        "active_jobs": active_count
    }


async def run_job_background(descriptor: JobDescriptor):
    """Background task for a job run"""
    outcome = await job_runner.execute(descriptor)
    if outcome.ok:
        logger.info(f"{descriptor.label}\t: Processed {len(outcome.result.alerts_processed)} alerts")
    else:
        logger.warning(f"{descriptor.label}\t: Failed after processing {outcome.failure.alerts_processed}")
