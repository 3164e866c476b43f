# main.py

"""
Alert Notification Worker - Main Entry Point
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from fastapi import FastAPI
from worker.core.config import settings
from worker.routers import job_router

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


async def check_alerts_periodically(interval_seconds: int, max_retained_jobs: int = settings.max_retained_jobs):
    """Enqueue an alert check every interval, like a repeatable queue job"""
    while True:
        descriptor = job_router.enqueue_check_new_alerts()
        logger.info(f"Scheduled {descriptor.label}")
        await job_router.run_job_background(descriptor)
        job_router.job_service.clear_finished_jobs(keep=max_retained_jobs)
        await asyncio.sleep(interval_seconds)


@asynccontextmanager
async def lifespan(app: FastAPI):
    schedule = None
    if settings.check_interval_seconds > 0:
        logger.info(f"Checking for new alerts every {settings.check_interval_seconds}s")
        schedule = asyncio.create_task(check_alerts_periodically(settings.check_interval_seconds))
    try:
        yield
    finally:
        if schedule is not None:
            schedule.cancel()
            try:
                await schedule
            except asyncio.CancelledError:
                pass


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan
)

# Include routers
app.include_router(job_router.router)


@app.get("/")
async def root():
    """API root endpoint"""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "endpoints": {
            "check_new_alerts": f"{settings.api_prefix}/jobs/check-new-alerts",
            "job_status": f"{settings.api_prefix}/jobs/{{job_id}}",
            "health": "/health",
            "docs": "/docs"
        }
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": settings.app_version,
        "tracked_jobs": job_router.job_service.get_active_jobs_count()
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "worker.main:app",
        host=settings.host,
        port=settings.port
    )
