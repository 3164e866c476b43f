# services/job_runner.py

"""
Job runner - executes job handlers and records their outcome
"""

import asyncio
import logging
from datetime import timedelta
from typing import Awaitable, Callable, Dict, List, Optional, Set, Tuple

from pydantic import BaseModel

from worker.core.exceptions import JobAlreadyRunningError, ProcessingFailure, UnknownJobError
from worker.jobs.check_new_alerts import ProgressReporter, STALE_WINDOW, process_check_new_alerts_job
from worker.models.job import JobDescriptor, JobFailure, JobKind, JobOutcome
from worker.notifiers.web_notifier import Notifier
from worker.services.job_service import JobService
from worker.stores.alert_store import AlertStore
from worker.utils.clock import Clock

logger = logging.getLogger(__name__)

JobHandler = Callable[[JobDescriptor, ProgressReporter], Awaitable[BaseModel]]


class JobRunner:
    """
    Runs one job descriptor at a time per (name, id) and reports the
    outcome to the job service. Failed runs are not retried.
    """

    def __init__(self, job_service: JobService, handlers: Dict[JobKind, JobHandler]):
        self.job_service = job_service
        self.handlers = dict(handlers)
        self._active: Set[Tuple[str, str]] = set()

    def _progress_reporter(self, descriptor: JobDescriptor) -> ProgressReporter:
        def report(percent: int) -> None:
            logger.debug(f"{descriptor.label}\t: progress {percent}")
            self.job_service.update_job_progress(descriptor.id, percent)

        return report

    async def execute(self, descriptor: JobDescriptor) -> JobOutcome:
        """Execute a job and return its result or its terminal failure"""
        key = (descriptor.name.value, descriptor.id)
        if key in self._active:
            raise JobAlreadyRunningError(f"{descriptor.label} is already running")

        if not self.job_service.has_job(descriptor.id):
            self.job_service.create_job(descriptor)

        self._active.add(key)
        try:
            handler = self.handlers.get(descriptor.name)
            if handler is None:
                raise UnknownJobError(f"No handler registered for {descriptor.name.value}")

            self.job_service.start_job(descriptor.id)
            result = await handler(descriptor, self._progress_reporter(descriptor))

        except asyncio.CancelledError:
            logger.warning(f"{descriptor.label}\t: Cancelled")
            self.job_service.fail_job(descriptor.id, "cancelled", self._failure(descriptor, "cancelled"))
            raise

        except Exception as e:
            logger.error(f"{descriptor.label}\t: Job failed: {e}", exc_info=True)
            if isinstance(e, ProcessingFailure):
                failure = self._failure(descriptor, str(e), e.alert_id, e.alerts_processed)
            else:
                failure = self._failure(descriptor, str(e))
            self.job_service.fail_job(descriptor.id, str(e), failure)
            return JobOutcome(ok=False, failure=failure)

        finally:
            self._active.discard(key)

        logger.info(f"{descriptor.label}\t: Job completed")
        self.job_service.complete_job(descriptor.id, result.model_dump(mode="json"))
        return JobOutcome(ok=True, result=result)

    @staticmethod
    def _failure(
            descriptor: JobDescriptor,
            error: str,
            alert_id: Optional[str] = None,
            alerts_processed: Optional[List[str]] = None
    ) -> JobFailure:
        return JobFailure(
            job_id=descriptor.id,
            job_name=descriptor.name.value,
            error=error,
            alert_id=alert_id,
            alerts_processed=list(alerts_processed or [])
        )


def create_job_runner(
        job_service: JobService,
        store: AlertStore,
        notifier: Notifier,
        clock: Clock,
        stale_window: timedelta = STALE_WINDOW
) -> JobRunner:
    """Build a runner with the alert-check handler wired to its collaborators"""

    async def check_new_alerts(descriptor: JobDescriptor, progress_reporter: ProgressReporter):
        return await process_check_new_alerts_job(
            descriptor,
            clock=clock,
            store=store,
            notifier=notifier,
            progress_reporter=progress_reporter,
            stale_window=stale_window
        )

    return JobRunner(job_service, {JobKind.CHECK_NEW_ALERTS: check_new_alerts})
