# jobs/check_new_alerts.py

"""
Check the alerts for any which have recently become active, mark each one
processed and push a notification out for it
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, List

from worker.core.exceptions import ProcessingFailure
from worker.models.alert import Alert
from worker.models.job import CheckNewAlertsResult, JobDescriptor, JobKind
from worker.notifiers.web_notifier import Notifier
from worker.stores.alert_store import AlertStore
from worker.utils.clock import Clock

logger = logging.getLogger(__name__)

# Alerts that became active longer ago than this are skipped, not notified late
STALE_WINDOW = timedelta(hours=3)

ProgressReporter = Callable[[int], None]


def select_eligible_alerts(
        alerts: Iterable[Alert],
        now: datetime,
        stale_window: timedelta = STALE_WINDOW
) -> List[Alert]:
    """Keep unprocessed alerts whose start is within the stale window (inclusive)"""
    cutoff = now - stale_window
    return [a for a in alerts if not a.was_processed and a.start >= cutoff]


class AlertProcessor:
    """
    Marks eligible alerts as processed one at a time.

    Each alert is saved before it is notified, and the next alert is not
    started until the previous one has finished. The first failed save
    aborts the batch with a ProcessingFailure; alerts saved before it stay
    processed.
    """

    def __init__(self, store: AlertStore, notifier: Notifier, progress_reporter: ProgressReporter, label: str = "job"):
        self.store = store
        self.notifier = notifier
        self.progress_reporter = progress_reporter
        self.label = label

    async def process(self, alerts: List[Alert]) -> List[str]:
        alerts_processed: List[str] = []
        count = len(alerts)

        for i, alert in enumerate(alerts):
            logger.info(f"{self.label}\t: Processing alert {alert.id}")
            updated = alert.model_copy(update={"was_processed": True})

            try:
                await self.store.save(updated)
            except Exception as e:
                logger.error(
                    f"{self.label}\t: Failed to save alert {alert.id}; "
                    f"processed before failure: {alerts_processed}",
                    exc_info=True
                )
                raise ProcessingFailure(alert.id, e, alerts_processed) from e

            alerts_processed.append(alert.id)
            await self._notify(updated)

            logger.info(f"{self.label}\t: Finished processing alert {alert.id}")
            self.progress_reporter(round((i + 1) / count * 100))

        return alerts_processed

    async def _notify(self, alert: Alert):
        # The alert is already persisted as processed; a failed delivery is not retried
        try:
            await self.notifier.notify(alert)
        except Exception as e:
            logger.error(f"{self.label}\t: Notification for alert {alert.id} failed: {e}", exc_info=True)


async def process_check_new_alerts_job(
        descriptor: JobDescriptor,
        clock: Clock,
        store: AlertStore,
        notifier: Notifier,
        progress_reporter: ProgressReporter,
        stale_window: timedelta = STALE_WINDOW
) -> CheckNewAlertsResult:
    """Run one alert check and return the ids of the alerts it processed"""
    if descriptor.name != JobKind.CHECK_NEW_ALERTS:
        raise ValueError(f"Cannot run {descriptor.name} as {JobKind.CHECK_NEW_ALERTS.value}")

    label = descriptor.label
    logger.info(f"{label}\t: Checking for new alerts")

    now = clock.now()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    active_alerts = await store.active_alerts(now)
    eligible = select_eligible_alerts(active_alerts, now, stale_window)

    logger.info(f"{label}\t: Found {len(eligible)} alerts which have not been processed")

    processor = AlertProcessor(store, notifier, progress_reporter, label=label)
    alerts_processed = await processor.process(eligible)

    # Final report, emitted on every successful run
    progress_reporter(100)

    return CheckNewAlertsResult(
        alerts_processed=alerts_processed,
        job_name=descriptor.name.value,
        kind=JobKind.CHECK_NEW_ALERTS
    )
