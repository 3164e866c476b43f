import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from worker.core.exceptions import NotifyError, StoreError
from worker.models.alert import Alert
from worker.stores.alert_store import InMemoryAlertStore


NOW = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_alert(alert_id, start_offset, was_processed=False, **kwargs):
    """Alert starting `start_offset` before NOW"""
    return Alert(id=alert_id, start=NOW - start_offset, was_processed=was_processed, **kwargs)


class RecordingStore(InMemoryAlertStore):
    """In-memory store that counts saves and can refuse selected ids"""

    def __init__(self, fail_on=()):
        super().__init__()
        self.fail_on = set(fail_on)
        self.saved = []

    async def save(self, alert):
        if alert.id in self.fail_on:
            raise StoreError(f"disk full while saving {alert.id}")
        await super().save(alert)
        self.saved.append(alert.id)


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    async def notify(self, alert):
        self.sent.append(alert.id)


class FailingNotifier:
    async def notify(self, alert):
        raise NotifyError("push service unavailable")


class ProgressLog:
    def __init__(self):
        self.reports = []

    def __call__(self, percent):
        self.reports.append(percent)


@pytest.fixture
def progress():
    return ProgressLog()


@pytest.fixture
def notifier():
    return RecordingNotifier()


def seed(store, alerts):
    async def _add():
        for alert in alerts:
            await store.add(alert)

    asyncio.run(_add())
    return store
