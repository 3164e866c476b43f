# core/exceptions.py

"""
Worker error taxonomy
"""

from typing import List, Optional


class WorkerError(Exception):
    """Base class for errors raised by the worker"""


class SelectionInputError(WorkerError):
    """A stored alert record is malformed (e.g. has no start)"""

    def __init__(self, message: str, alert_id: Optional[str] = None):
        super().__init__(message)
        self.alert_id = alert_id


class StoreError(WorkerError):
    """The alert store could not persist a record"""


class NotifyError(WorkerError):
    """Delivering an alert notification failed. Never fatal to a run."""


class ProcessingFailure(WorkerError):
    """
    Saving one alert failed and the batch was aborted.

    Carries the ids that were saved before the failure so the partial
    progress of the run stays observable.
    """

    def __init__(self, alert_id: str, cause: BaseException, alerts_processed: Optional[List[str]] = None):
        super().__init__(f"Failed to process alert {alert_id}: {cause}")
        self.alert_id = alert_id
        self.cause = cause
        self.alerts_processed = list(alerts_processed or [])


class UnknownJobError(WorkerError):
    """No handler is registered for the job kind"""


class JobAlreadyRunningError(WorkerError):
    """A run with the same name and id is already executing"""
