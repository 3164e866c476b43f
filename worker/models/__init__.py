# models/__init__.py

from .alert import Alert
from .job import (
    JobKind,
    JobState,
    JobDescriptor,
    CheckNewAlertsResult,
    JobFailure,
    JobOutcome,
    JobStatus,
    CheckNewAlertsRequest
)

__all__ = [
    'Alert',
    'JobKind',
    'JobState',
    'JobDescriptor',
    'CheckNewAlertsResult',
    'JobFailure',
    'JobOutcome',
    'JobStatus',
    'CheckNewAlertsRequest'
]
