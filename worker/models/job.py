# models/job.py

"""
Job-related data models
"""

import uuid
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any
from enum import Enum


class JobKind(str, Enum):
    CHECK_NEW_ALERTS = "check_new_alerts"


class JobState(str, Enum):
    STARTED = "started"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class JobDescriptor(BaseModel):
    name: JobKind
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    data: Dict[str, Any] = Field(default_factory=dict)

    @property
    def label(self) -> str:
        """Log prefix identifying the run"""
        return f"{self.name.value}[{self.id}]"


class CheckNewAlertsResult(BaseModel):
    kind: JobKind = JobKind.CHECK_NEW_ALERTS
    alerts_processed: List[str] = Field(default_factory=list)
    job_name: str

    @field_validator("kind")
    @classmethod
    def _check_kind(cls, value: JobKind) -> JobKind:
        if value != JobKind.CHECK_NEW_ALERTS:
            raise ValueError(f"result kind must be {JobKind.CHECK_NEW_ALERTS.value}")
        return value


class JobFailure(BaseModel):
    job_id: str
    job_name: str
    error: str
    alert_id: Optional[str] = None
    alerts_processed: List[str] = Field(default_factory=list)


class JobOutcome(BaseModel):
    ok: bool
    result: Optional[CheckNewAlertsResult] = None
    failure: Optional[JobFailure] = None


class JobStatus(BaseModel):
    job_id: str
    name: JobKind
    status: JobState
    progress: int = 0
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    failure: Optional[JobFailure] = None
    created_at: Optional[str] = None
    completed_at: Optional[str] = None


class CheckNewAlertsRequest(BaseModel):
    job_id: Optional[str] = Field(None, min_length=1, description="Run id; generated when omitted")
