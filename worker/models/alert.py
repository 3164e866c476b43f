# models/alert.py

"""
Alert data models
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class Alert(BaseModel):
    """A notice with a validity window, dispatched at most once per activation"""

    id: str = Field(..., min_length=1)
    start: datetime
    end: Optional[datetime] = None
    title: str = ""
    message: str = ""
    was_processed: bool = False

    @field_validator("start", "end")
    @classmethod
    def _as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @model_validator(mode="after")
    def _check_window(self) -> "Alert":
        if self.end is not None and self.end < self.start:
            raise ValueError("alert end must not be before start")
        return self
