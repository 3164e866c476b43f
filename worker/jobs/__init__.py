# jobs/__init__.py

from .check_new_alerts import (
    STALE_WINDOW,
    AlertProcessor,
    select_eligible_alerts,
    process_check_new_alerts_job
)

__all__ = ['STALE_WINDOW', 'AlertProcessor', 'select_eligible_alerts', 'process_check_new_alerts_job']
