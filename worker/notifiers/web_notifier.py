# notifiers/web_notifier.py

"""
Web Notification Adapter
"""

import logging
from typing import Protocol

from worker.models.alert import Alert

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    async def notify(self, alert: Alert) -> None:
        """Deliver an alert. Raises NotifyError on failure."""
        ...


class LoggingNotifier:
    """
    Stand-in for the web push transport.

    Delivery itself is not implemented; the dispatch is only logged so the
    job flow can be exercised end to end.
    """

    def __init__(self):
        logger.info("Initialized LoggingNotifier")

    async def notify(self, alert: Alert) -> None:
        logger.debug(f"Simulate alert {alert.id} ('{alert.title}') sent to web")
