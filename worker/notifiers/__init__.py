# notifiers/__init__.py

from .web_notifier import Notifier, LoggingNotifier

__all__ = ['Notifier', 'LoggingNotifier']
