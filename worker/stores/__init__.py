# stores/__init__.py

from .alert_store import AlertStore, InMemoryAlertStore, SQLiteAlertStore, build_alert_store

__all__ = ['AlertStore', 'InMemoryAlertStore', 'SQLiteAlertStore', 'build_alert_store']
