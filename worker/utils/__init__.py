# utils/__init__.py

from .clock import Clock, SystemClock, FixedClock

__all__ = ['Clock', 'SystemClock', 'FixedClock']
