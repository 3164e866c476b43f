# services/__init__.py

from .job_service import JobService
from .job_runner import JobRunner, create_job_runner

__all__ = ['JobService', 'JobRunner', 'create_job_runner']
