# services/job_service.py

"""
Job service - tracks status, progress and outcome of job runs
"""

from typing import Dict, Any, Optional
from datetime import datetime
from worker.models.job import JobDescriptor, JobFailure, JobStatus, JobState


class JobService:
    def __init__(self):
        self.jobs: Dict[str, Dict[str, Any]] = {}

    def create_job(self, descriptor: JobDescriptor) -> str:
        """Register a job run"""
        self.jobs[descriptor.id] = {
            "name": descriptor.name,
            "status": JobState.STARTED,
            "progress": 0,
            "result": None,
            "created_at": datetime.now().isoformat(),
            "completed_at": None,
            "data": dict(descriptor.data)
        }

        return descriptor.id

    def has_job(self, job_id: str) -> bool:
        return job_id in self.jobs

    def start_job(self, job_id: str):
        """Mark job as running, discarding anything left by an earlier attempt"""
        if job_id in self.jobs:
            self.jobs[job_id].update({
                "status": JobState.RUNNING,
                "progress": 0,
                "result": None,
                "error": None,
                "failure": None,
                "completed_at": None
            })

    def update_job_progress(self, job_id: str, percent: int):
        """Record progress; reports below the last recorded value are ignored"""
        if job_id in self.jobs:
            percent = max(0, min(100, int(percent)))
            job = self.jobs[job_id]
            job["progress"] = max(job["progress"], percent)

    def complete_job(self, job_id: str, result: Dict[str, Any]):
        """Mark job as completed"""
        if job_id in self.jobs:
            self.jobs[job_id]["status"] = JobState.COMPLETED
            self.jobs[job_id]["result"] = result
            self.jobs[job_id]["completed_at"] = datetime.now().isoformat()

    def fail_job(self, job_id: str, error: str, failure: Optional[JobFailure] = None):
        """Mark job as failed"""
        if job_id in self.jobs:
            self.jobs[job_id]["status"] = JobState.FAILED
            self.jobs[job_id]["error"] = error
            self.jobs[job_id]["failure"] = failure
            self.jobs[job_id]["completed_at"] = datetime.now().isoformat()

    def get_job(self, job_id: str) -> Optional[JobStatus]:
        """Get job status"""
        if job_id not in self.jobs:
            return None

        job_data = self.jobs[job_id]

        return JobStatus(
            job_id=job_id,
            name=job_data["name"],
            status=job_data["status"],
            progress=job_data["progress"],
            result=job_data.get("result"),
            error=job_data.get("error"),
            failure=job_data.get("failure"),
            created_at=job_data.get("created_at"),
            completed_at=job_data.get("completed_at")
        )

    def clear_finished_jobs(self, keep: int = 0) -> int:
        """Drop completed and failed jobs except the newest `keep`; return count removed"""
        finished = [
            jid for jid, data in self.jobs.items()
            if data["status"] in (JobState.COMPLETED, JobState.FAILED)
        ]
        stale = finished[:max(0, len(finished) - keep)]

        for jid in stale:
            del self.jobs[jid]

        return len(stale)

    def get_active_jobs_count(self) -> int:
        """Get count of tracked jobs"""
        return len(self.jobs)
