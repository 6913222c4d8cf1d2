"""
Batch Scheduler Abstraction
===========================
Interface the job submitter talks to. Slurm is the production backend;
tests substitute an in-process fake.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List


class JobStatus(str, Enum):
    """Job execution status."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


@dataclass
class SubmissionResult:
    """Outcome of one blocking submission."""
    job_id: str
    script_path: Path
    status: JobStatus = JobStatus.UNKNOWN


class JobScheduler(ABC):
    """Abstract base class for batch schedulers."""

    @abstractmethod
    def submit(self, script_path: Path, extra_args: str = "") -> SubmissionResult:
        """Submit a job script and block until it reaches a terminal state."""
        pass

    @abstractmethod
    def get_status(self, job_id: str) -> JobStatus:
        """Get current job status."""
        pass

    @abstractmethod
    def cancel_active(self) -> List[str]:
        """Cancel any job this process is still waiting on. Returns the cancelled ids."""
        pass
