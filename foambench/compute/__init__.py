"""
Compute package: container sandbox and batch scheduler.
"""

from .provider import JobScheduler, JobStatus, SubmissionResult
from .container import ApptainerContainer, CommandResult
from .slurm import SlurmScheduler

__all__ = ['JobScheduler', 'JobStatus', 'SubmissionResult', 'ApptainerContainer', 'CommandResult', 'SlurmScheduler']
