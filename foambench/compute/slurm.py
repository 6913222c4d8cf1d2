"""
Slurm Scheduler
===============
Blocking job submission through `sbatch --parsable --wait`.

The job id is read as soon as sbatch prints it, before the job finishes,
so an interrupted orchestrator can still `scancel` what it submitted. Until
the id is known, the job is tracked by its `--job-name`.
"""

import getpass
import re
import shlex
import subprocess
from pathlib import Path
from typing import List, Optional

from foambench.config import Settings
from foambench.errors import SubmissionError
from foambench.logging.bench_logger import BenchLogger
from .provider import JobScheduler, JobStatus, SubmissionResult

logger = BenchLogger("foambench.compute.slurm")

# sacct State column -> JobStatus (anything else maps to UNKNOWN)
_SACCT_STATES = {
    "PENDING": JobStatus.PENDING,
    "RUNNING": JobStatus.RUNNING,
    "COMPLETING": JobStatus.RUNNING,
    "COMPLETED": JobStatus.COMPLETED,
    "FAILED": JobStatus.FAILED,
    "NODE_FAIL": JobStatus.FAILED,
    "OUT_OF_MEMORY": JobStatus.FAILED,
    "CANCELLED": JobStatus.CANCELLED,
    "TIMEOUT": JobStatus.TIMEOUT,
}

_JOB_NAME_RE = re.compile(r'^#SBATCH\s+--job-name=(\S+)', re.MULTILINE)


def parse_job_id(output: str) -> Optional[str]:
    """Job id from `sbatch --parsable` output ("<id>" or "<id>;<cluster>")."""
    first = output.strip().splitlines()[0].strip() if output.strip() else ""
    job_id = first.split(";")[0]
    return job_id if job_id.isdigit() else None


def read_job_name(script_path: Path) -> Optional[str]:
    """`#SBATCH --job-name=` value of a job script, if it sets one."""
    match = _JOB_NAME_RE.search(Path(script_path).read_text())
    return match.group(1) if match else None


class SlurmScheduler(JobScheduler):
    """Submits one job at a time and waits for it."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings.from_env()
        self.active_jobs: List[str] = []
        # Job names submitted whose id sbatch has not printed yet
        self.pending_names: List[str] = []

    def submit(self, script_path: Path, extra_args: str = "") -> SubmissionResult:
        """
        Submit `script_path` and block until Slurm reports a terminal state.

        The job id is taken from the first line sbatch prints, before the wait
        starts. Should sbatch hold that line back until the job ends (stdout
        buffered on the pipe), the job is still cancellable by its name, see
        cancel_active().

        Raises:
            SubmissionError: sbatch missing, job rejected, or the job did not
                finish cleanly (sbatch --wait exits with the job's status)
        """
        cmd = [self.settings.sbatch_bin, "--parsable", "--wait", *shlex.split(extra_args), str(script_path)]
        logger.debug(" ".join(cmd))
        job_name = read_job_name(script_path)
        if job_name:
            self.pending_names.append(job_name)
        try:
            proc = subprocess.Popen(
                cmd,
                cwd=Path(script_path).parent,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
        except FileNotFoundError:
            self._forget_name(job_name)
            raise SubmissionError(f"'{self.settings.sbatch_bin}' not found; is this a Slurm login node?")

        job_id = parse_job_id(proc.stdout.readline())
        if job_id:
            self._forget_name(job_name)
            self.active_jobs.append(job_id)
            logger.info(f"Slurm job {job_id} submitted, waiting for completion...")
        # An interrupt here leaves job_id (or job_name) for cancel_active()
        _, stderr = proc.communicate()
        self._forget_name(job_name)
        if job_id:
            self.active_jobs.remove(job_id)

        if job_id is None:
            raise SubmissionError(f"sbatch rejected {script_path} (exit {proc.returncode}): {stderr.strip()}")

        status = self.get_status(job_id)
        if proc.returncode != 0:
            raise SubmissionError(
                f"Slurm job {job_id} did not finish cleanly (sbatch exit {proc.returncode}, "
                f"state {status.value}): {stderr.strip()}"
            )
        return SubmissionResult(job_id=job_id, script_path=Path(script_path), status=status)

    def _forget_name(self, job_name: Optional[str]):
        if job_name in self.pending_names:
            self.pending_names.remove(job_name)

    def get_status(self, job_id: str) -> JobStatus:
        """Query sacct for the job's state; UNKNOWN if accounting is unavailable."""
        cmd = [self.settings.sacct_bin, "-n", "-X", "-P", "-j", job_id, "-o", "State"]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=30)
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            logger.debug(f"sacct unavailable for job {job_id}: {e}")
            return JobStatus.UNKNOWN
        if result.returncode != 0 or not result.stdout.strip():
            return JobStatus.UNKNOWN
        # e.g. "CANCELLED by 1234"
        state = result.stdout.strip().splitlines()[0].split()[0]
        return _SACCT_STATES.get(state, JobStatus.UNKNOWN)

    def _scancel(self, args: List[str], what: str) -> bool:
        logger.warning(f"Cancelling Slurm job {what}")
        try:
            subprocess.run([self.settings.scancel_bin, *args], capture_output=True, timeout=30)
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            logger.error(f"scancel {what} failed: {e}")
            return False
        return True

    def cancel_active(self) -> List[str]:
        """
        scancel every job still being waited on.

        Jobs with a known id are cancelled by id; jobs whose id never arrived
        are cancelled by name, restricted to the current user.
        """
        cancelled = []
        for job_id in list(self.active_jobs):
            if self._scancel([job_id], job_id):
                cancelled.append(job_id)
            self.active_jobs.remove(job_id)
        for job_name in list(self.pending_names):
            if self._scancel([f"--name={job_name}", f"--user={getpass.getuser()}"], job_name):
                cancelled.append(job_name)
            self.pending_names.remove(job_name)
        return cancelled
