"""
Pytest Configuration
====================
Fixtures and test doubles for the container and the Slurm scheduler, so the
pipeline can run end to end without Apptainer or Slurm installed.
"""

import re
import shlex
import sys
from pathlib import Path
from typing import Dict, List, Optional

import pytest

# Add repository root to path
REPO_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(REPO_ROOT))

from foambench.compute.container import CommandResult
from foambench.compute.provider import JobScheduler, JobStatus, SubmissionResult
from foambench.config import MESH_GENERATOR, REQUIRED_EXECUTABLES, Settings
from foambench.errors import SubmissionError
from foambench.schemas.benchmark_config import BenchmarkParameters

_ROW_LINE = re.compile(r'^echo "(?P<row>[^"]*)" >> (?P<csv>.+)$', re.MULTILINE)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: marks tests as fast unit tests")
    config.addinivalue_line(
        "markers", "integration: marks tests as full pipeline runs (fake container and scheduler)"
    )


class FakeContainer:
    """Stands in for ApptainerContainer; writes canned logs instead of running OpenFOAM."""

    def __init__(self, image, executables=REQUIRED_EXECUTABLES, mesh_log: Optional[str] = None,
                 fail_step: Optional[str] = None):
        self.image = Path(image)
        self.executables = set(executables)
        self.mesh_log = mesh_log if mesh_log is not None else (
            "Creating block mesh topology\n"
            "Mesh Information\n"
            "----------------\n"
            "  boundingBox: (-0.0206 -0.0254 -0.0005) (0.29 0.0254 0.0005)\n"
            "  nPoints: 290000\n"
            "  nCells: 144000\n"
            "  nFaces: 575000\n"
            "End\n"
        )
        self.fail_step = fail_step
        self.calls: List[tuple] = []

    def has_executable(self, name: str) -> bool:
        self.calls.append(("probe", name))
        return name in self.executables

    def run(self, args, cwd, log_path) -> CommandResult:
        step = args[0]
        self.calls.append(("run", step, Path(cwd)))
        Path(log_path).write_text(self.mesh_log if step == MESH_GENERATOR else f"{step}\nEnd\n")
        exit_code = 1 if step == self.fail_step else 0
        return CommandResult(command=list(args), exit_code=exit_code, log_path=Path(log_path))


class FakeScheduler(JobScheduler):
    """
    Executes the result-row line of each submitted script in-process.

    `wall_times` and `exit_codes` map node count -> value written into the
    row; `reject` lists node counts whose submission fails; `garbled` lists
    node counts whose row loses its wall time, as when a job dies mid-write.
    """

    def __init__(self, wall_times: Optional[Dict[int, float]] = None,
                 exit_codes: Optional[Dict[int, int]] = None, reject=(), garbled=()):
        self.wall_times = wall_times or {}
        self.exit_codes = exit_codes or {}
        self.reject = set(reject)
        self.garbled = set(garbled)
        self.submitted: List[Path] = []
        self.extra_args: List[str] = []
        self.active_jobs: List[str] = []
        self.cancelled: List[str] = []
        self._next_id = 1000

    def submit(self, script_path: Path, extra_args: str = "") -> SubmissionResult:
        script_path = Path(script_path)
        node_count = int(script_path.parent.name.split("_")[1])
        self.submitted.append(script_path)
        self.extra_args.append(extra_args)
        if node_count in self.reject:
            raise SubmissionError(f"sbatch rejected {script_path}")

        self._next_id += 1
        match = _ROW_LINE.search(script_path.read_text())
        row = match.group("row")
        wall_time = "" if node_count in self.garbled else f"{self.wall_times.get(node_count, 10.0 / node_count):.3f}"
        row = row.replace("${WALL_TIME}", wall_time)
        row = row.replace("${EXIT_CODE}", str(self.exit_codes.get(node_count, 0)))
        csv_path = shlex.split(match.group("csv"))[0]
        with open(csv_path, "a") as f:
            f.write(row + "\n")
        return SubmissionResult(job_id=str(self._next_id), script_path=script_path, status=JobStatus.COMPLETED)

    def get_status(self, job_id: str) -> JobStatus:
        return JobStatus.COMPLETED

    def cancel_active(self) -> List[str]:
        cancelled, self.active_jobs = list(self.active_jobs), []
        self.cancelled.extend(cancelled)
        return cancelled


@pytest.fixture
def settings():
    """Default settings, independent of FOAMBENCH_* in the environment."""
    return Settings(modules=["Stages/2024 GCC/12.3.0", "OpenMPI/4.1.5"])


@pytest.fixture
def sif_file(tmp_path):
    """An (empty) container image on disk."""
    sif = tmp_path / "bench.sif"
    sif.write_bytes(b"")
    return sif


@pytest.fixture
def make_params(tmp_path, sif_file):
    """Factory for BenchmarkParameters with sensible test defaults."""
    def _make(**overrides):
        values = dict(
            container=sif_file,
            nprocs=16,
            mesh_level=3,
            nodes=[1, 2],
            output_dir=tmp_path / "case",
        )
        values.update(overrides)
        return BenchmarkParameters.build(**values)
    return _make
