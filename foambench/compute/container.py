"""
Apptainer Container
===================
Runs OpenFOAM utilities inside an Apptainer (.sif) image.
"""

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from foambench.config import Settings
from foambench.errors import ContainerTimeoutError, MissingDependencyError
from foambench.logging.bench_logger import BenchLogger

logger = BenchLogger("foambench.compute.container")


@dataclass
class CommandResult:
    """Exit status and captured log of one external command."""
    command: List[str]
    exit_code: int
    log_path: Optional[Path] = None

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class ApptainerContainer:
    """Sandbox wrapper: every command is run via `apptainer exec <image>`."""

    def __init__(self, image: Path, settings: Optional[Settings] = None):
        self.image = Path(image)
        self.settings = settings or Settings.from_env()

    def exec_command(self, args: Sequence[str]) -> List[str]:
        """Full host command line for running `args` inside the image."""
        return [self.settings.apptainer_bin, "exec", str(self.image), *args]

    def has_executable(self, name: str) -> bool:
        """
        True if `name` resolves on the container's PATH.

        Raises:
            MissingDependencyError: apptainer itself is not on the host PATH
            ContainerTimeoutError: the probe outlived FOAMBENCH_PREFLIGHT_TIMEOUT
        """
        cmd = self.exec_command(["bash", "-c", f"command -v {name}"])
        logger.debug(" ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                timeout=self.settings.preflight_timeout,
            )
        except FileNotFoundError:
            raise MissingDependencyError(self.settings.apptainer_bin, "the host PATH")
        except subprocess.TimeoutExpired:
            raise ContainerTimeoutError(" ".join(cmd), self.settings.preflight_timeout)
        return result.returncode == 0

    def run(self, args: Sequence[str], cwd: Path, log_path: Path) -> CommandResult:
        """
        Run `args` in the container with `cwd` as working directory.

        stdout and stderr both go to `log_path`, which is kept whatever the
        exit status.
        """
        cmd = self.exec_command(args)
        logger.debug(f"{' '.join(cmd)} (cwd={cwd})")
        with open(log_path, "w") as log:
            try:
                proc = subprocess.run(cmd, cwd=cwd, stdout=log, stderr=subprocess.STDOUT)
            except FileNotFoundError:
                raise MissingDependencyError(self.settings.apptainer_bin, "the host PATH")
        return CommandResult(command=cmd, exit_code=proc.returncode, log_path=Path(log_path))
