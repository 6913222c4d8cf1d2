"""
OpenFOAM Case Preparation
=========================

Runs the serial pre-processing steps (blockMesh, then decomposePar) for a
materialized case through the container, on the login node. The parallel
solver itself is run later by the submitted Slurm jobs.
"""

from dataclasses import dataclass

from foambench.compute.container import ApptainerContainer, CommandResult
from foambench.config import DECOMPOSER, MESH_GENERATOR, REQUIRED_EXECUTABLES
from foambench.errors import CasePreparationError, MissingDependencyError
from foambench.logging.bench_logger import BenchLogger
from foambench.schemas.results import UNKNOWN_CELLS
from foambench.templates.materializer import CaseWorkspace
from .foam_log_parser import read_cell_count

logger = BenchLogger("foambench.solvers.case_preparer")


@dataclass
class CasePreparation:
    """Results of the pre-processing steps for one workspace."""
    mesh: CommandResult
    decompose: CommandResult
    cells: int


class CasePreparer:
    """Mesh generation and domain decomposition inside the container."""

    def __init__(self, container: ApptainerContainer):
        self.container = container

    def check_dependencies(self):
        """
        Fail fast if the image lacks any of blockMesh, decomposePar, pisoFoam.

        Raises:
            MissingDependencyError: first executable that is not found
        """
        logger.info("Checking container for required binaries...")
        for name in REQUIRED_EXECUTABLES:
            if not self.container.has_executable(name):
                raise MissingDependencyError(name, str(self.container.image))
        logger.info("All required binaries found.")

    def _run_step(self, workspace: CaseWorkspace, step: str, log_path) -> CommandResult:
        logger.log_stage(step)
        result = self.container.run([step], cwd=workspace.root, log_path=log_path)
        if not result.ok:
            logger.log_error("CASE_PREPARATION", f"{step} exited with {result.exit_code}, log kept at {log_path}")
            raise CasePreparationError(step, result.exit_code, log_path)
        return result

    def prepare(self, workspace: CaseWorkspace) -> CasePreparation:
        """
        Run blockMesh then decomposePar in `workspace`.

        Raises:
            CasePreparationError: either step exits non-zero (logs are kept)
        """
        mesh = self._run_step(workspace, MESH_GENERATOR, workspace.block_mesh_log)

        cells = read_cell_count(workspace.block_mesh_log)
        if cells == UNKNOWN_CELLS:
            logger.warning(f"No cell count found in {workspace.block_mesh_log}; recording cells={UNKNOWN_CELLS}")
        logger.log_metric("cells", cells)

        decompose = self._run_step(workspace, DECOMPOSER, workspace.decompose_log)
        return CasePreparation(mesh=mesh, decompose=decompose, cells=cells)
