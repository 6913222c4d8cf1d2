"""
Single Benchmark Run
====================

One parameter set, several node counts:

    preflight -> materialize case -> blockMesh -> decomposePar
              -> for each node count: write solver.sbatch, sbatch --wait

Node counts are submitted strictly one after another so that no two
benchmark jobs compete for the cluster at the same time.

Usage:
    params = BenchmarkParameters.build(container="bench.sif", nprocs=16, mesh_level=3,
                                       nodes=[1, 2], output_dir="/scratch/bench")
    result = BenchmarkRun(params).run()
    for row in result.rows:
        print(row.nodes, row.wall_time_seconds)
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from foambench.compute.container import ApptainerContainer
from foambench.compute.job_descriptor import SCRIPT_NAME, build_solver_job
from foambench.compute.provider import JobScheduler, SubmissionResult
from foambench.compute.slurm import SlurmScheduler
from foambench.config import Settings
from foambench.logging.bench_logger import BenchLogger, attach_log_file, detach_log_file
from foambench.reporting.results_table import format_results, init_results_table, read_results_table
from foambench.schemas.benchmark_config import BenchmarkParameters, mesh_cells_for_level
from foambench.schemas.results import ResultRow
from foambench.solvers.case_preparer import CasePreparation, CasePreparer
from foambench.templates.materializer import CaseWorkspace, materialize_case

logger = BenchLogger("foambench.orchestration.run")


@dataclass
class BenchmarkRunResult:
    """Everything one run produced."""
    params: BenchmarkParameters
    workspace: CaseWorkspace
    preparation: CasePreparation
    submissions: List[SubmissionResult] = field(default_factory=list)
    rows: List[ResultRow] = field(default_factory=list)

    @property
    def missing_nodes(self) -> List[int]:
        """Requested node counts with no row in the results table."""
        recorded = {row.nodes for row in self.rows}
        return [n for n in self.params.nodes if n not in recorded]


class BenchmarkRun:
    """Runs the pipeline for one BenchmarkParameters value."""

    def __init__(
        self,
        params: BenchmarkParameters,
        settings: Optional[Settings] = None,
        container: Optional[ApptainerContainer] = None,
        scheduler: Optional[JobScheduler] = None,
    ):
        self.params = params
        self.settings = settings or Settings.from_env()
        self.container = container or ApptainerContainer(params.container, self.settings)
        self.scheduler = scheduler or SlurmScheduler(self.settings)
        self.preparer = CasePreparer(self.container)

    def _preflight(self):
        container = Path(self.params.container)
        if not container.is_file():
            raise FileNotFoundError(f"container not found: {container}")
        mesh_cells_for_level(self.params.mesh_level)
        self.preparer.check_dependencies()

    def _submit_node_count(self, workspace: CaseWorkspace, node_count: int, cells: int) -> SubmissionResult:
        run_dir = workspace.run_dir(node_count)
        run_dir.mkdir(parents=True, exist_ok=True)
        job = build_solver_job(self.params, workspace, node_count, cells, self.settings)
        script = job.write(run_dir / SCRIPT_NAME)

        logger.info(
            f"Submitting solver on {node_count} node(s) "
            f"(nprocs={self.params.nprocs}, mesh_level={self.params.mesh_level}, cells={cells})"
        )
        submission = self.scheduler.submit(script, self.params.sbatch_args)
        logger.info(f"Slurm job {submission.job_id} completed (state {submission.status.value})")
        return submission

    def _report(self, result: BenchmarkRunResult):
        p = self.params
        logger.log_stage(
            f"Benchmark Results (nprocs={p.nprocs}, mesh_level={p.mesh_level}, cells={result.preparation.cells})"
        )
        logger.info("\n" + format_results(result.workspace.results_csv))
        logger.log_metadata("work_dir", result.workspace.root)

    def run(self) -> BenchmarkRunResult:
        """
        Execute the full pipeline.

        Raises:
            FileNotFoundError: container image or case template missing
            ConfigurationError: mesh level out of range
            MissingDependencyError: container lacks blockMesh/decomposePar/pisoFoam
            CasePreparationError: blockMesh or decomposePar failed
            SubmissionError: a Slurm submission failed (later node counts are not run)
        """
        p = self.params
        logger.log_metadata("container", p.container)
        logger.log_metadata("nprocs", p.nprocs)
        logger.log_metadata("mesh_level", p.mesh_level)
        logger.log_metadata("nodes", ",".join(str(n) for n in p.nodes))

        self._preflight()
        workspace = materialize_case(p)
        log_handler = attach_log_file(workspace.run_log)
        try:
            preparation = self.preparer.prepare(workspace)
            init_results_table(workspace.results_csv)
            result = BenchmarkRunResult(params=p, workspace=workspace, preparation=preparation)

            for node_count in p.nodes:
                try:
                    submission = self._submit_node_count(workspace, node_count, preparation.cells)
                except KeyboardInterrupt:
                    self.scheduler.cancel_active()
                    raise
                result.submissions.append(submission)

                result.rows = read_results_table(workspace.results_csv)
                row = next((r for r in reversed(result.rows) if r.nodes == node_count), None)
                if row is None:
                    logger.warning(f"Job {submission.job_id} finished but wrote no result row")
                else:
                    logger.log_metric(f"wall_time_n{node_count}", row.wall_time_seconds, unit="s")
                    if not row.succeeded:
                        logger.warning(f"pisoFoam exited with {row.exit_code} on {node_count} node(s)")

            self._report(result)
            return result
        finally:
            detach_log_file(log_handler)
