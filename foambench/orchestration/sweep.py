"""
Benchmark Sweep
===============

Runs every (nprocs, mesh level) combination on the same node counts:

    nprocs     2, 4, 8, 16     (outer loop)
    mesh level 1, 2, 3, 4      (inner loop)

Each combination gets its own workspace `<results_dir>/np<P>_ml<L>`. A
combination that fails is logged and the sweep moves on; afterwards all
per-run tables that exist are concatenated into combined_results.csv and the
status of every combination is written to sweep_summary.json.
"""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from foambench.compute.provider import JobScheduler
from foambench.config import Settings
from foambench.errors import BenchmarkError
from foambench.logging.bench_logger import BenchLogger
from foambench.reporting.results_table import combine_results, format_results
from foambench.schemas.benchmark_config import BenchmarkParameters, combination_label
from foambench.templates.materializer import CaseWorkspace
from .benchmark_run import BenchmarkRun, BenchmarkRunResult

logger = BenchLogger("foambench.orchestration.sweep")

SWEEP_NPROCS = (2, 4, 8, 16)
SWEEP_MESH_LEVELS = (1, 2, 3, 4)

COMBINED_TABLE = "combined_results.csv"
SUMMARY_FILE = "sweep_summary.json"

Runner = Callable[[BenchmarkParameters], BenchmarkRunResult]


@dataclass
class CombinationOutcome:
    nprocs: int
    mesh_level: int
    output_dir: str
    status: str = "pending"  # "completed" | "failed"
    error: Optional[str] = None
    error_code: Optional[str] = None
    rows: int = 0


@dataclass
class SweepResult:
    results_dir: Path
    combined_table: Path
    outcomes: List[CombinationOutcome] = field(default_factory=list)
    rows_written: int = 0

    @property
    def failed(self) -> List[CombinationOutcome]:
        return [o for o in self.outcomes if o.status != "completed"]


def sweep_combinations() -> Iterator[Tuple[int, int]]:
    """(nprocs, mesh_level) pairs in execution order."""
    for nprocs in SWEEP_NPROCS:
        for mesh_level in SWEEP_MESH_LEVELS:
            yield nprocs, mesh_level


def default_results_dir() -> Path:
    return Path(f"results-{datetime.now().strftime('%Y%m%d-%H%M%S')}")


def run_sweep(
    container: Path,
    nodes: List[int],
    results_dir: Optional[Path] = None,
    options: Optional[Dict[str, Any]] = None,
    settings: Optional[Settings] = None,
    scheduler: Optional[JobScheduler] = None,
    runner: Optional[Runner] = None,
) -> SweepResult:
    """
    Run the full sweep.

    Args:
        container: Apptainer image passed to every combination
        nodes: Node counts, passed unchanged to every combination
        results_dir: Sweep root; defaults to results-<timestamp>
        options: Further BenchmarkParameters fields (time_limit, account, partition,
            end_time, sbatch_args, template_dir) passed unchanged to every combination
        settings: Cluster settings shared by all runs
        scheduler: Scheduler shared by all runs (one in-flight job at a time)
        runner: Replaces the single-run pipeline; mostly for tests

    Returns:
        SweepResult with one outcome per combination in execution order

    Raises:
        FileNotFoundError: container image missing (nothing is created)
        ConfigurationError: invalid node list or options (nothing is created)
    """
    container = Path(container)
    if not container.is_file():
        raise FileNotFoundError(f"container not found: {container}")

    results_dir = Path(results_dir or default_results_dir())
    options = dict(options or {})

    # Options are shared by every combination: reject bad ones before anything is written
    first_nprocs, first_level = next(sweep_combinations())
    base = BenchmarkParameters.build(
        container=container,
        nprocs=first_nprocs,
        mesh_level=first_level,
        nodes=nodes,
        output_dir=results_dir / combination_label(first_nprocs, first_level),
        **options,
    )
    results_dir.mkdir(parents=True, exist_ok=True)
    settings = settings or Settings.from_env()

    if runner is None:
        def runner(params: BenchmarkParameters) -> BenchmarkRunResult:
            return BenchmarkRun(params, settings=settings, scheduler=scheduler).run()

    result = SweepResult(results_dir=results_dir, combined_table=results_dir / COMBINED_TABLE)
    tables = []

    for nprocs, mesh_level in sweep_combinations():
        label = combination_label(nprocs, mesh_level)
        output_dir = results_dir / label
        outcome = CombinationOutcome(nprocs=nprocs, mesh_level=mesh_level, output_dir=str(output_dir))
        result.outcomes.append(outcome)
        tables.append(CaseWorkspace(output_dir).results_csv)

        logger.log_stage(f"nprocs={nprocs}, mesh-level={mesh_level}")
        try:
            params = base.with_overrides(nprocs=nprocs, mesh_level=mesh_level, output_dir=output_dir)
            run_result = runner(params)
        except (BenchmarkError, FileNotFoundError) as e:
            outcome.status = "failed"
            outcome.error = str(e)
            outcome.error_code = getattr(e, "code", type(e).__name__)
            logger.log_error(outcome.error_code, f"{label}: {e}")
            continue

        outcome.status = "completed"
        outcome.rows = len(run_result.rows)

    result.rows_written, missing = combine_results(tables, result.combined_table)
    for table in missing:
        logger.warning(f"No results table for {table.parent.name}; its rows are absent from {COMBINED_TABLE}")

    summary = {
        "results_dir": str(results_dir),
        "nodes": list(nodes),
        "combined_table": str(result.combined_table),
        "rows": result.rows_written,
        "combinations": [asdict(o) for o in result.outcomes],
    }
    with open(results_dir / SUMMARY_FILE, 'w') as f:
        json.dump(summary, f, indent=2)

    logger.log_stage(f"Combined results: {result.combined_table}")
    logger.info("\n" + format_results(result.combined_table))
    if result.failed:
        logger.warning(
            f"{len(result.failed)} of {len(result.outcomes)} combinations failed: "
            + ", ".join(combination_label(o.nprocs, o.mesh_level) for o in result.failed)
        )
    return result
