"""
Command-line entry points.

    foambench-run   --container SIF --nprocs N --mesh-level L --nodes 1,2[,4,...] [OPTIONS]
    foambench-sweep SIF --nodes 1,2 [OPTIONS]
"""

import argparse
import os
import sys
import tempfile
from pathlib import Path
from typing import List, Optional

from foambench.compute.slurm import SlurmScheduler
from foambench.config import Settings
from foambench.errors import BenchmarkError
from foambench.logging.bench_logger import BenchLogger, set_verbose
from foambench.orchestration.benchmark_run import BenchmarkRun
from foambench.orchestration.cleanup import install_cleanup_handlers
from foambench.orchestration.sweep import run_sweep
from foambench.schemas.benchmark_config import BenchmarkParameters, parse_node_list

logger = BenchLogger("foambench.cli")


def _add_run_options(parser: argparse.ArgumentParser, settings: Settings):
    """Options shared by single runs and sweeps."""
    slurm = parser.add_argument_group("Slurm options")
    slurm.add_argument("--partition", default=settings.default_partition,
                       help="Slurm partition (e.g. dc-cpu)")
    slurm.add_argument("--account", default=settings.default_account,
                       help="Slurm account/project")
    slurm.add_argument("--time", default="02:00:00", metavar="HH:MM:SS",
                       help="Wall-time limit (default: 02:00:00)")
    slurm.add_argument("--sbatch-args", default="", metavar="STR",
                       help="Extra sbatch flags, passed as --sbatch-args='--mail-type=ALL --qos=short'")

    other = parser.add_argument_group("Other")
    other.add_argument("--end-time", type=float, default=None, metavar="T",
                       help="Simulation end time (default: template value, 0.1)")
    other.add_argument("--template", type=Path, default=None, metavar="DIR",
                       help="Case template directory (default: bundled pitzDaily)")
    other.add_argument("-v", "--verbose", action="store_true",
                       help="Log every external command")


def _passthrough_options(args) -> dict:
    return {
        "time_limit": args.time,
        "account": args.account,
        "partition": args.partition,
        "end_time": args.end_time,
        "sbatch_args": args.sbatch_args,
        "template_dir": args.template,
    }


def build_run_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="foambench-run",
        description="Runs the same case (nprocs x mesh) on each node count for direct comparison.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Example:
  foambench-run --container bench.sif --nprocs 16 --mesh-level 3 --nodes 1,2 \\
      --account vsk46 --partition dc-cpu
        """
    )
    required = parser.add_argument_group("Required")
    required.add_argument("--container", required=True, type=Path, metavar="SIF",
                          help="Path to the Apptainer .sif container")
    required.add_argument("--nprocs", required=True, type=int, metavar="N",
                          help="Total MPI processes (constant across all runs)")
    required.add_argument("--mesh-level", required=True, type=int, metavar="L",
                          help="Mesh refinement level 1-4 (constant across all runs)")
    required.add_argument("--nodes", required=True, metavar="1,2[,4,...]",
                          help="Comma-separated node counts to compare")
    _add_run_options(parser, settings)
    parser.add_argument("--output-dir", type=Path, default=None, metavar="DIR",
                        help="Working directory (default: <tmpdir>/pitzDailyBench.<pid>)")
    return parser


def build_sweep_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="foambench-sweep",
        description="Full benchmark sweep: every (nprocs, mesh-level) combination on all requested node counts.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Example:
  foambench-sweep bench.sif --nodes 1,2 --account vsk46 --partition dc-cpu
        """
    )
    parser.add_argument("container", type=Path, help="Path to the Apptainer .sif container")
    parser.add_argument("--nodes", required=True, metavar="1,2[,4,...]",
                        help="Comma-separated node counts to compare")
    parser.add_argument("--results-dir", type=Path, default=None, metavar="DIR",
                        help="Sweep output directory (default: results-<timestamp>)")
    _add_run_options(parser, settings)
    return parser


def run_main(argv: Optional[List[str]] = None) -> int:
    settings = Settings.from_env()
    args = build_run_parser(settings).parse_args(argv)
    set_verbose(args.verbose)

    scheduler = SlurmScheduler(settings)
    install_cleanup_handlers(scheduler)

    output_dir = args.output_dir or Path(tempfile.gettempdir()) / f"pitzDailyBench.{os.getpid()}"
    try:
        params = BenchmarkParameters.build(
            container=args.container,
            nprocs=args.nprocs,
            mesh_level=args.mesh_level,
            nodes=parse_node_list(args.nodes),
            output_dir=output_dir,
            **_passthrough_options(args),
        )
        result = BenchmarkRun(params, settings=settings, scheduler=scheduler).run()
    except BenchmarkError as e:
        logger.log_error(e.code, str(e))
        return 1
    except FileNotFoundError as e:
        logger.log_error("NOT_FOUND", str(e))
        return 1

    if result.missing_nodes:
        logger.warning(f"No result row for node count(s): {result.missing_nodes}")
    return 0


def sweep_main(argv: Optional[List[str]] = None) -> int:
    settings = Settings.from_env()
    args = build_sweep_parser(settings).parse_args(argv)
    set_verbose(args.verbose)

    scheduler = SlurmScheduler(settings)
    install_cleanup_handlers(scheduler)

    try:
        result = run_sweep(
            container=args.container,
            nodes=parse_node_list(args.nodes),
            results_dir=args.results_dir,
            options=_passthrough_options(args),
            settings=settings,
            scheduler=scheduler,
        )
    except BenchmarkError as e:
        logger.log_error(e.code, str(e))
        return 1
    except FileNotFoundError as e:
        logger.log_error("NOT_FOUND", str(e))
        return 1

    return 1 if result.failed else 0


if __name__ == "__main__":
    sys.exit(run_main())
