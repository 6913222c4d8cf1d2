import math
import shlex
from pathlib import Path
from typing import Optional

from foambench.config import SOLVER, Settings
from foambench.schemas.benchmark_config import BenchmarkParameters
from foambench.templates.materializer import CaseWorkspace

SCRIPT_NAME = "solver.sbatch"


def tasks_per_node(nprocs: int, nodes: int) -> int:
    """Per-node task cap; Slurm spreads the remainder over the last node."""
    if nodes < 1:
        raise ValueError(f"node count must be positive (got {nodes})")
    return math.ceil(nprocs / nodes)


class SlurmJobDescriptor:
    """
    sbatch script: #SBATCH header built from `sbatch_params` followed by `lines`.
    """

    def __init__(self, name: str):
        self.name = name
        self.lines = []
        self.sbatch_params = {
            "job-name": name,
            "nodes": "1",
            "ntasks": "1",
            "ntasks-per-node": "1",
            "cpus-per-task": "1",
            "output": f"{name}.%j.log",
            "error": f"{name}.%j.err",
            "time": "02:00:00",
        }

    def __str__(self):
        hdr = ["#!/bin/bash -x"]
        for k, v in self.sbatch_params.items():
            hdr.append(f"#SBATCH --{k}={v}")
        return "\n".join(hdr + [""] + self.lines + [""])

    def write(self, path: Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(str(self))
        return path


def build_solver_job(
    params: BenchmarkParameters,
    workspace: CaseWorkspace,
    node_count: int,
    cells: int,
    settings: Optional[Settings] = None,
) -> SlurmJobDescriptor:
    """
    Job that times one parallel solver run on `node_count` nodes and appends
    the result row to the workspace's results table.

    The solver's exit code is captured, not propagated: the job itself ends
    with the CSV append, so a failing solver still produces a row.
    """
    settings = settings or Settings.from_env()
    run_dir = workspace.run_dir(node_count)

    bf = SlurmJobDescriptor(f"{SOLVER}-np{params.nprocs}-ml{params.mesh_level}-n{node_count}")
    account = params.account or settings.default_account
    partition = params.partition or settings.default_partition
    if account:
        bf.sbatch_params = {"account": account, **bf.sbatch_params}
    bf.sbatch_params["nodes"] = str(node_count)
    bf.sbatch_params["ntasks"] = str(params.nprocs)
    bf.sbatch_params["ntasks-per-node"] = str(tasks_per_node(params.nprocs, node_count))
    bf.sbatch_params["output"] = str(run_dir / f"{SOLVER}.%j.log")
    bf.sbatch_params["error"] = str(run_dir / f"{SOLVER}.%j.err")
    bf.sbatch_params["time"] = params.time_limit
    if partition:
        bf.sbatch_params["partition"] = partition

    for module in settings.modules:
        bf.lines.append(f"module load {module}")
    if settings.modules:
        bf.lines.append("")

    container = shlex.quote(str(Path(params.container).resolve()))
    csv_path = shlex.quote(str(workspace.results_csv))
    bf.lines.append("START_TIME=$(date +%s.%N)")
    bf.lines.append(f"cd {shlex.quote(str(workspace.root))}")
    bf.lines.append(f"srun {settings.apptainer_bin} exec {container} {SOLVER} -parallel")
    bf.lines.append("EXIT_CODE=$?")
    bf.lines.append("END_TIME=$(date +%s.%N)")
    bf.lines.append("WALL_TIME=$(awk -v s=\"$START_TIME\" -v e=\"$END_TIME\" 'BEGIN { printf \"%.3f\", e - s }')")
    bf.lines.append("")
    row = f"{node_count},{params.nprocs},{params.mesh_level},{cells},${{WALL_TIME}},${{EXIT_CODE}}"
    bf.lines.append(f"echo \"{row}\" >> {csv_path}")
    return bf
