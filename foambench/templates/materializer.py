"""
Case Template Materializer
==========================

Copies an OpenFOAM case template into a fresh workspace and fills in the
placeholder tokens for one parameter set:

- system/blockMeshDict:      __XCELLS_IN__ __XCELLS_OUT__ __YCELLS_UP__ __YCELLS_LOW__
- system/decomposeParDict:   __NPROCS__
- system/controlDict:        the `endTime` line, only when an override is given

The template tree itself is never written to.
"""

import re
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from foambench.logging.bench_logger import BenchLogger
from foambench.schemas.benchmark_config import BenchmarkParameters, mesh_cells_for_level

logger = BenchLogger("foambench.templates")

DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "pitzDaily"

# Sub-directories copied from the template
CASE_DIRS = ("0", "constant", "system")

BLOCK_MESH_DICT = Path("system") / "blockMeshDict"
DECOMPOSE_PAR_DICT = Path("system") / "decomposeParDict"
CONTROL_DICT = Path("system") / "controlDict"
REQUIRED_FILES = (BLOCK_MESH_DICT, DECOMPOSE_PAR_DICT, CONTROL_DICT)

_END_TIME_LINE = re.compile(r'^endTime.*$', re.MULTILINE)


@dataclass(frozen=True)
class CaseWorkspace:
    """Materialized case directory plus the files a run produces in it."""
    root: Path

    @property
    def block_mesh_log(self) -> Path:
        return self.root / "blockMesh.log"

    @property
    def decompose_log(self) -> Path:
        return self.root / "decomposePar.log"

    @property
    def results_csv(self) -> Path:
        return self.root / "benchmark_results.csv"

    @property
    def run_log(self) -> Path:
        return self.root / "foambench.log"

    def run_dir(self, node_count: int) -> Path:
        """Per node-count directory holding the sbatch script and Slurm logs."""
        return self.root / f"nodes_{node_count}"


def _substitute(path: Path, replacements: Dict[str, str]):
    text = path.read_text()
    for token, value in replacements.items():
        text = text.replace(token, value)
    path.write_text(text)


def _set_end_time(path: Path, end_time: float):
    text = path.read_text()
    new_text, count = _END_TIME_LINE.subn(f"endTime         {end_time};", text)
    if count == 0:
        logger.warning(f"No endTime entry in {path}; end-time override ignored")
        return
    path.write_text(new_text)


def check_template(template_dir: Path):
    """Raise FileNotFoundError unless the template has every file we substitute into."""
    if not template_dir.is_dir():
        raise FileNotFoundError(f"Case template directory not found: {template_dir}")
    for rel in REQUIRED_FILES:
        if not (template_dir / rel).is_file():
            raise FileNotFoundError(f"Case template is missing {rel}: {template_dir / rel}")


def materialize_case(params: BenchmarkParameters, template_dir: Optional[Path] = None) -> CaseWorkspace:
    """
    Create the case workspace for `params` in params.output_dir.

    Args:
        params: Benchmark parameters (mesh level, nprocs, end time, output dir)
        template_dir: Template case; defaults to params.template_dir, then the bundled pitzDaily

    Returns:
        CaseWorkspace rooted at the resolved output directory

    Raises:
        ConfigurationError: mesh level outside 1-4 (nothing is created)
        FileNotFoundError: template directory or a required template file is missing
    """
    cells = mesh_cells_for_level(params.mesh_level)

    template_dir = Path(template_dir or params.template_dir or DEFAULT_TEMPLATE_DIR)
    check_template(template_dir)

    root = Path(params.output_dir).expanduser()
    root.mkdir(parents=True, exist_ok=True)
    root = root.resolve()

    for sub in CASE_DIRS:
        src = template_dir / sub
        if src.is_dir():
            shutil.copytree(src, root / sub, dirs_exist_ok=True)

    _substitute(root / BLOCK_MESH_DICT, {
        "__XCELLS_IN__": str(cells.xcells_in),
        "__XCELLS_OUT__": str(cells.xcells_out),
        "__YCELLS_UP__": str(cells.ycells_up),
        "__YCELLS_LOW__": str(cells.ycells_low),
    })
    _substitute(root / DECOMPOSE_PAR_DICT, {"__NPROCS__": str(params.nprocs)})

    if params.end_time is not None:
        _set_end_time(root / CONTROL_DICT, params.end_time)

    logger.info(f"Case materialized from {template_dir} into {root} (mesh level {params.mesh_level}: {tuple(cells)})")
    return CaseWorkspace(root)
