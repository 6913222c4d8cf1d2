"""
Benchmark Parameter Schemas
===========================

Pydantic models for one benchmark invocation. A BenchmarkParameters value is
built once from the command line and passed unchanged through materialization,
case preparation and job submission.
"""

import re
from pathlib import Path
from typing import Dict, List, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from foambench.errors import ConfigurationError


class MeshCells(NamedTuple):
    """blockMesh cell counts substituted into the template."""
    xcells_in: int
    xcells_out: int
    ycells_up: int
    ycells_low: int


# Mesh refinement presets: each level doubles the resolution of the previous one
MESH_LEVELS: Dict[int, MeshCells] = {
    1: MeshCells(20, 25, 15, 15),
    2: MeshCells(40, 50, 30, 30),
    3: MeshCells(80, 100, 60, 60),
    4: MeshCells(160, 200, 120, 120),
}

_WALLTIME_RE = re.compile(r'^(\d+-)?\d{1,3}:\d{2}:\d{2}$')


def mesh_cells_for_level(level: int) -> MeshCells:
    """Look up the cell-count preset for a mesh level (1-4)."""
    if level not in MESH_LEVELS:
        raise ConfigurationError(f"--mesh-level must be between 1 and 4 (got {level})")
    return MESH_LEVELS[level]


def combination_label(nprocs: int, mesh_level: int) -> str:
    """Directory name of one sweep combination, e.g. "np16_ml3"."""
    return f"np{nprocs}_ml{mesh_level}"


def parse_node_list(value: str) -> List[int]:
    """Parse a comma-separated node list such as "1,2,4"."""
    try:
        nodes = [int(item) for item in value.split(",") if item.strip()]
    except ValueError:
        raise ConfigurationError(f"--nodes must be comma-separated integers (got '{value}')")
    if not nodes:
        raise ConfigurationError("--nodes must name at least one node count")
    return nodes


class BenchmarkParameters(BaseModel):
    """Immutable parameter set for one node-count comparison."""
    model_config = ConfigDict(frozen=True)

    container: Path = Field(..., description="Apptainer .sif image with OpenFOAM")
    nprocs: int = Field(..., description="Total MPI processes, constant across node counts", ge=1)
    mesh_level: int = Field(..., description="Mesh refinement level 1-4")
    nodes: List[int] = Field(..., description="Node counts to compare, in submission order", min_length=1)
    output_dir: Path = Field(..., description="Case workspace directory")
    end_time: Optional[float] = Field(None, description="controlDict endTime override", gt=0)
    time_limit: str = Field("02:00:00", description="Slurm wall-time limit")
    account: Optional[str] = Field(None, description="Slurm account/project")
    partition: Optional[str] = Field(None, description="Slurm partition")
    sbatch_args: str = Field("", description="Extra sbatch flags, passed through verbatim")
    template_dir: Optional[Path] = Field(None, description="Case template; bundled pitzDaily if None")

    @field_validator('mesh_level')
    @classmethod
    def check_mesh_level(cls, v):
        if v not in MESH_LEVELS:
            raise ValueError("mesh level must be between 1 and 4")
        return v

    @field_validator('nodes')
    @classmethod
    def check_nodes(cls, v):
        if any(n < 1 for n in v):
            raise ValueError("node counts must be positive")
        return v

    @field_validator('time_limit')
    @classmethod
    def check_time_limit(cls, v):
        if not _WALLTIME_RE.match(v):
            raise ValueError("time limit must look like HH:MM:SS")
        return v

    @classmethod
    def build(cls, **kwargs) -> "BenchmarkParameters":
        """Validate keyword arguments, reporting failures as ConfigurationError."""
        try:
            return cls(**kwargs)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise ConfigurationError(f"Invalid benchmark parameters: {problems}") from e

    def with_overrides(self, **changes) -> "BenchmarkParameters":
        """Copy with some fields replaced, re-validated."""
        return self.build(**{**self.model_dump(), **changes})
