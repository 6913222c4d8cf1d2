"""
Configuration Management Module
===============================

Site settings for the cluster side of a benchmark: which binaries to call,
which environment modules a job loads, and default Slurm account/partition.

Values come from environment variables; a .env file in the working
directory is loaded first so a cluster login can keep them in one place:

    FOAMBENCH_APPTAINER=apptainer
    FOAMBENCH_SBATCH=sbatch
    FOAMBENCH_MODULES="Stages/2024 GCC/12.3.0;OpenMPI/4.1.5"
    FOAMBENCH_ACCOUNT=vsk46
    FOAMBENCH_PARTITION=dc-cpu
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

DEFAULT_MODULES = "Stages/2024 GCC/12.3.0;OpenMPI/4.1.5"

# Executables the container must provide
MESH_GENERATOR = "blockMesh"
DECOMPOSER = "decomposePar"
SOLVER = "pisoFoam"
REQUIRED_EXECUTABLES = (MESH_GENERATOR, DECOMPOSER, SOLVER)


def _split_modules(value: str) -> List[str]:
    return [m.strip() for m in value.split(";") if m.strip()]


@dataclass
class Settings:
    """Cluster-side settings shared by every run in a process"""
    apptainer_bin: str = "apptainer"
    sbatch_bin: str = "sbatch"
    scancel_bin: str = "scancel"
    sacct_bin: str = "sacct"
    modules: List[str] = field(default_factory=lambda: _split_modules(DEFAULT_MODULES))
    default_account: Optional[str] = None
    default_partition: Optional[str] = None
    preflight_timeout: int = 120  # seconds per `command -v` probe

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from FOAMBENCH_* environment variables."""
        return cls(
            apptainer_bin=os.environ.get('FOAMBENCH_APPTAINER', 'apptainer'),
            sbatch_bin=os.environ.get('FOAMBENCH_SBATCH', 'sbatch'),
            scancel_bin=os.environ.get('FOAMBENCH_SCANCEL', 'scancel'),
            sacct_bin=os.environ.get('FOAMBENCH_SACCT', 'sacct'),
            modules=_split_modules(os.environ.get('FOAMBENCH_MODULES', DEFAULT_MODULES)),
            default_account=os.environ.get('FOAMBENCH_ACCOUNT') or None,
            default_partition=os.environ.get('FOAMBENCH_PARTITION') or None,
            preflight_timeout=int(os.environ.get('FOAMBENCH_PREFLIGHT_TIMEOUT', 120)),
        )
