"""
Benchmark orchestration: single runs, sweeps, interruption cleanup.
"""

from .benchmark_run import BenchmarkRun, BenchmarkRunResult
from .cleanup import install_cleanup_handlers
from .sweep import SWEEP_MESH_LEVELS, SWEEP_NPROCS, SweepResult, run_sweep, sweep_combinations

__all__ = [
    'BenchmarkRun',
    'BenchmarkRunResult',
    'install_cleanup_handlers',
    'SWEEP_MESH_LEVELS',
    'SWEEP_NPROCS',
    'SweepResult',
    'run_sweep',
    'sweep_combinations',
]
