"""
foambench
=========

Node-count scaling benchmarks for OpenFOAM cases on Slurm clusters.
Prepares a case once, submits one solver job per node count and
collects wall-clock timings into a CSV table.
"""

__version__ = "1.0.0"
__all__ = ['config', 'errors', 'schemas', 'templates', 'solvers', 'compute', 'orchestration', 'reporting']
