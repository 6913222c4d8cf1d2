"""
Benchmark schemas package.
"""

from .benchmark_config import (
    BenchmarkParameters,
    MeshCells,
    MESH_LEVELS,
    combination_label,
    mesh_cells_for_level,
    parse_node_list,
)
from .results import ResultRow, RESULT_COLUMNS, UNKNOWN_CELLS

__all__ = [
    'BenchmarkParameters',
    'MeshCells',
    'MESH_LEVELS',
    'combination_label',
    'mesh_cells_for_level',
    'parse_node_list',
    'ResultRow',
    'RESULT_COLUMNS',
    'UNKNOWN_CELLS',
]
