# foambench/solvers/foam_log_parser.py
import re
import logging
from pathlib import Path

from foambench.schemas.results import UNKNOWN_CELLS

logger = logging.getLogger(__name__)

# blockMesh prints "nCells: 12225" in its mesh summary; older releases and
# checkMesh-style output use "cells: 12225".
_NCELLS_PATTERN = re.compile(r'nCells:\s*([0-9]+)')
_CELLS_PATTERN = re.compile(r'cells:\s*([0-9]+)')


def parse_cell_count(log_text: str) -> int:
    """
    Extract the mesh cell count from blockMesh output.
    Returns UNKNOWN_CELLS when neither label is present.
    """
    match = _NCELLS_PATTERN.search(log_text)
    if match and int(match.group(1)) > 0:
        return int(match.group(1))

    match = _CELLS_PATTERN.search(log_text)
    if match:
        return int(match.group(1))

    return UNKNOWN_CELLS


def read_cell_count(log_path: Path) -> int:
    """parse_cell_count on a log file; a missing log counts as unknown."""
    log_path = Path(log_path)
    if not log_path.exists():
        logger.warning(f"Mesh log not found: {log_path}")
        return UNKNOWN_CELLS
    return parse_cell_count(log_path.read_text(errors="replace"))
