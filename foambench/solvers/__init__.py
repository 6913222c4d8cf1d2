"""
OpenFOAM pre-processing and log parsing.
"""

from .case_preparer import CasePreparation, CasePreparer
from .foam_log_parser import parse_cell_count, read_cell_count

__all__ = ['CasePreparation', 'CasePreparer', 'parse_cell_count', 'read_cell_count']
