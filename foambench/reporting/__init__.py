from .results_table import (
    RESULT_HEADER,
    append_result,
    combine_results,
    format_results,
    init_results_table,
    read_results_table,
)

__all__ = [
    'RESULT_HEADER',
    'append_result',
    'combine_results',
    'format_results',
    'init_results_table',
    'read_results_table',
]
