"""
Benchmark Results Tables
========================

Per-run table: `benchmark_results.csv` in each case workspace. The header is
written by the orchestrator; each Slurm job appends one row when its solver
finishes.

Combined table: header plus the data rows of every per-run table of a sweep,
in sweep order.
"""

import csv
from pathlib import Path
from typing import Iterable, Iterator, List, Tuple

from foambench.errors import ResultsTableError
from foambench.logging.bench_logger import BenchLogger
from foambench.schemas.results import RESULT_COLUMNS, ResultRow

logger = BenchLogger("foambench.reporting")

RESULT_HEADER = ",".join(RESULT_COLUMNS)


def init_results_table(path: Path) -> Path:
    """Create (or truncate) a results table containing only the header."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', newline='') as f:
        csv.writer(f, lineterminator='\n').writerow(RESULT_COLUMNS)
    return path


def append_result(path: Path, row: ResultRow):
    with open(path, 'a', newline='') as f:
        csv.writer(f, lineterminator='\n').writerow(row.to_csv_fields())


def _data_lines(path: Path) -> List[List[str]]:
    with open(path, 'r', newline='') as f:
        rows = [r for r in csv.reader(f) if r]
    if not rows:
        return []
    if rows[0] != RESULT_COLUMNS:
        raise ResultsTableError(f"{path} does not start with the results header '{RESULT_HEADER}'")
    return rows[1:]


def _valid_rows(path: Path) -> Iterator[Tuple[List[str], ResultRow]]:
    """(raw fields, parsed row) for every well-formed data line; others are skipped with a warning."""
    for lineno, fields in enumerate(_data_lines(path), start=2):
        try:
            row = ResultRow.from_csv_fields(fields)
        except ValueError as e:
            # pydantic's ValidationError is a ValueError
            logger.warning(f"Skipping malformed row {lineno} of {path} ({','.join(fields)}): {e}")
            continue
        yield fields, row


def read_results_table(path: Path) -> List[ResultRow]:
    """Parse a per-run or combined table back into rows."""
    return [row for _, row in _valid_rows(Path(path))]


def combine_results(tables: Iterable[Path], out_path: Path) -> Tuple[int, List[Path]]:
    """
    Concatenate the data rows of `tables` under a single header.

    Tables that do not exist are skipped and returned to the caller so the
    omission can be reported. Malformed rows (e.g. a job killed mid-write)
    are left out with a warning.

    Returns:
        (number of data rows written, list of missing tables)
    """
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    written = 0
    missing = []
    with open(out_path, 'w', newline='') as out:
        writer = csv.writer(out, lineterminator='\n')
        writer.writerow(RESULT_COLUMNS)
        for table in tables:
            table = Path(table)
            if not table.exists():
                missing.append(table)
                continue
            for fields, _ in _valid_rows(table):
                writer.writerow(fields)
                written += 1
    logger.info(f"Combined {written} rows into {out_path}")
    return written, missing


def format_results(path: Path) -> str:
    """Raw table text for console reports."""
    return Path(path).read_text().rstrip("\n")
