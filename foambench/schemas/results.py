from typing import List

from pydantic import BaseModel, ConfigDict

# blockMesh log without a recognisable cell count. Recorded as-is so the
# run still shows up in the table.
UNKNOWN_CELLS = 0

RESULT_COLUMNS = ["nodes", "nprocs", "mesh_level", "cells", "wall_time_seconds", "exit_code"]


class ResultRow(BaseModel):
    """One solver timing: a single node count of a single run."""
    model_config = ConfigDict(frozen=True)

    nodes: int
    nprocs: int
    mesh_level: int
    cells: int
    wall_time_seconds: float
    exit_code: int

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    def to_csv_fields(self) -> List[str]:
        return [
            str(self.nodes),
            str(self.nprocs),
            str(self.mesh_level),
            str(self.cells),
            repr(self.wall_time_seconds),
            str(self.exit_code),
        ]

    @classmethod
    def from_csv_fields(cls, fields: List[str]) -> "ResultRow":
        if len(fields) != len(RESULT_COLUMNS):
            raise ValueError(f"Expected {len(RESULT_COLUMNS)} columns, got {len(fields)}: {fields}")
        return cls(**dict(zip(RESULT_COLUMNS, fields)))
