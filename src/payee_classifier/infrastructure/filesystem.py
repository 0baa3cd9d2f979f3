"""Tabular file IO for the CLI.

Usage example:
    from pathlib import Path

    from payee_classifier.infrastructure.filesystem import LocalTableIO

    table_io = LocalTableIO()
    df = table_io.read_csv(Path("data/payees.csv"))
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import override

import pandas as pd

from ..domain.classification import CellValue, Row
from ..protocols import TableIO


class LocalTableIO(TableIO):
    """Local CSV reader/writer; every cell is read as a string."""

    @override
    def read_csv(self, path: Path) -> pd.DataFrame:
        return pd.read_csv(path, dtype=str, keep_default_na=False)

    @override
    def write_csv(self, df: pd.DataFrame, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(path, index=False)


def frame_to_rows(df: pd.DataFrame) -> list[Row]:
    """Return one ordered mapping per DataFrame row, preserving column order."""
    columns = [str(column) for column in df.columns]
    rows: list[Row] = []
    for values in df.itertuples(index=False, name=None):
        row: dict[str, CellValue] = {}
        for column, value in zip(columns, values, strict=True):
            row[column] = None if pd.isna(value) else value
        rows.append(row)
    return rows


def records_to_frame(records: Sequence[Mapping[str, object]]) -> pd.DataFrame:
    """Build a DataFrame from export records, keeping first-seen column order."""
    columns: list[str] = []
    for record in records:
        for key in record:
            if key not in columns:
                columns.append(key)
    return pd.DataFrame.from_records(list(records), columns=columns)
