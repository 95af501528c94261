"""
Report Table Projection and CSV Export

A report is described by an ordered list of Columns. The same column list
drives the on-screen table (with display renderers and an em-dash for empty
cells) and the CSV download (raw values, every field quoted).
"""
import csv
import io
from collections.abc import Callable, Iterable, Mapping
from dataclasses import asdict, dataclass, is_dataclass
from typing import Any

from apps.core.constants import EXPORT


@dataclass(frozen=True)
class Column:
    key: str
    header: str
    align: str = 'left'
    render: Callable[[Any, Mapping], str] | None = None


@dataclass
class Table:
    headers: list[str]
    aligns: list[str]
    rows: list[list[str]]

    def as_dict(self) -> dict:
        return {'headers': self.headers, 'aligns': self.aligns, 'rows': self.rows}


def _is_empty(value) -> bool:
    return value is None or value == ''


def _as_mapping(row) -> Mapping:
    if is_dataclass(row) and not isinstance(row, type):
        return asdict(row)
    return row


def project(columns: list[Column], rows: Iterable) -> Table:
    """
    Project report rows into display cells.

    Empty values render as an em-dash; a column's render function, when
    given, formats non-empty values.
    """
    empty = EXPORT['empty_cell']
    cells = []
    for row in rows:
        data = _as_mapping(row)
        line = []
        for column in columns:
            value = data.get(column.key)
            if _is_empty(value):
                line.append(empty)
            elif column.render is not None:
                line.append(column.render(value, data))
            else:
                line.append(str(value))
        cells.append(line)

    return Table(
        headers=[column.header for column in columns],
        aligns=[column.align for column in columns],
        rows=cells,
    )


def to_csv(columns: list[Column], rows: Iterable) -> str:
    """
    Export report rows to CSV.

    Header row first, every field double-quoted with inner quotes doubled,
    empty values as "" and lines joined with \\n. Values are stringified
    as-is; display renderers are not applied.
    """
    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator='\n')
    writer.writerow([column.header for column in columns])
    for row in rows:
        data = _as_mapping(row)
        writer.writerow([
            '' if _is_empty(data.get(column.key)) else str(data.get(column.key))
            for column in columns
        ])
    return output.getvalue().rstrip('\n')
