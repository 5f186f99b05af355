"""
Minimal CSV reader and writer for upstream readings exports.

Quoted fields may hold commas, newlines and doubled quotes. Rows are
returned as-is, so ragged rows pass through without arity checks.
"""

from typing import List, Sequence

RawTable = List[List[str]]


def parse_csv(text: str) -> RawTable:
    """
    Split delimited text into rows of string cells.

    A carriage return outside quotes is dropped, which makes CRLF and LF
    endings equivalent. A final row without a trailing newline is still
    emitted.

    Args:
        text: Raw CSV text

    Returns:
        List of rows, each a list of cells; empty input yields []
    """
    rows: RawTable = []
    row: List[str] = []
    cell: List[str] = []
    in_quotes = False
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]
        if in_quotes:
            if ch == '"':
                if i + 1 < n and text[i + 1] == '"':
                    cell.append('"')
                    i += 1
                else:
                    in_quotes = False
            else:
                cell.append(ch)
        elif ch == '"':
            in_quotes = True
        elif ch == ',':
            row.append(''.join(cell))
            cell = []
        elif ch == '\n':
            row.append(''.join(cell))
            rows.append(row)
            row = []
            cell = []
        elif ch != '\r':
            cell.append(ch)
        i += 1

    if cell or row:
        row.append(''.join(cell))
        rows.append(row)

    return rows


def _quote(cell: str) -> str:
    if any(c in cell for c in ',"\n\r'):
        return '"' + cell.replace('"', '""') + '"'
    return cell


def format_csv(rows: Sequence[Sequence[str]]) -> str:
    """Serialize rows back to CSV text, quoting only where needed."""
    return ''.join(','.join(_quote(str(c)) for c in row) + '\n' for row in rows)


def cell(row: Sequence[str], index: int) -> str:
    """Return a cell, treating cells past the end of a ragged row as empty."""
    return row[index] if 0 <= index < len(row) else ''
