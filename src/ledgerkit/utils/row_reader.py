"""Turn uploaded statement files into raw rows.

A raw row maps a source column name to its string value. With headers the
column names come from the first non-empty line; without headers they are
the column positions as strings (``"0"``, ``"1"``, ...).
"""

import csv
import logging
import zipfile
from datetime import date, datetime
from pathlib import Path
from typing import Any, Iterable, Optional

from ledgerkit.utils.date_parser import format_statement_date

logger = logging.getLogger(__name__)

RawRow = dict[str, str]

SPREADSHEET_SUFFIXES = {".xlsx", ".xlsm"}
CSV_SUFFIXES = {".csv", ".txt"}


class FileReadError(ValueError):
    """A statement file could not be read as rows."""


def read_rows(
    file_path: str | Path,
    has_headers: bool = True,
    delimiter: str = ",",
    encoding: str = "utf-8",
    date_format: Optional[str] = None,
) -> list[RawRow]:
    """Read every data row of a CSV or XLSX statement.

    Empty lines are skipped.

    Raises:
        FileReadError: If the file is missing, malformed or of an unsupported type
    """
    path = Path(file_path)
    if not path.exists():
        raise FileReadError(f"File not found: {path}")

    suffix = path.suffix.lower()
    if suffix == ".xls":
        raise FileReadError(
            f"{path.name}: legacy .xls workbooks are not supported, save it as .xlsx or .csv"
        )
    if suffix in SPREADSHEET_SUFFIXES:
        lines = _read_spreadsheet_lines(path, date_format)
    else:
        lines = _read_csv_lines(path, delimiter, encoding)

    rows = _lines_to_rows(lines, has_headers)
    logger.debug("Read %d rows from %s", len(rows), path.name)
    return rows


def _read_csv_lines(path: Path, delimiter: str, encoding: str) -> list[list[str]]:
    # utf-8-sig drops the BOM some banks prepend
    if encoding.lower().replace("_", "-") in ("utf-8", "utf8"):
        encoding = "utf-8-sig"
    try:
        with open(path, "r", newline="", encoding=encoding) as f:
            reader = csv.reader(f, delimiter=delimiter or ",", strict=True)
            return [line for line in reader]
    except csv.Error as e:
        raise FileReadError(f"{path.name}: malformed CSV ({e})") from e
    except UnicodeDecodeError as e:
        raise FileReadError(f"{path.name}: cannot decode file as {encoding} ({e.reason})") from e
    except LookupError as e:
        raise FileReadError(f"{path.name}: unknown encoding '{encoding}'") from e


def _read_spreadsheet_lines(path: Path, date_format: Optional[str]) -> list[list[str]]:
    from openpyxl import load_workbook
    from openpyxl.utils.exceptions import InvalidFileException

    try:
        wb = load_workbook(path, read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError) as e:
        raise FileReadError(f"{path.name}: malformed workbook ({e})") from e

    try:
        ws = wb.active
        return [
            [_cell_to_text(value, date_format) for value in row]
            for row in ws.iter_rows(values_only=True)
        ]
    finally:
        wb.close()


def _cell_to_text(value: Any, date_format: Optional[str]) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return format_statement_date(value.date(), date_format)
    if isinstance(value, date):
        return format_statement_date(value, date_format)
    return str(value)


def _lines_to_rows(lines: Iterable[list[str]], has_headers: bool) -> list[RawRow]:
    data = [line for line in lines if any(cell.strip() for cell in line)]
    if not data:
        return []

    if not has_headers:
        return [{str(i): cell for i, cell in enumerate(line)} for line in data]

    header = [name.strip() for name in data[0]]
    rows = []
    for line in data[1:]:
        padded = list(line) + [""] * (len(header) - len(line))
        rows.append({name: padded[i] for i, name in enumerate(header) if name})
    return rows
