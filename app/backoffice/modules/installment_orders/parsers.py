from __future__ import annotations

import csv
import io
from dataclasses import dataclass

# Header aliases, matched as substrings of the (lower-cased) header cell.
# The bank's export uses Arabic headers; English ones are accepted for hand-made sheets.
INSTALLMENT_ID_HEADERS = ("رقم الفاتورة", "installment id", "installment_id", "installmentid")
CARDHOLDER_NAME_HEADERS = ("اسم الزبون", "cardholder name", "cardholder_name", "cardholdername")
MOTHER_NAME_HEADERS = ("اسم ام الزبون", "mother name", "mother_name", "mothername")
PHONE_HEADERS = ("رقم هاتف الزبون", "phone")

REQUIRED_COLUMN_LABEL = "رقم الفاتورة"


@dataclass(frozen=True)
class CardholderRow:
    row_number: int
    installment_id: str
    cardholder_name: str | None
    cardholder_mother_name: str | None
    cardholder_phone_number: str | None


@dataclass(frozen=True)
class ImportRowError:
    row_number: int
    message: str


def _cell_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        # Numeric ids come back from Excel as floats.
        value = int(value)
    return str(value).strip()


def _find_column(headers: list[str], aliases: tuple[str, ...]) -> int | None:
    for idx, header in enumerate(headers):
        h = header.lower()
        if any(alias in h for alias in aliases):
            return idx
    return None


def _read_xlsx(file_bytes: bytes) -> list[list[str]]:
    from openpyxl import load_workbook

    try:
        wb = load_workbook(io.BytesIO(file_bytes), read_only=True, data_only=True)
    except Exception as e:
        raise ValueError(f"Could not read Excel file: {e}") from None
    try:
        ws = wb.worksheets[0] if wb.worksheets else None
        if ws is None:
            raise ValueError("No worksheet found in file")
        return [[_cell_text(v) for v in row] for row in ws.iter_rows(values_only=True)]
    finally:
        wb.close()


def _read_csv(file_bytes: bytes) -> list[list[str]]:
    text = file_bytes.decode("utf-8-sig", errors="replace")
    return [[_cell_text(v) for v in row] for row in csv.reader(io.StringIO(text))]


def parse_cardholder_sheet(filename: str, file_bytes: bytes) -> tuple[list[CardholderRow], list[ImportRowError]]:
    """
    Parse a cardholder sheet (.xlsx, or .csv with the same headers).

    Only the installment id column is required; name, mother's name and phone
    are optional columns. Raises ValueError for an unreadable file or a
    missing installment id column.

    Returns:
      (rows, errors) where row numbers are 1-based sheet rows (1 = header).
    """
    if filename.lower().endswith(".csv"):
        table = _read_csv(file_bytes)
    else:
        table = _read_xlsx(file_bytes)
    if not table:
        raise ValueError("File has no header row")

    headers = table[0]
    id_col = _find_column(headers, INSTALLMENT_ID_HEADERS)
    if id_col is None:
        raise ValueError(f"Required column '{REQUIRED_COLUMN_LABEL}' not found in file")
    name_col = _find_column(headers, CARDHOLDER_NAME_HEADERS)
    mother_col = _find_column(headers, MOTHER_NAME_HEADERS)
    phone_col = _find_column(headers, PHONE_HEADERS)

    def cell(row: list[str], col: int | None) -> str | None:
        if col is None or col >= len(row):
            return None
        return row[col] or None

    rows: list[CardholderRow] = []
    errors: list[ImportRowError] = []
    for idx, raw in enumerate(table[1:], start=2):
        if all(v == "" for v in raw):
            continue
        installment_id = cell(raw, id_col)
        if not installment_id:
            errors.append(ImportRowError(idx, "Missing installment ID"))
            continue
        rows.append(
            CardholderRow(
                row_number=idx,
                installment_id=installment_id,
                cardholder_name=cell(raw, name_col),
                cardholder_mother_name=cell(raw, mother_col),
                cardholder_phone_number=cell(raw, phone_col),
            )
        )
    return rows, errors
