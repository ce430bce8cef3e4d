# services/spreadsheet_service.py
import csv
import io
import os
from typing import Any, List, Tuple

from openpyxl import load_workbook

from config import logger
from constants import SUPPORTED_UPLOAD_EXTENSIONS
from exceptions import ValidationError


def _decode_csv_bytes(file_bytes: bytes) -> Tuple[str, str]:
    for encoding in ("utf-8-sig", "cp1252"):
        try:
            return file_bytes.decode(encoding), encoding
        except UnicodeDecodeError:
            continue
    return file_bytes.decode("latin-1"), "latin-1"


def _read_csv_rows(file_bytes: bytes) -> List[List[Any]]:
    text, encoding = _decode_csv_bytes(file_bytes)
    logger.debug("Decoded CSV upload as %s", encoding)
    return [row for row in csv.reader(io.StringIO(text))]


def _read_xlsx_rows(file_bytes: bytes) -> List[List[Any]]:
    try:
        workbook = load_workbook(io.BytesIO(file_bytes), read_only=True, data_only=True)
    except Exception as exc:  # noqa: BLE001 - openpyxl raises a zoo of types for corrupt files
        logger.warning(f"Unable to open workbook: {exc}")
        raise ValidationError("Unable to read the uploaded Excel file") from exc

    try:
        sheet = workbook.worksheets[0] if workbook.worksheets else None
        if sheet is None:
            return []
        return [list(row) for row in sheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


def read_sheet_rows(file_bytes: bytes, filename: str) -> List[List[Any]]:
    """
    Turn an uploaded CSV/XLSX file into a list of rows (lists of cell values).
    Only the first worksheet of a workbook is read.
    """
    if not file_bytes:
        raise ValidationError("No file uploaded")

    extension = os.path.splitext(filename or "")[1].lower()
    if extension not in SUPPORTED_UPLOAD_EXTENSIONS:
        raise ValidationError(
            f"Unsupported file type '{extension or filename}'. Upload a CSV or XLSX file"
        )

    if extension == ".csv":
        rows = _read_csv_rows(file_bytes)
    else:
        rows = _read_xlsx_rows(file_bytes)

    # Trailing blank rows are common in exported sheets
    while rows and all(cell in (None, "") for cell in rows[-1]):
        rows.pop()
    return rows
