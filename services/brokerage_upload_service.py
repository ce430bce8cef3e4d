# services/brokerage_upload_service.py
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from config import logger
from constants import (
    AMOUNT_COLUMNS,
    CLIENT_CODE_COLUMNS,
    HEADER_SCAN_ROWS,
    LEDGER_CREDIT_COLUMN,
    LEDGER_DATE_COLUMN,
    LEDGER_NARRATION_COLUMN,
    MODULE_BROKERAGE,
    NOTIFY_BROKERAGE_UPLOAD,
)
from crud.activity_log_crud import add_activity_log
from crud.brokerage_crud import delete_upload, get_upload, get_upload_by_date
from crud.client_crud import find_clients_by_codes
from crud.employee_crud import get_employee_names, list_active_with_role
from exceptions import NotFoundError, UnprocessableError, ValidationError
from models.brokerage import BrokerageDetail, BrokerageUpload
from models.employee import Employee, Role
from services.notification_service import notify_many
from services.spreadsheet_service import read_sheet_rows
from utils import cell_to_text, format_inr, parse_decimal, to_paise


@dataclass
class AggregatedRows:
    # client_code -> summed amount, in first-seen order
    amounts: "OrderedDict[str, Decimal]"
    # client_code -> number of source rows that contributed
    row_counts: Dict[str, int]
    ledger_format: bool

    @property
    def duplicates_consolidated(self) -> int:
        return sum(1 for count in self.row_counts.values() if count > 1)


@dataclass
class OperatorSummary:
    operator_id: uuid.UUID
    operator_name: str
    client_count: int = 0
    total_amount_paise: int = 0


@dataclass
class ReconciliationResult:
    preview: bool
    upload_date: date
    file_name: str
    operator_summary: List[OperatorSummary]
    mapped_count: int
    total_amount_paise: int
    unmapped_codes: List[str]
    duplicates_consolidated: int
    date_exists: bool
    upload_id: Optional[uuid.UUID] = None
    notifications_sent: int = 0
    warnings: List[str] = field(default_factory=list)


def _find_column_index(headers: List[str], candidates: List[str]) -> int:
    """First candidate (in list order) that equals a header cell, case-insensitively."""
    lowered = [h.strip().lower() for h in headers]
    for candidate in candidates:
        if candidate in lowered:
            return lowered.index(candidate)
    return -1


def _is_ledger_header(headers: List[str]) -> bool:
    return all(
        _find_column_index(headers, [name]) != -1
        for name in (LEDGER_DATE_COLUMN, LEDGER_NARRATION_COLUMN, LEDGER_CREDIT_COLUMN)
    )


def _detect_header(rows: List[List[Any]]) -> Tuple[int, List[str], bool]:
    """
    Locate the header row among the first rows of the sheet.
    Returns (header_index, headers, is_ledger_format). When no row qualifies,
    the error names the column missing from the closest partial header.
    """
    for index, row in enumerate(rows[:HEADER_SCAN_ROWS]):
        headers = [cell_to_text(cell) for cell in row]
        if _is_ledger_header(headers):
            return index, headers, True
        if (_find_column_index(headers, CLIENT_CODE_COLUMNS) != -1
                and _find_column_index(headers, AMOUNT_COLUMNS) != -1):
            return index, headers, False

    # Report against the first row that looks like a partial header, else row 0
    headers = [cell_to_text(cell) for cell in rows[0]]
    for row in rows[:HEADER_SCAN_ROWS]:
        candidate = [cell_to_text(cell) for cell in row]
        if (_find_column_index(candidate, CLIENT_CODE_COLUMNS) != -1
                or _find_column_index(candidate, AMOUNT_COLUMNS) != -1):
            headers = candidate
            break

    if _find_column_index(headers, CLIENT_CODE_COLUMNS) == -1:
        raise ValidationError(
            f"Could not find client code column (expected one of: {', '.join(CLIENT_CODE_COLUMNS)})"
        )
    raise ValidationError(
        f"Could not find amount column (expected one of: {', '.join(AMOUNT_COLUMNS)})"
    )


def _cell(row: List[Any], idx: int) -> Any:
    return row[idx] if 0 <= idx < len(row) else None


def extract_code_from_narration(narration: str) -> str:
    """
    Ledger narrations end with the client code:
      "Z/M/2026039/ 18A213"            -> "18A213"
      "Z/L/2026039/57066490 91383117"  -> "91383117"
    """
    tokens = narration.split()
    return tokens[-1].upper() if tokens else ""


def aggregate_rows(rows: List[List[Any]]) -> AggregatedRows:
    """
    Sum amounts per client code. Rows without a code or with an unusable amount
    are skipped silently; duplicate codes are consolidated by summation.
    """
    if len(rows) < 2:
        raise ValidationError("File has no data rows")

    header_index, headers, ledger_format = _detect_header(rows)
    data_rows = rows[header_index + 1:]

    amounts: "OrderedDict[str, Decimal]" = OrderedDict()
    row_counts: Dict[str, int] = {}
    skipped = 0

    if ledger_format:
        date_idx = _find_column_index(headers, [LEDGER_DATE_COLUMN])
        narration_idx = _find_column_index(headers, [LEDGER_NARRATION_COLUMN])
        credit_idx = _find_column_index(headers, [LEDGER_CREDIT_COLUMN])
    else:
        code_idx = _find_column_index(headers, CLIENT_CODE_COLUMNS)
        amount_idx = _find_column_index(headers, AMOUNT_COLUMNS)

    for row in data_rows:
        if ledger_format:
            # Opening balance, totals and separator rows carry no date or narration
            if not cell_to_text(_cell(row, date_idx)):
                skipped += 1
                continue
            narration = cell_to_text(_cell(row, narration_idx))
            if not narration:
                skipped += 1
                continue
            amount = parse_decimal(_cell(row, credit_idx))
            if amount is None or amount <= 0:
                skipped += 1
                continue
            code = extract_code_from_narration(narration)
        else:
            code = cell_to_text(_cell(row, code_idx)).upper()
            amount = parse_decimal(_cell(row, amount_idx))
            if amount is None or amount < 0:
                skipped += 1
                continue

        if not code:
            skipped += 1
            continue

        amounts[code] = amounts.get(code, Decimal("0")) + amount
        row_counts[code] = row_counts.get(code, 0) + 1

    if not amounts:
        raise ValidationError("No valid data rows found")

    logger.info(
        "Brokerage sheet parsed: format=%s, rows=%s, codes=%s, skipped=%s",
        "ledger" if ledger_format else "simple",
        len(data_rows),
        len(amounts),
        skipped,
    )
    return AggregatedRows(amounts=amounts, row_counts=row_counts, ledger_format=ledger_format)


def reconcile_brokerage_upload(
    db: Session,
    rows: List[List[Any]],
    upload_date: date,
    uploaded_by: Employee,
    file_name: str,
    preview: bool,
) -> ReconciliationResult:
    """
    Match a parsed brokerage sheet against the client master and, unless
    ``preview`` is set, replace the upload for ``upload_date`` atomically.
    """
    aggregated = aggregate_rows(rows)

    # 1. Resolve codes to clients in one batch
    clients = find_clients_by_codes(db, aggregated.amounts.keys())
    unmapped_codes: List[str] = []
    details: List[BrokerageDetail] = []
    for code, amount in aggregated.amounts.items():
        client = clients.get(code)
        if client is None:
            unmapped_codes.append(code)
            continue
        details.append(
            BrokerageDetail(
                client_code=code,
                client_id=client.id,
                operator_id=client.operator_id,
                amount_paise=to_paise(amount),
            )
        )

    # 2. Per-operator summary
    operator_names = get_employee_names(db, (d.operator_id for d in details))
    summary_by_operator: "OrderedDict[uuid.UUID, OperatorSummary]" = OrderedDict()
    for detail in details:
        entry = summary_by_operator.get(detail.operator_id)
        if entry is None:
            entry = OperatorSummary(
                operator_id=detail.operator_id,
                operator_name=operator_names.get(detail.operator_id, "Unknown"),
            )
            summary_by_operator[detail.operator_id] = entry
        entry.client_count += 1
        entry.total_amount_paise += detail.amount_paise

    total_amount_paise = sum(d.amount_paise for d in details)
    existing = get_upload_by_date(db, upload_date)

    result = ReconciliationResult(
        preview=preview,
        upload_date=upload_date,
        file_name=file_name,
        operator_summary=list(summary_by_operator.values()),
        mapped_count=len(details),
        total_amount_paise=total_amount_paise,
        unmapped_codes=unmapped_codes,
        duplicates_consolidated=aggregated.duplicates_consolidated,
        date_exists=existing is not None,
    )
    if unmapped_codes:
        result.warnings.append(
            f"{len(unmapped_codes)} client code(s) not found and excluded: {', '.join(unmapped_codes)}"
        )
    if existing is not None:
        result.warnings.append(f"An upload already exists for {upload_date.isoformat()} and will be replaced")

    if preview:
        return result

    if not details:
        raise UnprocessableError(
            f"None of the {len(unmapped_codes)} client code(s) in this file exist in the system. "
            "Add these clients first, then re-upload.",
            data={"unmapped_codes": unmapped_codes, "mapped_count": 0},
        )

    # 3. Replace-on-conflict, new upload, details and audit entry: one transaction
    try:
        if existing is not None:
            logger.info(f"Replacing brokerage upload {existing.id} for {upload_date.isoformat()}")
            delete_upload(db, existing)

        upload = BrokerageUpload(
            upload_date=upload_date,
            uploaded_by_id=uploaded_by.id,
            total_amount_paise=total_amount_paise,
            file_name=file_name,
            details=details,
        )
        db.add(upload)
        add_activity_log(
            db,
            action="UPLOAD",
            module=MODULE_BROKERAGE,
            user_id=uploaded_by.id,
            details=(
                f"Uploaded brokerage for {upload_date.isoformat()}. Total: {format_inr(total_amount_paise)}. "
                f"Mapped: {len(details)}. Unmapped: {len(unmapped_codes)}"
            ),
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    result.upload_id = upload.id
    logger.info(
        "Brokerage upload stored: date=%s, file=%s, mapped=%s, unmapped=%s, total=%s",
        upload_date.isoformat(),
        file_name,
        len(details),
        len(unmapped_codes),
        format_inr(total_amount_paise),
    )

    # 4. Fire-and-forget notification of the equity desk
    dealers = list_active_with_role(db, Role.EQUITY_DEALER)
    result.notifications_sent = notify_many(
        db,
        (dealer.id for dealer in dealers),
        NOTIFY_BROKERAGE_UPLOAD,
        "Brokerage data uploaded",
        f"Brokerage data for {upload_date.strftime('%d %b %Y')} has been uploaded.",
        link="/brokerage",
    )
    return result


def import_brokerage_file(
    db: Session,
    file_bytes: bytes,
    filename: str,
    upload_date: date,
    uploaded_by: Employee,
    preview: bool,
) -> ReconciliationResult:
    rows = read_sheet_rows(file_bytes, filename)
    return reconcile_brokerage_upload(db, rows, upload_date, uploaded_by, filename, preview)


def reverse_upload(db: Session, upload_id: uuid.UUID, actor: Employee) -> Dict[str, Any]:
    """Delete an upload together with its details and record who reversed it."""
    upload = get_upload(db, upload_id)
    if upload is None:
        raise NotFoundError("Upload not found")

    reversed_upload = {
        "id": upload.id,
        "upload_date": upload.upload_date,
        "file_name": upload.file_name,
        "total_amount_paise": upload.total_amount_paise,
    }
    try:
        delete_upload(db, upload)
        add_activity_log(
            db,
            action="DELETE",
            module=MODULE_BROKERAGE,
            user_id=actor.id,
            details=(
                f"Reversed brokerage upload: {upload.file_name} "
                f"({upload.upload_date.isoformat()}, {format_inr(upload.total_amount_paise)})"
            ),
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Brokerage upload {upload_id} reversed by {actor.id}")
    return reversed_upload
