# api/routers/brokerage_api.py
import uuid
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.orm import Session

from api.dependencies import get_db, require_roles
from config import logger
from crud.brokerage_crud import list_uploads_between
from exceptions import ValidationError
from models.employee import Employee, Role
from schemas.brokerage import BrokerageReverseResult, BrokerageUploadLogEntry, BrokerageUploadResult
from services.brokerage_upload_service import import_brokerage_file, reverse_upload
from utils import month_bounds, paise_to_rupees

router = APIRouter(
    prefix="/brokerage",
    tags=["Brokerage"],
)

_UPLOAD_DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y")

require_admin = require_roles(Role.ADMIN, Role.SUPER_ADMIN)


def _parse_upload_date(value: Optional[str]) -> date:
    if not value or not value.strip():
        raise ValidationError("Date is required")
    for fmt in _UPLOAD_DATE_FORMATS:
        try:
            return datetime.strptime(value.strip(), fmt).date()
        except ValueError:
            continue
    raise ValidationError("Invalid date format, expected YYYY-MM-DD")


@router.post("/upload", response_model=BrokerageUploadResult)
async def upload_brokerage_file(
        file: Optional[UploadFile] = File(None),
        upload_date: Optional[str] = Form(None, alias="date"),
        preview: bool = Form(False),
        employee: Employee = Depends(require_admin),
        db: Session = Depends(get_db),
):
    """
    Reconcile a brokerage sheet (CSV/XLSX) for one calendar date.

    - **preview=true**: returns the per-operator summary, unmapped codes and
      whether the date already has an upload, without writing anything.
    - **preview=false**: replaces any upload for the date and stores the new one.
    """
    if file is None or not file.filename:
        raise ValidationError("No file uploaded")
    target_date = _parse_upload_date(upload_date)

    file_bytes = await file.read()
    if not file_bytes:
        raise ValidationError("Uploaded file is empty")

    logger.info(f"Brokerage upload received: file={file.filename}, date={target_date}, preview={preview}")
    result = import_brokerage_file(db, file_bytes, file.filename, target_date, employee, preview)
    return BrokerageUploadResult.from_result(result)


@router.get("/uploads", response_model=List[BrokerageUploadLogEntry])
async def get_upload_log(
        month: Optional[int] = None,
        year: Optional[int] = None,
        employee: Employee = Depends(require_admin),
        db: Session = Depends(get_db),
):
    """Uploads of one month (default: the current one), newest first."""
    today = date.today()
    month = month or today.month
    year = year or today.year
    if not 1 <= month <= 12:
        raise ValidationError("month must be between 1 and 12")

    start, end = month_bounds(month, year)
    return [BrokerageUploadLogEntry.from_upload(upload) for upload in list_uploads_between(db, start, end)]


@router.delete("/uploads/{upload_id}", response_model=BrokerageReverseResult, status_code=status.HTTP_200_OK)
async def delete_upload(
        upload_id: uuid.UUID,
        employee: Employee = Depends(require_admin),
        db: Session = Depends(get_db),
):
    """Reverse an upload: removes it and every detail row it owns."""
    reversed_upload = reverse_upload(db, upload_id, employee)
    return BrokerageReverseResult(
        id=reversed_upload["id"],
        upload_date=reversed_upload["upload_date"],
        file_name=reversed_upload["file_name"],
        total_amount=paise_to_rupees(reversed_upload["total_amount_paise"]),
    )
