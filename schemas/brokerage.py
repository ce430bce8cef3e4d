# schemas/brokerage.py
import uuid
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel

from utils import paise_to_rupees


class OperatorSummary(BaseModel):
    operator_id: uuid.UUID
    operator_name: str
    client_count: int
    total_amount: str


class BrokerageUploadResult(BaseModel):
    """Returned for both preview and confirm; ``upload_id`` is only set once persisted."""
    preview: bool
    upload_id: Optional[uuid.UUID] = None
    upload_date: date
    file_name: str
    operator_summary: List[OperatorSummary]
    total_clients: int
    total_amount: str
    mapped_count: int
    unmapped_count: int
    unmapped_codes: List[str]
    duplicates_consolidated: int
    date_exists: bool
    warnings: List[str] = []

    @classmethod
    def from_result(cls, result) -> "BrokerageUploadResult":
        return cls(
            preview=result.preview,
            upload_id=result.upload_id,
            upload_date=result.upload_date,
            file_name=result.file_name,
            operator_summary=[
                OperatorSummary(
                    operator_id=entry.operator_id,
                    operator_name=entry.operator_name,
                    client_count=entry.client_count,
                    total_amount=paise_to_rupees(entry.total_amount_paise),
                )
                for entry in result.operator_summary
            ],
            total_clients=result.mapped_count,
            total_amount=paise_to_rupees(result.total_amount_paise),
            mapped_count=result.mapped_count,
            unmapped_count=len(result.unmapped_codes),
            unmapped_codes=result.unmapped_codes,
            duplicates_consolidated=result.duplicates_consolidated,
            date_exists=result.date_exists,
            warnings=result.warnings,
        )


class BrokerageUploadLogEntry(BaseModel):
    id: uuid.UUID
    upload_date: date
    file_name: str
    total_amount: str
    uploaded_by_id: uuid.UUID
    created_at: Optional[datetime] = None

    @classmethod
    def from_upload(cls, upload) -> "BrokerageUploadLogEntry":
        return cls(
            id=upload.id,
            upload_date=upload.upload_date,
            file_name=upload.file_name,
            total_amount=paise_to_rupees(upload.total_amount_paise),
            uploaded_by_id=upload.uploaded_by_id,
            created_at=upload.created_at,
        )


class BrokerageReverseResult(BaseModel):
    id: uuid.UUID
    upload_date: date
    file_name: str
    total_amount: str
