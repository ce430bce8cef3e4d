# crud/brokerage_crud.py
import uuid
from datetime import date
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from models.brokerage import BrokerageDetail, BrokerageUpload


def get_upload(db: Session, upload_id: uuid.UUID) -> Optional[BrokerageUpload]:
    return db.get(BrokerageUpload, upload_id)


def get_upload_by_date(db: Session, upload_date: date) -> Optional[BrokerageUpload]:
    return db.query(BrokerageUpload).filter(BrokerageUpload.upload_date == upload_date).first()


def list_uploads_between(db: Session, start: date, end: date) -> List[BrokerageUpload]:
    return (
        db.query(BrokerageUpload)
        .filter(BrokerageUpload.upload_date >= start, BrokerageUpload.upload_date <= end)
        .order_by(BrokerageUpload.upload_date.desc())
        .all()
    )


def sum_operator_brokerage(db: Session, operator_id: uuid.UUID, start: date, end: date) -> int:
    """Total paise attributed to an operator across uploads dated within [start, end]."""
    total = db.execute(
        select(func.coalesce(func.sum(BrokerageDetail.amount_paise), 0))
        .join(BrokerageUpload, BrokerageDetail.brokerage_id == BrokerageUpload.id)
        .where(BrokerageDetail.operator_id == operator_id)
        .where(BrokerageUpload.upload_date >= start, BrokerageUpload.upload_date <= end)
    ).scalar_one()
    return int(total or 0)


def delete_upload(db: Session, upload: BrokerageUpload) -> None:
    """Delete an upload and, through the cascade, its details. Does not commit."""
    db.delete(upload)
    db.flush()
