# crud/archive_crud.py
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from models.archive import MonthlyArchive


def get_archive(db: Session, month: int, year: int, entity_type: str, entity_id: str) -> Optional[MonthlyArchive]:
    return (
        db.query(MonthlyArchive)
        .filter(
            MonthlyArchive.month == month,
            MonthlyArchive.year == year,
            MonthlyArchive.entity_type == entity_type,
            MonthlyArchive.entity_id == entity_id,
        )
        .first()
    )


def upsert_archive(
    db: Session,
    month: int,
    year: int,
    entity_type: str,
    entity_id: str,
    data: Dict[str, Any],
) -> MonthlyArchive:
    """Insert or overwrite the snapshot for one entity in one period. Does not commit."""
    existing = get_archive(db, month, year, entity_type, entity_id)
    if existing:
        existing.data = data
        return existing

    archive = MonthlyArchive(month=month, year=year, entity_type=entity_type, entity_id=entity_id, data=data)
    db.add(archive)
    return archive


def list_archives(db: Session, month: int, year: int, entity_type: Optional[str] = None) -> List[MonthlyArchive]:
    query = db.query(MonthlyArchive).filter(MonthlyArchive.month == month, MonthlyArchive.year == year)
    if entity_type:
        query = query.filter(MonthlyArchive.entity_type == entity_type)
    return query.order_by(MonthlyArchive.entity_type, MonthlyArchive.entity_id).all()
