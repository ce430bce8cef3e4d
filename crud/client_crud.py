# crud/client_crud.py
import uuid
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from models.brokerage import BrokerageDetail
from models.client import Client, ClientRemark, ClientStatus, MFClientRemark, MFClientStatus
from models.employee import Department

# Stay well below the bound-parameter limit of older SQLite builds
_LOOKUP_CHUNK = 500


def get_client(db: Session, client_id: uuid.UUID) -> Optional[Client]:
    return db.get(Client, client_id)


def get_client_by_code(db: Session, client_code: str) -> Optional[Client]:
    return db.query(Client).filter(Client.client_code == client_code).first()


def create_client(db: Session, client: Client) -> Client:
    db.add(client)
    db.commit()
    db.refresh(client)
    return client


def list_clients(
    db: Session,
    operator_id: Optional[uuid.UUID] = None,
    department: Optional[Department] = None,
    limit: int = 200,
    offset: int = 0,
) -> List[Client]:
    query = db.query(Client).order_by(Client.client_code)
    if operator_id:
        query = query.filter(Client.operator_id == operator_id)
    if department:
        query = query.filter(Client.department == department)
    return query.offset(offset).limit(limit).all()


def list_all_clients(db: Session) -> List[Client]:
    return db.query(Client).all()


def find_clients_by_codes(db: Session, codes: Iterable[str]) -> Dict[str, Client]:
    """Batch lookup of clients by code, returned as {client_code: Client}."""
    codes = [c for c in set(codes) if c]
    found: Dict[str, Client] = {}
    for start in range(0, len(codes), _LOOKUP_CHUNK):
        chunk = codes[start:start + _LOOKUP_CHUNK]
        rows = db.execute(select(Client).where(Client.client_code.in_(chunk))).scalars().all()
        for client in rows:
            found[client.client_code] = client
    return found


def count_clients(db: Session, operator_id: uuid.UUID, status: Optional[ClientStatus] = None) -> int:
    query = db.query(Client).filter(Client.operator_id == operator_id)
    if status:
        query = query.filter(Client.status == status)
    return query.count()


def delete_client(db: Session, client: Client) -> None:
    # Keep the brokerage history, drop only the link to the client row
    db.execute(
        update(BrokerageDetail)
        .where(BrokerageDetail.client_id == client.id)
        .values(client_id=None)
    )
    db.delete(client)
    db.commit()


def reset_client_statuses(db: Session) -> int:
    """Bulk-reset every client to the start-of-period defaults. Does not commit."""
    db.execute(
        update(Client)
        .where(Client.department == Department.EQUITY)
        .values(status=ClientStatus.NOT_TRADED, remark=ClientRemark.DID_NOT_ANSWER)
    )
    db.execute(
        update(Client)
        .where(Client.department == Department.MUTUAL_FUND)
        .values(mf_status=MFClientStatus.INACTIVE, mf_remark=MFClientRemark.DID_NOT_ANSWER)
    )
    cleared = db.execute(update(Client).values(notes=None, follow_up_date=None))
    return cleared.rowcount or 0
