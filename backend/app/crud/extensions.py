import logging
from datetime import date
from typing import List, Optional, Tuple

from sqlalchemy import and_, insert, select
from sqlalchemy.orm import Session

from app.crud.contractual import CONTRACTUAL, find_document, upsert_document
from app.crud.required_documents import list_required_documents
from app.tables import (
    contract_members_extension_table,
    contract_members_table,
    new_id,
)
from shared.months import months_between

logger = logging.getLogger(__name__)


def list_extensions(session: Session, member_id: str) -> List[dict]:
    rows = session.execute(
        select(contract_members_extension_table)
        .where(contract_members_extension_table.c.contract_member_id == member_id)
        .order_by(contract_members_extension_table.c.extension_start_date.desc())
    ).mappings().all()
    return [dict(row) for row in rows]


def get_extension(session: Session, extension_id: str) -> Optional[dict]:
    row = session.execute(
        select(contract_members_extension_table).where(
            contract_members_extension_table.c.id == extension_id
        )
    ).mappings().one_or_none()
    return dict(row) if row else None


def create_monthly_documents(session: Session, member_id: str, start: date, end: date) -> int:
    """Open an empty slot per contractual document for every month in range.

    Months that already have a slot are left alone. Returns the number of
    slots created.
    """
    contract_id = session.execute(
        select(contract_members_table.c.contract_id).where(contract_members_table.c.id == member_id)
    ).scalar_one_or_none()
    if contract_id is None:
        return 0
    required = list_required_documents(session, contract_id, document_type=CONTRACTUAL)
    created = 0
    for month in months_between(start, end):
        for req in required:
            if find_document(session, member_id, req["id"], month) is not None:
                continue
            upsert_document(session, member_id, req["id"], None, month=month)
            created += 1
    return created


def create_extension(
    session: Session,
    member_id: str,
    start: date,
    end: date,
    extension_url: Optional[str] = None,
) -> Tuple[dict, int]:
    extension_id = new_id()
    session.execute(
        insert(contract_members_extension_table).values(
            id=extension_id,
            contract_member_id=member_id,
            extension_start_date=start,
            extension_end_date=end,
            extension_url=extension_url,
        )
    )
    created = create_monthly_documents(session, member_id, start, end)
    logger.info(
        "Extension %s for member=%s (%s..%s) opened %s monthly documents",
        extension_id,
        member_id,
        start,
        end,
        created,
    )
    return get_extension(session, extension_id), created
