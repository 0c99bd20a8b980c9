from collections import Counter
from datetime import date
from typing import List, Optional

from sqlalchemy import and_, insert, select, update
from sqlalchemy.orm import Session

from app.tables import new_id, required_documents_table, utcnow

SUGGESTION_MIN_LENGTH = 2
SUGGESTION_LIMIT = 5
CONTRACTUAL_TYPE_MARKER = "contract"
PRECONTRACTUAL_TYPE = "precontractual"


def list_required_documents(
    session: Session,
    contract_id: str,
    document_type: Optional[str] = None,
) -> List[dict]:
    conditions = [
        required_documents_table.c.contract_id == contract_id,
        required_documents_table.c.deleted_at.is_(None),
    ]
    if document_type:
        conditions.append(required_documents_table.c.type == document_type)
    rows = session.execute(
        select(required_documents_table)
        .where(and_(*conditions))
        .order_by(required_documents_table.c.name)
    ).mappings().all()
    return [dict(row) for row in rows]


def get_required_document(session: Session, required_document_id: str) -> Optional[dict]:
    row = session.execute(
        select(required_documents_table).where(
            and_(
                required_documents_table.c.id == required_document_id,
                required_documents_table.c.deleted_at.is_(None),
            )
        )
    ).mappings().one_or_none()
    return dict(row) if row else None


def add_required_document(
    session: Session,
    contract_id: str,
    name: str,
    document_type: str,
    due_date: Optional[date] = None,
    template_id: Optional[str] = None,
) -> dict:
    document_id = new_id()
    session.execute(
        insert(required_documents_table).values(
            id=document_id,
            contract_id=contract_id,
            name=name.strip(),
            type=document_type,
            due_date=due_date,
            template_id=template_id,
        )
    )
    return get_required_document(session, document_id)


def rename_required_document(session: Session, required_document_id: str, name: str) -> Optional[dict]:
    result = session.execute(
        update(required_documents_table)
        .where(
            and_(
                required_documents_table.c.id == required_document_id,
                required_documents_table.c.deleted_at.is_(None),
            )
        )
        .values(name=name.strip())
    )
    if not result.rowcount:
        return None
    return get_required_document(session, required_document_id)


def soft_delete_required_document(session: Session, required_document_id: str) -> bool:
    result = session.execute(
        update(required_documents_table)
        .where(
            and_(
                required_documents_table.c.id == required_document_id,
                required_documents_table.c.deleted_at.is_(None),
            )
        )
        .values(deleted_at=utcnow())
    )
    return bool(result.rowcount)


def suggest_document_names(session: Session, search: str, document_type: Optional[str] = None) -> List[dict]:
    """Most used document names matching ``search`` across every contract."""
    term = (search or "").strip()
    if len(term) < SUGGESTION_MIN_LENGTH:
        return []
    stmt = select(required_documents_table.c.name).where(
        and_(
            required_documents_table.c.name.ilike(f"%{term}%"),
            required_documents_table.c.deleted_at.is_(None),
        )
    )
    if document_type == "contractual":
        # Older rows use looser spellings such as "contract" or "contract_annex".
        stmt = stmt.where(required_documents_table.c.type.ilike(f"%{CONTRACTUAL_TYPE_MARKER}%"))
    else:
        stmt = stmt.where(required_documents_table.c.type == PRECONTRACTUAL_TYPE)
    names = session.execute(stmt).scalars().all()
    counts = Counter(name for name in names if name)
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [{"name": name, "count": count} for name, count in ranked[:SUGGESTION_LIMIT]]
