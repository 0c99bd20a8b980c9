from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import and_, insert, select, update
from sqlalchemy.orm import Session

from app.tables import (
    contract_members_table,
    contracts_table,
    contractual_documents_table,
    contractual_extra_documents_table,
    new_id,
    required_documents_table,
    users_table,
    utcnow,
)
from app.texts import get_text
from shared.months import UNASSIGNED_MONTH, month_sort_key

CONTRACTUAL = "contractual"
PRECONTRACTUAL = "precontractual"
EXTRA = "contractual-extra"


def _live_documents(member_id: str):
    return and_(
        contractual_documents_table.c.contract_member_id == member_id,
        contractual_documents_table.c.deleted_at.is_(None),
    )


def _group_by_month(documents: Iterable[Dict[str, Any]]) -> List[dict]:
    groups: "OrderedDict[str, List[dict]]" = OrderedDict()
    for doc in documents:
        groups.setdefault(doc.get("month") or UNASSIGNED_MONTH, []).append(doc)
    ordered = sorted(groups.items(), key=lambda item: month_sort_key(item[0]))
    return [{"month": month, "docs": docs} for month, docs in ordered]


def project_document_matrix(session: Session, project_id: str) -> List[dict]:
    """Every member of a project with each required document and its upload, if any."""
    members = session.execute(
        select(
            contract_members_table.c.id.label("member_id"),
            contract_members_table.c.user_id,
            users_table.c.email,
            contracts_table.c.id.label("contract_id"),
            contracts_table.c.name.label("contract_name"),
        )
        .select_from(
            contract_members_table.join(
                contracts_table, contracts_table.c.id == contract_members_table.c.contract_id
            ).outerjoin(users_table, users_table.c.id == contract_members_table.c.user_id)
        )
        .where(
            and_(
                contracts_table.c.project_id == project_id,
                contracts_table.c.deleted_at.is_(None),
            )
        )
        .order_by(contracts_table.c.name, users_table.c.email)
    ).mappings().all()
    if not members:
        return []

    contract_ids = {row["contract_id"] for row in members}
    member_ids = [row["member_id"] for row in members]
    required = session.execute(
        select(required_documents_table)
        .where(
            and_(
                required_documents_table.c.contract_id.in_(contract_ids),
                required_documents_table.c.deleted_at.is_(None),
            )
        )
        .order_by(required_documents_table.c.type.desc(), required_documents_table.c.name)
    ).mappings().all()
    uploads = session.execute(
        select(contractual_documents_table).where(
            and_(
                contractual_documents_table.c.contract_member_id.in_(member_ids),
                contractual_documents_table.c.deleted_at.is_(None),
            )
        )
    ).mappings().all()

    uploads_by_key: Dict[tuple, List[dict]] = {}
    for upload in uploads:
        key = (upload["contract_member_id"], upload["required_document_id"])
        uploads_by_key.setdefault(key, []).append(dict(upload))

    result: List[dict] = []
    for member in members:
        documents: List[dict] = []
        for req in required:
            if req["contract_id"] != member["contract_id"]:
                continue
            found = uploads_by_key.get((member["member_id"], req["id"])) or [None]
            for upload in sorted(found, key=lambda item: month_sort_key(item and item.get("month"))):
                documents.append(
                    {
                        "required_document_id": req["id"],
                        "name": req["name"],
                        "type": req["type"],
                        "contractual_document_id": upload["id"] if upload else None,
                        "url": upload["url"] if upload else None,
                        "month": upload["month"] if upload else None,
                    }
                )
        result.append({**dict(member), "documents": documents})
    return result


def list_member_documents(session: Session, member_id: str) -> List[dict]:
    rows = session.execute(
        select(
            contractual_documents_table.c.id,
            contractual_documents_table.c.url,
            contractual_documents_table.c.month,
            contractual_documents_table.c.required_document_id,
            required_documents_table.c.name,
        )
        .select_from(
            contractual_documents_table.outerjoin(
                required_documents_table,
                required_documents_table.c.id == contractual_documents_table.c.required_document_id,
            )
        )
        .where(_live_documents(member_id))
        .order_by(required_documents_table.c.name, contractual_documents_table.c.created_at)
    ).mappings().all()
    return [dict(row) for row in rows]


def get_member_document(session: Session, document_id: str) -> Optional[dict]:
    row = session.execute(
        select(
            contractual_documents_table.c.id,
            contractual_documents_table.c.url,
            contractual_documents_table.c.month,
            contractual_documents_table.c.contract_member_id,
            contractual_documents_table.c.required_document_id,
            required_documents_table.c.name,
        )
        .select_from(
            contractual_documents_table.outerjoin(
                required_documents_table,
                required_documents_table.c.id == contractual_documents_table.c.required_document_id,
            )
        )
        .where(contractual_documents_table.c.id == document_id)
    ).mappings().one_or_none()
    return dict(row) if row else None


def set_document_url(session: Session, document_id: str, url: str) -> bool:
    result = session.execute(
        update(contractual_documents_table)
        .where(contractual_documents_table.c.id == document_id)
        .values(url=url)
    )
    return bool(result.rowcount)


def contractual_documents_by_month(session: Session, member_id: str) -> List[dict]:
    rows = session.execute(
        select(
            contractual_documents_table.c.id.label("contractual_document_id"),
            contractual_documents_table.c.required_document_id,
            contractual_documents_table.c.url,
            contractual_documents_table.c.month,
            required_documents_table.c.name,
            required_documents_table.c.template_id,
        )
        .select_from(
            contractual_documents_table.join(
                required_documents_table,
                required_documents_table.c.id == contractual_documents_table.c.required_document_id,
            )
        )
        .where(
            and_(
                _live_documents(member_id),
                required_documents_table.c.type == CONTRACTUAL,
            )
        )
        .order_by(required_documents_table.c.name)
    ).mappings().all()
    documents = [
        {
            "id": row["required_document_id"],
            "name": row["name"] or get_text("document.unnamed"),
            "url": row["url"],
            "type": CONTRACTUAL,
            "month": row["month"],
            "template_id": row["template_id"],
            "required_document_id": row["required_document_id"],
            "contractual_document_id": row["contractual_document_id"],
        }
        for row in rows
    ]
    return _group_by_month(documents)


def extra_documents_by_month(session: Session, member_id: str) -> List[dict]:
    rows = session.execute(
        select(contractual_extra_documents_table)
        .where(
            and_(
                contractual_extra_documents_table.c.contract_member_id == member_id,
                contractual_extra_documents_table.c.deleted_at.is_(None),
            )
        )
        .order_by(contractual_extra_documents_table.c.created_at)
    ).mappings().all()
    documents = [
        {
            "id": row["id"],
            "name": row["name"],
            "url": row["url"],
            "type": EXTRA,
            "month": row["month"],
            "template_id": None,
            "required_document_id": None,
            "contractual_document_id": row["id"],
        }
        for row in rows
    ]
    return _group_by_month(documents)


def all_documents_by_month(session: Session, member_id: str) -> List[dict]:
    merged: List[dict] = []
    for group in contractual_documents_by_month(session, member_id):
        merged.extend(group["docs"])
    for group in extra_documents_by_month(session, member_id):
        merged.extend(group["docs"])
    return _group_by_month(merged)


def _member_contract_id(session: Session, member_id: str) -> Optional[str]:
    return session.execute(
        select(contract_members_table.c.contract_id).where(contract_members_table.c.id == member_id)
    ).scalar_one_or_none()


def precontractual_documents(session: Session, member_id: str) -> List[dict]:
    """Required precontractual documents with whatever the member uploaded for each."""
    contract_id = _member_contract_id(session, member_id)
    if contract_id is None:
        return []
    required = session.execute(
        select(required_documents_table)
        .where(
            and_(
                required_documents_table.c.contract_id == contract_id,
                required_documents_table.c.type == PRECONTRACTUAL,
                required_documents_table.c.deleted_at.is_(None),
            )
        )
        .order_by(required_documents_table.c.name)
    ).mappings().all()
    if not required:
        return []
    uploads = session.execute(
        select(contractual_documents_table)
        .where(
            and_(
                _live_documents(member_id),
                contractual_documents_table.c.required_document_id.in_([req["id"] for req in required]),
            )
        )
        .order_by(contractual_documents_table.c.created_at)
    ).mappings().all()
    # Later uploads win.
    latest = {upload["required_document_id"]: upload for upload in uploads}
    result = []
    for req in required:
        upload = latest.get(req["id"])
        result.append(
            {
                "id": req["id"],
                "name": req["name"],
                "type": req["type"],
                "due_date": req["due_date"],
                "template_id": req["template_id"],
                "url": upload["url"] if upload else None,
                "contractual_document_id": upload["id"] if upload else None,
            }
        )
    return result


def find_document(
    session: Session,
    member_id: str,
    required_document_id: str,
    month: Optional[str],
) -> Optional[dict]:
    month_clause = (
        contractual_documents_table.c.month.is_(None)
        if month is None
        else contractual_documents_table.c.month == month
    )
    row = session.execute(
        select(contractual_documents_table)
        .where(
            and_(
                _live_documents(member_id),
                contractual_documents_table.c.required_document_id == required_document_id,
                month_clause,
            )
        )
        .order_by(contractual_documents_table.c.created_at.desc())
    ).mappings().first()
    return dict(row) if row else None


def upsert_document(
    session: Session,
    member_id: str,
    required_document_id: str,
    url: Optional[str],
    month: Optional[str] = None,
    contractual_document_id: Optional[str] = None,
) -> Optional[str]:
    """Attach ``url`` to the member's slot for a required document.

    An explicit document id wins, but only when that row is the member's
    slot for the same required document; otherwise ``None`` is returned.
    Without an id the slot is looked up by (member, required document,
    month) and created when missing.
    """
    if contractual_document_id:
        result = session.execute(
            update(contractual_documents_table)
            .where(
                and_(
                    contractual_documents_table.c.id == contractual_document_id,
                    _live_documents(member_id),
                    contractual_documents_table.c.required_document_id == required_document_id,
                )
            )
            .values(url=url)
        )
        return contractual_document_id if result.rowcount else None
    existing = find_document(session, member_id, required_document_id, month)
    if existing is not None:
        session.execute(
            update(contractual_documents_table)
            .where(contractual_documents_table.c.id == existing["id"])
            .values(url=url)
        )
        return existing["id"]
    document_id = new_id()
    session.execute(
        insert(contractual_documents_table).values(
            id=document_id,
            contract_member_id=member_id,
            required_document_id=required_document_id,
            url=url,
            month=month,
        )
    )
    return document_id


def create_extra_document(session: Session, member_id: str, name: str, month: str) -> dict:
    document_id = new_id()
    session.execute(
        insert(contractual_extra_documents_table).values(
            id=document_id,
            contract_member_id=member_id,
            name=name.strip(),
            month=month,
        )
    )
    return get_extra_document(session, document_id)


def get_extra_document(session: Session, document_id: str) -> Optional[dict]:
    row = session.execute(
        select(contractual_extra_documents_table).where(
            and_(
                contractual_extra_documents_table.c.id == document_id,
                contractual_extra_documents_table.c.deleted_at.is_(None),
            )
        )
    ).mappings().one_or_none()
    return dict(row) if row else None


def set_extra_document_url(session: Session, document_id: str, url: str) -> bool:
    result = session.execute(
        update(contractual_extra_documents_table)
        .where(contractual_extra_documents_table.c.id == document_id)
        .values(url=url)
    )
    return bool(result.rowcount)


def soft_delete_extra_document(session: Session, document_id: str) -> bool:
    result = session.execute(
        update(contractual_extra_documents_table)
        .where(
            and_(
                contractual_extra_documents_table.c.id == document_id,
                contractual_extra_documents_table.c.deleted_at.is_(None),
            )
        )
        .values(deleted_at=utcnow())
    )
    return bool(result.rowcount)


def get_legal_status(session: Session, member_id: str) -> Optional[str]:
    return session.execute(
        select(contract_members_table.c.status_juridico).where(
            contract_members_table.c.id == member_id
        )
    ).scalar_one_or_none()


def set_member_ending(session: Session, member_id: str, url: str, termination_type: Optional[str]) -> dict:
    ending = {"url": url, "status": "comun" if termination_type == "comun" else "solicitud"}
    session.execute(
        update(contract_members_table)
        .where(contract_members_table.c.id == member_id)
        .values(ending=ending)
    )
    return ending


def get_member_dates(session: Session, member_id: str) -> Optional[dict]:
    row = session.execute(
        select(contract_members_table.c.start_date, contract_members_table.c.end_date).where(
            contract_members_table.c.id == member_id
        )
    ).mappings().one_or_none()
    return dict(row) if row else None
