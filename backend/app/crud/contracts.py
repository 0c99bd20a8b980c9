from typing import List, Optional, Tuple

from sqlalchemy import and_, insert, select, update
from sqlalchemy.orm import Session

from app.tables import (
    contracts_table,
    documents_table,
    new_id,
    templates_table,
    utcnow,
)

CONTRACT_TEMPLATE_CATEGORY = "CONTRATO"


def list_contracts(session: Session, project_id: str) -> List[dict]:
    rows = session.execute(
        select(contracts_table)
        .where(
            and_(
                contracts_table.c.project_id == project_id,
                contracts_table.c.deleted_at.is_(None),
            )
        )
        .order_by(contracts_table.c.created_at.desc())
    ).mappings().all()
    return [dict(row) for row in rows]


def get_contract(session: Session, contract_id: str) -> Optional[dict]:
    row = session.execute(
        select(contracts_table).where(
            and_(
                contracts_table.c.id == contract_id,
                contracts_table.c.deleted_at.is_(None),
            )
        )
    ).mappings().one_or_none()
    return dict(row) if row else None


def get_contract_draft_url(session: Session, contract_id: str) -> Optional[str]:
    return session.execute(
        select(contracts_table.c.contract_draft_url).where(contracts_table.c.id == contract_id)
    ).scalar_one_or_none()


def create_contract(
    session: Session,
    project_id: str,
    name: str,
    contract_draft_url: Optional[str] = None,
) -> dict:
    contract_id = new_id()
    session.execute(
        insert(contracts_table).values(
            id=contract_id,
            name=name.strip(),
            project_id=project_id,
            contract_draft_url=contract_draft_url,
            status="draft",
        )
    )
    return get_contract(session, contract_id)


def rename_contract(session: Session, contract_id: str, name: str) -> Optional[dict]:
    result = session.execute(
        update(contracts_table)
        .where(
            and_(
                contracts_table.c.id == contract_id,
                contracts_table.c.deleted_at.is_(None),
            )
        )
        .values(name=name.strip())
    )
    if not result.rowcount:
        return None
    return get_contract(session, contract_id)


def replace_draft_url(
    session: Session, contract_id: str, draft_url: str
) -> Tuple[Optional[dict], Optional[str]]:
    """Point the contract at a new draft and hand back the previous URL."""
    previous = get_contract(session, contract_id)
    if previous is None:
        return None, None
    session.execute(
        update(contracts_table)
        .where(contracts_table.c.id == contract_id)
        .values(contract_draft_url=draft_url)
    )
    return get_contract(session, contract_id), previous.get("contract_draft_url")


def soft_delete_contract(session: Session, contract_id: str) -> bool:
    result = session.execute(
        update(contracts_table)
        .where(
            and_(
                contracts_table.c.id == contract_id,
                contracts_table.c.deleted_at.is_(None),
            )
        )
        .values(deleted_at=utcnow())
    )
    return bool(result.rowcount)


def list_contract_templates(session: Session) -> List[dict]:
    rows = session.execute(
        select(templates_table.c.id, templates_table.c.name, templates_table.c.category)
        .where(templates_table.c.category == CONTRACT_TEMPLATE_CATEGORY)
        .order_by(templates_table.c.name)
    ).mappings().all()
    return [dict(row) for row in rows]


def create_document_from_template(
    session: Session,
    template_id: str,
    user_id: str,
    title: Optional[str] = None,
) -> Optional[dict]:
    template = session.execute(
        select(templates_table).where(templates_table.c.id == template_id)
    ).mappings().one_or_none()
    if template is None:
        return None
    document_id = new_id()
    session.execute(
        insert(documents_table).values(
            id=document_id,
            template_id=template_id,
            user_id=user_id,
            title=title or template["name"],
            sections=template["sections"] or {},
        )
    )
    return get_document(session, document_id)


def get_document(session: Session, document_id: str) -> Optional[dict]:
    row = session.execute(
        select(documents_table).where(documents_table.c.id == document_id)
    ).mappings().one_or_none()
    return dict(row) if row else None
