from typing import List, Optional

from sqlalchemy import and_, select
from sqlalchemy.orm import Session

from app.crud.contractual import precontractual_documents
from app.tables import contract_members_table, contracts_table, users_table


def _member_select():
    return select(
        contract_members_table.c.id,
        contract_members_table.c.contract_id,
        contracts_table.c.name.label("contract_name"),
        contracts_table.c.contract_draft_url,
        contract_members_table.c.status,
        contract_members_table.c.value,
        contract_members_table.c.start_date,
        contract_members_table.c.end_date,
        contract_members_table.c.signed,
        contract_members_table.c.invited_at,
        contract_members_table.c.contract,
        contract_members_table.c.contract_url,
        contract_members_table.c.user_id,
        contract_members_table.c.contratante_signed_at,
    ).select_from(
        contract_members_table.join(
            contracts_table, contracts_table.c.id == contract_members_table.c.contract_id
        )
    )


def pending_contracts(session: Session, user_id: str) -> dict:
    rows = session.execute(
        _member_select()
        .where(
            and_(
                contract_members_table.c.user_id == user_id,
                contract_members_table.c.status == "pending",
                contracts_table.c.deleted_at.is_(None),
            )
        )
        .order_by(contract_members_table.c.invited_at.desc())
    ).mappings().all()
    signature = session.execute(
        select(users_table.c.signature).where(users_table.c.id == user_id)
    ).scalar_one_or_none()
    return {"contracts": [dict(row) for row in rows], "signature": signature}


def get_member_with_contract(session: Session, member_id: str) -> Optional[dict]:
    row = session.execute(
        _member_select().where(contract_members_table.c.id == member_id)
    ).mappings().one_or_none()
    return dict(row) if row else None


def contract_status(session: Session, member_id: str) -> Optional[dict]:
    """Stage flags for the contractor dashboard.

    Precontractual is done when every required precontractual document has
    a file. The contractual stage opens once both parties signed.
    """
    member = get_member_with_contract(session, member_id)
    if member is None:
        return None
    documents: List[dict] = precontractual_documents(session, member_id)
    precontractual = all(doc.get("url") for doc in documents)
    signed = bool(member.get("signed"))
    return {
        "precontractual": precontractual,
        "signed": signed,
        "contractual": signed and member.get("contratante_signed_at") is not None,
    }


def contract_full_data(session: Session, member_id: str) -> Optional[dict]:
    member = get_member_with_contract(session, member_id)
    if member is None:
        return None
    return {
        "member": member,
        "sections": member.get("contract"),
        "contract_url": member.get("contract_url"),
        "status": contract_status(session, member_id),
    }
