from datetime import date
from typing import List, Optional

from sqlalchemy import and_, delete, insert, select
from sqlalchemy.orm import Session

from app.tables import (
    contract_members_extension_table,
    contract_members_table,
    contracts_table,
    contractual_documents_table,
    contractual_extra_documents_table,
    new_id,
    telegram_links_table,
    telegram_upload_sessions_table,
    users_table,
)


def _invitation_select():
    return select(
        contract_members_table.c.id,
        contract_members_table.c.contract_id,
        contracts_table.c.name.label("contract_name"),
        contract_members_table.c.user_id,
        users_table.c.email,
        contract_members_table.c.status,
        contract_members_table.c.invited_at,
        contract_members_table.c.accepted_at,
        contract_members_table.c.value,
        contract_members_table.c.start_date,
        contract_members_table.c.end_date,
        contract_members_table.c.signed,
    ).select_from(
        contract_members_table.join(
            contracts_table, contracts_table.c.id == contract_members_table.c.contract_id
        ).outerjoin(users_table, users_table.c.id == contract_members_table.c.user_id)
    )


def list_project_invitations(session: Session, project_id: str) -> List[dict]:
    rows = session.execute(
        _invitation_select()
        .where(
            and_(
                contracts_table.c.project_id == project_id,
                contracts_table.c.deleted_at.is_(None),
            )
        )
        .order_by(contract_members_table.c.invited_at.desc())
    ).mappings().all()
    return [dict(row) for row in rows]


def get_invitation(session: Session, member_id: str) -> Optional[dict]:
    row = session.execute(
        _invitation_select().where(contract_members_table.c.id == member_id)
    ).mappings().one_or_none()
    return dict(row) if row else None


def get_member(session: Session, member_id: str) -> Optional[dict]:
    row = session.execute(
        select(contract_members_table).where(contract_members_table.c.id == member_id)
    ).mappings().one_or_none()
    return dict(row) if row else None


def latest_member(session: Session, user_id: str, contract_id: str) -> Optional[dict]:
    row = session.execute(
        select(contract_members_table)
        .where(
            and_(
                contract_members_table.c.user_id == user_id,
                contract_members_table.c.contract_id == contract_id,
            )
        )
        .order_by(contract_members_table.c.created_at.desc())
    ).mappings().first()
    return dict(row) if row else None


def create_invitation(
    session: Session,
    user_id: str,
    contract_id: str,
    value: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> dict:
    member_id = new_id()
    session.execute(
        insert(contract_members_table).values(
            id=member_id,
            user_id=user_id,
            contract_id=contract_id,
            status="pending",
            value=value,
            start_date=start_date,
            end_date=end_date,
        )
    )
    return get_invitation(session, member_id)


def delete_invitation(session: Session, member_id: str) -> bool:
    """Remove a member together with everything uploaded under it."""
    for table in (
        telegram_upload_sessions_table,
        telegram_links_table,
        contractual_documents_table,
        contractual_extra_documents_table,
        contract_members_extension_table,
    ):
        session.execute(delete(table).where(table.c.contract_member_id == member_id))
    result = session.execute(
        delete(contract_members_table).where(contract_members_table.c.id == member_id)
    )
    return bool(result.rowcount)
