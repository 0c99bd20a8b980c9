from typing import Optional

from sqlalchemy import delete, insert, select, update
from sqlalchemy.orm import Session

from app.tables import (
    contract_members_table,
    telegram_links_table,
    telegram_upload_sessions_table,
)


def link_chat(session: Session, chat_id: str, member_id: str) -> bool:
    exists = session.execute(
        select(contract_members_table.c.id).where(contract_members_table.c.id == member_id)
    ).first()
    if exists is None:
        return False
    current = session.execute(
        select(telegram_links_table.c.chat_id).where(telegram_links_table.c.chat_id == chat_id)
    ).first()
    if current is None:
        session.execute(
            insert(telegram_links_table).values(chat_id=chat_id, contract_member_id=member_id)
        )
    else:
        session.execute(
            update(telegram_links_table)
            .where(telegram_links_table.c.chat_id == chat_id)
            .values(contract_member_id=member_id)
        )
    return True


def resolve_member(session: Session, chat_id: str, default_member_id: Optional[str] = None) -> Optional[str]:
    member_id = session.execute(
        select(telegram_links_table.c.contract_member_id).where(
            telegram_links_table.c.chat_id == chat_id
        )
    ).scalar_one_or_none()
    return member_id or default_member_id


def get_upload_session(session: Session, chat_id: str) -> Optional[dict]:
    row = session.execute(
        select(telegram_upload_sessions_table).where(
            telegram_upload_sessions_table.c.chat_id == chat_id
        )
    ).mappings().one_or_none()
    return dict(row) if row else None


def start_upload(session: Session, chat_id: str, member_id: str, document_id: str) -> None:
    """Waiting-for-file state; a second selection replaces the first."""
    if get_upload_session(session, chat_id) is None:
        session.execute(
            insert(telegram_upload_sessions_table).values(
                chat_id=chat_id,
                contract_member_id=member_id,
                contractual_document_id=document_id,
            )
        )
    else:
        session.execute(
            update(telegram_upload_sessions_table)
            .where(telegram_upload_sessions_table.c.chat_id == chat_id)
            .values(contract_member_id=member_id, contractual_document_id=document_id)
        )


def finish_upload(session: Session, chat_id: str) -> bool:
    result = session.execute(
        delete(telegram_upload_sessions_table).where(
            telegram_upload_sessions_table.c.chat_id == chat_id
        )
    )
    return bool(result.rowcount)
