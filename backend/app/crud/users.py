from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import func, insert, select, update
from sqlalchemy.orm import Session

from app.tables import users_table
from shared.contract_document import is_user_data_complete, parse_identity_document


def get_user(session: Session, user_id: str) -> Optional[dict]:
    row = session.execute(
        select(users_table).where(users_table.c.id == user_id)
    ).mappings().one_or_none()
    return dict(row) if row else None


def get_user_by_email(session: Session, email: str) -> Optional[dict]:
    normalized = (email or "").strip().lower()
    if not normalized:
        return None
    row = session.execute(
        select(users_table).where(func.lower(users_table.c.email) == normalized)
    ).mappings().first()
    return dict(row) if row else None


def list_users(session: Session) -> List[dict]:
    rows = session.execute(
        select(users_table.c.id, users_table.c.username, users_table.c.email).order_by(
            users_table.c.username
        )
    ).mappings().all()
    return [dict(row) for row in rows]


def ensure_user(session: Session, user_id: str, email: str, username: Optional[str] = None) -> dict:
    """Mirror a hosted auth account into ``users`` if it is not there yet."""
    existing = get_user(session, user_id)
    if existing is not None:
        return existing
    session.execute(
        insert(users_table).values(
            id=user_id,
            email=email.strip().lower(),
            username=username,
        )
    )
    return get_user(session, user_id)


def get_user_data(session: Session, user_id: str) -> Optional[Dict[str, Any]]:
    user = get_user(session, user_id)
    if user is None:
        return None
    user_data = parse_identity_document(user.get("document_id"))
    return {
        "user_data": user_data,
        "user_signature": user.get("signature"),
        "is_data_complete": is_user_data_complete(user_data),
    }


def update_user_data(session: Session, user_id: str, user_data: Mapping[str, Any]) -> bool:
    """Store the identity card and report whether it is now complete."""
    session.execute(
        update(users_table)
        .where(users_table.c.id == user_id)
        .values(document_id=dict(user_data))
    )
    return is_user_data_complete(user_data)


def set_user_signature(session: Session, user_id: str, signature_url: Optional[str]) -> None:
    session.execute(
        update(users_table)
        .where(users_table.c.id == user_id)
        .values(signature=signature_url)
    )
