from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import and_, insert, select, update
from sqlalchemy.orm import Session

from app.tables import contractual_projects_table, new_id, utcnow


def list_projects(
    session: Session,
    organization_id: str,
    allowed_ids: Optional[Iterable[str]] = None,
) -> List[dict]:
    """Live projects of an organization, newest first.

    ``allowed_ids`` narrows the list for users with per-project permissions.
    """
    conditions = [
        contractual_projects_table.c.organization_id == organization_id,
        contractual_projects_table.c.deleted_at.is_(None),
    ]
    if allowed_ids is not None:
        conditions.append(contractual_projects_table.c.id.in_(list(allowed_ids)))
    rows = session.execute(
        select(contractual_projects_table)
        .where(and_(*conditions))
        .order_by(contractual_projects_table.c.created_at.desc())
    ).mappings().all()
    return [dict(row) for row in rows]


def get_project(session: Session, project_id: str, include_deleted: bool = False) -> Optional[dict]:
    stmt = select(contractual_projects_table).where(contractual_projects_table.c.id == project_id)
    if not include_deleted:
        stmt = stmt.where(contractual_projects_table.c.deleted_at.is_(None))
    row = session.execute(stmt).mappings().one_or_none()
    return dict(row) if row else None


def create_project(session: Session, name: str, organization_id: str) -> dict:
    project_id = new_id()
    session.execute(
        insert(contractual_projects_table).values(
            id=project_id,
            name=name.strip(),
            organization_id=organization_id,
        )
    )
    return get_project(session, project_id)


def rename_project(session: Session, project_id: str, name: str) -> Optional[dict]:
    result = session.execute(
        update(contractual_projects_table)
        .where(
            and_(
                contractual_projects_table.c.id == project_id,
                contractual_projects_table.c.deleted_at.is_(None),
            )
        )
        .values(name=name.strip())
    )
    if not result.rowcount:
        return None
    return get_project(session, project_id)


def soft_delete_project(session: Session, project_id: str) -> bool:
    result = session.execute(
        update(contractual_projects_table)
        .where(
            and_(
                contractual_projects_table.c.id == project_id,
                contractual_projects_table.c.deleted_at.is_(None),
            )
        )
        .values(deleted_at=utcnow())
    )
    return bool(result.rowcount)


def get_project_signature(session: Session, project_id: str) -> Optional[str]:
    return session.execute(
        select(contractual_projects_table.c.signature).where(
            contractual_projects_table.c.id == project_id
        )
    ).scalar_one_or_none()


def set_project_signature(session: Session, project_id: str, signature_url: Optional[str]) -> bool:
    result = session.execute(
        update(contractual_projects_table)
        .where(contractual_projects_table.c.id == project_id)
        .values(signature=signature_url)
    )
    return bool(result.rowcount)


def remove_project_signature(session: Session, project_id: str) -> bool:
    return set_project_signature(session, project_id, None)


def get_contratante_data(session: Session, project_id: str) -> Dict[str, Any]:
    data = session.execute(
        select(contractual_projects_table.c.contratante_data).where(
            contractual_projects_table.c.id == project_id
        )
    ).scalar_one_or_none()
    return dict(data) if isinstance(data, dict) else {}


def save_contratante_data(session: Session, project_id: str, data: Dict[str, Any]) -> bool:
    result = session.execute(
        update(contractual_projects_table)
        .where(contractual_projects_table.c.id == project_id)
        .values(contratante_data=dict(data))
    )
    return bool(result.rowcount)
