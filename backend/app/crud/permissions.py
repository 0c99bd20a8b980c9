import logging
from typing import Dict, List, Literal, Optional

from sqlalchemy import and_, select
from sqlalchemy.orm import Session

from app.tables import (
    contractual_projects_table,
    organizations_table,
    user_module_projects_table,
)

logger = logging.getLogger(__name__)

ProjectType = Literal["conceptos", "contractual", "repo"]
_PROJECT_COLUMNS = {
    "conceptos": user_module_projects_table.c.conceptos_project_id,
    "contractual": user_module_projects_table.c.contractual_project_id,
    "repo": user_module_projects_table.c.repo_project_id,
}


def check_organization_ownership(session: Session, user_id: str, organization_id: str) -> bool:
    row = session.execute(
        select(organizations_table.c.id).where(
            and_(
                organizations_table.c.id == organization_id,
                organizations_table.c.user_id == user_id,
            )
        )
    ).first()
    return row is not None


def get_user_module_permissions(session: Session, user_id: str, module_id: int) -> List[dict]:
    rows = session.execute(
        select(user_module_projects_table).where(
            and_(
                user_module_projects_table.c.user_id == user_id,
                user_module_projects_table.c.module_id == module_id,
            )
        )
    ).mappings().all()
    return [dict(row) for row in rows]


def get_user_project_permissions_by_module(
    session: Session,
    user_id: str,
    organization_id: str,
    module_id: int,
    project_type: ProjectType,
) -> Dict[str, object]:
    """Resolve which projects of an organization a user may open.

    Owners see everything. A permission row whose project column is NULL
    grants the whole module; otherwise each row grants one project.
    """
    if check_organization_ownership(session, user_id, organization_id):
        return {"is_owner": True, "has_full_access": True, "allowed_project_ids": []}

    column_name = _PROJECT_COLUMNS[project_type].name
    has_full_access = False
    allowed: List[str] = []
    for permission in get_user_module_permissions(session, user_id, module_id):
        project_id = permission.get(column_name)
        if project_id is None:
            has_full_access = True
        elif project_id not in allowed:
            allowed.append(project_id)
    logger.debug(
        "Permissions user=%s module=%s type=%s full=%s projects=%s",
        user_id,
        module_id,
        project_type,
        has_full_access,
        allowed,
    )
    return {"is_owner": False, "has_full_access": has_full_access, "allowed_project_ids": allowed}


def can_access_project(
    session: Session,
    user_id: str,
    project_id: str,
    module_id: int,
    project_type: ProjectType = "contractual",
) -> bool:
    organization_id: Optional[str] = session.execute(
        select(contractual_projects_table.c.organization_id).where(
            contractual_projects_table.c.id == project_id
        )
    ).scalar_one_or_none()
    if organization_id is None:
        return False
    access = get_user_project_permissions_by_module(
        session, user_id, organization_id, module_id, project_type
    )
    return bool(access["has_full_access"]) or project_id in access["allowed_project_ids"]


def can_access_organization(session: Session, user_id: str, organization_id: str, module_id: int) -> bool:
    access = get_user_project_permissions_by_module(
        session, user_id, organization_id, module_id, "contractual"
    )
    return bool(access["has_full_access"] or access["allowed_project_ids"])
