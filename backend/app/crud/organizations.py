from typing import List, Optional

from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session

from app.tables import (
    contract_members_table,
    contractual_projects_table,
    contracts_table,
    organization_modules_table,
    organizations_table,
)


def list_user_organizations(session: Session, user_id: str) -> List[dict]:
    rows = session.execute(
        select(organizations_table)
        .where(
            and_(
                organizations_table.c.user_id == user_id,
                organizations_table.c.deleted_at.is_(None),
            )
        )
        .order_by(organizations_table.c.created_at.desc())
    ).mappings().all()
    return [dict(row) for row in rows]


def get_organization(session: Session, organization_id: str) -> Optional[dict]:
    row = session.execute(
        select(organizations_table).where(
            and_(
                organizations_table.c.id == organization_id,
                organizations_table.c.deleted_at.is_(None),
            )
        )
    ).mappings().one_or_none()
    return dict(row) if row else None


def get_module_limit(session: Session, organization_id: str, module_id: int) -> Optional[int]:
    return session.execute(
        select(organization_modules_table.c.limits).where(
            and_(
                organization_modules_table.c.organization_id == organization_id,
                organization_modules_table.c.module_id == module_id,
            )
        )
    ).scalars().first()


def get_stage_bar(session: Session, organization_id: str, module_id: int) -> dict:
    """Contract-member usage per project against the organization's module limit."""
    member_count = func.count(contract_members_table.c.id)
    rows = session.execute(
        select(
            contractual_projects_table.c.id.label("project_id"),
            contractual_projects_table.c.name.label("project_name"),
            member_count.label("members"),
        )
        .select_from(
            contractual_projects_table.outerjoin(
                contracts_table,
                and_(
                    contracts_table.c.project_id == contractual_projects_table.c.id,
                    contracts_table.c.deleted_at.is_(None),
                ),
            ).outerjoin(
                contract_members_table,
                contract_members_table.c.contract_id == contracts_table.c.id,
            )
        )
        .where(
            and_(
                contractual_projects_table.c.organization_id == organization_id,
                contractual_projects_table.c.deleted_at.is_(None),
            )
        )
        .group_by(contractual_projects_table.c.id, contractual_projects_table.c.name)
        .order_by(contractual_projects_table.c.name)
    ).mappings().all()
    projects = [dict(row) for row in rows]
    return {
        "limit": get_module_limit(session, organization_id, module_id),
        "used": sum(int(item["members"] or 0) for item in projects),
        "projects": projects,
    }
