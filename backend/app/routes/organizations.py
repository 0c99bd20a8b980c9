from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.config import settings
from app.crud.organizations import get_organization, get_stage_bar, list_user_organizations
from app.crud.permissions import get_user_project_permissions_by_module
from app.crud.projects import list_projects
from app.routes.deps import db_session_dependency, get_current_user
from app.schemas import OrganizationOut, ProjectOut, StageBarOut

router = APIRouter(prefix="/api/organizations", tags=["organizations"])


def _permissions(session: Session, user_id: str, organization_id: str) -> dict:
    if get_organization(session, organization_id) is None:
        raise HTTPException(status_code=404, detail="Organization not found")
    access = get_user_project_permissions_by_module(
        session, user_id, organization_id, settings.contractual_module_id, "contractual"
    )
    if not (access["has_full_access"] or access["allowed_project_ids"]):
        raise HTTPException(status_code=403, detail="Insufficient permissions.")
    return access


@router.get("", response_model=List[OrganizationOut])
def organizations(
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> List[dict]:
    return list_user_organizations(session, user_id)


@router.get("/{organization_id}", response_model=OrganizationOut)
def organization(
    organization_id: str,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> dict:
    _permissions(session, user_id, organization_id)
    return get_organization(session, organization_id)


@router.get("/{organization_id}/projects", response_model=List[ProjectOut])
def organization_projects(
    organization_id: str,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> List[dict]:
    access = _permissions(session, user_id, organization_id)
    allowed = None if access["has_full_access"] else access["allowed_project_ids"]
    return list_projects(session, organization_id, allowed)


@router.get("/{organization_id}/stage-bar", response_model=StageBarOut)
def stage_bar(
    organization_id: str,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> dict:
    _permissions(session, user_id, organization_id)
    return get_stage_bar(session, organization_id, settings.contractual_module_id)
