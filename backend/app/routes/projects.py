import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, File, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from app.config import settings
from app.crud.contracts import create_contract, list_contracts
from app.crud.contractual import project_document_matrix
from app.crud.invitations import list_project_invitations
from app.crud.permissions import check_organization_ownership
from app.crud.projects import (
    create_project,
    get_contratante_data,
    get_project_signature,
    remove_project_signature,
    rename_project,
    save_contratante_data,
    set_project_signature,
    soft_delete_project,
)
from app.routes.deps import (
    db_session_dependency,
    get_current_user,
    read_upload,
    require_project,
    storage_failure,
)
from app.schemas import (
    ContractCreate,
    ContractOut,
    ContratanteDataOut,
    InvitationOut,
    MemberDocumentsOut,
    ProjectCreate,
    ProjectOut,
    ProjectSignatureOut,
    RenameRequest,
)
from app.services.storage import StorageClient, StorageError, get_storage, path_from_url, signature_path

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/projects", tags=["projects"])


@router.post("", response_model=ProjectOut, status_code=status.HTTP_201_CREATED)
def add_project(
    payload: ProjectCreate,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> dict:
    if not check_organization_ownership(session, user_id, payload.organization_id):
        raise HTTPException(status_code=403, detail="Only the organization owner can create projects.")
    project = create_project(session, payload.name, payload.organization_id)
    logger.info("Project %s created in organization %s", project["id"], payload.organization_id)
    return project


@router.get("/{project_id}", response_model=ProjectOut)
def project(
    project_id: str,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> dict:
    return require_project(session, user_id, project_id)


@router.patch("/{project_id}", response_model=ProjectOut)
def rename(
    project_id: str,
    payload: RenameRequest,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> dict:
    require_project(session, user_id, project_id)
    return rename_project(session, project_id, payload.name)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(
    project_id: str,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> None:
    require_project(session, user_id, project_id)
    soft_delete_project(session, project_id)


@router.get("/{project_id}/signature", response_model=ProjectSignatureOut)
def project_signature(
    project_id: str,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> ProjectSignatureOut:
    require_project(session, user_id, project_id)
    return ProjectSignatureOut(signature=get_project_signature(session, project_id))


@router.post("/{project_id}/signature", response_model=ProjectSignatureOut)
async def upload_project_signature(
    project_id: str,
    file: UploadFile = File(...),
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
    storage: StorageClient = Depends(get_storage),
) -> ProjectSignatureOut:
    require_project(session, user_id, project_id)
    data = await read_upload(file)
    path = signature_path("projects", project_id, file.filename or "")
    try:
        url = storage.upload(path, data, file.content_type, bucket=settings.images_bucket)
    except StorageError as exc:
        raise storage_failure(exc, "upload") from exc
    set_project_signature(session, project_id, url)
    return ProjectSignatureOut(signature=url)


@router.delete("/{project_id}/signature", status_code=status.HTTP_204_NO_CONTENT)
def delete_project_signature(
    project_id: str,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
    storage: StorageClient = Depends(get_storage),
) -> None:
    require_project(session, user_id, project_id)
    current = get_project_signature(session, project_id)
    if current:
        try:
            storage.remove([path_from_url(current, settings.images_bucket)], bucket=settings.images_bucket)
        except StorageError as exc:
            logger.warning("Could not remove signature file for project %s: %s", project_id, exc)
    remove_project_signature(session, project_id)


@router.get("/{project_id}/contratante-data", response_model=ContratanteDataOut)
def contratante_data(
    project_id: str,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> ContratanteDataOut:
    require_project(session, user_id, project_id)
    return ContratanteDataOut(contratante_data=get_contratante_data(session, project_id))


@router.put("/{project_id}/contratante-data", response_model=ContratanteDataOut)
def update_contratante_data(
    project_id: str,
    payload: Dict[str, Any] = Body(...),
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> ContratanteDataOut:
    require_project(session, user_id, project_id)
    save_contratante_data(session, project_id, payload)
    return ContratanteDataOut(contratante_data=get_contratante_data(session, project_id))


@router.get("/{project_id}/contracts", response_model=List[ContractOut])
def contracts(
    project_id: str,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> List[dict]:
    require_project(session, user_id, project_id)
    return list_contracts(session, project_id)


@router.post("/{project_id}/contracts", response_model=ContractOut, status_code=status.HTTP_201_CREATED)
def add_contract(
    project_id: str,
    payload: ContractCreate,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> dict:
    require_project(session, user_id, project_id)
    return create_contract(session, project_id, payload.name, payload.contract_draft_url)


@router.get("/{project_id}/invitations", response_model=List[InvitationOut])
def invitations(
    project_id: str,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> List[dict]:
    require_project(session, user_id, project_id)
    return list_project_invitations(session, project_id)


@router.get("/{project_id}/documents", response_model=List[MemberDocumentsOut])
def documents(
    project_id: str,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> List[dict]:
    require_project(session, user_id, project_id)
    return project_document_matrix(session, project_id)
