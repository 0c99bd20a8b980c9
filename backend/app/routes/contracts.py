import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from sqlalchemy.orm import Session

from app.config import settings
from app.crud.contracts import (
    create_document_from_template,
    list_contract_templates,
    rename_contract,
    replace_draft_url,
    soft_delete_contract,
)
from app.crud.required_documents import (
    add_required_document,
    get_required_document,
    list_required_documents,
    rename_required_document,
    soft_delete_required_document,
    suggest_document_names,
)
from app.routes.deps import (
    db_session_dependency,
    get_current_user,
    read_upload,
    require_contract,
    storage_failure,
)
from app.schemas import (
    ContractOut,
    DocgenDocumentCreate,
    DocgenDocumentOut,
    DocumentType,
    DraftUrlUpdate,
    RenameRequest,
    RequiredDocumentCreate,
    RequiredDocumentOut,
    TemplateOut,
)
from app.services.storage import StorageClient, StorageError, draft_path, get_storage, path_from_url
from shared.contract_document import is_exact_docgen_url

logger = logging.getLogger(__name__)

router = APIRouter(tags=["contracts"])


def _drop_previous_draft(storage: StorageClient, previous: Optional[str], current: str) -> None:
    """Remove the replaced draft file; generated docgen drafts are not files."""
    if not previous or previous == current or is_exact_docgen_url(previous):
        return
    try:
        storage.remove([path_from_url(previous, storage.bucket)])
    except StorageError as exc:
        logger.warning("Could not remove previous draft %s: %s", previous, exc)


@router.get("/api/contracts/{contract_id}", response_model=ContractOut)
def contract(
    contract_id: str,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> dict:
    return require_contract(session, user_id, contract_id)


@router.patch("/api/contracts/{contract_id}", response_model=ContractOut)
def rename(
    contract_id: str,
    payload: RenameRequest,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> dict:
    require_contract(session, user_id, contract_id)
    return rename_contract(session, contract_id, payload.name)


@router.delete("/api/contracts/{contract_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_contract(
    contract_id: str,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> None:
    require_contract(session, user_id, contract_id)
    soft_delete_contract(session, contract_id)


@router.post("/api/contracts/{contract_id}/draft", response_model=ContractOut)
async def upload_draft(
    contract_id: str,
    file: UploadFile = File(...),
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
    storage: StorageClient = Depends(get_storage),
) -> dict:
    current = require_contract(session, user_id, contract_id)
    data = await read_upload(file)
    path = draft_path(current["project_id"], current["name"], file.filename or "borrador.pdf")
    try:
        url = storage.upload(path, data, file.content_type)
    except StorageError as exc:
        raise storage_failure(exc, "upload") from exc
    updated, previous = replace_draft_url(session, contract_id, url)
    _drop_previous_draft(storage, previous, url)
    return updated


@router.put("/api/contracts/{contract_id}/draft-url", response_model=ContractOut)
def update_draft_url(
    contract_id: str,
    payload: DraftUrlUpdate,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
    storage: StorageClient = Depends(get_storage),
) -> dict:
    require_contract(session, user_id, contract_id)
    updated, previous = replace_draft_url(session, contract_id, payload.contract_draft_url)
    _drop_previous_draft(storage, previous, payload.contract_draft_url)
    return updated


@router.get("/api/templates", response_model=List[TemplateOut])
def templates(
    _: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> List[dict]:
    return list_contract_templates(session)


@router.post("/api/docgen/documents", response_model=DocgenDocumentOut, status_code=status.HTTP_201_CREATED)
def create_docgen_document(
    payload: DocgenDocumentCreate,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> DocgenDocumentOut:
    document = create_document_from_template(session, payload.template_id, user_id, payload.title)
    if document is None:
        raise HTTPException(status_code=404, detail="Template not found")
    return DocgenDocumentOut(
        id=document["id"],
        template_id=document.get("template_id"),
        title=document.get("title"),
        url=f"{settings.docgen_url_prefix.rstrip('/')}/{document['id']}",
    )


@router.get("/api/contracts/{contract_id}/required-documents", response_model=List[RequiredDocumentOut])
def required_documents(
    contract_id: str,
    document_type: Optional[DocumentType] = Query(None, alias="type"),
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> List[dict]:
    require_contract(session, user_id, contract_id)
    return list_required_documents(session, contract_id, document_type)


@router.post(
    "/api/contracts/{contract_id}/required-documents",
    response_model=RequiredDocumentOut,
    status_code=status.HTTP_201_CREATED,
)
def add_required(
    contract_id: str,
    payload: RequiredDocumentCreate,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> dict:
    require_contract(session, user_id, contract_id)
    return add_required_document(
        session,
        contract_id,
        payload.name,
        payload.type,
        due_date=payload.due_date,
        template_id=payload.template_id,
    )


@router.get("/api/required-documents/suggestions")
def suggestions(
    search: str = Query(""),
    document_type: Optional[DocumentType] = Query(None, alias="type"),
    _: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> List[dict]:
    return suggest_document_names(session, search, document_type)


def _required_for_user(session: Session, user_id: str, required_document_id: str) -> dict:
    required = get_required_document(session, required_document_id)
    if required is None:
        raise HTTPException(status_code=404, detail="Required document not found")
    require_contract(session, user_id, required["contract_id"])
    return required


@router.patch("/api/required-documents/{required_document_id}", response_model=RequiredDocumentOut)
def rename_required(
    required_document_id: str,
    payload: RenameRequest,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> dict:
    _required_for_user(session, user_id, required_document_id)
    return rename_required_document(session, required_document_id, payload.name)


@router.delete("/api/required-documents/{required_document_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_required(
    required_document_id: str,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> None:
    _required_for_user(session, user_id, required_document_id)
    soft_delete_required_document(session, required_document_id)
