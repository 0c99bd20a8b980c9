"""Contractor-facing endpoints: dashboard, identity data and member document uploads."""

import logging
import time
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from app.config import settings
from app.crud.contractor import contract_full_data, contract_status, pending_contracts
from app.crud.contractual import (
    PRECONTRACTUAL,
    all_documents_by_month,
    contractual_documents_by_month,
    create_extra_document,
    extra_documents_by_month,
    get_extra_document,
    get_legal_status,
    get_member_document,
    get_member_dates,
    precontractual_documents,
    set_extra_document_url,
    set_member_ending,
    soft_delete_extra_document,
    upsert_document,
)
from app.crud.extensions import create_extension, list_extensions
from app.crud.required_documents import get_required_document
from app.crud.users import get_user_data, set_user_signature, update_user_data
from app.routes.deps import (
    db_session_dependency,
    ensure_found,
    get_current_user,
    read_upload,
    require_member,
    storage_failure,
)
from app.schemas import (
    ContractFullDataOut,
    ContractStatusOut,
    ContractorDashboardOut,
    DocumentGroupOut,
    ExtensionOut,
    ExtensionResult,
    ExtraDocumentCreate,
    LegalStatusOut,
    MemberDatesOut,
    PrecontractualDocumentOut,
    ResignationOut,
    SignedUrlOut,
    UserDataOut,
    UserDocument,
)
from app.services.storage import (
    StorageClient,
    StorageError,
    extension_path,
    extra_document_path,
    get_storage,
    member_document_path,
    signature_path,
)
from shared.filenames import file_extension

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/contractor", tags=["contractor"])

CONTRACTUAL_FOLDER = "contractualdocuments"
PRECONTRACTUAL_FOLDER = "precontractualdocuments"
RESIGNATION_FOLDER = "renuncia"


def _store(storage: StorageClient, path: str, data: bytes, content_type: Optional[str]) -> str:
    try:
        return storage.upload(path, data, content_type)
    except StorageError as exc:
        raise storage_failure(exc, "upload") from exc


def _required_for_member(session: Session, member: dict, required_document_id: str) -> dict:
    required = get_required_document(session, required_document_id)
    if required is None or required["contract_id"] != member["contract_id"]:
        raise HTTPException(status_code=404, detail="Required document not found")
    return required


@router.get("/dashboard", response_model=ContractorDashboardOut)
def dashboard(
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> dict:
    return pending_contracts(session, user_id)


@router.get("/user-data", response_model=UserDataOut)
def user_data(
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> dict:
    return ensure_found(get_user_data(session, user_id), "User not found")


@router.put("/user-data", response_model=UserDataOut)
def save_user_data(
    payload: UserDocument,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> dict:
    update_user_data(session, user_id, payload.model_dump(by_alias=True, exclude_none=True))
    return get_user_data(session, user_id)


@router.post("/signature", response_model=SignedUrlOut)
async def upload_user_signature(
    file: UploadFile = File(...),
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
    storage: StorageClient = Depends(get_storage),
) -> SignedUrlOut:
    data = await read_upload(file)
    path = signature_path("users", user_id, file.filename or "")
    try:
        url = storage.upload(path, data, file.content_type, bucket=settings.images_bucket)
    except StorageError as exc:
        raise storage_failure(exc, "upload") from exc
    set_user_signature(session, user_id, url)
    return SignedUrlOut(url=url)


@router.get("/members/{member_id}/status", response_model=ContractStatusOut)
def member_status(
    member_id: str,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> dict:
    require_member(session, user_id, member_id)
    return contract_status(session, member_id)


@router.get("/members/{member_id}/full-data", response_model=ContractFullDataOut)
def member_full_data(
    member_id: str,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> dict:
    require_member(session, user_id, member_id)
    return contract_full_data(session, member_id)


@router.get("/members/{member_id}/documents", response_model=List[DocumentGroupOut])
def member_documents(
    member_id: str,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> List[dict]:
    require_member(session, user_id, member_id)
    return all_documents_by_month(session, member_id)


@router.get("/members/{member_id}/documents/contractual", response_model=List[DocumentGroupOut])
def member_contractual_documents(
    member_id: str,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> List[dict]:
    require_member(session, user_id, member_id)
    return contractual_documents_by_month(session, member_id)


@router.get("/members/{member_id}/documents/extra", response_model=List[DocumentGroupOut])
def member_extra_documents(
    member_id: str,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> List[dict]:
    require_member(session, user_id, member_id)
    return extra_documents_by_month(session, member_id)


@router.post("/members/{member_id}/documents", response_model=SignedUrlOut)
async def upload_contractual_document(
    member_id: str,
    required_document_id: str = Form(..., alias="requiredDocumentId"),
    month: Optional[str] = Form(None),
    contractual_document_id: Optional[str] = Form(None, alias="contractualDocumentId"),
    file: UploadFile = File(...),
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
    storage: StorageClient = Depends(get_storage),
) -> SignedUrlOut:
    member = require_member(session, user_id, member_id)
    required = _required_for_member(session, member, required_document_id)
    if contractual_document_id:
        slot = get_member_document(session, contractual_document_id)
        if (
            slot is None
            or slot["contract_member_id"] != member_id
            or slot["required_document_id"] != required_document_id
        ):
            raise HTTPException(status_code=404, detail="Document not found")
    data = await read_upload(file)
    key = " ".join(part for part in (required["name"], month) if part)
    path = f"{member_document_path(CONTRACTUAL_FOLDER, member_id, key)}.{file_extension(file.filename or '')}"
    url = _store(storage, path, data, file.content_type)
    document_id = upsert_document(
        session,
        member_id,
        required_document_id,
        url,
        month=month,
        contractual_document_id=contractual_document_id,
    )
    if document_id is None:
        raise HTTPException(status_code=404, detail="Document not found")
    return SignedUrlOut(url=url)


@router.get("/members/{member_id}/precontractual", response_model=List[PrecontractualDocumentOut])
def member_precontractual(
    member_id: str,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> List[dict]:
    require_member(session, user_id, member_id)
    return precontractual_documents(session, member_id)


@router.post("/members/{member_id}/precontractual/{required_document_id}", response_model=SignedUrlOut)
async def upload_precontractual_document(
    member_id: str,
    required_document_id: str,
    file: UploadFile = File(...),
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
    storage: StorageClient = Depends(get_storage),
) -> SignedUrlOut:
    member = require_member(session, user_id, member_id)
    required = _required_for_member(session, member, required_document_id)
    if required["type"] != PRECONTRACTUAL:
        raise HTTPException(status_code=400, detail="Not a precontractual document")
    data = await read_upload(file)
    path = f"{member_document_path(PRECONTRACTUAL_FOLDER, member_id, required['name'])}.{file_extension(file.filename or '')}"
    url = _store(storage, path, data, file.content_type)
    upsert_document(session, member_id, required_document_id, url)
    return SignedUrlOut(url=url)


@router.post("/members/{member_id}/extras", status_code=status.HTTP_201_CREATED)
def add_extra_document(
    member_id: str,
    payload: ExtraDocumentCreate,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> dict:
    require_member(session, user_id, member_id)
    document = create_extra_document(session, member_id, payload.name, payload.month)
    return {"id": document["id"], "name": document["name"], "month": document["month"]}


def _extra_for_user(session: Session, user_id: str, document_id: str) -> dict:
    document = get_extra_document(session, document_id)
    if document is None:
        raise HTTPException(status_code=404, detail="Document not found")
    require_member(session, user_id, document["contract_member_id"])
    return document


@router.post("/extras/{document_id}/file", response_model=SignedUrlOut)
async def upload_extra_document(
    document_id: str,
    file: UploadFile = File(...),
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
    storage: StorageClient = Depends(get_storage),
) -> SignedUrlOut:
    document = _extra_for_user(session, user_id, document_id)
    data = await read_upload(file)
    path = extra_document_path(
        document["contract_member_id"], document_id, file.filename or "", int(time.time() * 1000)
    )
    url = _store(storage, path, data, file.content_type)
    set_extra_document_url(session, document_id, url)
    return SignedUrlOut(url=url)


@router.delete("/extras/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_extra_document(
    document_id: str,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> None:
    _extra_for_user(session, user_id, document_id)
    soft_delete_extra_document(session, document_id)


@router.post("/members/{member_id}/resignation", response_model=ResignationOut)
async def upload_resignation(
    member_id: str,
    termination_type: Optional[str] = Form(None, alias="terminationType"),
    file: UploadFile = File(...),
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
    storage: StorageClient = Depends(get_storage),
) -> dict:
    require_member(session, user_id, member_id)
    data = await read_upload(file)
    path = f"{member_document_path(RESIGNATION_FOLDER, member_id, 'renuncia')}.{file_extension(file.filename or '')}"
    url = _store(storage, path, data, file.content_type)
    return set_member_ending(session, member_id, url, termination_type)


@router.get("/members/{member_id}/legal-status", response_model=LegalStatusOut)
def legal_status(
    member_id: str,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> LegalStatusOut:
    require_member(session, user_id, member_id)
    return LegalStatusOut(status_juridico=get_legal_status(session, member_id))


@router.get("/members/{member_id}/dates", response_model=MemberDatesOut)
def member_dates(
    member_id: str,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> dict:
    require_member(session, user_id, member_id)
    return ensure_found(get_member_dates(session, member_id), "Contract member not found")


@router.get("/members/{member_id}/extensions", response_model=List[ExtensionOut])
def extensions(
    member_id: str,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> List[dict]:
    require_member(session, user_id, member_id)
    return list_extensions(session, member_id)


@router.post("/members/{member_id}/extensions", response_model=ExtensionResult, status_code=status.HTTP_201_CREATED)
async def add_extension(
    member_id: str,
    start_date: date = Form(..., alias="startDate"),
    end_date: date = Form(..., alias="endDate"),
    file: Optional[UploadFile] = File(None),
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
    storage: StorageClient = Depends(get_storage),
) -> dict:
    require_member(session, user_id, member_id)
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="La fecha final debe ser posterior a la inicial")
    url = None
    if file is not None and file.filename:
        data = await read_upload(file)
        url = _store(storage, extension_path(member_id, file.filename), data, file.content_type)
    extension, created = create_extension(session, member_id, start_date, end_date, url)
    return {"extension": extension, "created_documents": created}
