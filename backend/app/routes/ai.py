import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse

from app.config import settings
from app.routes.deps import get_current_user
from app.schemas import ContractObjectRequest
from app.services.ai import AIServiceError, GeminiClient, draft_contract_object, get_ai_client, verify_document
from app.services.google_docs import GoogleDocsClient, GoogleDocsError, build_contract_summary, get_docs_client
from app.texts import get_text

logger = logging.getLogger(__name__)

router = APIRouter(tags=["ai"])


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message, **extra})


@router.post("/api/verify-document")
async def verify_uploaded_document(
    file: Optional[UploadFile] = File(None),
    document_name: Optional[str] = Form(None, alias="documentName"),
    _: str = Depends(get_current_user),
    client: Optional[GeminiClient] = Depends(get_ai_client),
):
    if file is None or not (document_name or "").strip():
        return _error(400, "File and document name are required")
    if client is None:
        return _error(500, "AI service is not configured")
    data = await file.read()
    try:
        is_valid, answer = await verify_document(
            client, data, file.content_type or "application/octet-stream", document_name.strip()
        )
    except AIServiceError as exc:
        logger.error("Document verification failed: %s", exc)
        return _error(500, str(exc))
    return {
        "success": True,
        "isValid": is_valid,
        "message": get_text("verify.ok" if is_valid else "verify.mismatch"),
        "debug": {"documentName": document_name, "answer": answer, "mimeType": file.content_type},
    }


@router.post("/api/ps-contract")
async def generate_contract(
    payload: ContractObjectRequest,
    _: str = Depends(get_current_user),
    ai: Optional[GeminiClient] = Depends(get_ai_client),
    docs: Optional[GoogleDocsClient] = Depends(get_docs_client),
):
    paraphrase = (payload.objetoParafraseado or "").strip()
    if not paraphrase:
        return _error(400, get_text("ps_contract.missing_object"))
    if ai is None or docs is None:
        return _error(500, get_text("ps_contract.error"), details="Service is not configured")

    async def draft(text: str) -> str:
        return await draft_contract_object(ai, text)

    try:
        summary = await build_contract_summary(
            docs,
            draft,
            paraphrase,
            name=payload.nombreContrato,
            folder_id=settings.google_drive_folder_id,
        )
    except GoogleDocsError as exc:
        logger.error("Contract generation failed: %s %s", exc, exc.details)
        if exc.is_permission_error:
            return _error(
                403,
                get_text("ps_contract.auth_error"),
                details=str(exc),
                serviceAccount=docs.service_account_email,
            )
        return _error(500, get_text("ps_contract.error"), details=str(exc))
    except AIServiceError as exc:
        logger.error("Contract object drafting failed: %s", exc)
        return _error(500, get_text("ps_contract.error"), details=str(exc))

    document_id = summary["document_id"]
    return {
        "success": True,
        "message": get_text("ps_contract.ok"),
        "documentId": document_id,
        "documentUrl": f"https://docs.google.com/document/d/{document_id}/edit",
        "rowsCreated": summary["rows_created"],
        "contractObject": summary["contract_object"],
    }
