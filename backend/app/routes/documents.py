from fastapi import APIRouter, Depends, HTTPException, Query

from app.routes.deps import get_current_user, storage_failure
from app.schemas import SignedUrlOut
from app.services.storage import StorageClient, StorageError, get_storage

router = APIRouter(prefix="/api/storage", tags=["storage"])


@router.get("/signed-url", response_model=SignedUrlOut)
def signed_url(
    url: str = Query(..., min_length=1),
    _: str = Depends(get_current_user),
    storage: StorageClient = Depends(get_storage),
) -> SignedUrlOut:
    try:
        return SignedUrlOut(url=storage.signed_url_for(url))
    except StorageError as exc:
        if exc.status == 404:
            raise HTTPException(status_code=404, detail="File not found") from exc
        raise storage_failure(exc, "signing") from exc


@router.get("/preview-url", response_model=SignedUrlOut)
def preview_url(
    url: str = Query(..., min_length=1),
    _: str = Depends(get_current_user),
    storage: StorageClient = Depends(get_storage),
) -> SignedUrlOut:
    try:
        return SignedUrlOut(url=storage.preview_url(url))
    except StorageError as exc:
        raise HTTPException(status_code=404, detail="File not found") from exc
