import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.config import settings
from app.routes.deps import db_session_dependency
from app.services.storage import StorageClient, get_storage
from app.telegram.bot import feed_update

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/telegram", tags=["telegram"])


@router.get("")
def webhook_status() -> dict:
    return {"status": "Webhook is active"}


@router.post("")
async def webhook(
    request: Request,
    secret_token: Optional[str] = Header(None, alias="X-Telegram-Bot-Api-Secret-Token"),
    session: Session = Depends(db_session_dependency),
    storage: StorageClient = Depends(get_storage),
):
    if settings.telegram_webhook_secret and secret_token != settings.telegram_webhook_secret:
        logger.warning("Rejected Telegram update with a bad secret token")
        return JSONResponse(status_code=401, content={"ok": False, "error": "Unauthorized"})
    try:
        payload = await request.json()
        await feed_update(payload, session=session, storage=storage)
    except Exception:
        logger.exception("Telegram webhook failed")
        session.rollback()
        return JSONResponse(status_code=500, content={"ok": False, "error": "Internal server error"})
    return {"ok": True}
