import logging

from fastapi import APIRouter, Depends, HTTPException

from app.schemas import ContactRequest, MessageOut
from app.services.mailer import Mailer, MailerError, get_mailer

logger = logging.getLogger(__name__)

router = APIRouter(tags=["contact"])


@router.post("/contact", response_model=MessageOut)
def contact(payload: ContactRequest, mailer: Mailer = Depends(get_mailer)) -> MessageOut:
    if not mailer.enabled:
        raise HTTPException(status_code=503, detail="Email service is not configured")
    try:
        mailer.send_contact(
            payload.company,
            payload.email,
            name=payload.name,
            phone=payload.phone,
            message=payload.message,
        )
    except MailerError as exc:
        logger.error("Contact email from %s failed: %s", payload.email, exc)
        raise HTTPException(status_code=502, detail="No se pudo enviar el mensaje") from exc
    return MessageOut(success=True, message="Mensaje enviado")


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}
