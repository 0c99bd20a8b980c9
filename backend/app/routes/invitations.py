import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.crud.invitations import create_invitation, delete_invitation, get_invitation
from app.crud.projects import get_project
from app.crud.users import get_user
from app.routes.deps import db_session_dependency, get_current_user, require_contract
from app.schemas import InvitationCreate, InvitationResult
from app.services.contract_documents import process_contract_document
from app.services.mailer import Mailer, MailerError, get_mailer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/invitations", tags=["invitations"])


def _send_invitation_email(mailer: Mailer, email: str, project_name: str) -> bool:
    if not mailer.enabled:
        logger.info("Mailer disabled, invitation email to %s skipped", email)
        return False
    try:
        mailer.send_invitation(email, project_name)
    except MailerError as exc:
        logger.error("Invitation email to %s failed: %s", email, exc)
        return False
    return True


@router.post("", response_model=InvitationResult, status_code=status.HTTP_201_CREATED)
def send_invitation(
    payload: InvitationCreate,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
    mailer: Mailer = Depends(get_mailer),
) -> dict:
    contract = require_contract(session, user_id, payload.contract_id)
    invitee = get_user(session, payload.user_id)
    if invitee is None:
        raise HTTPException(status_code=404, detail="User not found")

    invitation = create_invitation(
        session,
        payload.user_id,
        payload.contract_id,
        value=payload.value,
        start_date=payload.start_date,
        end_date=payload.end_date,
    )
    processed = process_contract_document(
        session,
        payload.user_id,
        payload.contract_id,
        payload.value,
        payload.end_date,
        project_id=contract["project_id"],
    )
    project = get_project(session, contract["project_id"]) or {}
    email_sent = _send_invitation_email(mailer, invitee["email"], project.get("name") or contract["name"])
    logger.info(
        "Invitation %s sent for contract %s (document_processed=%s email_sent=%s)",
        invitation["id"],
        payload.contract_id,
        processed,
        email_sent,
    )
    return {"invitation": invitation, "email_sent": email_sent, "document_processed": processed}


@router.delete("/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_invitation(
    member_id: str,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> None:
    invitation = get_invitation(session, member_id)
    if invitation is None:
        raise HTTPException(status_code=404, detail="Invitation not found")
    require_contract(session, user_id, invitation["contract_id"])
    delete_invitation(session, member_id)
