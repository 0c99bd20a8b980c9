import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.routes.deps import db_session_dependency, get_current_user
from app.schemas import ContractSignRequest, MessageOut
from app.services.signing import handle_contract_signing, handle_contratante_signing
from app.texts import get_text

logger = logging.getLogger(__name__)

router = APIRouter(tags=["signing"])

CONTRATANTE_ROLE = "contratante"


@router.post("/api/contract-sign", response_model=MessageOut)
def contract_sign(
    payload: ContractSignRequest,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
):
    if payload.user_id and payload.user_id != user_id:
        raise HTTPException(status_code=403, detail="Cannot sign on behalf of another user")
    try:
        if (payload.role or "").lower() == CONTRATANTE_ROLE:
            result = handle_contratante_signing(session, payload.contract_member_id, user_id)
        else:
            result = handle_contract_signing(
                session,
                payload.contract_member_id,
                user_id,
                payload.user_data,
                payload.user_signature,
            )
    except Exception:
        logger.exception("Contract signing failed for member %s", payload.contract_member_id)
        session.rollback()
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": get_text("sign.server_error")},
        )
    return result
