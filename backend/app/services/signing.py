import logging
from typing import Any, Mapping, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.config import settings
from app.crud.contracts import get_contract
from app.crud.invitations import get_member
from app.crud.permissions import can_access_project
from app.crud.projects import get_project_signature
from app.crud.users import get_user, update_user_data
from app.services.contract_documents import update_contract_with_user_data
from app.tables import contract_members_table, utcnow
from app.texts import get_text
from shared.contract_document import is_docgen_url, is_user_data_complete, sign_sections

logger = logging.getLogger(__name__)


def _result(success: bool, key: str) -> dict:
    return {"success": success, "message": get_text(key)}


def handle_contract_signing(
    session: Session,
    member_id: str,
    user_id: str,
    user_data: Optional[Mapping[str, Any]],
    user_signature: Optional[str] = None,
) -> dict:
    """Contractor side: merge identity data and signature, then mark the member signed.

    The draft kind always comes from the stored contract so a docgen contract
    cannot be signed without its merge.
    """
    member = get_member(session, member_id)
    if member is None or member["user_id"] != user_id:
        return _result(False, "sign.error")

    user = get_user(session, user_id)
    stored_signature = (user or {}).get("signature")
    if not stored_signature:
        return _result(False, "sign.missing_signature")

    contract = get_contract(session, member["contract_id"])
    draft_url = (contract or {}).get("contract_draft_url")
    if is_docgen_url(draft_url, settings.docgen_url_prefix):
        if not is_user_data_complete(user_data):
            return _result(False, "sign.incomplete_data")
        update_user_data(session, user_id, user_data)
        merged = update_contract_with_user_data(
            session, member_id, user_data, user_signature or stored_signature
        )
        if not merged["success"]:
            return merged

    now = utcnow()
    session.execute(
        update(contract_members_table)
        .where(contract_members_table.c.id == member_id)
        .values(
            signed=True,
            signed_at=now,
            accepted_at=member.get("accepted_at") or now,
        )
    )
    logger.info("Member %s signed contract %s", member_id, member["contract_id"])
    return _result(True, "sign.ok")


def handle_contratante_signing(session: Session, member_id: str, user_id: str) -> dict:
    """Contracting party side: stamp the project signature on the last signature line."""
    member = get_member(session, member_id)
    if member is None:
        return _result(False, "sign.error")
    contract = get_contract(session, member["contract_id"])
    if contract is None:
        return _result(False, "sign.error")
    project_id = contract["project_id"]
    if not can_access_project(session, user_id, project_id, settings.contractual_module_id):
        return _result(False, "sign.contratante.forbidden")

    signature = get_project_signature(session, project_id)
    if not signature:
        return _result(False, "sign.contratante.missing_signature")

    values = {"contratante_signed_at": utcnow()}
    if member.get("contract"):
        values["contract"] = sign_sections(member["contract"], signature, last=True)
    session.execute(
        update(contract_members_table)
        .where(contract_members_table.c.id == member_id)
        .values(**values)
    )
    logger.info("Contratante %s signed member %s", user_id, member_id)
    return _result(True, "sign.contratante.ok")
