"""Per-member contract copies built from docgen templates."""

import logging
from datetime import date
from typing import Any, Mapping, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.config import settings
from app.crud.contracts import get_contract_draft_url, get_document
from app.crud.invitations import get_member, latest_member
from app.crud.projects import get_project_signature
from app.crud.users import get_user
from app.tables import contract_members_table
from app.texts import get_text
from shared.contract_document import (
    docgen_document_id,
    fill_contractor_data,
    is_docgen_url,
    merge_invitation_values,
    parse_identity_document,
    replace_placeholders,
    sign_sections,
)

logger = logging.getLogger(__name__)


def _store_member_contract(session: Session, member_id: str, sections: Mapping[str, Any]) -> None:
    session.execute(
        update(contract_members_table)
        .where(contract_members_table.c.id == member_id)
        .values(contract=dict(sections))
    )


def process_contract_document(
    session: Session,
    user_id: str,
    contract_id: str,
    value: Optional[str],
    end_date: Optional[date] = None,
    project_id: Optional[str] = None,
) -> bool:
    """Give a freshly invited member their own merged copy of the contract draft.

    Drafts that are plain uploaded files need no merge and count as success.
    Any failure is logged and reported as ``False``.
    """
    try:
        draft_url = get_contract_draft_url(session, contract_id)
        if not draft_url:
            logger.error("Contract %s has no draft URL", contract_id)
            return False
        if not is_docgen_url(draft_url, settings.docgen_url_prefix):
            return True

        document_id = docgen_document_id(draft_url)
        document = get_document(session, document_id) if document_id else None
        if not document or not document.get("sections"):
            logger.error("Docgen document %s not found for contract %s", document_id, contract_id)
            return False

        user = get_user(session, user_id)
        if user is None:
            logger.error("User %s not found while merging contract %s", user_id, contract_id)
            return False
        identity = parse_identity_document(user.get("document_id"))

        sections = merge_invitation_values(document["sections"], value, identity, end_date)
        sections = replace_placeholders(sections, value, end_date, user.get("email"))

        if project_id:
            signature = get_project_signature(session, project_id)
            if signature:
                sections = sign_sections(sections, signature, last=True)

        member = latest_member(session, user_id, contract_id)
        if member is None:
            logger.error("No membership for user %s in contract %s", user_id, contract_id)
            return False
        _store_member_contract(session, member["id"], sections)
        return True
    except Exception:
        logger.exception("Failed to process contract document for contract %s", contract_id)
        return False


def update_contract_with_user_data(
    session: Session,
    member_id: str,
    user_data: Mapping[str, Any],
    user_signature: Optional[str],
) -> dict:
    member = get_member(session, member_id)
    if member is None or not member.get("contract"):
        return {"success": False, "message": get_text("sign.no_contract")}
    sections = member["contract"]
    if user_signature:
        sections = sign_sections(sections, user_signature, last=False)
    sections = fill_contractor_data(sections, user_data)
    _store_member_contract(session, member_id, sections)
    return {"success": True, "message": get_text("contract.updated")}
