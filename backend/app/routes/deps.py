"""Request-scoped dependencies and access checks shared by the routers."""

import logging
from typing import Iterable, Optional

from fastapi import Depends, HTTPException, UploadFile, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from app.config import settings
from app.crud.contracts import get_contract
from app.crud.invitations import get_member
from app.crud.permissions import can_access_project
from app.crud.projects import get_project
from app.crud.users import ensure_user
from app.database import get_session
from app.services.storage import StorageError

logger = logging.getLogger(__name__)

security_scheme = HTTPBearer(auto_error=False)


def db_session_dependency() -> Iterable[Session]:
    with get_session() as session:
        yield session


def decode_access_token(token: str) -> dict:
    options = {} if settings.jwt_audience else {"verify_aud": False}
    try:
        payload = jwt.decode(
            token,
            key=settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience or None,
            options=options,
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        ) from None
    if not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )
    return payload


async def get_access_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(security_scheme),
) -> str:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication credentials were not provided",
        )
    return credentials.credentials


async def get_current_user(
    token: str = Depends(get_access_token),
    session: Session = Depends(db_session_dependency),
) -> str:
    """Id of the authenticated user; the local users row is kept in step with the token."""
    payload = decode_access_token(token)
    user_id = str(payload["sub"])
    email = payload.get("email")
    if email:
        metadata = payload.get("user_metadata") or {}
        ensure_user(session, user_id, email, metadata.get("username"))
    return user_id


def require_project(session: Session, user_id: str, project_id: str) -> dict:
    project = get_project(session, project_id)
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found")
    if not can_access_project(session, user_id, project_id, settings.contractual_module_id):
        raise HTTPException(status_code=403, detail="Insufficient permissions.")
    return project


def require_contract(session: Session, user_id: str, contract_id: str) -> dict:
    contract = get_contract(session, contract_id)
    if contract is None:
        raise HTTPException(status_code=404, detail="Contract not found")
    require_project(session, user_id, contract["project_id"])
    return contract


def require_member(session: Session, user_id: str, member_id: str) -> dict:
    """The contractor themself or anyone who may open the member's project."""
    member = get_member(session, member_id)
    if member is None:
        raise HTTPException(status_code=404, detail="Contract member not found")
    if member["user_id"] == user_id:
        return member
    contract = get_contract(session, member["contract_id"])
    if contract is None or not can_access_project(
        session, user_id, contract["project_id"], settings.contractual_module_id
    ):
        raise HTTPException(status_code=403, detail="Insufficient permissions.")
    return member


async def read_upload(file: UploadFile) -> bytes:
    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail="Empty file")
    return data


def storage_failure(exc: StorageError, action: str) -> HTTPException:
    logger.error("Storage %s failed: %s", action, exc)
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Storage {action} failed")


def ensure_found(row: Optional[dict], detail: str) -> dict:
    if row is None:
        raise HTTPException(status_code=404, detail=detail)
    return row
