import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.crud.users import ensure_user, get_user, get_user_by_email, list_users
from app.routes.deps import db_session_dependency, get_access_token, get_current_user
from app.schemas import (
    MessageOut,
    RecoverPasswordRequest,
    SessionOut,
    SignInRequest,
    SignUpRequest,
    UserExistsOut,
    UserOut,
)
from app.services.auth_client import AuthClient, AuthServiceError, get_auth_client, is_valid_email

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


def _auth_failure(exc: AuthServiceError) -> HTTPException:
    status_code = exc.status if 400 <= exc.status < 500 else 502
    return HTTPException(status_code=status_code, detail=str(exc))


@router.post("/api/auth/sign-up", response_model=MessageOut)
def sign_up(
    payload: SignUpRequest,
    session: Session = Depends(db_session_dependency),
    client: AuthClient = Depends(get_auth_client),
) -> MessageOut:
    if not is_valid_email(payload.email):
        raise HTTPException(status_code=400, detail="Correo electrónico inválido")
    try:
        result = client.sign_up(payload.email, payload.password, payload.username)
    except AuthServiceError as exc:
        raise _auth_failure(exc) from exc
    user = result.get("user") or result
    if user.get("id"):
        ensure_user(session, str(user["id"]), payload.email, payload.username)
    return MessageOut(success=True, message="Revisa tu correo para confirmar la cuenta")


@router.post("/api/auth/sign-in", response_model=SessionOut)
def sign_in(
    payload: SignInRequest,
    session: Session = Depends(db_session_dependency),
    client: AuthClient = Depends(get_auth_client),
) -> SessionOut:
    try:
        result = client.sign_in_with_password(payload.email, payload.password)
    except AuthServiceError as exc:
        raise _auth_failure(exc) from exc
    user = result.get("user") or {}
    if user.get("id"):
        username = (user.get("user_metadata") or {}).get("username")
        ensure_user(session, str(user["id"]), user.get("email") or payload.email, username)
    return SessionOut(
        access_token=result["access_token"],
        refresh_token=result.get("refresh_token"),
        expires_in=result.get("expires_in"),
        user_id=user.get("id"),
    )


@router.post("/api/auth/recover", response_model=MessageOut)
def recover_password(
    payload: RecoverPasswordRequest,
    client: AuthClient = Depends(get_auth_client),
) -> MessageOut:
    if not is_valid_email(payload.email):
        raise HTTPException(status_code=400, detail="Correo electrónico inválido")
    try:
        client.recover_password(payload.email, payload.redirect_to)
    except AuthServiceError as exc:
        raise _auth_failure(exc) from exc
    return MessageOut(success=True, message="Te enviamos un enlace para restablecer la contraseña")


@router.post("/api/auth/sign-out", response_model=MessageOut)
def sign_out(
    token: str = Depends(get_access_token),
    client: AuthClient = Depends(get_auth_client),
) -> MessageOut:
    try:
        client.sign_out(token)
    except AuthServiceError as exc:
        raise _auth_failure(exc) from exc
    return MessageOut(success=True, message="Sesión cerrada")


@router.get("/api/auth/me", response_model=UserOut)
def me(
    user_id: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> dict:
    user = get_user(session, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("/api/users", response_model=List[UserOut])
def users(
    _: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> List[dict]:
    return list_users(session)


@router.get("/api/users/exists", response_model=UserExistsOut)
def user_exists(
    email: str = Query(..., min_length=3),
    _: str = Depends(get_current_user),
    session: Session = Depends(db_session_dependency),
) -> UserExistsOut:
    user = get_user_by_email(session, email)
    return UserExistsOut(exists=user is not None, user=user)
