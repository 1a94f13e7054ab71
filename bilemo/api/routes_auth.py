"""
Route de connexion pour l'API.

Échange un couple e-mail / mot de passe contre un token JWT à transmettre ensuite dans l'en-tête
`Authorization: Bearer <token>`.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bilemo.api.deps import get_container, get_session
from bilemo.api.schemas import LoginPayload, TokenResponse
from bilemo.core.container import Container
from bilemo.domain.auth import create_access_token, verify_password
from bilemo.domain.errors import Unauthorized
from bilemo.infra.repositories import UserRepo

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
def login(
    p: LoginPayload,
    container: Container = Depends(get_container),
    session: Session = Depends(get_session),
):
    """Authentifie un utilisateur et retourne un token d'accès."""
    user = UserRepo(session).get_by_email(str(p.email))
    if not user or not verify_password(p.password, user.password_hash):
        raise Unauthorized("Invalid credentials.")
    token = create_access_token(
        secret=container.settings.JWT_SECRET,
        alg=container.settings.JWT_ALG,
        expires_min=container.settings.JWT_EXPIRES_MIN,
        payload={"sub": str(user.id), "email": user.email, "roles": list(user.roles or [])},
    )
    return TokenResponse(access_token=token)
