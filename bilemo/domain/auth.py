"""
Module d'authentification et de gestion des tokens.

Ce module fournit le hachage des mots de passe, la création et validation des tokens JWT, et
l'identité de l'appelant transmise explicitement aux services.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt import InvalidTokenError
from passlib.context import CryptContext
from pydantic import BaseModel, EmailStr, ValidationError

from bilemo.domain.errors import Forbidden

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class TokenData(BaseModel):
    """Données contenues dans un token JWT."""

    sub: str
    email: EmailStr
    roles: list[str] = []


@dataclass(frozen=True)
class Identity:
    """Appelant authentifié: identifiant, e-mail et rôles."""

    id: int
    email: str
    roles: frozenset[str] = field(default_factory=frozenset)

    def has_role(self, role: str) -> bool:
        return role in self.roles

    def require_role(self, role: str, message: str | None = None) -> None:
        """Lève `Forbidden` si l'appelant ne possède pas `role`."""
        if not self.has_role(role):
            raise Forbidden(message)


def hash_password(p: str) -> str:
    """Hache un mot de passe en utilisant PBKDF2."""
    return pwd_context.hash(p)


def verify_password(p: str, h: str) -> bool:
    """Vérifie un mot de passe contre son hash."""
    return pwd_context.verify(p, h)


def create_access_token(secret: str, alg: str, expires_min: int, payload: dict[str, Any]) -> str:
    """Crée un token JWT d'accès avec expiration."""
    to_encode = payload.copy()
    expire = datetime.now(UTC) + timedelta(minutes=expires_min)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, secret, algorithm=alg)


def decode_token(token: str, secret: str, alg: str) -> TokenData | None:
    """Décode et valide un token JWT."""
    try:
        data = jwt.decode(token, secret, algorithms=[alg])
        return TokenData(**data)
    except (InvalidTokenError, ValidationError):
        return None
