# Schémas Pydantic exposés par l'API (requêtes et réponses).

from pydantic import BaseModel, EmailStr


class LoginPayload(BaseModel):
    """Identifiants de connexion d'un utilisateur de l'API."""

    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    """Réponse de connexion.

    Champs:
    - access_token: str (JWT signé, `sub` = identifiant utilisateur)
    - token_type: str (toujours "bearer")
    """

    access_token: str
    token_type: str = "bearer"


class HealthResponse(BaseModel):
    status: str
    storage: str
    cache: str
