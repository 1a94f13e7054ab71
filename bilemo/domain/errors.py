"""Taxonomie des erreurs du domaine.

Les composants du cœur (projection, fusion, pagination) lèvent ces erreurs typées sans jamais les
intercepter; la couche HTTP (`bilemo.apigw.errors`) les traduit en statut et en enveloppe JSON.
"""

from __future__ import annotations


class DomainError(Exception):
    """Erreur métier de base, porteuse d'un statut HTTP et d'un message stable."""

    status_code = 500
    default_message = "Internal server error."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequest(DomainError):
    status_code = 400
    default_message = "Bad request."


class Unauthorized(DomainError):
    status_code = 401
    default_message = "Authentication required."


class Forbidden(DomainError):
    status_code = 403
    default_message = "Access denied."


class NotFound(DomainError):
    status_code = 404
    default_message = "Resource not found."


class PageNotFound(NotFound):
    """Page demandée hors de `[1, pages_count]` (mode de pagination strict)."""

    default_message = "Requested page does not exist."


class InvalidPageRequest(BadRequest):
    default_message = "Invalid pagination parameters."


class InvalidVersion(BadRequest):
    default_message = "Invalid API version."


class DeserializationError(BadRequest):
    """Le corps de requête ne se convertit pas dans la forme attendue."""

    default_message = "Malformed request payload."

    def __init__(self, message: str | None = None, errors: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or {}


class ValidationError(BadRequest):
    """Violations des règles métier, toutes collectées (chemin de champ -> message)."""

    def __init__(self, errors: dict[str, str]) -> None:
        super().__init__(self.summary(len(errors)))
        self.errors = dict(errors)

    @staticmethod
    def summary(count: int) -> str:
        return f"Validation failed with {count} error(s)."
