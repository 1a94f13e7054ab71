"""Règles de validation métier attachées aux champs du registre.

Chaque règle est un appelable `rule(value) -> message | None`. Les messages reprennent ceux des
contraintes classiques (NotBlank, Email, Length) afin que les clients puissent les afficher tels
quels.
"""

from __future__ import annotations

from collections.abc import Callable
from decimal import Decimal
from typing import Any

from email_validator import EmailNotValidError, validate_email

Rule = Callable[[Any], str | None]


def not_blank() -> Rule:
    def _check(value: Any) -> str | None:
        if value is None or (isinstance(value, str) and not value.strip()):
            return "This value should not be blank."
        return None

    return _check


def email() -> Rule:
    """Adresse e-mail syntaxiquement valide (sans vérification DNS)."""

    def _check(value: Any) -> str | None:
        if value is None or value == "":
            return None
        try:
            validate_email(str(value), check_deliverability=False)
        except EmailNotValidError:
            return "This value is not a valid email address."
        return None

    return _check


def length(min: int | None = None, max: int | None = None) -> Rule:  # noqa: A002
    def _check(value: Any) -> str | None:
        if value is None:
            return None
        size = len(str(value))
        if min is not None and size < min:
            return f"This value is too short. It should have {min} characters or more."
        if max is not None and size > max:
            return f"This value is too long. It should have {max} characters or less."
        return None

    return _check


def positive() -> Rule:
    def _check(value: Any) -> str | None:
        if value is None:
            return None
        if Decimal(str(value)) <= 0:
            return "This value should be positive."
        return None

    return _check
