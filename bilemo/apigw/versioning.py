# ============================================================
# Module : bilemo/apigw/versioning.py
# Objet  : Négociation de la version d'API demandée par le client.
# Notes  : Accept "application/json; version=2.0" prioritaire, puis X-API-Version.
# ============================================================
"""Négociation de la version d'API.

La version n'apparaît pas dans le chemin: le client la transmet en paramètre du média
`Accept: application/json; version=2.0` ou, à défaut, dans l'en-tête `X-API-Version`. Sans
indication, la version par défaut des settings s'applique. Un jeton invalide lève
`InvalidVersion` (400).
"""

from __future__ import annotations

from fastapi import Request

from bilemo.domain.views import parse_version

VERSION_HEADER = "X-API-Version"


def version_from_accept(accept: str | None) -> str | None:
    """Extrait le paramètre `version` du premier type de média qui en porte un."""
    if not accept:
        return None
    for media_range in accept.split(","):
        for param in media_range.split(";")[1:]:
            key, _, value = param.partition("=")
            if key.strip().lower() == "version" and value.strip():
                return value.strip().strip('"')
    return None


def resolve_version(request: Request, default: str) -> str:
    """Version effective de la requête, validée."""
    token = (
        version_from_accept(request.headers.get("accept"))
        or request.headers.get(VERSION_HEADER)
        or default
    ).strip()
    parse_version(token)
    return token
