"""Constructeur de liens hypermédia à partir des routes nommées de l'application.

Les paramètres acceptés par le chemin de la route sont substitués; les autres sont ajoutés en
chaîne de requête dans l'ordre fourni (`/api/customers?page=2&limit=3`).

Seule l'API publique `url_path_for` est utilisée: le sous-ensemble de paramètres qui résout la
route est mémorisé par nom de route, quelle que soit la façon dont les routeurs sont inclus.
"""

from __future__ import annotations

from collections.abc import Mapping
from itertools import combinations
from typing import Any
from urllib.parse import urlencode

from fastapi import FastAPI
from starlette.routing import NoMatchFound


class RouteLinkBuilder:
    def __init__(self, app: FastAPI) -> None:
        self._app = app
        self._path_params: dict[str, frozenset[str]] = {}

    def _resolve(self, name: str, params: Mapping[str, Any]) -> tuple[str, frozenset[str]]:
        known = self._path_params.get(name)
        if known is not None and known.issubset(params):
            try:
                return self._url(name, params, known), known
            except NoMatchFound:
                pass
        keys = list(params)
        for size in range(len(keys), -1, -1):
            for subset in combinations(keys, size):
                in_path = frozenset(subset)
                try:
                    path = self._url(name, params, in_path)
                except NoMatchFound:
                    continue
                self._path_params[name] = in_path
                return path, in_path
        raise LookupError(f"No route named {name!r} accepting {sorted(keys)}")

    def _url(self, name: str, params: Mapping[str, Any], in_path: frozenset[str]) -> str:
        return str(self._app.url_path_for(name, **{k: str(params[k]) for k in in_path}))

    def __call__(self, route: str, params: Mapping[str, Any]) -> str:
        path, in_path = self._resolve(route, params)
        query = {k: v for k, v in params.items() if k not in in_path}
        return f"{path}?{urlencode(query)}" if query else path
