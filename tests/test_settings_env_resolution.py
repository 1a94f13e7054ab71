"""
Tests pour la résolution des variables d'environnement.

Ce module teste le chargement des settings à partir d'un fichier .env personnalisé (`ENV_FILE`).
"""

from __future__ import annotations

import importlib
from pathlib import Path

EXPECTED_TTL = 15
EXPECTED_LIMIT = 5


def test_settings_reads_env_file(tmp_path: Path, monkeypatch) -> None:
    """Les variables d'un fichier `.env` désigné par ENV_FILE sont appliquées aux settings."""
    env = tmp_path / ".env.custom"
    env.write_text(
        "CACHE_TTL_SECONDS=15\nDEFAULT_PAGE_LIMIT=5\nPAGINATION_STRICT=true\nDEFAULT_API_VERSION=2.0\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("ENV_FILE", str(env))

    # Reload settings module to pick up new ENV_FILE
    settings_mod = importlib.import_module("bilemo.core.settings")
    try:
        importlib.reload(settings_mod)
        s = settings_mod.get_settings()
        assert s.CACHE_TTL_SECONDS == EXPECTED_TTL
        assert s.DEFAULT_PAGE_LIMIT == EXPECTED_LIMIT
        assert s.PAGINATION_STRICT is True
        assert s.DEFAULT_API_VERSION == "2.0"
    finally:
        monkeypatch.delenv("ENV_FILE")
        importlib.reload(settings_mod)


def test_defaults() -> None:
    from bilemo.core.settings import Settings

    s = Settings(_env_file=None)
    assert s.DEFAULT_API_VERSION == "1.0"
    assert s.DEFAULT_PAGE_LIMIT == 3
    assert s.CACHE_TTL_SECONDS == 60
    assert s.PAGINATION_STRICT is False
