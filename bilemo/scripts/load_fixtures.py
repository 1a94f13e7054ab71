"""
Script de chargement des données de démonstration.

Utilisation:
  python -m bilemo.scripts.load_fixtures [--database-url sqlite:///./bilemo.db] [--seed 42]

Crée un utilisateur standard (democlient@demo.com), un administrateur (admin@bilemo.com), dix
clients rattachés à l'utilisateur standard et un lot aléatoire de smartphones pour six marques.
Mot de passe des deux comptes: Secret123.
"""

from __future__ import annotations

import argparse
import random
from datetime import date
from decimal import Decimal

import structlog

from bilemo.core.http_constants import ROLE_ADMIN, ROLE_USER
from bilemo.core.logging import setup_logging
from bilemo.core.settings import get_settings
from bilemo.domain.auth import hash_password
from bilemo.infra.repo.db import get_engine, get_session_factory, session_scope
from bilemo.infra.repo.models import Base, Brand, Customer, Smartphone, User

log = structlog.get_logger(__name__)

BRANDS = ["Apple", "Huawei", "Samsung", "Sony", "Google", "Xiaomi"]
DEMO_PASSWORD = "Secret123"


def load(session, rng: random.Random) -> dict[str, int]:
    """Insère les fixtures dans la session fournie et retourne les volumes créés."""
    std_user = User(
        email="democlient@demo.com",
        roles=[ROLE_USER],
        password_hash=hash_password(DEMO_PASSWORD),
    )
    admin = User(
        email="admin@bilemo.com",
        roles=[ROLE_ADMIN],
        password_hash=hash_password(DEMO_PASSWORD),
    )
    session.add_all([std_user, admin])

    for i in range(10):
        session.add(
            Customer(
                email=f"user{i}@demo.com",
                first_name=f"John-{i}",
                last_name=f"Doe-{i}",
                creation_date=date.today(),
                owner=std_user,
            )
        )

    phones = 0
    for brand_name in BRANDS:
        brand = Brand(name=brand_name)
        session.add(brand)
        for j in range(rng.randint(5, 15)):
            session.add(
                Smartphone(
                    name=f"DemoSmartphone : {j}",
                    description=f"Demo description : {j}",
                    screen_size=Decimal(rng.randint(45, 65)) / 10,
                    price=Decimal(rng.randint(3500, 8000)) / 10,
                    brand=brand,
                )
            )
            phones += 1
    return {"users": 2, "customers": 10, "brands": len(BRANDS), "smartphones": phones}


def main() -> None:
    parser = argparse.ArgumentParser(description="Load BileMo demo fixtures")
    parser.add_argument("--database-url", type=str, default=None)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--drop", action="store_true", help="drop and recreate all tables first")
    args = parser.parse_args()

    setup_logging()
    engine = get_engine(args.database_url or get_settings().DATABASE_URL)
    if args.drop:
        Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)

    with session_scope(get_session_factory(engine)) as session:
        counts = load(session, random.Random(args.seed))
    log.info("fixtures_loaded", **counts)


if __name__ == "__main__":
    main()
