"""
Repositories SQLAlchemy pour les ressources exposées par l'API.

Chaque dépôt est construit avec une session; `save`/`remove` se contentent d'un `flush`, le commit
reste à la charge du service appelant (qui invalide le cache juste après).
"""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from bilemo.infra.repo.models import Brand, Customer, Smartphone, User


def _offset(page: int, limit: int) -> int:
    return (page - 1) * limit


class _SessionRepo:
    model: type

    def __init__(self, session: Session) -> None:
        """Construit le repo avec une session (SQLAlchemy)."""
        self._session = session

    def get(self, entity_id: int):
        return self._session.get(self.model, entity_id)

    def save(self, entity) -> None:
        self._session.add(entity)
        self._session.flush()

    def remove(self, entity) -> None:
        self._session.delete(entity)
        self._session.flush()


class UserRepo(_SessionRepo):
    model = User

    def get_by_email(self, email: str) -> User | None:
        stmt = select(User).where(User.email == email)
        return self._session.execute(stmt).scalars().first()


class BrandRepo(_SessionRepo):
    model = Brand


class CustomerRepo(_SessionRepo):
    """Clients, toujours filtrés par utilisateur propriétaire pour les listes."""

    model = Customer

    def count_by_owner(self, owner_id: int) -> int:
        stmt = select(func.count(Customer.id)).where(Customer.owner_id == owner_id)
        return int(self._session.execute(stmt).scalar_one())

    def page_by_owner(self, owner_id: int, page: int, limit: int) -> Sequence[Customer]:
        """Retourne la page demandée (vide si `page < 1` ou au-delà de la dernière)."""
        if page < 1 or limit < 1:
            return []
        stmt = (
            select(Customer)
            .where(Customer.owner_id == owner_id)
            .order_by(Customer.id)
            .offset(_offset(page, limit))
            .limit(limit)
        )
        return self._session.execute(stmt).scalars().all()

    def email_taken(self, owner_id: int, email: str, exclude_id: int | None = None) -> bool:
        """Vrai si l'utilisateur possède déjà un client avec cet e-mail (contrainte unique)."""
        stmt = select(Customer.id).where(Customer.owner_id == owner_id, Customer.email == email)
        if exclude_id is not None:
            stmt = stmt.where(Customer.id != exclude_id)
        return self._session.execute(stmt.limit(1)).first() is not None


class SmartphoneRepo(_SessionRepo):
    model = Smartphone

    def count(self) -> int:
        return int(self._session.execute(select(func.count(Smartphone.id))).scalar_one())

    def page(self, page: int, limit: int) -> Sequence[Smartphone]:
        if page < 1 or limit < 1:
            return []
        stmt = select(Smartphone).order_by(Smartphone.id).offset(_offset(page, limit)).limit(limit)
        return self._session.execute(stmt).scalars().all()
