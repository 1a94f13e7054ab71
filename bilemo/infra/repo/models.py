"""SQLAlchemy models for the persistence layer (users, brands, customers, smartphones)."""

from __future__ import annotations

from datetime import date

from sqlalchemy import (
    JSON,
    Column,
    Date,
    ForeignKey,
    Integer,
    MetaData,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, relationship


class Base(DeclarativeBase):
    """Classe de base pour tous les modèles SQLAlchemy."""

    metadata = MetaData()


class User(Base):
    """Compte client de l'API (société revendeuse) ou administrateur."""

    __tablename__ = "user"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(180), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    roles = Column(JSON, nullable=False, default=list)

    customers = relationship("Customer", back_populates="owner", cascade="all, delete-orphan")


class Brand(Base):
    """Marque de smartphones."""

    __tablename__ = "brand"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, unique=True)

    smartphones = relationship("Smartphone", back_populates="brand")


class Customer(Base):
    """Client final rattaché à un utilisateur de l'API."""

    __tablename__ = "customer"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(125), nullable=False)
    first_name = Column(String(80), nullable=False)
    last_name = Column(String(80), nullable=False)
    phone_number = Column(String(20), nullable=True)
    creation_date = Column(Date, nullable=False, default=date.today)
    owner_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True)

    owner = relationship("User", back_populates="customers")

    __table_args__ = (UniqueConstraint("owner_id", "email", name="uq_customer_owner_email"),)


class Smartphone(Base):
    """Produit du catalogue."""

    __tablename__ = "smartphone"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(80), nullable=False)
    description = Column(Text, nullable=False)
    screen_size = Column(Numeric(10, 1), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    brand_id = Column(Integer, ForeignKey("brand.id"), nullable=True, index=True)

    brand = relationship("Brand", back_populates="smartphones")
