"""
Actor persistence models.

Clients and providers live in separate tables with their own unique
constraints on ``username`` and ``email``. Uniqueness is enforced by the
database only; the application reacts to the constraint violation.
"""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from marketplace.core.database import Base


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TimestampMixin:
    """Creation and modification timestamps set on the Python side."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )


class ActorModelMixin(TimestampMixin):
    """Identity columns shared by every actor table."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id} username={self.username!r}>"


class ClientModel(ActorModelMixin, Base):
    """Client persistence model."""

    __tablename__ = "clients"
    __table_args__ = {"sqlite_autoincrement": True}

    reviews: Mapped[list["ReviewModel"]] = relationship(
        back_populates="client", lazy="raise"
    )


class ProviderModel(ActorModelMixin, Base):
    """Provider persistence model."""

    __tablename__ = "providers"
    __table_args__ = (
        Index("ix_providers_latitude_longitude", "latitude", "longitude"),
        {"sqlite_autoincrement": True},
    )

    name: Mapped[str | None] = mapped_column(String(255))
    attributes: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)

    country: Mapped[str | None] = mapped_column(String(120))
    state: Mapped[str | None] = mapped_column(String(120))
    city: Mapped[str | None] = mapped_column(String(120))
    street: Mapped[str | None] = mapped_column(String(255))
    zipcode: Mapped[str | None] = mapped_column(String(32))

    latitude: Mapped[float | None] = mapped_column(Float)
    longitude: Mapped[float | None] = mapped_column(Float)

    reviews: Mapped[list["ReviewModel"]] = relationship(
        back_populates="provider",
        cascade="all, delete-orphan",
        order_by="ReviewModel.id",
        lazy="raise",
    )


class ReviewModel(Base):
    """A client's review of a provider."""

    __tablename__ = "reviews"
    __table_args__ = (CheckConstraint("rating BETWEEN 1 AND 5", name="rating_range"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    provider_id: Mapped[int] = mapped_column(
        ForeignKey("providers.id", ondelete="CASCADE"), index=True, nullable=False
    )
    client_id: Mapped[int | None] = mapped_column(
        ForeignKey("clients.id", ondelete="SET NULL"), index=True
    )
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    body: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )

    provider: Mapped[ProviderModel] = relationship(back_populates="reviews", lazy="raise")
    client: Mapped[ClientModel | None] = relationship(back_populates="reviews", lazy="raise")


__all__ = ["ClientModel", "ProviderModel", "ReviewModel"]
