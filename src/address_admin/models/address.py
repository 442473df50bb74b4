"""Address model — a contact record with a structured postal address."""

from sqlalchemy import Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from address_admin.models.base import Base, TimestampMixin, UUIDMixin


class Address(Base, UUIDMixin, TimestampMixin):
    """Contact record managed through the admin application."""

    __tablename__ = "addresses"

    salutation: Mapped[str | None] = mapped_column(String(50), nullable=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    company: Mapped[str | None] = mapped_column(String(200), nullable=True)
    street: Mapped[str] = mapped_column(String(200), nullable=False)
    house_number: Mapped[str] = mapped_column(String(20), nullable=False)
    postal_code: Mapped[str] = mapped_column(String(20), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    country: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    mobile: Mapped[str | None] = mapped_column(String(50), nullable=True)
    keywords: Mapped[str | None] = mapped_column(Text, nullable=True)
    search_terms: Mapped[str | None] = mapped_column(Text, nullable=True)
    profile_image: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_addresses_created_at", "created_at"),
        Index("ix_addresses_last_name", "last_name"),
    )
