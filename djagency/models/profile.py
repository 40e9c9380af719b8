"""Profile model: the unified person record for admins, producers and DJs."""
import uuid
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, Date, DateTime, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from djagency.core.database import Base

if TYPE_CHECKING:
    from djagency.models.media_file import MediaFile
    from djagency.models.producer import Producer


class ProfileRole(str, Enum):
    """Role flag branching what a profile may see and do."""
    ADMIN = "admin"
    PRODUCER = "producer"
    DJ = "dj"


class Profile(Base):
    """
    Person record.

    The id is the Supabase auth user id. Artist fields are only filled for
    role='dj'; company data for producers lives in the producers table.
    """

    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    role: Mapped[str] = mapped_column(
        String(20),
        default=ProfileRole.DJ.value,
        nullable=False,
        index=True,
    )
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Contact
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    whatsapp: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    avatar_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    status: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)

    # Artist fields (role = dj)
    artist_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    real_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    genre: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    base_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    rating: Mapped[Optional[Decimal]] = mapped_column(Numeric(3, 2), nullable=True)
    rider_requirements: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    birth_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    cpf: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    pix_key: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Social links
    instagram_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    soundcloud_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    youtube_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    tiktok_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    portfolio_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    # Relationships
    producer: Mapped[Optional["Producer"]] = relationship(
        "Producer",
        back_populates="profile",
        uselist=False,
    )
    media_files: Mapped[List["MediaFile"]] = relationship(
        "MediaFile",
        back_populates="dj",
    )

    @property
    def is_admin_user(self) -> bool:
        return bool(self.is_admin) or self.role == ProfileRole.ADMIN.value

    @property
    def display_name(self) -> str:
        return self.artist_name or self.full_name or self.email

    def __repr__(self) -> str:
        return f"<Profile {self.id} role={self.role} name={self.display_name}>"
