"""MediaFile model: attachments scoped to a DJ profile."""
import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import BigInteger, DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from djagency.core.database import Base

if TYPE_CHECKING:
    from djagency.models.profile import Profile


class MediaCategory(str, Enum):
    """Kind of DJ attachment."""
    PHOTO = "photo"
    AUDIO = "audio"
    VIDEO = "video"
    PRESS_KIT = "press_kit"
    DOCUMENT = "document"
    OTHER = "other"


class MediaFile(Base):
    """File uploaded to object storage and attached to a DJ."""

    __tablename__ = "media_files"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    dj_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_url: Mapped[str] = mapped_column(String(500), nullable=False)
    file_type: Mapped[str] = mapped_column(String(30), default=MediaCategory.OTHER.value, nullable=False)
    mime_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    file_size: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    storage_path: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

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

    dj: Mapped["Profile"] = relationship(
        "Profile",
        back_populates="media_files",
    )

    def __repr__(self) -> str:
        return f"<MediaFile {self.id} dj={self.dj_id} type={self.file_type}>"
