"""Schemas for DJ media files."""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class MediaFileResponse(BaseModel):
    """Attachment stored for a DJ."""
    id: UUID
    dj_id: UUID
    file_name: str
    file_url: str
    file_type: str
    mime_type: Optional[str] = None
    file_size: Optional[int] = None
    storage_path: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
