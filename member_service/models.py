import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from shared.database import Base

CURRENT_SCHEMA_VERSION = 2


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class Member(Base):
    __tablename__ = "member"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    slug: Mapped[str] = mapped_column(String(255), unique=True, index=True)

    fullname: Mapped[str] = mapped_column(String(255))
    category: Mapped[str] = mapped_column(String(20), index=True)  # college/job/marketing/development

    image_url: Mapped[str] = mapped_column(String(1024))
    certificate_urls: Mapped[list] = mapped_column(JSON, default=list)

    linkedin_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    quotes: Mapped[list | None] = mapped_column(JSON, nullable=True)  # [{"quote": ..., "author": ...}]

    # category-specific payload, keys depend on `category`
    details: Mapped[dict] = mapped_column(JSON, default=dict)

    schema_version: Mapped[int] = mapped_column(Integer, default=CURRENT_SCHEMA_VERSION)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, onupdate=_now)
