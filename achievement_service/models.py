import datetime as dt

from sqlalchemy import JSON, Date, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from shared.database import Base


class Achievement(Base):
    __tablename__ = "achievement"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    image_urls: Mapped[list] = mapped_column(JSON, default=list)
