from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.database import Base


class College(Base):
    __tablename__ = "college"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    collegename: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    image_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    linkedin_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    projects: Mapped[list["Project"]] = relationship(
        back_populates="college",
        cascade="all, delete-orphan",
        order_by="Project.id",
    )


class Project(Base):
    __tablename__ = "project"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    college_id: Mapped[int] = mapped_column(Integer, ForeignKey("college.id"), index=True)
    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[str] = mapped_column(Text, default="")
    image_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    project_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    college: Mapped[College] = relationship(back_populates="projects")
