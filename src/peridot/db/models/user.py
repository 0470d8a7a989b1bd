"""User table."""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from peridot.db.base import Base


class UserRow(Base):
    __tablename__ = "users"

    # User IDs are chosen by the caller, not generated
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    github: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    access_level: Mapped[int] = mapped_column(Integer, nullable=False)
