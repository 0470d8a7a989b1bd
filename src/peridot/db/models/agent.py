"""Agent table."""

from sqlalchemy import Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from peridot.db.base import Base


class AgentRow(Base):
    __tablename__ = "agents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    address: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    port: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_codereader: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_spdxreader: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_codewriter: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_spdxwriter: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
