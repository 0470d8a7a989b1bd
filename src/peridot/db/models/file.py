"""File hash and file instance tables."""

from sqlalchemy import BigInteger, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from peridot.db.base import Base

# SQLite only autoincrements a column declared exactly INTEGER PRIMARY KEY
BigId = BigInteger().with_variant(Integer, "sqlite")


class FileHashRow(Base):
    __tablename__ = "file_hashes"

    id: Mapped[int] = mapped_column(BigId, primary_key=True, autoincrement=True)
    hash_s256: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    hash_s1: Mapped[str] = mapped_column(String(40), nullable=False)


class FileInstanceRow(Base):
    __tablename__ = "file_instances"

    id: Mapped[int] = mapped_column(BigId, primary_key=True, autoincrement=True)
    repopull_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("repo_pulls.id", ondelete="CASCADE"), nullable=False, index=True
    )
    filehash_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("file_hashes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    path: Mapped[str] = mapped_column(Text, nullable=False)
