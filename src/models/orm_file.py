"""
SQLAlchemy ORM Model: File index entry
Maps a storage path (relative to the project directory, e.g.
"files/openimmo/0099/AB123/Titel.jpg") to the stable uuid that listing rows
reference.
"""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from models.base import Base
import uuid


class FileRecord(Base):
    __tablename__ = "tl_files"
    __table_args__ = {'extend_existing': True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tstamp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    uuid: Mapped[str] = mapped_column(String(36), nullable=False, unique=True)
    type: Mapped[str] = mapped_column(String(16), nullable=False, default='file')
    path: Mapped[str] = mapped_column(String(1022), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default='')
    extension: Mapped[str] = mapped_column(String(16), nullable=False, default='')
    hash: Mapped[str] = mapped_column(String(32), nullable=False, default='')

    @classmethod
    def generate_uuid(cls) -> str:
        return str(uuid.uuid4())

    def __repr__(self) -> str:
        return f"<FileRecord(path='{self.path}', uuid='{self.uuid}')>"
