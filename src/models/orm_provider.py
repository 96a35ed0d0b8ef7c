"""
SQLAlchemy ORM Models: Provider and Agent
A provider (Anbieter) is an upstream real-estate source identified by its
OpenImmo provider number; agents (Betreuer) are the contact persons assigned
to its listings.
"""

from sqlalchemy import Integer, String, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from models.base import Base
from typing import List, TYPE_CHECKING

if TYPE_CHECKING:
    from models.orm_listing import ListingObject


class Provider(Base):
    __tablename__ = "cc_fiba_anbieter"
    __table_args__ = {'extend_existing': True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tstamp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    firma: Mapped[str] = mapped_column(String(255), nullable=False, default='')

    # OpenImmo provider number (<anbieternr>) used to match archive contents
    onoffice_anbieter_nummer: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        default='',
        comment="External provider key as transmitted in the archive"
    )
    # '1' if the provider opted into the OpenImmo import
    onoffice_konverter: Mapped[str] = mapped_column(String(1), nullable=False, default='')

    agents: Mapped[List["Agent"]] = relationship("Agent", back_populates="provider")
    listings: Mapped[List["ListingObject"]] = relationship("ListingObject", back_populates="provider")

    def __repr__(self) -> str:
        return f"<Provider(id={self.id}, anbieternr='{self.onoffice_anbieter_nummer}')>"


class Agent(Base):
    __tablename__ = "cc_fiba_anbieter_betreuer"
    __table_args__ = {'extend_existing': True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    pid: Mapped[int] = mapped_column(Integer, ForeignKey("cc_fiba_anbieter.id"), nullable=False)
    tstamp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Matches <kontaktperson><personennummer>
    external_id: Mapped[str] = mapped_column(String(64), nullable=False, default='')
    firstname: Mapped[str] = mapped_column(String(255), nullable=False, default='')
    lastname: Mapped[str] = mapped_column(String(255), nullable=False, default='')

    provider: Mapped["Provider"] = relationship("Provider", back_populates="agents")

    def __repr__(self) -> str:
        return f"<Agent(id={self.id}, pid={self.pid}, external_id='{self.external_id}')>"
