"""
SQLAlchemy ORM Model: Listing object
One row per imported real-estate listing. Property columns mirror the
normalized OpenImmo record one to one; money and decimal values are stored as
strings so that they compare byte-for-byte with normalized values.
"""

from sqlalchemy import Integer, String, Text, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from models.base import Base
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from models.orm_provider import Provider


def _varchar(length: int = 255):
    return mapped_column(String(length), nullable=False, default='')


def _char():
    """Single character boolean marker: '1' or ''."""
    return mapped_column(String(1), nullable=False, default='')


def _blob():
    """Nullable text holding a serialized list (or long free text)."""
    return mapped_column(Text, nullable=True)


class ListingObject(Base):
    __tablename__ = "cc_fiba_objekte"

    # Metadata
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    pid: Mapped[int] = mapped_column(Integer, ForeignKey("cc_fiba_anbieter.id"), nullable=False)
    ptable: Mapped[str] = _varchar(64)
    tstamp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    date_create: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sorting: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    alias: Mapped[str] = _varchar()
    property_number: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        default='',
        comment="OpenImmo object id (openimmo_obid)"
    )
    betreuer: Mapped[str] = _varchar(16)
    quelle: Mapped[str] = _varchar(64)
    published: Mapped[str] = _char()
    top_object: Mapped[str] = _char()
    notelist: Mapped[str] = _char()
    protection_usergroup: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    inactive: Mapped[str] = _char()

    # Resources (file uuids, lists serialized)
    image: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    gallery: Mapped[Optional[str]] = _blob()
    order_src_gallery: Mapped[Optional[str]] = mapped_column("orderSRC_gallery", Text, nullable=True)
    gallery_fullsize: Mapped[str] = _char()
    expose: Mapped[Optional[str]] = _blob()
    ordersrc_expose: Mapped[Optional[str]] = _blob()
    dokuments: Mapped[Optional[str]] = _blob()
    ordersrc_dokuments: Mapped[Optional[str]] = _blob()

    # Publication
    verfuegbar_ab: Mapped[str] = _varchar()
    abdatum: Mapped[str] = _varchar(10)
    bisdatum: Mapped[str] = _varchar(10)
    user: Mapped[str] = _varchar()

    # Category
    nutzungsart: Mapped[Optional[str]] = _blob()
    objektart: Mapped[str] = _varchar(64)
    objekttyp: Mapped[str] = _varchar(64)

    # Condition
    baujahr: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    zustand: Mapped[str] = _varchar(64)

    # Title and free texts
    objekttitel: Mapped[str] = _varchar()
    dreizeiler: Mapped[Optional[str]] = _blob()
    objektbeschreibung: Mapped[Optional[str]] = _blob()
    lage: Mapped[Optional[str]] = _blob()
    ausstatt_beschr: Mapped[Optional[str]] = _blob()
    sonstige_angaben: Mapped[Optional[str]] = _blob()

    # Geo
    adresse_street: Mapped[str] = _varchar()
    adresse_city: Mapped[str] = _varchar()
    adresse_zipcode: Mapped[str] = _varchar(16)
    adresse_country: Mapped[str] = _varchar(3)
    bundesland: Mapped[str] = _varchar(64)
    adresse: Mapped[str] = _varchar(64)
    objektadresse_freigeben: Mapped[str] = _char()

    # Prices and costs
    waehrung: Mapped[str] = _varchar(3)
    kaufpreis: Mapped[str] = _varchar(16)
    provisionspflichtig: Mapped[str] = _char()
    aussenprovision: Mapped[str] = _varchar()
    innenprovision: Mapped[str] = _varchar()
    nebenkosten: Mapped[str] = _varchar(16)
    betriebskostennetto: Mapped[str] = _varchar(16)
    heizkosten: Mapped[str] = _varchar(16)
    heizkosten_enthalten: Mapped[str] = _char()
    stp_freiplatz_preis: Mapped[str] = _varchar(16)
    stp_carport_preis: Mapped[str] = _varchar(16)
    stp_garage_preis: Mapped[str] = _varchar(16)

    # Areas
    wohnflaeche: Mapped[str] = _varchar(16)
    nutzflaeche: Mapped[str] = _varchar(16)
    gesamtflaeche: Mapped[str] = _varchar(16)
    gartenflaeche: Mapped[str] = _varchar(16)
    bueroflaeche: Mapped[str] = _varchar(16)
    ladenflaeche: Mapped[str] = _varchar(16)
    lagerflaeche: Mapped[str] = _varchar(16)
    gastroflaeche: Mapped[str] = _varchar(16)
    verkaufsflaeche: Mapped[str] = _varchar(16)
    vermietbare_flaeche: Mapped[str] = _varchar(16)

    # Rooms
    anzahl_zimmer: Mapped[str] = _varchar(16)
    anzahl_schlafzimmer: Mapped[str] = _varchar(16)
    anzahl_badezimmer: Mapped[str] = _varchar(16)
    anzahl_balkone: Mapped[str] = _varchar(16)
    anzahl_terrassen: Mapped[str] = _varchar(16)

    # Parking
    anzahl_garagen: Mapped[str] = _varchar(16)
    stp_freiplatz: Mapped[str] = _char()
    stp_carport: Mapped[str] = _char()
    stp_garage: Mapped[str] = _char()
    anzahl_stellplaetze: Mapped[str] = _varchar(16)
    stellplatzart: Mapped[Optional[str]] = _blob()

    # Floors
    etage: Mapped[str] = _varchar(16)
    anzahl_etagen: Mapped[str] = _varchar(16)

    # Equipment
    kamin: Mapped[str] = _char()
    gartennutzung: Mapped[str] = _char()
    wg_geeignet: Mapped[str] = _char()
    raeume_veraenderbar: Mapped[str] = _char()
    rollstuhlgerecht: Mapped[str] = _char()
    klimatisiert: Mapped[str] = _char()
    wintergarten: Mapped[str] = _char()
    sauna: Mapped[str] = _char()
    badewanne: Mapped[str] = _char()
    dusche: Mapped[str] = _char()
    objausstattung__unterkellert: Mapped[str] = _char()
    kueche: Mapped[Optional[str]] = _blob()
    boden: Mapped[Optional[str]] = _blob()
    heizungsart: Mapped[Optional[str]] = _blob()
    fahrstuhl: Mapped[Optional[str]] = _blob()
    ausricht_balkon_terrasse: Mapped[Optional[str]] = _blob()
    moebliert: Mapped[str] = _varchar(16)
    ausstatt_kategorie: Mapped[str] = _varchar(32)

    # Distances
    distanzen_kindergarten: Mapped[str] = _varchar(16)
    distanzen_grundschule: Mapped[str] = _varchar(16)
    distanzen_realschule: Mapped[str] = _varchar(16)
    distanzen_gymnasium: Mapped[str] = _varchar(16)
    distanzen_autobahn: Mapped[str] = _varchar(16)
    distanzen_bus: Mapped[str] = _varchar(16)
    distanzen_einkaufsmoeglichkeiten: Mapped[str] = mapped_column(
        "distanzen_einkaufsmöglichkeiten", String(16), nullable=False, default=''
    )
    distanzen_fernbahnhof: Mapped[str] = _varchar(16)
    distanzen_flughafen: Mapped[str] = _varchar(16)
    distanzen_ubahn: Mapped[str] = _varchar(16)
    distanzen_zentrum: Mapped[str] = _varchar(16)

    # Energy certificate
    energieausweis: Mapped[str] = _char()
    energieausweis_typ: Mapped[str] = _varchar(32)
    gueltig_bis: Mapped[str] = _varchar(10)
    energieverbrauchkennwert: Mapped[str] = _varchar(32)
    energieeffizienzklasse: Mapped[str] = _varchar(8)
    mitwarmwasser: Mapped[str] = _char()
    endenergiebedarf: Mapped[str] = _varchar(32)
    primaerenergietraeger: Mapped[str] = _varchar(64)
    stromwert: Mapped[str] = _varchar(32)
    waermewert: Mapped[str] = _varchar(32)

    __table_args__ = (
        Index('idx_objekte_pid_property_number', 'pid', 'property_number'),
        Index('idx_objekte_published_tstamp', 'published', 'tstamp'),
        {'extend_existing': True}
    )

    provider: Mapped["Provider"] = relationship("Provider", back_populates="listings")

    @property
    def is_published(self) -> bool:
        return self.published == '1'

    def __repr__(self) -> str:
        return f"<ListingObject(id={self.id}, pid={self.pid}, property_number='{self.property_number}')>"
