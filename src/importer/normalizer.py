"""
Record Normalizer
Turns an OpenImmo <immobilie> element into a flat ObjectData record whose
property bag always contains the full, fixed set of listing columns.
"""

import logging
import re
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Dict, List, Optional, Sequence, Tuple

from importer.exceptions import NormalizationError
from importer.object_data import ObjectData, PropertyValue, ResourceType
from importer.openimmo_tree import XmlNode
from importer.php_serialize import serialize_list

logger = logging.getLogger(__name__)

# (stored label, OpenImmo attribute) in storage order
USAGE_FLAGS = (('Wohnen', 'WOHNEN'), ('Gewerbe', 'GEWERBE'), ('Anlage', 'ANLAGE'), ('WAZ', 'WAZ'))
KITCHEN_FLAGS = (('OFFEN', 'OFFEN'), ('EBK', 'EBK'), ('PANTRY', 'PANTRY'))
FLOOR_FLAGS = (
    ('Dielen', 'DIELEN'), ('Doppelboden', 'DOPPELBODEN'), ('Estrich', 'ESTRICH'),
    ('Fertigparkett', 'FERTIGPARKETT'), ('Fliesen', 'FLIESEN'), ('Granit', 'GRANIT'),
    ('Kunststoff', 'KUNSTSTOFF'), ('Laminat', 'LAMINAT'), ('Linoleum', 'LINOLEUM'),
    ('Marmor', 'MARMOR'), ('Parkett', 'PARKETT'), ('Stein', 'STEIN'),
    ('Teppich', 'TEPPICH'), ('Terrakotta', 'TERRAKOTTA'),
)
HEATING_FLAGS = (
    ('Etage', 'ETAGE'), ('Fern', 'FERN'), ('Fussboden', 'FUSSBODEN'),
    ('Ofen', 'OFEN'), ('Zentral', 'ZENTRAL'),
)
ELEVATOR_FLAGS = (('lasten', 'LASTEN'), ('personen', 'PERSONEN'))
ORIENTATION_FLAGS = (
    ('nord', 'NORD'), ('ost', 'OST'), ('sued', 'SUED'), ('west', 'WEST'),
    ('nordost', 'NORDOST'), ('nordwest', 'NORDWEST'), ('suedost', 'SUEDOST'), ('suedwest', 'SUEDWEST'),
)
PARKING_FLAGS = (
    ('Garage', 'GARAGE'), ('Tiefgarage', 'TIEFGARAGE'), ('Carport', 'CARPORT'),
    ('Freiplatz', 'FREIPLATZ'), ('Parkhaus', 'PARKHAUS'), ('Duplex', 'DUPLEX'),
)

# (objektart label, child element, type attribute); the first match wins
OBJECT_TYPES = (
    ('Haus', 'haus', 'haustyp'),
    ('Wohnung', 'wohnung', 'wohnungtyp'),
    ('Grundstück', 'grundstueck', 'grundst_typ'),
    ('Zimmer', 'zimmer', 'zimmertyp'),
    ('Büro/Praxen', 'buero_praxen', 'buero_typ'),
    ('Laden/Einzelhandel', 'einzelhandel', 'handel_typ'),
    ('Sonstige', 'sonstige', 'sonstige_typ'),
)

DISTANCES = (
    ('distanzen_kindergarten', 'KINDERGAERTEN'),
    ('distanzen_grundschule', 'GRUNDSCHULE'),
    ('distanzen_realschule', 'REALSCHULE'),
    ('distanzen_gymnasium', 'GYMNASIUM'),
    ('distanzen_autobahn', 'AUTOBAHN'),
    ('distanzen_bus', 'BUS'),
    ('distanzen_einkaufsmöglichkeiten', 'EINKAUFSMOEGLICHKEITEN'),
    ('distanzen_fernbahnhof', 'FERNBAHNHOF'),
    ('distanzen_flughafen', 'FLUGHAFEN'),
    ('distanzen_ubahn', 'US_BAHN'),
    ('distanzen_zentrum', 'ZENTRUM'),
)

AREAS = (
    'wohnflaeche', 'nutzflaeche', 'gesamtflaeche', 'gartenflaeche', 'bueroflaeche',
    'ladenflaeche', 'lagerflaeche', 'gastroflaeche', 'verkaufsflaeche', 'vermietbare_flaeche',
)
ROOMS = ('anzahl_zimmer', 'anzahl_schlafzimmer', 'anzahl_badezimmer', 'anzahl_balkone', 'anzahl_terrassen')

BOOLEAN_EQUIPMENT = (
    'kamin', 'gartennutzung', 'wg_geeignet', 'raeume_veraenderbar',
    'rollstuhlgerecht', 'klimatisiert', 'wintergarten', 'sauna',
)

ATTACHMENT_GROUPS = {
    'TITELBILD': ResourceType.TITLE_IMAGE,
    'BILD': ResourceType.GALLERY_IMAGE,
    'DOKUMENTE': ResourceType.DOCUMENT,
}

# Full property schema, in the order normalize() emits it
PROPERTY_COLUMNS: Tuple[str, ...] = (
    'verfuegbar_ab', 'abdatum', 'bisdatum', 'user',
    'nutzungsart', 'objektart', 'objekttyp',
    'baujahr', 'zustand',
    'objekttitel', 'dreizeiler', 'objektbeschreibung', 'lage', 'ausstatt_beschr', 'sonstige_angaben',
    'adresse_street', 'adresse_city', 'adresse_zipcode', 'adresse_country', 'bundesland', 'adresse',
    'objektadresse_freigeben',
    'waehrung', 'kaufpreis', 'provisionspflichtig', 'aussenprovision', 'innenprovision',
    'nebenkosten', 'betriebskostennetto', 'heizkosten', 'heizkosten_enthalten',
    'stp_freiplatz_preis', 'stp_carport_preis', 'stp_garage_preis',
    *AREAS,
    *ROOMS,
    'anzahl_garagen', 'stp_freiplatz', 'stp_carport', 'stp_garage', 'anzahl_stellplaetze', 'stellplatzart',
    'etage', 'anzahl_etagen',
    *BOOLEAN_EQUIPMENT,
    'badewanne', 'dusche', 'objausstattung__unterkellert',
    'kueche', 'boden', 'heizungsart', 'fahrstuhl', 'ausricht_balkon_terrasse',
    'moebliert', 'ausstatt_kategorie',
    *(column for column, _ in DISTANCES),
    'energieausweis', 'energieausweis_typ', 'gueltig_bis', 'energieverbrauchkennwert',
    'energieeffizienzklasse', 'mitwarmwasser', 'endenergiebedarf', 'primaerenergietraeger',
    'stromwert', 'waermewert',
)

AGENT_COLUMNS = ('external_id', 'anrede', 'firstname', 'lastname', 'email_direkt', 'tel_durchwahl')

_DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M:%S%z",
    "%d.%m.%Y",
)
_LEADING_INT = re.compile(r'^\s*([+-]?\d+)')


def char_bool(state: Optional[bool]) -> str:
    return '1' if state else ''


def serialize_flags(node: XmlNode, flags: Sequence[Tuple[str, str]]) -> Optional[str]:
    """Encode the labels of all set flag attributes, None if none is set."""
    labels = [label for label, attribute in flags if node.attr_bool(attribute)]
    return serialize_list(labels) if labels else None


def _decimal(value: Optional[str]) -> Optional[Decimal]:
    if value is None:
        return None
    value = value.strip()
    if ',' in value and '.' not in value:
        value = value.replace(',', '.')
    try:
        result = Decimal(value)
    except InvalidOperation:
        return None
    return result if result.is_finite() else None


def format_money(value: Optional[str]) -> str:
    """Two decimals, '.' separator, no grouping; 0.00 if missing."""
    amount = _decimal(value)
    if amount is None:
        amount = Decimal(0)
    with localcontext() as context:
        # quantize needs room for every integer digit plus the two decimals
        context.prec = max(context.prec, amount.adjusted() + 3)
        return str(amount.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP))


def format_number(value: Optional[str]) -> str:
    """Numeric text without insignificant decimals ('160.00' -> '160')."""
    number = _decimal(value)
    if number is None:
        return ''
    if number == number.to_integral_value():
        return str(int(number))
    return format(number.normalize(), 'f')


def format_int(value: Optional[str]) -> int:
    match = _LEADING_INT.match(value or '')
    return int(match.group(1)) if match else 0


def format_date(value: Optional[str]) -> str:
    """DD.MM.YYYY, or '' if the value is missing or not a date."""
    if not value:
        return ''
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).strftime('%d.%m.%Y')
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(value.replace('Z', '+00:00')).strftime('%d.%m.%Y')
    except ValueError:
        logger.debug(f"Could not parse date: {value}")
        return ''


def _optional_text(node: XmlNode, path: str) -> Optional[str]:
    return node.text(path, default=None)


def _join(*parts: Optional[str], separator: str = ' ') -> str:
    return separator.join(part for part in parts if part)


class Normalizer:
    """Reads an <immobilie> element and outputs it in normalized form."""

    def normalize(self, provider_key: str, immobilie: XmlNode) -> ObjectData:
        """
        Normalize one listing entry.

        Args:
            provider_key: <anbieternr> of the enclosing provider
            immobilie: The listing entry

        Returns:
            ObjectData

        Raises:
            NormalizationError: If the entry has no object id
        """
        object_key = immobilie.text('verwaltung_techn/openimmo_obid')
        if not object_key:
            raise NormalizationError('Listing does not contain a valid object id.')

        return ObjectData(
            provider_key=provider_key,
            object_key=object_key,
            properties=self.compile_properties(immobilie),
            agent=self.compile_agent(immobilie),
            resources=self.compile_resources(immobilie),
        )

    def compile_properties(self, immobilie: XmlNode) -> Dict[str, PropertyValue]:
        properties: Dict[str, PropertyValue] = {}
        for group in (
            self._publication,
            self._category,
            self._condition,
            self._free_texts,
            self._geo,
            self._prices,
            self._areas,
            self._parking,
            self._floors,
            self._equipment,
            self._distances,
            self._energy_certificate,
        ):
            properties.update(group(immobilie))

        # Stable column order regardless of group layout
        return {column: properties[column] for column in PROPERTY_COLUMNS}

    def compile_agent(self, immobilie: XmlNode) -> Dict[str, PropertyValue]:
        contact = immobilie.find('kontaktperson')
        return {
            'external_id': contact.text('personennummer'),
            'anrede': contact.text('anrede'),
            'firstname': contact.text('vorname'),
            'lastname': contact.text('name'),
            'email_direkt': contact.text('email_direkt'),
            'tel_durchwahl': contact.text('tel_durchw'),
        }

    def compile_resources(self, immobilie: XmlNode) -> Dict[str, ResourceType]:
        resources: Dict[str, ResourceType] = {}
        for attachment in immobilie.findall('anhaenge/anhang'):
            path = attachment.text('daten/pfad')
            if not path:
                continue
            group = (attachment.attr('gruppe') or '').upper()
            resources[path] = ATTACHMENT_GROUPS.get(group, ResourceType.OTHER)
        return resources

    # Property groups

    def _publication(self, immobilie: XmlNode) -> Dict[str, PropertyValue]:
        management = immobilie.find('verwaltung_objekt')
        return {
            'verfuegbar_ab': management.text('verfuegbar_ab'),
            'abdatum': format_date(management.text('abdatum')),
            'bisdatum': format_date(management.text('bisdatum')),
            'user': immobilie.text('kontaktperson/email_zentrale'),
            'objektadresse_freigeben': char_bool(management.as_bool('objektadresse_freigeben')),
        }

    def _category(self, immobilie: XmlNode) -> Dict[str, PropertyValue]:
        category = immobilie.find('objektkategorie')
        object_type = category.find('objektart')

        label, subtype = '', ''
        for candidate, element, attribute in OBJECT_TYPES:
            value = object_type.find(element).attr(attribute)
            if value:
                label, subtype = candidate, value
                break

        subtype = subtype.lower()
        return {
            'nutzungsart': serialize_flags(category.find('nutzungsart'), USAGE_FLAGS),
            'objektart': label,
            'objekttyp': subtype[:1].upper() + subtype[1:],
        }

    def _condition(self, immobilie: XmlNode) -> Dict[str, PropertyValue]:
        condition = immobilie.find('zustand_angaben')
        return {
            'baujahr': format_int(condition.text('baujahr')),
            'zustand': condition.find('zustand').attr('zustand_art', ''),
        }

    def _free_texts(self, immobilie: XmlNode) -> Dict[str, PropertyValue]:
        texts = immobilie.find('freitexte')
        return {
            'objekttitel': texts.text('objekttitel'),
            'dreizeiler': _optional_text(texts, 'dreizeiler'),
            'objektbeschreibung': _optional_text(texts, 'objektbeschreibung'),
            'lage': _optional_text(texts, 'lage'),
            'ausstatt_beschr': _optional_text(texts, 'ausstatt_beschr'),
            'sonstige_angaben': _optional_text(texts, 'sonstige_angaben'),
        }

    def _geo(self, immobilie: XmlNode) -> Dict[str, PropertyValue]:
        geo = immobilie.find('geo')
        coordinates = geo.find('geokoordinaten')
        return {
            'adresse_street': _join(geo.text('strasse'), geo.text('hausnummer')),
            'adresse_city': geo.text('ort'),
            'adresse_zipcode': geo.text('plz'),
            'adresse_country': geo.find('land').attr('iso_land', ''),
            'bundesland': geo.text('bundesland'),
            'adresse': _join(coordinates.attr('breitengrad'), coordinates.attr('laengengrad')),
        }

    def _prices(self, immobilie: XmlNode) -> Dict[str, PropertyValue]:
        prices = immobilie.find('preise')

        def parking_price(element: str) -> str:
            parking = prices.find(element)
            price = parking.attr('stellplatzkaufpreis')
            if _decimal(price) is None:
                price = parking.attr('stellplatzmiete')
            return format_money(price)

        return {
            'waehrung': prices.find('waehrung').attr('iso_waehrung', ''),
            'kaufpreis': format_money(prices.text('kaufpreis', default=None)),
            'provisionspflichtig': char_bool(prices.as_bool('provisionspflichtig')),
            'aussenprovision': prices.text('aussen_courtage'),
            'innenprovision': prices.text('innen_courtage'),
            'nebenkosten': format_number(prices.text('nebenkosten', default=None)),
            'betriebskostennetto': format_number(prices.text('betriebskostennetto', default=None)),
            'heizkosten': format_number(prices.text('heizkosten', default=None)),
            'heizkosten_enthalten': char_bool(prices.as_bool('heizkosten_enthalten')),
            'stp_freiplatz_preis': parking_price('stp_freiplatz'),
            'stp_carport_preis': parking_price('stp_carport'),
            'stp_garage_preis': parking_price('stp_garage'),
        }

    def _areas(self, immobilie: XmlNode) -> Dict[str, PropertyValue]:
        areas = immobilie.find('flaechen')
        return {
            column: format_number(areas.text(column, default=None))
            for column in AREAS + ROOMS
        }

    def _parking(self, immobilie: XmlNode) -> Dict[str, PropertyValue]:
        prices = immobilie.find('preise')

        def has_spaces(element: str) -> str:
            return char_bool(format_int(prices.find(element).attr('anzahl')) > 0)

        return {
            'anzahl_garagen': prices.find('stp_garage').attr('anzahl', '').strip(),
            'stp_freiplatz': has_spaces('stp_freiplatz'),
            'stp_carport': has_spaces('stp_carport'),
            'stp_garage': has_spaces('stp_garage'),
            'anzahl_stellplaetze': format_number(immobilie.text('flaechen/anzahl_stellplaetze', default=None)),
            'stellplatzart': serialize_flags(immobilie.find('ausstattung/stellplatzart'), PARKING_FLAGS),
        }

    def _floors(self, immobilie: XmlNode) -> Dict[str, PropertyValue]:
        geo = immobilie.find('geo')
        return {
            'etage': geo.text('etage'),
            'anzahl_etagen': geo.text('anzahl_etagen'),
        }

    def _equipment(self, immobilie: XmlNode) -> Dict[str, PropertyValue]:
        equipment = immobilie.find('ausstattung')
        bath = equipment.find('bad')
        basement = equipment.find('unterkellert').attr('keller')

        properties: Dict[str, PropertyValue] = {
            column: char_bool(equipment.as_bool(column)) for column in BOOLEAN_EQUIPMENT
        }
        properties.update({
            'badewanne': char_bool(bath.attr_bool('WANNE')),
            'dusche': char_bool(bath.attr_bool('DUSCHE')),
            'objausstattung__unterkellert': char_bool(bool(basement) and basement.upper() != 'NEIN'),
            'kueche': serialize_flags(equipment.find('kueche'), KITCHEN_FLAGS),
            'boden': serialize_flags(equipment.find('boden'), FLOOR_FLAGS),
            'heizungsart': serialize_flags(equipment.find('heizungsart'), HEATING_FLAGS),
            'fahrstuhl': serialize_flags(equipment.find('fahrstuhl'), ELEVATOR_FLAGS),
            'ausricht_balkon_terrasse': serialize_flags(
                equipment.find('ausricht_balkon_terrasse'), ORIENTATION_FLAGS
            ),
            'moebliert': equipment.find('moebliert').attr('moeb', ''),
            'ausstatt_kategorie': equipment.text('ausstatt_kategorie'),
        })
        return properties

    def _distances(self, immobilie: XmlNode) -> Dict[str, PropertyValue]:
        distances: Dict[str, str] = {}
        for item in immobilie.findall('infrastruktur/distanzen'):
            target = (item.attr('distanz_zu') or '').upper()
            if target:
                distances[target] = item.text()
        return {column: distances.get(target, '') for column, target in DISTANCES}

    def _energy_certificate(self, immobilie: XmlNode) -> Dict[str, PropertyValue]:
        certificates: List[XmlNode] = immobilie.findall('zustand_angaben/energiepass')
        certificate = certificates[0] if certificates else XmlNode()
        return {
            'energieausweis': char_bool(bool(certificate)),
            'energieausweis_typ': certificate.text('epart'),
            'gueltig_bis': format_date(certificate.text('gueltig_bis')),
            'energieverbrauchkennwert': certificate.text('energieverbrauchkennwert'),
            'energieeffizienzklasse': certificate.text('wertklasse'),
            'mitwarmwasser': char_bool(certificate.as_bool('mitwarmwasser')),
            'endenergiebedarf': certificate.text('endenergiebedarf'),
            'primaerenergietraeger': certificate.text('primaerenergietraeger'),
            'stromwert': certificate.text('stromwert'),
            'waermewert': certificate.text('waermewert'),
        }
