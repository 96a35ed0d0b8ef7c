"""
OpenImmo Sync - pytest Configuration and Fixtures

Provides shared test fixtures for:
- In-memory SQLite session with the listing, provider and file index tables
- Sample providers
- Builders for OpenImmo XML documents and zip archives
"""

import pytest
import zipfile
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple

from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from models import Base, Provider

FIXTURES_DIR = Path(__file__).parent / 'fixtures'


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def engine():
    """Fresh in-memory database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    session = Session(bind=engine, expire_on_commit=False)
    yield session
    session.close()


@pytest.fixture
def provider(db_session):
    """
    A provider that opted into the import.

    Returns:
        Provider with anbieternr '0099'
    """
    provider = Provider(
        firma='Musterimmobilien GmbH',
        onoffice_anbieter_nummer='0099',
        onoffice_konverter='1'
    )
    db_session.add(provider)
    db_session.commit()
    return provider


# ============================================================================
# OpenImmo Document Builders
# ============================================================================

def build_listing_xml(
    object_key: Optional[str] = 'AB123',
    title: str = 'Schöne Immobilie',
    action: Optional[str] = None,
    attachments: Iterable[Tuple[str, str]] = (),
    extra: str = ''
) -> str:
    """
    Build an <immobilie> element.

    Args:
        object_key: openimmo_obid (None leaves it out)
        title: objekttitel
        action: aktionart (None leaves the <aktion> element out)
        attachments: (pfad, gruppe) pairs
        extra: Additional raw XML inside <immobilie>
    """
    anhaenge = ''.join(
        f'<anhang location="EXTERN" gruppe="{group}"><daten><pfad>{path}</pfad></daten></anhang>'
        for path, group in attachments
    )
    techn = ''
    if action is not None:
        techn += f'<aktion aktionart="{action}"/>'
    if object_key is not None:
        techn += f'<openimmo_obid>{object_key}</openimmo_obid>'

    return (
        '<immobilie>'
        f'<freitexte><objekttitel>{title}</objekttitel></freitexte>'
        f'<anhaenge>{anhaenge}</anhaenge>'
        f'{extra}'
        f'<verwaltung_techn>{techn}</verwaltung_techn>'
        '</immobilie>'
    )


def build_openimmo_xml(
    *listings: str,
    provider_key: str = '0099',
    scope: Optional[str] = 'VOLL',
    modus: Optional[str] = None,
    sender_software: Optional[str] = 'OOF'
) -> bytes:
    """Build an <openimmo> document with a single provider."""
    attributes = ''
    if scope is not None:
        attributes += f' umfang="{scope}"'
    if modus is not None:
        attributes += f' modus="{modus}"'
    if sender_software is not None:
        attributes += f' sendersoftware="{sender_software}"'

    document = (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<openimmo>'
        f'<uebertragung art="OFFLINE" version="1.2.7"{attributes}/>'
        f'<anbieter><anbieternr>{provider_key}</anbieternr>{"".join(listings)}</anbieter>'
        '</openimmo>'
    )
    return document.encode('utf-8')


def build_archive(
    path: Path,
    xml: Optional[bytes] = None,
    files: Optional[Dict[str, bytes]] = None,
    data_file: str = 'openimmo.xml'
) -> Path:
    """Write a zip archive with an OpenImmo document and resource files."""
    with zipfile.ZipFile(path, 'w') as archive:
        if xml is not None:
            archive.writestr(data_file, xml)
        for name, content in (files or {}).items():
            archive.writestr(name, content)
    return path


@pytest.fixture
def listing_xml():
    return build_listing_xml


@pytest.fixture
def openimmo_xml():
    return build_openimmo_xml


@pytest.fixture
def make_archive(tmp_path):
    """Builder for archives inside the test's tmp directory."""
    def _make(xml=None, files=None, name='export.zip', data_file='openimmo.xml') -> Path:
        return build_archive(tmp_path / name, xml, files, data_file)
    return _make


@pytest.fixture
def demo_xml() -> bytes:
    """A complete OpenImmo document with one richly populated listing."""
    return (FIXTURES_DIR / 'demo_listing.xml').read_bytes()
