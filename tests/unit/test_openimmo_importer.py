"""
Unit Tests: OpenImmo Importer
End-to-end runs of archives against an in-memory database and a tmp project
directory.
"""

import logging
import pytest
from sqlalchemy import select
from unittest.mock import Mock, patch

from importer.database_synchronizer import DatabaseSynchronizer, SyncStats
from importer.exceptions import ArchiveParseError, MissingDataFileError, SchemaMismatchError
from importer.import_mode import ImportMode
from importer.openimmo_archive import OpenImmoArchive
from importer.openimmo_importer import Importer, import_file
from importer.php_serialize import unserialize_list
from models import FileRecord, ListingObject, Provider
from utils.logger import logger as service_logger

GALLERY = [('Bild1.jpg', 'BILD'), ('Bild2.jpg', 'BILD'), ('Bild3.jpg', 'BILD')]
RESOURCES = {
    'Titel.jpg': b'title',
    'Bild1.jpg': b'one',
    'Bild2.jpg': b'two',
    'Bild3.jpg': b'three',
}


def listings(db_session):
    db_session.expire_all()
    return db_session.execute(select(ListingObject).order_by(ListingObject.id)).scalars().all()


def file_uuids(db_session):
    return {record.path: record.uuid for record in db_session.execute(select(FileRecord)).scalars()}


@pytest.fixture
def project_dir(tmp_path):
    directory = tmp_path / 'project'
    directory.mkdir()
    return directory


@pytest.fixture
def full_archive(make_archive, openimmo_xml, listing_xml):
    """One provider, one listing AB123 with a title image and three gallery images."""
    xml = openimmo_xml(listing_xml(
        'AB123',
        title='Schöne Immobilie',
        attachments=[('Titel.jpg', 'TITELBILD')] + GALLERY
    ))
    return make_archive(xml, RESOURCES)


class TestImportFile:

    def test_full_import_into_empty_store(self, db_session, provider, project_dir, full_archive):
        stats = import_file(str(full_archive), db_session, project_dir=str(project_dir))

        assert stats == {'0099': SyncStats(created=1, updated=0, deleted=0)}

        object_dir = project_dir / 'files' / 'openimmo' / '0099' / 'AB123'
        assert sorted(p.name for p in object_dir.iterdir()) == sorted(RESOURCES)

        uuids = file_uuids(db_session)
        assert len(uuids) == 4

        [row] = listings(db_session)
        assert row.property_number == 'AB123'
        assert row.alias == 'schoene-immobilie'
        assert row.quelle == 'OOF'
        assert row.published == '1'
        assert row.image == uuids['files/openimmo/0099/AB123/Titel.jpg']
        assert unserialize_list(row.gallery) == [
            uuids[f'files/openimmo/0099/AB123/{name}'] for name, _ in GALLERY
        ]
        assert row.order_src_gallery == row.gallery

    def test_reimport_is_a_noop(self, db_session, provider, project_dir, full_archive, make_archive,
                                openimmo_xml, listing_xml):
        import_file(str(full_archive), db_session, project_dir=str(project_dir))
        before = file_uuids(db_session)

        again = make_archive(openimmo_xml(listing_xml(
            'AB123', title='Schöne Immobilie', attachments=[('Titel.jpg', 'TITELBILD')] + GALLERY
        )), RESOURCES, name='again.zip')
        stats = import_file(str(again), db_session, project_dir=str(project_dir))

        assert stats == {'0099': SyncStats(0, 0, 0)}
        assert file_uuids(db_session) == before
        assert len(listings(db_session)) == 1

    def test_delete_by_record_action(self, db_session, provider, project_dir, full_archive, make_archive,
                                     openimmo_xml, listing_xml):
        import_file(str(full_archive), db_session, project_dir=str(project_dir))

        delete_archive = make_archive(
            openimmo_xml(listing_xml('AB123', action='DELETE'), scope=None),
            name='delete.zip'
        )
        stats = import_file(str(delete_archive), db_session, project_dir=str(project_dir))

        assert stats == {'0099': SyncStats(0, 0, 1)}
        assert listings(db_session)[0].published == ''

    def test_archive_without_data_file_has_no_side_effects(self, db_session, provider, project_dir,
                                                           make_archive):
        archive = make_archive(files=RESOURCES)

        with pytest.raises(MissingDataFileError):
            import_file(str(archive), db_session, project_dir=str(project_dir))

        assert listings(db_session) == []
        assert file_uuids(db_session) == {}
        assert list(project_dir.iterdir()) == []

    def test_malformed_document_fails_the_archive(self, db_session, provider, project_dir, make_archive):
        with pytest.raises(ArchiveParseError):
            import_file(str(make_archive(b'<openimmo>')), db_session, project_dir=str(project_dir))

    def test_import_is_logged(self, db_session, provider, project_dir, full_archive):
        with patch('importer.openimmo_importer.log_import_start') as start, \
                patch('importer.openimmo_importer.log_import_complete') as complete:
            import_file(str(full_archive), db_session, project_dir=str(project_dir))

        start.assert_called_once_with(str(full_archive))
        assert complete.call_args[0][2] == 1

    def test_import_at_info_level_logs_provider_stats(self, db_session, provider, project_dir, full_archive,
                                                      monkeypatch, caplog):
        monkeypatch.setattr(service_logger, 'propagate', True)
        previous_level = service_logger.level
        service_logger.setLevel(logging.INFO)
        try:
            with caplog.at_level(logging.INFO):
                stats = import_file(str(full_archive), db_session, project_dir=str(project_dir))
        finally:
            service_logger.setLevel(previous_level)

        assert stats == {'0099': SyncStats(1, 0, 0)}
        [record] = [r for r in caplog.records if getattr(r, 'event_type', None) == 'provider_synchronized']
        assert (record.created_count, record.updated_count, record.deleted_count) == (1, 0, 0)

    def test_failure_is_logged_and_raised(self, db_session, provider, project_dir, make_archive):
        archive = make_archive(files=RESOURCES)

        with patch('importer.openimmo_importer.log_import_error') as log_error:
            with pytest.raises(MissingDataFileError):
                import_file(str(archive), db_session, project_dir=str(project_dir))

        log_error.assert_called_once()


class TestImporterRun:

    def make_importer(self, db_session, project_dir) -> Importer:
        return Importer.create(db_session, project_dir=str(project_dir))

    def test_unknown_providers_are_skipped(self, db_session, provider, project_dir, make_archive,
                                           openimmo_xml, listing_xml):
        archive_path = make_archive(openimmo_xml(listing_xml('AB123'), provider_key='7777'))

        with OpenImmoArchive(str(archive_path)) as archive:
            stats = self.make_importer(db_session, project_dir).run(archive)

        assert stats == {}
        assert listings(db_session) == []

    def test_providers_without_import_flag_are_skipped(self, db_session, project_dir, make_archive,
                                                        openimmo_xml, listing_xml):
        db_session.add(Provider(onoffice_anbieter_nummer='0099', onoffice_konverter=''))
        db_session.commit()

        with OpenImmoArchive(str(make_archive(openimmo_xml(listing_xml())))) as archive:
            assert self.make_importer(db_session, project_dir).run(archive) == {}

    def test_invalid_records_are_skipped_and_logged(self, db_session, provider, project_dir, make_archive,
                                                    openimmo_xml, listing_xml):
        xml = openimmo_xml(
            listing_xml(None, title='Ohne Objektnummer'),
            listing_xml('AB124', title='Gültiges Objekt')
        )

        with patch('importer.openimmo_importer.log_record_skipped') as skipped:
            with OpenImmoArchive(str(make_archive(xml))) as archive:
                stats = self.make_importer(db_session, project_dir).run(archive)

        assert stats == {'0099': SyncStats(1, 0, 0)}
        skipped.assert_called_once()
        assert skipped.call_args[0][:2] == ('0099', 'Ohne Objektnummer')
        assert [row.property_number for row in listings(db_session)] == ['AB124']

    def test_only_files_present_in_the_archive_are_extracted(self, db_session, provider, project_dir,
                                                              make_archive, openimmo_xml, listing_xml):
        xml = openimmo_xml(listing_xml(
            'AB123', attachments=[('Titel.jpg', 'TITELBILD'), ('Fehlt.jpg', 'BILD')]
        ))

        with OpenImmoArchive(str(make_archive(xml, {'Titel.jpg': b'title'}))) as archive:
            stats = self.make_importer(db_session, project_dir).run(archive)

        assert stats['0099'].created == 1
        [row] = listings(db_session)
        assert row.image is not None
        assert unserialize_list(row.gallery) == []

    def test_vanished_resources_are_unlinked(self, db_session, provider, project_dir, make_archive,
                                             openimmo_xml, listing_xml):
        importer = self.make_importer(db_session, project_dir)
        with OpenImmoArchive(str(make_archive(
            openimmo_xml(listing_xml('AB123', attachments=[('Titel.jpg', 'TITELBILD')])),
            {'Titel.jpg': b'title'}
        ))) as archive:
            importer.run(archive)

        (project_dir / 'files' / 'openimmo' / '0099' / 'AB123' / 'Titel.jpg').unlink()
        with OpenImmoArchive(str(make_archive(
            openimmo_xml(listing_xml('AB123', attachments=[('Titel.jpg', 'TITELBILD')])),
            name='second.zip'
        ))) as archive:
            stats = importer.run(archive)

        assert stats['0099'].updated == 1
        assert listings(db_session)[0].image is None

    def test_schema_mismatch_propagates(self, db_session, provider, project_dir, make_archive,
                                        openimmo_xml, listing_xml):
        importer = self.make_importer(db_session, project_dir)
        importer.synchronizer = Mock(spec=DatabaseSynchronizer)
        importer.synchronizer.synchronize.side_effect = SchemaMismatchError('Column "x" does not exist')

        with OpenImmoArchive(str(make_archive(openimmo_xml(listing_xml())))) as archive:
            with pytest.raises(SchemaMismatchError):
                importer.run(archive)

    def test_synchronizer_receives_mode_and_sender(self, db_session, provider, project_dir, make_archive,
                                                   openimmo_xml, listing_xml):
        importer = self.make_importer(db_session, project_dir)
        importer.synchronizer = Mock(spec=DatabaseSynchronizer)
        importer.synchronizer.synchronize.return_value = SyncStats(0, 1, 0)
        xml = openimmo_xml(listing_xml('AB123'), scope='TEIL', modus='CHANGE', sender_software='onOffice')

        with OpenImmoArchive(str(make_archive(xml))) as archive:
            stats = importer.run(archive)

        assert stats == {'0099': SyncStats(0, 1, 0)}
        provider_id, objects, mode, sender = importer.synchronizer.synchronize.call_args[0]
        assert provider_id == provider.id
        assert [obj.object_key for obj in objects] == ['AB123']
        assert mode is ImportMode.PATCH
        assert sender == 'onOffice'
