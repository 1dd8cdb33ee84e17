"""Unit tests for record_service: upload handling and file cleanup."""

import unittest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from adapter.fake.document_store import FakeDocumentStore
from adapter.fake.upload_storage import FakeUploadStorage
from domain.model.entities import ABOUT_SCHEMA, USER_SCHEMA, WORKSHOP_SCHEMA
from domain.model.errors import DuplicateError, NotFoundError, StoreError, ValidationError
from domain.model.record import Upload
from services.entity_repository import EntityRepository
from services.record_service import create_record, delete_record, update_record


def _image(name: str = 'photo.png') -> Upload:
    return Upload(name, 'image/png', b'\x89PNG')


def _user(n: int = 1, **overrides) -> dict:
    payload = {
        'truvedaLink': f'user_{n}',
        'firstName': 'Jane',
        'lastName': 'Doe',
        'displayName': 'Jane D.',
        'email': f'user{n}@example.com',
    }
    payload.update(overrides)
    return payload


class FailingUploadStorage(FakeUploadStorage):
    """Fails on the Nth save to exercise partial-write cleanup."""

    def __init__(self, fail_on: int):
        super().__init__()
        self.fail_on = fail_on
        self.saves = 0

    def save(self, upload: Upload) -> str:
        self.saves += 1
        if self.saves == self.fail_on:
            raise StoreError("Failed to store uploaded file")
        return super().save(upload)


class TestCreateRecord(unittest.TestCase):

    def setUp(self):
        self.repo = EntityRepository(USER_SCHEMA, FakeDocumentStore(USER_SCHEMA.unique_fields))
        self.storage = FakeUploadStorage()

    def test_create_with_photo(self):
        record = create_record(self.repo, self.storage, _user(), {'profilePhoto': [_image()]})

        self.assertEqual(record.get('profilePhoto'), '/uploads/fake-1-photo.png')
        self.assertIn(record.get('profilePhoto'), self.storage.files)

    def test_create_without_photo_uses_default(self):
        record = create_record(self.repo, self.storage, _user())
        self.assertEqual(record.get('profilePhoto'), '/uploads/default-avatar.png')

    def test_client_supplied_photo_reference_is_ignored(self):
        record = create_record(self.repo, self.storage, _user(profilePhoto='/uploads/someone-else.png'))
        self.assertEqual(record.get('profilePhoto'), '/uploads/default-avatar.png')

    def test_validation_failure_removes_written_file(self):
        with self.assertRaises(ValidationError):
            create_record(self.repo, self.storage, _user(email='bad'), {'profilePhoto': [_image()]})

        self.assertEqual(self.storage.files, {})
        self.assertEqual(self.storage.deleted, ['/uploads/fake-1-photo.png'])

    def test_conflict_removes_written_file(self):
        create_record(self.repo, self.storage, _user(1))

        with self.assertRaises(DuplicateError) as ctx:
            create_record(self.repo, self.storage, _user(2, email='USER1@example.com'), {'profilePhoto': [_image()]})

        self.assertEqual(str(ctx.exception), 'email already exists')
        self.assertEqual(self.storage.files, {})
        self.assertEqual(self.repo.count(), 1)

    def test_conflict_on_link(self):
        create_record(self.repo, self.storage, _user(1))

        with self.assertRaises(DuplicateError) as ctx:
            create_record(self.repo, self.storage, _user(2, truvedaLink='USER_1'))
        self.assertEqual(ctx.exception.fields, ['truvedaLink'])

    def test_failed_write_removes_earlier_writes(self):
        storage = FailingUploadStorage(fail_on=2)
        repo = EntityRepository(ABOUT_SCHEMA, FakeDocumentStore())

        with self.assertRaises(StoreError):
            create_record(repo, storage, {'description': 'About'}, {'images': [_image('a.png'), _image('b.png')]})

        self.assertEqual(storage.files, {})
        self.assertEqual(storage.deleted, ['/uploads/fake-1-a.png'])
        self.assertEqual(repo.count(), 0)


class TestUpdateRecord(unittest.TestCase):

    def setUp(self):
        self.repo = EntityRepository(WORKSHOP_SCHEMA, FakeDocumentStore())
        self.storage = FakeUploadStorage()
        self.record = create_record(self.repo, self.storage, {
            'workshopName': 'Pottery',
            'shortDescription': 'Clay basics',
            'content': 'Three sessions',
            'price': '90',
        }, {'workshopPhoto': [_image('old.png')]})

    def test_replacement_deletes_old_file_after_commit(self):
        updated = update_record(self.repo, self.storage, self.record.id, {}, {'workshopPhoto': [_image('new.png')]})

        self.assertEqual(updated.get('workshopPhoto'), '/uploads/fake-2-new.png')
        self.assertEqual(self.storage.deleted, ['/uploads/fake-1-old.png'])
        self.assertIn('/uploads/fake-2-new.png', self.storage.files)

    def test_text_only_update_keeps_photo(self):
        updated = update_record(self.repo, self.storage, self.record.id, {'price': '80'})

        self.assertEqual(updated.get('price'), '80')
        self.assertEqual(updated.get('workshopPhoto'), '/uploads/fake-1-old.png')
        self.assertEqual(self.storage.deleted, [])

    def test_failed_update_keeps_old_file_and_removes_new(self):
        with self.assertRaises(ValidationError):
            update_record(
                self.repo, self.storage, self.record.id,
                {'workshopName': 'x' * 101}, {'workshopPhoto': [_image('new.png')]},
            )

        self.assertEqual(self.storage.deleted, ['/uploads/fake-2-new.png'])
        self.assertIn('/uploads/fake-1-old.png', self.storage.files)
        self.assertEqual(self.repo.find_by_id(self.record.id).get('workshopPhoto'), '/uploads/fake-1-old.png')

    def test_missing_record_removes_new_file(self):
        with self.assertRaises(NotFoundError):
            update_record(
                self.repo, self.storage, '0123456789abcdef01234567',
                {}, {'workshopPhoto': [_image('new.png')]},
            )
        self.assertEqual(self.storage.deleted, ['/uploads/fake-2-new.png'])

    def test_default_photo_is_never_deleted(self):
        record = create_record(self.repo, self.storage, {
            'workshopName': 'Weaving', 'shortDescription': 'Loom', 'content': 'Intro', 'price': '40',
        })

        update_record(self.repo, self.storage, record.id, {}, {'workshopPhoto': [_image('new.png')]})

        self.assertEqual(self.storage.deleted, [])


class TestUpdateUserUniqueness(unittest.TestCase):

    def setUp(self):
        self.repo = EntityRepository(USER_SCHEMA, FakeDocumentStore(USER_SCHEMA.unique_fields))
        self.storage = FakeUploadStorage()
        self.first = create_record(self.repo, self.storage, _user(1))
        create_record(self.repo, self.storage, _user(2))

    def test_keeping_own_email_is_allowed(self):
        updated = update_record(self.repo, self.storage, self.first.id, {'email': 'USER1@example.com', 'intro': 'hi'})
        self.assertEqual(updated.get('intro'), 'hi')

    def test_taking_another_users_email_is_rejected(self):
        with self.assertRaises(DuplicateError) as ctx:
            update_record(self.repo, self.storage, self.first.id, {'email': 'user2@example.com'})
        self.assertEqual(str(ctx.exception), 'email already exists')


class TestAboutImages(unittest.TestCase):

    def setUp(self):
        self.repo = EntityRepository(ABOUT_SCHEMA, FakeDocumentStore())
        self.storage = FakeUploadStorage()

    def test_new_images_replace_the_whole_list(self):
        record = create_record(self.repo, self.storage, {'description': 'Us'}, {
            'images': [_image('a.png'), _image('b.png')],
        })

        updated = update_record(self.repo, self.storage, record.id, {}, {'images': [_image('c.png')]})

        self.assertEqual(updated.get('images'), ['/uploads/fake-3-c.png'])
        self.assertEqual(self.storage.deleted, ['/uploads/fake-1-a.png', '/uploads/fake-2-b.png'])

    def test_more_than_four_images_rejected_and_cleaned_up(self):
        with self.assertRaises(ValidationError) as ctx:
            create_record(self.repo, self.storage, {'description': 'Us'}, {
                'images': [_image(f'{n}.png') for n in range(5)],
            })

        self.assertEqual(str(ctx.exception), 'You can upload up to 4 images')
        self.assertEqual(self.storage.files, {})


class TestDeleteRecord(unittest.TestCase):

    def setUp(self):
        self.repo = EntityRepository(USER_SCHEMA, FakeDocumentStore(USER_SCHEMA.unique_fields))
        self.storage = FakeUploadStorage()

    def test_delete_removes_uploaded_photo(self):
        record = create_record(self.repo, self.storage, _user(), {'profilePhoto': [_image()]})

        delete_record(self.repo, self.storage, record.id)

        self.assertEqual(self.storage.deleted, ['/uploads/fake-1-photo.png'])
        self.assertIsNone(self.repo.find_by_id(record.id))

    def test_delete_keeps_default_photo(self):
        record = create_record(self.repo, self.storage, _user())

        delete_record(self.repo, self.storage, record.id)

        self.assertEqual(self.storage.deleted, [])

    def test_delete_missing(self):
        with self.assertRaises(NotFoundError):
            delete_record(self.repo, self.storage, '0123456789abcdef01234567')


if __name__ == '__main__':
    unittest.main()
