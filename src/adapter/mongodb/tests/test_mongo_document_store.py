"""Tests for MongoDocumentStore with a mocked pymongo collection."""

import unittest
from unittest.mock import MagicMock

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from adapter.mongodb.document_store import MongoDocumentStore
from adapter.mongodb.indexes import ensure_all_indexes
from domain.model.errors import DuplicateError, StoreError


def _make_store() -> tuple[MongoDocumentStore, MagicMock]:
    mock_collection = MagicMock()
    mock_collection.name = 'users'
    mock_db = MagicMock()
    mock_db.__getitem__.return_value = mock_collection
    return MongoDocumentStore(mock_db, 'users'), mock_collection


class TestInsertOne(unittest.TestCase):

    def test_returns_inserted_id(self):
        store, collection = _make_store()
        inserted = ObjectId()
        collection.insert_one.return_value = MagicMock(inserted_id=inserted)

        self.assertEqual(store.insert_one({'email': 'a@x.io'}), inserted)
        collection.insert_one.assert_called_once_with({'email': 'a@x.io'})

    def test_duplicate_key_names_the_field(self):
        store, collection = _make_store()
        collection.insert_one.side_effect = DuplicateKeyError(
            'E11000 duplicate key error', 11000,
            {'keyPattern': {'email': 1}, 'keyValue': {'email': 'a@x.io'}},
        )

        with self.assertRaises(DuplicateError) as ctx:
            store.insert_one({'email': 'a@x.io'})
        self.assertEqual(ctx.exception.fields, ['email'])
        self.assertEqual(str(ctx.exception), 'Duplicate value for field(s): email')

    def test_duplicate_key_without_details_falls_back_to_index_name(self):
        store, collection = _make_store()
        collection.insert_one.side_effect = DuplicateKeyError(
            'E11000 duplicate key error collection: db.users index: unique_truvedaLink dup key: { truvedaLink: "jane" }',
            11000,
        )

        with self.assertRaises(DuplicateError) as ctx:
            store.insert_one({'truvedaLink': 'jane'})
        self.assertEqual(ctx.exception.fields, ['truvedaLink'])

    def test_other_errors_become_store_error(self):
        store, collection = _make_store()
        collection.insert_one.side_effect = PyMongoError('connection reset')

        with self.assertRaises(StoreError):
            store.insert_one({'email': 'a@x.io'})


class TestUpdateAndDelete(unittest.TestCase):

    def test_update_uses_set_and_returns_after(self):
        store, collection = _make_store()
        doc_id = ObjectId()
        collection.find_one_and_update.return_value = {'_id': doc_id, 'intro': 'hi'}

        result = store.find_one_and_update(doc_id, {'intro': 'hi'})

        self.assertEqual(result['intro'], 'hi')
        collection.find_one_and_update.assert_called_once_with(
            {'_id': doc_id}, {'$set': {'intro': 'hi'}}, return_document=ReturnDocument.AFTER,
        )

    def test_update_duplicate_key(self):
        store, collection = _make_store()
        collection.find_one_and_update.side_effect = DuplicateKeyError(
            'E11000', 11000, {'keyValue': {'email': 'b@x.io'}},
        )

        with self.assertRaises(DuplicateError):
            store.find_one_and_update(ObjectId(), {'email': 'b@x.io'})

    def test_delete_missing_returns_none(self):
        store, collection = _make_store()
        collection.find_one_and_delete.return_value = None

        self.assertIsNone(store.find_one_and_delete(ObjectId()))


class TestFindPage(unittest.TestCase):

    def _cursor(self, collection: MagicMock, docs: list) -> MagicMock:
        cursor = MagicMock()
        cursor.sort.return_value = cursor
        cursor.skip.return_value = cursor
        cursor.limit.return_value = cursor
        cursor.__iter__.return_value = iter(docs)
        collection.find.return_value = cursor
        return cursor

    def test_search_builds_escaped_case_insensitive_or_query(self):
        store, collection = _make_store()
        collection.count_documents.return_value = 1
        cursor = self._cursor(collection, [{'_id': ObjectId()}])

        docs, total = store.find_page('a.b', ('firstName', 'email'), skip=10, limit=10)

        expected = {'$or': [
            {'firstName': {'$regex': r'a\.b', '$options': 'i'}},
            {'email': {'$regex': r'a\.b', '$options': 'i'}},
        ]}
        collection.count_documents.assert_called_once_with(expected)
        collection.find.assert_called_once_with(expected)
        cursor.sort.assert_called_once_with('createdAt', -1)
        cursor.skip.assert_called_once_with(10)
        cursor.limit.assert_called_once_with(10)
        self.assertEqual(total, 1)
        self.assertEqual(len(docs), 1)

    def test_no_search_uses_empty_query(self):
        store, collection = _make_store()
        collection.count_documents.return_value = 0
        self._cursor(collection, [])

        docs, total = store.find_page(None, ('firstName',), skip=0, limit=10)

        collection.find.assert_called_once_with({})
        self.assertEqual((docs, total), ([], 0))


class TestIndexes(unittest.TestCase):

    def test_ensure_indexes_creates_unique_and_sort_indexes(self):
        store, collection = _make_store()

        self.assertTrue(store.ensure_indexes(('email', 'truvedaLink')))

        collection.create_index.assert_any_call([('email', 1)], name='unique_email', unique=True)
        collection.create_index.assert_any_call([('truvedaLink', 1)], name='unique_truvedaLink', unique=True)
        collection.create_index.assert_any_call([('createdAt', -1)], name='idx_created_at_desc')

    def test_ensure_all_indexes_covers_every_collection(self):
        mock_db = MagicMock()

        self.assertTrue(ensure_all_indexes(mock_db))

        requested = [call.args[0] for call in mock_db.__getitem__.call_args_list]
        self.assertEqual(requested, ['users', 'services', 'products', 'workshops', 'abouts'])

    def test_conflicting_index_is_replaced(self):
        store, collection = _make_store()
        collection.create_index.side_effect = [PyMongoError('Index already exists with a different name'), None, None]
        collection.index_information.return_value = {
            '_id_': {'key': [('_id', 1)]},
            'email_1': {'key': [('email', 1)]},
        }

        self.assertTrue(store.ensure_indexes(('email',)))
        collection.drop_index.assert_called_once_with('email_1')


if __name__ == '__main__':
    unittest.main()
