"""
Tests for the MongoDB backend: query shapes, lazy connection and error fallback.
The collection is mocked, no MongoDB server is needed.

Run:
    cd <project-root>
    python -m pytest tests/test_mongo_store.py -v
"""

import json
import os
import sys
from unittest import mock

import pytest
from pymongo.errors import ServerSelectionTimeoutError

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, os.path.join(PROJECT_ROOT, 'backend'))

from storefront.errors import BackendError  # noqa: E402
from storefront.services.mongo_store import PRODUCT_PROJECTION, MongoStore  # noqa: E402
from storefront.services.product_store import SOURCE_EMPTY, SOURCE_SNAPSHOT  # noqa: E402

DOCS = [
    {'id': 'm1', 'title': 'Ninja Air Fryer', 'imageUrl': 'https://img.test/n.jpg',
     'description': '', 'productUrl': 'https://shop.test/ninja'},
]


@pytest.fixture
def snapshot_file(tmp_path):
    path = tmp_path / 'products.json'
    path.write_text(json.dumps([
        {'id': 's1', 'title': 'Wireless Mouse', 'productUrl': 'https://shop.test/mouse'},
    ]), encoding='utf-8')
    return str(path)


def _store_with(collection, snapshot_file):
    store = MongoStore('mongodb://fake:27017/storefront', snapshot_file=snapshot_file)
    store._collection = collection
    return store


class TestMongoQueries:

    def setup_method(self):
        self.collection = mock.MagicMock()
        self.collection.count_documents.return_value = 1
        self.collection.database.list_collection_names.return_value = ['products']

    def test_list_uses_projection(self, snapshot_file):
        self.collection.find.return_value = list(DOCS)
        store = _store_with(self.collection, snapshot_file)
        listing = store.list_all()
        assert [p.id for p in listing.products] == ['m1']
        self.collection.find.assert_called_with({}, PRODUCT_PROJECTION)

    def test_get_by_id(self, snapshot_file):
        self.collection.find_one.return_value = DOCS[0]
        store = _store_with(self.collection, snapshot_file)
        assert store.get_by_id('m1').title == 'Ninja Air Fryer'
        self.collection.find_one.assert_called_with({'id': 'm1'}, PRODUCT_PROJECTION)

    def test_get_by_id_not_found(self, snapshot_file):
        self.collection.find_one.return_value = None
        store = _store_with(self.collection, snapshot_file)
        assert store.get_by_id('missing') is None

    def test_search_uses_escaped_case_insensitive_regex(self, snapshot_file):
        self.collection.find.return_value = []
        store = _store_with(self.collection, snapshot_file)
        store.search_by_title('air (xl)')
        query = self.collection.find.call_args[0][0]
        assert query == {'title': {'$regex': r'air\ \(xl\)', '$options': 'i'}}

    def test_insert_does_not_leak_object_id(self, snapshot_file):
        def fake_insert(doc):
            doc['_id'] = object()
        self.collection.insert_one.side_effect = fake_insert
        store = _store_with(self.collection, snapshot_file)
        product = store.insert({'title': 'A', 'productUrl': 'http://x'})
        assert '_id' not in product.to_dict()
        inserted = self.collection.insert_one.call_args[0][0]
        assert inserted['id'] == product.id

    def test_delete_only_reports_existing(self, snapshot_file):
        self.collection.find.return_value = [{'id': 'm1'}]
        store = _store_with(self.collection, snapshot_file)
        result = store.delete_by_ids({'m1', 'ghost'})
        assert result.deleted_ids == ['m1']
        self.collection.delete_many.assert_called_once_with({'id': {'$in': ['m1']}})

    def test_delete_nothing_found_skips_delete(self, snapshot_file):
        self.collection.find.return_value = []
        store = _store_with(self.collection, snapshot_file)
        assert store.delete_by_ids({'ghost'}).deleted_count == 0
        self.collection.delete_many.assert_not_called()

    def test_seed_upserts_by_id(self, snapshot_file):
        self.collection.database.list_collection_names.return_value = []
        self.collection.bulk_write.return_value = mock.Mock(upserted_count=1)
        store = _store_with(self.collection, snapshot_file)
        assert store.seed_if_empty() == 1
        ops = self.collection.bulk_write.call_args[0][0]
        assert len(ops) == 1

    def test_existing_empty_collection_is_not_reseeded(self, snapshot_file):
        self.collection.count_documents.return_value = 0
        self.collection.find.return_value = []
        store = _store_with(self.collection, snapshot_file)
        assert store.list_all().products == []
        self.collection.bulk_write.assert_not_called()


class TestMongoFailures:

    def test_unreachable_server_falls_back_to_snapshot(self, snapshot_file):
        with mock.patch('storefront.services.mongo_store.MongoClient') as client_cls:
            client_cls.return_value.admin.command.side_effect = ServerSelectionTimeoutError('timeout')
            store = MongoStore('mongodb://fake:27017/storefront', snapshot_file=snapshot_file)
            listing = store.list_all()
        assert listing.source == SOURCE_SNAPSHOT
        assert [p.id for p in listing.products] == ['s1']

    def test_unreachable_server_and_no_snapshot(self, tmp_path):
        with mock.patch('storefront.services.mongo_store.MongoClient') as client_cls:
            client_cls.return_value.admin.command.side_effect = ServerSelectionTimeoutError('timeout')
            store = MongoStore('mongodb://fake:27017/storefront',
                               snapshot_file=str(tmp_path / 'missing.json'))
            listing = store.list_all()
        assert listing.products == []
        assert listing.source == SOURCE_EMPTY

    def test_write_failure_raises_backend_error(self, snapshot_file):
        with mock.patch('storefront.services.mongo_store.MongoClient') as client_cls:
            client_cls.return_value.admin.command.side_effect = ServerSelectionTimeoutError('timeout')
            store = MongoStore('mongodb://fake:27017/storefront', snapshot_file=snapshot_file)
            with pytest.raises(BackendError):
                store.insert({'title': 'A', 'productUrl': 'http://x'})

    def test_client_connects_once(self, snapshot_file):
        with mock.patch('storefront.services.mongo_store.MongoClient') as client_cls:
            collection = client_cls.return_value.get_database.return_value.__getitem__.return_value
            collection.count_documents.return_value = 1
            collection.database.list_collection_names.return_value = ['products']
            collection.find.return_value = []
            store = MongoStore('mongodb://fake:27017/storefront', snapshot_file=snapshot_file)
            store.list_all()
            store.list_all()
        client_cls.assert_called_once_with('mongodb://fake:27017/storefront', serverSelectionTimeoutMS=3000)
