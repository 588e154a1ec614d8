"""
MongoDB 存储：每个商品一个文档，业务 id 保存在 ``id`` 字段
"""

import re

from pymongo import MongoClient, UpdateOne
from pymongo.errors import PyMongoError

from .product_store import ProductStore

PRODUCT_PROJECTION = {
    '_id': 0,
    'id': 1,
    'title': 1,
    'imageUrl': 1,
    'description': 1,
    'productUrl': 1,
}


class MongoStore(ProductStore):
    name = 'mongo'
    backend_errors = (PyMongoError,)

    def __init__(self, uri, collection_name='products', client=None, **kwargs):
        super().__init__(**kwargs)
        self.uri = uri
        self.collection_name = collection_name
        self._client = client
        self._collection = None

    @property
    def collection(self):
        """Get the products collection (lazy initialization)."""
        if self._collection is not None:
            return self._collection
        if self._client is None:
            client = MongoClient(self.uri, serverSelectionTimeoutMS=3000)
            client.admin.command('ping')
            self._client = client
            print("  ✓ Connected to MongoDB")
        self._collection = self._client.get_database()[self.collection_name]
        return self._collection

    def _load_all(self):
        return list(self.collection.find({}, PRODUCT_PROJECTION))

    def _find_one(self, product_id):
        return self.collection.find_one({'id': product_id}, PRODUCT_PROJECTION)

    def _find_by_title(self, query):
        pattern = {'$regex': re.escape(query), '$options': 'i'}
        return list(self.collection.find({'title': pattern}, PRODUCT_PROJECTION))

    def _save(self, record):
        # insert_one adds _id to the dict it is given
        self.collection.insert_one(dict(record))

    def _remove(self, ids):
        query = {'id': {'$in': sorted(ids)}}
        existing = [doc['id'] for doc in self.collection.find(query, {'_id': 0, 'id': 1})]
        if existing:
            self.collection.delete_many({'id': {'$in': existing}})
        return existing

    def _count(self):
        return self.collection.count_documents({})

    def _is_initialized(self):
        return self.collection_name in self.collection.database.list_collection_names()

    def _insert_missing(self, records):
        if not records:
            return 0
        ops = [UpdateOne({'id': r['id']}, {'$setOnInsert': r}, upsert=True) for r in records]
        result = self.collection.bulk_write(ops, ordered=False)
        return result.upserted_count
