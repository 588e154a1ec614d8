"""
Redis key-value 存储：整个商品列表作为一个 JSON 文档保存在单个 key 下
"""

import json

import redis

from .product_store import DocumentStore, parse_records


class RedisStore(DocumentStore):
    name = 'redis'
    backend_errors = (redis.RedisError, ValueError)

    def __init__(self, url, key='products', client=None, **kwargs):
        super().__init__(**kwargs)
        self.url = url
        self.key = key
        self._client = client

    @property
    def client(self):
        """Redis client (lazy initialization)."""
        if self._client is None:
            if not self.url:
                raise redis.ConnectionError('REDIS_URL is not configured')
            self._client = redis.from_url(self.url, decode_responses=True)
            print("  ✓ Redis client created")
        return self._client

    def _read_document(self):
        raw = self.client.get(self.key)
        if not raw:
            return []
        return parse_records(raw)

    def _is_initialized(self):
        return bool(self.client.exists(self.key))

    def _write_document(self, records):
        self.client.set(self.key, json.dumps(records, ensure_ascii=False))
