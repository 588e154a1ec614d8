"""
本地 JSON 文件存储
"""

import os

from .product_store import DocumentStore, read_records, write_records


class JsonFileStore(DocumentStore):
    """All products kept in one JSON file holding a top-level array."""

    name = 'json'
    backend_errors = (OSError, ValueError)

    def __init__(self, path, **kwargs):
        super().__init__(**kwargs)
        if not path:
            raise ValueError('JsonFileStore requires a file path')
        self.path = path

    def _read_document(self):
        if not os.path.exists(self.path):
            return []
        return read_records(self.path)

    def _is_initialized(self):
        return os.path.exists(self.path)

    def _write_document(self, records):
        write_records(self.path, records)
