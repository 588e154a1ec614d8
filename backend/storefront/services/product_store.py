"""
商品存储 - 统一的存储接口，每种后端一个实现

读取优先级:
1) 主存储（json 文件 / redis / mongo / sql，由 STORE_BACKEND 决定）
2) 主存储不可用时回退到内置快照文件 (data/products.json)
3) 快照也不可用时返回空列表

主存储从未初始化时（文件 / key / 集合 / 表不存在），会从内置快照 seed 一次。
已初始化但被删空的存储保持为空。
"""

import json
import os
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from storefront.errors import BackendError, ValidationError
from storefront.models.product import DEFAULT_IMAGE_URL, Product

SOURCE_PRIMARY = 'primary'
SOURCE_SNAPSHOT = 'snapshot'
SOURCE_EMPTY = 'empty'


@dataclass
class ProductListing:
    """Result of a read; ``source`` tells whether the primary store answered."""

    products: List[Product] = field(default_factory=list)
    source: str = SOURCE_PRIMARY

    @property
    def degraded(self) -> bool:
        return self.source != SOURCE_PRIMARY

    def to_list(self) -> List[Dict[str, Any]]:
        return [p.to_dict() for p in self.products]


@dataclass
class DeleteResult:
    deleted_ids: List[str] = field(default_factory=list)
    remaining_count: Optional[int] = None

    @property
    def deleted_count(self) -> int:
        return len(self.deleted_ids)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'deletedCount': self.deleted_count,
            'deletedIds': list(self.deleted_ids),
            'remainingCount': self.remaining_count,
        }


def parse_records(raw) -> List[Dict[str, Any]]:
    """Decode a JSON document holding a top-level array of product records."""
    data = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
    if not isinstance(data, list):
        raise BackendError('Product document must contain a JSON array')
    return [item for item in data if isinstance(item, dict)]


def read_records(path: str) -> List[Dict[str, Any]]:
    with open(path, 'r', encoding='utf-8') as f:
        return parse_records(f.read())


def write_records(path: str, records: List[Dict[str, Any]]) -> None:
    """Write records as a JSON array, replacing the file atomically."""
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=directory, suffix='.tmp')
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump(records, f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise


def load_snapshot(path: Optional[str], default_image_url: str = DEFAULT_IMAGE_URL) -> List[Product]:
    """加载内置快照文件，文件缺失或格式错误时抛出 BackendError"""
    if not path or not os.path.exists(path):
        raise BackendError(f'Snapshot file not found: {path}')
    try:
        records = read_records(path)
    except (OSError, ValueError) as e:
        raise BackendError(f'Snapshot file unreadable: {e}') from e
    return _records_to_products(records, default_image_url)


def _records_to_products(records: Iterable[Dict[str, Any]],
                         default_image_url: str) -> List[Product]:
    products: List[Product] = []
    seen = set()
    for record in records:
        try:
            product = Product.from_dict(record, default_image_url=default_image_url)
        except ValidationError:
            print(f"  ⚠ Skipping malformed product record: {record.get('id')!r}")
            continue
        if product.id in seen:
            continue
        seen.add(product.id)
        products.append(product)
    return products


class ProductStore:
    """商品存储基类

    子类实现以 ``_`` 开头的后端原语；公共方法负责校验、seed、回退和错误转换。
    """

    name = 'base'
    # Library exceptions that mean "the backend failed"
    backend_errors: tuple = (OSError, ValueError)

    def __init__(self, snapshot_file: Optional[str] = None,
                 default_image_url: str = DEFAULT_IMAGE_URL):
        self.snapshot_file = snapshot_file
        self.default_image_url = default_image_url or DEFAULT_IMAGE_URL
        self._seed_checked = False

    # ========== 后端原语 (子类实现) ==========

    def _load_all(self) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def _save(self, record: Dict[str, Any]) -> None:
        raise NotImplementedError

    def _remove(self, ids: set) -> List[str]:
        """Delete the given ids, returning those that actually existed."""
        raise NotImplementedError

    def _insert_missing(self, records: List[Dict[str, Any]]) -> int:
        """Insert records whose id is not stored yet; return how many were added."""
        raise NotImplementedError

    def _find_one(self, product_id: str) -> Optional[Dict[str, Any]]:
        for record in self._load_all():
            if str(record.get('id')) == product_id:
                return record
        return None

    def _find_by_title(self, query: str) -> List[Dict[str, Any]]:
        needle = query.lower()
        return [r for r in self._load_all() if needle in str(r.get('title') or '').lower()]

    def _count(self) -> int:
        return len(self._load_all())

    def _is_initialized(self) -> bool:
        """Whether the primary store has ever been created (even if now empty)."""
        raise NotImplementedError

    # ========== 内部工具 ==========

    @contextmanager
    def _backend_call(self, action: str):
        try:
            yield
        except BackendError:
            raise
        except self.backend_errors as e:
            raise BackendError(f'{self.name} {action} failed: {e}') from e

    def _to_products(self, records) -> List[Product]:
        return _records_to_products(records, self.default_image_url)

    def _ensure_seeded(self) -> None:
        if self._seed_checked:
            return
        self.seed_if_empty()
        self._seed_checked = True

    def _fallback_listing(self, query: Optional[str] = None) -> ProductListing:
        try:
            products = load_snapshot(self.snapshot_file, self.default_image_url)
        except BackendError as e:
            print(f"  ⚠ Snapshot fallback failed: {e}, returning no products")
            return ProductListing([], SOURCE_EMPTY)
        if query:
            needle = query.lower()
            products = [p for p in products if needle in p.title.lower()]
        return ProductListing(products, SOURCE_SNAPSHOT)

    # ========== 公共接口 ==========

    def list_all(self) -> ProductListing:
        """返回全部商品；主存储失败时回退到快照，再失败返回空列表（不抛异常）"""
        try:
            self._ensure_seeded()
            with self._backend_call('read'):
                records = self._load_all()
        except BackendError as e:
            print(f"  ⚠ {self.name} read failed: {e}, using snapshot")
            return self._fallback_listing()
        return ProductListing(self._to_products(records), SOURCE_PRIMARY)

    def find_by_id(self, product_id: str) -> Optional[Product]:
        """Strict lookup: ``None`` when not found, ``BackendError`` when the store fails."""
        self._ensure_seeded()
        with self._backend_call('lookup'):
            record = self._find_one(str(product_id))
        if record is None:
            return None
        products = self._to_products([record])
        return products[0] if products else None

    def get_by_id(self, product_id: str) -> Optional[Product]:
        try:
            return self.find_by_id(product_id)
        except BackendError as e:
            print(f"  ⚠ {self.name} lookup failed: {e}, using snapshot")
        for product in self._fallback_listing().products:
            if product.id == str(product_id):
                return product
        return None

    def search_by_title(self, query: Optional[str]) -> ProductListing:
        """标题不区分大小写的子串匹配；空查询返回全部"""
        query = (query or '').strip()
        if not query:
            return self.list_all()
        try:
            self._ensure_seeded()
            with self._backend_call('search'):
                records = self._find_by_title(query)
        except BackendError as e:
            print(f"  ⚠ {self.name} search failed: {e}, using snapshot")
            return self._fallback_listing(query)
        return ProductListing(self._to_products(records), SOURCE_PRIMARY)

    def insert(self, data: Dict[str, Any]) -> Product:
        # Validation runs before any backend call
        product = Product.create(data, default_image_url=self.default_image_url)
        self._ensure_seeded()
        with self._backend_call('insert'):
            self._save(product.to_dict())
        print(f"  ✓ Added product {product.id} to {self.name} store")
        return product

    def delete_by_ids(self, ids: Iterable[str]) -> DeleteResult:
        """删除指定 id 的商品，不存在的 id 忽略"""
        wanted = {str(i) for i in ids}
        self._ensure_seeded()
        with self._backend_call('delete'):
            deleted = self._remove(wanted) if wanted else []
            remaining = self._count()
        if deleted:
            print(f"  ✓ Deleted {len(deleted)} products from {self.name} store")
        return DeleteResult(list(deleted), remaining)

    def count(self) -> int:
        with self._backend_call('count'):
            return self._count()

    def is_initialized(self) -> bool:
        with self._backend_call('init check'):
            return self._is_initialized()

    def seed_if_empty(self) -> int:
        """主存储从未初始化时从快照导入，返回导入数量

        Seeding happens once per backing store, not once per process: a store
        emptied through delete_by_ids stays empty.
        """
        if self.is_initialized():
            return 0
        try:
            snapshot = load_snapshot(self.snapshot_file, self.default_image_url)
        except BackendError as e:
            print(f"  ⚠ Nothing to seed: {e}")
            return 0
        with self._backend_call('seed'):
            seeded = self._insert_missing([p.to_dict() for p in snapshot])
        if seeded:
            print(f"  ✓ Seeded {seeded} products into {self.name} store")
        return seeded

    def export_snapshot(self, path: Optional[str] = None) -> int:
        """把主存储内容写回快照文件，返回写入数量"""
        target = path or self.snapshot_file
        if not target:
            raise BackendError('No snapshot path configured')
        with self._backend_call('export'):
            products = self._to_products(self._load_all())
        try:
            write_records(target, [p.to_dict() for p in products])
        except OSError as e:
            raise BackendError(f'Snapshot write failed: {e}') from e
        return len(products)


class DocumentStore(ProductStore):
    """Stores every product in one JSON array document (a file or a single key)."""

    def _read_document(self) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def _write_document(self, records: List[Dict[str, Any]]) -> None:
        raise NotImplementedError

    def _load_all(self):
        return self._read_document()

    def _save(self, record):
        records = self._read_document()
        records.append(record)
        self._write_document(records)

    def _remove(self, ids):
        records = self._read_document()
        kept = [r for r in records if str(r.get('id')) not in ids]
        deleted = [str(r.get('id')) for r in records if str(r.get('id')) in ids]
        if deleted:
            self._write_document(kept)
        return deleted

    def _insert_missing(self, records):
        existing = self._read_document()
        known = {str(r.get('id')) for r in existing}
        new = [r for r in records if str(r.get('id')) not in known]
        if new or not self._is_initialized():
            self._write_document(existing + new)
        return len(new)


def create_store(config) -> ProductStore:
    """根据配置 STORE_BACKEND 创建存储实例"""
    backend = (config.get('STORE_BACKEND') or 'json').lower()
    common = {
        'snapshot_file': config.get('SNAPSHOT_FILE'),
        'default_image_url': config.get('DEFAULT_IMAGE_URL') or DEFAULT_IMAGE_URL,
    }

    if backend == 'json':
        from .json_store import JsonFileStore
        return JsonFileStore(config.get('JSON_STORE_FILE'), **common)
    if backend == 'redis':
        from .redis_store import RedisStore
        return RedisStore(config.get('REDIS_URL'), key=config.get('REDIS_KEY') or 'products', **common)
    if backend == 'mongo':
        from .mongo_store import MongoStore
        return MongoStore(config.get('MONGO_URI'),
                          collection_name=config.get('MONGO_COLLECTION') or 'products', **common)
    if backend == 'sql':
        from .sql_store import SqlStore
        return SqlStore(config.get('DATABASE_URL'), **common)

    raise ValueError(f"Unknown STORE_BACKEND: {backend!r} (expected json, redis, mongo or sql)")
