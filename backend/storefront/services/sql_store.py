"""
SQL 表存储 (SQLAlchemy)：每个字段一列
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    delete,
    func,
    insert,
    inspect,
    select,
)
from sqlalchemy.exc import SQLAlchemyError

from storefront.errors import BackendError

from .product_store import ProductStore

metadata = MetaData()

products_table = Table(
    'products',
    metadata,
    Column('id', String(64), primary_key=True),
    Column('title', Text, nullable=False),
    Column('image_url', Text),
    Column('description', Text),
    Column('product_url', Text, nullable=False),
    Column('created_at', DateTime, default=lambda: datetime.now(timezone.utc).replace(tzinfo=None)),
)

_COLUMNS = (
    products_table.c.id,
    products_table.c.title,
    products_table.c.image_url,
    products_table.c.description,
    products_table.c.product_url,
)


def _row_to_record(row):
    return {
        'id': row.id,
        'title': row.title,
        'imageUrl': row.image_url,
        'description': row.description,
        'productUrl': row.product_url,
    }


def _record_to_row(record):
    return {
        'id': record['id'],
        'title': record['title'],
        'image_url': record.get('imageUrl'),
        'description': record.get('description') or '',
        'product_url': record['productUrl'],
    }


class SqlStore(ProductStore):
    name = 'sql'
    backend_errors = (SQLAlchemyError,)

    def __init__(self, url, engine=None, **kwargs):
        super().__init__(**kwargs)
        self.url = url
        self._engine = engine
        self._tables_ready = False
        # Whether the products table existed before this store created it
        self._table_existed = False

    def _connect(self):
        if self._engine is None:
            try:
                self._engine = create_engine(self.url, pool_pre_ping=True)
            except ImportError as e:
                # DBAPI driver for the configured dialect is not installed
                raise BackendError(f'SQL driver unavailable for {self.url.split(":", 1)[0]}: {e}') from e
            print("  ✓ SQL engine created")
        return self._engine

    @property
    def engine(self):
        """SQLAlchemy engine (lazy initialization), creates the table on first use."""
        engine = self._connect()
        if not self._tables_ready:
            self._table_existed = inspect(engine).has_table(products_table.name)
            metadata.create_all(engine)
            self._tables_ready = True
        return engine

    def _select(self):
        return select(*_COLUMNS).order_by(products_table.c.created_at, products_table.c.id)

    def _load_all(self):
        with self.engine.connect() as conn:
            return [_row_to_record(row) for row in conn.execute(self._select())]

    def _find_one(self, product_id):
        stmt = select(*_COLUMNS).where(products_table.c.id == product_id)
        with self.engine.connect() as conn:
            row = conn.execute(stmt).first()
        return _row_to_record(row) if row is not None else None

    def _find_by_title(self, query):
        stmt = self._select().where(
            func.lower(products_table.c.title).contains(query.lower(), autoescape=True)
        )
        with self.engine.connect() as conn:
            return [_row_to_record(row) for row in conn.execute(stmt)]

    def _save(self, record):
        with self.engine.begin() as conn:
            conn.execute(insert(products_table).values(**_record_to_row(record)))
        self._table_existed = True

    def _remove(self, ids):
        wanted = sorted(ids)
        with self.engine.begin() as conn:
            existing = list(conn.execute(
                select(products_table.c.id)
                .where(products_table.c.id.in_(wanted))
                .order_by(products_table.c.created_at, products_table.c.id)
            ).scalars())
            if existing:
                conn.execute(delete(products_table).where(products_table.c.id.in_(existing)))
        return existing

    def _count(self):
        with self.engine.connect() as conn:
            return conn.execute(select(func.count()).select_from(products_table)).scalar_one()

    def _is_initialized(self):
        if not self._tables_ready:
            # Inspect only, the table is created by the first real operation
            return inspect(self._connect()).has_table(products_table.name)
        return self._table_existed

    def _insert_missing(self, records):
        if not records:
            self.engine
            self._table_existed = True
            return 0
        with self.engine.begin() as conn:
            known = set(conn.execute(
                select(products_table.c.id).where(products_table.c.id.in_([r['id'] for r in records]))
            ).scalars())
            rows = [_record_to_row(r) for r in records if r['id'] not in known]
            if rows:
                conn.execute(insert(products_table), rows)
        self._table_existed = True
        return len(rows)
