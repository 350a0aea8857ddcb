"""
Local cache: the always-present embedded store.

One table per entity type, keyed by id, with secondary indexes on the
columns that are looked up often. The cache is a single process-wide handle
that is opened lazily on first use; schema changes are additive only (new
tables, columns and indexes are created, nothing is dropped).
"""
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Type

from sqlalchemy import Column, DateTime, String, create_engine, func, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.types import TypeDecorator

from app.core.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()

SCHEMA_VERSION = 4


class UTCDateTime(TypeDecorator):
    """Stores UTC, hands back timezone-aware datetimes (SQLite drops tzinfo)."""
    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


class CacheMeta(Base):
    __tablename__ = "cache_meta"

    key = Column(String, primary_key=True)
    value = Column(String, nullable=False)
    updated_at = Column(UTCDateTime, server_default=func.now())


Row = Dict[str, Any]


def _row_from(obj) -> Row:
    return {c.key: getattr(obj, c.key) for c in inspect(obj).mapper.column_attrs}


def primary_key_name(model: Type[Base]) -> str:
    return inspect(model).primary_key[0].name


class LocalCache:
    """
    Row-level access to the local tables.

    Rows are plain dicts keyed by column name; the mappers in
    app.services.mappers turn them into domain records.
    """

    def __init__(self, url: Optional[str] = None):
        self.url = url or settings.local_cache_url
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None
        self._init_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @property
    def initialized(self) -> bool:
        return self._engine is not None

    def init(self) -> Engine:
        """Open the store once, even if several callers race to do it."""
        if self._engine is not None:
            return self._engine
        with self._init_lock:
            if self._engine is not None:
                return self._engine
            engine = self._create_engine()
            migrate(engine)
            self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
            self._engine = engine
            self._seed_defaults()
            logger.info(f"Local cache ready (schema v{SCHEMA_VERSION})")
        return self._engine

    def _create_engine(self) -> Engine:
        if self.url.startswith("sqlite"):
            kwargs: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
            if ":memory:" in self.url or self.url.rstrip("/") == "sqlite:":
                kwargs["poolclass"] = StaticPool
            return create_engine(self.url, **kwargs)
        return create_engine(self.url)

    def _seed_defaults(self) -> None:
        from app.services.mappers import SETTINGS
        from app.schemas.settings import DEFAULT_SETTINGS, SETTINGS_KEY

        if self.get(SETTINGS.model, SETTINGS_KEY) is None:
            self.put(SETTINGS.model, SETTINGS.to_row(DEFAULT_SETTINGS))

    def session(self) -> Session:
        self.init()
        return self._session_factory()

    def dispose(self) -> None:
        with self._init_lock:
            if self._engine is not None:
                self._engine.dispose()
            self._engine = None
            self._session_factory = None

    # ------------------------------------------------------------------
    # Row operations
    # ------------------------------------------------------------------
    def all(self, model: Type[Base]) -> List[Row]:
        with self.session() as db:
            return [_row_from(obj) for obj in db.query(model).all()]

    def get(self, model: Type[Base], key: str) -> Optional[Row]:
        with self.session() as db:
            obj = db.get(model, key)
            return _row_from(obj) if obj is not None else None

    def find_by(self, model: Type[Base], column: str, value: Any, case_insensitive: bool = False) -> List[Row]:
        attr = getattr(model, column)
        with self.session() as db:
            query = db.query(model)
            if case_insensitive and isinstance(value, str):
                query = query.filter(func.lower(attr) == value.strip().lower())
            else:
                query = query.filter(attr == value)
            return [_row_from(obj) for obj in query.all()]

    def put(self, model: Type[Base], row: Row) -> None:
        self.put_many(model, [row])

    def put_many(self, model: Type[Base], rows: Iterable[Row]) -> int:
        count = 0
        with self.session() as db:
            try:
                for row in rows:
                    db.merge(model(**row))
                    count += 1
                db.commit()
            except Exception:
                db.rollback()
                raise
        return count

    def delete(self, model: Type[Base], key: str) -> bool:
        with self.session() as db:
            obj = db.get(model, key)
            if obj is None:
                return False
            try:
                db.delete(obj)
                db.commit()
            except Exception:
                db.rollback()
                raise
        return True

    def delete_where(self, model: Type[Base], column: str, value: Any) -> int:
        with self.session() as db:
            try:
                count = db.query(model).filter(getattr(model, column) == value).delete(synchronize_session=False)
                db.commit()
            except Exception:
                db.rollback()
                raise
        return count

    def replace_all(self, model: Type[Base], rows: Iterable[Row]) -> int:
        """Clear a table and refill it, in one transaction."""
        count = 0
        with self.session() as db:
            try:
                db.query(model).delete(synchronize_session=False)
                for row in rows:
                    db.merge(model(**row))
                    count += 1
                db.commit()
            except Exception:
                db.rollback()
                raise
        return count

    def clear(self, model: Type[Base]) -> int:
        return self.replace_all(model, [])

    def schema_version(self) -> int:
        with self.session() as db:
            meta = db.get(CacheMeta, "schema_version")
            return int(meta.value) if meta else 0


def migrate(engine: Engine) -> None:
    """
    Bring the local schema up to date without touching existing data.

    Safe to run against a store created by any earlier version: missing
    tables, columns and indexes are added, existing ones are left alone.
    """
    import app.models  # noqa: F401  (register tables)

    Base.metadata.create_all(bind=engine, checkfirst=True)
    with engine.begin() as conn:
        inspector = inspect(conn)
        for table in Base.metadata.sorted_tables:
            existing = {c["name"] for c in inspector.get_columns(table.name)}
            for column in table.columns:
                if column.name in existing:
                    continue
                col_type = column.type.compile(dialect=conn.dialect)
                conn.execute(text(f'ALTER TABLE {table.name} ADD COLUMN "{column.name}" {col_type}'))
                logger.info(f"Local cache: added column {table.name}.{column.name}")
            for index in table.indexes:
                index.create(bind=conn, checkfirst=True)
        conn.execute(
            CacheMeta.__table__.delete().where(CacheMeta.key == "schema_version")
        )
        conn.execute(
            CacheMeta.__table__.insert().values(
                key="schema_version",
                value=str(SCHEMA_VERSION),
                updated_at=datetime.now(timezone.utc),
            )
        )


_local_cache: Optional[LocalCache] = None
_local_cache_lock = threading.Lock()


def get_local_cache() -> LocalCache:
    """Process-wide cache handle."""
    global _local_cache
    if _local_cache is None:
        with _local_cache_lock:
            if _local_cache is None:
                _local_cache = LocalCache()
    return _local_cache


def init_db() -> LocalCache:
    """Open the process-wide local cache. Called from the application lifespan."""
    cache = get_local_cache()
    cache.init()
    return cache
