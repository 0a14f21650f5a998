"""
State Persistence Service

Stores the engine's three independent maps (bandit model, zone state,
capacity state), each keyed by serialised context key. Backends:
1. In-memory: tests and throwaway sessions
2. SQL: one `engine_state` table through SQLAlchemy
3. Redis: one hash per namespace

Every backend is wrapped in a fail-soft repository: I/O errors are logged
and read as empty state, never propagated.
"""

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Optional

import redis
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

MODEL_NAMESPACE = 'bandit_model'
ZONE_NAMESPACE = 'zone_state'
CAPACITY_NAMESPACE = 'capacity_state'
NAMESPACES = (MODEL_NAMESPACE, ZONE_NAMESPACE, CAPACITY_NAMESPACE)

STATE_TABLE_DDL = """
CREATE TABLE IF NOT EXISTS engine_state (
    namespace VARCHAR(64) NOT NULL,
    context_key VARCHAR(255) NOT NULL,
    payload TEXT NOT NULL,
    updated_at VARCHAR(32) NOT NULL,
    PRIMARY KEY (namespace, context_key)
)
"""


def create_db_engine(database_url: str, **kwargs) -> Engine:
    """
    Create a SQLAlchemy engine.

    In-memory SQLite URLs share one connection so every caller sees the
    same database.
    """
    if database_url in ('sqlite://', 'sqlite:///:memory:'):
        kwargs.setdefault('poolclass', StaticPool)
        kwargs.setdefault('connect_args', {'check_same_thread': False})
    return create_engine(database_url, **kwargs)


class StateRepository(ABC):
    """Namespaced key-value store for JSON-serialisable engine state."""

    @abstractmethod
    def get(self, namespace: str, key: str) -> Optional[Dict[str, Any]]:
        """Return the stored value or None."""

    @abstractmethod
    def put(self, namespace: str, key: str, value: Dict[str, Any]):
        """Store a value, replacing any previous one."""

    @abstractmethod
    def load_namespace(self, namespace: str) -> Dict[str, Dict[str, Any]]:
        """Return every key and value in a namespace."""

    @abstractmethod
    def replace_namespace(self, namespace: str, mapping: Dict[str, Dict[str, Any]]):
        """Overwrite a whole namespace."""

    def clear(self):
        for namespace in NAMESPACES:
            self.replace_namespace(namespace, {})


class InMemoryStateStore(StateRepository):
    """Dictionary-backed store. Values are kept as JSON text to mimic durable copies."""

    def __init__(self):
        self._data: Dict[str, Dict[str, str]] = {namespace: {} for namespace in NAMESPACES}

    def get(self, namespace, key):
        raw = self._data.setdefault(namespace, {}).get(key)
        return json.loads(raw) if raw is not None else None

    def put(self, namespace, key, value):
        self._data.setdefault(namespace, {})[key] = json.dumps(value)

    def load_namespace(self, namespace):
        return {key: json.loads(raw) for key, raw in self._data.setdefault(namespace, {}).items()}

    def replace_namespace(self, namespace, mapping):
        self._data[namespace] = {key: json.dumps(value) for key, value in mapping.items()}


class SQLStateStore(StateRepository):
    """State stored in the `engine_state` table."""

    def __init__(self, db_engine: Engine):
        self.db_engine = db_engine
        self.create_tables()

    @classmethod
    def from_url(cls, database_url: str, **engine_kwargs) -> 'SQLStateStore':
        return cls(create_db_engine(database_url, **engine_kwargs))

    def create_tables(self):
        with self.db_engine.begin() as conn:
            conn.execute(text(STATE_TABLE_DDL))

    def get(self, namespace, key):
        with self.db_engine.connect() as conn:
            query = text("""
                SELECT payload FROM engine_state
                WHERE namespace = :namespace AND context_key = :context_key
            """)
            row = conn.execute(query, {'namespace': namespace, 'context_key': key}).fetchone()
        return json.loads(row[0]) if row else None

    def put(self, namespace, key, value):
        with self.db_engine.begin() as conn:
            self._write(conn, namespace, key, value)

    def load_namespace(self, namespace):
        with self.db_engine.connect() as conn:
            query = text("SELECT context_key, payload FROM engine_state WHERE namespace = :namespace")
            rows = conn.execute(query, {'namespace': namespace}).fetchall()
        return {row[0]: json.loads(row[1]) for row in rows}

    def replace_namespace(self, namespace, mapping):
        with self.db_engine.begin() as conn:
            conn.execute(
                text("DELETE FROM engine_state WHERE namespace = :namespace"),
                {'namespace': namespace}
            )
            for key, value in mapping.items():
                self._write(conn, namespace, key, value)

    def _write(self, conn, namespace, key, value):
        conn.execute(
            text("DELETE FROM engine_state WHERE namespace = :namespace AND context_key = :context_key"),
            {'namespace': namespace, 'context_key': key}
        )
        conn.execute(
            text("""
                INSERT INTO engine_state (namespace, context_key, payload, updated_at)
                VALUES (:namespace, :context_key, :payload, :updated_at)
            """),
            {
                'namespace': namespace,
                'context_key': key,
                'payload': json.dumps(value),
                'updated_at': datetime.now().isoformat(),
            }
        )


class RedisStateStore(StateRepository):
    """State stored as one Redis hash per namespace."""

    def __init__(self, redis_client, key_prefix: str = 'focus_engine'):
        self.redis_client = redis_client
        self.key_prefix = key_prefix

    @classmethod
    def from_settings(cls, settings) -> 'RedisStateStore':
        client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db,
            password=settings.redis_password,
            decode_responses=True
        )
        return cls(client, settings.state_key_prefix)

    def _hash_name(self, namespace: str) -> str:
        return f"{self.key_prefix}:{namespace}"

    def get(self, namespace, key):
        raw = self.redis_client.hget(self._hash_name(namespace), key)
        return json.loads(raw) if raw else None

    def put(self, namespace, key, value):
        self.redis_client.hset(self._hash_name(namespace), key, json.dumps(value))

    def load_namespace(self, namespace):
        raw = self.redis_client.hgetall(self._hash_name(namespace)) or {}
        return {key: json.loads(value) for key, value in raw.items()}

    def replace_namespace(self, namespace, mapping):
        name = self._hash_name(namespace)
        self.redis_client.delete(name)
        if mapping:
            self.redis_client.hset(name, mapping={key: json.dumps(value) for key, value in mapping.items()})


class FailSoftRepository(StateRepository):
    """
    Wraps a backend so persistence failures degrade to cold-start state.

    Reads that fail return None / {}; writes that fail are logged and dropped.
    A single attempt is made for every call.
    """

    def __init__(self, backend: StateRepository):
        self.backend = backend

    def get(self, namespace, key):
        try:
            return self.backend.get(namespace, key)
        except Exception as e:
            logger.error(f"Failed to load {namespace}[{key}]: {e}")
            return None

    def put(self, namespace, key, value):
        try:
            self.backend.put(namespace, key, value)
        except Exception as e:
            logger.error(f"Failed to save {namespace}[{key}]: {e}")

    def load_namespace(self, namespace):
        try:
            return self.backend.load_namespace(namespace)
        except Exception as e:
            logger.error(f"Failed to load namespace {namespace}: {e}")
            return {}

    def replace_namespace(self, namespace, mapping):
        try:
            self.backend.replace_namespace(namespace, mapping)
        except Exception as e:
            logger.error(f"Failed to replace namespace {namespace}: {e}")


def create_state_repository(settings) -> FailSoftRepository:
    """Build the configured state backend wrapped for fail-soft access."""
    backend_name = settings.state_backend
    if backend_name == 'redis':
        backend = RedisStateStore.from_settings(settings)
    elif backend_name == 'sql':
        backend = SQLStateStore.from_url(settings.database_url)
    else:
        backend = InMemoryStateStore()

    logger.info(f"Using {backend_name} state backend")
    return FailSoftRepository(backend)
