"""Request record persistence.

The Request Lifecycle Manager is the only writer. Records are created when
a stream begins and updated once when it terminates; deletion and retention
are handled elsewhere.
"""
import asyncio
import json
import uuid
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field, fields, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from redis import asyncio as aioredis

from smartsummary.core.errors import PersistenceError, error_message
from smartsummary.core.logging import StructuredLogger

COST_DECIMALS = 6


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class RequestRecord:
    """One end-to-end summarization request."""

    id: str
    input_text: str
    summary_text: Optional[str] = None
    client_origin: Optional[str] = None
    total_tokens: int = 0
    cost_usd: float = 0.0
    created_at: datetime = field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    error_message: Optional[str] = None

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat()
        data["completed_at"] = self.completed_at.isoformat() if self.completed_at else None
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RequestRecord":
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        for key in ("created_at", "completed_at"):
            if isinstance(values.get(key), str):
                values[key] = datetime.fromisoformat(values[key])
        return cls(**values)


UPDATABLE_FIELDS = frozenset(
    {"summary_text", "total_tokens", "cost_usd", "completed_at", "error_message"}
)


def _normalize_update(changes: Dict[str, Any]) -> Dict[str, Any]:
    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        raise PersistenceError(f"Cannot update fields: {', '.join(sorted(unknown))}")
    normalized = dict(changes)
    if normalized.get("cost_usd") is not None:
        normalized["cost_usd"] = round(float(normalized["cost_usd"]), COST_DECIMALS)
    return normalized


class RequestStore(ABC):
    """Record store contract."""

    @abstractmethod
    async def create(self, input_text: str, client_origin: Optional[str] = None) -> RequestRecord:
        """Persist a new record with all nullable fields empty."""

    @abstractmethod
    async def update(self, record_id: str, **changes: Any) -> None:
        """Apply changes to an existing record.

        Raises:
            PersistenceError: If the record is missing or the write fails
        """

    @abstractmethod
    async def find_by_id(self, record_id: str) -> Optional[RequestRecord]:
        """Return the record or None."""

    async def ping(self) -> bool:
        """Whether the backend is reachable."""
        return True

    async def close(self) -> None:
        """Release backend resources."""


class InMemoryRequestStore(RequestStore):
    """Dict-backed store for development and tests."""

    def __init__(self):
        self.records: Dict[str, RequestRecord] = {}
        self._lock = asyncio.Lock()

    async def create(self, input_text: str, client_origin: Optional[str] = None) -> RequestRecord:
        record = RequestRecord(
            id=str(uuid.uuid4()),
            input_text=input_text,
            client_origin=client_origin,
        )
        async with self._lock:
            self.records[record.id] = record
        return replace(record)

    async def update(self, record_id: str, **changes: Any) -> None:
        normalized = _normalize_update(changes)
        async with self._lock:
            record = self.records.get(record_id)
            if record is None:
                raise PersistenceError(f"Summary request {record_id} not found")
            self.records[record_id] = replace(record, **normalized)

    async def find_by_id(self, record_id: str) -> Optional[RequestRecord]:
        record = self.records.get(record_id)
        return replace(record) if record else None


class RedisRequestStore(RequestStore):
    """Redis-backed store: one JSON document per record.

    A sorted set indexed by creation time lets operators find records that
    were created but never completed.
    """

    def __init__(
        self,
        redis_url: str,
        key_prefix: str = "smartsummary",
        client: Any = None,
        logger: Optional[StructuredLogger] = None,
    ):
        """
        Args:
            redis_url: Redis connection URL
            key_prefix: Prefix for record keys
            client: Pre-built asyncio Redis client (tests)
            logger: Structured logger
        """
        self.key_prefix = key_prefix
        self.logger = logger or StructuredLogger("smartsummary.store")
        self.redis_url = redis_url
        self.client = client or aioredis.from_url(redis_url, decode_responses=True)

    def _key(self, record_id: str) -> str:
        return f"{self.key_prefix}:summary_request:{record_id}"

    @property
    def created_index_key(self) -> str:
        return f"{self.key_prefix}:summary_requests:created"

    async def ping(self) -> bool:
        try:
            return bool(await self.client.ping())
        except Exception as e:
            self.logger.warning("store_ping_failed", error_type=type(e).__name__, message=error_message(e))
            return False

    async def create(self, input_text: str, client_origin: Optional[str] = None) -> RequestRecord:
        record = RequestRecord(
            id=str(uuid.uuid4()),
            input_text=input_text,
            client_origin=client_origin,
        )
        try:
            pipe = self.client.pipeline(transaction=True)
            pipe.set(self._key(record.id), json.dumps(record.to_dict()))
            pipe.zadd(self.created_index_key, {record.id: record.created_at.timestamp()})
            await pipe.execute()
        except Exception as e:
            raise PersistenceError(str(e)) from e
        return record

    async def update(self, record_id: str, **changes: Any) -> None:
        normalized = _normalize_update(changes)
        key = self._key(record_id)
        try:
            raw = await self.client.get(key)
        except Exception as e:
            raise PersistenceError(str(e)) from e
        if not raw:
            raise PersistenceError(f"Summary request {record_id} not found")

        record = replace(RequestRecord.from_dict(json.loads(raw)), **normalized)
        try:
            await self.client.set(key, json.dumps(record.to_dict()))
        except Exception as e:
            raise PersistenceError(str(e)) from e

    async def find_by_id(self, record_id: str) -> Optional[RequestRecord]:
        try:
            raw = await self.client.get(self._key(record_id))
        except Exception as e:
            raise PersistenceError(str(e)) from e
        if not raw:
            return None
        return RequestRecord.from_dict(json.loads(raw))

    async def close(self) -> None:
        await self.client.aclose()
