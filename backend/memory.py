"""
Agent Memory — per-(user, agent) keyed records with optional expiry.

Each record is addressed by (user_id, agent_id, key); writing an existing
key replaces the value in place. Expired records are treated as absent on
every read and are purged lazily, plus an opportunistic sweep during writes.
"""

import asyncio
import itertools
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from config import MEMORY_SWEEP_INTERVAL

logger = logging.getLogger(__name__)

_MISSING = object()


@dataclass
class MemoryRecord:
    user_id: str
    agent_id: str
    key: str
    value: Any
    metadata: Optional[dict] = None
    created_at: float = 0.0
    updated_at: float = 0.0
    expires_at: Optional[float] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    revision: int = 0

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and now >= self.expires_at

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "agent_id": self.agent_id,
            "key": self.key,
            "value": self.value,
            "metadata": self.metadata,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "expires_at": self.expires_at,
        }


class MemoryStore:
    """In-process memory store shared by all personas.

    Args:
        clock: Callable returning the current epoch time in seconds.
        sweep_interval: Minimum seconds between opportunistic purges.
    """

    def __init__(self, clock: Callable[[], float] = time.time,
                 sweep_interval: float = MEMORY_SWEEP_INTERVAL):
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._records: dict[tuple[str, str], dict[str, MemoryRecord]] = {}
        self._revisions = itertools.count(1)
        self._last_sweep = clock()
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        now = self._clock()
        return sum(
            1 for bucket in self._records.values()
            for rec in bucket.values() if not rec.is_expired(now)
        )

    # ── Writes ──

    async def store(self, user_id: str, agent_id: str, key: str, value: Any,
                    ttl_seconds: Optional[float] = None,
                    metadata: Optional[dict] = None) -> MemoryRecord:
        """Upsert a record. With ttl_seconds the record expires at now + ttl_seconds."""
        now = self._clock()
        expires_at = now + ttl_seconds if ttl_seconds is not None else None
        async with self._lock:
            bucket = self._records.setdefault((user_id, agent_id), {})
            existing = bucket.get(key)
            if existing is not None and not existing.is_expired(now):
                record = MemoryRecord(
                    user_id=user_id, agent_id=agent_id, key=key, value=value,
                    metadata=metadata, created_at=existing.created_at,
                    updated_at=now, expires_at=expires_at, id=existing.id,
                    revision=next(self._revisions),
                )
            else:
                record = MemoryRecord(
                    user_id=user_id, agent_id=agent_id, key=key, value=value,
                    metadata=metadata, created_at=now, updated_at=now,
                    expires_at=expires_at, revision=next(self._revisions),
                )
            bucket[key] = record
            self._maybe_sweep(now)
        return record

    async def update(self, user_id: str, agent_id: str, key: str, *,
                     value: Any = _MISSING, metadata: Any = _MISSING,
                     ttl_seconds: Any = _MISSING) -> Optional[MemoryRecord]:
        """Patch a live record. Returns the new record, or None if absent.

        Only the given fields change; ttl_seconds=None removes the expiry.
        """
        now = self._clock()
        async with self._lock:
            current = self._live(user_id, agent_id, key, now)
            if current is None:
                return None
            expires_at = current.expires_at
            if ttl_seconds is not _MISSING:
                expires_at = now + ttl_seconds if ttl_seconds is not None else None
            record = MemoryRecord(
                user_id=user_id, agent_id=agent_id, key=key,
                value=current.value if value is _MISSING else value,
                metadata=current.metadata if metadata is _MISSING else metadata,
                created_at=current.created_at, updated_at=now,
                expires_at=expires_at, id=current.id,
                revision=next(self._revisions),
            )
            self._records[(user_id, agent_id)][key] = record
        return record

    async def delete(self, user_id: str, agent_id: str, key: str) -> bool:
        async with self._lock:
            bucket = self._records.get((user_id, agent_id))
            if not bucket or key not in bucket:
                return False
            expired = bucket.pop(key).is_expired(self._clock())
            return not expired

    async def clear_all(self, user_id: str, agent_id: str) -> int:
        """Remove every record for one (user, agent) pair. Returns the count."""
        async with self._lock:
            bucket = self._records.pop((user_id, agent_id), {})
        return len(bucket)

    async def clear_user(self, user_id: str) -> int:
        """Remove every record owned by a user across all agents."""
        async with self._lock:
            pairs = [pair for pair in self._records if pair[0] == user_id]
            removed = sum(len(self._records.pop(pair)) for pair in pairs)
        return removed

    async def cleanup_expired(self) -> int:
        """Purge all expired records. Returns the number removed."""
        async with self._lock:
            return self._purge(self._clock())

    # ── Reads ──

    async def retrieve(self, user_id: str, agent_id: str,
                       key: str) -> Optional[MemoryRecord]:
        async with self._lock:
            return self._live(user_id, agent_id, key, self._clock())

    async def search_by_prefix(self, user_id: str, agent_id: str,
                               prefix: str) -> list[MemoryRecord]:
        """Live records whose key starts with prefix, most recent first."""
        now = self._clock()
        bucket = self._records.get((user_id, agent_id), {})
        matches = [
            rec for rec in bucket.values()
            if rec.key.startswith(prefix) and not rec.is_expired(now)
        ]
        return sorted(matches, key=lambda r: (r.updated_at, r.revision), reverse=True)

    async def get_all(self, user_id: str, agent_id: str) -> list[MemoryRecord]:
        return await self.search_by_prefix(user_id, agent_id, "")

    # ── Internal ──

    def _live(self, user_id: str, agent_id: str, key: str,
              now: float) -> Optional[MemoryRecord]:
        bucket = self._records.get((user_id, agent_id))
        if not bucket:
            return None
        record = bucket.get(key)
        if record is None:
            return None
        if record.is_expired(now):
            del bucket[key]
            return None
        return record

    def _maybe_sweep(self, now: float):
        if now - self._last_sweep < self._sweep_interval:
            return
        removed = self._purge(now)
        if removed:
            logger.debug("Memory sweep purged %d expired records", removed)

    def _purge(self, now: float) -> int:
        removed = 0
        for pair in list(self._records):
            bucket = self._records[pair]
            for key in [k for k, rec in bucket.items() if rec.is_expired(now)]:
                del bucket[key]
                removed += 1
            if not bucket:
                del self._records[pair]
        self._last_sweep = now
        return removed
