"""
Analysis history stores.

Past confidence analyses are kept per user so the dashboard can list and
delete them. Two implementations share the HistoryStore protocol:
- SupabaseHistoryStore: the hosted ``analysis_history`` table
- InMemoryHistoryStore: local fallback when no datastore is configured

Records are created here (id and created_at are assigned on append) and
listed most recent first.
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Optional, Protocol, runtime_checkable
from uuid import uuid4

from supabase import Client, create_client

from proppulse.config import HistoryConfig
from proppulse.exceptions import InfrastructureError
from proppulse.models import HistoryEntryCreate, HistoryRecord


logger = logging.getLogger(__name__)


def new_record(entry: HistoryEntryCreate) -> HistoryRecord:
    """Stamp a new entry with an id and creation time."""
    return HistoryRecord(
        **entry.model_dump(),
        id=str(uuid4()),
        created_at=datetime.now(timezone.utc).isoformat(),
    )


@runtime_checkable
class HistoryStore(Protocol):
    def append(self, entry: HistoryEntryCreate) -> HistoryRecord:
        ...

    def list_for_user(self, user_id: Optional[str], limit: int = 50) -> list[HistoryRecord]:
        ...

    def get(self, record_id: str) -> Optional[HistoryRecord]:
        ...

    def delete(self, record_id: str) -> bool:
        ...


class InMemoryHistoryStore:
    """
    Thread-safe in-memory history store.

    Uses a dict keyed by record id and a lock for thread safety. Data is lost
    on restart.
    """

    def __init__(self) -> None:
        self._records: dict[str, HistoryRecord] = {}
        self._lock = threading.Lock()

    def append(self, entry: HistoryEntryCreate) -> HistoryRecord:
        record = new_record(entry)
        with self._lock:
            self._records[record.id] = record
        return record

    def list_for_user(self, user_id: Optional[str], limit: int = 50) -> list[HistoryRecord]:
        """
        List records for one user, most recent first.

        Args:
            user_id: Owner to filter on (None lists anonymous records)
            limit: Maximum number of records to return

        Returns:
            List of HistoryRecord objects, most recent first
        """
        with self._lock:
            records = list(self._records.values())

        records = [r for r in records if r.user_id == user_id]
        records.reverse()
        return records[:limit]

    def get(self, record_id: str) -> Optional[HistoryRecord]:
        with self._lock:
            return self._records.get(record_id)

    def delete(self, record_id: str) -> bool:
        with self._lock:
            return self._records.pop(record_id, None) is not None

    def clear(self) -> None:
        """Clear all records. Useful for testing."""
        with self._lock:
            self._records.clear()


class SupabaseHistoryStore:
    """
    History store backed by a Supabase table.

    Rows use the camelCase wire names for the analysis fields and snake_case
    for user_id, property_address and created_at.

    Raises:
        InfrastructureError: From any method when the datastore call fails
    """

    def __init__(self, config: HistoryConfig, client: Optional[Client] = None):
        if client is None:
            if not config.hosted:
                raise ValueError(
                    "Supabase URL and key required. Set SUPABASE_URL and SUPABASE_KEY "
                    "environment variables."
                )
            client = create_client(config.supabase_url, config.supabase_key)
        self.client = client
        self.table = config.table

    def _rows(self, response: Any) -> list[dict[str, Any]]:
        return list(response.data or [])

    def append(self, entry: HistoryEntryCreate) -> HistoryRecord:
        record = new_record(entry)
        try:
            response = (
                self.client.table(self.table)
                .insert(record.model_dump(by_alias=True))
                .execute()
            )
        except Exception as e:
            raise InfrastructureError(f"History insert failed: {e}") from e

        rows = self._rows(response)
        return HistoryRecord.model_validate(rows[0]) if rows else record

    def list_for_user(self, user_id: Optional[str], limit: int = 50) -> list[HistoryRecord]:
        query = self.client.table(self.table).select("*")
        if user_id is None:
            query = query.is_("user_id", "null")
        else:
            query = query.eq("user_id", user_id)
        try:
            response = query.order("created_at", desc=True).limit(limit).execute()
        except Exception as e:
            raise InfrastructureError(f"History query failed: {e}") from e
        return [HistoryRecord.model_validate(row) for row in self._rows(response)]

    def get(self, record_id: str) -> Optional[HistoryRecord]:
        try:
            response = self.client.table(self.table).select("*").eq("id", record_id).execute()
        except Exception as e:
            raise InfrastructureError(f"History query failed: {e}") from e
        rows = self._rows(response)
        return HistoryRecord.model_validate(rows[0]) if rows else None

    def delete(self, record_id: str) -> bool:
        try:
            response = self.client.table(self.table).delete().eq("id", record_id).execute()
        except Exception as e:
            raise InfrastructureError(f"History delete failed: {e}") from e
        return bool(self._rows(response))


def build_history_store(config: HistoryConfig) -> HistoryStore:
    """Supabase store when credentials are configured, else in-memory."""
    if config.hosted:
        logger.info(f"Using Supabase history store (table={config.table})")
        return SupabaseHistoryStore(config)
    logger.info("Using in-memory history store (no SUPABASE_URL/SUPABASE_KEY)")
    return InMemoryHistoryStore()


def record_analysis(store: HistoryStore, entry: HistoryEntryCreate) -> Optional[HistoryRecord]:
    """
    Append a history entry without letting a storage failure escape.

    Returns:
        The stored record, or None if the write failed
    """
    try:
        return store.append(entry)
    except Exception as e:
        logger.warning(f"Failed to save analysis history for user={entry.user_id}: {e}")
        return None
