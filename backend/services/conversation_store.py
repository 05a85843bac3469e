"""Conversation stores: append-only turn history partitioned by user."""
import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Mapping, Optional
from supabase import create_client, Client

from models.conversation import Turn
from config import SUPABASE_URL, SUPABASE_KEY, CHAT_TABLE, DEFAULT_CHAT_TABLE
from services.errors import ConfigurationError, HistoryFetchError, StorageWriteError

logger = logging.getLogger(__name__)


class ConversationStore(ABC):
    """Durable append-only record of turns per user."""

    def __init__(self, table_name: Optional[str] = None):
        self.table_name = table_name

    @abstractmethod
    def append(self, turn: Turn) -> None:
        """
        Persist one turn.

        Raises:
            StorageWriteError: If the store rejects or cannot accept the write
        """

    @abstractmethod
    def history(self, user_id: str) -> List[Turn]:
        """
        Return every turn for a user in ascending timestamp order.

        Raises:
            ConfigurationError: If no table name is configured
            HistoryFetchError: If the store is unreachable or a record is malformed
        """

    def _write_table(self) -> str:
        return self.table_name or DEFAULT_CHAT_TABLE

    def _read_table(self) -> str:
        if not self.table_name:
            raise ConfigurationError("CHAT_TABLE must be set to fetch conversation history")
        return self.table_name

    @staticmethod
    def _to_turns(user_id: str, records: Iterable[Mapping[str, Any]]) -> List[Turn]:
        """Convert raw records to turns ordered by timestamp."""
        turns = []
        for record in records:
            try:
                turns.append(Turn.from_record(record))
            except (KeyError, ValueError, TypeError) as e:
                logger.error(f"Malformed conversation record for user {user_id}: {record!r}")
                raise HistoryFetchError(
                    f"Malformed conversation record for user {user_id}: {e}",
                    cause=e
                ) from e
        return sorted(turns, key=lambda turn: turn.timestamp)


class SupabaseConversationStore(ConversationStore):
    """Conversation storage and retrieval using Supabase PostgreSQL."""

    PAGE_SIZE = 1000

    def __init__(
        self,
        supabase_url: Optional[str] = None,
        supabase_key: Optional[str] = None,
        table_name: Optional[str] = None,
        client: Optional[Client] = None
    ):
        """
        Initialize the store with a Supabase client.

        Args:
            supabase_url: Supabase project URL (defaults to SUPABASE_URL)
            supabase_key: Supabase API key (defaults to SUPABASE_KEY)
            table_name: Conversation table (defaults to CHAT_TABLE)
            client: Pre-built Supabase client

        Raises:
            ConfigurationError: If Supabase credentials are missing
        """
        super().__init__(table_name if table_name is not None else CHAT_TABLE)

        if client is None:
            url = supabase_url or SUPABASE_URL
            key = supabase_key or SUPABASE_KEY
            if not url or not key:
                raise ConfigurationError("SUPABASE_URL and SUPABASE_KEY must be set in environment variables")
            client = create_client(url, key)

        self.client = client
        logger.info(f"SupabaseConversationStore initialized (table={self.table_name or DEFAULT_CHAT_TABLE})")

    def append(self, turn: Turn) -> None:
        """Insert one turn row."""
        table = self._write_table()

        try:
            self.client.table(table).insert(turn.to_record()).execute()
        except Exception as e:
            logger.error(f"Error saving turn for user {turn.user_id} to {table}: {e}")
            raise StorageWriteError(f"Failed to save turn to {table}: {e}", cause=e) from e

        logger.debug(f"Saved {turn.role.value} turn for user {turn.user_id} to {table}")

    def history(self, user_id: str) -> List[Turn]:
        """Select every row for the user ordered by timestamp, one page at a time."""
        table = self._read_table()
        rows: List[Dict[str, Any]] = []
        start = 0

        try:
            while True:
                result = (
                    self.client.table(table)
                    .select("*")
                    .eq("user_id", user_id)
                    .order("timestamp", desc=False)
                    .range(start, start + self.PAGE_SIZE - 1)
                    .execute()
                )
                page = result.data or []
                rows.extend(page)
                if len(page) < self.PAGE_SIZE:
                    break
                start += self.PAGE_SIZE
        except Exception as e:
            logger.error(f"Error retrieving history for user {user_id} from {table}: {e}")
            raise HistoryFetchError(f"Failed to query {table}: {e}", cause=e) from e

        logger.debug(f"Fetched {len(rows)} turns for user {user_id}")
        return self._to_turns(user_id, rows)


class InMemoryConversationStore(ConversationStore):
    """Process-local store for development and tests."""

    def __init__(self, table_name: Optional[str] = DEFAULT_CHAT_TABLE):
        super().__init__(table_name)
        self._records: Dict[str, List[Dict[str, str]]] = {}
        self._lock = threading.Lock()

    def append(self, turn: Turn) -> None:
        record = turn.to_record()
        with self._lock:
            records = self._records.setdefault(turn.user_id, [])
            if any(existing["timestamp"] == record["timestamp"] for existing in records):
                raise StorageWriteError(
                    f"A turn already exists for user {turn.user_id} at {record['timestamp']}"
                )
            records.append(record)

    def history(self, user_id: str) -> List[Turn]:
        self._read_table()
        with self._lock:
            records = list(self._records.get(user_id, []))
        return self._to_turns(user_id, records)
