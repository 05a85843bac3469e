"""Conversation data models."""
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


class Role(str, Enum):
    """Author of a turn."""
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Turn:
    """Represents a single immutable message in a user's conversation."""
    user_id: str
    timestamp: datetime
    role: Role
    content: str

    def to_message(self) -> Dict[str, str]:
        """Project to the role/content pair sent to a completion provider."""
        return {"role": self.role.value, "content": self.content}

    def to_record(self) -> Dict[str, str]:
        """Serialize to the flat string record persisted by stores."""
        return {
            "user_id": self.user_id,
            "timestamp": format_timestamp(self.timestamp),
            "role": self.role.value,
            "content": self.content,
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Turn":
        """
        Build a Turn from a stored record.

        Raises:
            KeyError: If a required field is missing
            ValueError: If the role or timestamp cannot be parsed
            TypeError: If a field has the wrong type
        """
        content = record["content"]
        if not isinstance(content, str):
            raise TypeError(f"content must be a string, got {type(content).__name__}")
        return cls(
            user_id=str(record["user_id"]),
            timestamp=parse_timestamp(record["timestamp"]),
            role=Role(record["role"]),
            content=content,
        )


def format_timestamp(timestamp: datetime) -> str:
    """
    Format a timestamp as fixed-width UTC ISO-8601.

    Fixed width keeps lexicographic order equal to chronological order,
    which string sort keys rely on.
    """
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(timestamp_str: str) -> datetime:
    """
    Parse timestamp string from a store, handling various formats.

    Stores can return timestamps with varying fractional precision, which
    Python's fromisoformat() can't always handle. This method normalizes the
    timestamp format and always returns an aware UTC datetime.

    Args:
        timestamp_str: Timestamp string from the store

    Returns:
        datetime object in UTC
    """
    if not isinstance(timestamp_str, str):
        raise TypeError(f"timestamp must be a string, got {type(timestamp_str).__name__}")

    # Replace 'Z' with '+00:00' for timezone
    timestamp_str = timestamp_str.replace("Z", "+00:00")

    # Truncate or pad fractional seconds to 6 digits
    # Format: 2026-02-21T02:08:26.18976+00:00
    if "." in timestamp_str:
        head, tail = timestamp_str.split(".", 1)
        digits = ""
        for char in tail:
            if not char.isdigit():
                break
            digits += char
        tz = tail[len(digits):]
        timestamp_str = f"{head}.{digits[:6].ljust(6, '0')}{tz}"

    parsed = datetime.fromisoformat(timestamp_str)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class TurnClock:
    """Issues strictly increasing UTC timestamps for new turns.

    When the underlying clock has not advanced since the last issued value,
    the next timestamp is bumped by one microsecond.
    """

    def __init__(self, now: Optional[Callable[[], datetime]] = None):
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._last: Optional[datetime] = None
        self._lock = threading.Lock()

    def __call__(self) -> datetime:
        with self._lock:
            current = self._now()
            if current.tzinfo is None:
                current = current.replace(tzinfo=timezone.utc)
            if self._last is not None and current <= self._last:
                current = self._last + timedelta(microseconds=1)
            self._last = current
            return current
