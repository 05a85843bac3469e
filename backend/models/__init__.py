"""Data models for the Red AI conversation pipeline."""
from .conversation import Role, Turn, TurnClock, format_timestamp, parse_timestamp
from .api import (
    IngestRequest,
    IngestResponse,
    CompletionRequest,
    CompletionResponse,
    SynthesisRequest,
    SynthesisResponse,
    ChatRequest,
    ChatResponse,
)

__all__ = [
    "Role",
    "Turn",
    "TurnClock",
    "format_timestamp",
    "parse_timestamp",
    "IngestRequest",
    "IngestResponse",
    "CompletionRequest",
    "CompletionResponse",
    "SynthesisRequest",
    "SynthesisResponse",
    "ChatRequest",
    "ChatResponse",
]
