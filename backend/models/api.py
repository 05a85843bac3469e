"""Request and response records exchanged with pipeline invokers."""
from typing import Optional
from pydantic import BaseModel, Field


class IngestRequest(BaseModel):
    """Inbound user message to persist."""
    user_id: str
    message: str


class IngestResponse(BaseModel):
    """Pass-through confirmation of an accepted message."""
    user_id: str
    message: str


class CompletionRequest(BaseModel):
    """Request for a completion over a user's stored history."""
    user_id: str
    prompt: str = ""


class CompletionResponse(BaseModel):
    completion: str
    user_id: str


class SynthesisRequest(BaseModel):
    text: str


class SynthesisResponse(BaseModel):
    audio_url: str


class ChatRequest(BaseModel):
    """Request for the full ingest -> complete -> synthesize workflow."""
    user_id: str
    message: str
    speak: bool = Field(default=True, description="Synthesize the completion to audio")


class ChatResponse(BaseModel):
    user_id: str
    message: str
    completion: str
    audio_url: Optional[str] = None
