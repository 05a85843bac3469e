"""Builds process-wide collaborators from configuration."""
import logging
from typing import Iterable, Optional

import config
from services.audio_store import AudioStore, S3AudioStore
from services.conversation_store import (
    ConversationStore,
    InMemoryConversationStore,
    SupabaseConversationStore,
)
from services.dynamo_store import DynamoConversationStore
from services.errors import ConfigurationError
from services.llm_client import CompletionProvider, GroqCompletionClient, OpenAICompletionClient
from services.pipeline import ConversationPipeline
from services.speech import OpenAISpeechSynthesizer, PollySpeechSynthesizer, SpeechSynthesizer

logger = logging.getLogger(__name__)


def build_conversation_store(backend: Optional[str] = None) -> ConversationStore:
    backend = (backend or config.CONVERSATION_BACKEND).lower()
    if backend == "supabase":
        return SupabaseConversationStore()
    if backend == "dynamodb":
        return DynamoConversationStore()
    if backend == "memory":
        return InMemoryConversationStore(config.CHAT_TABLE or config.DEFAULT_CHAT_TABLE)
    raise ConfigurationError(f"Unknown CONVERSATION_BACKEND: {backend!r}")


def build_completion_provider(backend: Optional[str] = None) -> CompletionProvider:
    backend = (backend or config.COMPLETION_BACKEND).lower()
    if backend == "openai":
        return OpenAICompletionClient()
    if backend == "groq":
        return GroqCompletionClient()
    raise ConfigurationError(f"Unknown COMPLETION_BACKEND: {backend!r}")


def build_synthesizer(backend: Optional[str] = None) -> SpeechSynthesizer:
    backend = (backend or config.SPEECH_BACKEND).lower()
    if backend == "openai":
        return OpenAISpeechSynthesizer()
    if backend == "polly":
        return PollySpeechSynthesizer()
    raise ConfigurationError(f"Unknown SPEECH_BACKEND: {backend!r}")


def build_audio_store() -> AudioStore:
    return S3AudioStore()


def build_pipeline(enabled_flows: Optional[Iterable[str]] = None) -> ConversationPipeline:
    """
    Construct the pipeline and only the collaborators the enabled flows need.

    Raises:
        ConfigurationError: If a flow name is unknown or a required setting is missing
    """
    flows = set(enabled_flows if enabled_flows is not None else config.ENABLED_FLOWS)
    known = {ConversationPipeline.INGEST, ConversationPipeline.COMPLETE, ConversationPipeline.SYNTHESIZE}
    unknown = flows - known
    if unknown:
        raise ConfigurationError(f"Unknown flows in ENABLED_FLOWS: {sorted(unknown)}")

    store = None
    completion_provider = None
    synthesizer = None
    audio_store = None
    if flows & {ConversationPipeline.INGEST, ConversationPipeline.COMPLETE}:
        store = build_conversation_store()
    if ConversationPipeline.COMPLETE in flows:
        completion_provider = build_completion_provider()
    if ConversationPipeline.SYNTHESIZE in flows:
        synthesizer = build_synthesizer()
        audio_store = build_audio_store()

    logger.info(f"Building pipeline with flows: {sorted(flows)}")
    return ConversationPipeline(
        store=store,
        completion_provider=completion_provider,
        synthesizer=synthesizer,
        audio_store=audio_store,
        record_completions=config.RECORD_ASSISTANT_TURNS,
        audio_key_prefix=config.AUDIO_KEY_PREFIX
    )
