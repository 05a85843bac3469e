"""Conversation pipeline: ingest, completion, and synthesis flows."""
import logging
import uuid
from datetime import datetime
from typing import Callable, Optional, Type, TypeVar

from logger import log_stage
from models.api import IngestResponse, CompletionResponse, SynthesisResponse
from models.conversation import Role, Turn, TurnClock
from services.audio_store import AudioStore
from services.conversation_store import ConversationStore
from services.errors import (
    ConfigurationError,
    InvalidRequestError,
    PipelineError,
    StorageWriteError,
    HistoryFetchError,
    CompletionTransportError,
    SynthesisError,
    PublishError,
)
from services.llm_client import CompletionProvider
from services.speech import SpeechSynthesizer

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ConversationPipeline:
    """
    Orchestrates the three flows over injected collaborators.

    Each flow runs its stages sequentially and stops at the first failure,
    which is raised as a single PipelineError tagged with flow and stage.
    Collaborators a deployment does not need may be omitted; calling a flow
    whose collaborator is missing raises ConfigurationError before any
    external call.
    """

    INGEST = "ingest"
    COMPLETE = "complete"
    SYNTHESIZE = "synthesize"

    def __init__(
        self,
        store: Optional[ConversationStore] = None,
        completion_provider: Optional[CompletionProvider] = None,
        synthesizer: Optional[SpeechSynthesizer] = None,
        audio_store: Optional[AudioStore] = None,
        clock: Optional[Callable[[], datetime]] = None,
        record_completions: bool = True,
        audio_key_prefix: str = "audio/"
    ):
        """
        Args:
            store: Conversation store used by the ingest and completion flows
            completion_provider: Provider used by the completion flow
            synthesizer: Speech backend used by the synthesis flow
            audio_store: Blob store used by the synthesis flow
            clock: Timestamp source for new turns; must never repeat a value
            record_completions: Append the assistant turn after a completion
            audio_key_prefix: Prefix for generated audio keys
        """
        self.store = store
        self.completion_provider = completion_provider
        self.synthesizer = synthesizer
        self.audio_store = audio_store
        self.clock = clock or TurnClock()
        self.record_completions = record_completions
        self.audio_key_prefix = audio_key_prefix

    def ingest(self, user_id: str, message: str) -> IngestResponse:
        """
        Persist a user message as a new turn.

        Returns:
            The accepted user_id/message pair, unchanged

        Raises:
            InvalidRequestError: If user_id or message is empty
            StorageWriteError: If the store rejects the write
        """
        self._require_text(self.INGEST, "user_id", user_id)
        self._require_text(self.INGEST, "message", message)
        store = self._require(self.INGEST, self.store, "conversation store")

        turn = Turn(user_id=user_id, timestamp=self.clock(), role=Role.USER, content=message)
        logger.debug(f"Ingesting message for user {user_id}: {message!r}")
        self._run_stage(
            self.INGEST, "append_turn", StorageWriteError,
            lambda: store.append(turn),
            user_id=user_id
        )

        return IngestResponse(user_id=user_id, message=message)

    def complete(self, user_id: str, prompt: str = "") -> CompletionResponse:
        """
        Generate a completion from the user's persisted history.

        The prompt is not added to the context: callers persist it through
        ingest first.

        Raises:
            InvalidRequestError: If user_id is empty
            ConfigurationError: If no completion provider is wired
            HistoryFetchError: If history cannot be read
            CompletionTransportError: If the provider cannot be reached
            CompletionParseError: If the provider response is malformed
            StorageWriteError: If the assistant turn cannot be recorded
        """
        self._require_text(self.COMPLETE, "user_id", user_id)
        store = self._require(self.COMPLETE, self.store, "conversation store")
        provider = self._require(self.COMPLETE, self.completion_provider, "completion provider")

        history = self._run_stage(
            self.COMPLETE, "fetch_history", HistoryFetchError,
            lambda: store.history(user_id),
            user_id=user_id
        )
        messages = [turn.to_message() for turn in history]
        logger.debug(f"Completion context for user {user_id}: {messages}")

        completion = self._run_stage(
            self.COMPLETE, "generate", CompletionTransportError,
            lambda: provider.complete(messages),
            user_id=user_id, model=provider.model, context_turns=len(messages)
        )

        if self.record_completions:
            turn = Turn(user_id=user_id, timestamp=self.clock(), role=Role.ASSISTANT, content=completion)
            self._run_stage(
                self.COMPLETE, "append_turn", StorageWriteError,
                lambda: store.append(turn),
                user_id=user_id
            )

        return CompletionResponse(completion=completion, user_id=user_id)

    def synthesize(self, text: str) -> SynthesisResponse:
        """
        Synthesize text to audio, publish it, and return its URL.

        Every call produces a new artifact, even for identical text.

        Raises:
            InvalidRequestError: If text is empty
            ConfigurationError: If no synthesizer or audio store is wired
            SynthesisError: If no audio was generated
            PublishError: If audio was generated but could not be stored
        """
        self._require_text(self.SYNTHESIZE, "text", text)
        synthesizer = self._require(self.SYNTHESIZE, self.synthesizer, "speech synthesizer")
        audio_store = self._require(self.SYNTHESIZE, self.audio_store, "audio store")

        key = f"{self.audio_key_prefix}{uuid.uuid4()}.{synthesizer.file_extension}"
        logger.info(f"Generated audio key: {key}")

        audio = self._run_stage(
            self.SYNTHESIZE, "synthesize", SynthesisError,
            lambda: synthesizer.synthesize(text),
            backend=synthesizer.name, key=key
        )
        audio_url = self._run_stage(
            self.SYNTHESIZE, "publish", PublishError,
            lambda: audio_store.put(key, audio, synthesizer.content_type),
            key=key, size=len(audio)
        )

        return SynthesisResponse(audio_url=audio_url)

    def _run_stage(
        self,
        flow: str,
        stage: str,
        error_class: Type[PipelineError],
        action: Callable[[], T],
        **fields
    ) -> T:
        """Run one stage, tagging failures with flow/stage and wrapping unexpected ones."""
        with log_stage(flow, stage, **fields):
            try:
                return action()
            except PipelineError as e:
                raise e.with_context(flow, stage)
            except Exception as e:
                raise error_class(
                    f"Unexpected error in {flow}.{stage}: {e}",
                    cause=e,
                    details={"error_type": type(e).__name__}
                ).with_context(flow, stage) from e

    @staticmethod
    def _require_text(flow: str, name: str, value: str) -> None:
        if not isinstance(value, str) or not value:
            raise InvalidRequestError(f"{name} is required and cannot be empty").with_context(flow, "validate")

    @staticmethod
    def _require(flow: str, collaborator: Optional[T], description: str) -> T:
        if collaborator is None:
            raise ConfigurationError(f"No {description} configured for the {flow} flow").with_context(flow, "configure")
        return collaborator
