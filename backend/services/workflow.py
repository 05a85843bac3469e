"""End-to-end chat workflow: ingest, then complete, then speak."""
import logging

from models.api import ChatResponse
from services.errors import ConfigurationError
from services.pipeline import ConversationPipeline

logger = logging.getLogger(__name__)


class ConversationWorkflow:
    """Chains the pipeline flows the way an outer orchestrator invokes them.

    The ingest output becomes the completion input and the completion becomes
    the synthesis text. The first failing flow ends the run with its error.
    """

    CHAT = "chat"

    def __init__(self, pipeline: ConversationPipeline):
        self.pipeline = pipeline

    def run(self, user_id: str, message: str, speak: bool = True) -> ChatResponse:
        self._check_wiring(speak)

        ingested = self.pipeline.ingest(user_id, message)
        completed = self.pipeline.complete(ingested.user_id, ingested.message)

        audio_url = None
        if speak and completed.completion.strip():
            audio_url = self.pipeline.synthesize(completed.completion).audio_url
        elif speak:
            logger.warning(f"Empty completion for user {user_id}; skipping speech synthesis")

        return ChatResponse(
            user_id=completed.user_id,
            message=ingested.message,
            completion=completed.completion,
            audio_url=audio_url
        )

    def _check_wiring(self, speak: bool) -> None:
        """Fail before the first write if a flow this run reaches is not wired."""
        needed = {
            "conversation store": self.pipeline.store,
            "completion provider": self.pipeline.completion_provider,
        }
        if speak:
            needed["speech synthesizer"] = self.pipeline.synthesizer
            needed["audio store"] = self.pipeline.audio_store

        missing = [name for name, collaborator in needed.items() if collaborator is None]
        if missing:
            raise ConfigurationError(
                f"No {', '.join(missing)} configured for the {self.CHAT} flow",
                details={"missing": missing}
            ).with_context(self.CHAT, "configure")
