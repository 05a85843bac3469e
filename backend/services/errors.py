"""Error taxonomy shared by the pipeline and its collaborators."""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class PipelineFailure:
    """Structured error reported to pipeline invokers."""
    code: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)


class PipelineError(Exception):
    """Base exception carrying a taxonomy code, the failing flow/stage and the cause."""

    code = "PIPELINE_ERROR"

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.details: Dict[str, Any] = dict(details or {})
        self.flow: Optional[str] = None
        self.stage: Optional[str] = None

    def with_context(self, flow: str, stage: str) -> "PipelineError":
        """Attach flow and stage unless an inner stage already did."""
        if self.flow is None:
            self.flow = flow
        if self.stage is None:
            self.stage = stage
        return self

    @property
    def error(self) -> PipelineFailure:
        details = dict(self.details)
        details["flow"] = self.flow
        details["stage"] = self.stage
        details["cause"] = str(self.cause) if self.cause is not None else self.message
        return PipelineFailure(code=self.code, message=self.message, details=details)


class ConfigurationError(PipelineError, ValueError):
    """A required credential or identifier is missing."""
    code = "CONFIGURATION_ERROR"


class InvalidRequestError(PipelineError, ValueError):
    """Inbound request failed validation."""
    code = "INVALID_REQUEST"


class StorageWriteError(PipelineError):
    code = "STORAGE_WRITE_ERROR"


class HistoryFetchError(PipelineError):
    code = "HISTORY_FETCH_ERROR"


class CompletionTransportError(PipelineError):
    code = "COMPLETION_TRANSPORT_ERROR"


class CompletionParseError(PipelineError):
    code = "COMPLETION_PARSE_ERROR"


class SynthesisError(PipelineError):
    """Speech synthesis failed; no audio was generated."""
    code = "SYNTHESIS_ERROR"


class PublishError(PipelineError):
    """Audio was generated but could not be stored."""
    code = "PUBLISH_ERROR"
