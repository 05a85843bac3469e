"""Services for the Red AI conversation pipeline."""
from .errors import (
    PipelineError,
    PipelineFailure,
    ConfigurationError,
    InvalidRequestError,
    StorageWriteError,
    HistoryFetchError,
    CompletionTransportError,
    CompletionParseError,
    SynthesisError,
    PublishError,
)
from .conversation_store import ConversationStore, SupabaseConversationStore, InMemoryConversationStore
from .dynamo_store import DynamoConversationStore
from .llm_client import CompletionProvider, OpenAICompletionClient, GroqCompletionClient
from .speech import SpeechSynthesizer, OpenAISpeechSynthesizer, PollySpeechSynthesizer
from .audio_store import AudioStore, S3AudioStore
from .pipeline import ConversationPipeline
from .workflow import ConversationWorkflow

__all__ = [
    'PipelineError', 'PipelineFailure', 'ConfigurationError', 'InvalidRequestError',
    'StorageWriteError', 'HistoryFetchError', 'CompletionTransportError', 'CompletionParseError',
    'SynthesisError', 'PublishError',
    'ConversationStore', 'SupabaseConversationStore', 'InMemoryConversationStore', 'DynamoConversationStore',
    'CompletionProvider', 'OpenAICompletionClient', 'GroqCompletionClient',
    'SpeechSynthesizer', 'OpenAISpeechSynthesizer', 'PollySpeechSynthesizer',
    'AudioStore', 'S3AudioStore',
    'ConversationPipeline', 'ConversationWorkflow',
]
