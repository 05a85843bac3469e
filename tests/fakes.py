"""In-process collaborators for pipeline, workflow, and endpoint tests."""
import os
import sys
from typing import Dict, List, Optional

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'backend'))

from models.conversation import Turn
from services.audio_store import AudioStore
from services.conversation_store import InMemoryConversationStore
from services.errors import HistoryFetchError, PublishError, StorageWriteError, SynthesisError
from services.llm_client import CompletionProvider
from services.speech import SpeechSynthesizer


class FakeCompletionProvider(CompletionProvider):
    model = "fake-model"

    def __init__(self, reply: str = "hi", error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.calls: List[List[Dict[str, str]]] = []

    def complete(self, messages):
        self.calls.append(list(messages))
        if self.error is not None:
            raise self.error
        return self.reply


class FakeSynthesizer(SpeechSynthesizer):
    name = "fake"

    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.calls: List[str] = []

    def synthesize(self, text: str) -> bytes:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return b"audio:" + text.encode("utf-8")


class FakeAudioStore(AudioStore):
    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.objects: Dict[str, bytes] = {}

    def url_for(self, key: str) -> str:
        return f"https://audio.example.com/{key}"

    def put(self, key: str, data: bytes, content_type: str = "audio/mpeg") -> str:
        if self.error is not None:
            raise self.error
        self.objects[key] = data
        return self.url_for(key)


class FailingAppendStore(InMemoryConversationStore):
    """Rejects every write without recording anything."""

    def __init__(self, error: Optional[Exception] = None):
        super().__init__()
        self.error = error or StorageWriteError("write rejected")

    def append(self, turn: Turn) -> None:
        raise self.error


class FailingHistoryStore(InMemoryConversationStore):
    def __init__(self, error: Optional[Exception] = None):
        super().__init__()
        self.error = error or HistoryFetchError("store unreachable")

    def history(self, user_id: str):
        raise self.error


def synthesis_failure() -> SynthesisError:
    return SynthesisError("voice unavailable")


def publish_failure() -> PublishError:
    return PublishError("bucket unavailable")
