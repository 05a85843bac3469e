"""Unit tests for ConversationWorkflow."""
import os
import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'backend'))

import pytest
from services.conversation_store import InMemoryConversationStore
from services.errors import ConfigurationError, StorageWriteError, SynthesisError
from services.pipeline import ConversationPipeline
from services.workflow import ConversationWorkflow
from fakes import FailingAppendStore, FakeAudioStore, FakeCompletionProvider, FakeSynthesizer, synthesis_failure


def build_workflow(store=None, provider=None, synthesizer=None, audio_store=None):
    pipeline = ConversationPipeline(
        store=store or InMemoryConversationStore(),
        completion_provider=provider or FakeCompletionProvider(reply="Nice to meet you"),
        synthesizer=synthesizer or FakeSynthesizer(),
        audio_store=audio_store or FakeAudioStore()
    )
    return ConversationWorkflow(pipeline)


def test_run_chains_ingest_complete_and_synthesize():
    store = InMemoryConversationStore()
    provider = FakeCompletionProvider(reply="Nice to meet you")
    synthesizer = FakeSynthesizer()
    workflow = build_workflow(store=store, provider=provider, synthesizer=synthesizer)

    result = workflow.run("u1", "hello")

    assert result.user_id == "u1"
    assert result.message == "hello"
    assert result.completion == "Nice to meet you"
    assert result.audio_url.startswith("https://audio.example.com/audio/")
    assert provider.calls == [[{"role": "user", "content": "hello"}]]
    assert synthesizer.calls == ["Nice to meet you"]
    assert len(store.history("u1")) == 2


def test_run_without_speech_skips_synthesis():
    synthesizer = FakeSynthesizer()
    workflow = build_workflow(synthesizer=synthesizer)

    result = workflow.run("u1", "hello", speak=False)

    assert result.audio_url is None
    assert synthesizer.calls == []


def test_empty_completion_skips_synthesis():
    synthesizer = FakeSynthesizer()
    workflow = build_workflow(provider=FakeCompletionProvider(reply="   "), synthesizer=synthesizer)

    result = workflow.run("u1", "hello")

    assert result.completion == "   "
    assert result.audio_url is None
    assert synthesizer.calls == []


def test_ingest_failure_stops_workflow():
    provider = FakeCompletionProvider()
    workflow = build_workflow(store=FailingAppendStore(), provider=provider)

    with pytest.raises(StorageWriteError) as exc_info:
        workflow.run("u1", "hello")

    assert exc_info.value.flow == "ingest"
    assert provider.calls == []


def test_synthesis_failure_surfaces_after_completion():
    workflow = build_workflow(synthesizer=FakeSynthesizer(error=synthesis_failure()))

    with pytest.raises(SynthesisError) as exc_info:
        workflow.run("u1", "hello")

    assert exc_info.value.flow == "synthesize"


def test_missing_speech_wiring_fails_before_any_write():
    store = InMemoryConversationStore()
    provider = FakeCompletionProvider()
    pipeline = ConversationPipeline(store=store, completion_provider=provider)
    workflow = ConversationWorkflow(pipeline)

    with pytest.raises(ConfigurationError) as exc_info:
        workflow.run("u1", "hello", speak=True)

    assert exc_info.value.flow == "chat"
    assert exc_info.value.stage == "configure"
    assert exc_info.value.error.details["missing"] == ["speech synthesizer", "audio store"]
    assert store.history("u1") == []
    assert provider.calls == []


def test_speech_wiring_not_needed_without_speech():
    store = InMemoryConversationStore()
    pipeline = ConversationPipeline(store=store, completion_provider=FakeCompletionProvider(reply="hi"))

    result = ConversationWorkflow(pipeline).run("u1", "hello", speak=False)

    assert result.completion == "hi"
    assert len(store.history("u1")) == 2


def test_missing_completion_provider_fails_before_ingest():
    store = InMemoryConversationStore()
    workflow = ConversationWorkflow(ConversationPipeline(store=store))

    with pytest.raises(ConfigurationError, match="completion provider"):
        workflow.run("u1", "hello", speak=False)

    assert store.history("u1") == []
