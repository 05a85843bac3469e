"""Unit tests for completion providers."""
import os
import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'backend'))

import json
import httpx
import pytest
from unittest.mock import Mock, patch
from groq import APIConnectionError, APIResponseValidationError, APITimeoutError, RateLimitError
from services.errors import ConfigurationError, CompletionParseError, CompletionTransportError
from services.llm_client import GroqCompletionClient, OpenAICompletionClient, extract_completion_text


HISTORY = [
    {"role": "user", "content": "hello"},
    {"role": "assistant", "content": "hi"},
]


def openai_client(handler) -> OpenAICompletionClient:
    """Build a client whose HTTP traffic goes to handler."""
    return OpenAICompletionClient(
        api_key="test_key",
        model="gpt-3.5-turbo",
        base_url="https://api.openai.test/v1",
        max_tokens=100,
        temperature=0.7,
        http_client=httpx.Client(transport=httpx.MockTransport(handler))
    )


class TestExtractCompletionText:
    """Test suite for extract_completion_text."""

    def test_reads_first_choice(self):
        body = {"choices": [{"message": {"content": "Hello there"}}]}

        assert extract_completion_text(body) == "Hello there"

    @pytest.mark.parametrize("body", [
        {},
        {"choices": []},
        {"choices": [{"message": {}}]},
        {"choices": [{"message": {"content": None}}]},
        {"choices": "oops"},
    ])
    def test_missing_content_is_empty(self, body):
        assert extract_completion_text(body) == ""


class TestOpenAICompletionClient:
    """Test suite for OpenAICompletionClient."""

    def test_initialization_without_api_key_raises_error(self):
        with patch('services.llm_client.OPENAI_API_KEY', None):
            with pytest.raises(ConfigurationError, match="OPENAI_API_KEY must be provided"):
                OpenAICompletionClient()

    def test_configuration_error_is_value_error(self):
        with patch('services.llm_client.OPENAI_API_KEY', None):
            with pytest.raises(ValueError):
                OpenAICompletionClient()

    def test_complete_sends_history_and_returns_content(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["auth"] = request.headers["Authorization"]
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": "How can I help?"}}]})

        completion = openai_client(handler).complete(HISTORY)

        assert completion == "How can I help?"
        assert captured["url"] == "https://api.openai.test/v1/chat/completions"
        assert captured["auth"] == "Bearer test_key"
        assert captured["body"] == {
            "model": "gpt-3.5-turbo",
            "messages": HISTORY,
            "max_tokens": 100,
            "temperature": 0.7,
        }

    def test_complete_with_empty_history(self):
        bodies = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"choices": [{"message": {"content": "Hi!"}}]})

        assert openai_client(handler).complete([]) == "Hi!"
        assert bodies[0]["messages"] == []

    def test_missing_content_returns_empty_completion(self):
        client = openai_client(lambda request: httpx.Response(200, json={"error": None, "choices": []}))

        assert client.complete(HISTORY) == ""

    def test_non_json_body_raises_parse_error(self):
        client = openai_client(lambda request: httpx.Response(200, text="<html>gateway</html>"))

        with pytest.raises(CompletionParseError):
            client.complete(HISTORY)

    def test_non_object_body_raises_parse_error(self):
        client = openai_client(lambda request: httpx.Response(200, json=["not", "an", "object"]))

        with pytest.raises(CompletionParseError, match="expected an object"):
            client.complete(HISTORY)

    def test_http_error_status_raises_transport_error(self):
        client = openai_client(lambda request: httpx.Response(429, json={"error": {"message": "slow down"}}))

        with pytest.raises(CompletionTransportError) as exc_info:
            client.complete(HISTORY)

        assert exc_info.value.error.details["status_code"] == 429

    def test_network_failure_raises_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(CompletionTransportError, match="connection refused"):
            openai_client(handler).complete(HISTORY)


class TestGroqCompletionClient:
    """Test suite for GroqCompletionClient."""

    def test_initialization_without_api_key_raises_error(self):
        with patch('services.llm_client.GROQ_API_KEY', None):
            with pytest.raises(ConfigurationError, match="GROQ_API_KEY must be provided"):
                GroqCompletionClient()

    @patch('services.llm_client.Groq')
    def test_complete_success(self, mock_groq_class):
        mock_response = Mock()
        mock_response.choices = [Mock(message=Mock(content="Groq says hi"))]
        mock_client = Mock()
        mock_client.chat.completions.create.return_value = mock_response
        mock_groq_class.return_value = mock_client

        client = GroqCompletionClient(api_key="test_key", model="llama-3.1-8b-instant", max_tokens=50, temperature=0.2)
        completion = client.complete(HISTORY)

        assert completion == "Groq says hi"
        mock_client.chat.completions.create.assert_called_once_with(
            model="llama-3.1-8b-instant",
            messages=HISTORY,
            max_tokens=50,
            temperature=0.2
        )

    @patch('services.llm_client.Groq')
    def test_no_choices_returns_empty_completion(self, mock_groq_class):
        mock_client = Mock()
        mock_client.chat.completions.create.return_value = Mock(choices=[])
        mock_groq_class.return_value = mock_client

        assert GroqCompletionClient(api_key="test_key").complete([]) == ""

    @patch('services.llm_client.Groq')
    def test_null_content_returns_empty_completion(self, mock_groq_class):
        mock_client = Mock()
        mock_client.chat.completions.create.return_value = Mock(choices=[Mock(message=Mock(content=None))])
        mock_groq_class.return_value = mock_client

        assert GroqCompletionClient(api_key="test_key").complete(HISTORY) == ""

    @patch('services.llm_client.Groq')
    def test_timeout_raises_transport_error(self, mock_groq_class):
        mock_client = Mock()
        mock_client.chat.completions.create.side_effect = APITimeoutError(request=Mock())
        mock_groq_class.return_value = mock_client

        with pytest.raises(CompletionTransportError) as exc_info:
            GroqCompletionClient(api_key="test_key").complete(HISTORY)

        assert "latency_ms" in exc_info.value.error.details

    @patch('services.llm_client.Groq')
    def test_connection_error_raises_transport_error(self, mock_groq_class):
        mock_client = Mock()
        mock_client.chat.completions.create.side_effect = APIConnectionError(
            request=httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")
        )
        mock_groq_class.return_value = mock_client

        with pytest.raises(CompletionTransportError):
            GroqCompletionClient(api_key="test_key").complete(HISTORY)

    @patch('services.llm_client.Groq')
    def test_rate_limit_raises_transport_error(self, mock_groq_class):
        mock_client = Mock()
        mock_client.chat.completions.create.side_effect = RateLimitError(
            message="Rate limit exceeded",
            response=Mock(status_code=429),
            body=None
        )
        mock_groq_class.return_value = mock_client

        with pytest.raises(CompletionTransportError) as exc_info:
            GroqCompletionClient(api_key="test_key").complete(HISTORY)

        assert exc_info.value.error.details["status_code"] == 429

    @patch('services.llm_client.Groq')
    def test_validation_error_raises_parse_error(self, mock_groq_class):
        request = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")
        mock_client = Mock()
        mock_client.chat.completions.create.side_effect = APIResponseValidationError(
            response=httpx.Response(200, request=request),
            body={"unexpected": True}
        )
        mock_groq_class.return_value = mock_client

        with pytest.raises(CompletionParseError):
            GroqCompletionClient(api_key="test_key").complete(HISTORY)
