"""Tests for LLM client implementations.

Shared behaviour (option assembly, empty-response rule, has_model) lives in
BaseLLMClient and is tested once via a lightweight stub. Ollama-specific tests
cover only the HTTP transport, with ``requests`` patched out.
"""

from unittest.mock import MagicMock

import pytest
import requests

from commitlens_core.errors import BackendError, BackendTimeoutError, EmptyResponseError
from commitlens_core.providers.base import BaseLLMClient
from commitlens_core.providers.ollama import OllamaClient


class _StubClient(BaseLLMClient):
    """Minimal concrete subclass used to test BaseLLMClient shared methods."""

    def __init__(self, reply="ok", models=(), **kwargs):
        super().__init__(**kwargs)
        self.reply = reply
        self.models = set(models)
        self.calls = []

    def _call_api(self, prompt: str, model: str, options: dict) -> str:
        self.calls.append((prompt, model, options))
        return self.reply

    def is_available(self) -> bool:
        return True

    def list_models(self) -> set[str]:
        return self.models


def _response(status=200, payload=None, text=""):
    response = MagicMock()
    response.ok = 200 <= status < 300
    response.status_code = status
    response.text = text
    response.json.return_value = payload
    if not response.ok:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status}")
    return response


# ---------------------------------------------------------------------------
# Shared behaviour, tested once through the stub
# ---------------------------------------------------------------------------


class TestBaseClientInvoke:
    def test_returns_raw_text(self):
        assert _StubClient(reply="{...}").invoke("prompt", "m") == "{...}"

    def test_builds_sampling_options(self):
        client = _StubClient(top_p=0.8, top_k=20)
        client.invoke("prompt", "m", temperature=0.3, max_tokens=512)
        _, model, options = client.calls[0]
        assert model == "m"
        assert options == {"temperature": 0.3, "num_predict": 512, "top_p": 0.8, "top_k": 20}

    def test_defaults_when_not_given(self):
        client = _StubClient()
        client.invoke("prompt", "m")
        options = client.calls[0][2]
        assert options["temperature"] == BaseLLMClient.TEMPERATURE
        assert options["num_predict"] == BaseLLMClient.MAX_TOKENS

    @pytest.mark.parametrize("reply", ["", "   \n", None])
    def test_empty_reply_raises(self, reply):
        with pytest.raises(EmptyResponseError):
            _StubClient(reply=reply).invoke("prompt", "m")

    def test_empty_response_is_a_backend_error(self):
        assert issubclass(EmptyResponseError, BackendError)
        assert issubclass(BackendTimeoutError, BackendError)


class TestHasModel:
    def test_exact_name(self):
        assert _StubClient(models={"llama3:8b"}).has_model("llama3:8b") is True

    def test_latest_tag(self):
        assert _StubClient(models={"codellama:latest"}).has_model("codellama") is True

    def test_missing(self):
        assert _StubClient(models={"llama3:8b"}).has_model("codellama") is False


# ---------------------------------------------------------------------------
# OllamaClient transport
# ---------------------------------------------------------------------------


class TestOllamaInvoke:
    def test_posts_generate_request(self, mocker):
        post = mocker.patch(
            "commitlens_core.providers.ollama.requests.post",
            return_value=_response(payload={"model": "m", "response": "hello", "done": True}),
        )
        client = OllamaClient(base_url="http://ollama:11434/", timeout=42)

        assert client.invoke("score this", "m", temperature=0.1, max_tokens=100) == "hello"

        url = post.call_args.args[0]
        kwargs = post.call_args.kwargs
        assert url == "http://ollama:11434/api/generate"
        assert kwargs["timeout"] == 42
        assert kwargs["json"]["model"] == "m"
        assert kwargs["json"]["prompt"] == "score this"
        assert kwargs["json"]["stream"] is False
        assert kwargs["json"]["options"]["num_predict"] == 100
        assert set(kwargs["json"]["options"]) == {"temperature", "num_predict", "top_p", "top_k"}

    def test_http_error_carries_status_and_body(self, mocker):
        mocker.patch(
            "commitlens_core.providers.ollama.requests.post",
            return_value=_response(status=404, text='{"error":"model not found"}'),
        )
        with pytest.raises(BackendError) as exc_info:
            OllamaClient().invoke("p", "missing")
        assert exc_info.value.status == 404
        assert "model not found" in exc_info.value.body

    def test_timeout_carries_duration(self, mocker):
        mocker.patch("commitlens_core.providers.ollama.requests.post", side_effect=requests.Timeout("slow"))
        with pytest.raises(BackendTimeoutError) as exc_info:
            OllamaClient(timeout=7).invoke("p", "m")
        assert exc_info.value.timeout == 7

    def test_connection_error_is_backend_error(self, mocker):
        mocker.patch(
            "commitlens_core.providers.ollama.requests.post",
            side_effect=requests.ConnectionError("refused"),
        )
        with pytest.raises(BackendError) as exc_info:
            OllamaClient().invoke("p", "m")
        assert exc_info.value.status is None

    def test_absent_response_field_is_empty_response(self, mocker):
        mocker.patch(
            "commitlens_core.providers.ollama.requests.post",
            return_value=_response(payload={"model": "m", "done": True}),
        )
        with pytest.raises(EmptyResponseError):
            OllamaClient().invoke("p", "m")

    def test_non_json_body_is_backend_error(self, mocker):
        response = _response(text="<html>")
        response.json.side_effect = ValueError("no json")
        mocker.patch("commitlens_core.providers.ollama.requests.post", return_value=response)
        with pytest.raises(BackendError):
            OllamaClient().invoke("p", "m")


class TestOllamaProbes:
    def test_available_when_tags_answer(self, mocker):
        get = mocker.patch(
            "commitlens_core.providers.ollama.requests.get",
            return_value=_response(payload={"models": []}),
        )
        assert OllamaClient(base_url="http://h:1").is_available() is True
        assert get.call_args.args[0] == "http://h:1/api/tags"

    def test_unavailable_never_raises(self, mocker):
        mocker.patch("commitlens_core.providers.ollama.requests.get", side_effect=requests.ConnectionError())
        assert OllamaClient().is_available() is False

    def test_unavailable_on_error_status(self, mocker):
        mocker.patch("commitlens_core.providers.ollama.requests.get", return_value=_response(status=500))
        assert OllamaClient().is_available() is False

    def test_list_models(self, mocker):
        payload = {
            "models": [
                {"name": "deepseek-coder:6.7b-instruct-q4_0", "size": 3825819519, "modified_at": "2024-05-01"},
                {"name": "llama3:latest", "size": 1, "modified_at": "2024-05-02"},
            ]
        }
        mocker.patch("commitlens_core.providers.ollama.requests.get", return_value=_response(payload=payload))
        assert OllamaClient().list_models() == {"deepseek-coder:6.7b-instruct-q4_0", "llama3:latest"}

    def test_list_models_empty_on_error(self, mocker):
        mocker.patch("commitlens_core.providers.ollama.requests.get", side_effect=requests.Timeout())
        assert OllamaClient().list_models() == set()

    def test_list_models_empty_on_bad_payload(self, mocker):
        mocker.patch("commitlens_core.providers.ollama.requests.get", return_value=_response(payload=["x"]))
        assert OllamaClient().list_models() == set()
