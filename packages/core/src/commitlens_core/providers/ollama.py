from __future__ import annotations

import logging

import requests

from commitlens_core.errors import BackendError, BackendTimeoutError
from commitlens_core.providers.base import BaseLLMClient

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:11434"


class OllamaClient(BaseLLMClient):
    # Liveness and model listing must answer fast even when generation is slow.
    PROBE_TIMEOUT = 5

    def __init__(self, base_url: str = DEFAULT_BASE_URL, **kwargs):
        super().__init__(**kwargs)
        self.base_url = base_url.rstrip("/")

    def _call_api(self, prompt: str, model: str, options: dict) -> str:
        url = f"{self.base_url}/api/generate"
        payload = {"model": model, "prompt": prompt, "stream": False, "options": options}
        try:
            response = requests.post(url, json=payload, timeout=self.timeout)
        except requests.Timeout as e:
            raise BackendTimeoutError(self.timeout) from e
        except requests.RequestException as e:
            raise BackendError(f"Request to {url} failed: {e}") from e

        if not response.ok:
            raise BackendError(f"Ollama rejected generation request for {model!r}", response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as e:
            raise BackendError("Ollama returned a non-JSON body", response.status_code, response.text) from e

        return (data.get("response") or "") if isinstance(data, dict) else ""

    def _get_tags(self) -> requests.Response:
        return requests.get(f"{self.base_url}/api/tags", timeout=self.PROBE_TIMEOUT)

    def is_available(self) -> bool:
        try:
            return self._get_tags().ok
        except requests.RequestException as e:
            logger.debug("Ollama at %s is unreachable: %s", self.base_url, e)
            return False

    def list_models(self) -> set[str]:
        try:
            response = self._get_tags()
            response.raise_for_status()
            models = response.json().get("models") or []
        except (requests.RequestException, ValueError, AttributeError) as e:
            logger.warning("Could not list Ollama models at %s: %s", self.base_url, e)
            return set()
        return {m["name"] for m in models if isinstance(m, dict) and m.get("name")}
