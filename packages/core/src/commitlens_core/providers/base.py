"""Base LLM client implementing the Template Method pattern.

    invoke() → _build_options() → _call_api()   ← only this differs per backend
             → empty-response check

Subclasses implement the transport: ``_call_api`` for one generation request,
plus the ``is_available`` / ``list_models`` probes. Option assembly, timing
logs and the empty-response rule live here.

There is no retry loop: a failed call surfaces as a BackendError and the
orchestrator skips that file for the current cycle.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod

from commitlens_core.errors import EmptyResponseError

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 600
_DEFAULT_TEMPERATURE = 0.1
_DEFAULT_MAX_TOKENS = 2048
_DEFAULT_TOP_P = 0.9
_DEFAULT_TOP_K = 40


class BaseLLMClient(ABC):
    TEMPERATURE: float = _DEFAULT_TEMPERATURE
    MAX_TOKENS: int = _DEFAULT_MAX_TOKENS

    def __init__(self, timeout: float = _DEFAULT_TIMEOUT, top_p: float = _DEFAULT_TOP_P, top_k: int = _DEFAULT_TOP_K):
        self.timeout = timeout
        self.top_p = top_p
        self.top_k = top_k

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    def invoke(
        self,
        prompt: str,
        model: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """Send one non-streaming generation request and return the raw text.

        Raises BackendError (or its BackendTimeoutError / EmptyResponseError
        subclasses) on failure.
        """
        options = self._build_options(temperature, max_tokens)
        started = time.monotonic()
        text = self._call_api(prompt, model, options)
        elapsed = time.monotonic() - started

        if not text or not text.strip():
            raise EmptyResponseError(model)

        logger.debug(
            "%s: %s answered %d chars in %.1fs (prompt %d chars)",
            self.__class__.__name__,
            model,
            len(text),
            elapsed,
            len(prompt),
        )
        return text

    def has_model(self, model: str) -> bool:
        """True if ``model`` (or its ``:latest`` tag) is currently served."""
        served = self.list_models()
        return model in served or f"{model}:latest" in served

    # ------------------------------------------------------------------ #
    # Abstract: implement in each backend                                  #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def _call_api(self, prompt: str, model: str, options: dict) -> str:
        """Make a single generation call and return the response text ("" if absent)."""

    @abstractmethod
    def is_available(self) -> bool:
        """Cheap liveness probe. Must never raise."""

    @abstractmethod
    def list_models(self) -> set[str]:
        """Names of the models currently served; empty set on any error."""

    # ------------------------------------------------------------------ #
    # Shared implementations                                               #
    # ------------------------------------------------------------------ #

    def _build_options(self, temperature: float | None, max_tokens: int | None) -> dict:
        return {
            "temperature": self.TEMPERATURE if temperature is None else temperature,
            "num_predict": self.MAX_TOKENS if max_tokens is None else max_tokens,
            "top_p": self.top_p,
            "top_k": self.top_k,
        }
