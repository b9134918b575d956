"""Language-model provider used by the classifier fallback.

Anything that classifies through a model depends only on this protocol:

    def is_available(self) -> bool: ...
    async def execute(self, prompt: str, output_schema: dict | None = None) -> LLMResult: ...

`execute` never raises for transport problems. It returns
`LLMResult.failure(reason)` instead, so callers branch on `result.ok`.

HttpLLM speaks either the OpenAI chat-completions format or KoboldCpp's
generate endpoint, picked by provider_format. Tests substitute StubLLM.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Literal, Protocol

import httpx
from pydantic import BaseModel

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result + protocol
# ---------------------------------------------------------------------------

class LLMResult(BaseModel):
    ok: bool
    content: str = ""
    duration_ms: int = 0
    error: str | None = None

    @classmethod
    def success(cls, content: str, duration_ms: int = 0) -> LLMResult:
        return cls(ok=True, content=content, duration_ms=duration_ms)

    @classmethod
    def failure(cls, reason: str, duration_ms: int = 0) -> LLMResult:
        return cls(ok=False, error=reason, duration_ms=duration_ms)


class LLMProvider(Protocol):
    def is_available(self) -> bool: ...

    async def execute(
        self, prompt: str, output_schema: dict[str, Any] | None = None
    ) -> LLMResult: ...


class LLMError(RuntimeError):
    """A provider call failed: unreachable, HTTP error, timeout or unexpected body."""


# ---------------------------------------------------------------------------
# HttpLLM
# ---------------------------------------------------------------------------

ProviderFormat = Literal["koboldcpp", "openai"]

_ENDPOINTS: dict[str, str] = {
    "openai": "/v1/chat/completions",
    "koboldcpp": "/api/v1/generate",
}


class HttpLLM:
    """Structured-output completions over HTTP.

    openai sends {"model", "messages", "response_format"} and reads
    choices[0].message.content. koboldcpp sends {"prompt"} with the schema
    spelled out at the end of the prompt and reads results[0].text.

    Args:
        provider_url:    Server root, e.g. "http://localhost:5001".
        api_key:         Sent as a bearer token when non-empty.
        provider_format: "openai" (default) or "koboldcpp".
        model:           Model name for the openai format; ignored by koboldcpp.
        timeout:         Seconds before the request is abandoned.
    """

    def __init__(
        self,
        provider_url: str,
        api_key: str = "",
        provider_format: ProviderFormat = "openai",
        model: str = "",
        timeout: float = 10.0,
    ) -> None:
        self._base_url = provider_url.rstrip("/")
        self._api_key = api_key
        self._format = provider_format
        self._model = model
        self._timeout = timeout

    def is_available(self) -> bool:
        return bool(self._base_url)

    @property
    def endpoint(self) -> str:
        return self._base_url + _ENDPOINTS[self._format]

    def _request_headers(self) -> dict[str, str]:
        if not self._api_key:
            return {"Content-Type": "application/json"}
        return {"Content-Type": "application/json", "Authorization": f"Bearer {self._api_key}"}

    def _payload(self, prompt: str, output_schema: dict[str, Any] | None) -> dict[str, Any]:
        if self._format == "koboldcpp":
            if output_schema:
                schema = output_schema.get("schema", output_schema)
                prompt += (
                    "\n\nReply with a single JSON object matching this schema:\n"
                    + json.dumps(schema)
                )
            return {"prompt": prompt}

        payload: dict[str, Any] = {"messages": [{"role": "user", "content": prompt}]}
        if self._model:
            payload["model"] = self._model
        if output_schema:
            payload["response_format"] = {"type": "json_schema", "json_schema": output_schema}
        return payload

    def _completion_text(self, data: dict[str, Any]) -> str:
        try:
            if self._format == "koboldcpp":
                return data["results"][0]["text"]
            return data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise LLMError(f"Unexpected {self._format} response shape") from e

    async def _post(self, prompt: str, output_schema: dict[str, Any] | None) -> str:
        url = self.endpoint
        logger.debug("llm call url=%s prompt_len=%d", url, len(prompt))

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(
                    url, json=self._payload(prompt, output_schema), headers=self._request_headers()
                )
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise LLMError(f"Cannot connect to language model at {self._base_url}") from e
        except httpx.HTTPStatusError as e:
            raise LLMError(f"Language model answered HTTP {e.response.status_code}") from e
        except httpx.TimeoutException as e:
            raise LLMError(f"Language model timed out after {self._timeout}s") from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise LLMError(f"Request to language model failed: {e}") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise LLMError("Language model returned a non-JSON body") from e
        text = self._completion_text(data)
        logger.debug("llm response len=%d", len(text))
        return text

    async def execute(
        self, prompt: str, output_schema: dict[str, Any] | None = None
    ) -> LLMResult:
        started = time.monotonic()
        try:
            text = await self._post(prompt, output_schema)
            result = LLMResult.success(text)
        except LLMError as e:
            result = LLMResult.failure(str(e))
        result.duration_ms = int((time.monotonic() - started) * 1000)
        return result
