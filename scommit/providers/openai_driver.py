from __future__ import annotations

from typing import Any, Optional

import httpx

from ..config import Config
from ..exceptions import LLMError
from .base import BaseDriver


class OpenAIDriver(BaseDriver):
    """Driver for OpenAI / OpenAI-compatible chat completions.

    Sends a single JSON-mode request with a bounded timeout and token
    budget. There are no retries: any failure is reported to the caller,
    which falls back to the heuristic message.
    """

    def __init__(self, config: Config, debug: bool = False) -> None:
        super().__init__(config, debug)
        self._api_key = config.resolve_api_key()
        self._request_timeout = config.request_timeout

    @property
    def url(self) -> str:
        return self.config.llm_endpoint.rstrip("/") + "/chat/completions"

    def build_payload(
        self, messages: list[dict[str, Any]], model: Optional[str] = None
    ) -> dict[str, Any]:
        return {
            "model": model or self.config.model,
            "messages": messages,
            "response_format": {"type": "json_object"},
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
        }

    def invoke_messages(
        self, messages: list[dict[str, Any]], model: Optional[str] = None
    ) -> Optional[str]:
        if not self._api_key:
            raise LLMError(
                f"Environment variable '{self.config.api_key_env}' is not set or empty."
            )
        payload = self.build_payload(messages, model)
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "content-type": "application/json",
        }
        if self.debug:
            print("DEBUG(Driver:OpenAI): invoke")
            print(
                f"  model={payload['model']} max_tokens={payload['max_tokens']} "
                f"timeout={self._request_timeout}"
            )
        try:
            response = httpx.post(
                self.url,
                headers=headers,
                json=payload,
                timeout=self._request_timeout,
            )
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeError) as e:
            # Bad endpoints and non-ASCII credentials fail before any I/O.
            raise LLMError(f"calling OpenAI API: {e}") from e

        status = int(getattr(response, "status_code", 200) or 200)
        if status >= 400:
            raise LLMError(f"OpenAI API error: {status}")

        try:
            data = response.json()
        except ValueError as e:
            raise LLMError(f"parsing OpenAI response: {e}") from e
        if not isinstance(data, dict):
            raise LLMError("parsing OpenAI response: expected a JSON object")

        content = self._extract_content(data)
        if self.debug:
            preview = (content or "")[:300].replace("\n", "\\n")
            print(f"DEBUG(Driver:OpenAI): len={len(content or '')}")
            print(f"  Preview: '{preview}'")
        return content

    @staticmethod
    def _extract_content(data: dict[str, Any]) -> Optional[str]:
        """Pull ``choices[0].message.content`` as text.

        Content may be a string or a list of fragments (``{"text": ...}``).
        Returns None when the reply carries no content.
        """
        choices = data.get("choices")
        if not isinstance(choices, list) or not choices:
            return None
        choice0 = choices[0]
        if not isinstance(choice0, dict):
            return None
        message = choice0.get("message")
        if not isinstance(message, dict):
            return None
        content = message.get("content")
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            fragments: list[str] = []
            for part in content:
                if isinstance(part, dict):
                    txt = part.get("text") or part.get("content") or ""
                    fragments.append(str(txt))
                elif isinstance(part, str):
                    fragments.append(part)
            joined = "".join(fragments).strip()
            return joined or None
        return None
