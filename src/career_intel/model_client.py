"""
Model client — one outbound call to the AI proxy per turn.

The proxy is a thin pass-through: it takes a system prompt plus a single
user message and returns the hosted model's raw text together with token
usage. All prompt logic lives on this side.

Request body:   {system, messages: [{role: "user", content}], model, max_tokens}
Success body:   {content: str, usage?: {input_tokens, output_tokens}}
Error body:     {error: str}   (any non-2xx status)
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from typing import Any, Optional

from career_intel.config import ModelConfig, get_config

logger = logging.getLogger(__name__)


# ─── Errors ──────────────────────────────────────────────────────────────────

class ModelCallError(Exception):
    """A turn could not get a usable reply; the student may retry."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NetworkError(ModelCallError):
    """Non-2xx status from the proxy, or the request never completed (status=None)."""

    def __init__(self, status: Optional[int], message: str) -> None:
        super().__init__(message)
        self.status = status

    def __repr__(self) -> str:
        return f"NetworkError(status={self.status!r}, message={self.message!r})"


class EmptyResponseError(ModelCallError):
    """The proxy answered but there was no text to work with."""

    def __init__(self, message: str = "Empty response from AI service") -> None:
        super().__init__(message)


# ─── Reply ───────────────────────────────────────────────────────────────────

@dataclass
class ModelReply:
    content: str
    usage:   dict[str, int] = field(
        default_factory=lambda: {"input_tokens": 0, "output_tokens": 0}
    )


# ─── Client ──────────────────────────────────────────────────────────────────

class ModelClient:
    """
    POSTs a system prompt and one user message to the configured proxy.

    No timeout is imposed beyond the socket default unless one is passed in;
    a hung call simply blocks the turn.
    """

    def __init__(
        self,
        config: ModelConfig | None = None,
        *,
        model: str | None = None,
        max_tokens: int | None = None,
        timeout: float | None = None,
    ) -> None:
        self._cfg       = config or get_config()
        self.endpoint   = self._cfg.api_endpoint
        self.model      = model or self._cfg.model
        self.max_tokens = max_tokens or self._cfg.max_tokens
        self.timeout    = timeout

    def _build_request(self, system_prompt: str, user_message: str) -> urllib.request.Request:
        payload = json.dumps({
            "system":     system_prompt,
            "messages":   [{"role": "user", "content": user_message}],
            "model":      self.model,
            "max_tokens": self.max_tokens,
        }).encode()
        return urllib.request.Request(
            self.endpoint,
            data=payload,
            headers={"Content-Type": "application/json"},
            method="POST",
        )

    @staticmethod
    def _error_message(status: int, body: bytes) -> str:
        try:
            data = json.loads(body or b"{}")
        except (json.JSONDecodeError, ValueError):
            data = {}
        if isinstance(data, dict) and data.get("error"):
            return str(data["error"])
        return f"Request failed ({status})"

    def call(self, system_prompt: str, user_message: str) -> ModelReply:
        """
        Send one turn to the proxy and return its text and token usage.

        Raises:
            NetworkError        – non-2xx status or transport failure.
            EmptyResponseError  – 2xx with no usable content.
        """
        request = self._build_request(system_prompt, user_message)
        logger.debug(
            "POST %s (model=%s, system=%d chars, message=%d chars)",
            self.endpoint, self.model, len(system_prompt), len(user_message),
        )
        kwargs: dict[str, Any] = {}
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout

        try:
            with urllib.request.urlopen(request, **kwargs) as resp:
                body = resp.read()
        except urllib.error.HTTPError as exc:
            message = self._error_message(exc.code, exc.read())
            logger.error("AI proxy returned %s: %s", exc.code, message)
            raise NetworkError(exc.code, message) from exc
        except (urllib.error.URLError, OSError) as exc:
            logger.error("AI proxy unreachable: %s", exc)
            raise NetworkError(None, f"Could not reach the AI service ({exc})") from exc

        if not body:
            raise EmptyResponseError()
        try:
            data = json.loads(body)
        except (json.JSONDecodeError, ValueError) as exc:
            raise EmptyResponseError("AI service returned a malformed body") from exc

        content = data.get("content") if isinstance(data, dict) else None
        if not isinstance(content, str) or not content:
            raise EmptyResponseError()

        usage = data.get("usage")
        if not isinstance(usage, dict):
            usage = {}
        try:
            counts = {
                "input_tokens":  int(usage.get("input_tokens") or 0),
                "output_tokens": int(usage.get("output_tokens") or 0),
            }
        except (TypeError, ValueError) as exc:
            raise EmptyResponseError("AI service returned malformed token usage") from exc
        return ModelReply(content=content, usage=counts)
