"""Anthropic Messages API client that picks a routing tool for a bookmark.

The model is offered the routing tools from tools.py and asked to call
exactly one. The response is reduced to a Decision: the tool calls it
made, in order, plus a terminal status ("success" or an "error_*"
subtype). What happens to those calls is the caller's business.

Override the endpoint with ANTHROPIC_BASE_URL if needed.
"""

import logging
import os
from dataclasses import dataclass, field

import httpx

logger = logging.getLogger(__name__)

API_BASE_URL = os.environ.get("ANTHROPIC_BASE_URL", "https://api.anthropic.com")
API_VERSION = "2023-06-01"

STATUS_SUCCESS = "success"


@dataclass
class ToolInvocation:
    name: str
    input: dict = field(default_factory=dict)


@dataclass
class Decision:
    status: str
    invocations: list[ToolInvocation] = field(default_factory=list)
    text: str = ""
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == STATUS_SUCCESS


class AnthropicDecider:
    """Client for the Messages API using tool use."""

    def __init__(
        self,
        api_key: str | None,
        model: str,
        max_tokens: int = 1024,
        timeout: float = 120.0,
    ):
        self.model = model
        self.max_tokens = max_tokens
        self._client = httpx.Client(
            base_url=API_BASE_URL,
            headers={
                "x-api-key": api_key or "",
                "anthropic-version": API_VERSION,
                "content-type": "application/json",
            },
            timeout=timeout,
        )
        self._has_key = bool(api_key)

    def decide(self, system_prompt: str, user_prompt: str, tools: list[dict]) -> Decision:
        """Ask the model to route one bookmark. Never raises."""
        if not self._has_key:
            return Decision(
                status="error_configuration",
                error="ANTHROPIC_API_KEY is not set",
            )

        body = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "system": system_prompt,
            "messages": [{"role": "user", "content": user_prompt}],
            "tools": tools,
            "tool_choice": {"type": "auto"},
        }

        try:
            response = self._client.post("/v1/messages", json=body)
        except httpx.TimeoutException as e:
            return Decision(status="error_timeout", error=f"Agent timed out: {e}")
        except httpx.HTTPError as e:
            return Decision(status="error_during_execution", error=f"Agent error: {e}")

        if response.status_code == 429:
            retry_after = response.headers.get("retry-after")
            wait_msg = f" Retry in {retry_after}s." if retry_after else ""
            return Decision(status="error_rate_limited", error=f"Rate limited.{wait_msg}")

        if response.status_code in (401, 403):
            return Decision(
                status="error_authentication",
                error="Authentication failed. Check ANTHROPIC_API_KEY.",
            )

        if response.status_code >= 400:
            return Decision(
                status="error_api",
                error=f"API returned HTTP {response.status_code}: {_error_message(response)}",
            )

        try:
            data = response.json()
        except ValueError as e:
            return Decision(status="error_during_execution", error=f"Bad API response: {e}")

        return self._parse_response(data)

    @staticmethod
    def _parse_response(data: dict) -> Decision:
        invocations: list[ToolInvocation] = []
        texts: list[str] = []
        for block in data.get("content", []):
            if block.get("type") == "tool_use":
                invocations.append(
                    ToolInvocation(name=block.get("name", ""), input=block.get("input") or {})
                )
                logger.debug("Agent: using tool %s", block.get("name"))
            elif block.get("type") == "text" and block.get("text"):
                texts.append(block["text"])

        text = "\n".join(texts)
        if text:
            logger.debug("Agent: %s", text[:100])

        if data.get("stop_reason") == "max_tokens" and not invocations:
            return Decision(
                status="error_max_tokens",
                text=text,
                error="Response hit max_tokens before choosing a tool",
            )

        return Decision(status=STATUS_SUCCESS, invocations=invocations, text=text)

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


def _error_message(response: httpx.Response) -> str:
    try:
        return response.json().get("error", {}).get("message", response.text)
    except ValueError:
        return response.text
