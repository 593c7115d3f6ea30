"""LLM client shared by schema detection and fact extraction."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Protocol
from urllib import error as urllib_error
from urllib import request as urllib_request

_PROMPTS_DIR = Path(__file__).resolve().parent / "prompts"
_CODE_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


class LLMRequestError(RuntimeError):
    """Raised when the LLM is misconfigured or the provider call fails."""


class LLMClient(Protocol):
    """Protocol for pluggable LLM clients."""

    def complete_json(
        self,
        system_prompt: str,
        user_content: str,
        *,
        response_format: dict[str, Any] | None = None,
    ) -> str:
        """Return the raw assistant text for one prompt."""


@dataclass(slots=True)
class OpenAIChatCompletionsClient:
    """Minimal OpenAI Chat Completions client using stdlib HTTP."""

    api_key: str
    model: str
    base_url: str = "https://api.openai.com/v1"
    timeout_seconds: int = 60

    def complete_json(
        self,
        system_prompt: str,
        user_content: str,
        *,
        response_format: dict[str, Any] | None = None,
    ) -> str:
        """Call OpenAI and return the assistant message content unparsed."""

        payload: dict[str, Any] = {
            "model": self.model,
            "temperature": 0,
            "response_format": response_format or {"type": "json_object"},
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content},
            ],
        }
        url = f"{self.base_url.rstrip('/')}/chat/completions"
        req = urllib_request.Request(
            url=url,
            data=json.dumps(payload).encode("utf-8"),
            method="POST",
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
        )

        try:
            with urllib_request.urlopen(req, timeout=self.timeout_seconds) as resp:
                raw = resp.read().decode("utf-8")
        except urllib_error.HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="replace")
            raise LLMRequestError(f"OpenAI HTTP {exc.code}: {detail}") from exc
        except urllib_error.URLError as exc:
            raise LLMRequestError(f"OpenAI request failed: {exc.reason}") from exc
        except TimeoutError as exc:
            raise LLMRequestError(f"OpenAI request timed out after {self.timeout_seconds}s") from exc

        try:
            decoded = json.loads(raw)
            message = decoded["choices"][0]["message"]
            refusal = message.get("refusal")
            if isinstance(refusal, str) and refusal.strip():
                raise LLMRequestError(f"OpenAI refused the request: {refusal.strip()}")
            content = message["content"]
            if not isinstance(content, str):
                raise TypeError("OpenAI response content is not a string")
            return content
        except LLMRequestError:
            raise
        except (KeyError, IndexError, TypeError, json.JSONDecodeError) as exc:
            raise LLMRequestError("OpenAI returned an unexpected response envelope") from exc


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences some models wrap around JSON."""

    return _CODE_FENCE_RE.sub("", text).strip()


@lru_cache(maxsize=8)
def load_prompt(name: str) -> str:
    """Read a prompt template shipped next to this module."""

    prompt_file = _PROMPTS_DIR / name
    try:
        prompt_text = prompt_file.read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise LLMRequestError(f"Failed to load prompt file: {prompt_file}") from exc
    if not prompt_text:
        raise LLMRequestError(f"Prompt file is empty: {prompt_file}")
    return prompt_text
