from __future__ import annotations

import asyncio
import logging
import os
from typing import Any

import openai
from openai import AsyncOpenAI

from common.errors import GenerationError
from common.settings import RewriteSettings
from rewrite_headlines.instructions import build_instructions, build_prompt

logger = logging.getLogger(__name__)


class HeadlineGenerator:
    """Asks a chat model for a single rewritten headline."""

    def __init__(self, settings: RewriteSettings | None = None, client: Any | None = None):
        self.settings = settings or RewriteSettings()
        self.model = self.settings.model
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            api_key = os.environ.get("OPENAI_API_KEY")
            if not api_key:
                raise GenerationError("no_api_key", "OPENAI_API_KEY is not set")
            self._client = AsyncOpenAI(
                api_key=api_key,
                base_url=os.environ.get("OPENAI_BASE_URL") or None,
                max_retries=self.settings.max_retries,
            )
        return self._client

    async def generate(self, title: str, dek: str | None, snippet: str | None) -> str:
        client = self._get_client()
        messages = [
            {"role": "system", "content": build_instructions(self.settings)},
            {"role": "user", "content": build_prompt(title, dek, snippet, self.settings)},
        ]
        try:
            response = await asyncio.wait_for(
                client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    temperature=self.settings.temperature,
                    max_tokens=self.settings.max_tokens,
                ),
                timeout=self.settings.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            raise GenerationError(
                "timeout", f"generation timed out after {self.settings.timeout_seconds}s"
            ) from exc
        except openai.APIStatusError as exc:
            raise GenerationError(f"api_error:{exc.status_code}", str(exc)) from exc
        except openai.OpenAIError as exc:
            raise GenerationError(f"api_error:{type(exc).__name__}", str(exc)) from exc

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise GenerationError("empty_response", "model returned no headline")
        return content.strip()
