"""Tests for rewrite_headlines.generate and rewrite_headlines.instructions modules."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from common.errors import GenerationError
from common.settings import RewriteSettings
from rewrite_headlines.generate import HeadlineGenerator
from rewrite_headlines.instructions import build_instructions, build_prompt


def _client(content=None, error=None) -> MagicMock:
    client = MagicMock()
    response = SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])
    client.chat.completions.create = AsyncMock(return_value=response, side_effect=error)
    return client


class TestBuildPrompt:
    def test_title_only(self) -> None:
        prompt = build_prompt("Storm  hits coast", None, None, RewriteSettings())
        assert prompt == "Original title: Storm hits coast"

    def test_includes_dek_and_excerpt(self) -> None:
        prompt = build_prompt("Storm hits coast", "Thousands evacuated.", "Body text.", RewriteSettings())
        assert "Dek/summary: Thousands evacuated." in prompt
        assert "Article excerpt: Body text." in prompt

    def test_dek_is_trimmed(self) -> None:
        prompt = build_prompt("Title", "word " * 300, None, RewriteSettings(max_dek_chars=600))
        dek_line = prompt.splitlines()[1]
        assert len(dek_line) <= len("Dek/summary: ") + 600

    def test_instructions_carry_char_limit(self) -> None:
        assert "At most 110 characters" in build_instructions(RewriteSettings())


class TestHeadlineGenerator:
    def test_returns_stripped_content(self) -> None:
        client = _client(content="  Storm forces evacuation of 3,000 coastal residents \n")
        generator = HeadlineGenerator(RewriteSettings(model="gpt-test"), client=client)

        headline = asyncio.run(generator.generate("Storm hits coast", None, None))

        assert headline == "Storm forces evacuation of 3,000 coastal residents"
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-test"
        assert kwargs["temperature"] == 0.2
        assert kwargs["max_tokens"] == 80
        assert kwargs["messages"][1]["content"] == "Original title: Storm hits coast"

    def test_missing_api_key(self, monkeypatch) -> None:
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        generator = HeadlineGenerator(RewriteSettings())

        with pytest.raises(GenerationError) as exc_info:
            asyncio.run(generator.generate("Storm hits coast", None, None))
        assert exc_info.value.note == "no_api_key"

    def test_timeout(self) -> None:
        generator = HeadlineGenerator(client=_client(error=asyncio.TimeoutError()))

        with pytest.raises(GenerationError) as exc_info:
            asyncio.run(generator.generate("Storm hits coast", None, None))
        assert exc_info.value.note == "timeout"

    def test_empty_response(self) -> None:
        generator = HeadlineGenerator(client=_client(content="   "))

        with pytest.raises(GenerationError) as exc_info:
            asyncio.run(generator.generate("Storm hits coast", None, None))
        assert exc_info.value.note == "empty_response"
