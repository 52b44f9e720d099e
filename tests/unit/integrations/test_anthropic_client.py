"""Tests for the Anthropic formatting client."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from langchain_anthropic import ChatAnthropic
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from filing_desk.core.config import PipelineConfig
from filing_desk.core.errors import FormattingServiceError
from filing_desk.integrations.anthropic.client import (
    AnthropicFormattingClient,
    FormattingInstruction,
)

INSTRUCTION = FormattingInstruction(system="Return JSON only.", user="Format this: hi")


@pytest.fixture
def config() -> PipelineConfig:
    """Config with a fake API key."""
    return PipelineConfig(_env_file=None, anthropic_api_key="sk-ant-test", anthropic_timeout=30)


def _model(content: object) -> MagicMock:
    model = MagicMock()
    model.ainvoke = AsyncMock(return_value=AIMessage(content=content))
    return model


class TestAnthropicFormattingClient:
    """Tests for AnthropicFormattingClient."""

    @pytest.mark.asyncio
    async def test_returns_text(self, config: PipelineConfig) -> None:
        """Test the reply text is returned unchanged."""
        model = _model('{"formatted_text": "hi"}')
        client = AnthropicFormattingClient(config, model=model)

        text = await client.complete(INSTRUCTION)

        assert text == '{"formatted_text": "hi"}'
        messages = model.ainvoke.await_args.args[0]
        assert isinstance(messages[0], SystemMessage)
        assert messages[0].content == "Return JSON only."
        assert isinstance(messages[1], HumanMessage)
        assert messages[1].content == "Format this: hi"

    @pytest.mark.asyncio
    async def test_joins_text_blocks(self, config: PipelineConfig) -> None:
        """Test content blocks are concatenated, non-text blocks skipped."""
        model = _model(
            [
                {"type": "text", "text": '{"a": '},
                {"type": "tool_use", "id": "t1", "name": "x", "input": {}},
                {"type": "text", "text": "1}"},
            ]
        )
        client = AnthropicFormattingClient(config, model=model)

        assert await client.complete(INSTRUCTION) == '{"a": 1}'

    @pytest.mark.asyncio
    async def test_non_text_reply(self, config: PipelineConfig) -> None:
        """Test a reply without text content is an error."""
        model = _model([{"type": "tool_use", "id": "t1", "name": "x", "input": {}}])
        client = AnthropicFormattingClient(config, model=model)

        with pytest.raises(FormattingServiceError, match="not text"):
            await client.complete(INSTRUCTION)

    @pytest.mark.asyncio
    async def test_transport_error_wrapped(self, config: PipelineConfig) -> None:
        """Test request failures become FormattingServiceError."""
        model = MagicMock()
        model.ainvoke = AsyncMock(side_effect=TimeoutError("read timed out"))
        client = AnthropicFormattingClient(config, model=model)

        with pytest.raises(FormattingServiceError, match="read timed out") as exc_info:
            await client.complete(INSTRUCTION)

        assert isinstance(exc_info.value.__cause__, TimeoutError)

    @pytest.mark.asyncio
    async def test_missing_api_key(self) -> None:
        """Test calls fail without credentials."""
        client = AnthropicFormattingClient(PipelineConfig(_env_file=None, anthropic_api_key=None))

        with pytest.raises(FormattingServiceError, match="ANTHROPIC_API_KEY"):
            await client.complete(INSTRUCTION)

    def test_builds_chat_model_lazily(self, config: PipelineConfig) -> None:
        """Test the chat model is created once from config."""
        client = AnthropicFormattingClient(config)

        model = client._get_model()

        assert isinstance(model, ChatAnthropic)
        assert client._get_model() is model
        assert model.max_retries == 0
