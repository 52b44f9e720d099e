"""Formatting-service client backed by Anthropic via langchain-anthropic."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

import structlog
from langchain_anthropic import ChatAnthropic
from langchain_core.messages import HumanMessage, SystemMessage

from filing_desk.core.errors import FormattingServiceError

if TYPE_CHECKING:
    from filing_desk.core.config import PipelineConfig

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class FormattingInstruction:
    """A complete request to the formatting service.

    Attributes:
        system: Standing rules the service must obey.
        user: Task description with the user's text embedded verbatim.
    """

    system: str
    user: str


class FormattingClient(Protocol):
    """Anything that can turn an instruction into raw response text."""

    async def complete(self, instruction: FormattingInstruction) -> str:
        """Send the instruction once and return the raw text response.

        Raises:
            FormattingServiceError: If no text response could be obtained.
        """
        ...


class AnthropicFormattingClient:
    """Formatting client calling Claude through ``ChatAnthropic``.

    One request per call, no retry. The chat model is built lazily so a
    missing API key only fails the call that needs it.

    Typical usage:
        client = AnthropicFormattingClient(get_pipeline_config())
        text = await client.complete(instruction)
    """

    def __init__(self, config: PipelineConfig, model: Any | None = None) -> None:
        """Initialize client.

        Args:
            config: Pipeline configuration with Anthropic settings.
            model: Optional pre-built chat model (used by tests).
        """
        self.config = config
        self._model = model

    def _get_model(self) -> Any:
        if self._model is not None:
            return self._model
        if not self.config.has_anthropic:
            raise FormattingServiceError(
                "ANTHROPIC_API_KEY is not configured. AI formatting is unavailable."
            )
        self._model = ChatAnthropic(  # type: ignore[call-arg]
            model_name=self.config.anthropic_model,
            temperature=self.config.anthropic_temperature,
            max_tokens=self.config.anthropic_max_tokens,
            api_key=self.config.anthropic_api_key,
            timeout=self.config.anthropic_timeout,
            max_retries=0,
        )
        return self._model

    async def complete(self, instruction: FormattingInstruction) -> str:
        """Send the instruction to Claude and return the text of the reply.

        Args:
            instruction: System rules and user prompt.

        Returns:
            Raw response text.

        Raises:
            FormattingServiceError: On missing credentials, transport failure
                or a response without text content.
        """
        model = self._get_model()
        messages = [
            SystemMessage(content=instruction.system),
            HumanMessage(content=instruction.user),
        ]

        try:
            response = await model.ainvoke(messages)
        except Exception as exc:
            await logger.awarning(
                "formatting_service_request_failed",
                model=self.config.anthropic_model,
                exc_type=type(exc).__name__,
                error=str(exc),
            )
            raise FormattingServiceError(f"Formatting service request failed: {exc}") from exc

        text = _extract_text(response.content)
        if text is None:
            raise FormattingServiceError("AI response was not text")

        await logger.adebug(
            "formatting_service_responded",
            model=self.config.anthropic_model,
            response_length=len(text),
        )
        return text


def _extract_text(content: Any) -> str | None:
    """Pull text out of a chat message body (plain string or content blocks)."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = [
            block.get("text", "")
            for block in content
            if isinstance(block, dict) and block.get("type") == "text"
        ]
        parts.extend(block for block in content if isinstance(block, str))
        if parts:
            return "".join(parts)
    return None
