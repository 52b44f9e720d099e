"""Anthropic formatting-service integration."""

from filing_desk.integrations.anthropic.client import (
    AnthropicFormattingClient,
    FormattingClient,
    FormattingInstruction,
)

__all__ = [
    "AnthropicFormattingClient",
    "FormattingClient",
    "FormattingInstruction",
]
