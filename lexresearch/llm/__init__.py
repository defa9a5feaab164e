"""Text-completion clients."""

from .completion import CompletionContext, OpenAICompletionClient, TextCompletionClient

__all__ = ["CompletionContext", "OpenAICompletionClient", "TextCompletionClient"]
