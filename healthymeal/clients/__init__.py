"""
External API client modules.

This module contains clients for interacting with external services
such as the AI provider used for recipe modification.
"""

from healthymeal.clients.openai_client import ChatResult, OpenAIClient, OpenAIClientError

__all__ = ["ChatResult", "OpenAIClient", "OpenAIClientError"]
