"""
SDK for LLM Pricing.

Provides programmatic access to the remote model catalog.
"""

from .openrouter_client import OpenRouterClient

__all__ = ["OpenRouterClient"]
