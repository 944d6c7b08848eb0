"""
LLM Pricing.

Lists OpenRouter model prices and computes request costs per model.
"""

__version__ = "0.3.0"
