"""
Core modules for LLM Pricing.

This package contains the catalog data model, filtering, sorting,
grouping and cost calculation.
"""
