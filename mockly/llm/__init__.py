"""LLM providers and JSON recovery."""
