"""Mockly: LLM output recovery and speech preparation for interview simulations."""

__version__ = "0.1.0"
