"""
SDK for the AI API Optimizer.

Provides the upstream provider clients used by the orchestrator.
"""

from .openai_client import OpenAIUpstream

__all__ = ["OpenAIUpstream"]
