"""
Error taxonomy for the optimizer.

Only ConfigurationError and UpstreamError are meant to reach callers.
Everything else degrades to a safe default inside the pipeline.
"""

from typing import Optional


class OptimizerError(Exception):
    """Base exception for all optimizer errors."""


class ConfigurationError(OptimizerError):
    """Raised when required provider configuration or credentials are missing."""


class UpstreamError(OptimizerError):
    """Raised when the upstream provider call fails.

    Carries the provider's status code (None for network-level failures)
    and message. Never retried and never cached by the optimizer.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        provider: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.provider = provider

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"[{self.status_code}] {self.message}"
        return self.message


class CacheStoreError(OptimizerError):
    """Internal cache store failure. Never surfaced to callers."""
