"""API provider clients for external services."""

from .gemini import GeminiClient
from .error_classifier import classify_exception, classify_error_payload

__all__ = [
    "GeminiClient",
    "classify_exception",
    "classify_error_payload",
]
