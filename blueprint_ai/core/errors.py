"""
Exception hierarchy for Blueprint AI.

Every error raised by the core derives from BlueprintAIError so callers at
the server boundary can convert them to client-facing messages without
catching unrelated exceptions.

Mapping to client-visible behaviour:
- ToolValidationError / ToolHandlerError / StateInvariantError
    -> failed tool result fed back to the model
- ProviderTransportError / ProviderNotFoundError / ProviderConfigurationError
    -> error event + stream_complete for the current turn
"""

from typing import Optional


class BlueprintAIError(Exception):
    """Base exception for all Blueprint AI errors."""

    pass


# ============================================================================
# TOOL ERRORS
# ============================================================================

class ToolValidationError(BlueprintAIError):
    """Raised when a tool name is unknown or its arguments are malformed."""

    pass


class ToolHandlerError(BlueprintAIError):
    """Raised by a tool capability when it cannot carry out the request."""

    pass


# ============================================================================
# STATE ERRORS
# ============================================================================

class StateInvariantError(BlueprintAIError):
    """Raised when a mutation references a missing entity or would dangle."""

    pass


# ============================================================================
# PROVIDER ERRORS
# ============================================================================

class ProviderError(BlueprintAIError):
    """Base exception for model provider errors."""

    pass


class ProviderNotFoundError(ProviderError):
    """Raised when a requested provider is not registered."""

    pass


class ProviderConfigurationError(ProviderError):
    """Raised when a provider is missing required configuration (API key)."""

    pass


class ProviderTransportError(ProviderError):
    """Raised when the streaming request fails or the stream reports an error."""

    def __init__(self, message: str, status_code: Optional[int] = None, provider: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.provider = provider


__all__ = [
    "BlueprintAIError",
    "ToolValidationError",
    "ToolHandlerError",
    "StateInvariantError",
    "ProviderError",
    "ProviderNotFoundError",
    "ProviderConfigurationError",
    "ProviderTransportError",
]
