"""
Exception hierarchy for the discovery engine.

Exception Hierarchy:
    DiscoveryError (base)
    ├── ValidationError
    ├── ConfigurationError
    └── ProviderError
        ├── ProviderTimeoutError
        └── ResponseShapeError

Providers raise ProviderError subclasses (or let httpx errors escape); the
executor layer converts every one of them into an ``error`` progress event and
an empty result set, so they never abort a whole discovery run. A run is
rejected outright, before any provider is called, only by ValidationError
(unusable expense) or ConfigurationError (no providers registered).

Usage:
    from discovery.exceptions import ConfigurationError

    raise ConfigurationError("BRAVE_API_KEY is not set", detail={"provider": "brave"})
"""

from typing import Any, Dict, Optional


class DiscoveryError(Exception):
    """
    Base exception for all discovery errors.

    Attributes:
        message: Human-readable error message
        detail: Optional dict with additional error context
    """

    def __init__(self, message: str, *, detail: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a dictionary for JSON serialization."""
        result = {
            "error": self.__class__.__name__,
            "message": self.message,
        }
        if self.detail:
            result["detail"] = self.detail
        return result


class ValidationError(DiscoveryError):
    """Raised when caller input cannot be used for a discovery run."""


class ConfigurationError(DiscoveryError):
    """
    Raised when a provider is missing credentials or settings.

    Examples:
        raise ConfigurationError("OPENAI_API_KEY is not set")
    """


class ProviderError(DiscoveryError):
    """Base exception for external provider failures."""

    def __init__(
        self,
        message: str,
        *,
        detail: Optional[Dict[str, Any]] = None,
        service_name: Optional[str] = None,
    ):
        if service_name and detail is None:
            detail = {"service": service_name}
        elif service_name and detail:
            detail["service"] = service_name

        super().__init__(message, detail=detail)
        self.service_name = service_name


class ProviderTimeoutError(ProviderError):
    """Raised when a provider does not answer within its time budget."""


class ResponseShapeError(ProviderError):
    """
    Raised when a provider payload does not match the expected schema.

    Examples:
        raise ResponseShapeError("alternatives is not a list", service_name="openai")
    """
