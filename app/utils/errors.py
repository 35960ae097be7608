"""
LevelUp AI - Custom Exception Classes.

Exception hierarchy for the generation pipeline. Every error carries the HTTP
status code the API layer should answer with.
"""

from typing import Dict, Optional


class LevelUpException(Exception):
    """
    Base exception class for LevelUp AI.

    All custom exceptions should inherit from this class.

    Attributes:
        message: Human-readable error message.
        status_code: HTTP status code for the error.
        detail: Additional error details.
    """

    def __init__(
        self,
        message: str = "An error occurred",
        status_code: int = 500,
        detail: Optional[str] = None
    ):
        """
        Initialize LevelUpException.

        Args:
            message: Human-readable error message.
            status_code: HTTP status code (default 500).
            detail: Additional error details.
        """
        self.message = message
        self.status_code = status_code
        self.detail = detail or message
        super().__init__(self.message)


class ValidationError(LevelUpException):
    """
    Exception raised for input validation failures.

    Used when:
    - Invalid input format
    - Missing required fields
    - Business rule violations
    """

    def __init__(
        self,
        message: str = "Validation error",
        detail: Optional[str] = None
    ):
        super().__init__(message=message, status_code=400, detail=detail)


class NotFoundError(LevelUpException):
    """
    Exception raised when a resource is not found.

    Used when:
    - Plan or routine not found
    - Subscription plan has no configured limits
    """

    def __init__(
        self,
        message: str = "Resource not found",
        detail: Optional[str] = None
    ):
        super().__init__(message=message, status_code=404, detail=detail)


class ConfigurationError(LevelUpException):
    """Raised when the service is missing configuration it cannot run without."""

    def __init__(
        self,
        message: str = "Service misconfigured",
        detail: Optional[str] = None
    ):
        super().__init__(message=message, status_code=500, detail=detail)


class QuotaExceededError(LevelUpException):
    """
    Raised when a user has used up the monthly generations for a category.

    Generation is never attempted once this is raised; the message points the
    user at the upgrade path.

    Attributes:
        category: Quota category ("workout" or "diet").
        limit: Monthly limit of the user's plan.
    """

    def __init__(self, category: str, limit: int):
        self.category = category
        self.limit = limit
        noun = "workout routines" if category == "workout" else "diet plans"
        super().__init__(
            message=f"Monthly limit of {limit} {noun} reached",
            status_code=403,
            detail=f"Upgrade to Premium to generate unlimited {noun}."
        )


class ProviderError(LevelUpException):
    """Base class for failures talking to the generative text provider."""

    def __init__(
        self,
        message: str = "AI generation failed",
        status_code: int = 502,
        detail: Optional[str] = None
    ):
        super().__init__(message=message, status_code=status_code, detail=detail)


class ProviderUnavailableError(ProviderError):
    """Network failure, timeout or 5xx from the provider."""

    def __init__(self, detail: Optional[str] = None):
        super().__init__(
            message="AI provider unavailable",
            status_code=503,
            detail=detail
        )


class RateLimitedError(ProviderError):
    """Provider answered 429."""

    def __init__(self, detail: Optional[str] = None):
        super().__init__(
            message="AI provider rate limit exceeded, please try again shortly",
            status_code=429,
            detail=detail
        )


class AuthFailureError(ProviderError):
    """Provider rejected our credentials (401/403)."""

    def __init__(self, detail: Optional[str] = None):
        super().__init__(
            message="AI provider authentication failed",
            status_code=502,
            detail=detail
        )


class EmptyResponseError(ProviderError):
    """Provider answered without any text."""

    def __init__(self, detail: Optional[str] = None):
        super().__init__(
            message="AI provider returned an empty response",
            status_code=502,
            detail=detail
        )


class NoJsonFoundError(LevelUpException):
    """No `{`...`}` block could be located in the generated text."""

    def __init__(self, detail: Optional[str] = None):
        super().__init__(
            message="No JSON object found in AI response",
            status_code=422,
            detail=detail
        )


class MalformedResponseError(LevelUpException):
    """Generated text could not be turned into an object even after repair."""

    def __init__(self, kind: str, detail: Optional[str] = None):
        self.kind = kind
        super().__init__(
            message=f"Could not parse the generated {kind}",
            status_code=422,
            detail=detail
        )


class ShapeMismatchError(LevelUpException):
    """
    Parsed object does not match any accepted shape for its kind.

    Attributes:
        field: Dotted path of the missing or invalid field.
    """

    def __init__(self, kind: str, field: str, detail: Optional[str] = None):
        self.kind = kind
        self.field = field
        super().__init__(
            message=f"Generated {kind} is missing or has an invalid '{field}'",
            status_code=422,
            detail=detail
        )


class PartialGenerationError(LevelUpException):
    """
    One or more branches of a combined generation failed.

    Attributes:
        failures: Error message per failed branch, e.g. {"diet": "..."}.
    """

    def __init__(self, failures: Dict[str, str], status_code: int = 502):
        self.failures = failures
        super().__init__(
            message="Failed to generate complete profile",
            status_code=status_code,
            detail="; ".join(f"{branch}: {error}" for branch, error in failures.items())
        )
