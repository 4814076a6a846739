"""
Structured error types for drecipe.

Every error raised by the engine extends RecipeError and carries a category,
a retryable flag and an optional cause. The action engine never inspects
error messages: it reads ``error.retryable`` to decide whether an attempt is
retried or the failure is surfaced at once.

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                       RecipeError                               │
        │  (category, retryable, context, cause)                          │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                 │
        │  ConfigError        ValidationError      InternalError          │
        │  (CONFIG)           (VALIDATION)         (INTERNAL)             │
        │                                                                 │
        │  StoreError (STORE)                      RetryTimeoutError      │
        │       │                                  (TIMEOUT)              │
        │  ConflictError            (retryable)                           │
        │  AlreadyExistsError       (retryable)                           │
        │  StoreUnavailableError    (retryable)                           │
        │  ResourceNotFoundError                                          │
        │  InvalidResourceError                                           │
        │  UnknownResourceTypeError                                       │
        └─────────────────────────────────────────────────────────────────┘

Two classes of failure reach callers:

- **Configuration errors** (ConfigError, ValidationError): raised before any
  store access and never retried.
- **Observation/mutation errors** (StoreError family): retried by the owning
  Retryable when ``retryable`` is set; a RetryTimeoutError chained to the
  last such error is raised once the budget runs out.

Examples:
    >>> error = ConflictError("stale resourceVersion")
    >>> error.retryable
    True
    >>> error.with_context(action="label", name="pool-a").context.action
    'label'

    >>> try:
    ...     raise ConnectionError("dial tcp: refused")
    ... except ConnectionError as e:
    ...     raise StoreUnavailableError("store unreachable", cause=e)
    Traceback (most recent call last):
    ...
    StoreUnavailableError: store unreachable

Usage:
    from drecipe.core.errors import ConfigError

    if not spec.apply_labels:
        raise ConfigError("Invalid label operation: Missing ApplyLabels")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification and routing.

    Attributes:
        CONFIG: Missing or invalid action configuration
        VALIDATION: Malformed spec or recipe document
        STORE: Resource store failures (conflicts, rejections, outages)
        TIMEOUT: Retry budget exhausted
        INTERNAL: Bugs, broken invariants
    """

    CONFIG = "CONFIG"
    VALIDATION = "VALIDATION"
    STORE = "STORE"
    TIMEOUT = "TIMEOUT"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Typed fields cover what every action knows about itself; anything else
    lands in ``metadata``. ``to_dict()`` drops unset fields so the result can
    be passed straight to a structured logger.

    Attributes:
        action: Action kind ("assert", "apply", "label")
        name: Action or task name
        recipe: Owning recipe name, when run from a recipe
        api_version: Target resource apiVersion
        kind: Target resource kind
        namespace: Target resource namespace
        resource: Target resource name
        metadata: Additional key-value pairs
    """

    action: str | None = None
    name: str | None = None
    recipe: str | None = None
    api_version: str | None = None
    kind: str | None = None
    namespace: str | None = None
    resource: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["action", "name", "recipe", "api_version", "kind",
                    "namespace", "resource"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class RecipeError(Exception):
    """
    Base exception for all drecipe errors.

    Subclasses set ``default_category`` and ``default_retryable``; both can
    be overridden per instance. A ``cause`` is chained as ``__cause__`` so
    tracebacks keep the original failure.

    Examples:
        >>> error = RecipeError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.retryable
        False

        >>> error = RecipeError("flaky", category=ErrorCategory.STORE, retryable=True)
        >>> error.to_dict()["retryable"]
        True
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> RecipeError:
        """
        Add context to this error (fluent API).

        Usage:
            raise ConfigError("Nil assert state").with_context(
                action="assert", name="pool-online"
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS (never retryable)
# =============================================================================


class ConfigError(RecipeError):
    """
    Action configuration error: missing name, nil state, empty labels.

    Never retryable - the caller must fix the action configuration.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class ValidationError(RecipeError):
    """
    Spec or document validation error.

    Never retryable - the document must be fixed.
    """

    default_category = ErrorCategory.VALIDATION
    default_retryable = False

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        if self.value is not None:
            result["value"] = repr(self.value)
        return result


class InternalError(RecipeError):
    """Broken engine invariant."""

    default_category = ErrorCategory.INTERNAL
    default_retryable = False


# =============================================================================
# STORE ERRORS
# =============================================================================


class StoreError(RecipeError):
    """
    Error reported by a resource store.

    The store decides whether a failure is transient; the engine only reads
    ``retryable``.
    """

    default_category = ErrorCategory.STORE
    default_retryable = False


class ConflictError(StoreError):
    """Optimistic concurrency conflict (stale resourceVersion)."""

    default_retryable = True


class AlreadyExistsError(StoreError):
    """Create raced with another writer."""

    default_retryable = True


class StoreUnavailableError(StoreError):
    """Store temporarily unreachable."""

    default_retryable = True


class ResourceNotFoundError(StoreError):
    """Requested resource does not exist."""

    def __init__(self, namespace: str, name: str, message: str | None = None, **kwargs: Any):
        self.namespace = namespace
        self.name = name
        super().__init__(message or f"Resource not found: {namespace}/{name}", **kwargs)


class InvalidResourceError(StoreError):
    """Store rejected a malformed document."""

    pass


class UnknownResourceTypeError(StoreError):
    """Store does not recognize the given apiVersion/kind."""

    def __init__(self, api_version: str, kind: str, message: str | None = None, **kwargs: Any):
        self.api_version = api_version
        self.kind = kind
        super().__init__(
            message or f"Unknown resource type: apiVersion={api_version!r} kind={kind!r}",
            **kwargs,
        )


# =============================================================================
# RETRY ERRORS
# =============================================================================


class RetryTimeoutError(RecipeError):
    """Retry budget exhausted before the condition held."""

    default_category = ErrorCategory.TIMEOUT
    default_retryable = False

    def __init__(
        self,
        message: str,
        *,
        timeout: float,
        attempts: int,
        **kwargs: Any,
    ):
        self.timeout = timeout
        self.attempts = attempts
        super().__init__(
            f"Timed out after {timeout}s ({attempts} attempts): {message}",
            **kwargs,
        )


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "RecipeError",
    "ConfigError",
    "ValidationError",
    "InternalError",
    "StoreError",
    "ConflictError",
    "AlreadyExistsError",
    "StoreUnavailableError",
    "ResourceNotFoundError",
    "InvalidResourceError",
    "UnknownResourceTypeError",
    "RetryTimeoutError",
]
