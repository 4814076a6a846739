"""drecipe core -- errors, logging, settings, documents and action types.

Architecture::

    errors.py      Structured error hierarchy (RecipeError, StoreError, ...)
    logging.py     structlog configuration and LogContext
    settings.py    pydantic-settings configuration (DRECIPE_*)
    document.py    Path lookup, type-aware equality, subset containment
    types.py       Phases, result envelopes, action specs
"""

from drecipe.core.document import ResourceIdentity
from drecipe.core.errors import (
    ConfigError,
    RecipeError,
    RetryTimeoutError,
    StoreError,
    ValidationError,
)
from drecipe.core.types import (
    ActionResult,
    Apply,
    ApplyStatus,
    Assert,
    AssertStatus,
    Label,
    LabelResult,
    PathCheck,
    PathCheckOperator,
    Phase,
    StateCheck,
    StateCheckOperator,
)

__all__ = [
    "ResourceIdentity",
    "ConfigError",
    "RecipeError",
    "RetryTimeoutError",
    "StoreError",
    "ValidationError",
    "ActionResult",
    "Apply",
    "ApplyStatus",
    "Assert",
    "AssertStatus",
    "Label",
    "LabelResult",
    "PathCheck",
    "PathCheckOperator",
    "Phase",
    "StateCheck",
    "StateCheckOperator",
]
