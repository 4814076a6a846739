"""Applier reconciles a desired document into the store.

The applier only chooses between create and update; the merge itself is
the store's job (``create_or_merge``), so fields the desired document does
not mention are preserved. Create races (``AlreadyExistsError``) and stale
writes (``ConflictError``) are retryable and simply lead to another attempt,
which re-reads the resource and may switch from create to update.

A non-retryable rejection (malformed document, unknown resource type) is a
legitimate outcome, reported as ``Phase.FAILED`` with the store's error as
verbose detail.
"""

from __future__ import annotations

from drecipe.core.document import ResourceIdentity, require_fields
from drecipe.core.errors import ConfigError, ResourceNotFoundError, StoreError, ValidationError
from drecipe.core.logging import LogContext, get_logger
from drecipe.core.types import Apply, ApplyStatus, Phase
from drecipe.execution.base import BaseRunner

logger = get_logger(__name__)

CREATED = "Created"
UPDATED = "Updated"


class Applier:
    """Creates or merge-updates ``Apply.state``."""

    def __init__(self, runner: BaseRunner, apply: Apply):
        self.runner = runner
        self.apply = apply

    def _validate(self) -> ResourceIdentity:
        state = self.apply.state if self.apply is not None else None
        if state is None:
            raise ConfigError(f"Failed to apply {self.runner.name!r}: Nil apply state")
        try:
            require_fields(state, "apiVersion", "kind", "metadata.name")
        except ValidationError as e:
            raise ConfigError(f"Failed to apply {self.runner.name!r}: {e.message}", cause=e) from e
        return ResourceIdentity.from_document(state)

    def run(self) -> ApplyStatus:
        identity = self._validate()
        message = f"Apply resource {identity}"
        operation = ""

        def attempt() -> bool:
            nonlocal operation
            client = self.runner.get_client_for(identity)
            try:
                client.get(identity.namespace, identity.name)
            except ResourceNotFoundError:
                client.create(self.apply.state)
                operation = CREATED
                return True
            client.create_or_merge(self.apply.state)
            operation = UPDATED
            return True

        with LogContext(action="apply", name=self.runner.name):
            logger.info("apply_started", resource=str(identity))
            try:
                self.runner.wait(attempt, message)
            except StoreError as e:
                # only non-retryable store errors get past wait()
                logger.warning("apply_rejected", error_type=type(e).__name__, error=e.message)
                return ApplyStatus(
                    phase=Phase.FAILED,
                    message=f"{message}: rejected",
                    verbose=f"{type(e).__name__}: {e.message}",
                )
            status = ApplyStatus(
                phase=Phase.PASSED,
                message=f"{message}: {operation.lower()}",
                verbose=f"{operation} {identity.gvk} {identity.namespace}/{identity.name}",
                operation=operation,
            )
            logger.info("apply_finished", operation=operation)
        return status
