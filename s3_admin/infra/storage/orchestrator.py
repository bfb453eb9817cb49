"""Bucket deletion workflows.

Two entry points share one explicit state machine:

Plain delete::

    VALIDATE -> CHECK_EMPTY -> ATTEMPT_DELETE -> DONE
                                              -> NEED_DEPENDENT_INFO -> REPORT_BLOCKED

Forced delete::

    REQUIRE_ACCOUNT -> VALIDATE -> CHECK_EMPTY -> CLEAR_DEPENDENTS -> DELETE_RESOURCE -> DONE

Any state may also move to FAILED. Plain delete never removes access
points; it only reports them. Forced delete is fail-stop: if an access point
cannot be removed, the bucket is left in place.

Example:
    ```python
    orchestrator = BucketDeletionOrchestrator(gateway, account_id="123456789012")
    outcome = await orchestrator.delete_bucket("demo2")
    if outcome.kind is ErrorKind.HAS_DEPENDENTS:
        outcome = await orchestrator.force_delete_bucket("demo2")
    ```
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from s3_admin.infra.tracing.opentelemetry import add_span_attributes

from .dependents import AccessPointResolver
from .exceptions import ErrorKind, HasDependentsError, StorageError, error_for_kind
from .metrics import record_bucket_deletion
from .validation import validate_bucket_name

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from .protocol import StorageGateway

logger = logging.getLogger(__name__)

ACCOUNT_ID_REQUIRED_MESSAGE = (
    "Bucket has access points attached and cannot be deleted. "
    "Set STORAGE_ACCOUNT_ID to enable access point management."
)
FORCE_ACCOUNT_ID_REQUIRED_MESSAGE = (
    "STORAGE_ACCOUNT_ID is required for access point management"
)


class DeletionState(StrEnum):
    """States of the bucket deletion workflows."""

    REQUIRE_ACCOUNT = "require_account"
    VALIDATE = "validate"
    CHECK_EMPTY = "check_empty"
    ATTEMPT_DELETE = "attempt_delete"
    NEED_DEPENDENT_INFO = "need_dependent_info"
    REPORT_BLOCKED = "report_blocked"
    CLEAR_DEPENDENTS = "clear_dependents"
    DELETE_RESOURCE = "delete_resource"
    DONE = "done"
    FAILED = "failed"


TERMINAL_STATES = frozenset({DeletionState.DONE, DeletionState.FAILED})


@dataclass
class DeletionOutcome:
    """Result of a deletion workflow.

    Attributes:
        bucket: Bucket the workflow ran against.
        success: Whether the bucket is gone.
        message: Human-readable summary.
        kind: Failure kind, None on success.
        access_points: Names of the blocking access points (HAS_DEPENDENTS).
        removed_access_points: Access points deleted by a forced run.
        steps: States visited, in order, ending with DONE or FAILED.
    """

    bucket: str
    success: bool = False
    message: str = ""
    kind: ErrorKind | None = None
    access_points: list[str] = field(default_factory=list)
    removed_access_points: int = 0
    steps: list[DeletionState] = field(default_factory=list)

    def to_error(self) -> StorageError | None:
        """Convert a failed outcome into the matching StorageError."""
        if self.success or self.kind is None:
            return None
        metadata: dict[str, object] = {"bucket": self.bucket}
        if self.kind is ErrorKind.HAS_DEPENDENTS:
            metadata["access_points"] = self.access_points
        if self.removed_access_points:
            metadata["removed_access_points"] = self.removed_access_points
        return error_for_kind(self.kind, self.message, metadata=metadata)


@dataclass
class _Run:
    """Mutable state carried between handlers of one workflow run."""

    outcome: DeletionOutcome
    forced: bool

    def fail(self, kind: ErrorKind, message: str) -> DeletionState:
        self.outcome.success = False
        self.outcome.kind = kind
        self.outcome.message = message
        return DeletionState.FAILED

    def fail_with(self, error: StorageError) -> DeletionState:
        return self.fail(error.kind, error.message)

    def done(self, message: str) -> DeletionState:
        self.outcome.success = True
        self.outcome.kind = None
        self.outcome.message = message
        return DeletionState.DONE


class BucketDeletionOrchestrator:
    """Runs the plain and forced bucket deletion workflows.

    The orchestrator holds no state between calls; each workflow run is
    independent.
    """

    def __init__(
        self,
        gateway: StorageGateway,
        account_id: str | None,
        resolver: AccessPointResolver | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            gateway: Storage gateway to drive.
            account_id: Account owning the access points; forced delete and
                the dependent lookup of plain delete require it.
            resolver: Access point resolver (built from ``gateway`` if omitted).
        """
        self._gateway = gateway
        self._account_id = account_id or None
        self._resolver = resolver or AccessPointResolver(gateway)
        self._handlers: dict[DeletionState, Callable[[str, _Run], Awaitable[DeletionState]]] = {
            DeletionState.REQUIRE_ACCOUNT: self._require_account,
            DeletionState.VALIDATE: self._validate,
            DeletionState.CHECK_EMPTY: self._check_empty,
            DeletionState.ATTEMPT_DELETE: self._attempt_delete,
            DeletionState.NEED_DEPENDENT_INFO: self._need_dependent_info,
            DeletionState.REPORT_BLOCKED: self._report_blocked,
            DeletionState.CLEAR_DEPENDENTS: self._clear_dependents,
            DeletionState.DELETE_RESOURCE: self._delete_resource,
        }

    async def delete_bucket(self, name: str) -> DeletionOutcome:
        """Delete an empty bucket with no access points attached.

        Never deletes access points. If they block the deletion the outcome
        is HAS_DEPENDENTS and lists their names.
        """
        return await self._run(name, DeletionState.VALIDATE, forced=False)

    async def force_delete_bucket(self, name: str) -> DeletionOutcome:
        """Delete every access point attached to an empty bucket, then the bucket.

        Fails with CONFIG_MISSING before any network call when no account ID
        is configured.
        """
        return await self._run(name, DeletionState.REQUIRE_ACCOUNT, forced=True)

    async def _run(self, name: str, start: DeletionState, *, forced: bool) -> DeletionOutcome:
        run = _Run(outcome=DeletionOutcome(bucket=name), forced=forced)
        state = start
        while state not in TERMINAL_STATES:
            run.outcome.steps.append(state)
            state = await self._handlers[state](name, run)
        run.outcome.steps.append(state)

        outcome = run.outcome
        workflow = "forced" if forced else "plain"
        result = "done" if outcome.success else str(outcome.kind)
        record_bucket_deletion(workflow, result, outcome.removed_access_points)
        add_span_attributes(
            {
                "storage.deletion.workflow": workflow,
                "storage.deletion.outcome": result,
                "storage.deletion.access_points_removed": outcome.removed_access_points,
            }
        )

        log_extra = {
            "bucket": name,
            "workflow": workflow,
            "outcome": result,
            "steps": [step.value for step in outcome.steps],
        }
        if outcome.success:
            logger.info("Bucket deletion finished", extra=log_extra)
        else:
            logger.warning("Bucket deletion failed: %s", outcome.message, extra=log_extra)
        return outcome

    # ========================================================================
    # State handlers
    # ========================================================================

    async def _require_account(self, name: str, run: _Run) -> DeletionState:
        if not self._account_id:
            return run.fail(ErrorKind.CONFIG_MISSING, FORCE_ACCOUNT_ID_REQUIRED_MESSAGE)
        return DeletionState.VALIDATE

    async def _validate(self, name: str, run: _Run) -> DeletionState:
        verdict = validate_bucket_name(name)
        if not verdict.ok:
            return run.fail(ErrorKind.INVALID_NAME, verdict.message)
        return DeletionState.CHECK_EMPTY

    async def _check_empty(self, name: str, run: _Run) -> DeletionState:
        try:
            has_objects = await self._gateway.has_objects(name)
        except StorageError as e:
            return run.fail_with(e)
        if has_objects:
            return run.fail(ErrorKind.NOT_EMPTY, "Cannot delete bucket that contains objects")
        return DeletionState.CLEAR_DEPENDENTS if run.forced else DeletionState.ATTEMPT_DELETE

    async def _attempt_delete(self, name: str, run: _Run) -> DeletionState:
        try:
            # CHECK_EMPTY just ran
            await self._gateway.delete_bucket_raw(name, check_empty=False)
        except HasDependentsError:
            return DeletionState.NEED_DEPENDENT_INFO
        except StorageError as e:
            return run.fail_with(e)
        return run.done("Bucket deleted successfully")

    async def _need_dependent_info(self, name: str, run: _Run) -> DeletionState:
        if not self._account_id:
            return run.fail(ErrorKind.CONFIG_MISSING, ACCOUNT_ID_REQUIRED_MESSAGE)

        access_points = await self._gateway.list_access_points(name, self._account_id)
        if not access_points:
            return run.fail(
                ErrorKind.UNAVAILABLE,
                f"Bucket {name} reports access points attached but none could be listed",
            )
        run.outcome.access_points = [ap.name for ap in access_points]
        return DeletionState.REPORT_BLOCKED

    async def _report_blocked(self, name: str, run: _Run) -> DeletionState:
        names = run.outcome.access_points
        return run.fail(
            ErrorKind.HAS_DEPENDENTS,
            f"Bucket has {len(names)} access point(s) attached: {', '.join(names)}. "
            "These must be deleted before the bucket can be removed.",
        )

    async def _clear_dependents(self, name: str, run: _Run) -> DeletionState:
        # REQUIRE_ACCOUNT guarantees the account ID on this path
        account_id = self._account_id or ""
        result = await self._resolver.clear(name, account_id)
        run.outcome.removed_access_points = result.count
        if result.error is not None:
            return run.fail(
                result.error.kind,
                f"Failed to delete access point {result.failed_name} after removing "
                f"{result.count} of {result.total} access point(s); "
                f"bucket {name} was not deleted: {result.error.message}",
            )
        return DeletionState.DELETE_RESOURCE

    async def _delete_resource(self, name: str, run: _Run) -> DeletionState:
        removed = run.outcome.removed_access_points
        try:
            await self._gateway.delete_bucket_raw(name, check_empty=False)
        except StorageError as e:
            return run.fail(
                e.kind,
                f"Failed to delete bucket after removing {removed} access point(s): {e.message}",
            )
        return run.done(f"Bucket deleted successfully after removing {removed} access point(s)")
