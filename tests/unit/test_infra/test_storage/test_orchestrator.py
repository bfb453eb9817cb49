"""Unit tests for the bucket deletion workflows."""

import pytest

from s3_admin.infra.storage.exceptions import (
    ConfigMissingError,
    ErrorKind,
    HasDependentsError,
    NotEmptyError,
)
from s3_admin.infra.storage.orchestrator import (
    ACCOUNT_ID_REQUIRED_MESSAGE,
    FORCE_ACCOUNT_ID_REQUIRED_MESSAGE,
    BucketDeletionOrchestrator,
    DeletionOutcome,
    DeletionState,
)
from tests.fixtures.storage_fixtures import ACCOUNT_ID, InMemoryGateway


@pytest.fixture
def orchestrator(gateway: InMemoryGateway) -> BucketDeletionOrchestrator:
    return BucketDeletionOrchestrator(gateway, account_id=ACCOUNT_ID)


@pytest.fixture
def orchestrator_no_account(gateway: InMemoryGateway) -> BucketDeletionOrchestrator:
    return BucketDeletionOrchestrator(gateway, account_id=None)


class TestPlainDelete:
    """Test the plain delete workflow."""

    @pytest.mark.asyncio
    async def test_deletes_empty_bucket(self, gateway, orchestrator):
        """Test that an empty bucket without access points is deleted."""
        gateway.add_bucket("empty")

        outcome = await orchestrator.delete_bucket("empty")

        assert outcome.success
        assert outcome.kind is None
        assert outcome.message == "Bucket deleted successfully"
        assert "empty" not in gateway.buckets
        assert outcome.steps == [
            DeletionState.VALIDATE,
            DeletionState.CHECK_EMPTY,
            DeletionState.ATTEMPT_DELETE,
            DeletionState.DONE,
        ]
        assert gateway.calls == ["has_objects", "delete_bucket_raw"]

    @pytest.mark.asyncio
    async def test_bucket_with_objects_is_not_empty(self, gateway, orchestrator):
        """Test that a bucket holding two objects fails with NOT_EMPTY."""
        gateway.add_bucket("demo", objects={"a.txt": b"a", "b.txt": b"b"})

        outcome = await orchestrator.delete_bucket("demo")

        assert not outcome.success
        assert outcome.kind is ErrorKind.NOT_EMPTY
        assert outcome.message == "Cannot delete bucket that contains objects"
        assert "demo" in gateway.buckets
        assert "delete_bucket_raw" not in gateway.calls

    @pytest.mark.asyncio
    async def test_reports_attached_access_points(self, gateway, orchestrator):
        """Test that attached access points are reported, never deleted."""
        gateway.add_bucket("demo2", access_points=["ap1", "ap2"])

        outcome = await orchestrator.delete_bucket("demo2")

        assert not outcome.success
        assert outcome.kind is ErrorKind.HAS_DEPENDENTS
        assert outcome.access_points == ["ap1", "ap2"]
        assert outcome.message == (
            "Bucket has 2 access point(s) attached: ap1, ap2. "
            "These must be deleted before the bucket can be removed."
        )
        assert "delete_access_point" not in gateway.calls
        assert gateway.buckets["demo2"].access_points == ["ap1", "ap2"]
        assert outcome.steps[-3:] == [
            DeletionState.NEED_DEPENDENT_INFO,
            DeletionState.REPORT_BLOCKED,
            DeletionState.FAILED,
        ]

    @pytest.mark.asyncio
    async def test_access_points_without_account_id(self, gateway, orchestrator_no_account):
        """Test that the dependent lookup needs an account ID."""
        gateway.add_bucket("demo2", access_points=["ap1"])

        outcome = await orchestrator_no_account.delete_bucket("demo2")

        assert outcome.kind is ErrorKind.CONFIG_MISSING
        assert outcome.message == ACCOUNT_ID_REQUIRED_MESSAGE
        assert "list_access_points" not in gateway.calls

    @pytest.mark.asyncio
    async def test_unlistable_access_points_are_unavailable(self, gateway, orchestrator):
        """Test that an empty listing after a dependents error is UNAVAILABLE."""
        gateway.add_bucket("demo2", access_points=["ap1"])
        gateway.hide_access_points = True

        outcome = await orchestrator.delete_bucket("demo2")

        assert outcome.kind is ErrorKind.UNAVAILABLE
        assert "none could be listed" in outcome.message

    @pytest.mark.asyncio
    async def test_invalid_name_makes_no_calls(self, gateway, orchestrator):
        """Test that an invalid name fails before any gateway call."""
        outcome = await orchestrator.delete_bucket("my..bucket")

        assert outcome.kind is ErrorKind.INVALID_NAME
        assert outcome.message == "Bucket name cannot contain consecutive dots"
        assert gateway.calls == []

    @pytest.mark.asyncio
    async def test_missing_bucket(self, gateway, orchestrator):
        """Test that a missing bucket fails with NOT_FOUND."""
        outcome = await orchestrator.delete_bucket("missing")

        assert outcome.kind is ErrorKind.NOT_FOUND


class TestForcedDelete:
    """Test the forced delete workflow."""

    @pytest.mark.asyncio
    async def test_requires_account_before_any_call(self, gateway, orchestrator_no_account):
        """Test that a missing account ID fails with no network call."""
        gateway.add_bucket("demo2", access_points=["ap1"])

        outcome = await orchestrator_no_account.force_delete_bucket("demo2")

        assert outcome.kind is ErrorKind.CONFIG_MISSING
        assert outcome.message == FORCE_ACCOUNT_ID_REQUIRED_MESSAGE
        assert gateway.calls == []
        assert outcome.steps == [DeletionState.REQUIRE_ACCOUNT, DeletionState.FAILED]

    @pytest.mark.asyncio
    async def test_plain_then_forced(self, gateway, orchestrator):
        """Test that a blocked plain delete succeeds once forced."""
        gateway.add_bucket("demo2", access_points=["ap1", "ap2"])

        blocked = await orchestrator.delete_bucket("demo2")
        outcome = await orchestrator.force_delete_bucket("demo2")

        assert blocked.kind is ErrorKind.HAS_DEPENDENTS
        assert outcome.success
        assert outcome.removed_access_points == 2
        assert "2 access point(s)" in outcome.message
        assert outcome.message == "Bucket deleted successfully after removing 2 access point(s)"
        assert "demo2" not in gateway.buckets
        assert outcome.steps == [
            DeletionState.REQUIRE_ACCOUNT,
            DeletionState.VALIDATE,
            DeletionState.CHECK_EMPTY,
            DeletionState.CLEAR_DEPENDENTS,
            DeletionState.DELETE_RESOURCE,
            DeletionState.DONE,
        ]

    @pytest.mark.asyncio
    async def test_forced_without_access_points(self, gateway, orchestrator):
        """Test that forcing a bucket with no access points removes zero."""
        gateway.add_bucket("plain")

        outcome = await orchestrator.force_delete_bucket("plain")

        assert outcome.success
        assert outcome.removed_access_points == 0
        assert outcome.message == "Bucket deleted successfully after removing 0 access point(s)"

    @pytest.mark.asyncio
    async def test_forced_refuses_non_empty_bucket(self, gateway, orchestrator):
        """Test that forcing never removes access points of a non-empty bucket."""
        gateway.add_bucket("full", objects={"a": b"1"}, access_points=["ap1"])

        outcome = await orchestrator.force_delete_bucket("full")

        assert outcome.kind is ErrorKind.NOT_EMPTY
        assert gateway.buckets["full"].access_points == ["ap1"]
        assert "delete_access_point" not in gateway.calls

    @pytest.mark.asyncio
    async def test_stops_at_first_access_point_failure(self, gateway, orchestrator):
        """Test that a failing access point leaves the bucket and the rest in place."""
        gateway.add_bucket("demo3", access_points=["ap1", "ap2", "ap3"])
        gateway.failing_access_points.add("ap2")

        outcome = await orchestrator.force_delete_bucket("demo3")

        assert not outcome.success
        assert outcome.kind is ErrorKind.UNAVAILABLE
        assert outcome.removed_access_points == 1
        assert "ap2" in outcome.message
        assert "1 of 3" in outcome.message
        assert gateway.buckets["demo3"].access_points == ["ap2", "ap3"]
        assert gateway.calls.count("delete_access_point") == 2
        assert "delete_bucket_raw" not in gateway.calls

    @pytest.mark.asyncio
    async def test_bucket_delete_failure_after_clearing(self, gateway, orchestrator):
        """Test the message when the bucket itself cannot be deleted."""
        gateway.add_bucket("stuck", access_points=["ap1", "ap2"])
        gateway.failing_deletes.add("stuck")

        outcome = await orchestrator.force_delete_bucket("stuck")

        assert outcome.kind is ErrorKind.UNAVAILABLE
        assert outcome.removed_access_points == 2
        assert outcome.message.startswith("Failed to delete bucket after removing 2 access point(s)")


class TestDeletionOutcome:
    """Test conversion of outcomes into exceptions."""

    def test_success_has_no_error(self):
        """Test that a successful outcome converts to None."""
        assert DeletionOutcome(bucket="b", success=True).to_error() is None

    def test_has_dependents_error_carries_names(self):
        """Test that HAS_DEPENDENTS converts with the access point names."""
        outcome = DeletionOutcome(
            bucket="demo2",
            kind=ErrorKind.HAS_DEPENDENTS,
            message="blocked",
            access_points=["ap1", "ap2"],
        )

        error = outcome.to_error()

        assert isinstance(error, HasDependentsError)
        assert error.access_points == ["ap1", "ap2"]
        assert error.extra["bucket"] == "demo2"

    def test_other_kinds(self):
        """Test that other kinds convert to their exception classes."""
        assert isinstance(
            DeletionOutcome(bucket="b", kind=ErrorKind.NOT_EMPTY, message="x").to_error(),
            NotEmptyError,
        )
        assert isinstance(
            DeletionOutcome(bucket="b", kind=ErrorKind.CONFIG_MISSING, message="x").to_error(),
            ConfigMissingError,
        )
