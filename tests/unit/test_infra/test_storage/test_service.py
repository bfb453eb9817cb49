"""Unit tests for StorageService."""

from unittest.mock import AsyncMock, patch

import pytest

from s3_admin.core.settings import StorageSettings
from s3_admin.infra.storage.exceptions import (
    ConfigMissingError,
    HasDependentsError,
    InvalidNameError,
    NotEmptyError,
    NotFoundError,
    UnavailableError,
)
from s3_admin.infra.storage.protocol import PresignMode
from s3_admin.infra.storage.service import (
    StorageService,
    get_storage_service,
    reset_storage_service,
)


class TestServiceLifecycle:
    """Test service lifecycle and readiness."""

    @pytest.mark.asyncio
    async def test_unconfigured_service_is_not_ready(self):
        """Test that startup without configuration leaves the service idle."""
        service = StorageService(StorageSettings(enabled=False))

        await service.startup()

        assert not service.is_ready
        assert await service.health_check() is False
        with pytest.raises(UnavailableError, match="not initialized"):
            await service.list_buckets()

    @pytest.mark.asyncio
    async def test_startup_opens_gateway(self):
        """Test that a configured service opens an S3Gateway."""
        with patch("s3_admin.infra.storage.service.S3Gateway") as gateway_cls:
            gateway_cls.return_value.startup = AsyncMock()
            service = StorageService(StorageSettings(enabled=True))

            await service.startup()

            assert service.is_ready
            gateway_cls.return_value.startup.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_injected_gateway_is_ready(self, storage_service, gateway):
        """Test that an injected gateway makes the service ready immediately."""
        assert storage_service.is_ready
        assert await storage_service.health_check() is True

        gateway.healthy = False
        assert await storage_service.health_check() is False

    def test_singleton(self):
        """Test get_storage_service returns one instance until reset."""
        first = get_storage_service()

        assert get_storage_service() is first
        reset_storage_service()
        assert get_storage_service() is not first


class TestBucketOperations:
    """Test bucket operations through the service."""

    @pytest.mark.asyncio
    async def test_create_bucket_defaults_to_settings_region(self, storage_service, gateway):
        """Test that the configured region is used when none is given."""
        created = await storage_service.create_bucket("reports")

        assert created.region == "us-east-1"
        assert "reports" in gateway.buckets

    @pytest.mark.asyncio
    async def test_create_bucket_explicit_region(self, storage_service, gateway):
        """Test that an explicit region wins."""
        created = await storage_service.create_bucket("reports", region="eu-west-1")

        assert created.region == "eu-west-1"
        assert gateway.buckets["reports"].region == "eu-west-1"

    @pytest.mark.asyncio
    async def test_list_buckets(self, storage_service, gateway):
        """Test that listing returns every bucket with its object presence."""
        gateway.add_bucket("alpha", objects={"a": b"1"})
        gateway.add_bucket("beta")

        buckets = await storage_service.list_buckets()

        assert {b.name: b.has_objects for b in buckets} == {"alpha": True, "beta": False}

    @pytest.mark.asyncio
    async def test_get_bucket_details(self, storage_service, gateway):
        """Test exact count and size of a bucket."""
        gateway.add_bucket("demo", objects={"a.txt": b"abc", "b.txt": b"defgh"})

        details = await storage_service.get_bucket_details("demo")

        assert details.object_count == 2
        assert details.total_size_bytes == 8
        assert details.has_objects is True

    @pytest.mark.asyncio
    async def test_get_bucket_details_missing_bucket(self, storage_service):
        """Test that a missing bucket raises NotFoundError instead of zeros."""
        with pytest.raises(NotFoundError):
            await storage_service.get_bucket_details("missing")

    @pytest.mark.asyncio
    async def test_get_bucket_details_invalid_name(self, storage_service, gateway):
        """Test that an invalid name never reaches the gateway."""
        with pytest.raises(InvalidNameError):
            await storage_service.get_bucket_details("Bad_Name")

        assert gateway.calls == []

    @pytest.mark.asyncio
    async def test_bucket_size(self, storage_service, gateway):
        """Test the best-effort size with and without failures."""
        gateway.add_bucket("demo", objects={"a": b"12", "b": b"345"})

        assert await storage_service.bucket_size("demo") == 5
        assert await storage_service.bucket_size("missing") == 0


class TestBucketDeletion:
    """Test deletion through the service, which raises on failure."""

    @pytest.mark.asyncio
    async def test_delete_bucket(self, storage_service, gateway):
        """Test successful plain delete."""
        gateway.add_bucket("empty")

        outcome = await storage_service.delete_bucket("empty")

        assert outcome.success
        assert "empty" not in gateway.buckets

    @pytest.mark.asyncio
    async def test_delete_non_empty_bucket(self, storage_service, gateway):
        """Test that NOT_EMPTY is raised as NotEmptyError."""
        gateway.add_bucket("demo", objects={"a": b"1", "b": b"2"})

        with pytest.raises(NotEmptyError):
            await storage_service.delete_bucket("demo")

    @pytest.mark.asyncio
    async def test_delete_bucket_with_access_points(self, storage_service, gateway):
        """Test that attached access points raise HasDependentsError with names."""
        gateway.add_bucket("demo2", access_points=["ap1", "ap2"])

        with pytest.raises(HasDependentsError) as exc_info:
            await storage_service.delete_bucket("demo2")

        assert exc_info.value.access_points == ["ap1", "ap2"]
        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_force_delete_bucket(self, storage_service, gateway):
        """Test forced delete removes access points, then the bucket."""
        gateway.add_bucket("demo2", access_points=["ap1", "ap2"])

        outcome = await storage_service.force_delete_bucket("demo2")

        assert outcome.removed_access_points == 2
        assert "demo2" not in gateway.buckets

    @pytest.mark.asyncio
    async def test_force_delete_without_account(self, storage_settings_no_account, gateway):
        """Test forced delete without an account ID raises ConfigMissingError."""
        gateway.add_bucket("demo2", access_points=["ap1"])
        service = StorageService(storage_settings_no_account, gateway=gateway)

        with pytest.raises(ConfigMissingError):
            await service.force_delete_bucket("demo2")

        assert gateway.calls == []


class TestObjectOperations:
    """Test object operations through the service."""

    @pytest.mark.asyncio
    async def test_upload_and_download(self, storage_service, gateway):
        """Test upload then streaming download."""
        gateway.add_bucket("demo")

        result = await storage_service.upload_object(
            "demo", "docs/readme.txt", b"hello world", content_type="text/plain"
        )
        content = await storage_service.download_object("demo", "docs/readme.txt")
        data = b"".join([chunk async for chunk in content.stream])

        assert result.size_bytes == 11
        assert data == b"hello world"
        assert content.content_type == "text/plain"

    @pytest.mark.asyncio
    async def test_upload_same_key_replaces_content(self, storage_service, gateway):
        """Test that a second upload under one key leaves only the new content."""
        gateway.add_bucket("demo")

        await storage_service.upload_object("demo", "a.txt", b"first")
        await storage_service.upload_object("demo", "a.txt", b"second")

        assert list(gateway.buckets["demo"].objects) == ["a.txt"]
        assert gateway.buckets["demo"].objects["a.txt"].data == b"second"

    @pytest.mark.asyncio
    async def test_upload_invalid_key(self, storage_service, gateway):
        """Test that invalid keys are rejected before upload."""
        gateway.add_bucket("demo")

        with pytest.raises(InvalidNameError):
            await storage_service.upload_object("demo", "bad|key", b"x")

        assert "put_object" not in gateway.calls

    @pytest.mark.asyncio
    async def test_list_objects_pagination(self, storage_service, gateway):
        """Test that page size and continuation tokens are honoured."""
        gateway.add_bucket("demo", objects={f"k{i}": b"x" for i in range(5)})

        first = await storage_service.list_objects("demo", page_size=2)
        second = await storage_service.list_objects(
            "demo", page_size=2, continuation_token=first.next_continuation_token
        )

        assert [o.key for o in first.objects] == ["k0", "k1"]
        assert first.is_truncated
        assert [o.key for o in second.objects] == ["k2", "k3"]

    @pytest.mark.asyncio
    async def test_metadata_and_delete(self, storage_service, gateway):
        """Test head then delete of a single object."""
        gateway.add_bucket("demo", objects={"a.txt": b"abc"})

        info = await storage_service.get_object_metadata("demo", "a.txt")
        await storage_service.delete_object("demo", "a.txt")

        assert info.size_bytes == 3
        assert gateway.buckets["demo"].objects == {}

    @pytest.mark.asyncio
    async def test_delete_objects_reports_each_key(self, storage_service, gateway):
        """Test that one failing key does not stop the others."""
        gateway.add_bucket("demo", objects={"a": b"1", "c": b"3"})

        result = await storage_service.delete_objects("demo", ["a", "missing", "c"])

        assert result.deleted == ["a", "c"]
        assert len(result.failed) == 1
        assert result.failed[0].key == "missing"
        assert result.failed[0].kind == "not_found"

    @pytest.mark.asyncio
    async def test_presigned_urls(self, storage_service, gateway):
        """Test download and upload URL modes."""
        download = await storage_service.generate_download_url("demo", "a.txt")
        upload = await storage_service.generate_upload_url("demo", "b.txt")

        assert download.mode is PresignMode.READ
        assert upload.mode is PresignMode.WRITE
        assert download.expires_in == 3600


class TestNameValidation:
    """Test that names are validated before the gateway is used."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "method",
        [
            "download_object",
            "get_object_metadata",
            "delete_object",
            "generate_download_url",
            "generate_upload_url",
        ],
    )
    async def test_invalid_key_makes_no_calls(self, storage_service, gateway, method):
        """Test that an invalid key raises InvalidNameError without a gateway call."""
        gateway.add_bucket("demo")

        with pytest.raises(InvalidNameError):
            await getattr(storage_service, method)("demo", "bad|key")

        assert gateway.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "method",
        [
            "download_object",
            "get_object_metadata",
            "delete_object",
            "generate_download_url",
            "generate_upload_url",
        ],
    )
    async def test_invalid_bucket_makes_no_calls(self, storage_service, gateway, method):
        """Test that an invalid bucket name raises InvalidNameError without a gateway call."""
        with pytest.raises(InvalidNameError):
            await getattr(storage_service, method)("My..Bucket", "a.txt")

        assert gateway.calls == []

    @pytest.mark.asyncio
    async def test_list_objects_invalid_bucket(self, storage_service, gateway):
        """Test that listing an invalid bucket name never reaches the gateway."""
        with pytest.raises(InvalidNameError):
            await storage_service.list_objects("My..Bucket")

        assert gateway.calls == []

    @pytest.mark.asyncio
    async def test_upload_invalid_bucket(self, storage_service, gateway):
        """Test that uploading into an invalid bucket name never reaches the gateway."""
        with pytest.raises(InvalidNameError):
            await storage_service.upload_object("My..Bucket", "a.txt", b"x")

        assert gateway.calls == []

    @pytest.mark.asyncio
    async def test_bucket_size_invalid_bucket(self, storage_service, gateway):
        """Test that sizing an invalid bucket name raises instead of returning zero."""
        with pytest.raises(InvalidNameError):
            await storage_service.bucket_size("My..Bucket")

        assert gateway.calls == []

    @pytest.mark.asyncio
    async def test_create_bucket_invalid_name(self, storage_service, gateway):
        """Test that creating an invalid bucket name never reaches the gateway."""
        with pytest.raises(InvalidNameError):
            await storage_service.create_bucket("My..Bucket")

        assert gateway.calls == []

    @pytest.mark.asyncio
    async def test_delete_objects_invalid_key_fails_alone(self, storage_service, gateway):
        """Test that an invalid batch key fails with invalid_name and the rest proceed."""
        gateway.add_bucket("demo", objects={"a": b"1"})

        result = await storage_service.delete_objects("demo", ["a", "bad|key"])

        assert result.deleted == ["a"]
        assert [(f.key, f.kind) for f in result.failed] == [("bad|key", "invalid_name")]
        assert gateway.calls == ["delete_object"]

    @pytest.mark.asyncio
    async def test_delete_objects_invalid_bucket(self, storage_service, gateway):
        """Test that a batch against an invalid bucket name makes no calls."""
        with pytest.raises(InvalidNameError):
            await storage_service.delete_objects("My..Bucket", ["a"])

        assert gateway.calls == []
