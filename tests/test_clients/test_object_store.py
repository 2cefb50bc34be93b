"""Tests for the MinIO uploader."""

from unittest.mock import MagicMock

import pytest

from filerelay.clients.object_store import MinioUploader
from filerelay.contracts import ObjectStoreUploader
from filerelay.errors import UploadError


@pytest.fixture
def minio_client():
    client = MagicMock()
    client.bucket_exists.return_value = True
    client.put_object.return_value = MagicMock(etag='"9b2cf535f27731c974343645a3985328"')
    return client


def make_uploader(client, **kwargs) -> MinioUploader:
    return MinioUploader(
        endpoint="localhost:9000",
        access_key="minioadmin",
        secret_key="minioadmin",
        bucket="my-bucket",
        client=client,
        **kwargs,
    )


class TestMinioUploader:
    """Tests for MinioUploader.upload()."""

    def test_satisfies_contract(self, minio_client):
        assert isinstance(make_uploader(minio_client), ObjectStoreUploader)

    @pytest.mark.asyncio
    async def test_upload_returns_object_id(self, minio_client):
        uploader = make_uploader(minio_client)

        object_id = await uploader.upload("result.zip", b"ZIPPED_CONTENT")

        assert object_id == "my-bucket/result.zip@9b2cf535f27731c974343645a3985328"
        kwargs = minio_client.put_object.call_args.kwargs
        assert kwargs["bucket_name"] == "my-bucket"
        assert kwargs["object_name"] == "result.zip"
        assert kwargs["length"] == len(b"ZIPPED_CONTENT")
        assert kwargs["data"].read() == b"ZIPPED_CONTENT"
        assert kwargs["content_type"] == "application/zip"

    @pytest.mark.asyncio
    async def test_creates_missing_bucket_once(self, minio_client):
        minio_client.bucket_exists.return_value = False
        uploader = make_uploader(minio_client)

        await uploader.upload("a.zip", b"1")
        await uploader.upload("b.zip", b"2")

        minio_client.make_bucket.assert_called_once_with("my-bucket")
        assert minio_client.bucket_exists.call_count == 1

    @pytest.mark.asyncio
    async def test_skips_bucket_check_when_disabled(self, minio_client):
        uploader = make_uploader(minio_client, create_bucket=False)

        await uploader.upload("a.zip", b"1")

        minio_client.bucket_exists.assert_not_called()

    @pytest.mark.asyncio
    async def test_id_without_etag(self, minio_client):
        minio_client.put_object.return_value = MagicMock(etag=None)
        uploader = make_uploader(minio_client)

        assert await uploader.upload("a.zip", b"1") == "my-bucket/a.zip"

    @pytest.mark.asyncio
    async def test_failure_raises_upload_error(self, minio_client):
        minio_client.put_object.side_effect = ConnectionError("refused")
        uploader = make_uploader(minio_client)

        with pytest.raises(UploadError) as exc_info:
            await uploader.upload("result.zip", b"x")

        assert isinstance(exc_info.value.__cause__, ConnectionError)


class TestClientConstruction:
    """The Minio client is built lazily from connection settings."""

    def test_lazy_client(self, mocker):
        minio_cls = mocker.patch("filerelay.clients.object_store.Minio")
        uploader = MinioUploader(
            endpoint="minio:9000",
            access_key="ak",
            secret_key="sk",
            bucket="archives",
            secure=True,
        )
        minio_cls.assert_not_called()

        assert uploader.client is minio_cls.return_value
        assert uploader.client is minio_cls.return_value
        minio_cls.assert_called_once_with(
            endpoint="minio:9000", access_key="ak", secret_key="sk", secure=True
        )

    def test_from_settings(self, mocker):
        mocker.patch("filerelay.clients.object_store.settings.minio_bucket", "from-env")
        uploader = MinioUploader.from_settings()
        assert uploader.bucket == "from-env"
