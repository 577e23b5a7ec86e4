"""
Tests for the S3 artifact store.
"""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from conftest import VOICE_NOTES_BUCKET


class TestUpload:
    def test_writes_object_and_returns_public_url(self, voice_notes_bucket):
        from shared.storage import S3ArtifactStore

        store = S3ArtifactStore(VOICE_NOTES_BUCKET)
        url = store.upload("amara_voice_notes/amara_m1_1.mp3", b"audio", "audio/mpeg")

        assert url == f"https://{VOICE_NOTES_BUCKET}.s3.amazonaws.com/amara_voice_notes/amara_m1_1.mp3"
        obj = voice_notes_bucket.get_object(Bucket=VOICE_NOTES_BUCKET, Key="amara_voice_notes/amara_m1_1.mp3")
        assert obj["Body"].read() == b"audio"
        assert obj["ContentType"] == "audio/mpeg"
        assert obj["CacheControl"] == "max-age=3600"

    def test_never_overwrites(self):
        from shared.storage import S3ArtifactStore

        s3 = MagicMock()
        store = S3ArtifactStore(VOICE_NOTES_BUCKET, s3=s3)
        store.upload("k.mp3", b"audio", "audio/mpeg")

        assert s3.put_object.call_args.kwargs["IfNoneMatch"] == "*"

    def test_s3_model_supports_conditional_put(self):
        import boto3

        s3 = boto3.client("s3", region_name="us-east-1")
        members = s3.meta.service_model.operation_model("PutObject").input_shape.members

        assert "IfNoneMatch" in members

    def test_second_upload_to_same_key_fails(self, voice_notes_bucket):
        from shared.errors import StorageError
        from shared.storage import S3ArtifactStore

        store = S3ArtifactStore(VOICE_NOTES_BUCKET)
        store.upload("amara_voice_notes/dup.mp3", b"first", "audio/mpeg")

        with pytest.raises(StorageError):
            store.upload("amara_voice_notes/dup.mp3", b"second", "audio/mpeg")
        obj = voice_notes_bucket.get_object(Bucket=VOICE_NOTES_BUCKET, Key="amara_voice_notes/dup.mp3")
        assert obj["Body"].read() == b"first"

    def test_existing_key_is_a_storage_error(self):
        from shared.errors import StorageError
        from shared.storage import S3ArtifactStore

        s3 = MagicMock()
        s3.put_object.side_effect = ClientError(
            {"Error": {"Code": "PreconditionFailed", "Message": "At least one of the pre-conditions failed"}},
            "PutObject",
        )
        store = S3ArtifactStore(VOICE_NOTES_BUCKET, s3=s3)

        with pytest.raises(StorageError) as exc_info:
            store.upload("k.mp3", b"audio", "audio/mpeg")
        assert exc_info.value.message == "Failed to upload audio file"

    def test_missing_bucket_is_a_storage_error(self, voice_notes_bucket):
        from shared.errors import StorageError
        from shared.storage import S3ArtifactStore

        store = S3ArtifactStore("no-such-bucket")

        with pytest.raises(StorageError):
            store.upload("k.mp3", b"audio", "audio/mpeg")

    def test_public_base_url(self):
        from shared.storage import S3ArtifactStore

        store = S3ArtifactStore(VOICE_NOTES_BUCKET, public_base_url="https://cdn.example.com/")

        assert store.public_url("amara_voice_notes/a b.mp3") == "https://cdn.example.com/amara_voice_notes/a%20b.mp3"


class TestDownload:
    def test_reads_object(self, voice_notes_bucket):
        from shared.storage import S3ArtifactStore

        voice_notes_bucket.put_object(Bucket=VOICE_NOTES_BUCKET, Key="rec.webm", Body=b"webm")

        assert S3ArtifactStore(VOICE_NOTES_BUCKET).download("rec.webm") == b"webm"

    def test_missing_object_is_a_storage_error(self, voice_notes_bucket):
        from shared.errors import StorageError
        from shared.storage import S3ArtifactStore

        with pytest.raises(StorageError) as exc_info:
            S3ArtifactStore(VOICE_NOTES_BUCKET).download("missing.webm")
        assert exc_info.value.message == "Failed to download audio file"
