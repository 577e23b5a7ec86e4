"""
S3-backed store for voice note artifacts.
"""

import logging
import time
from typing import Optional
from urllib.parse import quote

from botocore.exceptions import BotoCoreError, ClientError

from .aws_clients import get_s3
from .constants import AUDIO_CACHE_CONTROL
from .errors import StorageError
from .logging_utils import log_external_call

logger = logging.getLogger(__name__)


class S3ArtifactStore:
    """Write-once blob store with publicly resolvable URLs."""

    def __init__(self, bucket: str, public_base_url: Optional[str] = None, s3=None):
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None
        self._s3 = s3

    @property
    def s3(self):
        return self._s3 or get_s3()

    def public_url(self, key: str) -> str:
        """Resolve the public URL for a key (CDN base URL if configured)."""
        base = self.public_base_url or f"https://{self.bucket}.s3.amazonaws.com"
        return f"{base}/{quote(key)}"

    def upload(
        self,
        key: str,
        data: bytes,
        content_type: str,
        cache_control: str = AUDIO_CACHE_CONTROL,
    ) -> str:
        """
        Upload bytes under a new key. Existing objects are never overwritten.

        Returns:
            Public URL of the stored object

        Raises:
            StorageError: if the key already exists or the write fails
        """
        start = time.time()
        try:
            self.s3.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                CacheControl=cache_control,
                IfNoneMatch="*",
            )
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            log_external_call(logger, "s3", "put_object", False, (time.time() - start) * 1000, code)
            if code in ("PreconditionFailed", "ConditionalRequestConflict"):
                logger.error(f"Refusing to overwrite existing object {key}")
            else:
                logger.error(f"Error uploading {key} to {self.bucket}: {e}")
            raise StorageError("Failed to upload audio file") from e
        except BotoCoreError as e:
            log_external_call(logger, "s3", "put_object", False, (time.time() - start) * 1000, str(e))
            logger.error(f"Error uploading {key} to {self.bucket}: {e}")
            raise StorageError("Failed to upload audio file") from e

        log_external_call(logger, "s3", "put_object", True, (time.time() - start) * 1000)
        return self.public_url(key)

    def download(self, key: str) -> bytes:
        """
        Read an object's bytes.

        Raises:
            StorageError: if the object is missing or the read fails
        """
        start = time.time()
        try:
            response = self.s3.get_object(Bucket=self.bucket, Key=key)
            data = response["Body"].read()
        except (ClientError, BotoCoreError) as e:
            log_external_call(logger, "s3", "get_object", False, (time.time() - start) * 1000, str(e))
            logger.error(f"Error downloading {key} from {self.bucket}: {e}")
            raise StorageError("Failed to download audio file") from e

        log_external_call(logger, "s3", "get_object", True, (time.time() - start) * 1000)
        return data
