"""
Remote object store gateway.

The reconciler only needs four capabilities from the bucket: a full
listing, a checksum lookup, upload and delete. RemoteStore defines that
contract; GCSRemoteStore implements it on Google Cloud Storage.
"""

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from google.api_core import exceptions as gcs_exceptions
from google.cloud import storage

from wallsync.fingerprint import decode_checksum, encode_checksum, fingerprint

logger = logging.getLogger(__name__)

DEFAULT_BUCKET = "wallpapers"


class RemoteStoreError(Exception):
    """Exception raised when a remote store call fails."""
    pass


@dataclass
class RemoteObject:
    """A published object, as reported by the bucket listing."""
    key: str
    checksum: int | None
    size: int = 0
    created: datetime | None = None
    updated: datetime | None = None


class RemoteStore(ABC):
    """Capabilities the reconciler uses on the remote bucket."""

    @abstractmethod
    def list_all(self) -> list[RemoteObject]:
        """Return every object in the bucket, in no particular order."""

    @abstractmethod
    def fingerprint_of(self, key: str) -> int | None:
        """Return the stored CRC32C of key, or None if it does not exist."""

    @abstractmethod
    def upload(self, key: str, data: bytes, content_type: str | None = None) -> None:
        """Publish data under key, readable by anyone."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key. Removing a missing key is not an error."""


def get_bucket_name() -> str:
    return os.getenv("WALLPAPER_BUCKET", DEFAULT_BUCKET)


class GCSRemoteStore(RemoteStore):
    """
    RemoteStore backed by a Google Cloud Storage bucket.

    Credentials come from the environment (Application Default Credentials).
    """

    def __init__(
        self,
        bucket_name: str | None = None,
        client: storage.Client | None = None
    ):
        """
        Initialize the store.

        Args:
            bucket_name: Bucket to sync. Defaults to WALLPAPER_BUCKET.
            client: Preconfigured storage client (created lazily if None).
        """
        self.bucket_name = bucket_name or get_bucket_name()
        self._client = client
        self._bucket = None

    @property
    def bucket(self) -> storage.Bucket:
        if self._bucket is None:
            if self._client is None:
                self._client = storage.Client()
            self._bucket = self._client.bucket(self.bucket_name)
        return self._bucket

    def list_all(self) -> list[RemoteObject]:
        try:
            blobs = list(self.bucket.list_blobs(projection="noAcl"))
        except gcs_exceptions.GoogleAPIError as e:
            raise RemoteStoreError(f"Could not list gs://{self.bucket_name}: {e}") from e

        logger.info(f"Listed {len(blobs)} object(s) in gs://{self.bucket_name}")
        return [
            RemoteObject(
                key=blob.name,
                checksum=decode_checksum(blob.crc32c),
                size=blob.size or 0,
                created=blob.time_created,
                updated=blob.updated,
            )
            for blob in blobs
        ]

    def fingerprint_of(self, key: str) -> int | None:
        try:
            blob = self.bucket.get_blob(key)
        except gcs_exceptions.GoogleAPIError as e:
            raise RemoteStoreError(f"Could not get attributes of {key}: {e}") from e

        if blob is None:
            return None
        return decode_checksum(blob.crc32c)

    def upload(self, key: str, data: bytes, content_type: str | None = None) -> None:
        blob = self.bucket.blob(key)
        # Sent with the object metadata; the service rejects mismatching content
        blob.crc32c = encode_checksum(fingerprint(data))

        try:
            blob.upload_from_string(
                data,
                content_type=content_type or "application/octet-stream",
                predefined_acl="publicRead",
                checksum="crc32c",
            )
        except gcs_exceptions.GoogleAPIError as e:
            raise RemoteStoreError(f"Could not upload {key}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            self.bucket.blob(key).delete()
        except gcs_exceptions.NotFound:
            logger.debug(f"{key} already absent from gs://{self.bucket_name}")
        except gcs_exceptions.GoogleAPIError as e:
            raise RemoteStoreError(f"Could not delete {key}: {e}") from e
