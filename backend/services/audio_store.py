"""Blob storage for synthesized audio."""
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from config import AUDIO_BUCKET, AUDIO_PUBLIC_BASE_URL, AWS_REGION
from services.errors import ConfigurationError, PublishError

logger = logging.getLogger(__name__)


class AudioStore(ABC):
    """Durable audio storage with externally resolvable URLs."""

    @abstractmethod
    def url_for(self, key: str) -> str:
        """Derive the public URL of an object without contacting the store."""

    @abstractmethod
    def put(self, key: str, data: bytes, content_type: str = "audio/mpeg") -> str:
        """
        Store audio under key and return its URL.

        Raises:
            PublishError: If the upload fails
        """


class S3AudioStore(AudioStore):
    """Uploads audio objects to an S3 bucket."""

    def __init__(
        self,
        bucket_name: Optional[str] = None,
        public_base_url: Optional[str] = None,
        region_name: Optional[str] = None,
        client: Optional[Any] = None
    ):
        """
        Initialize the store.

        Args:
            bucket_name: Destination bucket (defaults to AUDIO_BUCKET)
            public_base_url: URL root replacing the default bucket host
            region_name: AWS region for the client
            client: Pre-built boto3 S3 client

        Raises:
            ConfigurationError: If no bucket is configured
        """
        self.bucket_name = bucket_name or AUDIO_BUCKET
        if not self.bucket_name:
            raise ConfigurationError("AUDIO_BUCKET must be provided or set in environment")

        base_url = public_base_url or AUDIO_PUBLIC_BASE_URL
        self.public_base_url = (base_url or f"https://{self.bucket_name}.s3.amazonaws.com").rstrip("/")
        self.client = client or boto3.client("s3", region_name=region_name or AWS_REGION)
        logger.info(f"S3AudioStore initialized (bucket={self.bucket_name})")

    def url_for(self, key: str) -> str:
        return f"{self.public_base_url}/{key}"

    def put(self, key: str, data: bytes, content_type: str = "audio/mpeg") -> str:
        try:
            self.client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Error uploading audio to S3 bucket {self.bucket_name}: {e}")
            raise PublishError(
                f"S3 upload failed: {e}",
                cause=e,
                details={"bucket": self.bucket_name, "key": key}
            ) from e

        url = self.url_for(key)
        logger.info(f"Uploaded {len(data)} bytes to S3: {url}")
        return url
