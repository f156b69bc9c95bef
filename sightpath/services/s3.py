import logging
from typing import Optional
from urllib.parse import quote

import boto3
import httpx
from botocore.exceptions import BotoCoreError, ClientError
from starlette.concurrency import run_in_threadpool

from sightpath.exceptions import StorageError

logger = logging.getLogger(__name__)


class S3Service:
    TIMEOUT: int = 10

    def __init__(
            self,
            bucket_name: str,
            region_name: str,
            aws_access_key_id: Optional[str] = None,
            aws_secret_access_key: Optional[str] = None,
            public_base_url: Optional[str] = None,
            s3_client=None,
            http_client: Optional[httpx.AsyncClient] = None,
    ):
        if s3_client is not None:
            self.s3_client = s3_client
        elif not aws_access_key_id or not aws_secret_access_key:
            self.s3_client = boto3.client(
                "s3",
                region_name=region_name
            )
        else:
            self.s3_client = boto3.client(
                "s3",
                region_name=region_name,
                aws_access_key_id=aws_access_key_id,
                aws_secret_access_key=aws_secret_access_key,
            )

        self.bucket_name = bucket_name
        self.region_name = region_name
        self.public_base_url = (public_base_url or f"https://{bucket_name}.s3.amazonaws.com").rstrip("/")
        self.http_client = http_client

    @classmethod
    def from_settings(cls, settings) -> "S3Service":
        return cls(
            bucket_name=settings.AWS_S3_BUCKET_NAME,
            region_name=settings.AWS_REGION,
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
            public_base_url=settings.s3_base_url,
        )

    def object_url(self, key: str) -> str:
        return f"{self.public_base_url}/{quote(key)}"

    async def put(self, key: str, content: bytes, content_type: Optional[str] = None) -> str:
        """Store content under key as-is (no prefix, no renaming). Returns the key."""
        params = {"Bucket": self.bucket_name, "Key": key, "Body": content}
        if content_type:
            params["ContentType"] = content_type
        try:
            await run_in_threadpool(self.s3_client.put_object, **params)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to upload {key} to S3: {e}") from e

        logger.info(f"Uploaded {key} ({len(content)} bytes) to s3://{self.bucket_name}")
        return key

    async def fetch(self, url: str) -> bytes:
        try:
            if self.http_client is not None:
                resp = await self.http_client.get(url, timeout=self.TIMEOUT)
            else:
                async with httpx.AsyncClient() as client:
                    resp = await client.get(url, timeout=self.TIMEOUT)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise StorageError(f"Failed to fetch {url}: {e}") from e

        logger.info(f"Fetched {url} ({len(resp.content)} bytes)")
        return resp.content


__all__ = ["S3Service"]
