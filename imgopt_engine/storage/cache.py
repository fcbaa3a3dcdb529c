"""Transformed-image cache store backed by S3."""

from __future__ import annotations

from typing import Any, Protocol

from botocore.exceptions import BotoCoreError, ClientError

from ..errors import CacheWriteFailure


class CacheStore(Protocol):
    def put(self, key: str, body: bytes, content_type: str, cache_control: str | None) -> None:
        ...


class S3CacheStore:
    def __init__(self, bucket: str, client: Any | None = None) -> None:
        self.bucket = bucket
        if client is None:
            import boto3

            client = boto3.client("s3")
        self.client = client

    def put(self, key: str, body: bytes, content_type: str, cache_control: str | None) -> None:
        params: dict[str, Any] = {
            "Body": body,
            "Bucket": self.bucket,
            "Key": key,
            "ContentType": content_type,
        }
        if cache_control:
            params["Metadata"] = {"cache-control": cache_control}
        try:
            self.client.put_object(**params)
        except (ClientError, BotoCoreError) as exc:
            raise CacheWriteFailure(f"put_object s3://{self.bucket}/{key} failed: {exc}") from exc
