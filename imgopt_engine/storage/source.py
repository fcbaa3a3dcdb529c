"""Source image collaborators.

``HttpImageSource`` fetches from a public base URL; ``S3ImageSource`` reads
the original-image bucket directly. Both raise ``FetchFailure`` on any
network error or non-success response.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from botocore.exceptions import BotoCoreError, ClientError

from ..errors import FetchFailure


@dataclass(frozen=True)
class SourceImage:
    body: bytes
    content_type: str | None = None

    @property
    def size(self) -> int:
        return len(self.body)


class ImageSource(Protocol):
    def fetch(self, key: str) -> SourceImage:
        ...

    def describe(self, key: str) -> str:
        ...


# Existing percent-escapes and "+" (encoded spaces) pass through untouched.
_URL_SAFE = "/+%:@!$&'()*,;=-._~"


class HttpImageSource:
    def __init__(self, base_url: str, timeout_s: float = 10.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s

    def describe(self, key: str) -> str:
        return f"{self.base_url}/{quote(key.replace(' ', '+'), safe=_URL_SAFE)}"

    def fetch(self, key: str) -> SourceImage:
        if not key:
            raise FetchFailure("empty source image key")
        url = self.describe(key)
        req = Request(url, method="GET")
        try:
            with urlopen(req, timeout=self.timeout_s) as response:
                status_code = int(getattr(response, "status", 200))
                body = response.read()
                content_type = response.headers.get("Content-Type")
        except HTTPError as exc:
            raise FetchFailure(f"GET {url} failed ({exc.code})") from exc
        except (URLError, TimeoutError, OSError) as exc:
            raise FetchFailure(f"GET {url} failed: {exc}") from exc
        if not 200 <= status_code < 300:
            raise FetchFailure(f"GET {url} returned status {status_code}")
        return SourceImage(body=body, content_type=content_type)


class S3ImageSource:
    def __init__(self, bucket: str, client: Any | None = None) -> None:
        self.bucket = bucket
        if client is None:
            import boto3

            client = boto3.client("s3")
        self.client = client

    def describe(self, key: str) -> str:
        return f"s3://{self.bucket}/{key}"

    def fetch(self, key: str) -> SourceImage:
        if not key:
            raise FetchFailure("empty source image key")
        try:
            obj = self.client.get_object(Bucket=self.bucket, Key=key)
            body = obj["Body"].read()
        except (ClientError, BotoCoreError) as exc:
            raise FetchFailure(f"get_object {self.describe(key)} failed: {exc}") from exc
        return SourceImage(body=body, content_type=obj.get("ContentType"))
