"""Transformation request pipeline.

``ImagePipeline.run`` sequences fetch, parse, transform, size check and the
optional cache write, and always returns exactly one ``PipelineOutcome``.
Caching is best-effort while the output fits the size limit, and mandatory
once it does not: an oversized image is only ever served as a redirect to
its cached copy.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Mapping

from ..config import PipelineConfig
from ..errors import BadRequest, CacheWriteFailure, FetchFailure, ImageOptError, TooLarge, TransformFailure
from ..logs import EventLog
from ..storage.cache import CacheStore, S3CacheStore
from ..storage.source import HttpImageSource, ImageSource, S3ImageSource
from ..transform.directives import parse_directive
from ..transform.executor import TransformExecutor
from .outcome import Failure, Inline, PipelineOutcome, Redirect
from .request import ImageRequest
from .size_guard import is_oversized
from .timing import TimingLog


class ImagePipeline:
    def __init__(
        self,
        config: PipelineConfig,
        source: ImageSource,
        cache: CacheStore | None = None,
        executor: TransformExecutor | None = None,
        events: EventLog | None = None,
    ) -> None:
        self.config = config
        self.source = source
        self.cache = cache
        self.executor = executor or TransformExecutor()
        self.events = events or EventLog()

    @classmethod
    def from_config(
        cls,
        config: PipelineConfig,
        *,
        s3_client: Any | None = None,
        events: EventLog | None = None,
    ) -> "ImagePipeline":
        if s3_client is None and (config.cache_enabled or not config.source_base_url):
            import boto3

            s3_client = boto3.client("s3")
        source: ImageSource
        if config.source_base_url:
            source = HttpImageSource(config.source_base_url, timeout_s=config.fetch_timeout_s)
        else:
            source = S3ImageSource(config.source_bucket or "", client=s3_client)
        cache = S3CacheStore(config.transformed_bucket, client=s3_client) if config.transformed_bucket else None
        return cls(config, source, cache=cache, events=events)

    def run(
        self,
        method: str,
        path: str,
        query: Mapping[str, str] | None = None,
        *,
        events: EventLog | None = None,
    ) -> PipelineOutcome:
        log = events or self.events
        if (method or "").upper() != "GET":
            return _fail(log, BadRequest(f"unsupported method {method!r}"))

        request = ImageRequest.from_path(path)
        log.emit(
            "image_request",
            source=request.source_path,
            directive=request.directive,
            query=dict(query) if query else None,
        )
        timing = TimingLog()

        try:
            with timing.measure("img-download"):
                source = self.source.fetch(request.source_path)
        except FetchFailure as exc:
            return _fail(log, exc, url=self.source.describe(request.source_path))
        log.emit("image_fetched", source=request.source_path, bytes=source.size, content_type=source.content_type)

        try:
            with timing.measure("img-transform"):
                operations = parse_directive(request.directive)
                result = self.executor.execute(source, operations)
        except TransformFailure as exc:
            return _fail(log, exc, source=request.source_path, directive=request.directive)
        result = replace(result, oversized=is_oversized(result.size, self.config.max_image_size))
        log.emit(
            "image_transformed",
            operations=operations.as_dict(),
            bytes=result.size,
            content_type=result.content_type,
            oversized=result.oversized,
        )

        if self.cache is not None:
            try:
                with timing.measure("img-upload"):
                    self.cache.put(request.cache_key, result.body, result.content_type, self.config.cache_control)
            except CacheWriteFailure as exc:
                log.error(exc.public_message, exc, key=request.cache_key)
            else:
                if result.oversized:
                    return Redirect(location=request.redirect_location(), timing=timing.header_value())

        if result.oversized:
            return _fail(log, TooLarge(f"{result.size} bytes exceeds limit of {self.config.max_image_size}"))
        return Inline(
            body=result.body,
            content_type=result.content_type,
            cache_control=self.config.cache_control,
            timing=timing.header_value(),
        )


def _fail(log: EventLog, exc: ImageOptError, **payload: Any) -> Failure:
    log.error(exc.public_message, exc, status_code=exc.status_code, **payload)
    return Failure(status_code=exc.status_code, message=exc.public_message)
