"""Error taxonomy for the transformation pipeline.

Every error carries the HTTP status the orchestrator answers with and a
generic, client-safe message. The exception text itself holds the detailed
cause and is only ever logged.
"""

from __future__ import annotations


class ImageOptError(Exception):
    status_code = 500
    public_message = "Internal error"


class ConfigError(ImageOptError):
    public_message = "Service is misconfigured"


class BadRequest(ImageOptError):
    status_code = 400
    public_message = "Only GET method is supported"


class FetchFailure(ImageOptError):
    public_message = "Error downloading original image"


class TransformFailure(ImageOptError):
    public_message = "Error transforming image"


class DirectiveParseError(TransformFailure):
    pass


class TransformError(TransformFailure):
    def __init__(self, stage: str, message: str) -> None:
        super().__init__(f"{stage}: {message}")
        self.stage = stage


class TooLarge(ImageOptError):
    status_code = 403
    public_message = "Requested transformed image is too big"


class CacheWriteFailure(ImageOptError):
    public_message = "Could not upload transformed image to cache"
