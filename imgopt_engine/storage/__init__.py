"""Object-store collaborators: source fetch and transformed-image cache."""

from __future__ import annotations

from .cache import CacheStore, S3CacheStore
from .source import HttpImageSource, ImageSource, S3ImageSource, SourceImage
