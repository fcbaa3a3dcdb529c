"""Request path handling.

Paths look like ``/<source image key...>/<directive>``, e.g.
``/images/rio/1.jpeg/format=webp,width=100`` or ``/images/rio/1.jpeg/original``
where ``images/rio/1.jpeg`` is the source key. The path is split on ``/``,
the last segment is the directive and the first (the empty root before the
leading slash) is dropped.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ImageRequest:
    source_path: str
    directive: str

    @classmethod
    def from_path(cls, path: str) -> "ImageRequest":
        segments = path.split("/")
        directive = segments.pop()
        if segments:
            segments.pop(0)
        return cls(source_path="/".join(segments), directive=directive)

    @property
    def cache_key(self) -> str:
        return f"{self.source_path}/{self.directive}"

    def redirect_location(self) -> str:
        return "/" + self.source_path + "?" + self.directive.replace(",", "&")
