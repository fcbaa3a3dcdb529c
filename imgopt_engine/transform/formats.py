"""Output format table and content-type resolution."""

from __future__ import annotations

from dataclasses import dataclass


SVG_CONTENT_TYPE = "image/svg+xml"
UNKNOWN_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class OutputFormat:
    name: str
    content_type: str
    lossy: bool
    # Encoder name understood by the codec; None means "keep the decoded format".
    codec_format: str | None
    animated: bool = False
    default_quality: int | None = None
    # Pixel modes the encoder writes as-is; others are converted before saving.
    modes: frozenset[str] = frozenset({"RGB", "RGBA"})


JPEG = OutputFormat(
    "jpeg", "image/jpeg", lossy=True, codec_format="JPEG", default_quality=80,
    modes=frozenset({"L", "RGB", "CMYK"}),
)
GIF = OutputFormat(
    "gif", "image/gif", lossy=False, codec_format="GIF", animated=True,
    modes=frozenset({"1", "L", "P", "RGB", "RGBA"}),
)
WEBP = OutputFormat("webp", "image/webp", lossy=True, codec_format="WEBP", animated=True, default_quality=80)
PNG = OutputFormat(
    "png", "image/png", lossy=False, codec_format="PNG", animated=True,
    modes=frozenset({"1", "L", "LA", "I", "I;16", "P", "RGB", "RGBA"}),
)
AVIF = OutputFormat("avif", "image/avif", lossy=True, codec_format="AVIF", animated=True, default_quality=50)

FORMATS: dict[str, OutputFormat] = {fmt.name: fmt for fmt in (JPEG, GIF, WEBP, PNG, AVIF)}
_BY_CONTENT_TYPE: dict[str, OutputFormat] = {fmt.content_type: fmt for fmt in FORMATS.values()}
_BY_CODEC_FORMAT: dict[str, OutputFormat] = {fmt.codec_format: fmt for fmt in FORMATS.values() if fmt.codec_format}


def format_for_name(name: str) -> OutputFormat:
    """Map a requested ``format=`` value to an output format; unknown names fall back to jpeg."""
    return FORMATS.get(name.strip().lower(), JPEG)


def format_for_codec(codec_format: str) -> OutputFormat | None:
    return _BY_CODEC_FORMAT.get(codec_format.upper())


def normalize_content_type(content_type: str | None) -> str | None:
    if not content_type:
        return None
    base = content_type.split(";", 1)[0].strip().lower()
    if "/" not in base:
        return None
    return base


def inherit_format(content_type: str | None) -> OutputFormat:
    """Output format when no ``format=`` was requested.

    SVG sources are rasterized to PNG. Content types outside the table keep
    the decoded encoding and report the source type unchanged.
    """
    normalized = normalize_content_type(content_type)
    if normalized is None:
        return OutputFormat("source", UNKNOWN_CONTENT_TYPE, lossy=False, codec_format=None)
    if normalized == SVG_CONTENT_TYPE:
        return PNG
    known = _BY_CONTENT_TYPE.get(normalized)
    if known is not None:
        return known
    return OutputFormat("source", normalized, lossy=False, codec_format=None)
