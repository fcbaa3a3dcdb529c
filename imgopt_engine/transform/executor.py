"""Fixed-order transform executor.

Stages run strictly in the order of ``STAGES``: decode, resize, orient,
resolve-format, encode. Each stage takes the current ``TransformState`` and
returns a new one; nothing is mutated in place.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable

from ..errors import TransformError, TransformFailure
from ..storage.source import SourceImage
from .codec import TRANSPOSED_ORIENTATIONS, DecodedImage, ImageCodec, PillowCodec
from .directives import OperationSet
from .formats import OutputFormat, format_for_name, inherit_format, normalize_content_type


@dataclass(frozen=True)
class TransformResult:
    body: bytes
    content_type: str
    oversized: bool = False

    @property
    def size(self) -> int:
        return len(self.body)


@dataclass(frozen=True)
class TransformState:
    source: SourceImage
    operations: OperationSet
    image: DecodedImage | None = None
    # True once a stage has changed pixels, forcing a re-encode.
    modified: bool = False
    output: OutputFormat | None = None
    quality: int | None = None
    body: bytes | None = None

    @property
    def decoded(self) -> DecodedImage:
        if self.image is None:
            raise TransformError("state", "image has not been decoded")
        return self.image


Stage = Callable[[ImageCodec, TransformState], TransformState]


def decode_stage(codec: ImageCodec, state: TransformState) -> TransformState:
    return replace(state, image=codec.decode(state.source.body))


def resize_stage(codec: ImageCodec, state: TransformState) -> TransformState:
    ops = state.operations
    if not ops.wants_resize:
        return state
    image = state.decoded
    width, height = ops.width, ops.height
    # Dimensions refer to the upright image; orientation is fixed afterwards.
    if image.metadata.orientation in TRANSPOSED_ORIENTATIONS:
        width, height = height, width
    return replace(state, image=codec.resize(image, width, height), modified=True)


def orient_stage(codec: ImageCodec, state: TransformState) -> TransformState:
    image = state.decoded
    if image.metadata.orientation is None:
        return state
    needs_rotation = image.metadata.needs_rotation
    return replace(state, image=codec.orient(image), modified=state.modified or needs_rotation)


def resolve_format_stage(codec: ImageCodec, state: TransformState) -> TransformState:
    ops = state.operations
    if ops.format is not None:
        output = format_for_name(ops.format)
        quality = ops.quality if output.lossy else None
        return replace(state, output=output, quality=quality)
    return replace(state, output=inherit_format(state.source.content_type), quality=None)


def encode_stage(codec: ImageCodec, state: TransformState) -> TransformState:
    output = state.output
    if output is None:
        raise TransformError("encode", "output format was not resolved")
    explicit = state.operations.format is not None
    source_type = normalize_content_type(state.source.content_type)
    if not state.modified and not explicit and output.content_type == (source_type or output.content_type):
        return replace(state, body=state.source.body)
    image = state.decoded
    codec_format = output.codec_format or image.metadata.format
    if not codec_format:
        raise TransformError("encode", "cannot determine an encoder for the source image")
    quality = state.quality if state.quality is not None else output.default_quality
    return replace(state, body=codec.encode(image, codec_format, quality))


STAGES: tuple[tuple[str, Stage], ...] = (
    ("decode", decode_stage),
    ("resize", resize_stage),
    ("orient", orient_stage),
    ("resolve-format", resolve_format_stage),
    ("encode", encode_stage),
)


class TransformExecutor:
    def __init__(self, codec: ImageCodec | None = None) -> None:
        self.codec = codec or PillowCodec()

    def execute(self, source: SourceImage, operations: OperationSet) -> TransformResult:
        state = TransformState(source=source, operations=operations)
        for name, stage in STAGES:
            try:
                state = stage(self.codec, state)
            except TransformFailure:
                raise
            except Exception as exc:
                raise TransformError(name, f"{type(exc).__name__}: {exc}") from exc
        if state.body is None or state.output is None:
            raise TransformError("encode", "no output was produced")
        return TransformResult(body=state.body, content_type=state.output.content_type)
