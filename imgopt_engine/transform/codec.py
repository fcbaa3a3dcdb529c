"""Image codec capability and its Pillow implementation.

The executor only talks to the ``ImageCodec`` protocol: decode, resize,
orient and encode. ``PillowCodec`` is the production implementation; tests
substitute recording fakes.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from io import BytesIO
from typing import Any, Protocol

from PIL import Image, ImageOps, ImageSequence

from .formats import OutputFormat, format_for_codec


ORIENTATION_TAG = 0x0112
# EXIF orientations 5..8 store the image with width and height swapped.
TRANSPOSED_ORIENTATIONS = frozenset({5, 6, 7, 8})

_ORIENTATION_FIXES = {
    2: Image.Transpose.FLIP_LEFT_RIGHT,
    3: Image.Transpose.ROTATE_180,
    4: Image.Transpose.FLIP_TOP_BOTTOM,
    5: Image.Transpose.TRANSPOSE,
    6: Image.Transpose.ROTATE_270,
    7: Image.Transpose.TRANSVERSE,
    8: Image.Transpose.ROTATE_90,
}

_WHITE = (255, 255, 255)


@dataclass(frozen=True)
class ImageMetadata:
    width: int
    height: int
    format: str | None = None
    orientation: int | None = None
    frame_count: int = 1

    @property
    def needs_rotation(self) -> bool:
        return self.orientation is not None and self.orientation != 1


@dataclass(frozen=True)
class DecodedImage:
    frames: tuple[Any, ...]
    metadata: ImageMetadata
    durations: tuple[int, ...] = ()
    loop: int | None = None


class ImageCodec(Protocol):
    def decode(self, data: bytes) -> DecodedImage:
        ...

    def resize(self, image: DecodedImage, width: int | None, height: int | None) -> DecodedImage:
        ...

    def orient(self, image: DecodedImage) -> DecodedImage:
        ...

    def encode(self, image: DecodedImage, codec_format: str, quality: int | None) -> bytes:
        ...


class PillowCodec:
    name = "pillow"

    def decode(self, data: bytes) -> DecodedImage:
        if is_svg(data):
            data = _rasterize_svg(data)
        with Image.open(BytesIO(data)) as img:
            orientation = img.getexif().get(ORIENTATION_TAG)
            decoded_format = img.format
            loop = img.info.get("loop")
            frames: list[Image.Image] = []
            durations: list[int] = []
            for frame in ImageSequence.Iterator(img):
                frames.append(frame.copy())
                durations.append(int(frame.info.get("duration") or 0))
        first = frames[0]
        metadata = ImageMetadata(
            width=first.width,
            height=first.height,
            format=decoded_format,
            orientation=int(orientation) if orientation is not None else None,
            frame_count=len(frames),
        )
        return DecodedImage(
            frames=tuple(frames),
            metadata=metadata,
            durations=tuple(durations) if any(durations) else (),
            loop=loop if isinstance(loop, int) else None,
        )

    def resize(self, image: DecodedImage, width: int | None, height: int | None) -> DecodedImage:
        meta = image.metadata
        size = target_size(meta.width, meta.height, width, height)
        if width is not None and height is not None:
            frames = tuple(
                ImageOps.fit(frame, size, method=Image.Resampling.LANCZOS) for frame in image.frames
            )
        else:
            frames = tuple(frame.resize(size, Image.Resampling.LANCZOS) for frame in image.frames)
        return replace(image, frames=frames, metadata=replace(meta, width=size[0], height=size[1]))

    def orient(self, image: DecodedImage) -> DecodedImage:
        meta = image.metadata
        method = _ORIENTATION_FIXES.get(meta.orientation or 1)
        if method is None:
            return replace(image, metadata=replace(meta, orientation=None))
        frames = tuple(frame.transpose(method) for frame in image.frames)
        width, height = meta.width, meta.height
        if meta.orientation in TRANSPOSED_ORIENTATIONS:
            width, height = height, width
        return replace(
            image,
            frames=frames,
            metadata=replace(meta, width=width, height=height, orientation=None),
        )

    def encode(self, image: DecodedImage, codec_format: str, quality: int | None) -> bytes:
        codec_format = codec_format.upper()
        target = format_for_codec(codec_format)
        frames = [_prepare_frame(frame, target) for frame in image.frames]
        params: dict[str, Any] = {}
        if quality is not None:
            params["quality"] = quality
        if len(frames) > 1 and target is not None and target.animated:
            params["save_all"] = True
            params["append_images"] = frames[1:]
            if image.durations:
                params["duration"] = list(image.durations)
            if image.loop is not None:
                params["loop"] = image.loop
        buffer = BytesIO()
        frames[0].save(buffer, format=codec_format, **params)
        return buffer.getvalue()


def target_size(src_width: int, src_height: int, width: int | None, height: int | None) -> tuple[int, int]:
    """Resolve the output size, deriving a missing dimension from the aspect ratio."""
    if width is not None and height is not None:
        return width, height
    if width is not None:
        return width, max(1, round(src_height * width / src_width))
    if height is not None:
        return max(1, round(src_width * height / src_height)), height
    return src_width, src_height


def _has_alpha(frame: Image.Image) -> bool:
    return frame.mode in ("RGBA", "LA", "PA") or (frame.mode == "P" and "transparency" in frame.info)


def is_svg(data: bytes) -> bool:
    head = data[:1024].lstrip(b"\xef\xbb\xbf \t\r\n").lower()
    return head.startswith(b"<") and b"<svg" in head


def _rasterize_svg(data: bytes) -> bytes:
    import cairosvg

    return cairosvg.svg2png(bytestring=data)


def _prepare_frame(frame: Image.Image, target: OutputFormat | None) -> Image.Image:
    # Encoders outside the format table keep the frame their own decoder produced.
    if target is None:
        return frame
    if target.codec_format == "JPEG" and _has_alpha(frame):
        rgba = frame.convert("RGBA")
        background = Image.new("RGB", rgba.size, _WHITE)
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    if frame.mode not in target.modes:
        return frame.convert("RGBA" if _has_alpha(frame) else "RGB")
    return frame
