"""Directive parsing and image transformation."""

from __future__ import annotations

from .codec import DecodedImage, ImageCodec, ImageMetadata, PillowCodec
from .directives import OperationSet, parse_directive
from .executor import TransformExecutor, TransformResult
