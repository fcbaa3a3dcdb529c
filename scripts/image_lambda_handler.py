"""
AWS Lambda entry point for the image transformation endpoint.

Set the function handler to ``image_lambda_handler.lambda_handler``.

Environment:
  MAX_IMAGE_SIZE               required, bytes
  SOURCE_BASE_URL              HTTP base URL of original images
  ORIGINAL_IMAGE_BUCKET        S3 bucket of original images (when no base URL)
  TRANSFORMED_IMAGE_BUCKET     optional S3 cache bucket
  TRANSFORMED_IMAGE_CACHE_TTL  Cache-Control value for transformed images
"""

from __future__ import annotations

from imgopt_engine.handler import create_handler


lambda_handler = create_handler()
