"""Request pipeline: orchestration, size policy, timing and outcomes."""

from __future__ import annotations

from .orchestrator import ImagePipeline
from .outcome import Failure, Inline, PipelineOutcome, Redirect
from .request import ImageRequest
from .size_guard import is_oversized
from .timing import TimingLog
