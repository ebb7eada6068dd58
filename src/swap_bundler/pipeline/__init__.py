from __future__ import annotations

from .context import PipelineContext
from .run import run_bundle

__all__ = ["PipelineContext", "run_bundle"]
