"""Chained external-process pipelines."""

from mediathumb.pipeline.runner import PipelineRunner, run_command
from mediathumb.pipeline.stage import Pipeline, PipelineStage

__all__ = [
    "Pipeline",
    "PipelineRunner",
    "PipelineStage",
    "run_command",
]
