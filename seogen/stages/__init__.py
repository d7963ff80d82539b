"""Pipeline stages: the AI and scraping calls the pipelines sequence."""

from seogen.stages.base import StageResult, StageTimeoutError, call_stage

__all__ = ["StageResult", "StageTimeoutError", "call_stage"]
