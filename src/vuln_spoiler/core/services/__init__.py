from __future__ import annotations

from .diff_service import DiffService, DiffResult
from .json_extractor import JsonExtractor
from .verdict_parser import VerdictParser
from .issue_renderer import IssueRenderer, RenderedIssue
from .frontier_tracker import FrontierTracker
from .run_orchestrator import RunOrchestrator

__all__ = [
    "DiffService",
    "DiffResult",
    "JsonExtractor",
    "VerdictParser",
    "IssueRenderer",
    "RenderedIssue",
    "FrontierTracker",
    "RunOrchestrator",
]
