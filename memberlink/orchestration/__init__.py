"""Workflow orchestration package for memberlink.

This package contains orchestration components for the linkage workflows:
- MatchLogger: Structured logging of runs to timestamped log files.
- MatchOrchestrator: Central coordinator for scan, match and apply.
"""

from memberlink.orchestration.match_logger import MatchLogger
from memberlink.orchestration.match_orchestrator import MatchOrchestrator

__all__ = ["MatchLogger", "MatchOrchestrator"]
