"""Batch execution: per-file workers, the concurrency driver and the runner."""

from semchange.pipeline.concurrency import TaskResult, run_all
from semchange.pipeline.runner import (
    AnalysisResult,
    ChangeTypeStat,
    FailedFile,
    FileChange,
    build_result,
    run_analysis,
    select_files,
)
from semchange.pipeline.worker import FileTask, analyze_file_pair, analyze_new_file, run_file_task

__all__ = [
    "AnalysisResult",
    "ChangeTypeStat",
    "FailedFile",
    "FileChange",
    "FileTask",
    "TaskResult",
    "analyze_file_pair",
    "analyze_new_file",
    "build_result",
    "run_all",
    "run_analysis",
    "run_file_task",
    "select_files",
]
