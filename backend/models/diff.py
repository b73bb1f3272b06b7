"""Diff-related data models"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict

LineType = Literal["added", "deleted", "unchanged"]
HunkStatus = Literal["pending", "accepted", "rejected"]


class LineDiff(BaseModel):
    """A single line in a diff"""

    model_config = ConfigDict(frozen=True)

    line_number: int  # 1-indexed
    type: LineType
    content: str
    old_line_number: int | None = None
    new_line_number: int | None = None


class DiffHunk(BaseModel):
    """A contiguous change region with surrounding context"""

    id: str
    old_start: int
    old_end: int  # old_start - 1 when nothing is deleted
    new_start: int
    new_end: int  # new_start - 1 when nothing is added
    deleted_lines: list[LineDiff] = []
    added_lines: list[LineDiff] = []
    context_before: list[LineDiff] = []
    context_after: list[LineDiff] = []
    status: HunkStatus = "pending"


class DiffSummary(BaseModel):
    """Aggregate counts over a set of hunks"""

    total_hunks: int
    lines_added: int
    lines_deleted: int
    pending: int
    accepted: int
    rejected: int


class DiffRequest(BaseModel):
    """Request to compare two snapshots of a file"""

    original_content: str
    new_content: str
    file_path: str = "untitled.py"
    lookahead: int | None = None


class DiffResult(BaseModel):
    """Complete diff result for a file"""

    file_path: str
    hunks: list[DiffHunk]
    summary: DiffSummary


class ApplyRequest(BaseModel):
    """Request to apply reviewed hunks"""

    original_content: str
    hunks: list[DiffHunk]


class ApplyResponse(BaseModel):
    """Result of applying accepted hunks"""

    content: str
    applied_hunks: int
    summary: DiffSummary


class SummaryRequest(BaseModel):
    hunks: list[DiffHunk]


class StatusUpdateRequest(BaseModel):
    """Accept or reject one hunk, or all of them when hunk_id is omitted"""

    hunks: list[DiffHunk]
    status: HunkStatus
    hunk_id: str | None = None
    only_pending: bool = True


class UnifiedDiffResponse(BaseModel):
    file_path: str
    unified_diff: str  # Standard unified diff format
    inline_preview: str  # Hunks with +/- markers and context
