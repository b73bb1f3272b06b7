"""Diff review API endpoints"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from models.diff import (
    ApplyRequest,
    ApplyResponse,
    DiffRequest,
    DiffResult,
    DiffSummary,
    StatusUpdateRequest,
    SummaryRequest,
    UnifiedDiffResponse,
)
from services.config_manager import ConfigManager
from services.diff_generator import (
    DiffGenerator,
    get_diff_summary,
    set_all_status,
    set_hunk_status,
)
from services.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


def get_diff_generator(lookahead: int | None = None) -> DiffGenerator:
    """Build a generator from the configured diff settings"""
    cfg = ConfigManager.get_instance().get_config().get("diff", {})
    try:
        return DiffGenerator(
            lookahead=lookahead if lookahead is not None else cfg.get("lookahead", 5),
            context_lines=cfg.get("contextLines", 3),
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/calculate", response_model=DiffResult)
async def calculate_diff(request: DiffRequest) -> DiffResult:
    """Detect change hunks between the original and modified content"""
    diff_generator = get_diff_generator(request.lookahead)
    hunks = diff_generator.calculate_line_diff(request.original_content, request.new_content)
    logger.info("Calculated %d hunks for %s", len(hunks), request.file_path)

    return DiffResult(
        file_path=request.file_path,
        hunks=hunks,
        summary=get_diff_summary(hunks),
    )


@router.post("/apply", response_model=ApplyResponse)
async def apply_diff(request: ApplyRequest) -> ApplyResponse:
    """Apply the accepted hunks to the original content"""
    line_count = len(request.original_content.split("\n"))
    for hunk in request.hunks:
        if hunk.status != "accepted":
            continue
        if hunk.old_start < 1 or hunk.old_start - 1 + len(hunk.deleted_lines) > line_count:
            raise HTTPException(
                status_code=400,
                detail=f"Hunk {hunk.id} does not fit the original content ({line_count} lines)",
            )

    content = get_diff_generator().apply_diff_hunks(request.original_content, request.hunks)
    summary = get_diff_summary(request.hunks)

    return ApplyResponse(content=content, applied_hunks=summary.accepted, summary=summary)


@router.post("/summary", response_model=DiffSummary)
async def diff_summary(request: SummaryRequest) -> DiffSummary:
    return get_diff_summary(request.hunks)


@router.post("/status", response_model=DiffResult)
async def update_status(request: StatusUpdateRequest) -> DiffResult:
    """Accept or reject a single hunk, or every hunk when no id is given"""
    if request.hunk_id is None:
        hunks = set_all_status(request.hunks, request.status, only_pending=request.only_pending)
    else:
        try:
            hunks = set_hunk_status(request.hunks, request.hunk_id, request.status)
        except KeyError:
            raise HTTPException(status_code=404, detail=f"Hunk not found: {request.hunk_id}")

    return DiffResult(file_path="", hunks=hunks, summary=get_diff_summary(hunks))


@router.post("/unified", response_model=UnifiedDiffResponse)
async def unified(request: DiffRequest) -> UnifiedDiffResponse:
    """Standard unified diff text for the two snapshots"""
    diff_generator = get_diff_generator(request.lookahead)
    hunks = diff_generator.calculate_line_diff(request.original_content, request.new_content)
    return UnifiedDiffResponse(
        file_path=request.file_path,
        unified_diff=diff_generator.render_unified_diff(
            request.original_content, request.new_content, request.file_path
        ),
        inline_preview=diff_generator.render_inline_preview(hunks),
    )
