"""Models module - Pydantic data models"""

from .diff import (
    ApplyRequest,
    ApplyResponse,
    DiffHunk,
    DiffRequest,
    DiffResult,
    DiffSummary,
    LineDiff,
    StatusUpdateRequest,
    SummaryRequest,
    UnifiedDiffResponse,
)
from .network import (
    Citation,
    FilterState,
    NetworkBuildOptions,
    NetworkEdge,
    NetworkGraph,
    NetworkNode,
    NetworkStats,
    Paper,
    PaperMetrics,
    SimilarityResult,
    SimilarityWeights,
)

__all__ = [
    # Diff models
    "LineDiff",
    "DiffHunk",
    "DiffSummary",
    "DiffRequest",
    "DiffResult",
    "ApplyRequest",
    "ApplyResponse",
    "SummaryRequest",
    "StatusUpdateRequest",
    "UnifiedDiffResponse",
    # Network models
    "Paper",
    "Citation",
    "NetworkNode",
    "NetworkEdge",
    "NetworkGraph",
    "FilterState",
    "PaperMetrics",
    "NetworkStats",
    "NetworkBuildOptions",
    "SimilarityResult",
    "SimilarityWeights",
]
