"""
Paper Similarity - Score how closely papers relate to an origin paper

Five dimensions, each in 0-1, combined with SimilarityWeights:
    citation  direct citation or shared references
    topic     fields of study overlap (title keywords as fallback)
    temporal  publication year proximity
    author    author surname overlap
    venue     same venue or same publisher family
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable

from models.network import (
    CITATION_EDGE_TYPES,
    NetworkEdge,
    Paper,
    SimilarityBreakdown,
    SimilarityResult,
    SimilarityWeights,
)

CitationMap = dict[str, set[str]]

VENUE_FAMILIES = {
    "nature": ["nature", "nat.", "nature medicine", "nature biotechnology", "nature genetics"],
    "science": ["science", "science advances", "science translational medicine"],
    "cell": ["cell", "cell reports", "molecular cell", "cancer cell", "cell stem cell"],
    "plos": ["plos", "plos one", "plos biology", "plos genetics", "plos computational biology"],
    "bmc": ["bmc", "bmc biology", "bmc genomics", "bmc bioinformatics"],
    "oxford": ["nucleic acids research", "bioinformatics", "human molecular genetics"],
    "springer": ["genome biology", "genome medicine"],
}

STOP_WORDS = {
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "from", "as", "is", "was", "are", "been", "be",
    "have", "has", "had", "do", "does", "did", "will", "would", "should",
    "could", "may", "might", "can", "using", "used", "via", "through",
}


def jaccard(first: Iterable[str], second: Iterable[str]) -> float:
    """Case-insensitive |A & B| / |A | B|; 0 when both are empty"""
    a = {str(item).lower() for item in first}
    b = {str(item).lower() for item in second}
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)


def extract_keywords(text: str, limit: int = 10) -> list[str]:
    words = [w for w in re.split(r"\W+", text.lower()) if len(w) > 3 and w not in STOP_WORDS]
    return words[:limit]


def citation_map(edges: Iterable[NetworkEdge]) -> CitationMap:
    """Paper id -> ids it cites, from citation edges only"""
    cited: CitationMap = {}
    for edge in edges:
        if edge.edge_type in CITATION_EDGE_TYPES:
            cited.setdefault(edge.source, set()).add(edge.target)
    return cited


def _is_unknown_venue(venue: str | None) -> bool:
    return not venue or venue.strip().lower() == "unknown"


def _in_family(venue: str, family: list[str]) -> bool:
    return any(member in venue or venue in member for member in family)


def same_venue_family(first: str, second: str) -> bool:
    a = first.strip().lower()
    b = second.strip().lower()
    return any(_in_family(a, family) and _in_family(b, family) for family in VENUE_FAMILIES.values())


# ========== Dimensions ==========


def calculate_citation_similarity(paper: Paper, origin: Paper, cited: CitationMap | None = None) -> float:
    """1.0 for the origin itself, 0.8 for a direct citation either way,
    up to 0.6 for shared references, else 0."""
    if paper.id == origin.id:
        return 1.0
    if not cited:
        return 0.0

    paper_refs = cited.get(paper.id, set())
    origin_refs = cited.get(origin.id, set())

    if origin.id in paper_refs or paper.id in origin_refs:
        return 0.8

    shared = paper_refs & origin_refs
    if shared:
        return len(shared) / len(paper_refs | origin_refs) * 0.6
    return 0.0


def calculate_topic_similarity(paper: Paper, origin: Paper) -> float:
    if not paper.fields_of_study and not origin.fields_of_study:
        # Title keywords are a weaker signal, so they count half
        return jaccard(extract_keywords(paper.title), extract_keywords(origin.title)) * 0.5
    return jaccard(paper.fields_of_study, origin.fields_of_study)


def calculate_temporal_similarity(paper: Paper, origin: Paper) -> float:
    # Year 0 means the year is unknown
    if not paper.year or not origin.year:
        return 0.0

    diff = abs(paper.year - origin.year)
    if diff == 0:
        return 1.0
    if diff <= 2:
        return 0.8
    if diff <= 5:
        return 0.5
    if diff <= 10:
        return 0.2
    return math.exp(-diff / 10)


def _surname(name: str) -> str:
    parts = name.split()
    return parts[-1].lower() if parts else ""


def calculate_author_similarity(paper: Paper, origin: Paper) -> float:
    return jaccard(
        [_surname(a) for a in paper.authors if a.strip()],
        [_surname(a) for a in origin.authors if a.strip()],
    )


def calculate_venue_similarity(paper: Paper, origin: Paper) -> float:
    if _is_unknown_venue(paper.venue) or _is_unknown_venue(origin.venue):
        return 0.0
    if paper.venue.strip().lower() == origin.venue.strip().lower():
        return 1.0
    if same_venue_family(paper.venue, origin.venue):
        return 0.7
    return 0.0


# ========== Combined ==========


def calculate_paper_similarity(
    paper: Paper,
    origin: Paper,
    weights: SimilarityWeights | None = None,
    cited: CitationMap | None = None,
) -> SimilarityResult:
    """Weighted similarity of ``paper`` to ``origin``, clamped to 0-1"""
    weights = weights or SimilarityWeights()
    breakdown = SimilarityBreakdown(
        citation=calculate_citation_similarity(paper, origin, cited),
        topic=calculate_topic_similarity(paper, origin),
        temporal=calculate_temporal_similarity(paper, origin),
        author=calculate_author_similarity(paper, origin),
        venue=calculate_venue_similarity(paper, origin),
    )
    overall = (
        breakdown.citation * weights.citation
        + breakdown.topic * weights.topic
        + breakdown.temporal * weights.temporal
        + breakdown.author * weights.author
        + breakdown.venue * weights.venue
    )
    return SimilarityResult(overall=max(0.0, min(1.0, overall)), breakdown=breakdown)


def calculate_batch_similarity(
    papers: Iterable[Paper],
    origin: Paper,
    weights: SimilarityWeights | None = None,
    cited: CitationMap | None = None,
) -> dict[str, SimilarityResult]:
    return {paper.id: calculate_paper_similarity(paper, origin, weights, cited) for paper in papers}


def sort_by_similarity(papers: Iterable[Paper], similarities: dict[str, SimilarityResult]) -> list[Paper]:
    """Most similar first; papers without a score sort last"""
    return sorted(
        papers,
        key=lambda p: similarities[p.id].overall if p.id in similarities else 0.0,
        reverse=True,
    )


def similarity_label(score: float) -> str:
    if score >= 0.8:
        return "Highly Similar"
    if score >= 0.6:
        return "Similar"
    if score >= 0.4:
        return "Moderately Similar"
    if score >= 0.2:
        return "Somewhat Related"
    return "Distantly Related"
