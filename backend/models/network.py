"""Citation network data models"""

from __future__ import annotations

from datetime import date
from typing import Literal

from pydantic import BaseModel, Field

Trend = Literal["up", "down", "stable"]
EdgeType = Literal["citation", "reference", "semantic", "co-citation", "bibliographic-coupling"]

# Edges that record an actual citation, as opposed to derived relationships
CITATION_EDGE_TYPES = ("citation", "reference")


class Paper(BaseModel):
    """A scholarly paper with its metadata"""

    id: str
    title: str
    authors: list[str] = []
    year: int = 0
    citation_count: int = 0
    url: str = ""
    abstract: str = ""
    source: str = ""
    venue: str | None = None
    influential_citation_count: int | None = None
    reference_count: int | None = None
    tldr: str | None = None
    fields_of_study: list[str] = []
    external_ids: dict[str, str] | None = None


class Citation(BaseModel):
    """Citation relationship between two papers"""

    source_id: str  # citing paper
    target_id: str  # cited paper
    type: Literal["cites", "cited-by"] = "cites"


class SimilarityBreakdown(BaseModel):
    """Per-dimension similarity, each in 0-1"""

    citation: float = 0.0
    topic: float = 0.0
    temporal: float = 0.0
    author: float = 0.0
    venue: float = 0.0


class SimilarityWeights(BaseModel):
    citation: float = 0.35
    topic: float = 0.25
    temporal: float = 0.15
    author: float = 0.15
    venue: float = 0.10


class SimilarityResult(BaseModel):
    overall: float
    breakdown: SimilarityBreakdown


class NetworkNode(BaseModel):
    id: str
    paper: Paper
    is_origin: bool = False
    is_selected: bool = False
    level: int | None = None  # hops from the origin paper
    local_citation_count: int = 0
    similarity: SimilarityResult | None = None  # to the origin paper


class NetworkEdge(BaseModel):
    id: str
    source: str
    target: str
    citation: Citation
    weight: float = 1.0
    edge_type: EdgeType = "citation"
    similarity: float | None = None  # semantic edges only
    shared_fields_of_study: list[str] = []


class NetworkGraph(BaseModel):
    nodes: list[NetworkNode] = []
    edges: list[NetworkEdge] = []
    origin_paper_id: str
    last_updated: int | None = None  # epoch milliseconds


def _default_year_range() -> tuple[int, int]:
    return (1900, date.today().year)


class FilterState(BaseModel):
    """Filter settings for displaying the citation network"""

    year_range: tuple[int, int] = Field(default_factory=_default_year_range)
    min_citations: int = 0
    search_query: str = ""
    show_prior_works: bool = True
    show_derivative_works: bool = True
    max_depth: int = 2


class PaperMetrics(BaseModel):
    """Metrics for one paper within a network"""

    direct_citations: int
    cited_by: int
    co_citations: int
    influence_score: int
    total_connections: int
    prior_works: list[Paper] = []
    derivative_works: list[Paper] = []
    citation_trend: Trend = "stable"
    cited_by_trend: Trend = "stable"


class NetworkStats(BaseModel):
    total_papers: int
    total_citations: int
    avg_citations_per_paper: float
    year_range: tuple[int, int]
    most_cited_paper: Paper | None = None
    max_depth: int
    density: float = 0.0


# ========== Request / Response models ==========


class MetricsRequest(BaseModel):
    paper_id: str
    graph: NetworkGraph


class PathRequest(BaseModel):
    from_id: str
    to_id: str
    graph: NetworkGraph


class PathResponse(BaseModel):
    found: bool
    path: list[str] | None = None
    length: int | None = None  # number of hops


class GraphRequest(BaseModel):
    graph: NetworkGraph


class FilterRequest(BaseModel):
    graph: NetworkGraph
    filters: FilterState = Field(default_factory=FilterState)


class MergeRequest(BaseModel):
    first: NetworkGraph
    second: NetworkGraph


class NetworkBuildOptions(BaseModel):
    """Optional graph-building behaviour"""

    min_citations: int = Field(default=0, ge=0)
    max_nodes: int | None = Field(default=None, ge=1)  # most-cited papers kept first
    include_semantic_edges: bool = False
    min_semantic_similarity: float = Field(default=0.5, ge=0, le=1)
    include_co_citations: bool = False
    include_bibliographic_coupling: bool = False
    compute_similarity: bool = True


class BuildGraphRequest(BaseModel):
    """Build a graph from papers already on the client"""

    papers: list[Paper]
    origin_paper_id: str
    options: NetworkBuildOptions = Field(default_factory=NetworkBuildOptions)


class BuildNetworkRequest(BaseModel):
    """Fetch a paper's neighbourhood from Semantic Scholar"""

    query: str = Field(min_length=1, max_length=500)
    max_citations: int = Field(default=30, ge=0, le=1000)
    max_references: int = Field(default=30, ge=0, le=1000)
    options: NetworkBuildOptions = Field(default_factory=NetworkBuildOptions)


class BuildNetworkResponse(BaseModel):
    graph: NetworkGraph
    stats: NetworkStats
    origin_paper: Paper
    citation_count: int
    reference_count: int


class ExpandRequest(BaseModel):
    """Add the references of one paper in the graph"""

    graph: NetworkGraph
    paper_id: str
    max_references: int = Field(default=30, ge=1, le=1000)


class SimilarityRequest(BaseModel):
    papers: list[Paper]
    origin_paper_id: str
    weights: SimilarityWeights = Field(default_factory=SimilarityWeights)
    graph: NetworkGraph | None = None  # citation links, when known


class RankedPaper(BaseModel):
    paper: Paper
    similarity: SimilarityResult
    label: str


class InfluentialRequest(BaseModel):
    graph: NetworkGraph
    limit: int = Field(default=10, ge=1, le=1000)


class ConnectedPapersRequest(BaseModel):
    paper_id: str
    papers: list[Paper]


class ConnectedPapersResponse(BaseModel):
    prior: list[Paper] = []
    derivative: list[Paper] = []
