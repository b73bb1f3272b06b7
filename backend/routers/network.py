"""Citation network API endpoints"""

from __future__ import annotations

from collections.abc import Awaitable
from typing import TypeVar

from fastapi import APIRouter, HTTPException

from models.network import (
    BuildGraphRequest,
    BuildNetworkRequest,
    BuildNetworkResponse,
    ConnectedPapersRequest,
    ConnectedPapersResponse,
    ExpandRequest,
    FilterRequest,
    GraphRequest,
    InfluentialRequest,
    MergeRequest,
    MetricsRequest,
    NetworkGraph,
    NetworkStats,
    Paper,
    PaperMetrics,
    PathRequest,
    PathResponse,
    RankedPaper,
    SimilarityRequest,
)
from services.config_manager import ConfigManager
from services.graph_builder import (
    build_citation_graph,
    build_network_graph,
    calculate_network_stats,
    expand_network,
    filter_graph,
    find_connected_papers,
    merge_graphs,
)
from services.logger import get_logger
from services.network_metrics import calculate_paper_metrics, find_influential_papers, find_shortest_path
from services.paper_similarity import (
    calculate_batch_similarity,
    citation_map,
    similarity_label,
    sort_by_similarity,
)
from services.scholar_client import (
    ScholarAPIError,
    ScholarConfigError,
    ScholarNetworkError,
    ScholarRateLimitError,
    ScholarTimeoutError,
    SemanticScholarClient,
)

router = APIRouter()
logger = get_logger(__name__)

T = TypeVar("T")


def _require_node(graph: NetworkGraph, paper_id: str):
    if not any(node.id == paper_id for node in graph.nodes):
        raise HTTPException(status_code=404, detail=f"Paper not found in graph: {paper_id}")


@router.post("/metrics", response_model=PaperMetrics)
async def paper_metrics(request: MetricsRequest) -> PaperMetrics:
    """Citation metrics for a single paper"""
    _require_node(request.graph, request.paper_id)
    return calculate_paper_metrics(request.paper_id, request.graph)


@router.post("/path", response_model=PathResponse)
async def shortest_path(request: PathRequest) -> PathResponse:
    """Shortest chain of citations connecting two papers"""
    _require_node(request.graph, request.from_id)
    _require_node(request.graph, request.to_id)

    path = find_shortest_path(request.from_id, request.to_id, request.graph)
    if path is None:
        return PathResponse(found=False)
    return PathResponse(found=True, path=path, length=len(path) - 1)


@router.post("/stats", response_model=NetworkStats)
async def network_stats(request: GraphRequest) -> NetworkStats:
    return calculate_network_stats(request.graph)


@router.post("/filter", response_model=NetworkGraph)
async def filter_network(request: FilterRequest) -> NetworkGraph:
    year_min, year_max = request.filters.year_range
    if year_min > year_max:
        raise HTTPException(status_code=400, detail="year_range must be [min, max]")
    return filter_graph(request.graph, request.filters)


@router.post("/merge", response_model=NetworkGraph)
async def merge_networks(request: MergeRequest) -> NetworkGraph:
    return merge_graphs(request.first, request.second)


@router.post("/graph", response_model=NetworkGraph)
async def graph_from_papers(request: BuildGraphRequest) -> NetworkGraph:
    """Build a year-inferred graph from papers the client already has"""
    if not any(p.id == request.origin_paper_id for p in request.papers):
        raise HTTPException(status_code=400, detail="origin_paper_id must be one of the papers")
    return build_network_graph(request.papers, request.origin_paper_id, request.options)


@router.post("/similarity", response_model=list[RankedPaper])
async def rank_by_similarity(request: SimilarityRequest) -> list[RankedPaper]:
    """Papers ranked by similarity to the origin, most similar first"""
    origin = next((p for p in request.papers if p.id == request.origin_paper_id), None)
    if origin is None:
        raise HTTPException(status_code=400, detail="origin_paper_id must be one of the papers")

    cited = citation_map(request.graph.edges) if request.graph else None
    similarities = calculate_batch_similarity(request.papers, origin, request.weights, cited)
    return [
        RankedPaper(paper=p, similarity=similarities[p.id], label=similarity_label(similarities[p.id].overall))
        for p in sort_by_similarity(request.papers, similarities)
    ]


@router.post("/influential", response_model=list[Paper])
async def influential_papers(request: InfluentialRequest) -> list[Paper]:
    return find_influential_papers(request.graph, request.limit)


@router.post("/connected", response_model=ConnectedPapersResponse)
async def connected_papers(request: ConnectedPapersRequest) -> ConnectedPapersResponse:
    """Prior and derivative works by publication year"""
    if not any(p.id == request.paper_id for p in request.papers):
        raise HTTPException(status_code=404, detail=f"Paper not found: {request.paper_id}")
    prior, derivative = find_connected_papers(request.paper_id, request.papers)
    return ConnectedPapersResponse(prior=prior, derivative=derivative)


def _scholar_client() -> SemanticScholarClient:
    return SemanticScholarClient(ConfigManager.get_instance().get_scholar_config())


async def _call_scholar(call: Awaitable[T]) -> T:
    """Await a Semantic Scholar call, translating its errors to HTTP responses"""
    try:
        return await call
    except ScholarConfigError:
        raise HTTPException(
            status_code=500,
            detail="Citation search is not configured. Please set SEMANTIC_SCHOLAR_API_KEY.",
        )
    except ScholarRateLimitError:
        raise HTTPException(
            status_code=429,
            detail="API rate limit exceeded (max 1 req/sec). Please try again in a moment.",
        )
    except ScholarTimeoutError:
        raise HTTPException(
            status_code=408,
            detail="Search request timed out. Please try again with a more specific query.",
        )
    except ScholarNetworkError:
        raise HTTPException(status_code=503, detail="Unable to connect to Semantic Scholar.")
    except ScholarAPIError as e:
        logger.error("Semantic Scholar request failed: %s", e)
        raise HTTPException(status_code=502, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/build", response_model=BuildNetworkResponse)
async def build_network(request: BuildNetworkRequest) -> BuildNetworkResponse:
    """Fetch a paper's citations and references and build its network"""
    query = request.query.strip()
    if not query:
        raise HTTPException(status_code=400, detail="Search query cannot be empty")

    origin, citations, references = await _call_scholar(
        _scholar_client().build_citation_network(query, request.max_citations, request.max_references)
    )
    graph = build_citation_graph(origin, citations, references, request.options)

    return BuildNetworkResponse(
        graph=graph,
        stats=calculate_network_stats(graph),
        origin_paper=origin,
        citation_count=len(citations),
        reference_count=len(references),
    )


@router.post("/expand", response_model=NetworkGraph)
async def expand(request: ExpandRequest) -> NetworkGraph:
    """Fetch one paper's references and add them to the graph"""
    _require_node(request.graph, request.paper_id)
    references = await _call_scholar(
        _scholar_client().get_references(request.paper_id, request.max_references)
    )
    return expand_network(request.graph, request.paper_id, references)
