"""
Network Metrics - Per-paper and whole-graph measures for citation networks
"""

from __future__ import annotations

import math
from collections import deque
from collections.abc import Iterable
from datetime import date
from typing import Literal

from models.network import CITATION_EDGE_TYPES, NetworkEdge, NetworkGraph, Paper, PaperMetrics, Trend


def citation_edges(edges: Iterable[NetworkEdge]) -> list[NetworkEdge]:
    """Edges that record an actual citation; derived relationship edges are skipped"""
    return [e for e in edges if e.edge_type in CITATION_EDGE_TYPES]


def calculate_paper_metrics(paper_id: str, graph: NetworkGraph) -> PaperMetrics:
    """Calculate citation metrics for one paper in the network"""
    papers_by_id = {node.id: node.paper for node in graph.nodes}
    edges = citation_edges(graph.edges)

    prior_ids = {e.target for e in edges if e.source == paper_id}
    derivative_ids = {e.source for e in edges if e.target == paper_id}
    direct_citations = sum(1 for e in edges if e.source == paper_id)
    cited_by = sum(1 for e in edges if e.target == paper_id)

    # Highest impact first
    prior_works = sorted(
        (p for pid, p in papers_by_id.items() if pid in prior_ids),
        key=lambda p: p.citation_count,
        reverse=True,
    )
    derivative_works = sorted(
        (p for pid, p in papers_by_id.items() if pid in derivative_ids),
        key=lambda p: p.citation_count,
        reverse=True,
    )

    co_citations = calculate_co_citations(paper_id, graph)
    paper = papers_by_id.get(paper_id)

    return PaperMetrics(
        direct_citations=direct_citations,
        cited_by=cited_by,
        co_citations=co_citations,
        influence_score=calculate_influence_score(paper, direct_citations, cited_by, co_citations),
        total_connections=direct_citations + cited_by,
        prior_works=prior_works,
        derivative_works=derivative_works,
        citation_trend=calculate_trend(paper, "citations"),
        cited_by_trend=calculate_trend(paper, "cited_by"),
    )


def _outgoing(graph: NetworkGraph) -> dict[str, set[str]]:
    outgoing: dict[str, set[str]] = {}
    for edge in citation_edges(graph.edges):
        outgoing.setdefault(edge.source, set()).add(edge.target)
    return outgoing


def calculate_co_citations(paper_id: str, graph: NetworkGraph) -> int:
    """Count other papers that cite at least one paper this paper also cites"""
    outgoing = _outgoing(graph)
    my_prior_works = outgoing.get(paper_id, set())
    if not my_prior_works:
        return 0

    return sum(
        1
        for node in graph.nodes
        if node.id != paper_id and my_prior_works & outgoing.get(node.id, set())
    )


def calculate_influence_score(
    paper: Paper | None,
    direct_citations: int,
    cited_by: int,
    co_citations: int,
) -> int:
    """Weighted influence score in the 0-100 range.

    Weights: global citation count 40%, in-network citers 30%,
    direct citations 20%, co-citations 10%.
    """
    if paper is None:
        return 0

    citation_score = min(paper.citation_count / 100, 100) * 0.4
    cited_by_score = min(cited_by * 10, 100) * 0.3
    direct_score = min(direct_citations * 5, 100) * 0.2
    co_score = min(co_citations * 2, 100) * 0.1

    # Half-up rounding; scores are never negative
    return math.floor(citation_score + cited_by_score + direct_score + co_score + 0.5)


def calculate_trend(
    paper: Paper | None,
    metric: Literal["citations", "cited_by"],
    current_year: int | None = None,
) -> Trend:
    """Rough trend from paper age and citation count; no historical data is used"""
    if paper is None:
        return "stable"

    age = (current_year or date.today().year) - paper.year

    if metric == "citations":
        if age < 5 and paper.citation_count > 500:
            return "up"
        if age > 15 and paper.citation_count < 100:
            return "down"

    return "stable"


def find_most_influential(papers: list[Paper], limit: int = 5) -> list[Paper]:
    return sorted(papers, key=lambda p: p.citation_count, reverse=True)[:limit]


def find_influential_papers(graph: NetworkGraph, limit: int = 10) -> list[Paper]:
    """Rank by global citations plus in-network centrality.

    Score: citation_count + 100 per in-network citer + 10 per paper cited.
    """
    in_degree: dict[str, int] = {}
    out_degree: dict[str, int] = {}
    for edge in citation_edges(graph.edges):
        out_degree[edge.source] = out_degree.get(edge.source, 0) + 1
        in_degree[edge.target] = in_degree.get(edge.target, 0) + 1

    def score(paper: Paper) -> int:
        return paper.citation_count + in_degree.get(paper.id, 0) * 100 + out_degree.get(paper.id, 0) * 10

    return sorted((n.paper for n in graph.nodes), key=score, reverse=True)[:limit]


def calculate_network_density(graph: NetworkGraph) -> float:
    """Citation edges over the undirected maximum n(n-1)/2"""
    n = len(graph.nodes)
    if n <= 1:
        return 0.0
    return len(citation_edges(graph.edges)) / (n * (n - 1) / 2)


def find_shortest_path(from_id: str, to_id: str, graph: NetworkGraph) -> list[str] | None:
    """BFS shortest path treating citations as undirected links. None if unreachable."""
    if from_id == to_id:
        return [from_id]

    neighbours: dict[str, list[str]] = {}
    for edge in citation_edges(graph.edges):
        neighbours.setdefault(edge.source, []).append(edge.target)
        neighbours.setdefault(edge.target, []).append(edge.source)

    parents: dict[str, str | None] = {from_id: None}
    queue = deque([from_id])

    while queue:
        current = queue.popleft()
        for nxt in neighbours.get(current, []):
            if nxt in parents:
                continue
            parents[nxt] = current
            if nxt == to_id:
                path = [nxt]
                while parents[path[-1]] is not None:
                    path.append(parents[path[-1]])
                return path[::-1]
            queue.append(nxt)

    return None
