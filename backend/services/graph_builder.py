"""
Graph Builder - Turn paper lists into citation network graphs and filter them
"""

from __future__ import annotations

import time
from collections import deque
from itertools import combinations
from typing import Literal

from models.network import (
    Citation,
    FilterState,
    NetworkBuildOptions,
    NetworkEdge,
    NetworkGraph,
    NetworkNode,
    NetworkStats,
    Paper,
)
from services.logger import get_logger
from services.network_metrics import calculate_network_density, citation_edges
from services.paper_similarity import calculate_batch_similarity, citation_map, jaccard

logger = get_logger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


def _make_edge(source_id: str, target_id: str, edge_type: str = "citation") -> NetworkEdge:
    return NetworkEdge(
        id=f"{source_id}->{target_id}",
        source=source_id,
        target=target_id,
        citation=Citation(source_id=source_id, target_id=target_id, type="cites"),
        weight=1.0,
        edge_type=edge_type,
    )


def _select_papers(papers: list[Paper], origin_paper_id: str, options: NetworkBuildOptions) -> list[Paper]:
    """Drop duplicates and papers under min_citations, then cap at max_nodes.

    The origin is exempt from both limits. Input order is preserved.
    """
    unique: dict[str, Paper] = {}
    for paper in papers:
        if paper.id == origin_paper_id or paper.citation_count >= options.min_citations:
            unique.setdefault(paper.id, paper)
    kept = list(unique.values())

    if options.max_nodes is None or len(kept) <= options.max_nodes:
        return kept

    ranked = sorted(kept, key=lambda p: p.citation_count, reverse=True)
    chosen = {p.id for p in ranked[: options.max_nodes]}
    if origin_paper_id in unique and origin_paper_id not in chosen:
        chosen.discard(ranked[options.max_nodes - 1].id)
        chosen.add(origin_paper_id)

    logger.info("Capped network at %d of %d papers", len(chosen), len(kept))
    return [p for p in kept if p.id in chosen]


def build_network_graph(
    papers: list[Paper],
    origin_paper_id: str,
    options: NetworkBuildOptions | None = None,
) -> NetworkGraph:
    """Build a graph inferring citations from publication years.

    Without real citation data every newer paper is assumed to cite every
    older one.
    """
    options = options or NetworkBuildOptions()
    papers = _select_papers(papers, origin_paper_id, options)

    nodes = [NetworkNode(id=p.id, paper=p, is_origin=p.id == origin_paper_id) for p in papers]
    edges = [
        _make_edge(source.id, target.id)
        for source in papers
        for target in papers
        if source.id != target.id and source.year > target.year
    ]
    edges += generate_relationship_edges(papers, edges, options)
    return _finalize(nodes, edges, origin_paper_id, options)


def build_citation_graph(
    origin: Paper,
    citations: list[Paper],
    references: list[Paper],
    options: NetworkBuildOptions | None = None,
) -> NetworkGraph:
    """Build a graph from real citation data around an origin paper.

    ``citations`` cite the origin (derivative works); ``references`` are cited
    by it (prior works).
    """
    options = options or NetworkBuildOptions()
    kept_ids = {p.id for p in _select_papers([origin, *citations, *references], origin.id, options)}

    nodes: dict[str, NetworkNode] = {origin.id: NetworkNode(id=origin.id, paper=origin, is_origin=True)}
    edges: dict[str, NetworkEdge] = {}

    for papers, edge_type in ((citations, "citation"), (references, "reference")):
        for paper in papers:
            if paper.id not in kept_ids or paper.id == origin.id:
                continue
            nodes.setdefault(paper.id, NetworkNode(id=paper.id, paper=paper))
            if edge_type == "citation":
                edge = _make_edge(paper.id, origin.id, edge_type)
            else:
                edge = _make_edge(origin.id, paper.id, edge_type)
            edges.setdefault(edge.id, edge)

    edge_list = list(edges.values())
    edge_list += generate_relationship_edges([n.paper for n in nodes.values()], edge_list, options)
    return _finalize(list(nodes.values()), edge_list, origin.id, options)


def _finalize(
    nodes: list[NetworkNode],
    edges: list[NetworkEdge],
    origin_paper_id: str,
    options: NetworkBuildOptions | None = None,
) -> NetworkGraph:
    calculate_node_levels(nodes, edges, origin_paper_id)
    calculate_local_citation_counts(nodes, edges)

    origin = next((n.paper for n in nodes if n.id == origin_paper_id), None)
    if origin is not None and (options is None or options.compute_similarity):
        similarities = calculate_batch_similarity([n.paper for n in nodes], origin, cited=citation_map(edges))
        for node in nodes:
            node.similarity = similarities[node.id]

    return NetworkGraph(nodes=nodes, edges=edges, origin_paper_id=origin_paper_id, last_updated=_now_ms())


# ========== Derived Relationship Edges ==========


def generate_relationship_edges(
    papers: list[Paper],
    edges: list[NetworkEdge],
    options: NetworkBuildOptions,
) -> list[NetworkEdge]:
    derived: list[NetworkEdge] = []
    if options.include_semantic_edges:
        derived += generate_semantic_edges(papers, options.min_semantic_similarity)
    if options.include_co_citations:
        derived += generate_co_citation_edges(papers, edges)
    if options.include_bibliographic_coupling:
        derived += generate_bibliographic_coupling_edges(papers, edges)
    return derived


def generate_semantic_edges(papers: list[Paper], min_similarity: float = 0.5) -> list[NetworkEdge]:
    """Link paper pairs whose fields of study overlap by at least ``min_similarity`` (Jaccard)"""
    edges = []
    for first, second in combinations(papers, 2):
        if not first.fields_of_study or not second.fields_of_study:
            continue
        similarity = jaccard(first.fields_of_study, second.fields_of_study)
        if similarity <= 0 or similarity < min_similarity:
            continue

        shared = {f.lower() for f in first.fields_of_study} & {f.lower() for f in second.fields_of_study}
        edges.append(
            NetworkEdge(
                id=f"semantic-{first.id}-{second.id}",
                source=first.id,
                target=second.id,
                citation=Citation(source_id=first.id, target_id=second.id),
                weight=similarity * 2,
                edge_type="semantic",
                similarity=similarity,
                shared_fields_of_study=sorted(shared),
            )
        )

    logger.info("Generated %d semantic edges (min similarity %.2f)", len(edges), min_similarity)
    return edges


def _pair_edges(pair_counts: dict[tuple[str, str], int], edge_type: str, prefix: str) -> list[NetworkEdge]:
    return [
        NetworkEdge(
            id=f"{prefix}-{first}-{second}",
            source=first,
            target=second,
            citation=Citation(source_id=first, target_id=second),
            weight=float(count),
            edge_type=edge_type,
        )
        for (first, second), count in sorted(pair_counts.items())
    ]


def _count_pairs(groups: list[set[str]], paper_ids: set[str]) -> dict[tuple[str, str], int]:
    counts: dict[tuple[str, str], int] = {}
    for group in groups:
        for pair in combinations(sorted(group & paper_ids), 2):
            counts[pair] = counts.get(pair, 0) + 1
    return counts


def generate_co_citation_edges(papers: list[Paper], edges: list[NetworkEdge]) -> list[NetworkEdge]:
    """Link papers cited together by the same paper; weight is the number of shared citers"""
    cited = citation_map(edges)
    counts = _count_pairs(list(cited.values()), {p.id for p in papers})
    return _pair_edges(counts, "co-citation", "co-citation")


def generate_bibliographic_coupling_edges(papers: list[Paper], edges: list[NetworkEdge]) -> list[NetworkEdge]:
    """Link papers that cite the same reference; weight is the number of shared references"""
    citers: dict[str, set[str]] = {}
    for edge in citation_edges(edges):
        citers.setdefault(edge.target, set()).add(edge.source)
    counts = _count_pairs(list(citers.values()), {p.id for p in papers})
    return _pair_edges(counts, "bibliographic-coupling", "coupling")


# ========== Node Annotations ==========


def calculate_node_levels(nodes: list[NetworkNode], edges: list[NetworkEdge], origin_paper_id: str) -> None:
    """Set each node's hop distance from the origin (BFS over citation edges, undirected).

    Nodes not connected to the origin keep ``level=None``.
    """
    neighbours: dict[str, list[str]] = {}
    for edge in citation_edges(edges):
        neighbours.setdefault(edge.source, []).append(edge.target)
        neighbours.setdefault(edge.target, []).append(edge.source)

    levels = {origin_paper_id: 0}
    queue = deque([origin_paper_id])
    while queue:
        current = queue.popleft()
        for nxt in neighbours.get(current, []):
            if nxt not in levels:
                levels[nxt] = levels[current] + 1
                queue.append(nxt)

    for node in nodes:
        node.level = levels.get(node.id)


def calculate_local_citation_counts(nodes: list[NetworkNode], edges: list[NetworkEdge]) -> None:
    """Set how many times each node is cited within the graph"""
    counts: dict[str, int] = {}
    for edge in citation_edges(edges):
        counts[edge.target] = counts.get(edge.target, 0) + 1
    for node in nodes:
        node.local_citation_count = counts.get(node.id, 0)


# ========== Filtering and Growth ==========


def _matches_search(paper: Paper, query: str) -> bool:
    query = query.lower()
    return (
        query in paper.title.lower()
        or any(query in author.lower() for author in paper.authors)
        or query in paper.abstract.lower()
    )


def _subgraph(graph: NetworkGraph, nodes: list[NetworkNode]) -> NetworkGraph:
    kept_ids = {n.id for n in nodes}
    return NetworkGraph(
        nodes=nodes,
        edges=[e for e in graph.edges if e.source in kept_ids and e.target in kept_ids],
        origin_paper_id=graph.origin_paper_id,
        last_updated=_now_ms(),
    )


def filter_graph(graph: NetworkGraph, filters: FilterState) -> NetworkGraph:
    """Return a new graph with only the nodes and edges passing ``filters``"""
    origin = next((n for n in graph.nodes if n.is_origin), None)
    origin_year = origin.paper.year if origin else 0
    year_min, year_max = filters.year_range

    def keep(node: NetworkNode) -> bool:
        paper = node.paper
        if paper.year < year_min or paper.year > year_max:
            return False
        if paper.citation_count < filters.min_citations:
            return False
        if filters.search_query.strip() and not _matches_search(paper, filters.search_query.strip()):
            return False
        if node.level is not None and node.level > filters.max_depth:
            return False
        if node.is_origin:
            return True

        # Direction by year relative to the origin
        is_prior = paper.year < origin_year
        if is_prior and not filters.show_prior_works:
            return False
        if not is_prior and not filters.show_derivative_works:
            return False
        return True

    return _subgraph(graph, [n for n in graph.nodes if keep(n)])


def filter_network_by_year_range(graph: NetworkGraph, year_range: tuple[int, int]) -> NetworkGraph:
    """Year-only filter; unlike filter_graph the origin gets no special treatment"""
    year_min, year_max = year_range
    return _subgraph(graph, [n for n in graph.nodes if year_min <= n.paper.year <= year_max])


def expand_network(graph: NetworkGraph, paper_id: str, references: list[Paper]) -> NetworkGraph:
    """Add ``references`` as papers cited by ``paper_id``. Raises KeyError if the paper is not in the graph."""
    if not any(n.id == paper_id for n in graph.nodes):
        raise KeyError(paper_id)

    nodes = {n.id: n.model_copy() for n in graph.nodes}
    edges = {e.id: e for e in graph.edges}

    for paper in references:
        if paper.id == paper_id:
            continue
        nodes.setdefault(paper.id, NetworkNode(id=paper.id, paper=paper))
        edge = _make_edge(paper_id, paper.id, "reference")
        edges.setdefault(edge.id, edge)

    logger.info("Expanded %s: %d nodes, %d edges", paper_id, len(nodes), len(edges))
    return _finalize(list(nodes.values()), list(edges.values()), graph.origin_paper_id)


def find_connected_papers(paper_id: str, papers: list[Paper]) -> tuple[list[Paper], list[Paper]]:
    """Prior and derivative works of ``paper_id`` by publication year alone.

    Same-year papers are neither. Unknown ids give two empty lists.
    """
    target = next((p for p in papers if p.id == paper_id), None)
    if target is None:
        return [], []

    prior = [p for p in papers if p.id != paper_id and p.year < target.year]
    derivative = [p for p in papers if p.id != paper_id and p.year > target.year]
    return prior, derivative


# ========== Summaries ==========


def calculate_network_stats(graph: NetworkGraph) -> NetworkStats:
    papers = [n.paper for n in graph.nodes]
    if not papers:
        return NetworkStats(
            total_papers=0,
            total_citations=0,
            avg_citations_per_paper=0.0,
            year_range=(0, 0),
            most_cited_paper=None,
            max_depth=0,
            density=0.0,
        )

    years = [p.year for p in papers if p.year > 0]
    return NetworkStats(
        total_papers=len(papers),
        total_citations=len(citation_edges(graph.edges)),
        avg_citations_per_paper=sum(p.citation_count for p in papers) / len(papers),
        year_range=(min(years), max(years)) if years else (0, 0),
        most_cited_paper=max(papers, key=lambda p: p.citation_count),
        max_depth=max((n.level or 0) for n in graph.nodes),
        density=calculate_network_density(graph),
    )


def merge_graphs(first: NetworkGraph, second: NetworkGraph) -> NetworkGraph:
    """Union of two graphs; on id clashes the first graph wins"""
    nodes: dict[str, NetworkNode] = {}
    edges: dict[str, NetworkEdge] = {}

    for node in [*first.nodes, *second.nodes]:
        nodes.setdefault(node.id, node.model_copy())
    for edge in [*first.edges, *second.edges]:
        edges.setdefault(edge.id, edge.model_copy())

    return NetworkGraph(
        nodes=list(nodes.values()),
        edges=list(edges.values()),
        origin_paper_id=first.origin_paper_id,
        last_updated=_now_ms(),
    )


def filter_papers_by_search(papers: list[Paper], query: str) -> list[Paper]:
    if not query.strip():
        return papers
    return [p for p in papers if _matches_search(p, query)]


def sort_papers(papers: list[Paper], sort_by: Literal["relevance", "citations", "year"]) -> list[Paper]:
    if sort_by == "citations":
        return sorted(papers, key=lambda p: p.citation_count, reverse=True)
    if sort_by == "year":
        return sorted(papers, key=lambda p: p.year, reverse=True)
    # relevance: keep the order the search API returned
    return list(papers)
