"""
Shared fixtures for the BioCopilot backend tests.

Provides:
- An isolated config directory per test
- A FastAPI test client
- A small hand-built citation network
"""

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Backend modules are imported from backend/ as top-level packages
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from models.network import Citation, NetworkEdge, NetworkGraph, NetworkNode, Paper  # noqa: E402
from services.config_manager import ConfigManager  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the config manager at a temporary directory"""
    config_dir = tmp_path / "config"
    monkeypatch.setenv("BIOCOPILOT_CONFIG_DIR", str(config_dir))
    monkeypatch.delenv("SEMANTIC_SCHOLAR_API_KEY", raising=False)
    ConfigManager.reset_instance()
    yield config_dir
    ConfigManager.reset_instance()


@pytest.fixture
def client():
    from main import app

    with TestClient(app) as c:
        yield c


def make_paper(paper_id: str, year: int, citation_count: int, **kwargs) -> Paper:
    return Paper(
        id=paper_id,
        title=kwargs.pop("title", f"Paper {paper_id}"),
        authors=kwargs.pop("authors", [f"Author {paper_id}"]),
        year=year,
        citation_count=citation_count,
        **kwargs,
    )


def make_graph(papers: list[Paper], links: list[tuple[str, str]], origin_id: str) -> NetworkGraph:
    """Graph with an edge for each (citing, cited) pair"""
    return NetworkGraph(
        nodes=[NetworkNode(id=p.id, paper=p, is_origin=p.id == origin_id) for p in papers],
        edges=[
            NetworkEdge(
                id=f"{source}->{target}",
                source=source,
                target=target,
                citation=Citation(source_id=source, target_id=target),
            )
            for source, target in links
        ],
        origin_paper_id=origin_id,
    )


@pytest.fixture
def sample_graph() -> NetworkGraph:
    """
    Four papers in a citation chain:

        p4 -> p3 -> p2 -> p1
               \\________/^
    """
    papers = [
        make_paper("p1", 2000, 1000, abstract="Foundational sequencing method"),
        make_paper("p2", 2005, 200, abstract="Alignment of short reads"),
        make_paper("p3", 2010, 50, abstract="Variant calling pipeline"),
        make_paper("p4", 2015, 10, abstract="Single-cell RNA-seq clustering"),
    ]
    links = [("p2", "p1"), ("p3", "p1"), ("p3", "p2"), ("p4", "p3")]
    return make_graph(papers, links, origin_id="p3")
