"""
Tests for the /api/network endpoints
"""

from conftest import make_paper
from routers import network as network_router
from services.scholar_client import (
    ScholarAPIError,
    ScholarNetworkError,
    ScholarRateLimitError,
    ScholarTimeoutError,
)


def graph_json(graph):
    return graph.model_dump(mode="json")


class TestMetricsEndpoint:
    def test_metrics(self, client, sample_graph):
        response = client.post(
            "/api/network/metrics",
            json={"paper_id": "p3", "graph": graph_json(sample_graph)},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["direct_citations"] == 2
        assert data["cited_by"] == 1
        assert data["influence_score"] == 5
        assert [p["id"] for p in data["prior_works"]] == ["p1", "p2"]

    def test_unknown_paper(self, client, sample_graph):
        response = client.post(
            "/api/network/metrics",
            json={"paper_id": "nope", "graph": graph_json(sample_graph)},
        )
        assert response.status_code == 404


class TestPathEndpoint:
    def test_path(self, client, sample_graph):
        response = client.post(
            "/api/network/path",
            json={"from_id": "p4", "to_id": "p1", "graph": graph_json(sample_graph)},
        )

        assert response.json() == {"found": True, "path": ["p4", "p3", "p1"], "length": 2}

    def test_disconnected(self, client, sample_graph):
        graph = graph_json(sample_graph)
        graph["nodes"].append({"id": "lonely", "paper": make_paper("lonely", 2001, 0).model_dump()})

        response = client.post(
            "/api/network/path",
            json={"from_id": "p4", "to_id": "lonely", "graph": graph},
        )

        assert response.json() == {"found": False, "path": None, "length": None}


class TestGraphEndpoints:
    def test_stats(self, client, sample_graph):
        response = client.post("/api/network/stats", json={"graph": graph_json(sample_graph)})

        data = response.json()
        assert data["total_papers"] == 4
        assert data["year_range"] == [2000, 2015]
        assert data["most_cited_paper"]["id"] == "p1"

    def test_filter(self, client, sample_graph):
        response = client.post(
            "/api/network/filter",
            json={"graph": graph_json(sample_graph), "filters": {"min_citations": 100}},
        )

        assert [n["id"] for n in response.json()["nodes"]] == ["p1", "p2"]

    def test_filter_inverted_year_range(self, client, sample_graph):
        response = client.post(
            "/api/network/filter",
            json={"graph": graph_json(sample_graph), "filters": {"year_range": [2020, 2000]}},
        )
        assert response.status_code == 400

    def test_merge(self, client, sample_graph):
        other = graph_json(sample_graph)
        other["nodes"].append({"id": "p5", "paper": make_paper("p5", 2020, 1).model_dump()})

        response = client.post(
            "/api/network/merge",
            json={"first": graph_json(sample_graph), "second": other},
        )

        assert len(response.json()["nodes"]) == 5
        assert len(response.json()["edges"]) == 4

    def test_graph_from_papers(self, client):
        papers = [make_paper("a", 2000, 10).model_dump(), make_paper("b", 2010, 5).model_dump()]

        response = client.post("/api/network/graph", json={"papers": papers, "origin_paper_id": "b"})

        data = response.json()
        assert [(e["source"], e["target"]) for e in data["edges"]] == [("b", "a")]

    def test_graph_with_unknown_origin(self, client):
        papers = [make_paper("a", 2000, 10).model_dump()]

        response = client.post("/api/network/graph", json={"papers": papers, "origin_paper_id": "z"})

        assert response.status_code == 400


class TestBuildEndpoint:
    def test_build(self, client, monkeypatch):
        origin = make_paper("origin", 2015, 300)
        citing = [make_paper("c1", 2018, 10)]
        cited = [make_paper("r1", 2001, 900), make_paper("r2", 2005, 50)]

        async def fake_build(self, query, max_citations, max_references):
            assert query == "deep mutational scanning"
            return origin, citing, cited

        monkeypatch.setattr(network_router.SemanticScholarClient, "build_citation_network", fake_build)

        response = client.post("/api/network/build", json={"query": "  deep mutational scanning "})

        assert response.status_code == 200
        data = response.json()
        assert data["origin_paper"]["id"] == "origin"
        assert data["citation_count"] == 1
        assert data["reference_count"] == 2
        assert data["stats"]["total_papers"] == 4
        assert data["graph"]["origin_paper_id"] == "origin"

    def test_missing_api_key(self, client):
        response = client.post("/api/network/build", json={"query": "anything"})

        assert response.status_code == 500
        assert "SEMANTIC_SCHOLAR_API_KEY" in response.json()["detail"]

    def test_blank_query(self, client):
        response = client.post("/api/network/build", json={"query": "   "})
        assert response.status_code == 400

    def test_empty_query(self, client):
        response = client.post("/api/network/build", json={"query": ""})
        assert response.status_code == 422

    def test_upstream_errors_are_mapped(self, client, monkeypatch):
        for error, status in [
            (ScholarRateLimitError("slow down", status=429), 429),
            (ScholarTimeoutError("timeout"), 408),
            (ScholarNetworkError("connection refused"), 503),
            (ScholarAPIError("Bad request", status=400), 502),
            (LookupError("No papers found"), 404),
        ]:

            async def failing_build(self, query, max_citations, max_references, error=error):
                raise error

            monkeypatch.setattr(network_router.SemanticScholarClient, "build_citation_network", failing_build)

            response = client.post("/api/network/build", json={"query": "q"})
            assert response.status_code == status


class TestGraphOptions:
    def test_semantic_edges_on_request(self, client):
        papers = [
            make_paper("a", 2000, 10, fields_of_study=["Biology"]).model_dump(),
            make_paper("b", 2010, 5, fields_of_study=["Biology"]).model_dump(),
        ]

        response = client.post(
            "/api/network/graph",
            json={"papers": papers, "origin_paper_id": "b", "options": {"include_semantic_edges": True}},
        )

        edges = {e["id"]: e for e in response.json()["edges"]}
        assert set(edges) == {"b->a", "semantic-a-b"}
        assert edges["semantic-a-b"]["edge_type"] == "semantic"
        assert edges["semantic-a-b"]["shared_fields_of_study"] == ["biology"]

    def test_rejects_bad_options(self, client):
        papers = [make_paper("a", 2000, 10).model_dump()]

        response = client.post(
            "/api/network/graph",
            json={"papers": papers, "origin_paper_id": "a", "options": {"max_nodes": 0}},
        )

        assert response.status_code == 422


class TestAnalysisEndpoints:
    def test_similarity_ranking(self, client):
        papers = [
            make_paper("far", 1980, 0, fields_of_study=["Physics"]).model_dump(),
            make_paper("near", 2015, 0, fields_of_study=["Biology"]).model_dump(),
            make_paper("o", 2015, 0, fields_of_study=["Biology"]).model_dump(),
        ]

        response = client.post("/api/network/similarity", json={"papers": papers, "origin_paper_id": "o"})

        assert response.status_code == 200
        ranked = response.json()
        assert [r["paper"]["id"] for r in ranked] == ["o", "near", "far"]
        assert ranked[0]["label"] == "Highly Similar"
        assert ranked[0]["similarity"]["breakdown"]["citation"] == 1.0

    def test_similarity_uses_graph_citations(self, client, sample_graph):
        papers = [n.paper.model_dump() for n in sample_graph.nodes]

        response = client.post(
            "/api/network/similarity",
            json={"papers": papers, "origin_paper_id": "p3", "graph": graph_json(sample_graph)},
        )

        breakdowns = {r["paper"]["id"]: r["similarity"]["breakdown"] for r in response.json()}
        assert breakdowns["p4"]["citation"] == 0.8
        assert breakdowns["p1"]["citation"] == 0.8

    def test_similarity_unknown_origin(self, client):
        papers = [make_paper("a", 2000, 0).model_dump()]

        response = client.post("/api/network/similarity", json={"papers": papers, "origin_paper_id": "z"})

        assert response.status_code == 400

    def test_influential(self, client, sample_graph):
        response = client.post("/api/network/influential", json={"graph": graph_json(sample_graph), "limit": 2})

        assert [p["id"] for p in response.json()] == ["p1", "p2"]

    def test_connected(self, client, sample_graph):
        papers = [n.paper.model_dump() for n in sample_graph.nodes]

        response = client.post("/api/network/connected", json={"paper_id": "p2", "papers": papers})

        data = response.json()
        assert [p["id"] for p in data["prior"]] == ["p1"]
        assert [p["id"] for p in data["derivative"]] == ["p3", "p4"]

    def test_connected_unknown_paper(self, client, sample_graph):
        papers = [n.paper.model_dump() for n in sample_graph.nodes]

        response = client.post("/api/network/connected", json={"paper_id": "nope", "papers": papers})

        assert response.status_code == 404


class TestExpandEndpoint:
    def test_expand(self, client, monkeypatch, sample_graph):
        async def fake_references(self, paper_id, limit):
            assert (paper_id, limit) == ("p1", 5)
            return [make_paper("p0", 1990, 3000)]

        monkeypatch.setattr(network_router.SemanticScholarClient, "get_references", fake_references)

        response = client.post(
            "/api/network/expand",
            json={"graph": graph_json(sample_graph), "paper_id": "p1", "max_references": 5},
        )

        assert response.status_code == 200
        data = response.json()
        assert len(data["nodes"]) == 5
        edge = next(e for e in data["edges"] if e["id"] == "p1->p0")
        assert edge["edge_type"] == "reference"
        assert {n["id"]: n["level"] for n in data["nodes"]}["p0"] == 2

    def test_expand_unknown_paper(self, client, sample_graph):
        response = client.post(
            "/api/network/expand",
            json={"graph": graph_json(sample_graph), "paper_id": "nope"},
        )
        assert response.status_code == 404

    def test_expand_rate_limited(self, client, monkeypatch, sample_graph):
        async def limited(self, paper_id, limit):
            raise ScholarRateLimitError("slow down", status=429)

        monkeypatch.setattr(network_router.SemanticScholarClient, "get_references", limited)

        response = client.post(
            "/api/network/expand",
            json={"graph": graph_json(sample_graph), "paper_id": "p1"},
        )
        assert response.status_code == 429
