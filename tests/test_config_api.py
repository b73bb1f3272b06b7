"""
Tests for configuration persistence and the /api/config endpoints
"""

import json
import logging

import pytest

from conftest import make_paper
from routers import network as network_router
from routers.config import mask_key
from services.config_manager import ConfigManager


class TestConfigManager:
    def test_defaults(self, isolated_config):
        config = ConfigManager.get_instance().get_config()

        assert config["diff"] == {"lookahead": 5, "contextLines": 3}
        assert config["semanticScholar"]["maxRetries"] == 3
        assert config["logLevel"] == "INFO"

    def test_save_and_reload(self, isolated_config):
        manager = ConfigManager.get_instance()
        manager.set("logLevel", "DEBUG")

        stored = json.loads((isolated_config / "config.json").read_text())
        assert stored["logLevel"] == "DEBUG"

        ConfigManager.reset_instance()
        assert ConfigManager.get_instance().get("logLevel") == "DEBUG"

    def test_partial_file_is_merged_with_defaults(self, isolated_config):
        isolated_config.mkdir(parents=True, exist_ok=True)
        (isolated_config / "config.json").write_text(json.dumps({"diff": {"lookahead": 8}}))

        config = ConfigManager.get_instance().get_config()

        assert config["diff"] == {"lookahead": 8, "contextLines": 3}
        assert "semanticScholar" in config

    def test_corrupt_file_falls_back_to_defaults(self, isolated_config):
        isolated_config.mkdir(parents=True, exist_ok=True)
        (isolated_config / "config.json").write_text("{not json")

        assert ConfigManager.get_instance().get("diff") == {"lookahead": 5, "contextLines": 3}

    def test_env_key_overrides_stored_key(self, monkeypatch):
        manager = ConfigManager.get_instance()
        manager.set("semanticScholar", {**manager.get("semanticScholar"), "apiKey": "stored"})
        monkeypatch.setenv("SEMANTIC_SCHOLAR_API_KEY", "from-env")

        assert manager.get_scholar_config()["apiKey"] == "from-env"


class TestMaskKey:
    def test_masking(self):
        assert mask_key("") == ""
        assert mask_key("short") == "*****"
        assert mask_key("abcd1234efgh") == "abcd****efgh"


@pytest.fixture(autouse=True)
def restore_log_level():
    root = logging.getLogger()
    level = root.level
    yield
    root.setLevel(level)


class TestConfigEndpoints:
    def test_get_masks_key(self, client):
        ConfigManager.get_instance().set(
            "semanticScholar",
            {**ConfigManager.get_instance().get("semanticScholar"), "apiKey": "abcd1234efgh"},
        )

        response = client.get("/api/config")

        assert response.status_code == 200
        data = response.json()
        assert data["semanticScholar"]["apiKey"] == "abcd****efgh"
        assert data["diff"]["lookahead"] == 5

    def test_update_diff_settings(self, client):
        response = client.put("/api/config", json={"diff": {"lookahead": 2}, "logLevel": "debug"})

        assert response.json() == {"status": "success", "message": "Configuration updated"}
        config = client.get("/api/config").json()
        assert config["diff"] == {"lookahead": 2, "contextLines": 3}
        assert config["logLevel"] == "DEBUG"

    def test_updated_lookahead_drives_diff(self, client):
        client.put("/api/config", json={"diff": {"lookahead": 0}})

        response = client.post(
            "/api/diff/calculate",
            json={"original_content": "a\nb\nc", "new_content": "x\na\nb\nc"},
        )

        assert len(response.json()["hunks"][0]["deleted_lines"]) == 3

    def test_invalid_diff_settings(self, client):
        response = client.put("/api/config", json={"diff": {"contextLines": -1}})
        assert response.status_code == 400

        response = client.put("/api/config", json={"diff": {"lookahead": "five"}})
        assert response.status_code == 400


class TestScholarSettings:
    def test_valid_settings_are_saved(self, client):
        response = client.put("/api/config", json={"semanticScholar": {"rateLimitDelay": 0.5, "maxRetries": 1}})

        assert response.status_code == 200
        scholar = ConfigManager.get_instance().get_scholar_config()
        assert scholar["rateLimitDelay"] == 0.5
        assert scholar["maxRetries"] == 1
        assert scholar["timeout"] == 30

    @pytest.mark.parametrize(
        "settings",
        [
            {"rateLimitDelay": "fast"},
            {"maxRetries": -1},
            {"timeout": 0},
            {"apiKey": 1234},
            {"rateLimitDelay": 0.5, "retries": 3},
        ],
    )
    def test_invalid_settings_rejected(self, client, settings):
        response = client.put("/api/config", json={"semanticScholar": settings})

        assert response.status_code == 400
        assert response.json()["detail"].startswith("Invalid settings")
        assert client.get("/api/config").json()["semanticScholar"]["rateLimitDelay"] == 1.1

    def test_rejected_update_saves_nothing(self, client):
        response = client.put(
            "/api/config",
            json={"diff": {"lookahead": 2}, "semanticScholar": {"rateLimitDelay": "fast"}},
        )

        assert response.status_code == 400
        assert client.get("/api/config").json()["diff"]["lookahead"] == 5

    def test_null_values_are_not_stored(self, client):
        client.put("/api/config", json={"semanticScholar": {"timeout": None, "maxRetries": 5}})

        scholar = ConfigManager.get_instance().get_scholar_config()
        assert scholar["timeout"] == 30
        assert scholar["maxRetries"] == 5

    def test_build_still_works_after_rejected_update(self, client, monkeypatch):
        monkeypatch.setenv("SEMANTIC_SCHOLAR_API_KEY", "test-key")

        async def fake_build(self, query, max_citations, max_references):
            assert self.rate_limit_delay == 1.1
            return make_paper("origin", 2015, 1), [], []

        monkeypatch.setattr(network_router.SemanticScholarClient, "build_citation_network", fake_build)

        client.put("/api/config", json={"semanticScholar": {"rateLimitDelay": "fast"}})
        response = client.post("/api/network/build", json={"query": "q"})

        assert response.status_code == 200


class TestLogLevel:
    def test_applied_without_restart(self, client):
        logging.getLogger().setLevel(logging.WARNING)

        response = client.put("/api/config", json={"logLevel": "debug"})

        assert response.status_code == 200
        assert logging.getLogger().level == logging.DEBUG
        assert ConfigManager.get_instance().get("logLevel") == "DEBUG"

    def test_unknown_level(self, client):
        response = client.put("/api/config", json={"logLevel": "LOUD"})

        assert response.status_code == 400
        assert client.get("/api/config").json()["logLevel"] == "INFO"
