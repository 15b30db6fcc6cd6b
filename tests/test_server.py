"""Tests for HTTP API server routes."""

from pathlib import Path

import pytest
from starlette.testclient import TestClient

from rulepack.server.app import create_app


@pytest.fixture
def client(rules_tree: Path):
    app = create_app(root=rules_tree)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def cyclic_client(cyclic_tree: Path):
    app = create_app(root=cyclic_tree)
    with TestClient(app) as c:
        yield c


class TestSystemRoutes:
    def test_health(self, client: TestClient):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    def test_version(self, client: TestClient):
        resp = client.get("/api/version")
        assert resp.status_code == 200
        assert "version" in resp.json()


class TestRulesRoutes:
    def test_list_rules(self, client: TestClient):
        resp = client.get("/api/rules")
        assert resp.status_code == 200
        data = resp.json()
        assert data["count"] == 3
        names = [Path(r["path"]).name for r in data["rules"]]
        assert names == ["CLAUDE.md", "sql-injection.md", "command-injection.md"]
        assert len(data["snapshot_hash"]) == 64
        assert data["rules"][0]["references"][0]["marker"] == "rules/sql-injection.md"

    def test_expanded(self, client: TestClient):
        resp = client.get("/api/rules/expanded")
        assert resp.status_code == 200
        text = resp.json()["text"]
        assert "## SQL Injection" in text
        assert "## Command Injection" in text
        assert "@rules/" not in text

    def test_get_document_relative_path(self, client: TestClient):
        resp = client.get("/api/rules/document", params={"path": "rules/command-injection.md"})
        assert resp.status_code == 200
        assert resp.json()["content"].startswith("## Command Injection")

    def test_get_document_absolute_path(self, client: TestClient, rules_tree: Path):
        resp = client.get("/api/rules/document", params={"path": str(rules_tree.resolve())})
        assert resp.status_code == 200
        assert resp.json()["path"] == str(rules_tree.resolve())

    def test_get_document_not_in_set(self, client: TestClient):
        resp = client.get("/api/rules/document", params={"path": "rules/unknown.md"})
        assert resp.status_code == 404

    def test_get_document_requires_path(self, client: TestClient):
        resp = client.get("/api/rules/document")
        assert resp.status_code == 400

    def test_check_changes_unchanged(self, client: TestClient):
        snapshot = {
            "rules": [
                {"path": r["path"], "content_hash": r["content_hash"]}
                for r in client.get("/api/rules").json()["rules"]
            ]
        }
        resp = client.post("/api/rules/check-changes", json=snapshot)
        assert resp.status_code == 200
        data = resp.json()
        assert data["unchanged"] is True
        assert data["changes"] == []

    def test_check_changes_detects_edit(self, client: TestClient, rules_tree: Path):
        rules = client.get("/api/rules").json()["rules"]
        snapshot = {"rules": [{"path": r["path"], "content_hash": r["content_hash"]} for r in rules]}
        (rules_tree.parent / "rules" / "sql-injection.md").write_text("edited\n")

        resp = client.post("/api/rules/check-changes", json=snapshot)
        data = resp.json()
        assert data["change_count"] == 1
        assert data["changes"][0]["change_type"] == "modified"
        assert data["changes"][0]["path"].endswith("sql-injection.md")

    def test_check_changes_rejects_bad_body(self, client: TestClient):
        resp = client.post("/api/rules/check-changes", json={"rules": "nope"})
        assert resp.status_code == 422


class TestLoadErrors:
    def test_cycle_returns_422(self, cyclic_client: TestClient):
        resp = cyclic_client.get("/api/rules")
        assert resp.status_code == 422
        data = resp.json()
        assert data["error"] == "cycle"
        assert [Path(p).name for p in data["cycle"]] == ["CLAUDE.md", "a.md", "b.md", "CLAUDE.md"]

    def test_missing_returns_422(self, tmp_path: Path):
        root = tmp_path / "CLAUDE.md"
        root.write_text("@gone.md\n")
        with TestClient(create_app(root=root)) as c:
            resp = c.get("/api/rules/expanded")
        assert resp.status_code == 422
        data = resp.json()
        assert data["error"] == "missing_document"
        assert data["missing"].endswith("gone.md")
        assert data["referrer"] == str(root.resolve())
