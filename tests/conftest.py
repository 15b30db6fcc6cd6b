"""Shared fixtures for rulepack tests."""

from pathlib import Path

import pytest


def _write(path: Path, text: str) -> Path:
    """Write a document, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(text.encode("utf-8"))
    return path


@pytest.fixture
def rules_tree(tmp_path: Path) -> Path:
    """Root CLAUDE.md including two topic documents, listed out of alphabetical order."""
    root = tmp_path / "CLAUDE.md"
    _write(
        root,
        "# Security Guidelines\n"
        "\n"
        "@rules/sql-injection.md\n"
        "@rules/command-injection.md\n"
        "\n"
        "Always validate input.\n",
    )
    _write(
        tmp_path / "rules" / "sql-injection.md",
        "## SQL Injection\n"
        "\n"
        "```python\n"
        "@app.route('/users')\n"
        "def users():\n"
        "    cursor.execute(\"SELECT * FROM users WHERE id = %s\", (user_id,))\n"
        "```\n",
    )
    _write(
        tmp_path / "rules" / "command-injection.md",
        "## Command Injection\n\nNever pass user input to a shell.\n",
    )
    return root


@pytest.fixture
def cyclic_tree(tmp_path: Path) -> Path:
    """root -> a -> b -> root."""
    root = _write(tmp_path / "CLAUDE.md", "# Root\n@a.md\n")
    _write(tmp_path / "a.md", "# A\n@b.md\n")
    _write(tmp_path / "b.md", "# B\n@CLAUDE.md\n")
    return root


@pytest.fixture
def rules_project(rules_tree: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """rules_tree with the working directory set to its project root."""
    monkeypatch.chdir(rules_tree.parent)
    for var in ("RULEPACK_ROOT", "RULEPACK_BASE_DIR", "RULEPACK_PORT", "RULEPACK_SKIP_CODE_FENCES"):
        monkeypatch.delenv(var, raising=False)
    return rules_tree.parent
