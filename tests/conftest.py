"""
vibechecc Test Suite — Shared fixtures and configuration.

Run:  pytest tests/ -v
"""

from __future__ import annotations

from typing import Any, Dict, List

import pytest


# ---------------------------------------------------------------------------
# Environment setup — never pick up a vibechecc.yaml from the working tree
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch, tmp_path):
    """Reset global singletons between tests."""
    import vibechecc.engine.config as cfg_mod

    cfg_mod._platform_config = None
    monkeypatch.setattr(cfg_mod, "_find_project_root", lambda: tmp_path)


@pytest.fixture
def tmp_dir(tmp_path):
    """Provide a clean temp directory."""
    return tmp_path


@pytest.fixture
def project_root(tmp_path):
    """
    Create a minimal project tree with vibechecc.yaml.
    Returns the root Path.
    """
    root = tmp_path / "project"
    root.mkdir()
    (root / "vibechecc.yaml").write_text(
        "platform:\n"
        "  name: TestConsole\n"
        "  version: '2.0.0'\n"
        "environment: staging\n"
        "table:\n"
        "  default_page_size: 20\n"
        "  virtualization_threshold: 50\n"
        "  overscan: 5\n"
        "  clear_selection_after_bulk_action: true\n"
        "logging:\n"
        "  level: debug\n"
        "  format: text\n",
        encoding="utf-8",
    )
    return root


# ---------------------------------------------------------------------------
# Row fixtures
# ---------------------------------------------------------------------------

def make_tags(n: int) -> List[Dict[str, Any]]:
    """``n`` tag rows with ids tag-0..tag-{n-1}."""
    statuses = ["active", "hidden", "pending"]
    return [
        {
            "id": f"tag-{i}",
            "name": f"tag {i:03d}",
            "count": (i * 7) % 23,
            "status": statuses[i % 3],
        }
        for i in range(n)
    ]


@pytest.fixture
def tags():
    """Small hand-written tag list."""
    return [
        {"id": "t1", "name": "chill", "count": 12, "status": "active"},
        {"id": "t2", "name": "Cozy", "count": 3, "status": "hidden"},
        {"id": "t3", "name": "chaotic", "count": 40, "status": "active"},
        {"id": "t4", "name": "wholesome", "count": None, "status": "pending"},
        {"id": "t5", "name": "cursed", "count": 7, "status": "active"},
    ]


@pytest.fixture
def tag_columns():
    from vibechecc.table.columns import accessor, selection_column

    return [selection_column(), accessor("name"), accessor("count"), accessor("status")]


@pytest.fixture
def many_tags():
    return make_tags(57)


@pytest.fixture
def row_id():
    return lambda row, index: row["id"]


@pytest.fixture
def tag_rows():
    """Factory: ``tag_rows(n)`` builds n tag rows."""
    return make_tags
