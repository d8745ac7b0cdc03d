from __future__ import annotations

import json
from pathlib import Path

import pytest

from routerbench.core.config import Settings, default_targets, load_targets


def test_default_targets(monkeypatch):
    monkeypatch.delenv("REACT_ROUTER_URL", raising=False)
    monkeypatch.setenv("TANSTACK_ROUTER_URL", "http://127.0.0.1:4000/")

    targets = default_targets()

    assert [t.name for t in targets] == ["React Router", "TanStack Router", "Next.js"]
    assert targets[0].page_url == "http://localhost:5173/posts"
    assert targets[1].base_url == "http://127.0.0.1:4000"
    assert targets[1].page_url == "http://127.0.0.1:4000/posts"


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("ROUTERBENCH_ITERATIONS", "7")
    monkeypatch.setenv("ROUTERBENCH_HEADLESS", "false")

    config = Settings()

    assert config.iterations == 7
    assert config.headless is False


@pytest.mark.parametrize("wrap", [False, True])
def test_targets_file(tmp_path: Path, wrap: bool):
    apps = [
        {
            "name": "remix",
            "baseUrl": "http://localhost:8080",
            "pageUrl": "http://localhost:8080/posts",
            "navLinkSelector": "nav a",
            "contentReadySelector": "#posts",
        }
    ]
    path = tmp_path / "targets.json"
    path.write_text(json.dumps({"apps": apps} if wrap else apps), encoding="utf-8")

    targets = load_targets(Settings(targets_file=path))

    assert len(targets) == 1
    assert targets[0].content_ready_selector == "#posts"


def test_empty_targets_file_is_rejected(tmp_path: Path):
    path = tmp_path / "targets.json"
    path.write_text("[]", encoding="utf-8")

    with pytest.raises(ValueError):
        load_targets(Settings(targets_file=path))


def test_default_target_table(monkeypatch):
    for name in ("REACT_ROUTER_URL", "TANSTACK_ROUTER_URL", "NEXT_URL"):
        monkeypatch.delenv(name, raising=False)

    table = [
        (t.name, t.base_url, t.page_url, t.nav_link_selector, t.content_ready_selector)
        for t in default_targets()
    ]

    assert table == [
        ("React Router", "http://localhost:5173", "http://localhost:5173/posts",
         'a[href*="posts"]', 'h1:has-text("Posts")'),
        ("TanStack Router", "http://localhost:3000", "http://localhost:3000/posts",
         'a[href*="posts"]', 'h1:has-text("Posts")'),
        ("Next.js", "http://localhost:3001", "http://localhost:3001/posts",
         'a[href*="posts"]', 'h1:has-text("Posts")'),
    ]
