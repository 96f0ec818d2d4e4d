"""Tests for the dependency graph engine."""

import asyncio
import os
import threading
import time
from pathlib import Path

import pytest

from filedep.engine import DependencyGraphEngine, build_reverse, sort_directories
from filedep.models import GraphConfig

FIXTURES = Path(__file__).parent / "fixtures"
WEBAPP = FIXTURES / "webapp"


def _write(path, text=""):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return str(path)


def _rel(mapping, root):
    """Relative, set-valued view of a mapping for order-free comparison."""
    r = lambda p: os.path.relpath(p, root).replace(os.sep, "/")
    return {r(k): {r(v) for v in vs} for k, vs in mapping.items()}


@pytest.fixture
def example(tmp_path):
    _write(tmp_path / "src" / "a.ts", "import {B} from './b';\nimport './c';\n")
    _write(tmp_path / "src" / "b.ts", "export const B = 1;\n")
    _write(tmp_path / "src" / "c" / "index.ts", "export {};\n")
    return tmp_path


# ── Scanning ──────────────────────────────────────────────────

def test_example_workspace(example):
    engine = DependencyGraphEngine([example])
    engine.build_graph()
    assert _rel(engine.get_dependencies(), example) == {
        "src/a.ts": {"src/b.ts", "src/c/index.ts"},
        "src/b.ts": set(),
        "src/c/index.ts": set(),
    }
    assert engine.get_unique_directories() == ["", "src", "src/c"]


def test_fixture_webapp():
    engine = DependencyGraphEngine([WEBAPP])
    engine.build_graph()
    assert _rel(engine.get_dependencies(), WEBAPP) == {
        "src/main.js": {"src/App.jsx", "src/styles/main.css"},
        "src/App.jsx": {
            "src/components/Button.tsx",
            "src/components/Header/index.tsx",
            "src/pages/Page.vue",
        },
        "src/components/Button.tsx": {"src/utils/cls.ts"},
        "src/components/Header/index.tsx": {"src/components/Header/header.css"},
        "src/components/Header/header.css": {"src/styles/vars.css"},
        "src/pages/Page.vue": {"src/components/Button.tsx", "src/styles/vars.css"},
        "src/utils/cls.ts": set(),
        "src/styles/main.css": {"src/styles/vars.css"},
        "src/styles/vars.css": set(),
    }
    assert engine.get_unique_directories() == [
        "", "src",
        "src/components", "src/pages", "src/styles", "src/utils",
        "src/components/Header",
    ]


def test_markup_files_when_targeted():
    engine = DependencyGraphEngine([WEBAPP])
    engine.set_target_extensions(["js", ".JSX", ".css", ".html"])
    engine.build_graph()
    deps = _rel(engine.get_dependencies(), WEBAPP)
    assert deps["index.html"] == {"src/main.js", "src/styles/main.css"}
    assert "src/components/Button.tsx" not in deps


def test_isolated_files_are_nodes(tmp_path):
    _write(tmp_path / "lonely.js", "console.log('hi');\n")
    _write(tmp_path / "pkg.js", "import React from 'react';\n")
    engine = DependencyGraphEngine([tmp_path])
    engine.build_graph()
    assert _rel(engine.get_dependencies(), tmp_path) == {"lonely.js": set(), "pkg.js": set()}


def test_package_specifier_never_matches_local_file(tmp_path):
    _write(tmp_path / "lodash.js")
    _write(tmp_path / "main.js", "import _ from 'lodash';\n")
    engine = DependencyGraphEngine([tmp_path])
    engine.build_graph()
    assert _rel(engine.get_dependencies(), tmp_path)["main.js"] == set()


def test_edges_point_at_existing_files(example):
    engine = DependencyGraphEngine([example])
    engine.build_graph()
    for targets in engine.get_all_dependencies().values():
        for target in targets:
            assert os.path.isfile(target)


def test_rescan_is_stable(example):
    engine = DependencyGraphEngine([example])
    first = _rel(engine.build_graph().dependencies, example)
    second = _rel(engine.build_graph().dependencies, example)
    assert first == second
    assert engine.snapshot.generation == 2


def test_rescan_replaces_prior_state(example):
    engine = DependencyGraphEngine([example])
    engine.build_graph()
    os.remove(example / "src" / "b.ts")
    engine.build_graph()
    assert _rel(engine.get_dependencies(), example) == {
        "src/a.ts": {"src/c/index.ts"},
        "src/c/index.ts": set(),
    }


def test_unreadable_file_is_still_a_node(example, monkeypatch):
    engine = DependencyGraphEngine([example])
    target = str(example / "src" / "a.ts")
    real_open = open

    def fake_open(path, *args, **kwargs):
        if os.fspath(path) == target:
            raise PermissionError(13, "Permission denied", target)
        return real_open(path, *args, **kwargs)

    monkeypatch.setattr("builtins.open", fake_open)
    engine.build_graph()
    assert _rel(engine.get_dependencies(), example)["src/a.ts"] == set()


def test_file_size_ceiling(example):
    engine = DependencyGraphEngine([example], GraphConfig(max_file_size=10))
    engine.build_graph()
    assert _rel(engine.get_dependencies(), example)["src/a.ts"] == set()


def test_empty_extension_list_gives_empty_mapping(example):
    engine = DependencyGraphEngine([example])
    engine.set_target_extensions([])
    engine.build_graph()
    assert engine.get_dependencies() == {}
    assert engine.get_unique_directories() == []


def test_no_roots():
    engine = DependencyGraphEngine()
    snapshot = engine.build_graph()
    assert snapshot.dependencies == {}


def test_ignored_extensions_from_config(example):
    _write(example / "src" / "style.css", "")
    config = GraphConfig(ignored_extensions=["css"])
    engine = DependencyGraphEngine([example], config)
    engine.build_graph()
    assert "src/style.css" not in _rel(engine.get_dependencies(), example)


def test_explicit_directory_list(example):
    config = GraphConfig(directories=["src/c/", "src", "."])
    engine = DependencyGraphEngine([example], config)
    engine.build_graph()
    assert engine.get_unique_directories() == ["", "src", "src/c"]


def test_auto_detect_orders_known_extensions_first(tmp_path):
    _write(tmp_path / "a.ts", "import './b';\n")
    _write(tmp_path / "b.ts")
    _write(tmp_path / "b.mjs")
    engine = DependencyGraphEngine([tmp_path], GraphConfig(auto_detect=True))
    engine.build_graph()
    assert [e.extension for e in engine.get_target_extensions()] == [".ts", ".mjs"]
    assert _rel(engine.get_dependencies(), tmp_path)["a.ts"] == {"b.ts"}


def test_multiple_roots(tmp_path):
    _write(tmp_path / "web" / "src" / "a.js", "import '../../api/x';\n")
    _write(tmp_path / "api" / "x.js")
    engine = DependencyGraphEngine([tmp_path / "web", tmp_path / "api"])
    engine.build_graph()
    assert _rel(engine.get_dependencies(), tmp_path) == {
        "web/src/a.js": {"api/x.js"},
        "api/x.js": set(),
    }
    assert engine.get_unique_directories() == ["", "api", "web", "web/src"]


# ── Reverse mapping ───────────────────────────────────────────

def test_dependents(example):
    engine = DependencyGraphEngine([example])
    engine.build_graph()
    assert _rel(engine.get_dependents(), example) == {
        "src/a.ts": set(),
        "src/b.ts": {"src/a.ts"},
        "src/c/index.ts": {"src/a.ts"},
    }


def test_build_reverse_covers_every_edge():
    forward = {"a": frozenset({"b", "c"}), "b": frozenset({"c"}), "c": frozenset()}
    reverse = build_reverse(forward)
    assert reverse == {"a": frozenset(), "b": frozenset({"a"}), "c": frozenset({"a", "b"})}


# ── Extension filtering ───────────────────────────────────────

def test_extension_toggle_filters_without_rescan(example):
    _write(example / "src" / "b.ts", "import './theme.css';\n")
    _write(example / "src" / "theme.css")
    engine = DependencyGraphEngine([example])
    engine.build_graph()

    engine.set_extension_enabled("css", False)
    assert not engine.is_extension_enabled(".css")
    deps = _rel(engine.get_dependencies(), example)
    assert "src/theme.css" not in deps
    assert deps["src/b.ts"] == set()

    engine.set_extension_enabled(".css", True)
    assert _rel(engine.get_dependencies(), example)["src/b.ts"] == {"src/theme.css"}


def test_target_extension_state(example):
    engine = DependencyGraphEngine([example])
    engine.set_target_extensions([".TS", "css", ".ts", ""])
    engine.set_extension_enabled(".css", False)
    states = [e.to_dict() for e in engine.get_target_extensions()]
    assert states == [
        {"extension": ".ts", "enabled": True},
        {"extension": ".css", "enabled": False},
    ]


# ── Directory filtering ───────────────────────────────────────

@pytest.fixture
def tree(tmp_path):
    _write(tmp_path / "src" / "components" / "buttons" / "Ok.js")
    _write(tmp_path / "src" / "components" / "Card.js", "import './buttons/Ok';\n")
    _write(tmp_path / "src" / "utils" / "fmt.js")
    _write(tmp_path / "src" / "main.js", "import './components/Card';\nimport './utils/fmt';\n")
    engine = DependencyGraphEngine([tmp_path])
    engine.build_graph()
    return engine, tmp_path


def test_disable_cascades_to_descendants(tree):
    engine, root = tree
    asyncio.run(engine.set_directory_enabled("src/components", False))

    assert not engine.is_directory_enabled("src/components")
    assert not engine.is_directory_enabled("src/components/buttons")
    assert engine.is_directory_enabled("src/utils")
    assert engine.is_directory_enabled("src")

    assert _rel(engine.get_dependencies(), root) == {
        "src/main.js": {"src/utils/fmt.js"},
        "src/utils/fmt.js": set(),
    }


def test_enable_does_not_cascade(tree):
    engine, root = tree
    asyncio.run(engine.set_directory_enabled("src/components", False))
    asyncio.run(engine.set_directory_enabled("src/components", True))

    assert engine.is_directory_enabled("src/components")
    assert not engine.is_directory_enabled("src/components/buttons")
    deps = _rel(engine.get_dependencies(), root)
    assert "src/components/Card.js" in deps
    assert "src/components/buttons/Ok.js" not in deps
    assert deps["src/components/Card.js"] == set()


def test_disabled_ancestor_hides_enabled_child(tree):
    engine, root = tree
    asyncio.run(engine.set_directory_enabled("src/components", False))
    asyncio.run(engine.set_directory_enabled("src/components/buttons", True))
    deps = _rel(engine.get_dependencies(), root)
    assert "src/components/buttons/Ok.js" not in deps


def test_directory_states_survive_rescan(tree):
    engine, root = tree
    asyncio.run(engine.set_directory_enabled("./src/utils/", False))
    engine.build_graph()
    states = {d.path: d.enabled for d in engine.get_directory_states()}
    assert states["src/utils"] is False
    assert states["src/components"] is True


def test_disable_root_hides_everything(tree):
    engine, _ = tree
    asyncio.run(engine.set_directory_enabled("", False))
    assert engine.get_dependencies() == {}


def test_filters_use_roots_of_published_scan(tmp_path):
    ws = tmp_path / "ws"
    _write(ws / "main.js", "import './hidden/x';\n")
    _write(ws / "hidden" / "x.js")
    engine = DependencyGraphEngine([ws])
    engine.build_graph()
    asyncio.run(engine.set_directory_enabled("hidden", False))

    # roots changed, no scan published for them yet
    engine.roots = [str(tmp_path / "elsewhere")]
    assert engine.relative_dir(str(ws / "hidden" / "x.js")) == "hidden"
    assert _rel(engine.get_dependencies(), ws) == {"main.js": set()}
    assert _rel(engine.get_dependents(), ws) == {"main.js": set()}


# ── Concurrency ───────────────────────────────────────────────

def test_stale_scan_does_not_overwrite_newer(example):
    engine = DependencyGraphEngine([example])

    async def run():
        older = asyncio.ensure_future(engine.update_dependencies())
        await asyncio.sleep(0)
        newer = await engine.update_dependencies()
        await older
        return newer

    newer = asyncio.run(run())
    assert engine.snapshot.generation >= newer.generation
    assert engine.snapshot.generation == 2


def test_sort_directories():
    assert sort_directories(["b/a", "a", "", "a/z", "b", "a"]) == ["", "a", "b", "a/z", "b/a"]


def test_analysis_fan_out_is_bounded(tmp_path, monkeypatch):
    for i in range(8):
        _write(tmp_path / f"m{i}.js")
    engine = DependencyGraphEngine([tmp_path], GraphConfig(max_workers=2))

    lock = threading.Lock()
    running = 0
    peak = 0

    def slow_analyze(path, root, resolver):
        nonlocal running, peak
        with lock:
            running += 1
            peak = max(peak, running)
        time.sleep(0.02)
        with lock:
            running -= 1
        return frozenset()

    monkeypatch.setattr(engine, "_analyze_file", slow_analyze)
    snapshot = engine.build_graph()

    assert 1 <= peak <= 2
    assert snapshot.file_count == 8
