"""Tests for the project map build driver."""

import asyncio
from pathlib import Path

import pytest

from projectmap.analyzers.indexer import FileInfo
from projectmap.analyzers.project_map import ProjectMapBuilder, build_project_map
from projectmap.config import ScanConfig
from projectmap.models.graph import export_graph


class StubIndexer:
    """Indexer returning a fixed file list, whatever the extension."""

    def __init__(self, files: list[FileInfo]):
        self.files = files

    def list_files(self, extension: str) -> list[FileInfo]:
        return list(self.files)


class TestBuildScenario:
    """End-to-end builds over a real directory."""

    def test_sample_site(self, sample_site: Path, root_key: str) -> None:
        """index.html -> style.css -> base.css and index.html -> app.js -> util.js."""
        graph = build_project_map(sample_site, config=ScanConfig())

        assert graph.complete
        assert graph.root == root_key
        assert graph.paths("markup") == {root_key + "index.html"}
        assert graph.paths("style") == {root_key + "style.css", root_key + "base.css"}
        assert graph.paths("script") == {root_key + "app.js", root_key + "util.js"}

        index = graph.get("markup", root_key + "index.html")
        assert index.child_paths("style") == [root_key + "style.css"]
        assert index.child_paths("script") == [root_key + "app.js"]
        assert graph.get("style", root_key + "style.css").child_paths() == [root_key + "base.css"]
        assert graph.get("script", root_key + "app.js").child_paths() == [root_key + "util.js"]
        assert graph.edge_count == 4
        assert graph.failures == {}

    def test_nested_pages_and_root_relative_require(self, make_site, root_key: str) -> None:
        make_site({
            "pages/about.html": '<script src="../js/app.js"></script>',
            "js/app.js": "require('js/util.js');",
            "js/util.js": "",
        })

        graph = build_project_map(root_key, config=ScanConfig())

        # '..' is not folded away; the reference still reads fine from disk
        app = root_key + "pages/../js/app.js"
        assert graph.paths("script") == {app, root_key + "js/util.js"}
        assert graph.get("script", app).error is None
        assert graph.get("script", root_key + "js/util.js").error is None

    def test_missing_targets_become_failed_nodes(self, make_site, root_key: str) -> None:
        make_site({"index.html": '<link rel="stylesheet" href="gone.css">'})

        graph = build_project_map(root_key, config=ScanConfig())

        gone = graph.get("style", root_key + "gone.css")
        assert gone.processed
        assert gone.error == "file not found"
        assert graph.failures == {root_key + "gone.css": "file not found"}

    def test_ignored_directories_are_not_seeded(self, make_site, root_key: str) -> None:
        make_site({
            "index.html": "",
            "node_modules/pkg/demo.html": "",
            "drafts/old.html": "",
            ".projectmapignore": "drafts/\n",
        })

        graph = build_project_map(root_key, config=ScanConfig())

        assert graph.paths("markup") == {root_key + "index.html"}

    def test_custom_markup_extension(self, make_site, root_key: str) -> None:
        make_site({"a.htm": '<script src="a.js"></script>', "a.js": "", "b.html": ""})

        graph = build_project_map(root_key, config=ScanConfig(markup_extension=".htm"))

        assert graph.paths("markup") == {root_key + "a.htm"}
        assert graph.paths("script") == {root_key + "a.js"}

    def test_options_without_config(self, make_site, root_key: str) -> None:
        make_site({
            "index.html": '<script src="js/a.js"></script>',
            "js/a.js": "require('b.js');",
            "js/b.js": "",
        })

        graph = build_project_map(root_key, require_resolution="containing")

        assert root_key + "js/b.js" in graph.paths("script")

    def test_not_a_directory(self, tmp_path: Path) -> None:
        with pytest.raises(NotADirectoryError):
            build_project_map(tmp_path / "missing", config=ScanConfig())

    def test_rebuild_is_deterministic(self, sample_site: Path) -> None:
        """Two builds over unchanged files yield identical maps."""
        first = export_graph(build_project_map(sample_site, config=ScanConfig()), version="test")
        second = export_graph(build_project_map(sample_site, config=ScanConfig()), version="test")

        assert first.nodes == second.nodes
        assert first.edges == second.edges


class TestSeeding:
    """Tests for markup seeding from the indexer."""

    @pytest.mark.asyncio
    async def test_illegal_names_are_never_seeded(self, memory_files) -> None:
        mem = memory_files({"/site/index.html": "", "/site/con": "", "/site/a*b.html": ""})
        indexer = StubIndexer([
            FileInfo("/site/index.html", "index.html"),
            FileInfo("/site/con", "con"),
            FileInfo("/site/a*b.html", "a*b.html"),
        ])
        builder = ProjectMapBuilder("/site", config=ScanConfig(), indexer=indexer, read_text=mem.read_text)

        graph = await builder.build()

        assert graph.paths("markup") == {"/site/index.html"}
        assert "/site/con" not in mem.reads

    @pytest.mark.asyncio
    async def test_duplicate_index_entries_seed_once(self, memory_files) -> None:
        mem = memory_files({"/site/index.html": ""})
        info = FileInfo("/site/index.html", "index.html")
        builder = ProjectMapBuilder(
            "/site", config=ScanConfig(), indexer=StubIndexer([info, info]), read_text=mem.read_text
        )

        graph = await builder.build()

        assert len(graph.nodes("markup")) == 1
        assert mem.reads == ["/site/index.html"]

    @pytest.mark.asyncio
    async def test_custom_filename_validator(self, memory_files) -> None:
        mem = memory_files({"/site/a.html": "", "/site/_draft.html": ""})
        builder = ProjectMapBuilder(
            "/site",
            config=ScanConfig(),
            indexer=mem,
            read_text=mem.read_text,
            is_legal=lambda name: not name.startswith("_"),
        )

        graph = await builder.build()

        assert graph.paths("markup") == {"/site/a.html"}


class TestBuildLifecycle:
    """Tests for publication, cancellation and restart."""

    @pytest.fixture
    def site(self, memory_files):
        return memory_files({
            "/site/index.html": '<link rel="stylesheet" href="a.css">',
            "/site/a.css": "",
        })

    def _builder(self, files) -> ProjectMapBuilder:
        return ProjectMapBuilder("/site", config=ScanConfig(), indexer=files, read_text=files.read_text)

    @pytest.mark.asyncio
    async def test_graph_published_after_completion(self, site) -> None:
        builder = self._builder(site)
        assert builder.graph is None

        graph = await builder.build()

        assert builder.graph is graph
        assert builder.in_progress is None
        assert builder.stats["style"].scanned == 1

    @pytest.mark.asyncio
    async def test_every_build_starts_empty(self, site) -> None:
        builder = self._builder(site)
        first = await builder.build()
        del site.files["/site/a.css"]
        site.files["/site/index.html"] = ""

        second = await builder.build()

        assert second is not first
        assert second.paths("style") == set()
        assert first.paths("style") == {"/site/a.css"}

    @pytest.mark.asyncio
    async def test_partial_graph_is_visible_but_not_published(self, site) -> None:
        builder = self._builder(site)
        finished = await builder.build()
        site.delays["/site/index.html"] = 10

        task = builder.on_project_open()
        await asyncio.sleep(0.05)

        assert builder.in_progress is not None
        assert builder.in_progress.complete is False
        assert builder.graph is finished

        assert builder.cancel() is True
        with pytest.raises(asyncio.CancelledError):
            await task
        assert builder.in_progress is None
        assert builder.graph is finished

    @pytest.mark.asyncio
    async def test_project_open_supersedes_running_build(self, site) -> None:
        builder = self._builder(site)
        site.delays["/site/index.html"] = 10

        first = builder.on_project_open()
        await asyncio.sleep(0.05)
        site.delays.clear()
        second = builder.on_project_open()

        graph = await second
        with pytest.raises(asyncio.CancelledError):
            await first

        assert first.cancelled()
        assert builder.current_build is second
        assert builder.graph is graph
        assert graph.complete
        assert graph.paths("style") == {"/site/a.css"}

    @pytest.mark.asyncio
    async def test_older_overlapping_build_does_not_publish(self, site) -> None:
        """Two direct builds: the newer one wins even when the older finishes last."""
        builder = self._builder(site)
        site.delays["/site/index.html"] = 0.2
        older = asyncio.create_task(builder.build())
        await asyncio.sleep(0.05)
        site.delays.clear()

        newer_graph = await builder.build()
        assert builder.graph is newer_graph

        older_graph = await older

        assert older_graph.complete
        assert older_graph is not newer_graph
        assert builder.graph is newer_graph

    @pytest.mark.asyncio
    async def test_project_open_with_new_root(self, make_site, root_key: str) -> None:
        make_site({"index.html": ""})
        builder = ProjectMapBuilder("/nonexistent-root", config=ScanConfig())

        graph = await builder.on_project_open(root_key)

        assert builder.root == Path(root_key)
        assert graph.paths("markup") == {root_key + "index.html"}

    @pytest.mark.asyncio
    async def test_cancel_without_build(self, site) -> None:
        assert self._builder(site).cancel() is False
