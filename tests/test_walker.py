"""Tests for repository discovery."""

import asyncio

import pytest

from repograph.errors import RootNotFoundError
from repograph.sources import CodebaseSource, walk_directory


class TestWalkDirectory:
    @pytest.mark.asyncio
    async def test_skips_dependency_dirs_and_binary_files(self, make_repo):
        root = make_repo({
            "a.ts": "export const a = 1;\n",
            "src/b.ts": "export const b = 2;\n",
            "node_modules/lib/index.js": "module.exports = 1;\n",
            "logo.png": "not really a png",
        })

        result = await walk_directory(root)

        assert [f.path for f in result.files] == ["src/b.ts", "a.ts"]
        assert result.summary.skipped_reasons == {"directory:node_modules": 1, "pattern": 1}
        assert result.summary.skipped_count == 2
        assert result.summary.total_files == 2
        assert not result.cancelled

    @pytest.mark.asyncio
    async def test_vendor_skipped_only_below_root(self, make_repo):
        root = make_repo({
            "vendor/kept.ts": "",
            "src/vendor/dropped.ts": "",
        })

        result = await walk_directory(root)

        assert [f.path for f in result.files] == ["vendor/kept.ts"]
        assert result.summary.skipped_reasons == {"directory:vendor": 1}

    @pytest.mark.asyncio
    async def test_gitignore_rules(self, make_repo):
        root = make_repo({
            ".gitignore": "secret/\n*.log\n",
            "secret/key.ts": "",
            "debug.log": "",
            "app.ts": "",
        })

        result = await walk_directory(root)

        paths = {f.path for f in result.files}
        assert "app.ts" in paths
        assert "secret/key.ts" not in paths
        assert "debug.log" not in paths
        assert result.summary.skipped_reasons["gitignore"] == 1
        assert result.summary.skipped_reasons["pattern"] == 1

    @pytest.mark.asyncio
    async def test_large_files_are_skipped(self, make_repo):
        root = make_repo({
            "data.ts": "x" * 100,
            "small.ts": "export {};\n",
        })

        result = await walk_directory(root, max_file_size=50)

        assert [f.path for f in result.files] == ["small.ts"]
        assert result.summary.skipped_reasons == {"too-large": 1}

    @pytest.mark.asyncio
    async def test_exclude_and_include_patterns(self, make_repo):
        root = make_repo({
            "docs/guide.py": "",
            "pkg/core.py": "",
            "pkg/notes.md": "",
        })

        result = await walk_directory(root, exclude=["docs/**"], include=["*.py"])

        assert [f.path for f in result.files] == ["pkg/core.py"]
        assert result.summary.skipped_reasons == {"directory:docs": 1, "not-included": 1}

    @pytest.mark.asyncio
    async def test_max_files_cap(self, make_repo):
        root = make_repo({f"m{i}.ts": "" for i in range(10)})

        result = await walk_directory(root, max_files=3)

        assert len(result.files) == 3
        assert result.summary.total_files == 3

    @pytest.mark.asyncio
    async def test_cancelled_walk_returns_partial_result(self, make_repo):
        root = make_repo({"a.ts": "", "b.ts": ""})
        event = asyncio.Event()
        event.set()

        result = await walk_directory(root, cancel_event=event)

        assert result.cancelled
        assert result.files == []

    @pytest.mark.asyncio
    async def test_missing_root_raises(self, tmp_path):
        with pytest.raises(RootNotFoundError) as exc:
            await walk_directory(tmp_path / "nope")
        assert exc.value.code == "NOT_A_DIRECTORY"

    @pytest.mark.asyncio
    async def test_walk_order_is_stable(self, make_repo):
        root = make_repo({
            "z.ts": "", "a.ts": "", "lib/c.ts": "", "lib/b.ts": "", "api/x.ts": "",
        })

        first = await walk_directory(root)
        second = await walk_directory(root)

        assert [f.path for f in first.files] == [f.path for f in second.files]
        assert [f.path for f in first.files] == ["api/x.ts", "lib/b.ts", "lib/c.ts", "a.ts", "z.ts"]

    @pytest.mark.asyncio
    async def test_progress_callback(self, make_repo):
        root = make_repo({"a.ts": "", "src/b.ts": ""})
        seen = []

        await CodebaseSource(root, on_progress=seen.append).scan()

        assert [p.current_path for p in seen] == [".", "src"]
        assert seen[-1].directories_scanned == 2


class TestFileRecord:
    @pytest.mark.asyncio
    async def test_record_fields(self, make_repo):
        root = make_repo({
            "src/models/user.ts": "line one\nline two\n",
            "scripts/run": "#!/usr/bin/env node\nconsole.log(1)\n",
            "tsconfig.json": "{}",
            "src/user.test.ts": "",
        })

        result = await walk_directory(root)
        records = {f.path: f for f in result.files}

        user = records["src/models/user.ts"]
        assert user.name == "user.ts"
        assert user.extension == ".ts"
        assert user.depth == 2
        assert user.directory == "src/models"
        assert user.line_count == 3
        assert user.size == len("line one\nline two\n")
        assert user.absolute_path.endswith("user.ts")
        assert not user.is_entry_point

        assert records["scripts/run"].is_entry_point
        assert records["scripts/run"].extension == ""
        assert records["tsconfig.json"].is_config
        assert records["tsconfig.json"].directory == ""
        assert records["src/user.test.ts"].is_test

    @pytest.mark.asyncio
    async def test_summary_counts(self, make_repo):
        root = make_repo({"a.ts": "", "b.ts": "", "src/c.py": "", "Makefile": ""})

        result = await walk_directory(root)

        assert result.summary.by_extension == {".py": 1, ".ts": 2, "(no extension)": 1}
        assert result.summary.by_directory == {"src": 1, "(root)": 3}
        assert result.summary.total_directories == 2
