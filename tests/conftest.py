from pathlib import Path

import pytest
from loguru import logger

from repograph.analyzers import DependencyGraphBuilder, SignificanceScorer
from repograph.sources import walk_directory


def write_tree(root: Path, files: dict[str, str]) -> Path:
    for rel_path, content in files.items():
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def make_repo(tmp_path):
    """Write {relative path: content} under a temporary repository root."""

    def _make(files: dict[str, str]) -> Path:
        return write_tree(tmp_path / "repo", files)

    return _make


@pytest.fixture
def build_graph():
    """Walk, score and graph a repository root."""

    async def _build(root: Path, max_files: int = 500, **options):
        walk = await walk_directory(root, max_files=max_files)
        scored = await SignificanceScorer().score_files(walk.files)
        return await DependencyGraphBuilder(walk.root_path, **options).build(scored)

    return _build


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    logger.remove()
    logger.disable("repograph")
