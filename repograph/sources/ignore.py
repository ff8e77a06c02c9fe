"""Ignore rules: built-in skip lists, ignore files and user excludes."""

from fnmatch import fnmatch
from pathlib import Path

import pathspec

IGNORE_FILE_NAMES = (".gitignore", ".repographignore")

SKIP_DIRECTORIES = {
    "node_modules", ".git", ".svn", ".hg", "dist", "build", "out", "target",
    "bin", "obj", ".cache", ".tmp", ".temp", "__pycache__", ".pytest_cache",
    ".mypy_cache", ".tox", ".venv", "venv", "coverage", ".nyc_output",
    ".coverage", ".idea", ".vscode", ".vs", ".repograph",
}

# Skipped below the repository root only.
SKIP_DIRECTORIES_NOT_ROOT = {"vendor", "deps", "packages"}

SKIP_EXTENSIONS = [
    ".lock", ".lockb",
    ".min.js", ".min.css", ".bundle.js", ".chunk.js",
    ".map",
    ".png", ".jpg", ".jpeg", ".gif", ".svg", ".ico", ".webp", ".bmp",
    ".woff", ".woff2", ".ttf", ".eot", ".otf",
    ".mp3", ".mp4", ".wav", ".avi", ".mov", ".webm",
    ".pdf", ".doc", ".docx", ".xls", ".xlsx",
    ".zip", ".tar", ".gz", ".rar", ".7z",
    ".pyc", ".pyo", ".class", ".o", ".so", ".dll", ".exe",
]

SKIP_FILENAMES = [
    "package-lock.json", "pnpm-lock.yaml", "yarn.lock", "poetry.lock", "uv.lock",
    ".DS_Store", "Thumbs.db",
]


def _normalize_prefix(pattern: str) -> str:
    if pattern.endswith("/**"):
        pattern = pattern[:-3]
    return pattern.rstrip("/")


class IgnoreRules:
    def __init__(
        self,
        patterns: list[str],
        exclude: list[str] | None = None,
        include: list[str] | None = None,
    ):
        self.exclude = exclude or []
        self.include = include or []
        self._spec = pathspec.GitIgnoreSpec.from_lines(patterns + self.exclude)
        self._prefixes = [_normalize_prefix(p) for p in self.exclude if p]

    @classmethod
    def load(
        cls,
        root: Path,
        ignore_files: tuple[str, ...] = IGNORE_FILE_NAMES,
        exclude: list[str] | None = None,
        include: list[str] | None = None,
    ) -> "IgnoreRules":
        patterns = [f"*{ext}" for ext in SKIP_EXTENSIONS] + list(SKIP_FILENAMES)
        for file_name in ignore_files:
            try:
                content = (root / file_name).read_text(encoding="utf-8", errors="replace")
            except OSError:
                continue
            patterns.extend(content.splitlines())
        return cls(patterns, exclude=exclude, include=include)

    def skip_directory_reason(self, name: str, rel_path: str, depth: int) -> str | None:
        """Return why a directory is pruned, or None to descend into it."""
        if name in SKIP_DIRECTORIES:
            return f"directory:{name}"
        if depth > 0 and name in SKIP_DIRECTORIES_NOT_ROOT:
            return f"directory:{name}"
        if self._under_excluded_prefix(rel_path):
            return f"directory:{name}"
        if self._spec.match_file(rel_path + "/"):
            return "gitignore"
        return None

    def ignores_file(self, rel_path: str) -> bool:
        if self._spec.match_file(rel_path):
            return True
        return self._under_excluded_prefix(rel_path)

    def is_included(self, rel_path: str) -> bool:
        if not self.include:
            return True
        name = rel_path.rsplit("/", 1)[-1]
        return any(fnmatch(rel_path, p) or fnmatch(name, p) for p in self.include)

    def _under_excluded_prefix(self, rel_path: str) -> bool:
        return any(rel_path == p or rel_path.startswith(p + "/") for p in self._prefixes)
