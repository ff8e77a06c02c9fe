"""File classification heuristics - pure functions of a path string."""

import re
from pathlib import PurePosixPath

ENTRY_POINT_NAMES = {"index", "main", "app", "server", "cli", "entry", "__main__"}

SOURCE_ROOTS = {"src", "lib", "bin"}

CONFIG_PATTERNS = [
    re.compile(r"^\..*rc$"),
    re.compile(r"^\..*rc\.(js|json|yaml|yml)$"),
    re.compile(r"config\."),
    re.compile(r"\.config\."),
    re.compile(r"settings\."),
    re.compile(r"^tsconfig.*\.json$"),
    re.compile(r"^package\.json$"),
    re.compile(r"^pyproject\.toml$"),
    re.compile(r"^setup\.cfg$"),
    re.compile(r"^tox\.ini$"),
    re.compile(r"^requirements.*\.txt$"),
    re.compile(r"^Cargo\.toml$"),
    re.compile(r"^go\.mod$"),
    re.compile(r"^Gemfile$"),
    re.compile(r"^composer\.json$"),
]

TEST_DIRECTORIES = {"test", "tests", "__tests__", "spec", "specs"}

TEST_FILE_PATTERNS = [
    re.compile(r"\.test\.[^.]+$"),
    re.compile(r"\.spec\.[^.]+$"),
    re.compile(r"_test\.[^.]+$"),
    re.compile(r"_spec\.[^.]+$"),
    re.compile(r"^test_.*\.[^.]+$"),
    re.compile(r"^spec_.*\.[^.]+$"),
]

GENERATED_SUFFIXES = (".d.ts", ".generated.ts", ".generated.js", "_pb2.py")
GENERATED_DIRECTORIES = {"generated", "__generated__"}


def _directory_parts(path: str) -> tuple[str, ...]:
    return PurePosixPath(path).parts[:-1]


def is_test_file(path: str, name: str) -> bool:
    if any(part in TEST_DIRECTORIES for part in _directory_parts(path)):
        return True
    return any(p.search(name) for p in TEST_FILE_PATTERNS)


def is_config_file(name: str) -> bool:
    return any(p.search(name) for p in CONFIG_PATTERNS)


def is_generated_file(name: str, path: str) -> bool:
    if name.endswith(GENERATED_SUFFIXES):
        return True
    return any(part in GENERATED_DIRECTORIES for part in _directory_parts(path))


def is_entry_point_name(name: str, path: str, depth: int) -> bool:
    """Name/location half of the entry-point rule; the walker adds the shebang check."""
    stem = PurePosixPath(name).stem
    if stem.lower() in ENTRY_POINT_NAMES:
        return True
    if depth == 1 and str(PurePosixPath(path).parent) in SOURCE_ROOTS:
        return True
    return False
