"""Code analysis: import extraction, significance scoring and the dependency graph."""

from .domains import suggest_domain_name
from .graph import DependencyGraphBuilder, build_dependency_graph
from .importance import (
    FileRelationship,
    SignificanceScorer,
    get_files_above_threshold,
    get_files_by_tag,
    get_top_files,
    group_files_by_tag,
    relationships_from_graph,
)
from .imports import ImportExportParser, extract_exports, extract_imports, parse_file, resolve_import

__all__ = [
    "DependencyGraphBuilder",
    "FileRelationship",
    "ImportExportParser",
    "SignificanceScorer",
    "build_dependency_graph",
    "extract_exports",
    "extract_imports",
    "get_files_above_threshold",
    "get_files_by_tag",
    "get_top_files",
    "group_files_by_tag",
    "parse_file",
    "relationships_from_graph",
    "resolve_import",
    "suggest_domain_name",
]
