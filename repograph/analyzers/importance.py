"""File significance scoring - ranks files by how much they explain the architecture."""

import re
from collections import defaultdict
from dataclasses import dataclass, field

import aiofiles
from loguru import logger

from ..config import ScoringConfig
from ..models import DependencyGraphResult, FileRecord, ScoreBreakdown, ScoredFile
from .imports import PYTHON, language_family

# Name fragments that usually mark architecture-defining files
HIGH_VALUE_NAMES = {
    "schema": 25, "model": 25, "entity": 25, "types": 25, "interfaces": 25,
    "auth": 25, "authentication": 25, "authorization": 25,
    "api": 25, "routes": 25, "endpoints": 25, "controller": 25, "controllers": 25,
    "database": 25, "db": 25, "repository": 25, "store": 25,
    "config": 20, "configuration": 20, "settings": 20,
    "middleware": 20, "interceptor": 20, "guard": 20,
    "service": 15, "provider": 15, "manager": 15,
    "utils": 5, "util": 5, "helpers": 5, "helper": 5, "common": 5,
}

NEGATIVE_NAMES = {
    "test": -10, "spec": -10, "mock": -10, "stub": -10, "fake": -10,
    "fixture": -10, "fixtures": -10, "snapshot": -10, "snapshots": -10,
    "example": -5, "examples": -5, "sample": -5, "samples": -5, "demo": -5,
    "backup": -15, "old": -15, "deprecated": -15, "legacy": -15,
}

HIGH_VALUE_PATHS = {
    "src/": 10, "lib/": 10, "core/": 15, "domain/": 15, "models/": 15,
    "api/": 15, "routes/": 15, "controllers/": 15, "config/": 10,
    "configs/": 10, "services/": 10, "schemas/": 15,
}

STRUCTURE_PATTERNS = {
    "class": re.compile(r"\bclass\s+\w+"),
    "interface": re.compile(r"\b(?:interface|type)\s+\w+\s*[={<]"),
    "export": re.compile(r"\bexport\s+(?:default\s+)?(?:class|function|const|let|var|interface|type|enum)"),
    "decorator": re.compile(r"@\w+\s*\("),
    "import": re.compile(r"\bimport\s+.*from\s+['\"][^'\"]+['\"]"),
}

PYTHON_STRUCTURE_PATTERNS = {
    "export": re.compile(r"^__all__\s*=", re.MULTILINE),
    "decorator": re.compile(r"^[ \t]*@\w+", re.MULTILINE),
    "import": re.compile(r"^[ \t]*(?:import|from)\s+[.\w]+", re.MULTILINE),
}

HIGH_CONNECTIVITY = 15
HIGH_VALUE_NAME = 20


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


@dataclass
class FileRelationship:
    file_path: str
    imports: list[str] = field(default_factory=list)
    imported_by: list[str] = field(default_factory=list)


def compute_name_score(
    file_name: str,
    high_value_names: dict[str, int] = HIGH_VALUE_NAMES,
    negative_names: dict[str, int] = NEGATIVE_NAMES,
) -> int:
    name = file_name.lower()
    if "." in name:
        name = name[: name.rfind(".")]

    score = 0
    for pattern, points in high_value_names.items():
        if pattern in name:
            score = max(score, points)
    for pattern, points in negative_names.items():
        if pattern in name:
            score += points
    return _clamp(score, 0, 30)


def compute_path_score(
    rel_path: str,
    depth: int,
    high_value_paths: dict[str, int] = HIGH_VALUE_PATHS,
) -> int:
    score = 15 if depth == 0 else 0

    for pattern, points in high_value_paths.items():
        if rel_path.startswith(pattern) or f"/{pattern}" in rel_path:
            score = max(score, points)

    if depth > 5:
        score -= 10

    lowered = rel_path.lower()
    if ("utils/" in lowered or "helpers/" in lowered) and depth > 3:
        score -= 5

    return _clamp(score, 0, 25)


def compute_structure_score(content: str, line_count: int, family: str | None = None) -> int:
    patterns = dict(STRUCTURE_PATTERNS)
    if family == PYTHON:
        patterns.update(PYTHON_STRUCTURE_PATTERNS)

    score = 0
    if patterns["class"].search(content):
        score += 10
    if patterns["interface"].search(content):
        score += 15
    if patterns["export"].search(content):
        score += 5
    if patterns["decorator"].search(content):
        score += 15
    if len(patterns["import"].findall(content)) > 10:
        score += 10

    if 50 <= line_count <= 500:
        score += 5
    elif line_count > 1000:
        score -= 5

    return _clamp(score, 0, 25)


def compute_connectivity_score(rel_path: str, relationships: dict[str, FileRelationship]) -> int:
    relationship = relationships.get(rel_path)
    if relationship is None:
        return 0

    inbound = len(relationship.imported_by)
    outbound = len(relationship.imports)

    score = 0
    if inbound >= 5:
        score += 20
    elif inbound >= 2:
        score += 10
    if outbound >= 5:
        score += 10
    if inbound == 0 and outbound == 0:
        score -= 10

    return _clamp(score, 0, 20)


def generate_tags(record: FileRecord, breakdown: ScoreBreakdown) -> tuple[str, ...]:
    tags = []
    if record.is_entry_point:
        tags.append("entry-point")
    if record.is_config:
        tags.append("config")
    if record.is_test:
        tags.append("test")
    if record.is_generated:
        tags.append("generated")

    name = record.name.lower()
    if "schema" in name or "model" in name or "entity" in name:
        tags.append("schema")
    if "api" in name or "route" in name or "controller" in name:
        tags.append("api")
    if "service" in name or "provider" in name:
        tags.append("service")

    if breakdown.name >= HIGH_VALUE_NAME:
        tags.append("high-value-name")
    if breakdown.connectivity >= HIGH_CONNECTIVITY:
        tags.append("high-connectivity")
    return tuple(tags)


def relationships_from_graph(result: DependencyGraphResult) -> dict[str, FileRelationship]:
    """Derive per-file relationships (keyed by relative path) from graph edges."""
    by_id = {node.id: node.file.path for node in result.nodes}
    relationships = {path: FileRelationship(path) for path in by_id.values()}

    for edge in result.edges:
        source, target = by_id[edge.source], by_id[edge.target]
        relationships[source].imports.append(target)
        relationships[target].imported_by.append(source)
    return relationships


class SignificanceScorer:
    """Scores files on name, path, structure and connectivity signals."""

    def __init__(self, config: ScoringConfig | None = None):
        self.config = config or ScoringConfig()
        self.high_value_names = {**HIGH_VALUE_NAMES, **self.config.high_value_names}
        self.negative_names = {**NEGATIVE_NAMES, **self.config.negative_names}
        self.high_value_paths = {**HIGH_VALUE_PATHS, **self.config.high_value_paths}
        self._relationships: dict[str, FileRelationship] = {}

    def set_relationships(self, relationships: dict[str, FileRelationship]) -> None:
        self._relationships = relationships

    async def score_file(self, record: FileRecord) -> ScoredFile:
        breakdown = ScoreBreakdown(
            name=compute_name_score(record.name, self.high_value_names, self.negative_names),
            path=compute_path_score(record.path, record.depth, self.high_value_paths),
            structure=await self._structure_score(record),
            connectivity=compute_connectivity_score(record.path, self._relationships),
        )
        return ScoredFile.from_record(
            record,
            score=_clamp(breakdown.total, 0, 100),
            score_breakdown=breakdown,
            tags=generate_tags(record, breakdown),
        )

    async def score_files(self, records: list[FileRecord]) -> list[ScoredFile]:
        min_score = self.config.min_score
        scored = []
        for record in records:
            result = await self.score_file(record)
            if min_score is None or result.score >= min_score:
                scored.append(result)

        scored.sort(key=lambda f: f.score, reverse=True)
        logger.debug("Scored {} of {} files", len(scored), len(records))
        return scored

    def rescore_connectivity(self, scored: ScoredFile) -> ScoredFile:
        """Recompute the connectivity term against the current relationships."""
        breakdown = ScoreBreakdown(
            name=scored.score_breakdown.name,
            path=scored.score_breakdown.path,
            structure=scored.score_breakdown.structure,
            connectivity=compute_connectivity_score(scored.path, self._relationships),
        )
        return ScoredFile.from_record(
            scored,
            score=_clamp(breakdown.total, 0, 100),
            score_breakdown=breakdown,
            tags=generate_tags(scored, breakdown),
        )

    async def _structure_score(self, record: FileRecord) -> int:
        try:
            async with aiofiles.open(record.absolute_path, "r", encoding="utf-8", errors="replace") as f:
                content = await f.read()
        except OSError as e:
            logger.debug("Cannot read {} for structure scoring: {}", record.path, e)
            return 0
        return compute_structure_score(content, record.line_count, language_family(record.name))


def get_top_files(files: list[ScoredFile], n: int) -> list[ScoredFile]:
    return sorted(files, key=lambda f: f.score, reverse=True)[:n]


def get_files_by_tag(files: list[ScoredFile], tag: str) -> list[ScoredFile]:
    return [f for f in files if tag in f.tags]


def get_files_above_threshold(files: list[ScoredFile], threshold: int) -> list[ScoredFile]:
    return [f for f in files if f.score >= threshold]


def group_files_by_tag(files: list[ScoredFile]) -> dict[str, list[ScoredFile]]:
    groups: dict[str, list[ScoredFile]] = defaultdict(list)
    for f in files:
        for tag in f.tags:
            groups[tag].append(f)
    return dict(groups)
