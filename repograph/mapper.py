"""Repository map - project-level summary of a walk and its scored files."""

import json
import re
import tomllib
from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from loguru import logger

from . import __version__
from .config import Settings
from .errors import OutputWriteError
from .models import FileRecord, ScoredFile, WalkResult

MAP_FILE = "repository-map.json"
SUMMARY_FILE = "SUMMARY.md"

EXTENSION_LANGUAGES = {
    ".ts": "TypeScript", ".tsx": "TypeScript (React)",
    ".js": "JavaScript", ".jsx": "JavaScript (React)",
    ".py": "Python", ".rs": "Rust", ".go": "Go", ".java": "Java",
    ".rb": "Ruby", ".php": "PHP", ".vue": "Vue", ".svelte": "Svelte",
    ".css": "CSS", ".scss": "SCSS", ".less": "LESS", ".html": "HTML",
    ".json": "JSON", ".yaml": "YAML", ".yml": "YAML", ".toml": "TOML",
    ".md": "Markdown", ".sql": "SQL", ".graphql": "GraphQL", ".prisma": "Prisma",
}

LAYER_PATTERNS = {
    "presentation": [
        re.compile(r"/(components?|views?|pages?|ui|screens?|layouts?|templates)/", re.IGNORECASE),
        re.compile(r"\.(jsx|tsx|vue)$"),
        re.compile(r"\.component\."),
        re.compile(r"\.page\."),
    ],
    "business": [
        re.compile(r"/(services?|domain|business|core|logic|usecases?)/", re.IGNORECASE),
        re.compile(r"\.service\."),
        re.compile(r"\.usecase\."),
    ],
    "data": [
        re.compile(r"/(models?|entities?|repositories?|schemas?|db|database|data)/", re.IGNORECASE),
        re.compile(r"\.model\."),
        re.compile(r"\.entity\."),
        re.compile(r"\.repository\."),
        re.compile(r"\.schema\."),
    ],
    "infrastructure": [
        re.compile(r"/(config|utils?|helpers?|lib|middleware|infra|infrastructure)/", re.IGNORECASE),
        re.compile(r"\.config\."),
        re.compile(r"\.util\."),
        re.compile(r"\.helper\."),
        re.compile(r"\.middleware\."),
    ],
}

DOMAIN_SKIP = {"src", "lib", "app", "core", "common", "shared", "utils", "helpers", "config"}

DIRECTORY_PURPOSES = [
    (("test", "spec"), "tests"),
    (("component",), "components"),
    (("service",), "services"),
    (("model", "entity"), "models"),
    (("route", "api"), "api"),
    (("config",), "configuration"),
    (("util", "helper"), "utilities"),
    (("middleware",), "middleware"),
]


@dataclass
class LanguageBreakdown:
    language: str
    extension: str
    file_count: int
    percentage: int


@dataclass
class DetectedFramework:
    name: str
    category: str
    confidence: str
    evidence: list[str]


@dataclass
class DirectoryStats:
    path: str
    file_count: int
    purpose: str
    avg_score: int


@dataclass
class FileClusters:
    by_directory: dict[str, list[ScoredFile]] = field(default_factory=dict)
    by_domain: dict[str, list[ScoredFile]] = field(default_factory=dict)
    by_layer: dict[str, list[ScoredFile]] = field(default_factory=dict)


@dataclass
class RepositoryMetadata:
    project_name: str
    project_type: str
    root_path: str
    analyzed_at: str
    version: str


@dataclass
class RepositorySummary:
    total_files: int
    analyzed_files: int
    skipped_files: int
    languages: list[LanguageBreakdown]
    frameworks: list[DetectedFramework]
    directories: list[DirectoryStats]


@dataclass
class RepositoryMap:
    metadata: RepositoryMetadata
    summary: RepositorySummary
    high_value_files: list[ScoredFile]
    entry_points: list[ScoredFile]
    schema_files: list[ScoredFile]
    config_files: list[ScoredFile]
    clusters: FileClusters
    all_files: list[ScoredFile]

    def to_dict(self) -> dict:
        return asdict(self)

    def to_markdown(self) -> str:
        meta, summary = self.metadata, self.summary
        lines = [
            f"# Repository Analysis: {meta.project_name}",
            "",
            f"> Generated by repograph v{meta.version} on {meta.analyzed_at}",
            "",
            "## Overview",
            "",
            f"- **Project Type**: {meta.project_type}",
            f"- **Total Files**: {summary.total_files}",
            f"- **Analyzed Files**: {summary.analyzed_files}",
            f"- **Skipped Files**: {summary.skipped_files}",
            "",
            "## Languages",
            "",
            "| Language | Files | Percentage |",
            "|----------|-------|------------|",
        ]
        for lang in summary.languages[:10]:
            lines.append(f"| {lang.language} | {lang.file_count} | {lang.percentage}% |")
        lines.append("")

        if summary.frameworks:
            lines += ["## Detected Frameworks", ""]
            for fw in summary.frameworks:
                lines.append(f"- **{fw.name}** ({fw.category}, {fw.confidence} confidence)")
                lines += [f"  - {evidence}" for evidence in fw.evidence]
            lines.append("")

        lines += ["## High Value Files (Top 20)", "", "| File | Score | Tags |", "|------|-------|------|"]
        for f in self.high_value_files[:20]:
            lines.append(f"| {f.path} | {f.score} | {', '.join(f.tags) or '-'} |")
        lines.append("")

        if self.entry_points:
            lines += ["## Entry Points", ""]
            lines += [f"- {f.path} (score: {f.score})" for f in self.entry_points[:10]]
            lines.append("")

        if self.clusters.by_domain:
            lines += ["## Inferred Domains", ""]
            for domain, members in self.clusters.by_domain.items():
                lines.append(f"- **{domain}** ({len(members)} files)")
            lines.append("")

        lines += [
            "## Directory Structure",
            "",
            "| Directory | Files | Purpose | Avg Score |",
            "|-----------|-------|---------|-----------|",
        ]
        for d in summary.directories[:15]:
            lines.append(f"| {d.path} | {d.file_count} | {d.purpose} | {d.avg_score} |")
        lines.append("")
        return "\n".join(lines)


@dataclass
class Manifest:
    """Declared dependencies gathered from package.json, pyproject.toml and requirements.txt."""

    name: str | None = None
    dependencies: set[str] = field(default_factory=set)


def _requirement_name(line: str) -> str | None:
    match = re.match(r"\s*([A-Za-z0-9][A-Za-z0-9._-]*)", line)
    return match.group(1).lower().replace("_", "-") if match else None


def load_manifest(root: Path) -> Manifest:
    manifest = Manifest()

    try:
        package = json.loads((root / "package.json").read_text(encoding="utf-8"))
    except (OSError, ValueError):
        package = None
    if isinstance(package, dict):
        if isinstance(package.get("name"), str):
            manifest.name = package["name"]
        for key in ("dependencies", "devDependencies"):
            if isinstance(package.get(key), dict):
                manifest.dependencies.update(package[key])

    try:
        with open(root / "pyproject.toml", "rb") as f:
            pyproject = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError):
        pyproject = {}
    project = pyproject.get("project", {})
    if manifest.name is None and isinstance(project.get("name"), str):
        manifest.name = project["name"]
    requirements = list(project.get("dependencies", []))
    for extra in project.get("optional-dependencies", {}).values():
        requirements.extend(extra)

    try:
        requirements.extend((root / "requirements.txt").read_text(encoding="utf-8").splitlines())
    except OSError:
        pass

    for line in requirements:
        if isinstance(line, str) and not line.strip().startswith(("#", "-")):
            name = _requirement_name(line)
            if name:
                manifest.dependencies.add(name)
    return manifest


def _evidence_from(deps: set[str], names: tuple[str, ...], label: str) -> list[str]:
    return [f"{label} in dependencies"] if any(n in deps for n in names) else []


def _has_file(files: list[FileRecord], predicate: Callable[[FileRecord], bool]) -> bool:
    return any(predicate(f) for f in files)


def _react(files, deps):
    evidence = _evidence_from(deps, ("react",), "react")
    if _has_file(files, lambda f: f.extension in (".jsx", ".tsx")):
        evidence.append(".jsx/.tsx files found")
    return evidence


def _nextjs(files, deps):
    evidence = _evidence_from(deps, ("next",), "next")
    if _has_file(files, lambda f: f.name.startswith("next.config")):
        evidence.append("next.config.* found")
    if _has_file(files, lambda f: f.directory.split("/")[0] in ("pages", "app")):
        evidence.append("pages/ or app/ directory found")
    return evidence


def _vue(files, deps):
    evidence = _evidence_from(deps, ("vue",), "vue")
    if _has_file(files, lambda f: f.extension == ".vue"):
        evidence.append(".vue files found")
    return evidence


def _angular(files, deps):
    evidence = []
    if any(d.startswith("@angular/") for d in deps):
        evidence.append("@angular/* packages in dependencies")
    if _has_file(files, lambda f: f.name == "angular.json"):
        evidence.append("angular.json found")
    return evidence


def _nestjs(files, deps):
    return ["@nestjs/* packages in dependencies"] if any(d.startswith("@nestjs/") for d in deps) else []


def _jest(files, deps):
    evidence = _evidence_from(deps, ("jest",), "jest")
    if _has_file(files, lambda f: f.name.startswith("jest.config")):
        evidence.append("jest.config.* found")
    return evidence


def _vitest(files, deps):
    evidence = _evidence_from(deps, ("vitest",), "vitest")
    if _has_file(files, lambda f: f.name.startswith("vitest.config")):
        evidence.append("vitest.config.* found")
    return evidence


def _django(files, deps):
    evidence = _evidence_from(deps, ("django",), "django")
    if _has_file(files, lambda f: f.name == "manage.py"):
        evidence.append("manage.py found")
    return evidence


def _pytest(files, deps):
    evidence = _evidence_from(deps, ("pytest",), "pytest")
    if _has_file(files, lambda f: f.name in ("conftest.py", "pytest.ini")):
        evidence.append("conftest.py or pytest.ini found")
    return evidence


def _postgres(files, deps):
    return _evidence_from(deps, ("pg", "postgres", "@prisma/client", "psycopg", "psycopg2", "asyncpg"), "PostgreSQL client")


def _mongodb(files, deps):
    return _evidence_from(deps, ("mongodb", "mongoose", "pymongo", "motor"), "MongoDB client")


def _github_actions(files, deps):
    return [".github/workflows directory found"] if _has_file(files, lambda f: ".github/workflows" in f.path) else []


def _gitlab_ci(files, deps):
    return [".gitlab-ci.yml found"] if _has_file(files, lambda f: f.name == ".gitlab-ci.yml") else []


# (name, category, detector, confidence when only one piece of evidence is found)
FRAMEWORK_DETECTORS = [
    ("React", "frontend", _react, "medium"),
    ("Next.js", "frontend", _nextjs, "medium"),
    ("Express", "backend", lambda files, deps: _evidence_from(deps, ("express",), "express"), "high"),
    ("NestJS", "backend", _nestjs, "high"),
    ("Vue", "frontend", _vue, "medium"),
    ("Angular", "frontend", _angular, "medium"),
    ("Django", "backend", _django, "medium"),
    ("Flask", "backend", lambda files, deps: _evidence_from(deps, ("flask",), "flask"), "high"),
    ("FastAPI", "backend", lambda files, deps: _evidence_from(deps, ("fastapi",), "fastapi"), "high"),
    ("Jest", "testing", _jest, "high"),
    ("Vitest", "testing", _vitest, "high"),
    ("pytest", "testing", _pytest, "high"),
    ("PostgreSQL", "database", _postgres, "medium"),
    ("MongoDB", "database", _mongodb, "high"),
    ("JWT Auth", "auth", lambda files, deps: _evidence_from(deps, ("jsonwebtoken", "jose", "pyjwt"), "JWT library"), "high"),
    ("Passport", "auth", lambda files, deps: _evidence_from(deps, ("passport",), "passport"), "high"),
    ("GitHub Actions", "ci", _github_actions, "high"),
    ("GitLab CI", "ci", _gitlab_ci, "high"),
]


def detect_frameworks(files: list[FileRecord], dependencies: set[str]) -> list[DetectedFramework]:
    frameworks = []
    for name, category, detect, single_confidence in FRAMEWORK_DETECTORS:
        evidence = detect(files, dependencies)
        if evidence:
            confidence = "high" if len(evidence) >= 2 else single_confidence
            frameworks.append(DetectedFramework(name, category, confidence, evidence))
    return frameworks


def detect_project_type(files: list[FileRecord]) -> str:
    names = {f.name for f in files}
    if "package.json" in names:
        return "nodejs"
    if names & {"pyproject.toml", "setup.py"}:
        return "python"
    if "Cargo.toml" in names:
        return "rust"
    if "go.mod" in names:
        return "go"
    return "unknown"


def language_breakdown(files: list[FileRecord]) -> list[LanguageBreakdown]:
    counts: dict[str, int] = {}
    for f in files:
        ext = f.extension.lower()
        counts[ext] = counts.get(ext, 0) + 1

    languages = [
        LanguageBreakdown(
            language=EXTENSION_LANGUAGES.get(ext, ext[1:].upper() or "(none)"),
            extension=ext,
            file_count=count,
            percentage=round(count / len(files) * 100),
        )
        for ext, count in counts.items()
    ]
    languages.sort(key=lambda lang: lang.file_count, reverse=True)
    return languages


def detect_layer(f: ScoredFile) -> str | None:
    target = f"{f.path}/{f.name}"
    for layer, patterns in LAYER_PATTERNS.items():
        if any(p.search(target) for p in patterns):
            return layer
    return None


def infer_domains(files: list[ScoredFile]) -> dict[str, list[ScoredFile]]:
    """Group files by their first meaningful directory and by shared name prefixes."""
    domains: dict[str, list[ScoredFile]] = {}
    prefixes: dict[str, list[ScoredFile]] = {}

    for f in files:
        if f.is_test or f.is_config:
            continue

        for part in f.path.split("/"):
            if part and part.lower() not in DOMAIN_SKIP and not part.startswith("."):
                domains.setdefault(part.lower(), []).append(f)
                break

        stem = f.name.rsplit(".", 1)[0]
        name_parts = re.split(r"[-_.]", stem)
        if len(name_parts) > 1:
            prefix = name_parts[0].lower()
            if len(prefix) > 2 and prefix not in DOMAIN_SKIP:
                prefixes.setdefault(prefix, []).append(f)

    for prefix, members in prefixes.items():
        if len(members) >= 2 and prefix not in domains:
            domains[prefix] = members

    return {domain: members for domain, members in domains.items() if len(members) >= 2}


def directory_purpose(path: str) -> str:
    lowered = path.lower()
    for fragments, purpose in DIRECTORY_PURPOSES:
        if any(fragment in lowered for fragment in fragments):
            return purpose
    if path == "(root)":
        return "root"
    if lowered in ("src", "lib"):
        return "source"
    return "unknown"


def directory_stats(files: list[ScoredFile]) -> list[DirectoryStats]:
    groups: dict[str, list[ScoredFile]] = {}
    for f in files:
        groups.setdefault(f.directory or "(root)", []).append(f)

    stats = [
        DirectoryStats(
            path=path,
            file_count=len(members),
            purpose=directory_purpose(path),
            avg_score=round(sum(f.score for f in members) / len(members)),
        )
        for path, members in groups.items()
    ]
    stats.sort(key=lambda d: d.file_count, reverse=True)
    return stats


class RepositoryMapper:
    def __init__(self, root: str | Path, settings: Settings | None = None):
        self.root = Path(root).resolve()
        self.settings = settings or Settings()

    def map(self, walk_result: WalkResult, scored_files: list[ScoredFile]) -> RepositoryMap:
        manifest = load_manifest(self.root)
        files = walk_result.files

        by_directory: dict[str, list[ScoredFile]] = {}
        by_layer: dict[str, list[ScoredFile]] = {layer: [] for layer in LAYER_PATTERNS}
        for f in scored_files:
            by_directory.setdefault(f.directory or "(root)", []).append(f)
            layer = detect_layer(f)
            if layer:
                by_layer[layer].append(f)

        def is_schema(f: ScoredFile) -> bool:
            name = f.name.lower()
            return "schema" in f.tags or any(word in name for word in ("model", "entity", "schema"))

        summary = walk_result.summary
        repo_map = RepositoryMap(
            metadata=RepositoryMetadata(
                project_name=manifest.name or self.root.name,
                project_type=detect_project_type(files),
                root_path=str(self.root),
                analyzed_at=datetime.now(timezone.utc).isoformat(),
                version=__version__,
            ),
            summary=RepositorySummary(
                total_files=summary.total_files + summary.skipped_count,
                analyzed_files=summary.total_files,
                skipped_files=summary.skipped_count,
                languages=language_breakdown(files),
                frameworks=detect_frameworks(files, manifest.dependencies),
                directories=directory_stats(scored_files),
            ),
            high_value_files=scored_files[:50],
            entry_points=[f for f in scored_files if f.is_entry_point],
            schema_files=[f for f in scored_files if is_schema(f)],
            config_files=[f for f in scored_files if f.is_config],
            clusters=FileClusters(
                by_directory=by_directory,
                by_domain=infer_domains(scored_files),
                by_layer=by_layer,
            ),
            all_files=scored_files,
        )
        logger.info(
            "Mapped {} ({}): {} languages, {} frameworks",
            repo_map.metadata.project_name,
            repo_map.metadata.project_type,
            len(repo_map.summary.languages),
            len(repo_map.summary.frameworks),
        )
        return repo_map

    def write_output(self, repo_map: RepositoryMap, output_dir: str | Path | None = None) -> Path:
        target = Path(output_dir) if output_dir is not None else self.root / self.settings.output_dir
        write_text(target / MAP_FILE, json.dumps(repo_map.to_dict(), indent=2))
        write_text(target / SUMMARY_FILE, repo_map.to_markdown())
        return target


def write_text(path: Path, content: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise OutputWriteError(str(path), str(e)) from e
    logger.debug("Wrote {}", path)
