"""Data model shared by every analysis stage."""

from dataclasses import asdict, dataclass, field
from typing import Literal

ExportKind = Literal["function", "class", "variable", "type", "interface", "enum", "unknown"]


@dataclass(frozen=True)
class FileRecord:
    path: str
    absolute_path: str
    name: str
    extension: str
    size: int
    line_count: int
    depth: int
    directory: str
    is_entry_point: bool
    is_config: bool
    is_test: bool
    is_generated: bool


@dataclass(frozen=True)
class ScoreBreakdown:
    name: int = 0
    path: int = 0
    structure: int = 0
    connectivity: int = 0

    @property
    def total(self) -> int:
        return self.name + self.path + self.structure + self.connectivity


@dataclass(frozen=True)
class ScoredFile(FileRecord):
    score: int = 0
    score_breakdown: ScoreBreakdown = field(default_factory=ScoreBreakdown)
    tags: tuple[str, ...] = ()

    @classmethod
    def from_record(
        cls,
        record: FileRecord,
        score: int,
        score_breakdown: ScoreBreakdown,
        tags: tuple[str, ...],
    ) -> "ScoredFile":
        values = {name: getattr(record, name) for name in FileRecord.__dataclass_fields__}
        return cls(**values, score=score, score_breakdown=score_breakdown, tags=tags)


@dataclass
class ImportFact:
    source: str
    is_relative: bool
    is_package: bool
    is_builtin: bool
    imported_names: tuple[str, ...] = ()
    has_default: bool = False
    has_namespace: bool = False
    is_type_only: bool = False
    is_dynamic: bool = False
    line: int = 0


@dataclass
class ExportFact:
    name: str
    is_default: bool = False
    is_type: bool = False
    is_re_export: bool = False
    re_export_source: str | None = None
    kind: ExportKind = "unknown"
    line: int = 0


@dataclass
class FileAnalysis:
    file_path: str
    imports: list[ImportFact] = field(default_factory=list)
    exports: list[ExportFact] = field(default_factory=list)
    local_imports: list[str] = field(default_factory=list)
    external_imports: list[str] = field(default_factory=list)
    parse_errors: list[str] = field(default_factory=list)


@dataclass
class NodeMetrics:
    in_degree: int = 0
    out_degree: int = 0
    betweenness: float = 0.0
    page_rank: float = 0.0


@dataclass
class GraphNode:
    id: str
    file: ScoredFile
    exports: list[ExportFact] = field(default_factory=list)
    metrics: NodeMetrics = field(default_factory=NodeMetrics)


@dataclass
class GraphEdge:
    source: str
    target: str
    imported_names: list[str] = field(default_factory=list)
    is_type_only: bool = False
    weight: float = 1.0


@dataclass
class Cluster:
    id: str
    name: str
    files: list[str]
    internal_edges: int
    external_edges: int
    cohesion: float
    coupling: float
    suggested_domain: str


@dataclass
class Rankings:
    by_importance: list[str] = field(default_factory=list)
    by_connectivity: list[str] = field(default_factory=list)
    cluster_centers: list[str] = field(default_factory=list)
    leaf_nodes: list[str] = field(default_factory=list)
    bridge_nodes: list[str] = field(default_factory=list)
    orphan_nodes: list[str] = field(default_factory=list)


@dataclass
class GraphStatistics:
    node_count: int = 0
    edge_count: int = 0
    avg_degree: float = 0.0
    density: float = 0.0
    cluster_count: int = 0
    cycle_count: int = 0


@dataclass
class DependencyGraphResult:
    nodes: list[GraphNode] = field(default_factory=list)
    edges: list[GraphEdge] = field(default_factory=list)
    clusters: list[Cluster] = field(default_factory=list)
    rankings: Rankings = field(default_factory=Rankings)
    cycles: list[list[str]] = field(default_factory=list)
    statistics: GraphStatistics = field(default_factory=GraphStatistics)

    def node_map(self) -> dict[str, GraphNode]:
        return {node.id: node for node in self.nodes}

    def to_dict(self) -> dict:
        return asdict(self)

    def to_text(self, format: str = "json") -> str:
        from .exporters import render

        return render(self, format)


@dataclass
class WalkProgress:
    files_found: int
    directories_scanned: int
    current_path: str


@dataclass
class WalkSummary:
    total_files: int = 0
    total_directories: int = 0
    by_extension: dict[str, int] = field(default_factory=dict)
    by_directory: dict[str, int] = field(default_factory=dict)
    skipped_count: int = 0
    skipped_reasons: dict[str, int] = field(default_factory=dict)


@dataclass
class WalkResult:
    files: list[FileRecord]
    summary: WalkSummary
    root_path: str
    timestamp: str
    cancelled: bool = False
