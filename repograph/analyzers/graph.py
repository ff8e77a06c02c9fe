"""
Dependency graph construction and graph metrics.

Nodes are keyed by absolute file path. Adjacency is kept in insertion-ordered
dicts so every traversal, and therefore every metric, is identical between
runs over the same input.
"""

from collections import deque
from collections.abc import Sequence

from loguru import logger

from ..errors import GraphBuildError
from ..models import (
    Cluster,
    DependencyGraphResult,
    FileAnalysis,
    GraphEdge,
    GraphNode,
    GraphStatistics,
    NodeMetrics,
    Rankings,
    ScoredFile,
)
from .domains import suggest_domain_name
from .imports import ImportExportParser, resolve_import

BRIDGE_THRESHOLD = 0.1
TYPE_ONLY_WEIGHT = 0.5


class DependencyGraphBuilder:
    def __init__(
        self,
        root_dir: str,
        extensions: list[str] | None = None,
        min_cluster_size: int = 2,
        damping_factor: float = 0.85,
        max_iterations: int = 100,
        tolerance: float = 1e-6,
        parser: ImportExportParser | None = None,
        concurrency: int = 10,
    ):
        if not 0 <= damping_factor <= 1:
            raise GraphBuildError(f"damping_factor must be between 0 and 1, got {damping_factor}")

        self.root_dir = root_dir
        self.extensions = extensions
        self.min_cluster_size = min_cluster_size
        self.damping_factor = damping_factor
        self.max_iterations = max_iterations
        self.tolerance = tolerance
        self.parser = parser or ImportExportParser()
        self.concurrency = concurrency

        self._nodes: dict[str, GraphNode] = {}
        self._edges: list[GraphEdge] = []
        self._adjacency: dict[str, dict[str, None]] = {}
        self._reverse: dict[str, dict[str, None]] = {}

    async def build(self, files: Sequence[ScoredFile]) -> DependencyGraphResult:
        if isinstance(files, (str, bytes)) or not isinstance(files, Sequence):
            raise GraphBuildError(f"Expected a sequence of scored files, got {type(files).__name__}")
        for f in files:
            if not isinstance(f, ScoredFile):
                raise GraphBuildError(f"Expected scored files, got {type(f).__name__}")

        self._nodes = {}
        self._edges = []
        self._adjacency = {}
        self._reverse = {}

        paths = list(dict.fromkeys(f.absolute_path for f in files))
        analyses = await self.parser.parse_files(paths, concurrency=self.concurrency)

        for f in files:
            if f.absolute_path in self._nodes:
                continue
            self._nodes[f.absolute_path] = GraphNode(
                id=f.absolute_path,
                file=f,
                exports=list(analyses[f.absolute_path].exports),
            )
            self._adjacency[f.absolute_path] = {}
            self._reverse[f.absolute_path] = {}

        self._build_edges(analyses)
        self._compute_degrees()
        self._compute_betweenness()
        self._compute_page_rank()

        clusters = self._detect_clusters()
        cycles = self._detect_cycles()
        rankings = self._rank(clusters)
        statistics = self._statistics(clusters, cycles)

        logger.info(
            "Built dependency graph: {} nodes, {} edges, {} clusters, {} cycles",
            statistics.node_count,
            statistics.edge_count,
            statistics.cluster_count,
            statistics.cycle_count,
        )
        return DependencyGraphResult(
            nodes=list(self._nodes.values()),
            edges=self._edges,
            clusters=clusters,
            rankings=rankings,
            cycles=cycles,
            statistics=statistics,
        )

    def _build_edges(self, analyses: dict[str, FileAnalysis]) -> None:
        merged: dict[tuple[str, str], GraphEdge] = {}

        for node_id in self._nodes:
            for imp in analyses[node_id].imports:
                if not imp.is_relative:
                    continue
                target = resolve_import(imp.source, node_id, self.extensions)
                if target is None or target not in self._nodes or target == node_id:
                    continue

                edge = merged.get((node_id, target))
                if edge is None:
                    edge = GraphEdge(
                        source=node_id,
                        target=target,
                        imported_names=list(imp.imported_names),
                        is_type_only=imp.is_type_only,
                    )
                    merged[(node_id, target)] = edge
                    self._edges.append(edge)
                    self._adjacency[node_id][target] = None
                    self._reverse[target][node_id] = None
                else:
                    for name in imp.imported_names:
                        if name not in edge.imported_names:
                            edge.imported_names.append(name)
                    edge.is_type_only = edge.is_type_only and imp.is_type_only

        for edge in self._edges:
            edge.weight = TYPE_ONLY_WEIGHT if edge.is_type_only else 1.0

    def _compute_degrees(self) -> None:
        for node_id, node in self._nodes.items():
            node.metrics = NodeMetrics(
                in_degree=len(self._reverse[node_id]),
                out_degree=len(self._adjacency[node_id]),
            )

    def _compute_betweenness(self) -> None:
        """Brandes' algorithm over the unweighted directed graph."""
        betweenness = dict.fromkeys(self._nodes, 0.0)

        for source in self._nodes:
            stack = []
            predecessors: dict[str, list[str]] = {v: [] for v in self._nodes}
            sigma = dict.fromkeys(self._nodes, 0)
            distance = dict.fromkeys(self._nodes, -1)
            sigma[source] = 1
            distance[source] = 0

            queue = deque([source])
            while queue:
                v = queue.popleft()
                stack.append(v)
                for w in self._adjacency[v]:
                    if distance[w] < 0:
                        queue.append(w)
                        distance[w] = distance[v] + 1
                    if distance[w] == distance[v] + 1:
                        sigma[w] += sigma[v]
                        predecessors[w].append(v)

            delta = dict.fromkeys(self._nodes, 0.0)
            while stack:
                w = stack.pop()
                for v in predecessors[w]:
                    delta[v] += sigma[v] / sigma[w] * (1 + delta[w])
                if w != source:
                    betweenness[w] += delta[w]

        highest = max(betweenness.values(), default=0.0)
        scale = highest if highest > 0 else 1.0
        for node_id, node in self._nodes.items():
            node.metrics.betweenness = betweenness[node_id] / scale

    def _compute_page_rank(self) -> None:
        n = len(self._nodes)
        if n == 0:
            return

        d = self.damping_factor
        rank = dict.fromkeys(self._nodes, 1 / n)

        for _ in range(self.max_iterations):
            updated = {}
            max_delta = 0.0
            for node_id in self._nodes:
                incoming = sum(rank[u] / len(self._adjacency[u]) for u in self._reverse[node_id])
                updated[node_id] = (1 - d) / n + d * incoming
                max_delta = max(max_delta, abs(updated[node_id] - rank[node_id]))
            rank = updated
            if max_delta < self.tolerance:
                break

        highest = max(rank.values())
        scale = highest if highest > 0 else 1.0
        for node_id, node in self._nodes.items():
            node.metrics.page_rank = rank[node_id] / scale

    def _detect_clusters(self) -> list[Cluster]:
        groups: dict[str, list[str]] = {}
        for node_id, node in self._nodes.items():
            groups.setdefault(node.file.directory or "(root)", []).append(node_id)

        clusters = []
        for directory, members in groups.items():
            if len(members) < self.min_cluster_size:
                continue

            member_set = set(members)
            internal = external = 0
            for edge in self._edges:
                inside_source = edge.source in member_set
                inside_target = edge.target in member_set
                if inside_source and inside_target:
                    internal += 1
                elif inside_source or inside_target:
                    external += 1

            possible = len(members) * (len(members) - 1)
            total = internal + external
            clusters.append(
                Cluster(
                    id=f"cluster-{len(clusters)}",
                    name=directory,
                    files=members,
                    internal_edges=internal,
                    external_edges=external,
                    cohesion=internal / possible if possible else 0.0,
                    coupling=external / total if total else 0.0,
                    suggested_domain=suggest_domain_name(
                        directory, [self._nodes[m].file.name for m in members]
                    ),
                )
            )
        return clusters

    def _detect_cycles(self) -> list[list[str]]:
        cycles: list[list[str]] = []
        seen: set[str] = set()
        visited: set[str] = set()

        for start in self._nodes:
            if start in visited:
                continue

            visited.add(start)
            path = [start]
            on_path = {start}
            stack = [(start, iter(self._adjacency[start]))]

            while stack:
                node, neighbors = stack[-1]
                for neighbor in neighbors:
                    if neighbor not in visited:
                        visited.add(neighbor)
                        path.append(neighbor)
                        on_path.add(neighbor)
                        stack.append((neighbor, iter(self._adjacency[neighbor])))
                        break
                    if neighbor in on_path:
                        cycle = path[path.index(neighbor) :] + [neighbor]
                        key = _cycle_key(cycle)
                        if key not in seen:
                            seen.add(key)
                            cycles.append(cycle)
                else:
                    stack.pop()
                    path.pop()
                    on_path.discard(node)

        return cycles

    def _rank(self, clusters: list[Cluster]) -> Rankings:
        # Each ranking sorts the previous ordering, so ties keep earlier order.
        nodes = list(self._nodes.values())

        nodes.sort(key=lambda n: n.metrics.page_rank, reverse=True)
        by_importance = [n.id for n in nodes]

        nodes.sort(key=lambda n: n.metrics.in_degree + n.metrics.out_degree, reverse=True)
        by_connectivity = [n.id for n in nodes]

        centers = []
        for cluster in clusters:
            best = None
            for member in cluster.files:
                candidate = self._nodes[member]
                if best is None or candidate.metrics.in_degree > best.metrics.in_degree:
                    best = candidate
            if best is not None:
                centers.append(best.id)

        leaves = [n for n in nodes if n.metrics.out_degree > 0 and n.metrics.in_degree == 0]
        leaves.sort(key=lambda n: n.metrics.out_degree, reverse=True)

        bridges = [n for n in nodes if n.metrics.betweenness > BRIDGE_THRESHOLD]
        bridges.sort(key=lambda n: n.metrics.betweenness, reverse=True)

        return Rankings(
            by_importance=by_importance,
            by_connectivity=by_connectivity,
            cluster_centers=centers,
            leaf_nodes=[n.id for n in leaves],
            bridge_nodes=[n.id for n in bridges],
            orphan_nodes=[n.id for n in nodes if n.metrics.in_degree == 0 and n.metrics.out_degree == 0],
        )

    def _statistics(self, clusters: list[Cluster], cycles: list[list[str]]) -> GraphStatistics:
        node_count = len(self._nodes)
        edge_count = len(self._edges)
        total_degree = sum(n.metrics.in_degree + n.metrics.out_degree for n in self._nodes.values())
        possible = node_count * (node_count - 1)
        return GraphStatistics(
            node_count=node_count,
            edge_count=edge_count,
            avg_degree=total_degree / node_count if node_count else 0.0,
            density=edge_count / possible if possible else 0.0,
            cluster_count=len(clusters),
            cycle_count=len(cycles),
        )


def _cycle_key(cycle: list[str]) -> str:
    """Rotation-independent key: members without the closing repeat, smallest first."""
    members = cycle[:-1]
    if not members:
        return ""
    start = members.index(min(members))
    return "|".join(members[start:] + members[:start])


async def build_dependency_graph(
    files: Sequence[ScoredFile], root_dir: str, **options
) -> DependencyGraphResult:
    return await DependencyGraphBuilder(root_dir, **options).build(files)
