"""Tests for dependency graph construction and metrics."""

import pytest

from repograph.analyzers import (
    DependencyGraphBuilder,
    SignificanceScorer,
    build_dependency_graph,
    suggest_domain_name,
)
from repograph.errors import GraphBuildError
from repograph.sources import walk_directory


def ids_by_path(result):
    return {node.file.path: node.id for node in result.nodes}


def nodes_by_path(result):
    return {node.file.path: node for node in result.nodes}


class TestEdges:
    @pytest.mark.asyncio
    async def test_graph_is_well_formed(self, make_repo, build_graph):
        root = make_repo({
            "a.ts": "import b from './b';\nimport { c } from './c';\n",
            "b.ts": "import { c } from './c';\n",
            "c.ts": "import React from 'react';\nimport x from './missing';\n",
        })

        result = await build_graph(root)
        node_ids = {n.id for n in result.nodes}
        ids = ids_by_path(result)

        assert len(result.edges) == 3
        assert {(e.source, e.target) for e in result.edges} == {
            (ids["a.ts"], ids["b.ts"]),
            (ids["a.ts"], ids["c.ts"]),
            (ids["b.ts"], ids["c.ts"]),
        }
        assert all(e.source in node_ids and e.target in node_ids for e in result.edges)
        degree_sum = sum(n.metrics.in_degree + n.metrics.out_degree for n in result.nodes)
        assert degree_sum == 2 * len(result.edges)

    @pytest.mark.asyncio
    async def test_duplicate_imports_merge_into_one_edge(self, make_repo, build_graph):
        root = make_repo({
            "a.ts": "import { x } from './b';\nimport type { T } from './b';\n",
            "b.ts": "export const x = 1;\nexport type T = string;\n",
        })

        result = await build_graph(root)

        assert len(result.edges) == 1
        edge = result.edges[0]
        assert edge.imported_names == ["x", "T"]
        assert not edge.is_type_only
        assert edge.weight == 1.0

    @pytest.mark.asyncio
    async def test_type_only_edges_are_light(self, make_repo, build_graph):
        root = make_repo({
            "a.ts": "import type { T } from './b';\n",
            "b.ts": "export type T = string;\n",
        })

        result = await build_graph(root)

        assert result.edges[0].is_type_only
        assert result.edges[0].weight == 0.5

    @pytest.mark.asyncio
    async def test_self_import_is_dropped(self, make_repo, build_graph):
        root = make_repo({"a.ts": "import './a';\n"})

        result = await build_graph(root)

        assert result.edges == []
        assert result.cycles == []

    @pytest.mark.asyncio
    async def test_python_relative_imports(self, make_repo, build_graph):
        root = make_repo({
            "pkg/__init__.py": "",
            "pkg/models.py": "class User:\n    pass\n",
            "pkg/service.py": "from .models import User\nfrom . import models\n",
        })

        result = await build_graph(root)
        ids = ids_by_path(result)

        assert {(e.source, e.target) for e in result.edges} == {
            (ids["pkg/service.py"], ids["pkg/models.py"]),
            (ids["pkg/service.py"], ids["pkg/__init__.py"]),
        }

    @pytest.mark.asyncio
    async def test_exports_attached_to_nodes(self, make_repo, build_graph):
        root = make_repo({"a.ts": "export function run() {}\n"})

        result = await build_graph(root)

        assert [e.name for e in result.nodes[0].exports] == ["run"]


class TestMetrics:
    @pytest.mark.asyncio
    async def test_page_rank_normalized(self, make_repo, build_graph):
        root = make_repo({
            "a.ts": "import './c';\n",
            "b.ts": "import './c';\n",
            "c.ts": "",
            "d.ts": "",
        })

        result = await build_graph(root)
        nodes = nodes_by_path(result)

        assert max(n.metrics.page_rank for n in result.nodes) == pytest.approx(1.0)
        assert all(0 <= n.metrics.page_rank <= 1 for n in result.nodes)
        assert nodes["c.ts"].metrics.page_rank == pytest.approx(1.0)
        assert result.rankings.by_importance[0] == nodes["c.ts"].id

    @pytest.mark.asyncio
    async def test_betweenness_of_chain(self, make_repo, build_graph):
        root = make_repo({
            "a.ts": "import './b';\n",
            "b.ts": "import './c';\n",
            "c.ts": "",
        })

        result = await build_graph(root)
        nodes = nodes_by_path(result)

        assert nodes["b.ts"].metrics.betweenness == 1.0
        assert nodes["a.ts"].metrics.betweenness == 0.0
        assert nodes["c.ts"].metrics.betweenness == 0.0
        assert result.rankings.bridge_nodes == [nodes["b.ts"].id]

    @pytest.mark.asyncio
    async def test_zero_betweenness_stays_zero(self, make_repo, build_graph):
        root = make_repo({
            "hub.ts": "import './x';\nimport './y';\n",
            "x.ts": "",
            "y.ts": "",
        })

        result = await build_graph(root)

        assert all(n.metrics.betweenness == 0.0 for n in result.nodes)
        assert result.rankings.bridge_nodes == []

    @pytest.mark.asyncio
    async def test_rankings(self, make_repo, build_graph):
        root = make_repo({
            "hub.ts": "import './x';\nimport './y';\n",
            "x.ts": "",
            "y.ts": "",
            "alone.ts": "",
        })

        result = await build_graph(root)
        ids = ids_by_path(result)

        assert result.rankings.leaf_nodes == [ids["hub.ts"]]
        assert result.rankings.orphan_nodes == [ids["alone.ts"]]
        assert result.rankings.by_connectivity[0] == ids["hub.ts"]
        assert set(result.rankings.by_importance) == set(ids.values())

    @pytest.mark.asyncio
    async def test_statistics(self, make_repo, build_graph):
        root = make_repo({"a.ts": "import './b';\n", "b.ts": ""})

        result = await build_graph(root)
        stats = result.statistics

        assert stats.node_count == 2
        assert stats.edge_count == 1
        assert stats.avg_degree == 1.0
        assert stats.density == 0.5
        assert stats.cycle_count == 0

    @pytest.mark.asyncio
    async def test_deterministic(self, make_repo, build_graph):
        root = make_repo({
            "src/a.ts": "import './b';\nimport './c';\n",
            "src/b.ts": "import './c';\nimport './a';\n",
            "src/c.ts": "import './a';\n",
            "lib/d.ts": "import '../src/a';\n",
        })

        first = await build_graph(root)
        second = await build_graph(root)

        assert first.to_dict() == second.to_dict()


class TestCycles:
    @pytest.mark.asyncio
    async def test_two_node_cycle(self, make_repo, build_graph):
        root = make_repo({"a.ts": "import './b';\n", "b.ts": "import './a';\n"})

        result = await build_graph(root)
        ids = ids_by_path(result)

        assert len(result.cycles) == 1
        cycle = result.cycles[0]
        assert len(cycle) == 3
        assert cycle[0] == cycle[-1]
        assert set(cycle) == {ids["a.ts"], ids["b.ts"]}

    @pytest.mark.asyncio
    async def test_rotations_reported_once(self, make_repo, build_graph):
        root = make_repo({
            "a.ts": "import './b';\n",
            "b.ts": "import './c';\n",
            "c.ts": "import './a';\n",
            "d.ts": "import './b';\n",
        })

        result = await build_graph(root)

        assert len(result.cycles) == 1
        assert len(result.cycles[0]) == 4
        assert result.statistics.cycle_count == 1

    @pytest.mark.asyncio
    async def test_acyclic_star(self, make_repo, build_graph):
        root = make_repo({
            "hub.ts": "import './x';\nimport './y';\nimport './z';\n",
            "x.ts": "", "y.ts": "", "z.ts": "",
        })

        result = await build_graph(root)

        assert result.cycles == []

    @pytest.mark.asyncio
    async def test_long_chain_does_not_recurse(self, make_repo, build_graph):
        files = {f"m{i:04d}.ts": f"import './m{i + 1:04d}';\n" for i in range(1100)}
        files["m1100.ts"] = "import './m0000';\n"
        root = make_repo(files)

        result = await build_graph(root, max_files=2000)

        assert len(result.cycles) == 1
        assert len(result.cycles[0]) == 1102


class TestClusters:
    @pytest.mark.asyncio
    async def test_directory_cluster(self, make_repo, build_graph):
        root = make_repo({
            "src/auth/login.ts": "import './session';\n",
            "src/auth/session.ts": "",
            "src/api/routes.ts": "import '../auth/login';\n",
        })

        result = await build_graph(root)
        ids = ids_by_path(result)

        assert len(result.clusters) == 1
        cluster = result.clusters[0]
        assert cluster.id == "cluster-0"
        assert cluster.name == "src/auth"
        assert cluster.files == [ids["src/auth/login.ts"], ids["src/auth/session.ts"]]
        assert cluster.internal_edges == 1
        assert cluster.external_edges == 1
        assert cluster.cohesion == 0.5
        assert cluster.coupling == 0.5
        assert cluster.suggested_domain == "authentication"
        assert result.rankings.cluster_centers == [ids["src/auth/login.ts"]]

    @pytest.mark.asyncio
    async def test_min_cluster_size(self, make_repo, build_graph):
        root = make_repo({"x/a.ts": "", "y/b.ts": ""})

        assert (await build_graph(root)).clusters == []
        assert len((await build_graph(root, min_cluster_size=1)).clusters) == 2

    @pytest.mark.asyncio
    async def test_root_files_cluster(self, make_repo, build_graph):
        root = make_repo({"alpha.ts": "", "beta.ts": ""})

        result = await build_graph(root)

        assert result.clusters[0].name == "(root)"
        assert result.clusters[0].suggested_domain == "alpha"


    @pytest.mark.asyncio
    async def test_mutual_imports_with_shared_model(self, make_repo, build_graph):
        root = make_repo({
            "src/services/order.ts": "import { bill } from './billing';\nimport { User } from '../models/user';\n",
            "src/services/billing.ts": "import { order } from './order';\nimport { User } from '../models/user';\n",
            "src/models/user.ts": "export class User {}\n",
        })

        default = await build_graph(root)
        assert [c.name for c in default.clusters] == ["src/services"]

        result = await build_graph(root, min_cluster_size=1)
        clusters = {c.name: c for c in result.clusters}
        ids = ids_by_path(result)

        services = clusters["src/services"]
        assert set(services.files) == {ids["src/services/order.ts"], ids["src/services/billing.ts"]}
        assert services.internal_edges == 2
        assert services.external_edges == 2
        assert services.cohesion == 1.0
        assert services.coupling == 0.5

        models = clusters["src/models"]
        assert models.files == [ids["src/models/user.ts"]]
        assert models.internal_edges == 0
        assert models.external_edges == 2
        assert models.coupling == 1.0
        assert len(result.cycles) == 1

class TestDomainNames:
    def test_rules(self):
        assert suggest_domain_name("src/models", []) == "domain"
        assert suggest_domain_name("src/api/v1", []) == "v1"
        assert suggest_domain_name("app/helpers", []) == "utilities"
        assert suggest_domain_name("src/Billing Engine", []) == "billing-engine"

    def test_generic_segments_stripped(self):
        assert suggest_domain_name("src", ["Widget.tsx"]) == "widget"
        assert suggest_domain_name("(root)", []) == "misc"


class TestBuildErrors:
    @pytest.mark.asyncio
    async def test_rejects_non_sequence(self):
        with pytest.raises(GraphBuildError):
            await DependencyGraphBuilder("/tmp").build("not files")

    @pytest.mark.asyncio
    async def test_rejects_wrong_items(self):
        with pytest.raises(GraphBuildError) as exc:
            await DependencyGraphBuilder("/tmp").build([1, 2])
        assert exc.value.code == "ANALYSIS_FAILED"

    def test_rejects_damping_out_of_range(self):
        with pytest.raises(GraphBuildError):
            DependencyGraphBuilder("/tmp", damping_factor=1.5)

    @pytest.mark.asyncio
    async def test_full_damping_without_edges(self, make_repo):
        root = make_repo({"a.ts": "", "b.ts": ""})
        walk = await walk_directory(root)
        scored = await SignificanceScorer().score_files(walk.files)

        result = await DependencyGraphBuilder(walk.root_path, damping_factor=1.0).build(scored)

        assert [n.metrics.page_rank for n in result.nodes] == [0.0, 0.0]
        assert result.statistics.node_count == 2

    @pytest.mark.asyncio
    async def test_empty_input(self):
        result = await DependencyGraphBuilder("/tmp").build([])
        assert result.nodes == []
        assert result.statistics.node_count == 0
        assert result.statistics.avg_degree == 0.0


class TestBuildDependencyGraph:
    @pytest.mark.asyncio
    async def test_module_helper_passes_options(self, make_repo):
        root = make_repo({
            "lib/a.ts": "import { b } from './b';\n",
            "lib/b.ts": "export const b = 1;\n",
        })
        walk = await walk_directory(root)
        scored = await SignificanceScorer().score_files(walk.files)

        result = await build_dependency_graph(scored, walk.root_path, min_cluster_size=3)

        assert result.statistics.edge_count == 1
        assert result.clusters == []
